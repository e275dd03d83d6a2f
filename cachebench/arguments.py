"""Command-line options: turning the graphical interface off and choosing a config file."""

from __future__ import annotations

import argparse
import logging
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path

logger = logging.getLogger(__name__)


def _parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="cachebench-template")
    parser.add_argument(
        "--nogui",
        action="count",
        default=0,
        help="Turn graphical user interface off. Keyboard and mouse events will still be handled.",
    )
    parser.add_argument(
        "-c", "--config", metavar="FILE", type=Path, default=None,
        help="Sets a custom config file",
    )
    return parser


@dataclass(frozen=True)
class ApplicationArguments:
    """Parsed options; ``config_path`` is ``None`` when none was given."""

    no_gui: bool = False
    config_path: Path | None = None

    @classmethod
    def from_argv(cls, argv: Sequence[str] | None = None) -> ApplicationArguments:
        """Parse options; invalid options exit with a usage message."""
        args = _parser().parse_args(argv)
        arguments = cls(no_gui=args.nogui > 0, config_path=args.config)
        logger.debug("Launching with arguments:")
        logger.debug("no_gui: %s", arguments.no_gui)
        logger.debug("config_path: %s", arguments.config_path or "")
        return arguments

    def has_valid_config_path(self) -> bool:
        """Whether a config path was given and exists."""
        return self.config_path is not None and self.config_path.exists()