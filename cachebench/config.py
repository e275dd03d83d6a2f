"""Application settings stored as a TOML file."""

from __future__ import annotations

import logging
import tomllib
from collections.abc import Mapping
from dataclasses import dataclass
from os import PathLike
from typing import Any

import tomli_w

logger = logging.getLogger(__name__)


class ConfigError(ValueError):
    """A configuration file that could be read but not understood."""


def _field(document: Mapping[str, Any], name: str) -> Any:
    if name not in document:
        raise ConfigError(f"missing field {name!r}")
    return document[name]


@dataclass
class Config:
    """Whether the triangle rotates, how fast, and where the settings are saved."""

    rotate_triangle: bool = True
    triangle_speed: float = 0.5
    config_save_path: str = ""

    @classmethod
    def from_path(cls, path: str | PathLike[str]) -> Config:
        """Load settings from a TOML file; unknown keys are ignored."""
        with open(path, "rb") as handle:
            try:
                document = tomllib.load(handle)
            except (tomllib.TOMLDecodeError, UnicodeDecodeError) as error:
                logger.debug("Loaded config file, but failed to parse it")
                raise ConfigError(f"cannot parse {path}: {error}") from error

        rotate = _field(document, "rotate_triangle")
        speed = _field(document, "triangle_speed")
        save_path = _field(document, "config_save_path")
        if not isinstance(rotate, bool):
            raise ConfigError("rotate_triangle must be a boolean")
        if isinstance(speed, bool) or not isinstance(speed, (int, float)):
            raise ConfigError("triangle_speed must be a number")
        if not isinstance(save_path, str):
            raise ConfigError("config_save_path must be a string")
        logger.debug("Successfully loaded config file from: %s", path)
        return cls(rotate, float(speed), save_path)

    def to_toml(self) -> str:
        """The settings as a TOML document."""
        return tomli_w.dumps(
            {
                "rotate_triangle": self.rotate_triangle,
                "triangle_speed": float(self.triangle_speed),
                "config_save_path": self.config_save_path,
            }
        )

    def save(self) -> None:
        """Write the settings to ``config_save_path``; raises ``OSError`` on failure."""
        with open(self.config_save_path, "w", encoding="utf-8") as handle:
            handle.write(self.to_toml())
        logger.debug("Successfully wrote config file to: %s", self.config_save_path)