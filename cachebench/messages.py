"""Commands sent to the engine loop and the status it reports back."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class Key(Enum):
    """Keys the engine reacts to."""

    W = "W"
    A = "A"
    S = "S"
    D = "D"
    Q = "Q"
    E = "E"
    COMMA = "Comma"
    PERIOD = "Period"


@dataclass(frozen=True)
class Resize:
    """The window's drawable area changed size."""

    width: int
    height: int

    def __post_init__(self) -> None:
        if self.width < 0 or self.height < 0:
            raise ValueError("sizes must not be negative")


@dataclass(frozen=True)
class RotateTriangle:
    """Switch the triangle's rotation on or off."""

    value: bool


@dataclass(frozen=True)
class SetTriangleSpeed:
    """Set the triangle's rotation speed."""

    speed: float


@dataclass(frozen=True)
class KeyEvent:
    """A key was pressed."""

    key: Key


@dataclass(frozen=True)
class Shutdown:
    """Ask the engine to shut down when ``value`` is true."""

    value: bool


@dataclass(frozen=True)
class EngineShutdown:
    """The engine reports that it has shut down."""

    value: bool


Command = Resize | RotateTriangle | SetTriangleSpeed | KeyEvent | Shutdown

_ESCAPE = "Escape"


def command_for_key(name: str) -> Command | None:
    """The command a pressed key produces, or ``None`` for keys that are ignored.

    Escape asks for shutdown; names are matched exactly.
    """
    if name == _ESCAPE:
        return Shutdown(True)
    try:
        return KeyEvent(Key(name))
    except ValueError:
        return None