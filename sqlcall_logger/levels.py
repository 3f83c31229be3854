"""Log levels used to classify every intercepted database call."""

from __future__ import annotations

from enum import IntEnum


class Level(IntEnum):
    """Severity of a log entry; entries below the configured minimum are dropped."""

    TRACE = 0
    DEBUG = 1
    INFO = 2
    ERROR = 3

    def __str__(self) -> str:
        return self.name.lower()


def level_name(level: int) -> str:
    """Return the textual name of ``level``, tolerating values outside the enum."""
    try:
        return str(Level(level))
    except ValueError:
        return f"(invalid level): {int(level)}"