"""Injectable log capability for the orchestrator.

The orchestrator never touches a global logger directly; it is handed a
``LogEmitter`` so tests can record exactly which lines an attempt produced.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class LogEmitter(Protocol):
    """Anything that can emit one leveled log line with structured data."""

    def emit(self, level: int, message: str, **data: Any) -> None:
        ...


class LoggerEmitter:
    """Forward lines to a standard ``logging`` logger.

    Structured fields are rendered after the message and also attached to the
    record as ``data`` for the JSON formatter.
    """

    def __init__(self, logger_name: str = "soldedata.pipeline") -> None:
        self._logger = logging.getLogger(logger_name)

    def emit(self, level: int, message: str, **data: Any) -> None:
        if not self._logger.isEnabledFor(level):
            return
        if data:
            details = " ".join(f"{key}={value}" for key, value in data.items())
            self._logger.log(level, "%s (%s)", message, details, extra={"data": data})
        else:
            self._logger.log(level, "%s", message)


@dataclass
class EmittedLine:
    level: int
    message: str
    data: dict[str, Any] = field(default_factory=dict)


class RecordingEmitter:
    """Collect emitted lines in memory — useful for testing."""

    def __init__(self) -> None:
        self.lines: list[EmittedLine] = []

    def emit(self, level: int, message: str, **data: Any) -> None:
        self.lines.append(EmittedLine(level=level, message=message, data=data))

    def messages(self, level: int | None = None) -> list[str]:
        """Return emitted messages, optionally only those at *level*."""
        return [line.message for line in self.lines if level is None or line.level == level]
