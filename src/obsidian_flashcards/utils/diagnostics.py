"""Push-only collector for non-fatal parse and reconciliation warnings."""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from obsidian_flashcards.utils.logging import get_logger

logger = get_logger(__name__)


class DiagnosticLevel(str, Enum):
    """Severity of a diagnostic."""

    INFO = "info"
    WARNING = "warning"


@dataclass(frozen=True)
class Diagnostic:
    """One recorded diagnostic.

    Attributes:
        level: Severity
        event: snake_case event name, also used as the log event
        message: Human-readable message suitable for a notification
        context: Extra structured data (offsets, ids, raw text)
    """

    level: DiagnosticLevel
    event: str
    message: str
    context: dict[str, Any] = field(default_factory=dict)


class Diagnostics:
    """Records diagnostics and mirrors each one to the structured log.

    Entries are only ever appended; nothing in the parser or reconciler reads
    them back to make decisions.
    """

    def __init__(self, **bound_context: Any) -> None:
        self._entries: list[Diagnostic] = []
        self._logger = logger.bind(**bound_context) if bound_context else logger

    def warning(self, event: str, message: str, **context: Any) -> None:
        """Record a warning."""
        self._push(DiagnosticLevel.WARNING, event, message, context)

    def info(self, event: str, message: str, **context: Any) -> None:
        """Record an informational entry."""
        self._push(DiagnosticLevel.INFO, event, message, context)

    def _push(
        self, level: DiagnosticLevel, event: str, message: str, context: dict[str, Any]
    ) -> None:
        self._entries.append(Diagnostic(level, event, message, dict(context)))
        log = self._logger.warning if level is DiagnosticLevel.WARNING else self._logger.info
        log(event, message=message, **context)

    @property
    def entries(self) -> list[Diagnostic]:
        return list(self._entries)

    @property
    def warnings(self) -> list[Diagnostic]:
        return [d for d in self._entries if d.level is DiagnosticLevel.WARNING]

    def events(self) -> list[str]:
        """Event names in recording order."""
        return [d.event for d in self._entries]

    def __iter__(self) -> Iterator[Diagnostic]:
        return iter(list(self._entries))

    def __len__(self) -> int:
        return len(self._entries)
