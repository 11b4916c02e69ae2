"""Centralized exception hierarchy for obsidian-flashcards.

Parse-local problems (malformed scoped settings, unresolved links, deck
underflow) are never raised: they are recorded as warnings on a
``Diagnostics`` sink. The exceptions below are reserved for failures that
abort processing of the current note.

Exception Hierarchy:
    FlashcardsError (base)
     ConfigurationError - Settings loading/validation errors
     ParserError - Invalid input handed to the parser
     StructuralError - Operation requested on an invalid element
        InvalidElementError - Element is neither a note nor a folder
        MissingCardIdError - Identifier requested for a card without one
     ReconciliationIntegrityError - Update set violates its invariants

Usage Examples:
    # Catch all errors of a single note, continue the batch
    try:
        result = await pipeline.process(note)
    except FlashcardsError as e:
        logger.error("note_processing_failed", **e.to_dict())

    # Use structured error codes
    from obsidian_flashcards.error_codes import ErrorCode

    raise MissingCardIdError(
        "Card has no identifier",
        error_code=ErrorCode.STR_CARD_ID_MISSING.value,
        context={"end_offset": 120},
    )
"""

from typing import Any


class FlashcardsError(Exception):
    """Base exception for all flashcard processing errors.

    Attributes:
        message: Human-readable error message
        suggestion: Optional suggestion for resolving the error
        error_code: Structured error code for machine-readable handling
        context: Additional context for debugging (e.g., note paths, card ids)
    """

    def __init__(
        self,
        message: str,
        suggestion: str | None = None,
        error_code: str | None = None,
        context: dict[str, Any] | None = None,
    ):
        """Initialize the exception.

        Args:
            message: Human-readable error message
            suggestion: Optional suggestion for resolving the error
            error_code: Structured error code (e.g., "STR-ID-001")
            context: Additional context for debugging
        """
        self.message = message
        self.suggestion = suggestion
        self.error_code = error_code
        self.context = context or {}
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        """Format the error message with error code and suggestion if available."""
        parts = []
        if self.error_code:
            parts.append(f"[{self.error_code}] {self.message}")
        else:
            parts.append(self.message)
        if self.suggestion:
            parts.append(f"\nSuggestion: {self.suggestion}")
        return "".join(parts)

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to dictionary for structured logging.

        Returns:
            Dictionary with error details
        """
        return {
            "message": self.message,
            "error_code": self.error_code,
            "suggestion": self.suggestion,
            "context": self.context,
            "type": type(self).__name__,
        }


class ConfigurationError(FlashcardsError):
    """Settings loading or validation errors.

    Raised when:
    - Settings file is missing or malformed
    - Settings values fail validation
    """


class ParserError(FlashcardsError):
    """Invalid input handed to the note parser.

    Raised when:
    - Offsets passed to the parser are outside the note text
    - A card record violates its span invariant
    """


class StructuralError(FlashcardsError):
    """An operation was requested on an element it cannot handle.

    Aborts processing of the current note or element only.
    """


class InvalidElementError(StructuralError):
    """Element is neither a Markdown note nor a folder."""


class MissingCardIdError(StructuralError):
    """Identifier marker requested for a card that has no identifier."""


class ReconciliationIntegrityError(FlashcardsError):
    """Update set violates its invariants.

    Raised when:
    - A card scheduled for update carries no change flags
    - A change flag is left unhandled after planning update actions
    """
