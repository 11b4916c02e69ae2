"""Structured error codes for machine-readable error handling.

Error codes follow the format: {DOMAIN}-{CATEGORY}-{NUMBER}

Error Domains:
    CFG - Configuration errors (settings files, note configuration)
    PAR - Parsing errors (scoped settings, links, media, math)
    STR - Structural errors (invalid elements, missing identifiers)
    REC - Reconciliation errors (integrity violations)

Usage:
    from obsidian_flashcards.error_codes import ErrorCode

    logger.error(
        "card_update_integrity_violation",
        error_code=ErrorCode.REC_INTEGRITY_NO_CHANGES.value,
        card_id=1700000000000,
    )
"""

from enum import Enum


class ErrorCode(str, Enum):
    """Structured error codes for machine-readable handling.

    All error codes inherit from str for JSON serialization compatibility.
    Format: {DOMAIN}-{CATEGORY}-{NUMBER}
    """

    # =========================================================================
    # Configuration Errors (CFG-xxx-xxx)
    # =========================================================================
    CFG_FILE_INVALID = "CFG-FILE-001"
    """Settings file could not be read or parsed."""

    CFG_VALUE_INVALID = "CFG-VALUE-001"
    """Settings value failed validation."""

    CFG_FRONTMATTER_CONFLICT = "CFG-FM-001"
    """Note front matter sets both a deck and path-based decks."""

    CFG_FRONTMATTER_INVALID = "CFG-FM-002"
    """Note front matter could not be parsed."""

    # =========================================================================
    # Parsing Warnings (PAR-xxx-xxx)
    # =========================================================================
    PAR_SCOPED_SETTINGS_INVALID = "PAR-SCOPE-001"
    """Scoped settings block is not valid YAML or not a mapping."""

    PAR_SCOPED_SETTINGS_CONFLICT = "PAR-SCOPE-002"
    """Scoped settings apply and ignore the same target."""

    PAR_DECK_MODIFICATION_INVALID = "PAR-DECK-001"
    """Deck modification underflows or contains an empty segment."""

    PAR_CARD_IN_EXCLUDED_RANGE = "PAR-RANGE-001"
    """Card candidate lies inside code, math, comment, or front matter."""

    PAR_LINK_UNRESOLVED = "PAR-LINK-001"
    """Note link does not resolve to a note in the vault."""

    PAR_MATH_PLACEHOLDER_MISSING = "PAR-MATH-001"
    """Rendered HTML contains a math placeholder with no stored content."""

    # =========================================================================
    # Structural Errors (STR-xxx-xxx)
    # =========================================================================
    STR_ELEMENT_INVALID = "STR-ELEM-001"
    """Element is neither a Markdown file nor a folder."""

    STR_CARD_ID_MISSING = "STR-ID-001"
    """Identifier marker requested for a card without an identifier."""

    # =========================================================================
    # Reconciliation Errors (REC-xxx-xxx)
    # =========================================================================
    REC_CARD_RECREATED = "REC-CARD-001"
    """Card identifier is unknown to the remote store; card is re-created."""

    REC_INTEGRITY_NO_CHANGES = "REC-INT-001"
    """Card scheduled for update carries no change flags."""

    REC_INTEGRITY_UNHANDLED = "REC-INT-002"
    """Card scheduled for update has change flags no action handled."""
