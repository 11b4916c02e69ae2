"""Global settings and per-note configuration resolution."""

from __future__ import annotations

import os
import re
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path, PurePosixPath
from typing import Any

import yaml
from pydantic import Field, ValidationError, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .error_codes import ErrorCode
from .exceptions import ConfigurationError
from .utils.diagnostics import Diagnostics
from .utils.logging import get_logger

logger = get_logger(__name__)

FRONTMATTER_DECK_KEY = "cards-deck"
FRONTMATTER_PATH_BASED_KEY = "cards-path-based"
FRONTMATTER_TAGS_KEY = "cards-tags"
FRONTMATTER_CONTEXT_KEY = "cards-context"


class Settings(BaseSettings):
    """Global flashcard settings.

    Values ending in ``_global`` can be overridden per note through front matter.
    """

    model_config = SettingsConfigDict(
        env_prefix="OBSIDIAN_FLASHCARDS_",
        env_ignore_empty=True,
        case_sensitive=False,
        extra="ignore",
        validate_assignment=True,
    )

    # Parsing
    flashcards_tag: str = Field(default="card", description="Tag marking a flashcard")
    inline_separator: str = Field(default="::", description="Inline card separator")
    inline_separator_reversed: str = Field(
        default=":::", description="Inline separator for reversed cards"
    )

    # Processing
    deck_name_global: str = Field(default="Default", description="Default deck name")
    path_based_deck_global: bool = Field(
        default=False, description="Derive the deck from the note's folder path"
    )
    apply_frontmatter_tags_global: bool = Field(
        default=False, description="Add the note's front matter tags to its cards"
    )
    apply_heading_context_tags_global: bool = Field(
        default=False, description="Inherit tags attached to ancestor headings"
    )
    heading_context_mode_global: bool = Field(
        default=False, description="Prefix questions with their ancestor headings"
    )
    context_separator: str = Field(
        default=" > ", description="Separator between ancestor headings and question"
    )

    # Remote store
    default_anki_tag: str = Field(default="Obsidian", description="Tag added to every card")
    anki_tags_to_preserve: list[str] = Field(
        default_factory=lambda: ["leech", "marked"],
        description="Remote-only tags that are kept when cards are updated",
    )
    transfer_media_files: bool = Field(default=True, description="Upload embedded media")
    include_source_link: bool = Field(
        default=False, description="Add a Source field linking back to the note"
    )
    code_highlight_support: bool = Field(
        default=False, description="Use the code-highlighting model variants"
    )
    sanitize_html: bool = Field(default=True, description="Sanitize rendered HTML")

    @field_validator("flashcards_tag")
    @classmethod
    def validate_flashcards_tag(cls, v: str) -> str:
        v = v.strip().lstrip("#")
        if not v or re.search(r"[\s#]", v):
            msg = "flashcards_tag must be a single tag name without spaces"
            raise ValueError(msg)
        return v

    @field_validator("inline_separator", "inline_separator_reversed")
    @classmethod
    def validate_separator(cls, v: str) -> str:
        if not v or re.search(r"\s", v):
            msg = "inline separators must be non-empty and contain no whitespace"
            raise ValueError(msg)
        return v

    @field_validator("anki_tags_to_preserve", mode="before")
    @classmethod
    def parse_preserved_tags(cls, v: Any) -> list[str]:
        """Accept a comma-separated string as well as a list."""
        if v is None:
            return []
        if isinstance(v, str):
            return [tag.strip() for tag in v.split(",") if tag.strip()]
        return [str(tag) for tag in v]

    @model_validator(mode="after")
    def validate_distinct_separators(self) -> Settings:
        if self.inline_separator == self.inline_separator_reversed:
            msg = "inline_separator and inline_separator_reversed must differ"
            raise ValueError(msg)
        return self


def load_settings(config_path: Path | None = None) -> Settings:
    """Load settings from a YAML file, environment variables, and defaults.

    Args:
        config_path: Optional YAML file; falls back to ``OBSIDIAN_FLASHCARDS_CONFIG``

    Returns:
        Validated settings

    Raises:
        ConfigurationError: If the file cannot be parsed or values are invalid
    """
    if config_path is None:
        env_path = os.getenv("OBSIDIAN_FLASHCARDS_CONFIG")
        config_path = Path(env_path).expanduser() if env_path else None

    yaml_data: dict[str, Any] = {}
    if config_path is not None:
        try:
            with open(config_path, encoding="utf-8") as f:
                yaml_data = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            logger.error(
                "config_yaml_load_error",
                config_path=str(config_path),
                error=str(e),
                error_type=type(e).__name__,
            )
            msg = f"Failed to read settings file: {config_path}"
            raise ConfigurationError(
                msg,
                suggestion=(
                    "Check that the file exists and that its YAML syntax is valid. "
                    f"Original error: {e}"
                ),
                error_code=ErrorCode.CFG_FILE_INVALID.value,
            ) from e
        if not isinstance(yaml_data, dict):
            msg = f"Settings file must contain a mapping: {config_path}"
            raise ConfigurationError(msg, error_code=ErrorCode.CFG_FILE_INVALID.value)
        logger.debug(
            "config_yaml_loaded", config_path=str(config_path), keys_count=len(yaml_data)
        )

    try:
        return Settings(**yaml_data)
    except ValidationError as e:
        fields = ", ".join(".".join(str(p) for p in err["loc"]) for err in e.errors())
        msg = f"Invalid settings: {fields}"
        raise ConfigurationError(
            msg,
            suggestion=str(e),
            error_code=ErrorCode.CFG_VALUE_INVALID.value,
        ) from e


class ContextMode(str, Enum):
    """Which parts of the heading hierarchy a card inherits."""

    NONE = "none"
    TAGS = "tags"
    HEADINGS = "headings"
    ALL = "all"

    @property
    def includes_tags(self) -> bool:
        return self in (ContextMode.TAGS, ContextMode.ALL)

    @property
    def includes_headings(self) -> bool:
        return self in (ContextMode.HEADINGS, ContextMode.ALL)

    @classmethod
    def from_flags(cls, headings: bool, tags: bool) -> ContextMode:
        if headings and tags:
            return cls.ALL
        if headings:
            return cls.HEADINGS
        if tags:
            return cls.TAGS
        return cls.NONE


@dataclass(frozen=True)
class NoteConfig:
    """Processing configuration of one note after front matter overrides."""

    settings: Settings
    deck_name: str
    context_mode: ContextMode
    frontmatter_tags: list[str] = field(default_factory=list)
    note_path: str = ""
    vault_name: str = ""


def path_based_deck(note_path: str) -> str | None:
    """Deck name derived from the folders containing the note.

    Returns None for notes at the vault root.
    """
    parents = PurePosixPath(note_path.replace("\\", "/")).parent.parts
    if not parents or parents == (".",):
        return None
    return "::".join(parents)


def normalize_tag(tag: str) -> str:
    """Strip a leading ``#`` and rewrite hierarchical ``/`` tags to ``::``."""
    return tag.strip().lstrip("#").replace("/", "::")


def _frontmatter_tag_list(value: Any) -> list[str]:
    if value is None:
        return []
    if isinstance(value, str):
        raw = re.split(r"[,\s]+", value)
    elif isinstance(value, (list, tuple)):
        raw = [str(v) for v in value if v is not None]
    else:
        raw = [str(value)]
    return [normalize_tag(tag) for tag in raw if normalize_tag(tag)]


def resolve_note_config(
    settings: Settings,
    note_path: str = "",
    metadata: dict[str, Any] | None = None,
    diagnostics: Diagnostics | None = None,
    vault_name: str = "",
) -> NoteConfig:
    """Apply a note's front matter overrides to the global settings.

    Args:
        settings: Global settings
        note_path: Vault-relative path of the note
        metadata: Parsed front matter of the note
        diagnostics: Sink for configuration warnings
        vault_name: Name of the vault, used for note links

    Returns:
        Resolved note configuration
    """
    metadata = metadata or {}
    diagnostics = diagnostics if diagnostics is not None else Diagnostics()

    fm_deck = metadata.get(FRONTMATTER_DECK_KEY)
    fm_path_based = metadata.get(FRONTMATTER_PATH_BASED_KEY)
    if fm_deck is not None and fm_path_based:
        diagnostics.warning(
            "frontmatter_deck_conflict",
            f"Note sets both '{FRONTMATTER_DECK_KEY}' and "
            f"'{FRONTMATTER_PATH_BASED_KEY}'; '{FRONTMATTER_DECK_KEY}' takes precedence",
            note_path=note_path,
            error_code=ErrorCode.CFG_FRONTMATTER_CONFLICT.value,
        )

    path_based = (
        fm_path_based if isinstance(fm_path_based, bool) else settings.path_based_deck_global
    )
    if isinstance(fm_deck, str) and fm_deck.strip():
        deck_name = fm_deck.strip()
    elif path_based:
        deck_name = path_based_deck(note_path) or settings.deck_name_global
    else:
        deck_name = settings.deck_name_global

    context_mode = ContextMode.from_flags(
        headings=settings.heading_context_mode_global,
        tags=settings.apply_heading_context_tags_global,
    )
    fm_context = metadata.get(FRONTMATTER_CONTEXT_KEY)
    if fm_context is True:
        context_mode = ContextMode.ALL
    elif fm_context is False:
        context_mode = ContextMode.NONE
    elif fm_context in ("headings", "tags"):
        context_mode = ContextMode(fm_context)
    elif fm_context is not None:
        diagnostics.warning(
            "frontmatter_value_invalid",
            f"'{FRONTMATTER_CONTEXT_KEY}' must be 'headings', 'tags', true or false",
            note_path=note_path,
            value=str(fm_context),
            error_code=ErrorCode.CFG_VALUE_INVALID.value,
        )

    fm_tags_setting = metadata.get(FRONTMATTER_TAGS_KEY)
    if fm_tags_setting == "frontmatter":
        frontmatter_tags = _frontmatter_tag_list(metadata.get("tags"))
    elif isinstance(fm_tags_setting, list):
        frontmatter_tags = _frontmatter_tag_list(fm_tags_setting)
    elif fm_tags_setting is False:
        frontmatter_tags = []
    else:
        if fm_tags_setting is not None:
            diagnostics.warning(
                "frontmatter_value_invalid",
                f"'{FRONTMATTER_TAGS_KEY}' must be 'frontmatter', a list of tags or false",
                note_path=note_path,
                value=str(fm_tags_setting),
                error_code=ErrorCode.CFG_VALUE_INVALID.value,
            )
        frontmatter_tags = (
            _frontmatter_tag_list(metadata.get("tags"))
            if settings.apply_frontmatter_tags_global
            else []
        )

    return NoteConfig(
        settings=settings,
        deck_name=deck_name,
        context_mode=context_mode,
        frontmatter_tags=frontmatter_tags,
        note_path=note_path,
        vault_name=vault_name,
    )
