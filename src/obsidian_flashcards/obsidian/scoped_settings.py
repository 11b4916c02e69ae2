"""Scoped settings attached to headings and inline cards.

A scoped settings block is a ``%%...%%`` comment holding YAML, e.g.::

    ## Networking #tcp
    %%
    deck: ::Protocols
    ignore: previous-tags
    %%
"""

from __future__ import annotations

from enum import Enum
from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict, ValidationError, field_validator

from ..error_codes import ErrorCode
from ..utils.diagnostics import Diagnostics

_MERGE_TAG = "tag:yaml.org,2002:merge"


class _ScopedSettingsLoader(yaml.SafeLoader):
    """SafeLoader that reads ``<<`` as a plain string (the deck ascend marker)."""


_ScopedSettingsLoader.yaml_implicit_resolvers = {
    first: [(tag, regexp) for tag, regexp in resolvers if tag != _MERGE_TAG]
    for first, resolvers in yaml.SafeLoader.yaml_implicit_resolvers.items()
}


class ScopeTarget(str, Enum):
    """What an ``apply`` setting forces into the context."""

    HEADING = "heading"
    TAGS = "tags"
    ALL = "all"


class IgnoreTarget(str, Enum):
    """What an ``ignore`` setting removes from the context."""

    HEADING = "heading"
    TAGS = "tags"
    PREVIOUS_TAGS = "previous_tags"
    ALL = "all"


def _normalize_target(value: Any) -> Any:
    if value is True:
        return "all"
    if value is False:
        return None
    if isinstance(value, str):
        return {"previous-tags": "previous_tags", "previoustags": "previous_tags"}.get(
            value.strip().lower(), value.strip().lower()
        )
    return value


class ScopedSettings(BaseModel):
    """Overrides for a heading's subtree or for one inline card."""

    model_config = ConfigDict(extra="ignore", frozen=True)

    deck: str | None = None
    apply: ScopeTarget | None = None
    ignore: IgnoreTarget | None = None
    replace: str | None = None
    swap: bool = False

    @field_validator("apply", "ignore", mode="before")
    @classmethod
    def normalize_target(cls, v: Any) -> Any:
        return _normalize_target(v)

    @field_validator("deck", "replace", mode="before")
    @classmethod
    def coerce_text(cls, v: Any) -> Any:
        if v is None or isinstance(v, str):
            return v.strip() if isinstance(v, str) else v
        return str(v)

    def is_empty(self) -> bool:
        return self == ScopedSettings()


def _conflicts(settings: ScopedSettings) -> bool:
    if settings.apply is None or settings.ignore is None:
        return False
    return settings.apply.value == settings.ignore.value


def parse_scoped_settings(
    raw: str | None,
    diagnostics: Diagnostics,
    *,
    location: str = "",
    offset: int | None = None,
) -> ScopedSettings | None:
    """Parse the body of a scoped settings comment.

    Args:
        raw: Text between the ``%%`` delimiters
        diagnostics: Sink for warnings
        location: Heading or question text, used in warnings
        offset: Offset of the owning heading or card

    Returns:
        Parsed settings, or None when the block is absent, empty, or invalid
    """
    if raw is None or not raw.strip():
        return None

    try:
        data = yaml.load(raw, Loader=_ScopedSettingsLoader)  # noqa: S506
    except yaml.YAMLError as e:
        diagnostics.warning(
            "scoped_settings_unparseable",
            f"Scoped settings of '{location}' are not valid YAML and were ignored",
            location=location,
            offset=offset,
            error=str(e),
            error_code=ErrorCode.PAR_SCOPED_SETTINGS_INVALID.value,
        )
        return None

    if not isinstance(data, dict):
        diagnostics.warning(
            "scoped_settings_unparseable",
            f"Scoped settings of '{location}' must be key/value pairs and were ignored",
            location=location,
            offset=offset,
            error_code=ErrorCode.PAR_SCOPED_SETTINGS_INVALID.value,
        )
        return None

    try:
        settings = ScopedSettings.model_validate({str(k): v for k, v in data.items()})
    except ValidationError as e:
        diagnostics.warning(
            "scoped_settings_unparseable",
            f"Scoped settings of '{location}' contain invalid values and were ignored",
            location=location,
            offset=offset,
            error=str(e),
            error_code=ErrorCode.PAR_SCOPED_SETTINGS_INVALID.value,
        )
        return None

    if _conflicts(settings):
        diagnostics.warning(
            "scoped_settings_conflict",
            f"Scoped settings of '{location}' both apply and ignore "
            f"'{settings.apply.value}'; both were ignored",
            location=location,
            offset=offset,
            error_code=ErrorCode.PAR_SCOPED_SETTINGS_CONFLICT.value,
        )
        settings = settings.model_copy(update={"apply": None, "ignore": None})

    return None if settings.is_empty() else settings
