"""``createModel`` payloads for the note models cards are stored with."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from ..domain.entities.card import (
    CODE_MODEL_SUFFIX,
    FIELD_KEYS,
    MODEL_PREFIX,
    SOURCE_FIELD,
    SOURCE_MODEL_SUFFIX,
    ModelKind,
)
from ..rendering.markdown_converter import get_pygments_css

SOURCE_FIELD_TEMPLATE = "<br><br>\r\n<small>Source: {{Source}}</small>"

BASE_CSS = """\
.card {
  font-family: arial;
  font-size: 20px;
  text-align: center;
  color: black;
  background-color: white;
}
.tags {
  font-size: 12px;
  color: gray;
}
li.arrow-item {
  list-style-type: "\\2192  ";
}
"""

_TAGS_LINE = '<p class="tags">{{Tags}}</p>'
_ANSWER_RULE = '<hr id="answer">'


@dataclass
class ModelAssets:
    """Styling and scripts shared by every model.

    Attributes:
        css: Stylesheet of the models
        code_scripts: Script bodies appended to front templates of ``-code`` models
    """

    css: str = ""
    code_scripts: list[str] = field(default_factory=list)

    @classmethod
    def default(cls, pygments_style: str = "default") -> ModelAssets:
        """Base stylesheet plus Pygments highlighting rules."""
        return cls(css=BASE_CSS + get_pygments_css(pygments_style))


@dataclass
class _Template:
    name: str
    front: str
    back: str


def _templates(kind: ModelKind) -> list[_Template]:
    basic = _Template(
        "Front / Back",
        f"{{{{Front}}}}\n{_TAGS_LINE}",
        f"{{{{FrontSide}}}}\n\n{_ANSWER_RULE}\n\n{{{{Back}}}}",
    )
    if kind is ModelKind.BASIC:
        return [basic]
    if kind is ModelKind.BASIC_REVERSED:
        reversed_ = _Template(
            "Back / Front",
            f"{{{{Back}}}}\n{_TAGS_LINE}",
            f"{{{{FrontSide}}}}\n\n{_ANSWER_RULE}\n\n{{{{Front}}}}",
        )
        return [basic, reversed_]
    if kind is ModelKind.CLOZE:
        return [_Template("Cloze", "{{cloze:Text}}", "{{cloze:Text}}\n\n<br>\n\n{{Extra}}")]
    return [
        _Template(
            "Memo",
            f"{{{{Prompt}}}}\n{_TAGS_LINE}",
            f"{{{{FrontSide}}}}\n\n{_ANSWER_RULE}\n\nMemorization review done.",
        )
    ]


def model_name(kind: ModelKind, include_source: bool, include_code: bool) -> str:
    name = MODEL_PREFIX + kind.value
    if include_source:
        name += SOURCE_MODEL_SUFFIX
    if include_code:
        name += CODE_MODEL_SUFFIX
    return name


def build_model(
    kind: ModelKind, assets: ModelAssets, include_source: bool, include_code: bool
) -> dict[str, Any]:
    """``createModel`` action for one model variant."""
    scripts = ""
    if include_code:
        scripts = "".join(f"\n<script>\n{script}\n</script>" for script in assets.code_scripts)
    source = SOURCE_FIELD_TEMPLATE if include_source else ""

    fields = list(FIELD_KEYS[kind])
    if include_source:
        fields.append(SOURCE_FIELD)

    return {
        "action": "createModel",
        "params": {
            "modelName": model_name(kind, include_source, include_code),
            "inOrderFields": fields,
            "isCloze": kind is ModelKind.CLOZE,
            "css": assets.css,
            "cardTemplates": [
                {"Name": t.name, "Front": t.front + scripts, "Back": t.back + source}
                for t in _templates(kind)
            ],
        },
    }


def build_model_definitions(
    assets: ModelAssets, include_source: bool = False, include_code: bool = False
) -> list[dict[str, Any]]:
    """``createModel`` actions for every model kind.

    With ``include_code`` the plain variants are followed by the ``-code``
    variants, since cards without code keep using the plain models.

    Args:
        assets: Stylesheet and code highlighting scripts
        include_source: Add the ``Source`` field and the ``-source`` suffix
        include_code: Also define the ``-code`` variants

    Returns:
        Actions meant to be sent as one ``multi`` request
    """
    variants = [False, True] if include_code else [False]
    return [
        build_model(kind, assets, include_source, code)
        for code in variants
        for kind in ModelKind
    ]
