"""Pytest configuration and fixtures for the test suite."""

from collections.abc import Callable

import pytest

from obsidian_flashcards.config import ContextMode, NoteConfig, Settings
from obsidian_flashcards.domain.entities.card import CardRecord, CardStyle, ModelKind
from obsidian_flashcards.domain.entities.remote_card import RemoteCardSnapshot
from obsidian_flashcards.utils.diagnostics import Diagnostics


@pytest.fixture(autouse=True)
def _isolate_settings_env(monkeypatch):
    """Keep developer environment variables out of Settings."""
    monkeypatch.delenv("OBSIDIAN_FLASHCARDS_CONFIG", raising=False)
    for name in ("FLASHCARDS_TAG", "DECK_NAME_GLOBAL", "DEFAULT_ANKI_TAG"):
        monkeypatch.delenv(f"OBSIDIAN_FLASHCARDS_{name}", raising=False)


@pytest.fixture
def settings() -> Settings:
    """Provide default settings."""
    return Settings()


@pytest.fixture
def diagnostics() -> Diagnostics:
    """Provide an empty diagnostics sink."""
    return Diagnostics()


@pytest.fixture
def make_note_config(settings) -> Callable[..., NoteConfig]:
    """Build a NoteConfig with overridable fields."""

    def _make(**overrides) -> NoteConfig:
        values = {
            "settings": settings,
            "deck_name": "Base",
            "context_mode": ContextMode.NONE,
            "note_path": "notes/example.md",
            "vault_name": "Vault",
        }
        values.update(overrides)
        return NoteConfig(**values)

    return _make


@pytest.fixture
def make_card() -> Callable[..., CardRecord]:
    """Build a basic CardRecord with overridable fields."""

    def _make(**overrides) -> CardRecord:
        values = {
            "deck_name": "Base",
            "fields": {"Front": "<p>Q</p>", "Back": "<p>A</p>"},
            "initial_offset": 0,
            "end_offset": 10,
            "model_kind": ModelKind.BASIC,
            "style": CardStyle.BLOCK,
            "tags": ["Obsidian"],
            "original_question": "Q",
        }
        values.update(overrides)
        return CardRecord(**values)

    return _make


def snapshot_of(card: CardRecord, **overrides) -> RemoteCardSnapshot:
    """Remote snapshot matching a card exactly."""
    data = {
        "noteId": card.id,
        "modelName": card.model_name,
        "fields": {
            key: {"value": value, "order": order}
            for order, (key, value) in enumerate(card.fields.items())
        },
        "tags": list(card.tags),
        "deckName": card.deck_name,
        "cards": [card.id + 1] if card.id is not None else [],
    }
    data.update(overrides)
    return RemoteCardSnapshot.model_validate(data)


@pytest.fixture
def make_snapshot() -> Callable[..., RemoteCardSnapshot]:
    """Build remote snapshots mirroring cards."""
    return snapshot_of
