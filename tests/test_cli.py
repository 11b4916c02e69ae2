"""CLI command tests."""

import json
from unittest.mock import MagicMock

import pytest
from typer.testing import CliRunner

from obsidian_flashcards.cli import app


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture(autouse=True)
def _patch_logging(monkeypatch):
    monkeypatch.setattr(
        "obsidian_flashcards.cli_commands.shared.configure_logging",
        lambda *args, **kwargs: None,
    )
    monkeypatch.setattr(
        "obsidian_flashcards.cli_commands.note_commands.configure_logging",
        lambda *args, **kwargs: None,
    )
    monkeypatch.setattr(
        "obsidian_flashcards.cli_commands.shared.get_logger", lambda name: MagicMock()
    )


@pytest.fixture
def note(tmp_path):
    path = tmp_path / "vault" / "topic" / "note.md"
    path.parent.mkdir(parents=True)
    path.write_text("Q :: A ^1700000000000\n\nNew #card\nAnswer\n", encoding="utf-8")
    return path


def _remote(tmp_path, snapshots):
    path = tmp_path / "remote.json"
    path.write_text(json.dumps(snapshots), encoding="utf-8")
    return path


MATCHING_SNAPSHOT = {
    "noteId": 1700000000000,
    "modelName": "Obsidian-basic",
    "fields": {"Front": {"value": "<p>Q</p>"}, "Back": {"value": "<p>A</p>"}},
    "tags": ["Obsidian"],
    "deckName": "Default",
    "cards": [1700000000001],
}


def test_cards_command_lists_cards(runner, note) -> None:
    result = runner.invoke(app, ["cards", str(note)])
    assert result.exit_code == 0
    assert "2 card(s)" in result.output
    assert "1700000000000" in result.output
    assert "new" in result.output


def test_cards_command_uses_vault_paths(runner, note, tmp_path) -> None:
    result = runner.invoke(
        app, ["cards", str(note), "--vault", str(tmp_path / "vault")]
    )
    assert result.exit_code == 0
    assert "topic/note.md" in result.output


def test_note_outside_vault_fails(runner, note, tmp_path) -> None:
    other = tmp_path / "other"
    other.mkdir()
    result = runner.invoke(app, ["cards", str(note), "--vault", str(other)])
    assert result.exit_code == 1
    assert "is not inside the vault" in " ".join(result.output.split())


def test_invalid_settings_fail(runner, note, tmp_path) -> None:
    config = tmp_path / "settings.yaml"
    config.write_text("flashcards_tag: two words\n", encoding="utf-8")
    result = runner.invoke(app, ["cards", str(note), "--config", str(config)])
    assert result.exit_code == 1
    assert "Invalid settings" in result.output


def test_ids_command(runner, note) -> None:
    result = runner.invoke(app, ["ids", str(note)])
    assert result.exit_code == 0
    assert result.output.split() == ["1700000000000"]


def test_diff_without_remote_creates_everything(runner, note) -> None:
    result = runner.invoke(app, ["diff", str(note)])
    assert result.exit_code == 0
    assert "create: 2  update: 0  ignore: 0" in result.output


def test_diff_with_matching_remote(runner, note, tmp_path) -> None:
    remote = _remote(tmp_path, [MATCHING_SNAPSHOT])
    result = runner.invoke(app, ["diff", str(note), "--remote", str(remote)])
    assert result.exit_code == 0
    assert "create: 1  update: 0  ignore: 1" in result.output
    assert "+ Front: <p>New</p>" in result.output


def test_diff_reports_updates(runner, note, tmp_path) -> None:
    changed = {**MATCHING_SNAPSHOT, "tags": ["Obsidian", "stale"]}
    remote = _remote(tmp_path, [changed])
    result = runner.invoke(app, ["diff", str(note), "--remote", str(remote)])
    assert result.exit_code == 0
    assert "- tag: stale" in result.output
    assert "create: 1  update: 1  ignore: 0" in result.output


def test_diff_rejects_invalid_remote(runner, note, tmp_path) -> None:
    remote = _remote(tmp_path, {"not": "a list"})
    result = runner.invoke(app, ["diff", str(note), "--remote", str(remote)])
    assert result.exit_code == 1
