"""Find the Markdown notes a run should process."""

from __future__ import annotations

from pathlib import Path

from ..error_codes import ErrorCode
from ..exceptions import InvalidElementError
from ..utils.logging import get_logger

logger = get_logger(__name__)

NOTE_SUFFIX = ".md"


def _is_hidden(path: Path, root: Path) -> bool:
    return any(part.startswith(".") for part in path.relative_to(root).parts)


def discover_notes(vault_path: Path, target: Path | None = None) -> list[tuple[Path, str]]:
    """
    Discover notes below a vault element.

    Hidden folders such as ``.obsidian`` and ``.trash`` are skipped.

    Args:
        vault_path: Root vault path
        target: A note or folder inside the vault; the whole vault when None

    Returns:
        List of (absolute_path, vault_relative_path) tuples, sorted by path

    Raises:
        InvalidElementError: If the target is neither a Markdown note nor a folder
    """
    vault_path = vault_path.resolve()
    element = (vault_path / target).resolve() if target is not None else vault_path

    if element.is_file() and element.suffix.lower() == NOTE_SUFFIX:
        return [(element, element.relative_to(vault_path).as_posix())]

    if not element.is_dir():
        raise InvalidElementError(
            f"'{element}' is neither a Markdown note nor a folder",
            suggestion="Pass a .md file or a folder inside the vault",
            error_code=ErrorCode.STR_ELEMENT_INVALID.value,
            context={"path": str(element), "vault": str(vault_path)},
        )

    notes = [
        (path, path.relative_to(vault_path).as_posix())
        for path in sorted(element.rglob(f"*{NOTE_SUFFIX}"))
        if path.is_file() and not _is_hidden(path, vault_path)
    ]
    logger.info("discover_notes_in_dir", count=len(notes), path=str(element))
    return notes
