"""Filesystem vault: a directory tree of Markdown notes with YAML frontmatter."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Any

import yaml

from aliaslinker.core.errors import DocumentStoreError
from aliaslinker.core.interfaces import DocumentStorePort
from aliaslinker.core.models import Document

logger = logging.getLogger(__name__)

_FRONTMATTER_DELIMITER = "---"


class FilesystemVault(DocumentStorePort):
    """Document store backed by note files under a vault directory.

    The canonical name of a note is its file stem. Listing is sorted by
    path relative to the vault root. The body is the full file text,
    frontmatter included.
    """

    def __init__(self, root: str | Path, extensions: list[str] | None = None) -> None:
        self.root = Path(root).expanduser()
        self.extensions = [e.lower() for e in (extensions or [".md"])]

    def list_documents(self) -> list[Document]:
        if not self.root.is_dir():
            raise DocumentStoreError(f"Vault directory not found: {self.root}")

        documents = []
        for path in sorted(self._iter_note_paths()):
            rel = path.relative_to(self.root)
            documents.append(Document(name=path.stem, path=rel.as_posix()))
        return documents

    def get_document(self, name: str) -> Document | None:
        for document in self.list_documents():
            if document.name == name or document.path == name:
                return document
        return None

    def get_metadata(self, document: Document) -> dict[str, Any] | None:
        try:
            text = self._path_of(document).read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            logger.warning("Cannot read metadata of %s: %s", document.path, e)
            return None

        frontmatter = parse_frontmatter(text)
        if frontmatter is None:
            return None
        return {"frontmatter": frontmatter}

    async def read_body(self, document: Document) -> str:
        path = self._path_of(document)
        try:
            return await asyncio.to_thread(_read_text, path)
        except (OSError, UnicodeDecodeError) as e:
            raise DocumentStoreError(
                f"Cannot read {document.path}: {e}", document=document.name
            ) from e

    async def write_body(self, document: Document, text: str) -> None:
        path = self._path_of(document)
        try:
            await asyncio.to_thread(_atomic_write, path, text)
        except OSError as e:
            raise DocumentStoreError(
                f"Cannot write {document.path}: {e}", document=document.name
            ) from e

    def _iter_note_paths(self) -> list[Path]:
        paths = []
        for path in self.root.rglob("*"):
            rel_parts = path.relative_to(self.root).parts
            # Skip hidden folders such as .obsidian and .trash
            if any(part.startswith(".") for part in rel_parts):
                continue
            if path.is_file() and path.suffix.lower() in self.extensions:
                paths.append(path)
        return paths

    def _path_of(self, document: Document) -> Path:
        return self.root / document.path


def parse_frontmatter(text: str) -> dict[str, Any] | None:
    """Parse a leading ``---`` YAML block.

    Returns:
        The frontmatter mapping, or None if the text has no frontmatter or
        the block is not a valid YAML mapping.
    """
    lines = text.splitlines()
    if not lines or lines[0].strip() != _FRONTMATTER_DELIMITER:
        return None

    end = next(
        (i for i, line in enumerate(lines[1:], 1) if line.strip() == _FRONTMATTER_DELIMITER),
        None,
    )
    if end is None:
        return None

    try:
        data = yaml.safe_load("\n".join(lines[1:end]))
    except yaml.YAMLError as e:
        logger.debug("Ignoring malformed frontmatter: %s", e)
        return None

    if not isinstance(data, dict):
        return None
    return data


def _read_text(path: Path) -> str:
    with open(path, encoding="utf-8", newline="") as f:
        return f.read()


def _atomic_write(path: Path, text: str) -> None:
    """Write ``text`` to ``path`` via a sibling temp file and rename."""
    tmp = path.with_name(f".{path.name}.aliaslinker.tmp")
    try:
        # newline="" keeps the line endings already present in the text
        with open(tmp, "w", encoding="utf-8", newline="") as f:
            f.write(text)
        tmp.replace(path)
    finally:
        if tmp.exists():
            tmp.unlink()
