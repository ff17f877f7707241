"""In-memory document store for tests and embedding."""

from __future__ import annotations

from typing import Any

from aliaslinker.core.errors import DocumentStoreError
from aliaslinker.core.interfaces import DocumentStorePort
from aliaslinker.core.models import Document


class InMemoryDocumentStore(DocumentStorePort):
    """Dict-backed store implementing DocumentStorePort.

    Documents keep their insertion order. Every successful write is
    recorded in ``writes`` so callers can assert on write counts.
    Names listed in ``fail_reads`` / ``fail_writes`` raise
    DocumentStoreError on access.
    """

    def __init__(self) -> None:
        self._documents: dict[str, Document] = {}
        self._bodies: dict[str, str] = {}
        self._frontmatter: dict[str, dict[str, Any] | None] = {}
        self.writes: list[tuple[str, str]] = []
        self.fail_reads: set[str] = set()
        self.fail_writes: set[str] = set()

    def add(
        self,
        name: str,
        body: str = "",
        aliases: Any = None,
        frontmatter: dict[str, Any] | None = None,
    ) -> Document:
        """Add or replace a document.

        ``aliases`` is stored as-is under ``frontmatter["aliases"]`` so
        malformed values can be exercised.
        """
        if aliases is not None:
            frontmatter = dict(frontmatter or {})
            frontmatter["aliases"] = aliases
        document = Document(name=name, path=f"{name}.md")
        self._documents[name] = document
        self._bodies[name] = body
        self._frontmatter[name] = frontmatter
        return document

    def body(self, name: str) -> str:
        """Current body of a document, bypassing failure injection."""
        return self._bodies[name]

    def write_count(self, name: str) -> int:
        return sum(1 for written, _ in self.writes if written == name)

    def list_documents(self) -> list[Document]:
        return list(self._documents.values())

    def get_document(self, name: str) -> Document | None:
        return self._documents.get(name)

    def get_metadata(self, document: Document) -> dict[str, Any] | None:
        frontmatter = self._frontmatter.get(document.name)
        if frontmatter is None:
            return None
        return {"frontmatter": frontmatter}

    async def read_body(self, document: Document) -> str:
        if document.name in self.fail_reads:
            raise DocumentStoreError(f"Cannot read {document.name}", document=document.name)
        try:
            return self._bodies[document.name]
        except KeyError as e:
            raise DocumentStoreError(
                f"No such document: {document.name}", document=document.name
            ) from e

    async def write_body(self, document: Document, text: str) -> None:
        if document.name in self.fail_writes:
            raise DocumentStoreError(f"Cannot write {document.name}", document=document.name)
        if document.name not in self._documents:
            raise DocumentStoreError(f"No such document: {document.name}", document=document.name)
        self._bodies[document.name] = text
        self.writes.append((document.name, text))
