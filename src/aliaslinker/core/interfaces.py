"""Port interfaces for aliaslinker (hexagonal architecture)."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Callable
from typing import Any

from aliaslinker.core.models import Document, VaultEvent


class DocumentStorePort(ABC):
    """Port for the document collection the linker reads and rewrites."""

    @abstractmethod
    def list_documents(self) -> list[Document]:
        """List every document in the store.

        Returns:
            Documents in the store's listing order.
        """

    @abstractmethod
    def get_document(self, name: str) -> Document | None:
        """Look up a document by canonical name.

        Args:
            name: Canonical name (base filename without extension).

        Returns:
            The document, or None if the store has no such document.
        """

    @abstractmethod
    def get_metadata(self, document: Document) -> dict[str, Any] | None:
        """Get the parsed metadata of a document.

        Args:
            document: The document to inspect.

        Returns:
            A mapping exposing the parsed frontmatter under ``"frontmatter"``,
            or None if the document has no metadata.
        """

    @abstractmethod
    async def read_body(self, document: Document) -> str:
        """Read the full text of a document.

        Raises:
            DocumentStoreError: If the document cannot be read.
        """

    @abstractmethod
    async def write_body(self, document: Document, text: str) -> None:
        """Replace the full text of a document.

        Raises:
            DocumentStoreError: If the store rejects the write.
        """


class VaultEventSourcePort(ABC):
    """Port for the host notifications that trigger rewrite passes."""

    @abstractmethod
    async def subscribe(self, callback: Callable[[VaultEvent], None]) -> None:
        """Start delivering vault events to ``callback``.

        Args:
            callback: Called once per event, in delivery order.
        """

    @abstractmethod
    async def close(self) -> None:
        """Stop delivering events and release resources."""
