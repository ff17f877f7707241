"""Tests for the in-memory document store."""

from __future__ import annotations

import pytest

from aliaslinker.adapters.memory_store import InMemoryDocumentStore
from aliaslinker.core.errors import DocumentStoreError
from aliaslinker.core.models import Document


class TestInMemoryDocumentStore:
    """Tests for InMemoryDocumentStore."""

    def test_keeps_insertion_order(self, store: InMemoryDocumentStore) -> None:
        store.add("b")
        store.add("a")
        assert [d.name for d in store.list_documents()] == ["b", "a"]

    def test_metadata(self, store: InMemoryDocumentStore) -> None:
        with_aliases = store.add("A", aliases=["Apple"], frontmatter={"tags": ["fruit"]})
        without = store.add("B")

        assert store.get_metadata(with_aliases) == {
            "frontmatter": {"tags": ["fruit"], "aliases": ["Apple"]}
        }
        assert store.get_metadata(without) is None

    @pytest.mark.asyncio
    async def test_read_and_write(self, store: InMemoryDocumentStore) -> None:
        doc = store.add("A", body="old")
        await store.write_body(doc, "new")

        assert await store.read_body(doc) == "new"
        assert store.writes == [("A", "new")]
        assert store.write_count("A") == 1

    @pytest.mark.asyncio
    async def test_injected_failures(self, store: InMemoryDocumentStore) -> None:
        doc = store.add("A", body="old")
        store.fail_reads.add("A")
        store.fail_writes.add("A")

        with pytest.raises(DocumentStoreError):
            await store.read_body(doc)
        with pytest.raises(DocumentStoreError):
            await store.write_body(doc, "new")
        assert store.body("A") == "old"

    @pytest.mark.asyncio
    async def test_unknown_document(self, store: InMemoryDocumentStore) -> None:
        ghost = Document(name="ghost", path="ghost.md")
        assert store.get_document("ghost") is None
        with pytest.raises(DocumentStoreError, match="No such document"):
            await store.read_body(ghost)
        with pytest.raises(DocumentStoreError, match="No such document"):
            await store.write_body(ghost, "x")
