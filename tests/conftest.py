"""Shared test fixtures for aliaslinker."""

from __future__ import annotations

from pathlib import Path

import pytest

from aliaslinker.adapters.memory_store import InMemoryDocumentStore
from aliaslinker.adapters.vault_store import FilesystemVault
from aliaslinker.config import AliasLinkerConfig
from aliaslinker.linking.resolver import AliasIndex, LinkRewriter


@pytest.fixture()
def store() -> InMemoryDocumentStore:
    """Create an empty in-memory document store."""
    return InMemoryDocumentStore()


@pytest.fixture()
def index(store: InMemoryDocumentStore) -> AliasIndex:
    """Create an alias index over the in-memory store."""
    return AliasIndex(store)


@pytest.fixture()
def rewriter(store: InMemoryDocumentStore, index: AliasIndex) -> LinkRewriter:
    """Create a link rewriter over the in-memory store."""
    return LinkRewriter(store, index)


@pytest.fixture()
def vault_dir(tmp_path: Path) -> Path:
    """Create an empty vault directory."""
    d = tmp_path / "vault"
    d.mkdir()
    return d


@pytest.fixture()
def vault(vault_dir: Path) -> FilesystemVault:
    """Create a filesystem vault over the temp vault directory."""
    return FilesystemVault(vault_dir)


@pytest.fixture()
def test_config(vault_dir: Path) -> AliasLinkerConfig:
    """Create a test config pointing to the temp vault."""
    return AliasLinkerConfig(vault_path=str(vault_dir))

