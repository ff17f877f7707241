"""Dependency injection container for aliaslinker."""

from __future__ import annotations

from dataclasses import dataclass

from aliaslinker.config import AliasLinkerConfig
from aliaslinker.core.interfaces import DocumentStorePort, VaultEventSourcePort
from aliaslinker.linking.resolver import AliasIndex, LinkRewriter


@dataclass
class Container:
    """DI container holding all ports, adapters and services."""

    config: AliasLinkerConfig
    store: DocumentStorePort
    event_source: VaultEventSourcePort
    index: AliasIndex
    rewriter: LinkRewriter

    @staticmethod
    def create_default(config: AliasLinkerConfig) -> Container:
        """Create a container with production adapters."""
        from aliaslinker.adapters.vault_store import FilesystemVault
        from aliaslinker.adapters.vault_watcher import VaultWatcher

        vault = FilesystemVault(config.vault_root, extensions=config.extensions)
        event_source = VaultWatcher(
            vault,
            polling=config.watch.polling,
            poll_interval=config.watch.poll_interval,
        )

        index = AliasIndex(vault, policy=config.alias_policy)
        rewriter = LinkRewriter(vault, index, dry_run=config.dry_run)

        return Container(
            config=config,
            store=vault,
            event_source=event_source,
            index=index,
            rewriter=rewriter,
        )

    @staticmethod
    def create_for_testing(
        config: AliasLinkerConfig | None = None,
        store: DocumentStorePort | None = None,
        event_source: VaultEventSourcePort | None = None,
    ) -> Container:
        """Create a container around an in-memory store.

        All parameters are optional. The index and rewriter are always real
        and wired to whichever store is used.
        """
        from aliaslinker.adapters.memory_store import InMemoryDocumentStore

        if config is None:
            config = AliasLinkerConfig(vault_path="/tmp/test-vault")

        # Stub that raises if the daemon is started without a mock source
        class StubEventSource(VaultEventSourcePort):
            async def subscribe(self, callback: object) -> None:  # type: ignore[override]
                raise NotImplementedError("Provide a mock event_source")

            async def close(self) -> None:
                pass

        store = store or InMemoryDocumentStore()
        index = AliasIndex(store, policy=config.alias_policy)

        return Container(
            config=config,
            store=store,
            event_source=event_source or StubEventSource(),
            index=index,
            rewriter=LinkRewriter(store, index, dry_run=config.dry_run),
        )
