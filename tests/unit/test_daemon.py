"""Tests for daemon event handling logic."""

from __future__ import annotations

import asyncio
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import pytest

from aliaslinker.adapters.memory_store import InMemoryDocumentStore
from aliaslinker.config import AliasLinkerConfig
from aliaslinker.container import Container
from aliaslinker.core.errors import DocumentStoreError
from aliaslinker.core.models import (
    DaemonStatus,
    Document,
    RewriteStatus,
    VaultEvent,
    VaultEventType,
)
from aliaslinker.daemon import Daemon, run_batch_pass, run_local_pass


def make_container(event_source: AsyncMock | None = None) -> Container:
    """Create a test container with an in-memory store and mocked event source."""
    store = InMemoryDocumentStore()
    store.add("A", aliases=["Apple"])
    store.add("B", body="see [[Apple]] today")
    store.add("D", body="[[Apple]] and [[Apple]]")
    return Container.create_for_testing(store=store, event_source=event_source or AsyncMock())


def opened(name: str) -> VaultEvent:
    return VaultEvent(
        type=VaultEventType.DOCUMENT_OPENED,
        document=Document(name=name, path=f"{name}.md"),
    )


class TestDaemonHandleEvent:
    """Tests for Daemon._handle_event()."""

    @pytest.mark.asyncio
    async def test_metadata_resolved_runs_batch_pass(self) -> None:
        container = make_container()
        daemon = Daemon(container)

        await daemon._handle_event(VaultEvent(type=VaultEventType.METADATA_RESOLVED))

        assert container.store.body("B") == "see [[A|Apple]] today"
        assert container.store.body("D") == "[[A|Apple]] and [[A|Apple]]"

    @pytest.mark.asyncio
    async def test_document_opened_runs_local_pass(self) -> None:
        container = make_container()
        daemon = Daemon(container)

        await daemon._handle_event(opened("D"))

        assert container.store.body("D") == "[[A|Apple]] and [[A|Apple]]"
        assert container.store.write_count("D") == 1
        assert container.store.body("B") == "see [[Apple]] today"

    @pytest.mark.asyncio
    async def test_document_opened_for_unknown_document(self) -> None:
        container = make_container()
        daemon = Daemon(container)

        outcome = await daemon._local_pass(opened("Gone").document)  # type: ignore[arg-type]

        assert outcome.status == RewriteStatus.FAILED
        assert "No such document" in (outcome.error or "")
        assert container.store.writes == []

    @pytest.mark.asyncio
    async def test_document_opened_uses_event_path(self, vault_dir: Path) -> None:
        (vault_dir / "A.md").write_text("---\naliases:\n  - Apple\n---\n")
        (vault_dir / "notes").mkdir()
        (vault_dir / "other").mkdir()
        (vault_dir / "notes" / "X.md").write_text("[[Apple]]\n")
        (vault_dir / "other" / "X.md").write_text("[[Apple]]\n")
        config = AliasLinkerConfig(vault_path=str(vault_dir))
        container = Container.create_default(config)
        daemon = Daemon(container)

        await daemon._handle_event(
            VaultEvent(
                type=VaultEventType.DOCUMENT_OPENED,
                document=Document(name="X", path="other/X.md"),
            )
        )

        assert (vault_dir / "other" / "X.md").read_text() == "[[A|Apple]]\n"
        assert (vault_dir / "notes" / "X.md").read_text() == "[[Apple]]\n"

    @pytest.mark.asyncio
    async def test_local_pass_survives_store_listing_failure(self) -> None:
        container = make_container()
        container.store.list_documents = MagicMock(  # type: ignore[method-assign]
            side_effect=DocumentStoreError("Vault directory not found")
        )
        daemon = Daemon(container)

        await daemon._handle_event(opened("D"))
        outcome = await daemon._local_pass(opened("D").document)  # type: ignore[arg-type]

        assert outcome.status == RewriteStatus.FAILED
        assert "Vault directory not found" in (outcome.error or "")
        assert container.store.writes == []

    @pytest.mark.asyncio
    async def test_batch_pass_survives_store_listing_failure(self) -> None:
        container = make_container()
        container.rewriter.rewrite_all = AsyncMock(  # type: ignore[method-assign]
            side_effect=DocumentStoreError("Vault directory not found")
        )
        daemon = Daemon(container)

        report = await daemon._batch_pass()

        assert report.outcomes == []


class TestDaemonRun:
    """Tests for the daemon main loop."""

    @pytest.mark.asyncio
    async def test_run_processes_events_until_shutdown(self) -> None:
        event_source = AsyncMock()
        container = make_container(event_source)
        daemon = Daemon(container)

        async def subscribe(callback: object) -> None:
            callback(opened("D"))  # type: ignore[operator]

        event_source.subscribe.side_effect = subscribe

        task = asyncio.create_task(daemon.run())
        for _ in range(100):
            if daemon.status == DaemonStatus.LIVE:
                break
            await asyncio.sleep(0.01)
        await asyncio.sleep(0.05)

        assert daemon.status == DaemonStatus.LIVE
        daemon._request_shutdown()
        await asyncio.wait_for(task, timeout=5)

        assert daemon.status == DaemonStatus.STOPPED
        event_source.close.assert_awaited_once()
        # Initial batch pass already rewrote D; the local pass found nothing left
        assert container.store.write_count("D") == 1
        assert container.store.body("B") == "see [[A|Apple]] today"

    @pytest.mark.asyncio
    async def test_run_marks_error_on_subscribe_failure(self) -> None:
        event_source = AsyncMock()
        event_source.subscribe.side_effect = RuntimeError("boom")
        container = make_container(event_source)
        daemon = Daemon(container)

        with pytest.raises(RuntimeError, match="boom"):
            await daemon.run()

        assert daemon.status == DaemonStatus.STOPPED
        event_source.close.assert_awaited_once()


class TestOneShotPasses:
    """Tests for run_batch_pass() and run_local_pass()."""

    @pytest.mark.asyncio
    async def test_run_batch_pass(self) -> None:
        container = make_container()

        report = await run_batch_pass(container)

        assert [o.document for o in report.rewritten] == ["B", "D"]
        assert report.replacements == 3

    @pytest.mark.asyncio
    async def test_run_local_pass(self) -> None:
        container = make_container()

        outcome = await run_local_pass(container, "B")

        assert outcome is not None
        assert outcome.status == RewriteStatus.REWRITTEN
        assert container.store.body("B") == "see [[A|Apple]] today"

    @pytest.mark.asyncio
    async def test_run_local_pass_unknown_document(self) -> None:
        container = make_container()
        assert await run_local_pass(container, "Nope") is None
