"""aliaslinker daemon: runs rewrite passes in response to vault events."""

from __future__ import annotations

import asyncio
import logging
import signal

from aliaslinker.container import Container
from aliaslinker.core.errors import DocumentStoreError
from aliaslinker.core.models import (
    DaemonStatus,
    Document,
    PassKind,
    PassReport,
    RewriteOutcome,
    RewriteStatus,
    VaultEvent,
    VaultEventType,
)

logger = logging.getLogger(__name__)


class Daemon:
    """Async daemon that keeps a vault's alias links qualified.

    Runs one batch pass on start, then subscribes to the container's event
    source. Events are queued and handled strictly in order: a
    ``metadata_resolved`` event runs a batch pass, a ``document_opened``
    event runs a local pass on that document. Passes are not deduplicated;
    a pass that finds nothing to change writes nothing, so the writes made
    by one pass settle after a single extra round of events.
    """

    def __init__(self, container: Container) -> None:
        self._container = container
        self._status = DaemonStatus.STOPPED
        self._queue: asyncio.Queue[VaultEvent] | None = None
        self._shutdown_event: asyncio.Event | None = None

    @property
    def status(self) -> DaemonStatus:
        """Current daemon status."""
        return self._status

    async def run(self) -> None:
        """Main loop: initial batch pass, subscribe, process events until shutdown."""
        self._queue = asyncio.Queue()
        self._shutdown_event = asyncio.Event()
        self._status = DaemonStatus.STARTING

        loop = asyncio.get_running_loop()
        for sig in (signal.SIGINT, signal.SIGTERM):
            loop.add_signal_handler(sig, self._request_shutdown)

        try:
            logger.info("Running initial batch pass over %s", self._container.config.vault_path)
            await self._batch_pass()

            await self._container.event_source.subscribe(self._enqueue)
            self._status = DaemonStatus.LIVE
            logger.info("aliaslinker daemon is live. Waiting for vault changes...")

            while not self._shutdown_event.is_set():
                get_task = asyncio.create_task(self._queue.get())
                shutdown_task = asyncio.create_task(self._shutdown_event.wait())

                done, pending = await asyncio.wait(
                    [get_task, shutdown_task],
                    return_when=asyncio.FIRST_COMPLETED,
                )

                for task in pending:
                    task.cancel()
                    try:
                        await task
                    except asyncio.CancelledError:
                        pass

                if get_task in done:
                    await self._handle_event(get_task.result())

        except Exception:
            self._status = DaemonStatus.ERROR
            logger.exception("Daemon error")
            raise
        finally:
            self._status = DaemonStatus.SHUTTING_DOWN
            logger.info("Shutting down...")
            await self._container.event_source.close()
            for sig in (signal.SIGINT, signal.SIGTERM):
                loop.remove_signal_handler(sig)
            self._status = DaemonStatus.STOPPED

    def _enqueue(self, event: VaultEvent) -> None:
        """Event source callback: queue an event for in-order processing."""
        if self._queue is not None:
            self._queue.put_nowait(event)

    async def _handle_event(self, event: VaultEvent) -> None:
        """Dispatch a single vault event to the matching pass."""
        if event.type == VaultEventType.METADATA_RESOLVED:
            await self._batch_pass()
        elif event.type == VaultEventType.DOCUMENT_OPENED and event.document is not None:
            await self._local_pass(event.document)
        else:
            logger.debug("Ignoring event %s", event.type.value)

    async def _batch_pass(self) -> PassReport:
        try:
            report = await self._container.rewriter.rewrite_all()
        except DocumentStoreError as e:
            # Listing the store failed; nothing was processed
            logger.warning("Batch pass failed: %s", e)
            return PassReport(kind=PassKind.BATCH)
        _log_report(report)
        return report

    async def _local_pass(self, document: Document) -> RewriteOutcome:
        # Use the event's note as-is; stems are not unique across folders
        outcome = await self._container.rewriter.resolve_links_in_document(document)
        if outcome.status == RewriteStatus.FAILED:
            logger.warning("Local pass on %s failed: %s", document.path, outcome.error)
        return outcome

    def _request_shutdown(self) -> None:
        """Signal the daemon to shut down gracefully."""
        logger.info("Shutdown signal received")
        if self._shutdown_event is not None:
            self._shutdown_event.set()


async def run_batch_pass(container: Container) -> PassReport:
    """One-shot batch pass over the whole store."""
    report = await container.rewriter.rewrite_all()
    _log_report(report)
    return report


async def run_local_pass(container: Container, name: str) -> RewriteOutcome | None:
    """One-shot local pass over a single document.

    Returns:
        The outcome, or None if the store has no document named ``name``.
    """
    document = container.store.get_document(name)
    if document is None:
        return None
    return await container.rewriter.resolve_links_in_document(document)


def _log_report(report: PassReport) -> None:
    if report.failed:
        logger.warning(
            "%s pass: %d document(s) rewritten, %d failed",
            report.kind.value.capitalize(),
            len(report.rewritten),
            len(report.failed),
        )
    else:
        logger.info(
            "%s pass: %d document(s) rewritten, %d link(s)",
            report.kind.value.capitalize(),
            len(report.rewritten),
            report.replacements,
        )
