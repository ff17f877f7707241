"""Vault event source built on watchdog: note changes become rewrite triggers."""

from __future__ import annotations

import asyncio
import logging
import os
from collections.abc import Callable
from pathlib import Path

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer
from watchdog.observers.api import BaseObserver
from watchdog.observers.polling import PollingObserver

from aliaslinker.adapters.vault_store import FilesystemVault
from aliaslinker.core.errors import WatcherError
from aliaslinker.core.interfaces import VaultEventSourcePort
from aliaslinker.core.models import Document, VaultEvent, VaultEventType

logger = logging.getLogger(__name__)


class VaultEventHandler(FileSystemEventHandler):
    """Translate watchdog file events into vault events.

    A created, modified or moved-in note emits ``document_opened`` for that
    note followed by ``metadata_resolved``. A deleted note only emits
    ``metadata_resolved``. Directories, hidden paths (including the
    rewriter's temp files) and files with other extensions are ignored.
    Runs on the observer thread; ``emit`` must be thread-safe.
    """

    def __init__(self, vault: FilesystemVault, emit: Callable[[VaultEvent], None]) -> None:
        super().__init__()
        self._vault = vault
        self._emit = emit

    def on_created(self, event: FileSystemEvent) -> None:
        if not event.is_directory:
            self._note_touched(event.src_path)

    def on_modified(self, event: FileSystemEvent) -> None:
        if not event.is_directory:
            self._note_touched(event.src_path)

    def on_moved(self, event: FileSystemEvent) -> None:
        if event.is_directory:
            return
        if self._document_for(event.dest_path) is not None:
            self._note_touched(event.dest_path)
        elif self._document_for(event.src_path) is not None:
            # Moved out of the vault or renamed to a non-note
            self._emit(VaultEvent(type=VaultEventType.METADATA_RESOLVED))

    def on_deleted(self, event: FileSystemEvent) -> None:
        if not event.is_directory and self._document_for(event.src_path) is not None:
            self._emit(VaultEvent(type=VaultEventType.METADATA_RESOLVED))

    def _note_touched(self, src_path: str | bytes) -> None:
        document = self._document_for(src_path)
        if document is None:
            return
        logger.debug("Note changed: %s", document.path)
        self._emit(VaultEvent(type=VaultEventType.DOCUMENT_OPENED, document=document))
        self._emit(VaultEvent(type=VaultEventType.METADATA_RESOLVED))

    def _document_for(self, src_path: str | bytes) -> Document | None:
        path = Path(os.fsdecode(src_path))
        rel = _relative_to(path, self._vault.root)
        if rel is None:
            # Observers may report symlink-resolved paths
            rel = _relative_to(path.resolve(), self._vault.root.resolve())
        if rel is None:
            return None
        if any(part.startswith(".") for part in rel.parts):
            return None
        if path.suffix.lower() not in self._vault.extensions:
            return None
        return Document(name=path.stem, path=rel.as_posix())


class VaultWatcher(VaultEventSourcePort):
    """Watch a FilesystemVault with a watchdog observer.

    The native observer is used by default; ``polling=True`` selects
    watchdog's PollingObserver for filesystems without change
    notifications (network shares, some container mounts).
    """

    def __init__(
        self,
        vault: FilesystemVault,
        polling: bool = False,
        poll_interval: float = 2.0,
    ) -> None:
        self._vault = vault
        self._polling = polling
        self._poll_interval = poll_interval
        self._observer: BaseObserver | None = None

    async def subscribe(self, callback: Callable[[VaultEvent], None]) -> None:
        """Start the observer; events are delivered on the running loop."""
        if self._observer is not None:
            raise WatcherError("Watcher is already subscribed")
        if not self._vault.root.is_dir():
            raise WatcherError(f"Cannot watch vault: directory not found: {self._vault.root}")

        loop = asyncio.get_running_loop()

        def emit(event: VaultEvent) -> None:
            loop.call_soon_threadsafe(callback, event)

        handler = VaultEventHandler(self._vault, emit)
        observer: BaseObserver
        if self._polling:
            observer = PollingObserver(timeout=self._poll_interval)
        else:
            observer = Observer()

        try:
            observer.schedule(handler, str(self._vault.root), recursive=True)
            observer.start()
        except Exception as e:
            raise WatcherError(f"Failed to start file observer: {e}") from e

        self._observer = observer
        logger.info("Watching %s", self._vault.root)

    async def close(self) -> None:
        """Stop the observer and wait for its thread to finish."""
        if self._observer is None:
            return
        observer = self._observer
        self._observer = None
        observer.stop()
        await asyncio.to_thread(observer.join)


def _relative_to(path: Path, root: Path) -> Path | None:
    try:
        return path.relative_to(root)
    except ValueError:
        return None
