"""Error hierarchy for aliaslinker."""

from __future__ import annotations


class AliasLinkerError(Exception):
    """Base exception for all aliaslinker errors."""

    pass


class ConfigError(AliasLinkerError):
    """Configuration loading or validation error."""

    pass


class DocumentStoreError(AliasLinkerError):
    """Reading or writing a document in the store failed."""

    def __init__(self, message: str, document: str | None = None) -> None:
        super().__init__(message)
        self.document = document


class WatcherError(AliasLinkerError):
    """The vault event source could not be started."""

    pass
