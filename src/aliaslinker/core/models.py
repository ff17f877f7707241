"""Domain models for aliaslinker."""

from __future__ import annotations

from datetime import UTC, datetime
from enum import Enum

from pydantic import BaseModel, Field


class Document(BaseModel):
    """A note in the document store.

    Bodies and metadata stay in the store; a Document only identifies one.
    """

    name: str = Field(description="Canonical name (base filename without extension)")
    path: str = Field(description="Store-relative location of the document")


class AliasPair(BaseModel):
    """An alias together with the canonical name of the document declaring it."""

    alias: str = Field(description="Alias text as declared in frontmatter")
    canonical_name: str = Field(description="Canonical name of the declaring document")


class AliasConflict(BaseModel):
    """An alias declared by more than one document."""

    alias: str = Field(description="The ambiguous alias")
    documents: list[str] = Field(description="Declaring documents in store listing order")


class AliasPolicy(str, Enum):
    """How an alias declared by several documents is resolved."""

    FIRST_MATCH = "first_match"
    STRICT = "strict"


class RewriteStatus(str, Enum):
    """Outcome of rewriting a single document."""

    REWRITTEN = "rewritten"
    UNCHANGED = "unchanged"
    FAILED = "failed"


class RewriteOutcome(BaseModel):
    """Result of a rewrite attempt on one document."""

    document: str = Field(description="Canonical name of the document")
    status: RewriteStatus = Field(description="Rewrite outcome")
    replacements: int = Field(default=0, description="Number of links rewritten")
    error: str | None = Field(default=None, description="Failure message, if any")


class PassKind(str, Enum):
    """Which trigger a rewrite pass answers."""

    BATCH = "batch"
    LOCAL = "local"


class PassReport(BaseModel):
    """Aggregated outcomes of one rewrite pass."""

    kind: PassKind = Field(description="Kind of pass")
    outcomes: list[RewriteOutcome] = Field(default_factory=list)
    dry_run: bool = Field(default=False, description="Whether writes were suppressed")
    started_at: datetime = Field(
        default_factory=lambda: datetime.now(UTC),
        description="When the pass started",
    )

    @property
    def rewritten(self) -> list[RewriteOutcome]:
        return [o for o in self.outcomes if o.status == RewriteStatus.REWRITTEN]

    @property
    def failed(self) -> list[RewriteOutcome]:
        return [o for o in self.outcomes if o.status == RewriteStatus.FAILED]

    @property
    def replacements(self) -> int:
        return sum(o.replacements for o in self.outcomes)


class VaultEventType(str, Enum):
    """Notifications delivered by a vault event source."""

    METADATA_RESOLVED = "metadata_resolved"
    DOCUMENT_OPENED = "document_opened"


class VaultEvent(BaseModel):
    """A notification from the host that a pass should run."""

    type: VaultEventType = Field(description="Kind of notification")
    document: Document | None = Field(
        default=None, description="Document that became active (document_opened only)"
    )


class DaemonStatus(str, Enum):
    """Current state of the aliaslinker daemon."""

    STARTING = "starting"
    LIVE = "live"
    SHUTTING_DOWN = "shutting_down"
    STOPPED = "stopped"
    ERROR = "error"
