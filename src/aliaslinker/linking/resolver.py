"""Alias index and link rewriter.

The index answers "which document declares this alias?" by scanning the
frontmatter of every document on each call. The rewriter turns bare links
``[[Alias]]`` into qualified links ``[[Canonical|Alias]]`` and persists a
document only when its text actually changed.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Callable, Iterable
from typing import Any

from aliaslinker.core.errors import DocumentStoreError
from aliaslinker.core.interfaces import DocumentStorePort
from aliaslinker.core.models import (
    AliasConflict,
    AliasPair,
    AliasPolicy,
    Document,
    PassKind,
    PassReport,
    RewriteOutcome,
    RewriteStatus,
)

logger = logging.getLogger(__name__)

# Bare link: shortest text between [[ and ]] on a single line
_BARE_LINK_PATTERN = re.compile(r"\[\[(.*?)\]\]")


class AliasIndex:
    """On-demand alias lookup over a document store."""

    def __init__(
        self,
        store: DocumentStorePort,
        policy: AliasPolicy = AliasPolicy.FIRST_MATCH,
    ) -> None:
        self._store = store
        self._policy = policy

    @property
    def policy(self) -> AliasPolicy:
        return self._policy

    def find_document_by_alias(self, alias: str) -> Document | None:
        """Find the document declaring ``alias``.

        Matching is exact: no case folding, trimming or partial matches.
        Under the first-match policy the first declaring document in store
        listing order wins. Under the strict policy an alias declared by
        more than one document resolves to nothing.
        """
        found: Document | None = None
        for document in self._store.list_documents():
            if alias not in self._aliases_of(document):
                continue
            if self._policy == AliasPolicy.FIRST_MATCH:
                return document
            if found is not None:
                logger.debug("Alias %r is ambiguous; not resolving under strict policy", alias)
                return None
            found = document
        return found

    def all_alias_pairs(self) -> list[AliasPair]:
        """List every (alias, canonical name) pair.

        Ordered by store listing order, then declaration order within a
        document. Under the strict policy ambiguous aliases are left out.
        """
        pairs = [
            AliasPair(alias=alias, canonical_name=document.name)
            for document in self._store.list_documents()
            for alias in self._aliases_of(document)
        ]
        if self._policy == AliasPolicy.STRICT:
            ambiguous = {c.alias for c in _conflicts_from_pairs(pairs)}
            pairs = [p for p in pairs if p.alias not in ambiguous]
        return pairs

    def find_conflicts(self) -> list[AliasConflict]:
        """List aliases declared by more than one document."""
        pairs = [
            AliasPair(alias=alias, canonical_name=document.name)
            for document in self._store.list_documents()
            for alias in self._aliases_of(document)
        ]
        return _conflicts_from_pairs(pairs)

    def _aliases_of(self, document: Document) -> list[str]:
        return declared_aliases(self._store.get_metadata(document))


class LinkRewriter:
    """Rewrites bare alias links in documents of a store.

    Documents are read, rewritten and (when changed) written one at a time.
    A store failure is reported for that document and never aborts the
    remaining documents of a pass.
    """

    def __init__(
        self,
        store: DocumentStorePort,
        index: AliasIndex,
        dry_run: bool = False,
    ) -> None:
        self._store = store
        self._index = index
        self._dry_run = dry_run

    @property
    def dry_run(self) -> bool:
        return self._dry_run

    async def rewrite_alias_occurrences(
        self, document: Document, alias: str, canonical_name: str
    ) -> RewriteOutcome:
        """Rewrite every ``[[alias]]`` in one document to ``[[canonical_name|alias]]``."""
        return await self._rewrite(
            document, lambda text: rewrite_alias_links(text, alias, canonical_name)
        )

    async def rewrite_alias_everywhere(self, alias: str, canonical_name: str) -> PassReport:
        """Rewrite one alias across every document in the store."""
        report = PassReport(kind=PassKind.BATCH, dry_run=self._dry_run)
        for document in self._store.list_documents():
            outcome = await self.rewrite_alias_occurrences(document, alias, canonical_name)
            report.outcomes.append(outcome)
        return report

    async def resolve_links_in_document(self, document: Document) -> RewriteOutcome:
        """Resolve each bare link in one document against the alias index."""
        return await self._rewrite(
            document, lambda text: resolve_links(text, self._index.find_document_by_alias)
        )

    async def rewrite_all(self, pairs: Iterable[AliasPair] | None = None) -> PassReport:
        """Batch pass: apply every known alias pair to every document.

        Each document is read once and written at most once, whatever the
        number of pairs.
        """
        if pairs is None:
            for conflict in self._index.find_conflicts():
                logger.warning(
                    "Alias %r is declared by %d documents: %s",
                    conflict.alias,
                    len(conflict.documents),
                    ", ".join(conflict.documents),
                )
            pairs = self._index.all_alias_pairs()
        pair_list = list(pairs)

        report = PassReport(kind=PassKind.BATCH, dry_run=self._dry_run)
        if not pair_list:
            logger.debug("No aliases declared; nothing to rewrite")
            return report

        def apply_pairs(text: str) -> tuple[str, int]:
            total = 0
            for pair in pair_list:
                text, count = rewrite_alias_links(text, pair.alias, pair.canonical_name)
                total += count
            return text, total

        for document in self._store.list_documents():
            report.outcomes.append(await self._rewrite(document, apply_pairs))
        return report

    async def _rewrite(
        self,
        document: Document,
        transform: Callable[[str], tuple[str, int]],
    ) -> RewriteOutcome:
        """Read, transform and conditionally persist a single document."""
        try:
            original = await self._store.read_body(document)
        except DocumentStoreError as e:
            logger.warning("Failed to read %s: %s", document.name, e)
            return RewriteOutcome(
                document=document.name, status=RewriteStatus.FAILED, error=str(e)
            )

        try:
            updated, count = transform(original)
        except DocumentStoreError as e:
            # Alias lookups list the store while resolving links
            logger.warning("Failed to resolve links in %s: %s", document.name, e)
            return RewriteOutcome(
                document=document.name, status=RewriteStatus.FAILED, error=str(e)
            )

        if updated == original:
            logger.debug("No bare alias links in %s", document.name)
            return RewriteOutcome(document=document.name, status=RewriteStatus.UNCHANGED)

        if self._dry_run:
            logger.info("Would rewrite %d link(s) in %s", count, document.name)
        else:
            try:
                await self._store.write_body(document, updated)
            except DocumentStoreError as e:
                logger.warning("Failed to write %s: %s", document.name, e)
                return RewriteOutcome(
                    document=document.name,
                    status=RewriteStatus.FAILED,
                    replacements=count,
                    error=str(e),
                )
            logger.info("Rewrote %d link(s) in %s", count, document.name)

        return RewriteOutcome(
            document=document.name, status=RewriteStatus.REWRITTEN, replacements=count
        )


def declared_aliases(metadata: dict[str, Any] | None) -> list[str]:
    """Extract the usable aliases from a document's metadata.

    Missing metadata, a missing ``aliases`` key or a non-list value yield no
    aliases. Non-string, empty and pipe-containing entries can never match
    a bare link and are skipped.
    """
    if not metadata:
        return []
    frontmatter = metadata.get("frontmatter")
    if not isinstance(frontmatter, dict):
        return []
    aliases = frontmatter.get("aliases")
    if not isinstance(aliases, list):
        return []
    return [a for a in aliases if isinstance(a, str) and a and "|" not in a]


def rewrite_alias_links(text: str, alias: str, canonical_name: str) -> tuple[str, int]:
    """Replace every literal ``[[alias]]`` with ``[[canonical_name|alias]]``.

    The alias is escaped, so characters such as brackets or parentheses in
    it are matched literally.

    Returns:
        The rewritten text and the number of replacements.
    """
    pattern = re.compile(r"\[\[" + re.escape(alias) + r"\]\]")
    replacement = f"[[{canonical_name}|{alias}]]"
    return pattern.subn(lambda _: replacement, text)


def resolve_links(
    text: str, lookup: Callable[[str], Document | None]
) -> tuple[str, int]:
    """Resolve the bare links of ``text`` through ``lookup``.

    The original text is scanned left to right. Each distinct link text is
    looked up once; when it resolves, all of its occurrences in the
    accumulated result are rewritten. Qualified links are skipped.

    Returns:
        The rewritten text and the number of replacements.
    """
    result = text
    total = 0
    seen: set[str] = set()
    for match in _BARE_LINK_PATTERN.finditer(text):
        target = match.group(1)
        if not target or "|" in target or target in seen:
            continue
        seen.add(target)

        document = lookup(target)
        if document is None:
            logger.debug("Link [[%s]] does not match any alias", target)
            continue

        result, count = rewrite_alias_links(result, target, document.name)
        total += count
    return result, total


def _conflicts_from_pairs(pairs: list[AliasPair]) -> list[AliasConflict]:
    owners: dict[str, list[str]] = {}
    for pair in pairs:
        documents = owners.setdefault(pair.alias, [])
        if pair.canonical_name not in documents:
            documents.append(pair.canonical_name)
    return [
        AliasConflict(alias=alias, documents=documents)
        for alias, documents in owners.items()
        if len(documents) > 1
    ]
