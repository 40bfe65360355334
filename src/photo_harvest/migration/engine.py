"""Rewrite transient source URLs in the catalog to permanent ones.

Some sources hand out delivery links that expire. As long as the source's
record id was kept (or can be read back out of the link), the stable page URL
can be rebuilt. Every rewritten entry keeps the old link in
``metadata["old_temp_url"]`` and the time of the rewrite in
``metadata["migrated_at"]``. Entries already on a permanent URL are never
selected, so running a migration twice changes nothing the second time.
"""

import logging
import re
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any

from photo_harvest.catalog.store import CatalogStore
from photo_harvest.config import MIGRATION_BATCH_SIZE
from photo_harvest.models import CatalogEntry

logger = logging.getLogger(__name__)

# A run of 6+ digits between separators, e.g. ".../cat-1234567_1280.jpg".
EMBEDDED_ID_PATTERN = re.compile(r"[-_](\d{6,})[-_.]")


@dataclass(frozen=True)
class MigrationRule:
    """How to recognize and rebuild URLs for one source."""

    source: str
    transient_patterns: tuple[re.Pattern, ...]
    permanent_pattern: re.Pattern
    permanent_template: str

    def needs_migration(self, url: str) -> bool:
        return any(p.search(url) for p in self.transient_patterns) or not (
            self.permanent_pattern.search(url)
        )

    def permanent_url(self, record_id: str) -> str:
        return self.permanent_template.format(id=record_id)


PIXABAY_RULE = MigrationRule(
    source="pixabay",
    transient_patterns=(re.compile(r"cdn\.pixabay\.com"), re.compile(r"pixabay\.com/get")),
    permanent_pattern=re.compile(r"pixabay\.com/photos/"),
    permanent_template="https://pixabay.com/photos/photo-{id}/",
)

RULES: dict[str, MigrationRule] = {PIXABAY_RULE.source: PIXABAY_RULE}


@dataclass(frozen=True)
class MigrationStatus:
    total_for_source: int
    needing_migration: int
    already_migrated: int

    @property
    def permanent(self) -> int:
        return self.total_for_source - self.needing_migration


@dataclass(frozen=True)
class MigrationResult:
    total: int
    migrated: int
    failed: int


class MigrationError(ValueError):
    """No permanent URL can be derived for an entry."""


def plan_update(
    rule: MigrationRule, entry: CatalogEntry, now: datetime | None = None
) -> tuple[dict[str, Any], dict[str, Any]]:
    """Build the (filter, update) pair that moves one entry to its permanent URL.

    The record id comes from metadata when present, otherwise from a digit run
    in the current URL, which is then written back into metadata.
    """
    metadata = dict(entry.metadata or {})
    record_id = metadata.get("source_record_id")
    if not record_id:
        match = EMBEDDED_ID_PATTERN.search(entry.url or "")
        if match is None:
            raise MigrationError(f"No record id for entry {entry.id}: {entry.url}")
        record_id = match.group(1)
        metadata["source_record_id"] = record_id

    metadata["old_temp_url"] = entry.url
    metadata["migrated_at"] = (now or datetime.now(UTC)).isoformat()
    return {"id": entry.id}, {"url": rule.permanent_url(str(record_id)), "metadata": metadata}


class MigrationEngine:
    """Scans and migrates catalog entries of one source, in fixed-size batches."""

    def __init__(
        self,
        store: CatalogStore,
        rules: dict[str, MigrationRule] | None = None,
        batch_size: int = MIGRATION_BATCH_SIZE,
    ) -> None:
        self.store = store
        self.rules = RULES if rules is None else rules
        self.batch_size = batch_size

    def rule_for(self, source_name: str) -> MigrationRule:
        try:
            return self.rules[source_name]
        except KeyError:
            raise ValueError(f"No migration rule for source {source_name!r}") from None

    async def scan_for_migration(self, project_id: int, source_name: str) -> MigrationStatus:
        rule = self.rule_for(source_name)
        entries = await self.store.list_for_source(project_id, source_name)
        return MigrationStatus(
            total_for_source=len(entries),
            needing_migration=sum(1 for e in entries if rule.needs_migration(e.url)),
            already_migrated=sum(1 for e in entries if e.metadata.get("migrated_at")),
        )

    async def migrate(self, project_id: int, source_name: str) -> MigrationResult:
        """Migrate every entry that needs it. Failures are counted, never raised."""
        rule = self.rule_for(source_name)
        entries = [
            e
            for e in await self.store.list_for_source(project_id, source_name)
            if rule.needs_migration(e.url)
        ]
        logger.info(
            "Found %d %s entries to migrate in project %s", len(entries), source_name, project_id
        )

        migrated = 0
        failed = 0
        num_batches = (len(entries) + self.batch_size - 1) // self.batch_size
        for start in range(0, len(entries), self.batch_size):
            batch = entries[start : start + self.batch_size]
            updates = []
            for entry in batch:
                try:
                    updates.append(plan_update(rule, entry))
                except MigrationError as exc:
                    logger.warning("%s", exc)
                    failed += 1

            if not updates:
                continue
            try:
                await self.store.bulk_update(updates)
            except Exception as exc:
                logger.error(
                    "Batch %d/%d failed: %s", start // self.batch_size + 1, num_batches, exc
                )
                failed += len(updates)
                continue
            migrated += len(updates)
            logger.info("Migrated batch %d/%d", start // self.batch_size + 1, num_batches)

        logger.info("Migration complete: migrated=%d failed=%d", migrated, failed)
        return MigrationResult(total=len(entries), migrated=migrated, failed=failed)
