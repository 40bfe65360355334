"""Two-tier deduplication and persistence of collected candidates.

The in-memory tier covers the current run; the catalog existence check
covers earlier runs and restarts. Two concurrent runs on one project can both
pass the existence check before either insert lands, so at most one extra
duplicate per URL is possible. That window is accepted; the per-project run
lock in ``jobs`` keeps it from happening in normal operation.
"""

import logging
from datetime import UTC, datetime
from typing import Any

from photo_harvest.catalog.store import CatalogStore
from photo_harvest.models import CandidateImage, CatalogEntry, estimate_text_amount

logger = logging.getLogger(__name__)


class DedupLedger:
    """Seen-URL ledger for one collection run or one ad-hoc scrape request."""

    def __init__(self, store: CatalogStore, project_id: int) -> None:
        self.store = store
        self.project_id = project_id
        self._seen: set[str] = set()

    def __len__(self) -> int:
        return len(self._seen)

    def __contains__(self, url: object) -> bool:
        return url in self._seen

    async def admit(self, url: str) -> bool:
        """True if the URL is new to this run and to the catalog.

        The URL is remembered either way, so a second call always returns False.
        If the catalog check fails the URL is forgotten again and the error raised.
        """
        if not url or url in self._seen:
            return False
        self._seen.add(url)
        try:
            exists = await self.store.exists_by_url(self.project_id, url)
        except Exception:
            # undecided; a later call checks again
            self._seen.discard(url)
            raise
        return not exists


async def persist_candidates(
    ledger: DedupLedger,
    candidates: list[CandidateImage],
    *,
    source: str,
    keyword: str | None = None,
    locale: str | None = None,
    language: str | None = None,
    category: str | None = None,
) -> int:
    """Insert the candidates that survive the ledger. Returns how many were added.

    A failed existence check or insert is logged and counted as not added.
    """
    added = 0
    for candidate in candidates:
        try:
            admitted = await ledger.admit(candidate.raw_url)
        except Exception as exc:
            logger.warning("Could not check %s: %s", candidate.raw_url, exc)
            continue
        if not admitted:
            continue
        entry = build_entry(
            ledger.project_id,
            candidate,
            source=source,
            keyword=keyword,
            locale=locale,
            language=language,
            category=category,
        )
        try:
            await ledger.store.insert(entry)
        except Exception as exc:
            logger.warning("Could not store %s: %s", candidate.raw_url, exc)
            continue
        added += 1
    return added


def build_entry(
    project_id: int,
    candidate: CandidateImage,
    *,
    source: str,
    keyword: str | None = None,
    locale: str | None = None,
    language: str | None = None,
    category: str | None = None,
) -> CatalogEntry:
    """Catalog row for a candidate, tagged with where and why it was collected."""
    metadata: dict[str, Any] = {
        "source": source,
        "keyword": keyword,
        "category": category,
        "locale": locale,
        "language": language or None,
        "width": candidate.width,
        "height": candidate.height,
        "photographer": candidate.author,
        "source_record_id": candidate.source_record_id,
        "page_url": candidate.page_url,
        "license": candidate.license,
        "alt_text": candidate.alt_text,
        "query": candidate.query if candidate.query != keyword else None,
        "collected_at": datetime.now(UTC).isoformat(),
    }
    return CatalogEntry(
        id=None,
        project_id=project_id,
        url=candidate.raw_url,
        description=candidate.alt_text or keyword,
        language=language or None,
        locale=locale,
        text_amount=estimate_text_amount(candidate.alt_text),
        image_type=category,
        source=source,
        usage_count=0,
        metadata={k: v for k, v in metadata.items() if v is not None},
    )
