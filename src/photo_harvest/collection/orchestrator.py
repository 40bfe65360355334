"""Collection orchestrator: drives the taxonomy through the source adapters.

A run walks every (locale, category) bucket in schedule order. Each bucket
cycles keyword x source combinations until it holds its share of the global
target (SATISFIED) or the attempt bound runs out (EXHAUSTED). Neither outcome
is an error, and no adapter or storage failure ends a run early.
"""

import asyncio
import logging
import time
from collections import Counter
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import Any

from photo_harvest.catalog.store import CatalogStore
from photo_harvest.collection.ledger import DedupLedger, persist_candidates
from photo_harvest.collection.sources import COLLECTION_ORDER, SourceRegistry
from photo_harvest.collection.taxonomy import (
    CATEGORIES,
    LANGUAGES,
    Category,
    Language,
    keywords_for,
    language_param,
    schedule_locales,
    supports_source,
)
from photo_harvest.config import ATTEMPT_DELAY_SECONDS, COLLECTION_TARGET, PAGE_SIZE

logger = logging.getLogger(__name__)

# A bucket gives up after this many passes over its keyword list.
EXHAUSTION_FACTOR = 3


class BucketState(str, Enum):
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    SATISFIED = "satisfied"
    EXHAUSTED = "exhausted"


@dataclass(frozen=True)
class CollectionTargets:
    total: int
    per_locale: int
    per_category: int


def compute_targets(total: int, num_locales: int, num_categories: int) -> CollectionTargets:
    """Split the global target evenly, rounding down at each level."""
    if num_locales <= 0 or num_categories <= 0:
        raise ValueError("A collection run needs at least one locale and one category")
    per_locale = total // num_locales
    return CollectionTargets(
        total=total, per_locale=per_locale, per_category=per_locale // num_categories
    )


@dataclass
class LocaleProgress:
    total: int = 0
    categories: dict[str, int] = field(default_factory=dict)


class CollectionProgress:
    """In-memory counters for one run: locale -> total and per-category counts."""

    def __init__(self, locale_codes: list[str], category_keys: list[str]) -> None:
        self.locales: dict[str, LocaleProgress] = {
            code: LocaleProgress(categories={key: 0 for key in category_keys})
            for code in locale_codes
        }

    def record(self, locale: str, category: str, added: int) -> None:
        progress = self.locales.setdefault(locale, LocaleProgress())
        progress.total += added
        progress.categories[category] = progress.categories.get(category, 0) + added

    @property
    def total(self) -> int:
        return sum(p.total for p in self.locales.values())

    def locale_totals(self) -> dict[str, int]:
        return {code: p.total for code, p in self.locales.items()}

    def category_totals(self) -> dict[str, int]:
        totals: Counter[str] = Counter()
        for p in self.locales.values():
            totals.update(p.categories)
        return dict(totals)


@dataclass
class RunContext:
    """Everything one run owns. Nothing about a run lives outside this object."""

    project_id: int
    targets: CollectionTargets
    progress: CollectionProgress
    ledger: DedupLedger
    buckets: dict[tuple[str, str], BucketState]
    source_totals: Counter = field(default_factory=Counter)
    cancel_event: asyncio.Event = field(default_factory=asyncio.Event)
    started_at: float = field(default_factory=time.monotonic)

    @property
    def total_collected(self) -> int:
        return self.progress.total

    @property
    def cancelled(self) -> bool:
        return self.cancel_event.is_set()

    @property
    def target_reached(self) -> bool:
        return self.total_collected >= self.targets.total

    def cancel(self) -> None:
        self.cancel_event.set()


@dataclass
class BucketResult:
    locale: str
    category: str
    target: int
    collected: int
    attempts: int
    state: BucketState


@dataclass
class CollectionReport:
    """Snapshot of a finished run. Later progress queries aggregate the catalog instead."""

    project_id: int
    target: int
    total_images: int
    language_distribution: dict[str, int]
    category_distribution: dict[str, int]
    source_distribution: dict[str, int]
    bucket_states: dict[str, int]
    cancelled: bool
    completed_at: datetime

    def to_dict(self) -> dict[str, Any]:
        return {
            "project_id": self.project_id,
            "target": self.target,
            "total_images": self.total_images,
            "language_distribution": self.language_distribution,
            "category_distribution": self.category_distribution,
            "source_distribution": self.source_distribution,
            "bucket_states": self.bucket_states,
            "cancelled": self.cancelled,
            "completed_at": self.completed_at.isoformat(),
        }


class CollectionOrchestrator:
    """Runs the taxonomy x sources collection policy against one catalog store."""

    def __init__(
        self,
        store: CatalogStore,
        registry: SourceRegistry,
        *,
        languages: tuple[Language, ...] = LANGUAGES,
        categories: Mapping[str, Category] = CATEGORIES,
        total_target: int = COLLECTION_TARGET,
        source_order: tuple[str, ...] = COLLECTION_ORDER,
        delay: float = ATTEMPT_DELAY_SECONDS,
        page_size: int = PAGE_SIZE,
        on_bucket_done: Callable[[RunContext, BucketResult], None] | None = None,
    ) -> None:
        self.store = store
        self.registry = registry
        self.languages = tuple(languages)
        self.categories = categories
        self.total_target = total_target
        self.source_order = tuple(source_order)
        self.delay = delay
        self.page_size = page_size
        self.on_bucket_done = on_bucket_done
        self._languages_by_code = {lang.code: lang for lang in self.languages}

    @property
    def targets(self) -> CollectionTargets:
        return compute_targets(self.total_target, len(self.languages), len(self.categories))

    def new_context(self, project_id: int) -> RunContext:
        locale_codes = [lang.code for lang in self.languages]
        category_keys = list(self.categories)
        return RunContext(
            project_id=project_id,
            targets=self.targets,
            progress=CollectionProgress(locale_codes, category_keys),
            ledger=DedupLedger(self.store, project_id),
            buckets={
                (code, key): BucketState.PENDING for code in locale_codes for key in category_keys
            },
        )

    def planned_locales(self) -> list[Language]:
        return schedule_locales(self.languages)

    async def run(self, project_id: int, context: RunContext | None = None) -> CollectionReport:
        """Collect for every bucket, high-priority locales first, and report."""
        ctx = context or self.new_context(project_id)
        planned = self.planned_locales()
        logger.info(
            "Starting collection for project %s: target %d across %d locales x %d categories "
            "(%d per bucket)",
            project_id,
            ctx.targets.total,
            len(self.languages),
            len(self.categories),
            ctx.targets.per_category,
        )

        for language in planned:
            if ctx.cancelled or ctx.target_reached:
                break
            logger.info("Processing locale %s (%s)", language.name, language.code)
            for category_key in self.categories:
                if ctx.cancelled or ctx.target_reached:
                    break
                result = await self.collect_bucket(ctx, language, category_key)
                self._log_progress(ctx)
                if self.on_bucket_done is not None:
                    self.on_bucket_done(ctx, result)

        report = self.build_report(ctx)
        logger.info(
            "Collection %s for project %s: %d images",
            "cancelled" if report.cancelled else "completed",
            project_id,
            report.total_images,
        )
        return report

    async def collect_bucket(
        self, ctx: RunContext, language: Language, category_key: str
    ) -> BucketResult:
        """Cycle keyword x source attempts for one bucket until satisfied or exhausted."""
        key = (language.code, category_key)
        target = ctx.targets.per_category
        keywords = keywords_for(category_key, language.code, self.categories)
        ctx.buckets[key] = BucketState.IN_PROGRESS

        collected = 0
        attempts = 0
        for index in range(len(keywords) * EXHAUSTION_FACTOR):
            if collected >= target or ctx.cancelled or ctx.target_reached:
                break
            keyword = keywords[index % len(keywords)]
            source_name = self.source_order[(index // len(keywords)) % len(self.source_order)]
            adapter = self.registry.get(source_name)
            if adapter is None:
                continue
            if adapter.requires_language and not supports_source(
                language.code, source_name, self._languages_by_code
            ):
                continue

            hint = language_param(language.code, source_name, self._languages_by_code)
            attempts += 1
            added = 0
            try:
                candidates = await adapter.fetch_candidates(
                    keyword, hint, self.page_size, locale=language.code
                )
                added = await persist_candidates(
                    ctx.ledger,
                    candidates,
                    source=source_name,
                    keyword=keyword,
                    locale=language.code,
                    language=hint,
                    category=category_key,
                )
            except Exception:
                logger.exception("%s:%r failed for %s", source_name, keyword, key)

            collected += added
            ctx.progress.record(language.code, category_key, added)
            ctx.source_totals[source_name] += added
            logger.debug(
                "%s:%r -> +%d (%d/%d) for %s/%s",
                source_name,
                keyword,
                added,
                collected,
                target,
                language.code,
                category_key,
            )
            await asyncio.sleep(self.delay)

        state = BucketState.SATISFIED if collected >= target else BucketState.EXHAUSTED
        if collected < target and (ctx.cancelled or ctx.target_reached):
            # interrupted, not exhausted
            state = BucketState.IN_PROGRESS
        ctx.buckets[key] = state
        logger.info(
            "Bucket %s/%s %s: %d/%d after %d attempts",
            language.code,
            category_key,
            state.value,
            collected,
            target,
            attempts,
        )
        return BucketResult(
            locale=language.code,
            category=category_key,
            target=target,
            collected=collected,
            attempts=attempts,
            state=state,
        )

    def build_report(self, ctx: RunContext) -> CollectionReport:
        return CollectionReport(
            project_id=ctx.project_id,
            target=ctx.targets.total,
            total_images=ctx.total_collected,
            language_distribution=ctx.progress.locale_totals(),
            category_distribution=ctx.progress.category_totals(),
            source_distribution=dict(ctx.source_totals),
            bucket_states=dict(Counter(state.value for state in ctx.buckets.values())),
            cancelled=ctx.cancelled,
            completed_at=datetime.now(UTC),
        )

    def _log_progress(self, ctx: RunContext) -> None:
        elapsed = max(time.monotonic() - ctx.started_at, 1e-9)
        rate = ctx.total_collected / elapsed
        percent = ctx.total_collected / ctx.targets.total * 100 if ctx.targets.total else 100.0
        logger.info(
            "Progress: %d/%d (%.1f%%) | %.1f images/sec",
            ctx.total_collected,
            ctx.targets.total,
            percent,
            rate,
        )
