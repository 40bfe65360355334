"""Background collection runs with one active run per project.

``start`` only schedules the run and returns an acknowledgment. What happens
afterwards is visible through ``progress`` (recomputed from the catalog) and
the logs; there is no notification of partial failure.
"""

import asyncio
import logging
from dataclasses import dataclass, field

from photo_harvest.catalog.store import CatalogStore
from photo_harvest.collection.orchestrator import (
    CollectionOrchestrator,
    CollectionReport,
    RunContext,
)

logger = logging.getLogger(__name__)

UNKNOWN = "unknown"


class RunAlreadyActive(RuntimeError):
    """A collection run is already in flight for this project."""


@dataclass(frozen=True)
class RunAcceptance:
    project_id: int
    target: int
    locales: int
    categories: int
    per_bucket: int


@dataclass
class ProgressSnapshot:
    project_id: int
    total_images: int
    target: int
    percent: float
    language_distribution: dict[str, int] = field(default_factory=dict)
    category_distribution: dict[str, int] = field(default_factory=dict)
    source_distribution: dict[str, int] = field(default_factory=dict)
    active: bool = False


async def collection_progress(
    store: CatalogStore, project_id: int, target: int
) -> ProgressSnapshot:
    """Progress of a project computed from what is actually in the catalog."""
    filters = {"project_id": project_id}
    total = await store.count_by(filters)
    by_locale = await store.aggregate_group_count("locale", filters)
    by_category = await store.aggregate_group_count("image_type", filters)
    by_source = await store.aggregate_group_count("source", filters)
    return ProgressSnapshot(
        project_id=project_id,
        total_images=total,
        target=target,
        percent=round(total / target * 100, 2) if target else 100.0,
        language_distribution=_group_dict(by_locale),
        category_distribution=_group_dict(by_category),
        source_distribution=_group_dict(by_source),
    )


def _group_dict(groups: list[tuple[str | None, int]]) -> dict[str, int]:
    result: dict[str, int] = {}
    for value, count in groups:
        key = value if value is not None else UNKNOWN
        result[key] = result.get(key, 0) + count
    return result


class CollectionJobs:
    """Launches orchestrator runs as tasks, guarded by a per-project single-flight lock."""

    def __init__(self, orchestrator: CollectionOrchestrator) -> None:
        self.orchestrator = orchestrator
        self._tasks: dict[int, asyncio.Task] = {}
        self._contexts: dict[int, RunContext] = {}
        self.reports: dict[int, CollectionReport] = {}

    def is_active(self, project_id: int) -> bool:
        task = self._tasks.get(project_id)
        return task is not None and not task.done()

    def start(self, project_id: int) -> RunAcceptance:
        """Schedule a run and return at once. Must be called from a running event loop."""
        if self.is_active(project_id):
            raise RunAlreadyActive(f"Collection already running for project {project_id}")

        ctx = self.orchestrator.new_context(project_id)
        self._contexts[project_id] = ctx
        self._tasks[project_id] = asyncio.create_task(
            self._run(ctx), name=f"collection-{project_id}"
        )
        return RunAcceptance(
            project_id=project_id,
            target=ctx.targets.total,
            locales=len(self.orchestrator.languages),
            categories=len(self.orchestrator.categories),
            per_bucket=ctx.targets.per_category,
        )

    def cancel(self, project_id: int) -> bool:
        """Ask the active run to stop after its in-flight attempt. False if none is active."""
        ctx = self._contexts.get(project_id)
        if ctx is None or not self.is_active(project_id):
            return False
        ctx.cancel()
        return True

    async def wait(self, project_id: int) -> CollectionReport | None:
        """Wait for the project's current run, if any, and return its report."""
        task = self._tasks.get(project_id)
        if task is not None:
            await asyncio.shield(task)
        return self.reports.get(project_id)

    async def progress(self, project_id: int) -> ProgressSnapshot:
        snapshot = await collection_progress(
            self.orchestrator.store, project_id, self.orchestrator.total_target
        )
        snapshot.active = self.is_active(project_id)
        return snapshot

    async def _run(self, ctx: RunContext) -> None:
        try:
            report = await self.orchestrator.run(ctx.project_id, ctx)
        except Exception:
            logger.exception("Collection run for project %s failed", ctx.project_id)
            return
        finally:
            self._contexts.pop(ctx.project_id, None)
        self.reports[ctx.project_id] = report
        logger.info("Final report for project %s: %s", ctx.project_id, report.to_dict())
