"""Async facade over the DuckDB repository functions.

The collection engine and the migration engine only talk to the catalog
through this class. Every call runs the synchronous repository function in a
worker thread, serialized by a lock because a DuckDB connection must not be
used from two threads at once.
"""

import asyncio
import threading
from collections.abc import Callable
from typing import Any, TypeVar

import duckdb

from photo_harvest.catalog import repository
from photo_harvest.models import CatalogEntry

T = TypeVar("T")


class CatalogStore:
    """Catalog persistence used by the collection and migration engines."""

    def __init__(self, conn: duckdb.DuckDBPyConnection) -> None:
        self.conn = conn
        self._lock = threading.Lock()

    async def _run(self, func: Callable[..., T], *args: Any) -> T:
        def call() -> T:
            with self._lock:
                return func(self.conn, *args)

        return await asyncio.to_thread(call)

    async def insert(self, entry: CatalogEntry) -> int:
        return await self._run(repository.insert_entry, entry)

    async def exists_by_url(self, project_id: int, url: str) -> bool:
        return await self._run(repository.exists_by_url, project_id, url)

    async def bulk_update(self, updates: list[tuple[dict[str, Any], dict[str, Any]]]) -> int:
        return await self._run(repository.bulk_update, updates)

    async def count_by(self, filters: dict[str, Any]) -> int:
        return await self._run(repository.count_by, filters)

    async def distinct(self, field: str, filters: dict[str, Any]) -> list[Any]:
        return await self._run(repository.distinct, field, filters)

    async def aggregate_group_count(
        self, field: str, filters: dict[str, Any]
    ) -> list[tuple[Any, int]]:
        return await self._run(repository.aggregate_group_count, field, filters)

    async def list_for_source(self, project_id: int, source: str) -> list[CatalogEntry]:
        return await self._run(repository.list_for_source, project_id, source)
