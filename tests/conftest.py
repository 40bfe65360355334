"""Shared test fixtures."""

import duckdb
import pytest

from photo_harvest.catalog.repository import create_project
from photo_harvest.catalog.schema import ensure_schema
from photo_harvest.catalog.store import CatalogStore
from photo_harvest.collection.sources.base import SourceAdapter
from photo_harvest.models import CandidateImage, CatalogEntry


@pytest.fixture
def db_conn():
    """In-memory DuckDB connection with schema initialized."""
    conn = duckdb.connect(":memory:")
    ensure_schema(conn)
    yield conn
    conn.close()


@pytest.fixture
def project_id(db_conn) -> int:
    return create_project(db_conn, "test-project").id


@pytest.fixture
def store(db_conn) -> CatalogStore:
    return CatalogStore(db_conn)


def make_entry(
    photo_id: str,
    project_id: int = 1,
    locale: str | None = "ja_JP",
    image_type: str | None = "animals",
    source: str | None = "pixabay",
    url: str | None = None,
    metadata: dict | None = None,
    usage_count: int = 0,
) -> CatalogEntry:
    """Helper to create a CatalogEntry with unique fields."""
    return CatalogEntry(
        id=None,
        project_id=project_id,
        url=url or f"https://example.com/{photo_id}.jpg",
        description=f"photo {photo_id}",
        language="ja",
        locale=locale,
        text_amount="minimal",
        image_type=image_type,
        source=source,
        usage_count=usage_count,
        metadata=metadata if metadata is not None else {"source": source},
    )


class StubSource(SourceAdapter):
    """Source returning canned candidates and recording every call."""

    def __init__(self, name: str = "stub", batches=None, requires_language: bool = False):
        super().__init__(timeout=5)
        self.name = name
        self.requires_language = requires_language
        self.batches = batches if callable(batches) else list(batches or [])
        self.calls: list[tuple[str, str, str | None]] = []

    async def search(self, keyword, language_hint, page_size, locale):
        self.calls.append((keyword, language_hint, locale))
        if callable(self.batches):
            return self.batches(keyword, locale)
        if self.batches:
            return self.batches.pop(0)
        return []


class CountingSource(StubSource):
    """Returns ``per_call`` never-seen-before candidates on every call."""

    def __init__(self, name: str = "stub", per_call: int = 3):
        super().__init__(name=name)
        self.per_call = per_call
        self._next = 0

    async def search(self, keyword, language_hint, page_size, locale):
        self.calls.append((keyword, language_hint, locale))
        batch = []
        for _ in range(self.per_call):
            self._next += 1
            batch.append(CandidateImage(raw_url=f"https://img.example.com/{self._next}.jpg"))
        return batch


def candidates(*names: str) -> list[CandidateImage]:
    return [CandidateImage(raw_url=f"https://img.example.com/{n}.jpg", alt_text=n) for n in names]
