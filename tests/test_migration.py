"""Tests for transient-to-permanent URL migration."""

from datetime import UTC, datetime

import pytest
from conftest import make_entry

from photo_harvest.catalog.repository import get_entry, insert_entry
from photo_harvest.migration import RULES, MigrationEngine
from photo_harvest.migration.engine import PIXABAY_RULE, MigrationError, plan_update

CDN_URL = "https://cdn.pixabay.com/photo/2020/01/01/cat-4719181_1280.jpg"
GET_URL = "https://pixabay.com/get/gabc-1234567_640.jpg"
NO_ID_URL = "https://pixabay.com/get/abcdef.jpg"
PERMANENT_URL = "https://pixabay.com/photos/photo-555555/"


def pixabay_entry(name, project_id, url, record_id=None):
    metadata = {"source": "pixabay"}
    if record_id:
        metadata["source_record_id"] = record_id
    return make_entry(name, project_id=project_id, url=url, metadata=metadata)


@pytest.fixture
def seeded(db_conn, project_id):
    ids = {
        "cdn": insert_entry(db_conn, pixabay_entry("cdn", project_id, CDN_URL, "4719181")),
        "get": insert_entry(db_conn, pixabay_entry("get", project_id, GET_URL)),
        "no_id": insert_entry(db_conn, pixabay_entry("no_id", project_id, NO_ID_URL)),
        "done": insert_entry(db_conn, pixabay_entry("done", project_id, PERMANENT_URL, "555555")),
    }
    insert_entry(db_conn, make_entry("other", project_id=project_id, source="pexels"))
    return ids


def test_needs_migration():
    assert PIXABAY_RULE.needs_migration(CDN_URL)
    assert PIXABAY_RULE.needs_migration(GET_URL)
    assert PIXABAY_RULE.needs_migration("https://example.com/a.jpg")
    assert not PIXABAY_RULE.needs_migration(PERMANENT_URL)


def test_plan_update_uses_record_id():
    entry = make_entry("a", url=CDN_URL, metadata={"source_record_id": "4719181"})
    entry.id = 7
    now = datetime(2024, 1, 1, tzinfo=UTC)
    filters, changes = plan_update(PIXABAY_RULE, entry, now=now)
    assert filters == {"id": 7}
    assert changes["url"] == "https://pixabay.com/photos/photo-4719181/"
    assert changes["metadata"]["old_temp_url"] == CDN_URL
    assert changes["metadata"]["migrated_at"] == now.isoformat()


def test_plan_update_extracts_embedded_id():
    entry = make_entry("a", url=GET_URL, metadata={})
    _, changes = plan_update(PIXABAY_RULE, entry)
    assert changes["url"] == "https://pixabay.com/photos/photo-1234567/"
    assert changes["metadata"]["source_record_id"] == "1234567"


def test_plan_update_without_any_id():
    entry = make_entry("a", url=NO_ID_URL, metadata={})
    with pytest.raises(MigrationError):
        plan_update(PIXABAY_RULE, entry)


def test_short_digit_runs_are_not_ids():
    entry = make_entry("a", url="https://pixabay.com/get/cat-12345_640.jpg", metadata={})
    with pytest.raises(MigrationError):
        plan_update(PIXABAY_RULE, entry)


@pytest.mark.asyncio
async def test_scan_for_migration(store, project_id, seeded):
    status = await MigrationEngine(store).scan_for_migration(project_id, "pixabay")
    assert status.total_for_source == 4
    assert status.needing_migration == 3
    assert status.permanent == 1
    assert status.already_migrated == 0


@pytest.mark.asyncio
async def test_migrate(db_conn, store, project_id, seeded):
    result = await MigrationEngine(store).migrate(project_id, "pixabay")

    assert result.total == 3
    assert result.migrated == 2
    assert result.failed == 1

    cdn = get_entry(db_conn, seeded["cdn"])
    assert cdn.url == "https://pixabay.com/photos/photo-4719181/"
    assert cdn.metadata["old_temp_url"] == CDN_URL
    assert "migrated_at" in cdn.metadata

    from_get = get_entry(db_conn, seeded["get"])
    assert from_get.url == "https://pixabay.com/photos/photo-1234567/"
    assert from_get.metadata["source_record_id"] == "1234567"

    assert get_entry(db_conn, seeded["no_id"]).url == NO_ID_URL
    assert get_entry(db_conn, seeded["done"]).url == PERMANENT_URL


@pytest.mark.asyncio
async def test_migrate_twice_is_a_no_op(db_conn, store, project_id, seeded):
    engine = MigrationEngine(store)
    await engine.migrate(project_id, "pixabay")
    before = get_entry(db_conn, seeded["cdn"]).metadata

    second = await engine.migrate(project_id, "pixabay")

    assert second.migrated == 0
    assert second.failed == 1
    assert get_entry(db_conn, seeded["cdn"]).metadata == before
    status = await engine.scan_for_migration(project_id, "pixabay")
    assert status.already_migrated == 2


@pytest.mark.asyncio
async def test_migrate_in_batches(db_conn, store, project_id):
    for i in range(5):
        insert_entry(
            db_conn,
            pixabay_entry(str(i), project_id, f"https://cdn.pixabay.com/{i}.jpg", str(100000 + i)),
        )
    calls = []

    class RecordingStore:
        async def list_for_source(self, project_id, source):
            return await store.list_for_source(project_id, source)

        async def bulk_update(self, updates):
            calls.append(len(updates))
            return await store.bulk_update(updates)

    result = await MigrationEngine(RecordingStore(), batch_size=2).migrate(project_id, "pixabay")

    assert calls == [2, 2, 1]
    assert result.migrated == 5


@pytest.mark.asyncio
async def test_failed_batch_is_counted(store, project_id, seeded):
    class BrokenStore:
        async def list_for_source(self, project_id, source):
            return await store.list_for_source(project_id, source)

        async def bulk_update(self, updates):
            raise RuntimeError("write failed")

    result = await MigrationEngine(BrokenStore()).migrate(project_id, "pixabay")

    assert result.migrated == 0
    assert result.failed == 3


@pytest.mark.asyncio
async def test_unknown_source_rejected(store, project_id):
    engine = MigrationEngine(store)
    with pytest.raises(ValueError, match="No migration rule"):
        await engine.scan_for_migration(project_id, "flickr")
    with pytest.raises(ValueError):
        await engine.migrate(project_id, "flickr")


def test_default_rules():
    assert set(RULES) == {"pixabay"}
