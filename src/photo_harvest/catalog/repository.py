"""CRUD and aggregate operations for projects and catalog entries in DuckDB."""

import json
from typing import Any

import duckdb

from photo_harvest.models import CatalogEntry, Project

# Columns a filter dict may reference.
FILTER_COLUMNS = frozenset(
    {
        "id",
        "project_id",
        "url",
        "description",
        "language",
        "locale",
        "text_amount",
        "image_type",
        "source",
        "usage_count",
    }
)
UPDATE_COLUMNS = (FILTER_COLUMNS - {"id", "project_id"}) | {"metadata"}
USAGE_BUCKETS = {
    "0": "usage_count = 0",
    "1": "usage_count = 1",
    "2": "usage_count = 2",
    "3": "usage_count = 3",
    "4+": "usage_count >= 4",
}
# Columns the listing offers as filters.
LISTING_FILTERS = ("language", "locale", "text_amount", "image_type")


def create_project(conn: duckdb.DuckDBPyConnection, name: str) -> Project:
    """Create a project. Raises duckdb.ConstraintException on a duplicate name."""
    row = conn.execute(
        "INSERT INTO projects (name) VALUES (?) RETURNING id, name, created_at", [name]
    ).fetchone()
    return Project(id=row[0], name=row[1], created_at=row[2])


def get_project_by_name(conn: duckdb.DuckDBPyConnection, name: str) -> Project | None:
    row = conn.execute(
        "SELECT id, name, created_at FROM projects WHERE name = ?", [name]
    ).fetchone()
    if row is None:
        return None
    return Project(id=row[0], name=row[1], created_at=row[2])


def list_projects(conn: duckdb.DuckDBPyConnection) -> list[Project]:
    rows = conn.execute("SELECT id, name, created_at FROM projects ORDER BY name").fetchall()
    return [Project(id=r[0], name=r[1], created_at=r[2]) for r in rows]


def insert_entry(conn: duckdb.DuckDBPyConnection, entry: CatalogEntry) -> int:
    """Insert a single catalog entry and return its new id."""
    row = conn.execute(
        """
        INSERT INTO photos (
            project_id, url, description, language, locale,
            text_amount, image_type, source, usage_count, metadata
        ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
        RETURNING id
        """,
        [
            entry.project_id,
            entry.url,
            entry.description,
            entry.language,
            entry.locale,
            entry.text_amount,
            entry.image_type,
            entry.source,
            entry.usage_count,
            json.dumps(entry.metadata, default=str),
        ],
    ).fetchone()
    return row[0]


def exists_by_url(conn: duckdb.DuckDBPyConnection, project_id: int, url: str) -> bool:
    """Return True if the project already has an entry with this URL."""
    row = conn.execute(
        "SELECT 1 FROM photos WHERE project_id = ? AND url = ? LIMIT 1", [project_id, url]
    ).fetchone()
    return row is not None


def bulk_update(
    conn: duckdb.DuckDBPyConnection, updates: list[tuple[dict[str, Any], dict[str, Any]]]
) -> int:
    """Apply (filter, update) pairs in one transaction. Returns the number of pairs applied.

    A ``metadata`` value in an update replaces the stored JSON document.
    """
    if not updates:
        return 0
    conn.begin()
    try:
        for filters, changes in updates:
            set_sql, set_params = _build_set(changes)
            where_sql, where_params = _build_where(filters)
            conn.execute(
                f"UPDATE photos SET {set_sql} WHERE {where_sql}", set_params + where_params
            )
    except Exception:
        conn.rollback()
        raise
    conn.commit()
    return len(updates)


def count_by(conn: duckdb.DuckDBPyConnection, filters: dict[str, Any]) -> int:
    where_sql, params = _build_where(filters)
    row = conn.execute(f"SELECT COUNT(*) FROM photos WHERE {where_sql}", params).fetchone()
    return row[0] if row else 0


def distinct(conn: duckdb.DuckDBPyConnection, field: str, filters: dict[str, Any]) -> list[Any]:
    """Distinct non-null values of a column, sorted."""
    _check_column(field)
    where_sql, params = _build_where(filters)
    rows = conn.execute(
        f"SELECT DISTINCT {field} FROM photos WHERE {where_sql} AND {field} IS NOT NULL "
        f"ORDER BY {field}",
        params,
    ).fetchall()
    return [row[0] for row in rows]


def aggregate_group_count(
    conn: duckdb.DuckDBPyConnection, field: str, filters: dict[str, Any]
) -> list[tuple[Any, int]]:
    """Return (value, count) pairs grouped by a column, largest group first."""
    _check_column(field)
    where_sql, params = _build_where(filters)
    rows = conn.execute(
        f"SELECT {field}, COUNT(*) AS cnt FROM photos WHERE {where_sql} "
        f"GROUP BY {field} ORDER BY cnt DESC, {field}",
        params,
    ).fetchall()
    return [(row[0], row[1]) for row in rows]


def distribution(
    conn: duckdb.DuckDBPyConnection,
    project_id: int,
    field: str,
    filters: dict[str, Any] | None = None,
) -> dict[Any, int]:
    """Entry counts of a project keyed by the values of one column."""
    return dict(
        aggregate_group_count(conn, field, {**(filters or {}), "project_id": project_id})
    )


def list_for_source(
    conn: duckdb.DuckDBPyConnection, project_id: int, source: str
) -> list[CatalogEntry]:
    """All entries of a project tagged with a source, oldest first."""
    rows = conn.execute(
        "SELECT * FROM photos WHERE project_id = ? AND source = ? ORDER BY id",
        [project_id, source],
    ).fetchall()
    return [_row_to_entry(row) for row in rows]


def list_entries(
    conn: duckdb.DuckDBPyConnection,
    project_id: int,
    filters: dict[str, Any] | None = None,
    usage: list[str] | None = None,
    page: int = 1,
    limit: int = 100,
) -> list[CatalogEntry]:
    """List entries newest first with optional column filters and usage buckets."""
    where_sql, params = _entries_where(project_id, filters, usage)
    offset = (max(page, 1) - 1) * limit
    rows = conn.execute(
        f"SELECT * FROM photos WHERE {where_sql} ORDER BY id DESC LIMIT ? OFFSET ?",
        params + [limit, offset],
    ).fetchall()
    return [_row_to_entry(row) for row in rows]


def count_entries(
    conn: duckdb.DuckDBPyConnection,
    project_id: int,
    filters: dict[str, Any] | None = None,
    usage: list[str] | None = None,
) -> int:
    """Number of entries ``list_entries`` would page through."""
    where_sql, params = _entries_where(project_id, filters, usage)
    row = conn.execute(f"SELECT COUNT(*) FROM photos WHERE {where_sql}", params).fetchone()
    return row[0] if row else 0


def available_filters(conn: duckdb.DuckDBPyConnection, project_id: int) -> dict[str, list[Any]]:
    """Values present in the project for each filterable column of the listing."""
    return {
        field: distinct(conn, field, {"project_id": project_id}) for field in LISTING_FILTERS
    }


def delete_entries(conn: duckdb.DuckDBPyConnection, project_id: int, ids: list[int]) -> int:
    """Delete entries by id. Ids of other projects are ignored. Returns the number deleted."""
    if not ids:
        return 0
    where_sql, params = _build_where({"project_id": project_id, "id": list(ids)})
    row = conn.execute(f"SELECT COUNT(*) FROM photos WHERE {where_sql}", params).fetchone()
    conn.execute(f"DELETE FROM photos WHERE {where_sql}", params)
    return row[0]


def use_photos(conn: duckdb.DuckDBPyConnection, project_id: int, count: int) -> list[CatalogEntry]:
    """Pick the ``count`` least-used entries, bump their usage count and return them."""
    if count <= 0:
        return []
    ids = [
        row[0]
        for row in conn.execute(
            "SELECT id FROM photos WHERE project_id = ? ORDER BY usage_count, id LIMIT ?",
            [project_id, count],
        ).fetchall()
    ]
    if not ids:
        return []
    placeholders = ", ".join(["?"] * len(ids))
    conn.execute(
        f"UPDATE photos SET usage_count = usage_count + 1 WHERE id IN ({placeholders})", ids
    )
    rows = conn.execute(
        f"SELECT * FROM photos WHERE id IN ({placeholders}) ORDER BY id", ids
    ).fetchall()
    return [_row_to_entry(row) for row in rows]


def get_entry(conn: duckdb.DuckDBPyConnection, entry_id: int) -> CatalogEntry | None:
    result = conn.execute("SELECT * FROM photos WHERE id = ?", [entry_id]).fetchone()
    if result is None:
        return None
    return _row_to_entry(result)


def _entries_where(
    project_id: int, filters: dict[str, Any] | None, usage: list[str] | None
) -> tuple[str, list[Any]]:
    where_sql, params = _build_where({**(filters or {}), "project_id": project_id})
    usage_clauses = [USAGE_BUCKETS[u] for u in usage or [] if u in USAGE_BUCKETS]
    if usage_clauses:
        where_sql += " AND (" + " OR ".join(usage_clauses) + ")"
    return where_sql, params


def _check_column(name: str) -> None:
    if name not in FILTER_COLUMNS:
        raise ValueError(f"Unknown catalog column: {name}")


def _build_where(filters: dict[str, Any]) -> tuple[str, list[Any]]:
    """Translate {column: value} into SQL. Lists become IN, None becomes IS NULL."""
    clauses = ["1=1"]
    params: list[Any] = []
    for column, value in filters.items():
        _check_column(column)
        if value is None:
            clauses.append(f"{column} IS NULL")
        elif isinstance(value, (list, tuple, set, frozenset)):
            values = list(value)
            if not values:
                clauses.append("1=0")
                continue
            placeholders = ", ".join(["?"] * len(values))
            clauses.append(f"{column} IN ({placeholders})")
            params.extend(values)
        else:
            clauses.append(f"{column} = ?")
            params.append(value)
    return " AND ".join(clauses), params


def _build_set(changes: dict[str, Any]) -> tuple[str, list[Any]]:
    parts = []
    params: list[Any] = []
    for column, value in changes.items():
        if column not in UPDATE_COLUMNS:
            raise ValueError(f"Column cannot be updated: {column}")
        if column == "metadata":
            value = json.dumps(value, default=str)
        parts.append(f"{column} = ?")
        params.append(value)
    return ", ".join(parts), params


def _row_to_entry(row: tuple) -> CatalogEntry:
    """Convert a DB row tuple to CatalogEntry.

    Column order matches schema.py DDL:
    0:id, 1:project_id, 2:url, 3:description, 4:language, 5:locale,
    6:text_amount, 7:image_type, 8:source, 9:usage_count, 10:metadata,
    11:created_at
    """
    return CatalogEntry(
        id=row[0],
        project_id=row[1],
        url=row[2],
        description=row[3],
        language=row[4],
        locale=row[5],
        text_amount=row[6],
        image_type=row[7],
        source=row[8],
        usage_count=row[9],
        metadata=json.loads(row[10]) if row[10] else {},
        created_at=row[11],
    )
