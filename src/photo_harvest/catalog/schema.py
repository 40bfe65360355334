"""DuckDB schema definition."""

import duckdb


def ensure_schema(conn: duckdb.DuckDBPyConnection) -> None:
    """Create tables and indexes if they do not exist."""
    conn.execute("CREATE SEQUENCE IF NOT EXISTS projects_id_seq START 1")
    conn.execute("""
        CREATE TABLE IF NOT EXISTS projects (
            id          INTEGER PRIMARY KEY DEFAULT nextval('projects_id_seq'),
            name        VARCHAR NOT NULL UNIQUE,
            created_at  TIMESTAMP DEFAULT current_timestamp
        )
    """)

    # url is not UNIQUE; per-project uniqueness is enforced by the dedup ledger.
    conn.execute("CREATE SEQUENCE IF NOT EXISTS photos_id_seq START 1")
    conn.execute("""
        CREATE TABLE IF NOT EXISTS photos (
            id           INTEGER PRIMARY KEY DEFAULT nextval('photos_id_seq'),
            project_id   INTEGER NOT NULL,
            url          VARCHAR NOT NULL,
            description  VARCHAR,
            language     VARCHAR,
            locale       VARCHAR,
            text_amount  VARCHAR,
            image_type   VARCHAR,
            source       VARCHAR,
            usage_count  INTEGER NOT NULL DEFAULT 0,
            metadata     VARCHAR,
            created_at   TIMESTAMP DEFAULT current_timestamp
        )
    """)
    conn.execute("CREATE INDEX IF NOT EXISTS idx_photos_project ON photos(project_id)")
    conn.execute("CREATE INDEX IF NOT EXISTS idx_photos_source ON photos(project_id, source)")
