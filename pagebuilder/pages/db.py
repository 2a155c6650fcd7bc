"""Database layer for page sections.

Supports two backends:
- PostgreSQL (production, set PAGEBUILDER_DATABASE_URL env var)
- SQLite (local development, default)

Both hold a single page_sections table whose shape is SECTION_COLUMNS.
Statements are written with %s placeholders; they are rewritten to ? for
SQLite. Section properties are stored as JSONB on Postgres and as JSON
text on SQLite; the storage layer enforces no schema on them.

Thread-safety: Postgres uses a ThreadedConnectionPool. SQLite uses
per-call connections with check_same_thread=False.
"""

import json
import logging
import os
import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Optional

logger = logging.getLogger(__name__)

# postgres://... for Postgres, or empty for SQLite
DATABASE_URL = os.environ.get("PAGEBUILDER_DATABASE_URL", "")

SQLITE_PATH = Path(os.environ.get(
    "PAGEBUILDER_SQLITE_PATH",
    str(Path(__file__).parent / "pagebuilder.db"),
))

POOL_MIN_CONNECTIONS = int(os.environ.get("PAGEBUILDER_DB_POOL_MIN", "1"))
POOL_MAX_CONNECTIONS = int(os.environ.get("PAGEBUILDER_DB_POOL_MAX", "5"))

# column -> (Postgres type, SQLite type), in insert order
SECTION_COLUMNS: dict[str, tuple[str, str]] = {
    "id": ("VARCHAR(100) PRIMARY KEY", "TEXT PRIMARY KEY"),
    "page_id": ("VARCHAR(100) NOT NULL", "TEXT NOT NULL"),
    "type_id": ("VARCHAR(100) NOT NULL", "TEXT NOT NULL"),
    "section_order": ("INTEGER NOT NULL DEFAULT 0", "INTEGER NOT NULL DEFAULT 0"),
    "properties": ("JSONB DEFAULT '{}'", "TEXT DEFAULT '{}'"),
    "created_at": ("TIMESTAMP", "TEXT"),
    "updated_at": ("TIMESTAMP", "TEXT"),
}

_initialized = False
_pg_pool = None


def _is_postgres() -> bool:
    return DATABASE_URL.startswith("postgres")


def _get_pg_pool():
    """Get or create the Postgres connection pool (lazy singleton)."""
    global _pg_pool
    if _pg_pool is None:
        import psycopg2.pool
        _pg_pool = psycopg2.pool.ThreadedConnectionPool(
            minconn=POOL_MIN_CONNECTIONS,
            maxconn=POOL_MAX_CONNECTIONS,
            dsn=DATABASE_URL,
        )
        logger.info(
            f"PostgreSQL connection pool initialized "
            f"({POOL_MIN_CONNECTIONS}-{POOL_MAX_CONNECTIONS} connections)"
        )
    return _pg_pool


@contextmanager
def get_connection():
    """Get a database connection (Postgres or SQLite).

    A pooled Postgres connection is rolled back before it is returned if
    the block raised, so a failed statement cannot poison the pool.
    """
    if _is_postgres():
        pool = _get_pg_pool()
        conn = pool.getconn()
        try:
            yield conn
        except Exception:
            conn.rollback()
            raise
        finally:
            pool.putconn(conn)
    else:
        conn = sqlite3.connect(str(SQLITE_PATH), check_same_thread=False)
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA journal_mode=WAL")
        try:
            yield conn
        finally:
            conn.close()


def encode_properties(properties: dict[str, Any]) -> str:
    """Serialize a section's property bag for storage."""
    return json.dumps(properties, ensure_ascii=False)


def decode_properties(value: Any) -> dict[str, Any]:
    """Deserialize a stored property bag; Postgres JSONB arrives parsed."""
    if not value:
        return {}
    if isinstance(value, dict):
        return value
    return json.loads(value)


def _adapt(sql: str) -> str:
    return sql if _is_postgres() else sql.replace("%s", "?")


def query(sql: str, params: tuple = ()) -> list[dict[str, Any]]:
    """Run a SELECT and return every row as a dict."""
    with get_connection() as conn:
        cursor = conn.cursor()
        cursor.execute(_adapt(sql), params)
        rows = cursor.fetchall()
        if _is_postgres():
            columns = [desc[0] for desc in cursor.description]
            return [dict(zip(columns, row)) for row in rows]
        return [dict(row) for row in rows]


def query_one(sql: str, params: tuple = ()) -> Optional[dict[str, Any]]:
    rows = query(sql, params)
    return rows[0] if rows else None


def execute(sql: str, params: tuple = ()) -> int:
    """Run a write statement and commit. Returns the number of rows affected."""
    with get_connection() as conn:
        cursor = conn.cursor()
        cursor.execute(_adapt(sql), params)
        conn.commit()
        return cursor.rowcount


def section_table_ddl(postgres: bool) -> str:
    """CREATE statements for page_sections and its render-order index."""
    column_types = ",\n        ".join(
        f"{name} {types[0] if postgres else types[1]}"
        for name, types in SECTION_COLUMNS.items()
    )
    return f"""
    CREATE TABLE IF NOT EXISTS page_sections (
        {column_types}
    );
    CREATE INDEX IF NOT EXISTS idx_page_sections_page
        ON page_sections(page_id, section_order);
    """


def init_db():
    """Create tables if they don't exist."""
    global _initialized
    if _initialized:
        return

    postgres = _is_postgres()
    ddl = section_table_ddl(postgres)
    with get_connection() as conn:
        if postgres:
            conn.cursor().execute(ddl)
        else:
            conn.executescript(ddl)
        conn.commit()

    _initialized = True
    backend = "PostgreSQL" if postgres else f"SQLite ({SQLITE_PATH})"
    logger.info(f"Page database initialized: {backend}")
