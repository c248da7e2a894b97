"""SQLite schema for the node store.

The schema version lives in ``PRAGMA user_version``; each entry in
``_MIGRATIONS`` upgrades the database by one version.
"""

import sqlite3

from loguru import logger

_V1 = """\
CREATE TABLE IF NOT EXISTS nodes (
    id TEXT PRIMARY KEY,
    type TEXT NOT NULL,
    content_digest TEXT NOT NULL,
    parent_id TEXT,
    foreign_id TEXT,
    sys_type TEXT,
    payload TEXT NOT NULL,
    created_at INTEGER NOT NULL
);
CREATE INDEX IF NOT EXISTS idx_nodes_type ON nodes(type);
CREATE INDEX IF NOT EXISTS idx_nodes_parent ON nodes(parent_id);
CREATE TABLE IF NOT EXISTS metadata (
    key TEXT PRIMARY KEY,
    value TEXT NOT NULL
);
"""

# Root-node scans filter on sys_type.
_V2 = """\
CREATE INDEX IF NOT EXISTS idx_nodes_sys_type ON nodes(sys_type);
"""

_MIGRATIONS: tuple[str, ...] = (_V1, _V2)

SCHEMA_VERSION = len(_MIGRATIONS)


def get_schema_version(conn: sqlite3.Connection) -> int | None:
    """Return the schema version, or None for a database with no schema yet."""
    version = conn.execute("PRAGMA user_version").fetchone()[0]
    return version or None


def migrate_schema(conn: sqlite3.Connection) -> None:
    """Apply every migration newer than the database's current version."""
    current = get_schema_version(conn) or 0
    if current > SCHEMA_VERSION:
        msg = f"Node database schema v{current} is newer than supported v{SCHEMA_VERSION}"
        raise RuntimeError(msg)
    for version in range(current + 1, SCHEMA_VERSION + 1):
        logger.debug("Migrating node database to schema v{}", version)
        conn.executescript(_MIGRATIONS[version - 1])
        conn.execute(f"PRAGMA user_version = {version}")
    conn.commit()


def create_schema(conn: sqlite3.Connection) -> None:
    """Create a fresh schema at the latest version."""
    migrate_schema(conn)


def get_metadata(conn: sqlite3.Connection, key: str) -> str | None:
    row = conn.execute("SELECT value FROM metadata WHERE key = ?", (key,)).fetchone()
    return row[0] if row else None


def set_metadata(conn: sqlite3.Connection, key: str, value: str) -> None:
    conn.execute("INSERT OR REPLACE INTO metadata (key, value) VALUES (?, ?)", (key, value))
    conn.commit()
