"""
Datastore handle and schema lifecycle for TripFlow.

Provides:
- One process-wide SQLite connection, opened lazily on first use
- Idempotent schema initialization (init_db)
- Destructive drop-and-recreate reset (reset_db) for development/support

Every other module goes through get_db(); nothing else opens connections.
"""

import os
import sqlite3
import logging
from typing import Optional, Dict, Any, Iterable

from tripflow.models import ALL_TABLES, INDEXES, DROP_ORDER

logger = logging.getLogger("tripflow.db")

_conn: Optional[sqlite3.Connection] = None

# Faults a DAL call converts into its failure result. sqlite3 raises
# OverflowError, not sqlite3.Error, for ints outside 64-bit range.
DB_ERRORS = (sqlite3.Error, OverflowError)


# ─────────────────────────── CONNECTION ───────────────────────────

def get_db_path():
    """Get database path from environment."""
    return os.getenv("DB_PATH", "data/tripflow.db")


def get_db() -> sqlite3.Connection:
    """Get the shared database connection, opening it on first call."""
    global _conn
    if _conn is None:
        path = get_db_path()
        directory = os.path.dirname(path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        # The HTTP test client drives the app from a worker thread
        conn = sqlite3.connect(path, check_same_thread=False)
        conn.row_factory = sqlite3.Row
        # SQLite ignores ON DELETE clauses unless this is set per connection
        conn.execute("PRAGMA foreign_keys = ON;")
        _conn = conn
        logger.info(f"Database opened: {path}")
    return _conn


def close_db():
    """Close the shared connection. The next get_db() reopens from DB_PATH."""
    global _conn
    if _conn is not None:
        _conn.close()
        _conn = None


def merge_fields(current: sqlite3.Row, updates: Dict[str, Any], fields: Iterable[str]) -> Dict[str, Any]:
    """
    Overlay a partial update onto a stored row.

    Fields missing from `updates`, or given as None, keep the stored value.
    Keys outside `fields` are ignored.
    """
    merged = {}
    for name in fields:
        value = updates.get(name)
        merged[name] = value if value is not None else current[name]
    return merged


# ─────────────────────────── SCHEMA ───────────────────────────

def create_schema(conn: sqlite3.Connection):
    """Run every CREATE ... IF NOT EXISTS statement on `conn`."""
    cur = conn.cursor()

    for table_sql in ALL_TABLES:
        cur.execute(table_sql)

    for index_sql in INDEXES:
        cur.execute(index_sql)

    conn.commit()


async def init_db():
    """
    Create every table and index that does not exist yet.

    Safe to call repeatedly; existing rows are never touched. Errors are
    not swallowed here: callers must not issue other operations until this
    has completed.
    """
    create_schema(get_db())
    logger.debug("Schema initialized")


async def reset_db():
    """
    Drop all tables (children first) and recreate the schema.

    Irreversible. The drops and the recreate are separate statements with
    no enclosing transaction, so a failure part-way leaves the database in
    whatever state it reached; the error is re-raised to the caller.
    """
    conn = get_db()
    try:
        for table in DROP_ORDER:
            conn.execute(f"DROP TABLE IF EXISTS {table};")
        conn.commit()
        await init_db()
    except sqlite3.Error as e:
        logger.error(f"Database reset failed: {e}")
        raise

    logger.warning("Database reset: all tables dropped and recreated")
