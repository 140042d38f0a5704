"""
Shared pytest fixtures for TripFlow tests.

This module provides:
- A fresh SQLite file per test (DB_PATH points into tmp_path)
- TestClient setup for the JSON API
- Small factories for trips, steps, checklists and journal entries
"""
import os
import sys
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

# ─────────────────────────── PATH SETUP ───────────────────────────

TEST_ROOT = Path(__file__).resolve().parent
sys.path.insert(0, str(TEST_ROOT.parent))

os.environ.setdefault("LOG_LEVEL", "WARNING")  # Reduce noise, but show warnings

from tripflow import db as tripflow_db  # noqa: E402
from tripflow.db import get_db, create_schema  # noqa: E402

# ─────────────────────────── DATABASE ───────────────────────────

@pytest.fixture(autouse=True)
def fresh_db(tmp_path, monkeypatch):
    """
    Every test gets its own database file with the schema in place.
    The shared handle is closed so the next get_db() opens the new path.
    """
    db_file = tmp_path / "tripflow.db"
    monkeypatch.setenv("DB_PATH", str(db_file))
    tripflow_db.close_db()
    create_schema(get_db())
    yield db_file
    tripflow_db.close_db()


def count_rows(table: str, where: str = "", params: tuple = ()) -> int:
    """Count rows straight from SQLite, bypassing the DAL."""
    sql = f"SELECT COUNT(*) FROM {table}"
    if where:
        sql += f" WHERE {where}"
    return get_db().execute(sql, params).fetchone()[0]


# ─────────────────────────── TEST DATA FACTORIES ───────────────────────────

def insert_trip(title: str = "Test Trip", **fields) -> int:
    """Insert a trip with raw SQL. Returns trip_id."""
    conn = get_db()
    cur = conn.execute(
        "INSERT INTO trips (title, destination, budget) VALUES (?, ?, ?)",
        (title, fields.get("destination"), fields.get("budget")),
    )
    conn.commit()
    return cur.lastrowid


def insert_step(trip_id: int, name: str = "Test Step", start_date: str = None) -> int:
    conn = get_db()
    cur = conn.execute(
        "INSERT INTO trip_steps (trip_id, name, start_date) VALUES (?, ?, ?)",
        (trip_id, name, start_date),
    )
    conn.commit()
    return cur.lastrowid


def insert_entry(trip_id: int, step_id: int = None, title: str = "Day one", entry_date: str = "2024-06-01") -> int:
    conn = get_db()
    cur = conn.execute(
        "INSERT INTO journal_entries (trip_id, step_id, title, entry_date) VALUES (?, ?, ?, ?)",
        (trip_id, step_id, title, entry_date),
    )
    conn.commit()
    return cur.lastrowid


def insert_checklist(trip_id: int, title: str = "Packing") -> int:
    conn = get_db()
    cur = conn.execute(
        "INSERT INTO checklists (trip_id, title) VALUES (?, ?)",
        (trip_id, title),
    )
    conn.commit()
    return cur.lastrowid


# ─────────────────────────── HTTP CLIENT ───────────────────────────

@pytest.fixture
def client(fresh_db):
    """Test client bound to this test's database."""
    from tripflow.main import app
    with TestClient(app) as test_client:
        yield test_client
