"""
Trips and itinerary steps for TripFlow.

Provides:
- Trip CRUD (list is most recent first)
- TripStep CRUD scoped to a trip (list is chronological)

Writes report a success flag (plus the new id for creates); reads return
the value, None or an empty list. SQLite errors never escape this module.
"""

import sqlite3
import logging
from typing import Optional, List, Tuple

from tripflow.db import DB_ERRORS, get_db, merge_fields
from tripflow.models import Trip, TripStep

logger = logging.getLogger("tripflow.trips")

TRIP_UPDATE_FIELDS = ("title", "destination", "start_date", "end_date", "budget", "notes", "image_uri")
STEP_UPDATE_FIELDS = ("name", "location", "start_date", "end_date", "description")


# ─────────────────────────── DATABASE HELPERS ───────────────────────────

def _row_to_trip(row: sqlite3.Row) -> Trip:
    """Convert database row to Trip object."""
    return Trip(
        id=row["id"],
        title=row["title"],
        destination=row["destination"],
        start_date=row["start_date"],
        end_date=row["end_date"],
        budget=row["budget"],
        notes=row["notes"],
        image_uri=row["image_uri"],
        created_at=row["created_at"],
    )


def _row_to_trip_step(row: sqlite3.Row) -> TripStep:
    """Convert database row to TripStep object."""
    return TripStep(
        id=row["id"],
        trip_id=row["trip_id"],
        name=row["name"],
        location=row["location"],
        start_date=row["start_date"],
        end_date=row["end_date"],
        description=row["description"],
        created_at=row["created_at"],
    )


# ─────────────────────────── TRIPS ───────────────────────────

async def create_trip(
    title: str,
    destination: str = None,
    start_date: str = None,
    end_date: str = None,
    budget: float = None,
    notes: str = None,
    image_uri: str = None,
) -> Tuple[bool, Optional[int]]:
    """Create a trip. Returns (success, new trip id)."""
    if not isinstance(title, str) or not title.strip():
        logger.warning("Refusing to create trip without a title")
        return False, None

    conn = get_db()
    try:
        cur = conn.execute("""
            INSERT INTO trips (title, destination, start_date, end_date, budget, notes, image_uri)
            VALUES (?, ?, ?, ?, ?, ?, ?)
        """, (title, destination, start_date, end_date, budget, notes, image_uri))
        conn.commit()
    except DB_ERRORS as e:
        conn.rollback()
        logger.error(f"SQLite error creating trip: {e}")
        return False, None

    logger.info(f"Trip created: {title} ({cur.lastrowid})")
    return True, cur.lastrowid


async def get_trips() -> List[Trip]:
    """Get all trips, most recently created first."""
    try:
        rows = get_db().execute(
            "SELECT * FROM trips ORDER BY created_at DESC, id DESC"
        ).fetchall()
    except DB_ERRORS as e:
        logger.error(f"SQLite error listing trips: {e}")
        return []
    return [_row_to_trip(row) for row in rows]


async def get_trip(trip_id: int) -> Optional[Trip]:
    """Get trip by ID."""
    try:
        row = get_db().execute("SELECT * FROM trips WHERE id = ?", (trip_id,)).fetchone()
    except DB_ERRORS as e:
        logger.error(f"SQLite error reading trip {trip_id}: {e}")
        return None

    if not row:
        return None
    return _row_to_trip(row)


async def update_trip(trip_id: int, **kwargs) -> bool:
    """
    Partially update a trip.

    The stored row is read first and every field not supplied keeps its
    current value; the merged row is then written back in one statement.
    Returns False when the trip does not exist.
    """
    conn = get_db()
    try:
        current = conn.execute("SELECT * FROM trips WHERE id = ?", (trip_id,)).fetchone()
        if not current:
            return False

        merged = merge_fields(current, kwargs, TRIP_UPDATE_FIELDS)
        conn.execute("""
            UPDATE trips SET
                title = ?, destination = ?, start_date = ?, end_date = ?,
                budget = ?, notes = ?, image_uri = ?
            WHERE id = ?
        """, (merged["title"], merged["destination"], merged["start_date"], merged["end_date"],
              merged["budget"], merged["notes"], merged["image_uri"], trip_id))
        conn.commit()
    except DB_ERRORS as e:
        conn.rollback()
        logger.error(f"SQLite error updating trip {trip_id}: {e}")
        return False

    return True


async def delete_trip(trip_id: int) -> bool:
    """Delete a trip; steps, checklists and journal entries go with it."""
    conn = get_db()
    try:
        conn.execute("DELETE FROM trips WHERE id = ?", (trip_id,))
        conn.commit()
    except DB_ERRORS as e:
        conn.rollback()
        logger.error(f"SQLite error deleting trip {trip_id}: {e}")
        return False

    logger.info(f"Trip deleted: {trip_id}")
    return True


# ─────────────────────────── TRIP STEPS ───────────────────────────

async def create_trip_step(
    trip_id: int,
    name: str,
    location: str = None,
    start_date: str = None,
    end_date: str = None,
    description: str = None,
) -> Tuple[bool, Optional[int]]:
    """Add a step to a trip. Returns (success, new step id)."""
    conn = get_db()
    try:
        cur = conn.execute("""
            INSERT INTO trip_steps (trip_id, name, location, start_date, end_date, description)
            VALUES (?, ?, ?, ?, ?, ?)
        """, (trip_id, name, location, start_date, end_date, description))
        conn.commit()
    except DB_ERRORS as e:
        conn.rollback()
        logger.error(f"SQLite error adding step to trip {trip_id}: {e}")
        return False, None

    return True, cur.lastrowid


async def get_trip_steps(trip_id: int) -> List[TripStep]:
    """Get a trip's steps in itinerary order."""
    try:
        rows = get_db().execute("""
            SELECT * FROM trip_steps
            WHERE trip_id = ?
            ORDER BY start_date ASC, created_at ASC, id ASC
        """, (trip_id,)).fetchall()
    except DB_ERRORS as e:
        logger.error(f"SQLite error listing steps for trip {trip_id}: {e}")
        return []
    return [_row_to_trip_step(row) for row in rows]


async def get_trip_step(step_id: int) -> Optional[TripStep]:
    """Get a step by its own ID."""
    try:
        row = get_db().execute("SELECT * FROM trip_steps WHERE id = ?", (step_id,)).fetchone()
    except DB_ERRORS as e:
        logger.error(f"SQLite error reading step {step_id}: {e}")
        return None

    if not row:
        return None
    return _row_to_trip_step(row)


async def update_trip_step(step_id: int, **kwargs) -> bool:
    """Partially update a step (same read-merge-write as update_trip)."""
    conn = get_db()
    try:
        current = conn.execute("SELECT * FROM trip_steps WHERE id = ?", (step_id,)).fetchone()
        if not current:
            return False

        merged = merge_fields(current, kwargs, STEP_UPDATE_FIELDS)
        conn.execute("""
            UPDATE trip_steps SET
                name = ?, location = ?, start_date = ?, end_date = ?, description = ?
            WHERE id = ?
        """, (merged["name"], merged["location"], merged["start_date"], merged["end_date"],
              merged["description"], step_id))
        conn.commit()
    except DB_ERRORS as e:
        conn.rollback()
        logger.error(f"SQLite error updating step {step_id}: {e}")
        return False

    return True


async def delete_trip_step(step_id: int) -> bool:
    """Delete a step. Journal entries that pointed at it lose their step_id."""
    conn = get_db()
    try:
        conn.execute("DELETE FROM trip_steps WHERE id = ?", (step_id,))
        conn.commit()
    except DB_ERRORS as e:
        conn.rollback()
        logger.error(f"SQLite error deleting step {step_id}: {e}")
        return False

    return True
