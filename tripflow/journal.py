"""
Travel journal entries and their media for TripFlow.

Entries belong to a trip and may point at one of its steps. Media rows
(photos, audio) belong to an entry and are removed with it.
"""

import sqlite3
import logging
from datetime import date, datetime
from typing import Optional, List, Tuple, Union

from tripflow.db import DB_ERRORS, get_db, merge_fields
from tripflow.models import JournalEntry, JournalMedia, MediaType

logger = logging.getLogger("tripflow.journal")

ENTRY_UPDATE_FIELDS = ("step_id", "title", "content", "entry_date")


def format_entry_date(value: Union[str, date, datetime, None]) -> Optional[str]:
    """Normalize a date or datetime to YYYY-MM-DD; strings pass through."""
    if isinstance(value, (date, datetime)):
        return value.strftime("%Y-%m-%d")
    return value


def _row_to_entry(row: sqlite3.Row) -> JournalEntry:
    return JournalEntry(
        id=row["id"],
        trip_id=row["trip_id"],
        step_id=row["step_id"],
        title=row["title"],
        content=row["content"],
        entry_date=row["entry_date"],
        created_at=row["created_at"],
    )


def _row_to_media(row: sqlite3.Row) -> JournalMedia:
    # Rows written by older builds may carry a type we no longer know
    try:
        media_type = MediaType(row["media_type"])
    except ValueError:
        media_type = row["media_type"]
    return JournalMedia(
        id=row["id"],
        entry_id=row["entry_id"],
        media_type=media_type,
        uri=row["uri"],
        description=row["description"],
        created_at=row["created_at"],
    )


# ─────────────────────────── ENTRIES ───────────────────────────

async def create_journal_entry(
    trip_id: int,
    title: str,
    entry_date: Union[str, date, datetime],
    content: str = None,
    step_id: int = None,
) -> Tuple[bool, Optional[int]]:
    """Add a journal entry. Returns (success, new entry id)."""
    conn = get_db()
    try:
        cur = conn.execute("""
            INSERT INTO journal_entries (trip_id, step_id, title, content, entry_date)
            VALUES (?, ?, ?, ?, ?)
        """, (trip_id, step_id, title, content, format_entry_date(entry_date)))
        conn.commit()
    except DB_ERRORS as e:
        conn.rollback()
        logger.error(f"SQLite error adding journal entry to trip {trip_id}: {e}")
        return False, None

    return True, cur.lastrowid


async def get_journal_entries_by_trip(trip_id: int) -> List[JournalEntry]:
    """Entries for a trip, most recent diary date first."""
    try:
        rows = get_db().execute("""
            SELECT * FROM journal_entries
            WHERE trip_id = ?
            ORDER BY entry_date DESC, created_at DESC, id DESC
        """, (trip_id,)).fetchall()
    except DB_ERRORS as e:
        logger.error(f"SQLite error listing journal entries for trip {trip_id}: {e}")
        return []
    return [_row_to_entry(row) for row in rows]


async def get_journal_entries_by_step(step_id: int) -> List[JournalEntry]:
    """Entries tied to one step, most recent diary date first."""
    try:
        rows = get_db().execute("""
            SELECT * FROM journal_entries
            WHERE step_id = ?
            ORDER BY entry_date DESC, created_at DESC, id DESC
        """, (step_id,)).fetchall()
    except DB_ERRORS as e:
        logger.error(f"SQLite error listing journal entries for step {step_id}: {e}")
        return []
    return [_row_to_entry(row) for row in rows]


async def get_journal_entry(entry_id: int) -> Optional[JournalEntry]:
    try:
        row = get_db().execute("SELECT * FROM journal_entries WHERE id = ?", (entry_id,)).fetchone()
    except DB_ERRORS as e:
        logger.error(f"SQLite error reading journal entry {entry_id}: {e}")
        return None

    if not row:
        return None
    return _row_to_entry(row)


async def update_journal_entry(entry_id: int, **kwargs) -> bool:
    """
    Partially update an entry. The trip cannot be changed, and step_id can
    be moved to another step but not cleared through here.
    """
    if "entry_date" in kwargs:
        kwargs["entry_date"] = format_entry_date(kwargs["entry_date"])

    conn = get_db()
    try:
        current = conn.execute("SELECT * FROM journal_entries WHERE id = ?", (entry_id,)).fetchone()
        if not current:
            return False

        merged = merge_fields(current, kwargs, ENTRY_UPDATE_FIELDS)
        conn.execute("""
            UPDATE journal_entries SET
                step_id = ?, title = ?, content = ?, entry_date = ?
            WHERE id = ?
        """, (merged["step_id"], merged["title"], merged["content"], merged["entry_date"], entry_id))
        conn.commit()
    except DB_ERRORS as e:
        conn.rollback()
        logger.error(f"SQLite error updating journal entry {entry_id}: {e}")
        return False

    return True


async def delete_journal_entry(entry_id: int) -> bool:
    """Delete an entry; its media are removed by cascade."""
    conn = get_db()
    try:
        conn.execute("DELETE FROM journal_entries WHERE id = ?", (entry_id,))
        conn.commit()
    except DB_ERRORS as e:
        conn.rollback()
        logger.error(f"SQLite error deleting journal entry {entry_id}: {e}")
        return False

    return True


# ─────────────────────────── MEDIA ───────────────────────────

async def add_journal_media(
    entry_id: int,
    media_type: Union[str, MediaType],
    uri: str,
    description: str = None,
) -> Tuple[bool, Optional[int]]:
    """
    Attach one media item to an entry. Returns (success, new media id).

    Each call is its own insert; callers adding several items decide how
    to report a partial failure.
    """
    try:
        media_type = MediaType(media_type)
    except ValueError:
        logger.warning(f"Rejected journal media with unknown type {media_type!r}")
        return False, None

    conn = get_db()
    try:
        cur = conn.execute("""
            INSERT INTO journal_media (entry_id, media_type, uri, description)
            VALUES (?, ?, ?, ?)
        """, (entry_id, media_type.value, uri, description))
        conn.commit()
    except DB_ERRORS as e:
        conn.rollback()
        logger.error(f"SQLite error adding media to journal entry {entry_id}: {e}")
        return False, None

    return True, cur.lastrowid


async def get_journal_media(entry_id: int) -> List[JournalMedia]:
    """Media for an entry, oldest first."""
    try:
        rows = get_db().execute("""
            SELECT * FROM journal_media
            WHERE entry_id = ?
            ORDER BY created_at ASC, id ASC
        """, (entry_id,)).fetchall()
    except DB_ERRORS as e:
        logger.error(f"SQLite error listing media for journal entry {entry_id}: {e}")
        return []
    return [_row_to_media(row) for row in rows]


async def delete_journal_media(media_id: int) -> bool:
    conn = get_db()
    try:
        conn.execute("DELETE FROM journal_media WHERE id = ?", (media_id,))
        conn.commit()
    except DB_ERRORS as e:
        conn.rollback()
        logger.error(f"SQLite error deleting journal media {media_id}: {e}")
        return False

    return True
