"""
Packing and task checklists for TripFlow.

is_checked is stored as INTEGER 0/1. Conversion happens only here:
reads always hand back a bool and writes always store 0 or 1.
"""

import sqlite3
import logging
from typing import Optional, List, Tuple

from tripflow.db import DB_ERRORS, get_db, merge_fields
from tripflow.models import Checklist, ChecklistItem

logger = logging.getLogger("tripflow.checklists")

CHECKLIST_UPDATE_FIELDS = ("title", "description")


def _row_to_checklist(row: sqlite3.Row) -> Checklist:
    return Checklist(
        id=row["id"],
        trip_id=row["trip_id"],
        title=row["title"],
        description=row["description"],
        created_at=row["created_at"],
    )


def _row_to_item(row: sqlite3.Row) -> ChecklistItem:
    return ChecklistItem(
        id=row["id"],
        checklist_id=row["checklist_id"],
        text=row["text"],
        is_checked=bool(row["is_checked"]),
        created_at=row["created_at"],
    )


# ─────────────────────────── CHECKLISTS ───────────────────────────

async def create_checklist(trip_id: int, title: str, description: str = None) -> Tuple[bool, Optional[int]]:
    """Add a checklist to a trip. Returns (success, new checklist id)."""
    conn = get_db()
    try:
        cur = conn.execute(
            "INSERT INTO checklists (trip_id, title, description) VALUES (?, ?, ?)",
            (trip_id, title, description)
        )
        conn.commit()
    except DB_ERRORS as e:
        conn.rollback()
        logger.error(f"SQLite error adding checklist to trip {trip_id}: {e}")
        return False, None

    return True, cur.lastrowid


async def get_checklists(trip_id: int) -> List[Checklist]:
    """A trip's checklists, oldest first."""
    try:
        rows = get_db().execute(
            "SELECT * FROM checklists WHERE trip_id = ? ORDER BY created_at ASC, id ASC",
            (trip_id,)
        ).fetchall()
    except DB_ERRORS as e:
        logger.error(f"SQLite error listing checklists for trip {trip_id}: {e}")
        return []
    return [_row_to_checklist(row) for row in rows]


async def get_checklist(checklist_id: int) -> Optional[Checklist]:
    try:
        row = get_db().execute("SELECT * FROM checklists WHERE id = ?", (checklist_id,)).fetchone()
    except DB_ERRORS as e:
        logger.error(f"SQLite error reading checklist {checklist_id}: {e}")
        return None

    if not row:
        return None
    return _row_to_checklist(row)


async def update_checklist(checklist_id: int, **kwargs) -> bool:
    """Partially update title/description."""
    conn = get_db()
    try:
        current = conn.execute("SELECT * FROM checklists WHERE id = ?", (checklist_id,)).fetchone()
        if not current:
            return False

        merged = merge_fields(current, kwargs, CHECKLIST_UPDATE_FIELDS)
        conn.execute(
            "UPDATE checklists SET title = ?, description = ? WHERE id = ?",
            (merged["title"], merged["description"], checklist_id)
        )
        conn.commit()
    except DB_ERRORS as e:
        conn.rollback()
        logger.error(f"SQLite error updating checklist {checklist_id}: {e}")
        return False

    return True


async def delete_checklist(checklist_id: int) -> bool:
    """Delete a checklist and, by cascade, its items."""
    conn = get_db()
    try:
        conn.execute("DELETE FROM checklists WHERE id = ?", (checklist_id,))
        conn.commit()
    except DB_ERRORS as e:
        conn.rollback()
        logger.error(f"SQLite error deleting checklist {checklist_id}: {e}")
        return False

    return True


# ─────────────────────────── ITEMS ───────────────────────────

async def create_checklist_item(checklist_id: int, text: str, is_checked: bool = False) -> Tuple[bool, Optional[int]]:
    conn = get_db()
    try:
        cur = conn.execute(
            "INSERT INTO checklist_items (checklist_id, text, is_checked) VALUES (?, ?, ?)",
            (checklist_id, text, 1 if is_checked else 0)
        )
        conn.commit()
    except DB_ERRORS as e:
        conn.rollback()
        logger.error(f"SQLite error adding item to checklist {checklist_id}: {e}")
        return False, None

    return True, cur.lastrowid


async def get_checklist_items(checklist_id: int) -> List[ChecklistItem]:
    """Items of a checklist, oldest first, with is_checked as a bool."""
    try:
        rows = get_db().execute(
            "SELECT * FROM checklist_items WHERE checklist_id = ? ORDER BY created_at ASC, id ASC",
            (checklist_id,)
        ).fetchall()
    except DB_ERRORS as e:
        logger.error(f"SQLite error listing items for checklist {checklist_id}: {e}")
        return []
    return [_row_to_item(row) for row in rows]


async def get_checklist_item(item_id: int) -> Optional[ChecklistItem]:
    try:
        row = get_db().execute("SELECT * FROM checklist_items WHERE id = ?", (item_id,)).fetchone()
    except DB_ERRORS as e:
        logger.error(f"SQLite error reading checklist item {item_id}: {e}")
        return None

    if not row:
        return None
    return _row_to_item(row)


async def update_checklist_item(item_id: int, text: str = None, is_checked: bool = None) -> bool:
    """Partially update an item; an omitted field keeps its stored value."""
    conn = get_db()
    try:
        current = conn.execute("SELECT * FROM checklist_items WHERE id = ?", (item_id,)).fetchone()
        if not current:
            return False

        new_text = text if text is not None else current["text"]
        checked = is_checked if is_checked is not None else bool(current["is_checked"])
        conn.execute(
            "UPDATE checklist_items SET text = ?, is_checked = ? WHERE id = ?",
            (new_text, 1 if checked else 0, item_id)
        )
        conn.commit()
    except DB_ERRORS as e:
        conn.rollback()
        logger.error(f"SQLite error updating checklist item {item_id}: {e}")
        return False

    return True


async def toggle_checklist_item(item_id: int) -> bool:
    """
    Flip is_checked on an item.

    Read then write, not a single UPDATE: two callers toggling the same
    item at once can both read the same state, and the last write wins.
    Returns False when the item does not exist.
    """
    conn = get_db()
    try:
        current = conn.execute(
            "SELECT is_checked FROM checklist_items WHERE id = ?", (item_id,)
        ).fetchone()
        if not current:
            return False

        new_state = not bool(current["is_checked"])
        conn.execute(
            "UPDATE checklist_items SET is_checked = ? WHERE id = ?",
            (1 if new_state else 0, item_id)
        )
        conn.commit()
    except DB_ERRORS as e:
        conn.rollback()
        logger.error(f"SQLite error toggling checklist item {item_id}: {e}")
        return False

    return True


async def delete_checklist_item(item_id: int) -> bool:
    conn = get_db()
    try:
        conn.execute("DELETE FROM checklist_items WHERE id = ?", (item_id,))
        conn.commit()
    except DB_ERRORS as e:
        conn.rollback()
        logger.error(f"SQLite error deleting checklist item {item_id}: {e}")
        return False

    return True
