"""
Local sign-up and sign-in for TripFlow.

Credentials are stored and compared as plain text, with no hashing, no
rate limiting and no username uniqueness. This matches the existing app
and must be hardened before any deployment beyond a single device.
"""

import sqlite3
import logging

from tripflow.db import DB_ERRORS, get_db
from tripflow.models import User

logger = logging.getLogger("tripflow.auth")


def _row_to_user(row: sqlite3.Row) -> User:
    return User(id=row["id"], username=row["username"], password=row["password"])


async def authenticate_user(username: str, password: str) -> bool:
    """True iff some stored row matches both username and password exactly."""
    try:
        rows = get_db().execute(
            "SELECT id, username, password FROM users WHERE username = ?",
            (username,)
        ).fetchall()
    except DB_ERRORS as e:
        logger.error(f"SQLite error during authentication: {e}")
        return False

    # Duplicate usernames are allowed, so any matching account will do
    return any(_row_to_user(row).password == password for row in rows)


async def create_user(username: str, password: str) -> bool:
    """Insert a credential row. Duplicate usernames are accepted."""
    conn = get_db()
    try:
        conn.execute(
            "INSERT INTO users (username, password) VALUES (?, ?)",
            (username, password)
        )
        conn.commit()
    except DB_ERRORS as e:
        conn.rollback()
        logger.error(f"SQLite error creating user: {e}")
        return False

    logger.info(f"User created: {username}")
    return True
