"""
Data classes and schema definitions for TripFlow.

This module defines:
- Users (plaintext credentials, see auth.py)
- Trips and their itinerary steps
- Checklists and checklist items
- Journal entries and their attached media
"""

from dataclasses import dataclass, asdict
from typing import Optional, Dict, Any
from enum import Enum


# ─────────────────────────── ENUMS ───────────────────────────

class MediaType(str, Enum):
    """Kinds of media attachable to a journal entry"""
    IMAGE = "image"
    AUDIO = "audio"


# ─────────────────────────── DATA CLASSES ───────────────────────────

@dataclass
class User:
    """A local account. Password is stored as entered."""
    id: int
    username: str
    password: str

    def to_dict(self) -> Dict[str, Any]:
        # Never hand the password back out
        return {'id': self.id, 'username': self.username}


@dataclass
class Trip:
    """Top-level planned journey"""
    id: int
    title: str
    destination: Optional[str] = None
    start_date: Optional[str] = None  # ISO date
    end_date: Optional[str] = None    # ISO date
    budget: Optional[float] = None
    notes: Optional[str] = None
    image_uri: Optional[str] = None   # Local file reference
    created_at: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class TripStep:
    """A dated stop or activity within a trip"""
    id: int
    trip_id: int
    name: str
    location: Optional[str] = None
    start_date: Optional[str] = None
    end_date: Optional[str] = None
    description: Optional[str] = None
    created_at: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class JournalEntry:
    """A diary record for a trip, optionally tied to one step"""
    id: int
    trip_id: int
    title: str
    entry_date: str  # YYYY-MM-DD
    step_id: Optional[int] = None
    content: Optional[str] = None
    created_at: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class JournalMedia:
    """A photo or audio clip attached to a journal entry"""
    id: int
    entry_id: int
    media_type: MediaType
    uri: str
    description: Optional[str] = None
    created_at: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'entry_id': self.entry_id,
            'media_type': self.media_type.value if isinstance(self.media_type, MediaType) else self.media_type,
            'uri': self.uri,
            'description': self.description,
            'created_at': self.created_at,
        }


@dataclass
class Checklist:
    """A named todo/packing list scoped to a trip"""
    id: int
    trip_id: int
    title: str
    description: Optional[str] = None
    created_at: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class ChecklistItem:
    """One line of a checklist"""
    id: int
    checklist_id: int
    text: str
    is_checked: bool = False
    created_at: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


# ─────────────────────────── SQL SCHEMAS ───────────────────────────

# These are used by init_db() in db.py

USERS_TABLE = """
CREATE TABLE IF NOT EXISTS users (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    username TEXT NOT NULL,
    password TEXT NOT NULL
);
"""

# user_id is never populated; kept so existing databases stay compatible
TRIPS_TABLE = """
CREATE TABLE IF NOT EXISTS trips (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    title TEXT NOT NULL,
    destination TEXT,
    start_date TEXT,
    end_date TEXT,
    budget REAL,
    notes TEXT,
    image_uri TEXT,
    user_id INTEGER,
    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
    FOREIGN KEY(user_id) REFERENCES users(id)
);
"""

TRIP_STEPS_TABLE = """
CREATE TABLE IF NOT EXISTS trip_steps (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    trip_id INTEGER NOT NULL,
    name TEXT NOT NULL,
    location TEXT,
    start_date TEXT,
    end_date TEXT,
    description TEXT,
    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
    FOREIGN KEY(trip_id) REFERENCES trips(id) ON DELETE CASCADE
);
"""

JOURNAL_ENTRIES_TABLE = """
CREATE TABLE IF NOT EXISTS journal_entries (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    trip_id INTEGER NOT NULL,
    step_id INTEGER,
    title TEXT NOT NULL,
    content TEXT,
    entry_date TEXT NOT NULL,
    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
    FOREIGN KEY(trip_id) REFERENCES trips(id) ON DELETE CASCADE,
    FOREIGN KEY(step_id) REFERENCES trip_steps(id) ON DELETE SET NULL
);
"""

JOURNAL_MEDIA_TABLE = """
CREATE TABLE IF NOT EXISTS journal_media (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    entry_id INTEGER NOT NULL,
    media_type TEXT NOT NULL,
    uri TEXT NOT NULL,
    description TEXT,
    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
    FOREIGN KEY(entry_id) REFERENCES journal_entries(id) ON DELETE CASCADE
);
"""

CHECKLISTS_TABLE = """
CREATE TABLE IF NOT EXISTS checklists (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    trip_id INTEGER NOT NULL,
    title TEXT NOT NULL,
    description TEXT,
    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
    FOREIGN KEY(trip_id) REFERENCES trips(id) ON DELETE CASCADE
);
"""

CHECKLIST_ITEMS_TABLE = """
CREATE TABLE IF NOT EXISTS checklist_items (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    checklist_id INTEGER NOT NULL,
    text TEXT NOT NULL,
    is_checked INTEGER NOT NULL DEFAULT 0,
    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
    FOREIGN KEY(checklist_id) REFERENCES checklists(id) ON DELETE CASCADE
);
"""

# Index definitions for the per-parent listings
INDEXES = [
    "CREATE INDEX IF NOT EXISTS idx_users_username ON users(username);",
    "CREATE INDEX IF NOT EXISTS idx_trip_steps_trip ON trip_steps(trip_id);",
    "CREATE INDEX IF NOT EXISTS idx_journal_entries_trip ON journal_entries(trip_id);",
    "CREATE INDEX IF NOT EXISTS idx_journal_entries_step ON journal_entries(step_id);",
    "CREATE INDEX IF NOT EXISTS idx_journal_media_entry ON journal_media(entry_id);",
    "CREATE INDEX IF NOT EXISTS idx_checklists_trip ON checklists(trip_id);",
    "CREATE INDEX IF NOT EXISTS idx_checklist_items_checklist ON checklist_items(checklist_id);",
]

# Parents before children
ALL_TABLES = [
    USERS_TABLE,
    TRIPS_TABLE,
    TRIP_STEPS_TABLE,
    JOURNAL_ENTRIES_TABLE,
    JOURNAL_MEDIA_TABLE,
    CHECKLISTS_TABLE,
    CHECKLIST_ITEMS_TABLE,
]

# Children before parents
DROP_ORDER = [
    "checklist_items",
    "checklists",
    "journal_media",
    "journal_entries",
    "trip_steps",
    "trips",
    "users",
]
