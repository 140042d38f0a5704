"""
JSON API over the TripFlow data layer.

Each route calls one or a few DAL functions and turns their success flag
or value into a response. Screens talk to this router; it adds no
business rules beyond request parsing (budget fallback, bulk media).
"""

import os
import math
import sqlite3
import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from tripflow import auth, checklists, journal, trips
from tripflow.db import reset_db
from tripflow.geocoding import geocode_destination

logger = logging.getLogger("tripflow.api")

router = APIRouter(prefix="/api", tags=["tripflow"])

TRIP_FIELDS = ("title", "destination", "start_date", "end_date", "budget", "notes", "image_uri")
STEP_FIELDS = ("name", "location", "start_date", "end_date", "description")
ENTRY_FIELDS = ("step_id", "title", "content", "entry_date")
CHECKLIST_FIELDS = ("title", "description")
ITEM_FIELDS = ("text", "is_checked")


def reset_allowed() -> bool:
    return os.getenv("ALLOW_DB_RESET", "0") == "1"


# ─────────────────────────── HELPERS ───────────────────────────

def parse_budget(value: Any) -> float:
    """Form budgets arrive as free text; anything unparseable or non-finite becomes 0."""
    try:
        budget = float(value)
    except (TypeError, ValueError, OverflowError):
        return 0.0
    # inf and NaN cannot be rendered as JSON
    if not math.isfinite(budget):
        return 0.0
    return budget


def parse_checked(value: Any) -> Optional[bool]:
    """JSON booleans or 0/1 only; anything else (including "false") is None."""
    if isinstance(value, bool):
        return value
    if isinstance(value, int) and value in (0, 1):
        return bool(value)
    return None


def pick(data: Dict[str, Any], fields) -> Dict[str, Any]:
    """Keep only the known keys the client actually sent."""
    return {k: data[k] for k in fields if k in data}


async def read_json(request: Request) -> Optional[Dict[str, Any]]:
    try:
        data = await request.json()
    except ValueError:
        return None
    return data if isinstance(data, dict) else None


def bad_request(message: str, status_code: int = 400) -> JSONResponse:
    return JSONResponse({"success": False, "error": message}, status_code=status_code)


def not_found(what: str) -> JSONResponse:
    return JSONResponse({"error": f"{what} not found"}, status_code=404)


def write_result(success: bool, failure_message: str, **extra) -> JSONResponse:
    if not success:
        return bad_request(failure_message)
    return JSONResponse({"success": True, **extra})


# ─────────────────────────── AUTH ───────────────────────────

@router.post("/auth/signup")
async def signup(request: Request):
    data = await read_json(request)
    if not data or not data.get("username") or not data.get("password"):
        return bad_request("Username and password are required")

    ok = await auth.create_user(data["username"], data["password"])
    return write_result(ok, "Could not create account")


@router.post("/auth/login")
async def login(request: Request):
    data = await read_json(request)
    if not data:
        return bad_request("Username and password are required")

    ok = await auth.authenticate_user(data.get("username") or "", data.get("password") or "")
    if not ok:
        return JSONResponse({"success": False, "error": "Invalid credentials"}, status_code=401)
    return JSONResponse({"success": True})


# ─────────────────────────── TRIPS ───────────────────────────

@router.get("/trips")
async def list_trips():
    items = await trips.get_trips()
    return JSONResponse({"trips": [t.to_dict() for t in items]})


@router.post("/trips")
async def create_trip(request: Request):
    data = await read_json(request)
    if data is None:
        return bad_request("Invalid JSON body")

    fields = pick(data, TRIP_FIELDS)
    fields["budget"] = parse_budget(fields.get("budget"))
    ok, trip_id = await trips.create_trip(**{"title": None, **fields})
    return write_result(ok, "Could not create trip", trip_id=trip_id)


@router.get("/trips/{trip_id}")
async def get_trip(trip_id: int):
    trip = await trips.get_trip(trip_id)
    if not trip:
        return not_found("Trip")
    return JSONResponse({"trip": trip.to_dict()})


@router.put("/trips/{trip_id}")
async def update_trip(trip_id: int, request: Request):
    data = await read_json(request)
    if data is None:
        return bad_request("Invalid JSON body")

    fields = pick(data, TRIP_FIELDS)
    if "budget" in fields and fields["budget"] not in (None, ""):
        fields["budget"] = parse_budget(fields["budget"])
    else:
        fields.pop("budget", None)
    ok = await trips.update_trip(trip_id, **fields)
    return write_result(ok, "Could not update trip")


@router.delete("/trips/{trip_id}")
async def delete_trip(trip_id: int):
    ok = await trips.delete_trip(trip_id)
    return write_result(ok, "Could not delete trip")


@router.get("/trips/{trip_id}/details")
async def trip_details(trip_id: int):
    """Trip with its steps and every checklist's items, as the detail screen shows it."""
    trip = await trips.get_trip(trip_id)
    if not trip:
        return not_found("Trip")

    steps = await trips.get_trip_steps(trip_id)
    lists = []
    for checklist in await checklists.get_checklists(trip_id):
        items = await checklists.get_checklist_items(checklist.id)
        lists.append({**checklist.to_dict(), "items": [i.to_dict() for i in items]})

    return JSONResponse({
        "trip": trip.to_dict(),
        "steps": [s.to_dict() for s in steps],
        "checklists": lists,
    })


@router.get("/trips/{trip_id}/location")
async def trip_location(trip_id: int):
    """Coordinates for the trip's destination; null when they cannot be resolved."""
    trip = await trips.get_trip(trip_id)
    if not trip:
        return not_found("Trip")

    coords = await geocode_destination(trip.destination or "")
    return JSONResponse({"coordinates": coords.to_dict() if coords else None})


# ─────────────────────────── STEPS ───────────────────────────

@router.get("/trips/{trip_id}/steps")
async def list_steps(trip_id: int):
    steps = await trips.get_trip_steps(trip_id)
    return JSONResponse({"steps": [s.to_dict() for s in steps]})


@router.post("/trips/{trip_id}/steps")
async def create_step(trip_id: int, request: Request):
    data = await read_json(request)
    if not data or not data.get("name"):
        return bad_request("Step name is required")

    ok, step_id = await trips.create_trip_step(trip_id, **pick(data, STEP_FIELDS))
    return write_result(ok, "Could not add step", step_id=step_id)


@router.get("/steps/{step_id}")
async def get_step(step_id: int):
    step = await trips.get_trip_step(step_id)
    if not step:
        return not_found("Step")
    return JSONResponse({"step": step.to_dict()})


@router.put("/steps/{step_id}")
async def update_step(step_id: int, request: Request):
    data = await read_json(request)
    if data is None:
        return bad_request("Invalid JSON body")

    ok = await trips.update_trip_step(step_id, **pick(data, STEP_FIELDS))
    return write_result(ok, "Could not update step")


@router.delete("/steps/{step_id}")
async def delete_step(step_id: int):
    ok = await trips.delete_trip_step(step_id)
    return write_result(ok, "Could not delete step")


@router.get("/steps/{step_id}/journal")
async def list_step_journal(step_id: int):
    entries = await journal.get_journal_entries_by_step(step_id)
    return JSONResponse({"entries": [e.to_dict() for e in entries]})


# ─────────────────────────── JOURNAL ───────────────────────────

@router.get("/trips/{trip_id}/journal")
async def list_trip_journal(trip_id: int):
    entries = await journal.get_journal_entries_by_trip(trip_id)
    return JSONResponse({"entries": [e.to_dict() for e in entries]})


@router.post("/trips/{trip_id}/journal")
async def create_entry(trip_id: int, request: Request):
    data = await read_json(request)
    title = data.get("title") if data else None
    if not isinstance(title, str) or not title.strip():
        return bad_request("Entry title is required")
    if not data.get("entry_date"):
        return bad_request("Entry date is required")

    ok, entry_id = await journal.create_journal_entry(trip_id, **pick(data, ENTRY_FIELDS))
    return write_result(ok, "Could not add journal entry", entry_id=entry_id)


@router.get("/journal/{entry_id}")
async def get_entry(entry_id: int):
    """Entry with its media and, when still linked, its step."""
    entry = await journal.get_journal_entry(entry_id)
    if not entry:
        return not_found("Journal entry")

    media = await journal.get_journal_media(entry_id)
    step = await trips.get_trip_step(entry.step_id) if entry.step_id else None
    return JSONResponse({
        "entry": entry.to_dict(),
        "media": [m.to_dict() for m in media],
        "step": step.to_dict() if step else None,
    })


@router.put("/journal/{entry_id}")
async def update_entry(entry_id: int, request: Request):
    data = await read_json(request)
    if data is None:
        return bad_request("Invalid JSON body")

    ok = await journal.update_journal_entry(entry_id, **pick(data, ENTRY_FIELDS))
    return write_result(ok, "Could not update journal entry")


@router.delete("/journal/{entry_id}")
async def delete_entry(entry_id: int):
    ok = await journal.delete_journal_entry(entry_id)
    return write_result(ok, "Could not delete journal entry")


@router.get("/journal/{entry_id}/media")
async def list_media(entry_id: int):
    media = await journal.get_journal_media(entry_id)
    return JSONResponse({"media": [m.to_dict() for m in media]})


@router.post("/journal/{entry_id}/media")
async def add_media(entry_id: int, request: Request):
    """
    Attach one or more media items: {"media": [{media_type, uri, description}, ...]}.

    Items are inserted one by one and each gets its own result, so a
    partial failure is visible to the client.
    """
    data = await read_json(request)
    if not data or not isinstance(data.get("media"), list):
        return bad_request("Expected a 'media' list")

    results = []
    for item in data["media"]:
        if not isinstance(item, dict) or not item.get("uri"):
            results.append({"success": False, "media_id": None})
            continue
        ok, media_id = await journal.add_journal_media(
            entry_id,
            item.get("media_type", "image"),
            item["uri"],
            item.get("description"),
        )
        results.append({"success": ok, "media_id": media_id})

    failed = sum(1 for r in results if not r["success"])
    if failed:
        logger.warning(f"{failed} of {len(results)} media failed for journal entry {entry_id}")
    return JSONResponse({"success": failed == 0, "results": results})


@router.delete("/media/{media_id}")
async def delete_media(media_id: int):
    ok = await journal.delete_journal_media(media_id)
    return write_result(ok, "Could not delete media")


# ─────────────────────────── CHECKLISTS ───────────────────────────

@router.get("/trips/{trip_id}/checklists")
async def list_checklists(trip_id: int):
    lists = await checklists.get_checklists(trip_id)
    return JSONResponse({"checklists": [c.to_dict() for c in lists]})


@router.post("/trips/{trip_id}/checklists")
async def create_checklist(trip_id: int, request: Request):
    data = await read_json(request)
    if not data or not data.get("title"):
        return bad_request("Checklist title is required")

    ok, checklist_id = await checklists.create_checklist(trip_id, **pick(data, CHECKLIST_FIELDS))
    return write_result(ok, "Could not add checklist", checklist_id=checklist_id)


@router.get("/checklists/{checklist_id}")
async def get_checklist(checklist_id: int):
    checklist = await checklists.get_checklist(checklist_id)
    if not checklist:
        return not_found("Checklist")

    items = await checklists.get_checklist_items(checklist_id)
    return JSONResponse({"checklist": {**checklist.to_dict(), "items": [i.to_dict() for i in items]}})


@router.put("/checklists/{checklist_id}")
async def update_checklist(checklist_id: int, request: Request):
    data = await read_json(request)
    if data is None:
        return bad_request("Invalid JSON body")

    ok = await checklists.update_checklist(checklist_id, **pick(data, CHECKLIST_FIELDS))
    return write_result(ok, "Could not update checklist")


@router.delete("/checklists/{checklist_id}")
async def delete_checklist(checklist_id: int):
    ok = await checklists.delete_checklist(checklist_id)
    return write_result(ok, "Could not delete checklist")


@router.get("/checklists/{checklist_id}/items")
async def list_items(checklist_id: int):
    items = await checklists.get_checklist_items(checklist_id)
    return JSONResponse({"items": [i.to_dict() for i in items]})


@router.post("/checklists/{checklist_id}/items")
async def create_item(checklist_id: int, request: Request):
    data = await read_json(request)
    if not data or not data.get("text"):
        return bad_request("Item text is required")

    is_checked = parse_checked(data.get("is_checked", False))
    if is_checked is None:
        return bad_request("is_checked must be true, false, 0 or 1")

    ok, item_id = await checklists.create_checklist_item(checklist_id, data["text"], is_checked)
    return write_result(ok, "Could not add item", item_id=item_id)


@router.put("/items/{item_id}")
async def update_item(item_id: int, request: Request):
    data = await read_json(request)
    if data is None:
        return bad_request("Invalid JSON body")

    fields = pick(data, ITEM_FIELDS)
    if fields.get("is_checked") is not None:
        fields["is_checked"] = parse_checked(fields["is_checked"])
        if fields["is_checked"] is None:
            return bad_request("is_checked must be true, false, 0 or 1")
    ok = await checklists.update_checklist_item(item_id, **fields)
    return write_result(ok, "Could not update item")


@router.post("/items/{item_id}/toggle")
async def toggle_item(item_id: int):
    ok = await checklists.toggle_checklist_item(item_id)
    return write_result(ok, "Could not toggle item")


@router.delete("/items/{item_id}")
async def delete_item(item_id: int):
    ok = await checklists.delete_checklist_item(item_id)
    return write_result(ok, "Could not delete item")


# ─────────────────────────── MAINTENANCE ───────────────────────────

@router.post("/admin/reset")
async def reset_database():
    """Drop and recreate every table. Only available with ALLOW_DB_RESET=1."""
    if not reset_allowed():
        return JSONResponse({"error": "Reset is disabled"}, status_code=403)

    try:
        await reset_db()
    except sqlite3.Error as e:
        return JSONResponse({"success": False, "error": f"Reset failed: {e}"}, status_code=500)
    return JSONResponse({"success": True})
