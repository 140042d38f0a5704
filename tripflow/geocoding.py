"""
Destination geocoding via OpenStreetMap Nominatim.

Best effort only: any failure yields None so the caller can simply skip
the map. Nothing here touches the database.
"""

import os
import logging
from dataclasses import dataclass
from typing import Optional
from urllib.parse import quote

import httpx

logger = logging.getLogger("tripflow.geocoding")

GEOCODING_URL = os.getenv("GEOCODING_URL", "https://nominatim.openstreetmap.org/search")
# Nominatim's usage policy requires an identifying User-Agent
GEOCODING_USER_AGENT = os.getenv("GEOCODING_USER_AGENT", "TripFlow-App/1.0")
GEOCODING_TIMEOUT = float(os.getenv("GEOCODING_TIMEOUT", "10"))


@dataclass
class Coordinates:
    lat: float
    lon: float

    def to_dict(self):
        return {"lat": self.lat, "lon": self.lon}


def _headers():
    return {
        "User-Agent": GEOCODING_USER_AGENT,
        "Accept": "application/json",
    }


def _parse_first_result(data) -> Optional[Coordinates]:
    if not isinstance(data, list) or not data:
        return None
    first = data[0]
    if not isinstance(first, dict):
        return None
    try:
        return Coordinates(lat=float(first["lat"]), lon=float(first["lon"]))
    except (KeyError, TypeError, ValueError):
        return None


async def geocode_destination(destination: str, client: Optional[httpx.AsyncClient] = None) -> Optional[Coordinates]:
    """
    Look up coordinates for a free-text destination.

    Returns None for a blank destination, a non-2xx response, a body that
    is not a non-empty JSON array, or unparseable lat/lon. Pass `client`
    to reuse a connection pool; otherwise a short-lived one is created.
    """
    if not destination or not destination.strip():
        return None

    url = f"{GEOCODING_URL}?format=json&q={quote(destination, safe='')}"
    try:
        if client is not None:
            response = await client.get(url, headers=_headers())
        else:
            async with httpx.AsyncClient(timeout=GEOCODING_TIMEOUT) as own_client:
                response = await own_client.get(url, headers=_headers())
        response.raise_for_status()
        data = response.json()
    except httpx.HTTPStatusError as e:
        logger.warning(f"Geocoding {destination!r} failed with HTTP {e.response.status_code}")
        return None
    except httpx.HTTPError as e:
        logger.warning(f"Geocoding request for {destination!r} failed: {e}")
        return None
    except ValueError as e:
        logger.warning(f"Geocoding response for {destination!r} was not JSON: {e}")
        return None

    coords = _parse_first_result(data)
    if coords is None:
        logger.info(f"No coordinates found for {destination!r}")
    return coords
