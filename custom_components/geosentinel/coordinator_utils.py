"""
Low-level utility functions for the GeoSentinel coordinator.

Responsibilities:
- Great-circle distance between two coordinates (Haversine).
- Fetch the administrative municipality for a coordinate from the Géorisques API.

No HA imports — these functions are pure data / network primitives.
"""
from __future__ import annotations

import asyncio
import logging
import math

import aiohttp

from .const import EARTH_RADIUS_KM, GEORISQUES_URL, GEORISQUES_RADIUS, GEORISQUES_TIMEOUT

_LOGGER = logging.getLogger(__name__)


def distance_meters(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """
    Return the Haversine distance in metres between two coordinates.

    The haversine term is clamped to [0, 1] so rounding on near-identical
    points cannot produce NaN.
    """
    lat1_rad = math.radians(lat1)
    lat2_rad = math.radians(lat2)
    dlat = math.radians(lat2 - lat1)
    dlon = math.radians(lon2 - lon1)

    a = (
        math.sin(dlat / 2) ** 2
        + math.cos(lat1_rad) * math.cos(lat2_rad) * math.sin(dlon / 2) ** 2
    )
    a = min(1.0, max(0.0, a))
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return EARTH_RADIUS_KM * c * 1000


async def fetch_municipality(lat: float, lng: float) -> str | None:
    """
    Return the municipality name (libelle_commune) at the given coordinates.

    Queries the GASPAR endpoint of the Géorisques registry. Note the registry
    expects "lng,lat" order. Returns None on any error or empty payload so
    callers can leave their persisted state untouched.
    """
    params = {"latlon": f"{lng},{lat}", "rayon": GEORISQUES_RADIUS}
    headers = {"accept": "application/json"}
    timeout = aiohttp.ClientTimeout(total=GEORISQUES_TIMEOUT)

    try:
        async with aiohttp.ClientSession(timeout=timeout) as session:
            async with session.get(GEORISQUES_URL, headers=headers, params=params) as resp:
                if resp.status != 200:
                    _LOGGER.warning(
                        "Géorisques API returned HTTP %s for (%.5f, %.5f)",
                        resp.status, lat, lng,
                    )
                    return None
                raw = await resp.json(content_type=None)
    except asyncio.TimeoutError:
        _LOGGER.warning("Timeout fetching municipality for (%.5f, %.5f)", lat, lng)
        return None
    except Exception as exc:  # noqa: BLE001
        _LOGGER.error(
            "Unexpected error fetching municipality for (%.5f, %.5f): %s",
            lat, lng, exc,
        )
        return None

    records = raw.get("data") if isinstance(raw, dict) else None
    if records:
        name = records[0].get("libelle_commune")
        if name:
            return name

    _LOGGER.warning("No municipality returned for (%.5f, %.5f)", lat, lng)
    return None
