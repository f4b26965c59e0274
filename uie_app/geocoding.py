"""OpenStreetMap Nominatim search and reverse lookup."""

from __future__ import annotations

from typing import List, Optional

from geopy.exc import GeocoderServiceError
from geopy.geocoders import Nominatim
from loguru import logger

from .constants import DEFAULT_USER_AGENT
from .models import InvalidLocation, Location


def _geolocator(timeout: float, user_agent: str) -> Nominatim:
    return Nominatim(user_agent=user_agent, timeout=timeout)


def search(query: str, limit: int = 5, timeout: float = 10, user_agent: str = DEFAULT_USER_AGENT) -> List[dict]:
    """Return candidate places for a free-text query as ``{name, location}`` dicts."""

    query = query.strip()
    if not query:
        return []
    try:
        matches = _geolocator(timeout, user_agent).geocode(query, exactly_one=False, limit=limit)
    except GeocoderServiceError as exc:
        logger.warning("Nominatim search for {!r} failed: {}", query, exc)
        return []

    results = []
    for match in matches or []:
        try:
            location = Location(match.latitude, match.longitude)
        except InvalidLocation:
            continue
        results.append({"name": match.address or query, "location": location})
    return results


def reverse(location: Location, timeout: float = 10, user_agent: str = DEFAULT_USER_AGENT) -> Optional[str]:
    """Best-effort ``"City, Country"`` label for a coordinate, ``None`` when unknown."""

    try:
        match = _geolocator(timeout, user_agent).reverse(
            (location.latitude, location.longitude), zoom=10, exactly_one=True
        )
    except GeocoderServiceError as exc:
        logger.info("Reverse geocoding skipped: {}", exc)
        return None
    if match is None:
        return None

    address = (match.raw or {}).get("address") or {}
    city = address.get("city") or address.get("town") or address.get("village") or address.get("county")
    country = address.get("country")
    parts = [part for part in (city, country) if part]
    if parts:
        return ", ".join(parts)
    return match.address or None


__all__ = ["reverse", "search"]
