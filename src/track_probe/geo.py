"""IP geolocation lookup that produces the optional GeoHint for locale rules."""

from __future__ import annotations

import logging
from typing import Any

import httpx

from track_probe.core.signals import GeoHint

logger = logging.getLogger(__name__)

GEOLOCATION_API = "https://ipapi.co/json/"
_API_TIMEOUT = 5.0


def _parse_utc_offset(value: Any) -> int | None:
    """'+0530' / '-0700' → minutes east of UTC."""
    if not isinstance(value, str) or len(value) != 5 or value[0] not in "+-":
        return None
    try:
        hours, minutes = int(value[1:3]), int(value[3:5])
    except ValueError:
        return None
    total = hours * 60 + minutes
    return total if value[0] == "+" else -total


def parse_geo_response(data: dict[str, Any]) -> GeoHint:
    country = data.get("country_code") or data.get("countryCode")
    return GeoHint(
        timezone=data.get("timezone") or None,
        utc_offset_minutes=_parse_utc_offset(data.get("utc_offset")),
        country_code=country.upper() if isinstance(country, str) and country else None,
    )


async def lookup_geo_hint(url: str = GEOLOCATION_API, timeout: float = _API_TIMEOUT) -> GeoHint | None:
    """Query an IP geolocation service. Returns None when it cannot be reached."""
    try:
        async with httpx.AsyncClient(timeout=timeout) as client:
            resp = await client.get(url)
            resp.raise_for_status()
            data = resp.json()
    except (httpx.HTTPError, ValueError) as exc:
        logger.warning("IP geolocation lookup failed: %s", exc)
        return None

    if not isinstance(data, dict):
        return None
    return parse_geo_response(data)
