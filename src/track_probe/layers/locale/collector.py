"""Timezone and locale signals."""

from __future__ import annotations

import logging
from typing import Any

from track_probe.core.base import ProbeFailure
from track_probe.core.coerce import as_int, as_str, as_str_tuple
from track_probe.core.hashing import canonical_hash
from track_probe.core.signals import LocaleSignal

logger = logging.getLogger(__name__)

# Representative zone per offset, in minutes east of UTC.
OFFSET_ZONES: dict[int, str] = {
    0: "UTC",
    60: "Europe/Paris",
    120: "Europe/Athens",
    180: "Europe/Moscow",
    240: "Asia/Dubai",
    300: "Asia/Karachi",
    330: "Asia/Kolkata",
    360: "Asia/Dhaka",
    420: "Asia/Bangkok",
    480: "Asia/Shanghai",
    540: "Asia/Tokyo",
    600: "Australia/Sydney",
    660: "Pacific/Noumea",
    720: "Pacific/Auckland",
    -60: "Atlantic/Azores",
    -120: "America/Noronha",
    -180: "America/Sao_Paulo",
    -240: "America/Halifax",
    -300: "America/New_York",
    -360: "America/Chicago",
    -420: "America/Denver",
    -480: "America/Los_Angeles",
    -540: "America/Anchorage",
    -600: "Pacific/Honolulu",
}

# getTimezoneOffset() is minutes *behind* UTC; the signal stores minutes ahead.
READ_SCRIPT = """() => {
    let timezone = null;
    let locale = '';
    try {
        const opts = Intl.DateTimeFormat().resolvedOptions();
        timezone = opts.timeZone || null;
        locale = opts.locale || '';
    } catch (e) {}
    const year = new Date().getFullYear();
    return {
        timezone,
        locale,
        offset: new Date().getTimezoneOffset(),
        january: new Date(year, 0, 1).getTimezoneOffset(),
        july: new Date(year, 6, 1).getTimezoneOffset(),
        languages: Array.from(navigator.languages || []),
    };
}"""


def estimate_timezone(offset_minutes: int) -> str:
    """Best-guess zone name for an east-positive UTC offset."""
    if offset_minutes in OFFSET_ZONES:
        return OFFSET_ZONES[offset_minutes]
    hours, minutes = divmod(abs(offset_minutes), 60)
    sign = "+" if offset_minutes >= 0 else "-"
    return f"UTC{sign}{hours:02d}:{minutes:02d}"


def parse_locale(payload: dict[str, Any]) -> LocaleSignal:
    current = -as_int(payload.get("offset"))
    january = -as_int(payload.get("january"), default=-current)
    july = -as_int(payload.get("july"), default=-current)

    timezone = as_str(payload.get("timezone"))
    estimated = not timezone
    if estimated:
        timezone = estimate_timezone(current)

    fields = {
        "timezone": timezone,
        "timezone_estimated": estimated,
        "utc_offset_minutes": current,
        "january_offset_minutes": january,
        "july_offset_minutes": july,
        "dst": current != min(january, july),
        "languages": as_str_tuple(payload.get("languages")),
        "locale": as_str(payload.get("locale")),
    }
    return LocaleSignal(**fields, fingerprint_hash=canonical_hash(fields))


async def collect_locale(page: Any) -> LocaleSignal:
    try:
        payload = await page.evaluate(READ_SCRIPT)
    except Exception as exc:
        logger.warning("Locale probe failed: %s", exc)
        return LocaleSignal(unavailable=ProbeFailure.ERROR, detail=str(exc))

    if not isinstance(payload, dict):
        return LocaleSignal(unavailable=ProbeFailure.ERROR, detail="malformed locale payload")
    return parse_locale(payload)
