"""Navigator and hardware properties, read as-is."""

from __future__ import annotations

import logging
from typing import Any

from track_probe.core.base import ProbeFailure
from track_probe.core.coerce import as_float, as_int, as_str, as_str_tuple
from track_probe.core.hashing import canonical_hash
from track_probe.core.signals import NavigatorSignal

logger = logging.getLogger(__name__)

READ_SCRIPT = """() => {
    const nav = window.navigator;
    if (!nav) return null;
    return {
        userAgent: nav.userAgent,
        platform: nav.platform,
        language: nav.language,
        languages: Array.from(nav.languages || []),
        cookieEnabled: nav.cookieEnabled,
        doNotTrack: nav.doNotTrack,
        hardwareConcurrency: nav.hardwareConcurrency,
        deviceMemory: nav.deviceMemory,
        maxTouchPoints: nav.maxTouchPoints,
        vendor: nav.vendor,
        webdriver: nav.webdriver === true,
    };
}"""


def parse_navigator(payload: dict[str, Any]) -> NavigatorSignal:
    fields = {
        "user_agent": as_str(payload.get("userAgent")),
        "platform": as_str(payload.get("platform")),
        "language": as_str(payload.get("language")),
        "languages": as_str_tuple(payload.get("languages")),
        "cookie_enabled": payload.get("cookieEnabled") is not False,
        "do_not_track": payload.get("doNotTrack") if isinstance(payload.get("doNotTrack"), str) else None,
        "hardware_concurrency": as_int(payload.get("hardwareConcurrency")),
        "device_memory": as_float(payload.get("deviceMemory")),
        "max_touch_points": as_int(payload.get("maxTouchPoints")),
        "vendor": as_str(payload.get("vendor")),
        "webdriver": payload.get("webdriver") is True,
    }
    return NavigatorSignal(**fields, fingerprint_hash=canonical_hash(fields))


async def collect_navigator(page: Any) -> NavigatorSignal:
    try:
        payload = await page.evaluate(READ_SCRIPT)
    except Exception as exc:
        logger.warning("Navigator probe failed: %s", exc)
        return NavigatorSignal(unavailable=ProbeFailure.ERROR, detail=str(exc))

    if not isinstance(payload, dict):
        return NavigatorSignal(unavailable=ProbeFailure.UNSUPPORTED, detail="navigator is not available")
    return parse_navigator(payload)
