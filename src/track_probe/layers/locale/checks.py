"""Locale layer rules."""

from __future__ import annotations

from datetime import datetime
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from track_probe.core.base import Check, CheckStatus
from track_probe.core.signals import EvaluationContext, GeoHint, LocaleSignal

REMEDIATIONS: dict[str, str] = {
    "timezone": "Let the browser expose a real IANA timezone; a missing zone name is unusual.",
    "timezone-offset": (
        "Your timezone name and UTC offset disagree. Spoof both together, or neither."
    ),
    "timezone-geo-mismatch": (
        "If you use a VPN or proxy, set your system timezone to match the exit location."
    ),
    "language-timezone-mismatch": (
        "Your preferred language is unusual for your timezone. If you spoof one, "
        "make the other match."
    ),
}

# Countries where each zone is expected to appear.
TIMEZONE_REGIONS: dict[str, tuple[str, ...]] = {
    "America/New_York": ("US", "CA"),
    "America/Chicago": ("US", "CA", "MX"),
    "America/Denver": ("US", "CA", "MX"),
    "America/Los_Angeles": ("US", "CA", "MX"),
    "America/Anchorage": ("US",),
    "Pacific/Honolulu": ("US",),
    "America/Toronto": ("CA",),
    "America/Vancouver": ("CA",),
    "America/Sao_Paulo": ("BR",),
    "America/Argentina/Buenos_Aires": ("AR",),
    "America/Buenos_Aires": ("AR",),
    "America/Mexico_City": ("MX",),
    "Europe/London": ("GB", "IE", "PT"),
    "Europe/Paris": ("FR", "BE", "NL", "LU", "MC", "AD"),
    "Europe/Berlin": ("DE", "AT", "CH", "LI"),
    "Europe/Rome": ("IT", "SM", "VA"),
    "Europe/Madrid": ("ES",),
    "Europe/Moscow": ("RU", "BY"),
    "Europe/Kiev": ("UA",),
    "Europe/Kyiv": ("UA",),
    "Europe/Warsaw": ("PL",),
    "Europe/Amsterdam": ("NL", "BE"),
    "Europe/Brussels": ("BE", "LU"),
    "Europe/Zurich": ("CH", "LI"),
    "Europe/Vienna": ("AT",),
    "Europe/Stockholm": ("SE",),
    "Europe/Oslo": ("NO",),
    "Europe/Copenhagen": ("DK",),
    "Europe/Helsinki": ("FI", "EE"),
    "Europe/Athens": ("GR", "CY"),
    "Europe/Istanbul": ("TR",),
    "Asia/Tokyo": ("JP",),
    "Asia/Seoul": ("KR",),
    "Asia/Shanghai": ("CN", "TW", "HK", "MO"),
    "Asia/Hong_Kong": ("HK", "CN"),
    "Asia/Singapore": ("SG", "MY"),
    "Asia/Bangkok": ("TH", "VN", "KH", "LA"),
    "Asia/Jakarta": ("ID",),
    "Asia/Manila": ("PH",),
    "Asia/Kolkata": ("IN",),
    "Asia/Dubai": ("AE", "OM"),
    "Asia/Riyadh": ("SA",),
    "Asia/Jerusalem": ("IL",),
    "Asia/Karachi": ("PK",),
    "Asia/Dhaka": ("BD",),
    "Australia/Sydney": ("AU",),
    "Australia/Melbourne": ("AU",),
    "Australia/Brisbane": ("AU",),
    "Australia/Perth": ("AU",),
    "Pacific/Auckland": ("NZ",),
    "Africa/Cairo": ("EG",),
    "Africa/Lagos": ("NG",),
    "Africa/Johannesburg": ("ZA",),
}

# Primary languages expected in a zone; any other is flagged.
ZONE_LANGUAGES: dict[str, tuple[str, ...]] = {
    "Asia/Tokyo": ("ja", "en", "ko", "zh"),
    "Asia/Seoul": ("ko", "en", "ja"),
}

# Primary languages that are implausible in a zone.
ZONE_UNEXPECTED_LANGUAGES: dict[str, tuple[str, ...]] = {
    "Asia/Shanghai": ("de", "fr", "it", "es", "pt"),
}


def _zone(name: str | None) -> ZoneInfo | None:
    if not name or name == "Unknown":
        return None
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        return None


def _offset_minutes(zone: ZoneInfo, moment: datetime) -> int:
    offset = moment.astimezone(zone).utcoffset()
    return int(offset.total_seconds() // 60) if offset is not None else 0


def zone_offsets(name: str, year: int) -> tuple[int, int] | None:
    """January 1 and July 1 offsets (minutes east) of *name* in *year*."""
    zone = _zone(name)
    if zone is None:
        return None
    return (
        _offset_minutes(zone, datetime(year, 1, 1, 12, tzinfo=zone)),
        _offset_minutes(zone, datetime(year, 7, 1, 12, tzinfo=zone)),
    )


def _format_offset(minutes: int) -> str:
    hours, rest = divmod(abs(minutes), 60)
    sign = "+" if minutes >= 0 else "-"
    return f"UTC{sign}{hours:02d}:{rest:02d}"


def check_timezone(signal: LocaleSignal, context: EvaluationContext) -> Check:
    if signal.timezone == "Unknown":
        return Check(
            id="timezone",
            name="Timezone",
            status=CheckStatus.WARN,
            message=(
                f"Timezone name unavailable and no zone matches offset "
                f"{_format_offset(signal.utc_offset_minutes)}."
            ),
        )
    if signal.timezone_estimated:
        return Check(
            id="timezone",
            name="Timezone",
            status=CheckStatus.WARN,
            message=f"Timezone name unavailable; estimated as {signal.timezone} from the UTC offset.",
        )
    return Check(
        id="timezone",
        name="Timezone",
        status=CheckStatus.PASS,
        message=f"{signal.timezone} ({_format_offset(signal.utc_offset_minutes)})",
    )


def check_timezone_offset(signal: LocaleSignal, context: EvaluationContext) -> Check:
    if signal.timezone_estimated:
        return Check(
            id="timezone-offset",
            name="Timezone Offset",
            status=CheckStatus.PASS,
            message="Zone was estimated from the offset; nothing to cross-check.",
        )

    offsets = zone_offsets(signal.timezone, context.fingerprint.collected_at.year)
    if offsets is None:
        return Check(
            id="timezone-offset",
            name="Timezone Offset",
            status=CheckStatus.PASS,
            message=f"Zone {signal.timezone!r} is not in the local tz database; skipped.",
        )

    if signal.utc_offset_minutes not in offsets:
        expected = " or ".join(sorted({_format_offset(o) for o in offsets}))
        return Check(
            id="timezone-offset",
            name="Timezone Offset",
            status=CheckStatus.WARN,
            message=(
                f"Offset {_format_offset(signal.utc_offset_minutes)} does not match "
                f"{signal.timezone} (expected {expected})."
            ),
        )
    return Check(
        id="timezone-offset",
        name="Timezone Offset",
        status=CheckStatus.PASS,
        message=f"Offset matches {signal.timezone}.",
    )


def _hint_offset(hint: GeoHint, moment: datetime) -> int | None:
    if hint.utc_offset_minutes is not None:
        return hint.utc_offset_minutes
    zone = _zone(hint.timezone)
    return _offset_minutes(zone, moment) if zone is not None else None


def check_timezone_geo(signal: LocaleSignal, context: EvaluationContext) -> Check:
    hint = context.geo_hint
    if hint is None:
        return Check(
            id="timezone-geo-mismatch",
            name="Timezone vs. IP Location",
            status=CheckStatus.PASS,
            message="No IP geolocation supplied.",
        )

    problems: list[str] = []
    hint_offset = _hint_offset(hint, context.fingerprint.collected_at)
    if hint_offset is not None and hint_offset != signal.utc_offset_minutes:
        problems.append(
            f"browser offset {_format_offset(signal.utc_offset_minutes)} vs. "
            f"IP location {_format_offset(hint_offset)}"
        )

    expected = TIMEZONE_REGIONS.get(signal.timezone)
    country = (hint.country_code or "").upper()
    if expected and country and country not in expected:
        problems.append(f"timezone {signal.timezone} is unexpected for country {country}")

    if problems:
        return Check(
            id="timezone-geo-mismatch",
            name="Timezone vs. IP Location",
            status=CheckStatus.WARN,
            message="Mismatch: " + "; ".join(problems) + ".",
        )
    return Check(
        id="timezone-geo-mismatch",
        name="Timezone vs. IP Location",
        status=CheckStatus.PASS,
        message="Timezone agrees with the IP location.",
    )


def _primary_language(signal: LocaleSignal) -> str:
    return signal.languages[0] if signal.languages else signal.locale


def check_language_timezone(signal: LocaleSignal, context: EvaluationContext) -> Check:
    language = _primary_language(signal)
    code = language.split("-")[0].lower()
    zone = signal.timezone

    unusual = False
    if code and zone in ZONE_LANGUAGES:
        unusual = code not in ZONE_LANGUAGES[zone]
    elif code and zone in ZONE_UNEXPECTED_LANGUAGES:
        unusual = code in ZONE_UNEXPECTED_LANGUAGES[zone]

    if unusual:
        return Check(
            id="language-timezone-mismatch",
            name="Language vs. Timezone",
            status=CheckStatus.WARN,
            message=f"Language {language} is unusual for timezone {zone}.",
        )
    return Check(
        id="language-timezone-mismatch",
        name="Language vs. Timezone",
        status=CheckStatus.PASS,
        message=f"Language {language or 'unknown'} is plausible for {zone}.",
    )


RULES = (check_timezone, check_timezone_offset, check_timezone_geo, check_language_timezone)
