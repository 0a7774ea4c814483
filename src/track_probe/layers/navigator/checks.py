"""Navigator layer rules."""

from __future__ import annotations

from track_probe.core.base import Check, CheckStatus
from track_probe.core.signals import EvaluationContext, NavigatorSignal
from track_probe.core.useragent import is_mobile, is_tablet

# Plausibility bounds for the device class a User-Agent claims.
MAX_MOBILE_CORES = 8
MAX_DESKTOP_CORES = 64
MAX_MOBILE_MEMORY_GB = 16
MIN_DESKTOP_MEMORY_GB = 2

REMEDIATIONS: dict[str, str] = {
    "languages": "Configure at least one preferred language in your browser settings.",
    "hardware-concurrency": (
        "Report a plausible navigator.hardwareConcurrency for the device you present "
        "(4 or 8 is common); never 0."
    ),
    "platform-ua-mismatch": (
        "Keep navigator.platform and the User-Agent consistent: spoof both together or neither."
    ),
    "touch-mismatch": (
        "A mobile User-Agent without touch support is a spoofing tell. Use device emulation "
        "that also sets maxTouchPoints, or keep a desktop User-Agent."
    ),
    "memory-mismatch": (
        "navigator.deviceMemory does not fit the device the User-Agent claims. "
        "Leave it unspoofed or pick a value typical for that device."
    ),
    "cookies-disabled": (
        "Cookies are disabled, which is rare and stands out. Prefer blocking third-party "
        "cookies only."
    ),
}


def _platform_contradiction(platform: str, user_agent: str) -> str | None:
    platform = platform.lower()
    ua = user_agent.lower()
    if not platform or not ua:
        return None

    if platform.startswith("win") and "mac os x" in ua and "windows" not in ua:
        return "Platform is Windows but the User-Agent claims macOS"
    if platform.startswith("mac") and "windows" in ua and "mac" not in ua:
        return "Platform is macOS but the User-Agent claims Windows"
    if (
        "linux" in platform
        and "android" not in ua
        and "linux" not in ua
        and ("windows" in ua or "mac os x" in ua)
    ):
        return "Platform is Linux but the User-Agent claims a different OS"
    return None


def check_languages(signal: NavigatorSignal, context: EvaluationContext) -> Check:
    if not signal.languages:
        return Check(
            id="languages",
            name="Languages",
            status=CheckStatus.FAIL,
            message="No languages configured (navigator.languages is empty).",
        )
    return Check(
        id="languages",
        name="Languages",
        status=CheckStatus.PASS,
        message=", ".join(signal.languages[:3]),
    )


def check_hardware_concurrency(signal: NavigatorSignal, context: EvaluationContext) -> Check:
    if signal.hardware_concurrency <= 0:
        return Check(
            id="hardware-concurrency",
            name="CPU Cores",
            status=CheckStatus.WARN,
            message="Hardware concurrency is 0, which real browsers never report.",
        )

    cores = signal.hardware_concurrency
    if is_mobile(signal.user_agent) and cores > MAX_MOBILE_CORES:
        problem = f"Mobile device reports {cores} CPU cores, unusually high."
    elif not is_mobile(signal.user_agent) and cores > MAX_DESKTOP_CORES:
        problem = f"Desktop reports {cores} CPU cores, which is server-class hardware."
    else:
        problem = None
    if problem:
        return Check(id="hardware-concurrency", name="CPU Cores", status=CheckStatus.WARN, message=problem)

    return Check(
        id="hardware-concurrency",
        name="CPU Cores",
        status=CheckStatus.PASS,
        message=f"{signal.hardware_concurrency} logical cores reported.",
    )


def check_platform_ua(signal: NavigatorSignal, context: EvaluationContext) -> Check:
    contradiction = _platform_contradiction(signal.platform, signal.user_agent)
    if contradiction:
        return Check(
            id="platform-ua-mismatch",
            name="Platform/UA Consistency",
            status=CheckStatus.WARN,
            message=contradiction,
        )
    return Check(
        id="platform-ua-mismatch",
        name="Platform/UA Consistency",
        status=CheckStatus.PASS,
        message=f"Platform '{signal.platform or 'unknown'}' agrees with the User-Agent.",
    )


def check_touch_points(signal: NavigatorSignal, context: EvaluationContext) -> Check:
    ua = signal.user_agent
    if signal.max_touch_points == 0 and (is_mobile(ua) or is_tablet(ua)):
        device = "Tablet" if is_tablet(ua) else "Mobile device"
        return Check(
            id="touch-mismatch",
            name="Touch Support",
            status=CheckStatus.WARN,
            message=f"{device} User-Agent but no touch points reported.",
        )
    return Check(
        id="touch-mismatch",
        name="Touch Support",
        status=CheckStatus.PASS,
        message=f"{signal.max_touch_points} touch points reported.",
    )


def check_device_memory(signal: NavigatorSignal, context: EvaluationContext) -> Check:
    memory = signal.device_memory
    if memory is None:
        return Check(
            id="memory-mismatch",
            name="Device Memory",
            status=CheckStatus.PASS,
            message="navigator.deviceMemory is not exposed.",
        )

    if is_mobile(signal.user_agent) and memory > MAX_MOBILE_MEMORY_GB:
        problem = f"Mobile device reports {memory:g} GB of RAM, unusually high."
    elif not is_mobile(signal.user_agent) and memory < MIN_DESKTOP_MEMORY_GB:
        problem = f"Desktop reports only {memory:g} GB of RAM, suspiciously low."
    else:
        problem = None
    if problem:
        return Check(id="memory-mismatch", name="Device Memory", status=CheckStatus.WARN, message=problem)

    return Check(
        id="memory-mismatch",
        name="Device Memory",
        status=CheckStatus.PASS,
        message=f"{memory:g} GB of RAM reported.",
    )


def check_cookies(signal: NavigatorSignal, context: EvaluationContext) -> Check:
    if not signal.cookie_enabled:
        return Check(
            id="cookies-disabled",
            name="Cookies",
            status=CheckStatus.WARN,
            message="Cookies are disabled, which may indicate automation or a hardened profile.",
        )
    return Check(id="cookies-disabled", name="Cookies", status=CheckStatus.PASS, message="Cookies are enabled.")


RULES = (
    check_languages,
    check_hardware_concurrency,
    check_platform_ua,
    check_touch_points,
    check_device_memory,
    check_cookies,
)
