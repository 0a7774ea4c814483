"""Fonts layer rules."""

from __future__ import annotations

from track_probe.core.base import Check, CheckStatus
from track_probe.core.signals import EvaluationContext, FontsSignal
from track_probe.core.useragent import ClaimedOS, claimed_os, context_user_agent

# Real desktop systems expose far more than this many of the tested fonts.
MIN_FONT_COUNT = 10

# Fonts that ship with one desktop OS only.
WINDOWS_FONTS = frozenset(
    {
        "Segoe UI", "Segoe UI Symbol", "Segoe UI Emoji", "Calibri", "Cambria", "Consolas",
        "Candara", "Constantia", "Corbel", "Microsoft YaHei", "Microsoft JhengHei",
        "Malgun Gothic", "Meiryo", "Ebrima", "Gadugi", "Leelawadee UI", "Nirmala UI",
        "Yu Gothic", "MS Gothic", "MS PGothic",
    }
)
MACOS_FONTS = frozenset(
    {
        "SF Pro", "SF Pro Display", "SF Pro Text", "SF Mono", "SF Compact", "San Francisco",
        "Helvetica Neue", "Apple Color Emoji", "Apple SD Gothic Neo", "Apple Symbols",
        "AppleMyungjo", "Avenir", "Avenir Next", "Baskerville", "Futura", "Geneva",
        "Gill Sans", "Helvetica", "Hoefler Text", "Lucida Grande", "Menlo", "Monaco",
        "Optima", "Palatino", "Skia", "Zapfino",
    }
)
LINUX_FONTS = frozenset(
    {
        "Ubuntu", "Ubuntu Mono", "DejaVu Sans", "DejaVu Sans Mono", "DejaVu Serif",
        "Liberation Sans", "Liberation Mono", "Liberation Serif", "Noto Sans", "Noto Serif",
        "Droid Sans", "Droid Sans Mono", "FreeSans", "FreeSerif", "FreeMono", "Cantarell",
        "Oxygen", "Nimbus Sans",
    }
)

REMEDIATIONS: dict[str, str] = {
    "fonts-count": (
        "Install the standard fonts of the operating system you present, or use a browser "
        "that reports a normalized font list instead of a nearly empty one."
    ),
    "fonts-os-mismatch": (
        "Your installed fonts belong to a different operating system than your User-Agent "
        "claims. Spoofing the User-Agent alone does not hide the real OS."
    ),
}


def check_fonts_count(signal: FontsSignal, context: EvaluationContext) -> Check:
    if signal.count < MIN_FONT_COUNT:
        return Check(
            id="fonts-count",
            name="Fonts Count",
            status=CheckStatus.WARN,
            message=f"Low font count detected ({signal.count} of {signal.tested} tested fonts).",
        )
    return Check(
        id="fonts-count",
        name="Fonts Count",
        status=CheckStatus.PASS,
        message=f"{signal.count} of {signal.tested} tested fonts are installed.",
    )


def _foreign_fonts(os_claim: ClaimedOS | None, detected: set[str]) -> list[str]:
    """Fonts of another OS, when none of the claimed OS's own fonts are present."""
    native = {
        ClaimedOS.WINDOWS: WINDOWS_FONTS,
        ClaimedOS.MACOS: MACOS_FONTS,
        ClaimedOS.LINUX: LINUX_FONTS,
    }
    if os_claim not in native or detected & native[os_claim]:
        return []
    if os_claim == ClaimedOS.LINUX:
        foreign = WINDOWS_FONTS | MACOS_FONTS
    else:
        foreign = MACOS_FONTS if os_claim == ClaimedOS.WINDOWS else WINDOWS_FONTS
    return sorted(detected & foreign)


def check_fonts_os(signal: FontsSignal, context: EvaluationContext) -> Check:
    os_claim = claimed_os(context_user_agent(context))
    foreign = _foreign_fonts(os_claim, set(signal.detected))
    if foreign:
        return Check(
            id="fonts-os-mismatch",
            name="Fonts/OS Consistency",
            status=CheckStatus.WARN,
            message=(
                f"User-Agent claims {os_claim} but only fonts from another OS were found "
                f"({', '.join(foreign[:5])})."
            ),
        )
    return Check(
        id="fonts-os-mismatch",
        name="Fonts/OS Consistency",
        status=CheckStatus.PASS,
        message="Installed fonts are consistent with the claimed operating system.",
    )


RULES = (check_fonts_count, check_fonts_os)
