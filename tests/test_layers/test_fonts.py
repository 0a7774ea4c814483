"""Tests for the font enumeration layer."""

import pytest
from conftest import WINDOWS_UA, FakePage, make_fingerprint

from track_probe.core.base import CheckStatus, ProbeFailure
from track_probe.core.hashing import sha256_hex
from track_probe.core.signals import EvaluationContext, FontsSignal, NavigatorSignal
from track_probe.layers.fonts.checks import MIN_FONT_COUNT, check_fonts_count, check_fonts_os
from track_probe.layers.fonts.collector import MEASURE_SCRIPT, collect_fonts, detect_fonts

BASELINE = {"monospace": 100, "sans-serif": 110, "serif": 105}


def test_detect_fonts_any_fallback_difference():
    widths = {
        "Zebra": {"monospace": 100, "sans-serif": 111, "serif": 105},
        "Arial": {"monospace": 120, "sans-serif": 110, "serif": 105},
        "Missing": dict(BASELINE),
    }
    assert detect_fonts(BASELINE, widths) == ["Arial", "Zebra"]


def test_detect_fonts_ignores_unknown_fallback():
    assert detect_fonts(BASELINE, {"Odd": {"cursive": 999}}) == []


@pytest.mark.asyncio
async def test_collect_fonts():
    def measure(arg):
        widths = {font: dict(BASELINE) for font in arg["fonts"]}
        widths["Calibri"]["serif"] = 90
        return {"baseline": BASELINE, "widths": widths}

    signal = await collect_fonts(FakePage({MEASURE_SCRIPT: measure}), fonts=("Calibri", "Helvetica"))
    assert signal.detected == ("Calibri",)
    assert signal.count == 1
    assert signal.tested == 2
    assert signal.fingerprint_hash == sha256_hex("Calibri")


@pytest.mark.asyncio
async def test_collect_fonts_without_body_is_unsupported():
    signal = await collect_fonts(FakePage({MEASURE_SCRIPT: None}))
    assert signal.unavailable == ProbeFailure.UNSUPPORTED


def test_check_fonts_count_boundary():
    context = EvaluationContext(fingerprint=make_fingerprint())
    few = FontsSignal(detected=tuple(f"F{i}" for i in range(MIN_FONT_COUNT - 1)))
    enough = FontsSignal(detected=tuple(f"F{i}" for i in range(MIN_FONT_COUNT)))
    assert check_fonts_count(few, context).status == CheckStatus.WARN
    assert check_fonts_count(enough, context).status == CheckStatus.PASS


MAC_UA = "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/605.1.15 Version/17.4 Safari/605.1.15"
LINUX_UA = "Mozilla/5.0 (X11; Linux x86_64; rv:125.0) Gecko/20100101 Firefox/125.0"


def _fonts_os(user_agent: str, *fonts: str) -> CheckStatus:
    navigator = NavigatorSignal(user_agent=user_agent, languages=("en-US",))
    context = EvaluationContext(fingerprint=make_fingerprint(navigator=navigator))
    return check_fonts_os(FontsSignal(detected=fonts), context).status


def test_fonts_os_consistent():
    assert _fonts_os(WINDOWS_UA, "Arial", "Segoe UI", "Helvetica") == CheckStatus.PASS
    assert _fonts_os(MAC_UA, "Arial", "Menlo", "Helvetica Neue") == CheckStatus.PASS
    assert _fonts_os(LINUX_UA, "DejaVu Sans", "Ubuntu") == CheckStatus.PASS


def test_fonts_os_mismatch():
    assert _fonts_os(WINDOWS_UA, "Arial", "Menlo", "Helvetica Neue") == CheckStatus.WARN
    assert _fonts_os(MAC_UA, "Arial", "Segoe UI", "Calibri") == CheckStatus.WARN
    assert _fonts_os(LINUX_UA, "Arial", "Segoe UI") == CheckStatus.WARN


def test_fonts_os_without_os_specific_fonts_passes():
    assert _fonts_os(WINDOWS_UA, "Arial", "Verdana") == CheckStatus.PASS
    assert _fonts_os("", "Menlo", "Monaco") == CheckStatus.PASS
