"""Shared test fixtures."""

from __future__ import annotations

import base64
import inspect
from collections.abc import Callable
from datetime import UTC, datetime
from typing import Any

import pytest

from track_probe.core.signals import (
    AudioSignal,
    AutomationSignal,
    FingerprintData,
    FontsSignal,
    GraphicsSignal,
    LocaleSignal,
    NavigatorSignal,
    NetworkSignal,
)
from track_probe.core.weights import ScoringWeights, WeightRegistry
from track_probe.layers.audio import collector as audio
from track_probe.layers.automation import collector as automation
from track_probe.layers.fonts import collector as fonts
from track_probe.layers.graphics import collector as graphics
from track_probe.layers.locale import collector as locale
from track_probe.layers.navigator import collector as navigator
from track_probe.layers.network import collector as network

COLLECTED_AT = datetime(2024, 1, 15, 12, 0, tzinfo=UTC)

WINDOWS_UA = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/124.0.0.0 Safari/537.36"
)


class FakePage:
    """Stands in for a Playwright page.

    ``responses`` maps a script to a value, an exception instance to raise,
    or a callable taking the script argument (sync or async).
    """

    def __init__(self, responses: dict[str, Any] | None = None) -> None:
        self.responses = dict(responses or {})
        self.calls: list[tuple[str, Any]] = []

    async def evaluate(self, expression: str, arg: Any = None) -> Any:
        self.calls.append((expression, arg))
        if expression not in self.responses:
            raise RuntimeError("unexpected script")
        response = self.responses[expression]
        if isinstance(response, BaseException):
            raise response
        if callable(response):
            response = response(arg)
            if inspect.isawaitable(response):
                response = await response
        return response

    def calls_for(self, expression: str) -> list[Any]:
        return [arg for script, arg in self.calls if script == expression]


def pixels(size: int = 64, flipped: int = 0) -> str:
    """Base64 RGBA buffer with the first *flipped* bytes changed."""
    data = bytearray(range(size))
    for i in range(flipped):
        data[i] ^= 0xFF
    return base64.b64encode(bytes(data)).decode()


def clean_responses() -> dict[str, Any]:
    """Page responses for a well-protected, consistent browser."""

    def measure(arg: dict[str, Any]) -> dict[str, Any]:
        baseline = {fallback: 100 for fallback in arg["fallbacks"]}
        widths = {
            font: {fallback: (120 if i < 12 else 100) for fallback in arg["fallbacks"]}
            for i, font in enumerate(arg["fonts"])
        }
        return {"baseline": baseline, "widths": widths}

    return {
        network.CAPABILITY_SCRIPT: True,
        network.PROBE_SCRIPT: lambda arg: {"candidates": [], "error": None},
        network.RELEASE_SCRIPT: None,
        graphics.RENDER_SCRIPT: {
            "supported": True,
            "pixelsA": pixels(),
            "pixelsB": pixels(flipped=20),
            "dataUrl": "data:image/png;base64,AAAA",
            "webgl": {
                "vendor": "WebKit",
                "renderer": "WebKit WebGL",
                "unmaskedVendor": "Google Inc. (NVIDIA)",
                "unmaskedRenderer": "ANGLE (NVIDIA, NVIDIA GeForce RTX 3060 Direct3D11)",
            },
        },
        audio.PROBE_SCRIPT: {
            "supported": True,
            "sample": [-100.0] * audio.SAMPLE_BINS,
            "sampleRate": 48000,
            "channelCount": 2,
            "maxChannelCount": 2,
            "baseLatency": 0.01,
            "state": "running",
        },
        audio.RELEASE_SCRIPT: None,
        fonts.MEASURE_SCRIPT: measure,
        navigator.READ_SCRIPT: {
            "userAgent": WINDOWS_UA,
            "platform": "Win32",
            "language": "en-US",
            "languages": ["en-US", "en"],
            "cookieEnabled": True,
            "doNotTrack": "1",
            "hardwareConcurrency": 8,
            "deviceMemory": 8,
            "maxTouchPoints": 0,
            "vendor": "Google Inc.",
            "webdriver": False,
        },
        locale.READ_SCRIPT: {
            "timezone": "UTC",
            "locale": "en-US",
            "offset": 0,
            "january": 0,
            "july": 0,
            "languages": ["en-US", "en"],
        },
        automation.SCAN_SCRIPT: {
            "webdriver": False,
            "userAgent": WINDOWS_UA,
            "present": [],
            "prefixed": [],
        },
    }


@pytest.fixture
def clean_page() -> FakePage:
    return FakePage(clean_responses())


def make_fingerprint(**overrides: Any) -> FingerprintData:
    """A FingerprintData that passes every check, with per-layer overrides."""
    layers: dict[str, Any] = {
        "network": NetworkSignal(fingerprint_hash="net-0"),
        "graphics": GraphicsSignal(
            canvas_hash="canvas-0",
            noise_diff_bytes=40,
            is_noisy=True,
            webgl_supported=True,
            vendor="WebKit",
            renderer="WebKit WebGL",
            unmasked_renderer="ANGLE (NVIDIA GeForce RTX 3060)",
            fingerprint_hash="canvas-0",
        ),
        "audio": AudioSignal(
            sample=(-100.0,) * 8,
            distinct_values=1,
            is_protected=True,
            fingerprint_hash="audio-0",
        ),
        "fonts": FontsSignal(
            detected=tuple(f"Font {i:02d}" for i in range(12)),
            tested=60,
            fingerprint_hash="fonts-0",
        ),
        "navigator": NavigatorSignal(
            user_agent=WINDOWS_UA,
            platform="Win32",
            language="en-US",
            languages=("en-US", "en"),
            hardware_concurrency=8,
            fingerprint_hash="nav-0",
        ),
        "locale": LocaleSignal(
            timezone="UTC",
            languages=("en-US", "en"),
            locale="en-US",
            fingerprint_hash="locale-0",
        ),
        "automation": AutomationSignal(fingerprint_hash="auto-0"),
        "collected_at": COLLECTED_AT,
    }
    layers.update(overrides)
    return FingerprintData(**layers)


@pytest.fixture
def fingerprint_factory() -> Callable[..., FingerprintData]:
    return make_fingerprint


@pytest.fixture
def registry() -> WeightRegistry:
    return WeightRegistry.load()


@pytest.fixture
def balanced(registry: WeightRegistry) -> ScoringWeights:
    return registry.resolve("balanced")
