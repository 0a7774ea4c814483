"""Tests for the canvas/WebGL layer."""

import pytest
from conftest import WINDOWS_UA, FakePage, make_fingerprint, pixels

from track_probe.core.base import CheckStatus, ProbeFailure
from track_probe.core.hashing import sha256_hex
from track_probe.core.signals import EvaluationContext, GraphicsSignal, NavigatorSignal
from track_probe.layers.graphics.checks import check_canvas_noise, check_gpu_os, check_webgl_renderer
from track_probe.layers.graphics.collector import (
    NOISE_THRESHOLD,
    RENDER_SCRIPT,
    collect_graphics,
    count_byte_differences,
    gpu_fingerprint,
)


def _payload(flipped: int, **webgl):
    return {
        "supported": True,
        "pixelsA": pixels(),
        "pixelsB": pixels(flipped=flipped),
        "dataUrl": "data:image/png;base64,XYZ",
        "webgl": webgl or None,
    }


def _context():
    return EvaluationContext(fingerprint=make_fingerprint())


def test_count_byte_differences():
    assert count_byte_differences(b"abcd", b"abcd") == 0
    assert count_byte_differences(b"abcd", b"abzz") == 2
    assert count_byte_differences(b"ab", b"abcd") == 2


def test_gpu_fingerprint_is_sha256():
    assert gpu_fingerprint("Intel", "Iris") == sha256_hex("Intel|Iris")


@pytest.mark.asyncio
async def test_noise_at_threshold_is_not_noisy():
    page = FakePage({RENDER_SCRIPT: _payload(NOISE_THRESHOLD)})
    signal = await collect_graphics(page)
    assert signal.noise_diff_bytes == NOISE_THRESHOLD
    assert signal.is_noisy is False


@pytest.mark.asyncio
async def test_noise_above_threshold_is_noisy():
    page = FakePage({RENDER_SCRIPT: _payload(NOISE_THRESHOLD + 1)})
    signal = await collect_graphics(page)
    assert signal.is_noisy is True


@pytest.mark.asyncio
async def test_canvas_hash_is_fingerprint_value():
    page = FakePage({RENDER_SCRIPT: _payload(0)})
    signal = await collect_graphics(page)
    assert signal.canvas_hash == sha256_hex("data:image/png;base64,XYZ")
    assert signal.fingerprint_hash == signal.canvas_hash
    assert signal.uniqueness == "unknown"


@pytest.mark.asyncio
async def test_unmasked_values_preferred_for_gpu_hash():
    page = FakePage(
        {
            RENDER_SCRIPT: _payload(
                0,
                vendor="WebKit",
                renderer="WebKit WebGL",
                unmaskedVendor="NVIDIA",
                unmaskedRenderer="GeForce",
            )
        }
    )
    signal = await collect_graphics(page)
    assert signal.webgl_supported
    assert signal.effective_renderer == "GeForce"
    assert signal.gpu_hash == gpu_fingerprint("NVIDIA", "GeForce")


@pytest.mark.asyncio
async def test_no_webgl():
    signal = await collect_graphics(FakePage({RENDER_SCRIPT: _payload(0)}))
    assert signal.webgl_supported is False
    assert signal.gpu_hash is None


@pytest.mark.asyncio
async def test_no_2d_context_is_unsupported():
    signal = await collect_graphics(FakePage({RENDER_SCRIPT: {"supported": False}}))
    assert signal.unavailable == ProbeFailure.UNSUPPORTED


@pytest.mark.asyncio
async def test_malformed_pixels_is_error():
    payload = {"supported": True, "pixelsA": "!!!", "pixelsB": None, "dataUrl": "x"}
    signal = await collect_graphics(FakePage({RENDER_SCRIPT: payload}))
    assert signal.unavailable == ProbeFailure.ERROR


# --- Checks ---


def test_check_canvas_noise():
    assert check_canvas_noise(GraphicsSignal(is_noisy=True), _context()).status == CheckStatus.PASS
    assert check_canvas_noise(GraphicsSignal(is_noisy=False), _context()).status == CheckStatus.WARN


@pytest.mark.parametrize(
    "renderer",
    ["Google SwiftShader", "ANGLE (Google, Vulkan 1.3.0 (SwiftShader Device (Subzero)))", "llvmpipe (LLVM 15.0.7, 256 bits)"],
)
def test_check_webgl_software_renderer_fails(renderer):
    signal = GraphicsSignal(webgl_supported=True, unmasked_renderer=renderer)
    assert check_webgl_renderer(signal, _context()).status == CheckStatus.FAIL


def test_check_webgl_hardware_renderer_passes():
    signal = GraphicsSignal(webgl_supported=True, renderer="ANGLE (Apple, Apple M2, OpenGL 4.1)")
    assert check_webgl_renderer(signal, _context()).status == CheckStatus.PASS


def test_check_webgl_absent_passes():
    assert check_webgl_renderer(GraphicsSignal(), _context()).status == CheckStatus.PASS


IPHONE_UA = "Mozilla/5.0 (iPhone; CPU iPhone OS 17_4 like Mac OS X) AppleWebKit/605.1.15 Mobile/15E148"
MAC_UA = "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/605.1.15 Version/17.4 Safari/605.1.15"


def _ua_context(user_agent: str, *, available: bool = True) -> EvaluationContext:
    navigator = NavigatorSignal(
        user_agent=user_agent,
        languages=("en-US",),
        unavailable=None if available else ProbeFailure.TIMEOUT,
    )
    return EvaluationContext(fingerprint=make_fingerprint(navigator=navigator))


@pytest.mark.parametrize(
    ("user_agent", "vendor", "renderer", "expected"),
    [
        (WINDOWS_UA, "Google Inc. (NVIDIA)", "ANGLE (NVIDIA GeForce RTX 3060)", CheckStatus.PASS),
        (WINDOWS_UA, "Apple Inc.", "Apple M2", CheckStatus.FAIL),
        (MAC_UA, "Apple Inc.", "Apple M2", CheckStatus.PASS),
        (IPHONE_UA, "Apple Inc.", "Apple GPU", CheckStatus.PASS),
        (IPHONE_UA, "NVIDIA Corporation", "NVIDIA GeForce GTX 1080", CheckStatus.FAIL),
        (IPHONE_UA, "ATI Technologies Inc.", "AMD Radeon Pro 5500M", CheckStatus.FAIL),
    ],
)
def test_gpu_os_mismatch(user_agent, vendor, renderer, expected):
    signal = GraphicsSignal(webgl_supported=True, unmasked_vendor=vendor, unmasked_renderer=renderer)
    assert check_gpu_os(signal, _ua_context(user_agent)).status == expected


def test_gpu_os_uses_masked_vendor_when_unmasked_missing():
    signal = GraphicsSignal(webgl_supported=True, vendor="Apple Inc.", renderer="WebKit WebGL")
    assert check_gpu_os(signal, _ua_context(WINDOWS_UA)).status == CheckStatus.FAIL


def test_gpu_os_skipped_without_webgl_or_navigator():
    apple = GraphicsSignal(webgl_supported=True, unmasked_renderer="Apple M2")
    assert check_gpu_os(apple, _ua_context(WINDOWS_UA, available=False)).status == CheckStatus.PASS
    no_webgl = GraphicsSignal(webgl_supported=False, unmasked_renderer="Apple M2")
    assert check_gpu_os(no_webgl, _ua_context(WINDOWS_UA)).status == CheckStatus.PASS
