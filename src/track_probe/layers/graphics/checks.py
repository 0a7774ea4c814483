"""Graphics layer rules."""

from __future__ import annotations

from track_probe.core.base import Check, CheckStatus
from track_probe.core.signals import EvaluationContext, GraphicsSignal
from track_probe.core.useragent import ClaimedOS, claimed_os, context_user_agent

# Renderer substrings of software rasterizers (headless/VM indicators)
SOFTWARE_RENDERERS = ("swiftshader", "llvmpipe", "softpipe", "microsoft basic render")
# Discrete GPU families Apple never shipped in an iPhone or iPad.
NON_APPLE_GPUS = ("nvidia", "geforce", "amd", "radeon")

REMEDIATIONS: dict[str, str] = {
    "canvas-noise": (
        "Enable canvas fingerprint protection: Firefox privacy.resistFingerprinting, "
        "Brave's built-in fingerprinting protection, or an extension such as CanvasBlocker."
    ),
    "webgl-renderer": (
        "Use a real GPU instead of software rendering: run the browser headed with "
        "hardware acceleration enabled."
    ),
    "gpu-os-mismatch": (
        "Your GPU cannot exist on the operating system your User-Agent claims. "
        "Stop spoofing the User-Agent, or mask the WebGL renderer as well."
    ),
}


def check_canvas_noise(signal: GraphicsSignal, context: EvaluationContext) -> Check:
    if signal.is_noisy:
        return Check(
            id="canvas-noise",
            name="Canvas Protection",
            status=CheckStatus.PASS,
            message=f"Canvas noise detected ({signal.noise_diff_bytes} bytes differ between renders).",
        )
    return Check(
        id="canvas-noise",
        name="Canvas Protection",
        status=CheckStatus.WARN,
        message="Canvas appears unprotected: identical renders produced identical pixels.",
    )


def check_webgl_renderer(signal: GraphicsSignal, context: EvaluationContext) -> Check:
    renderer = signal.effective_renderer
    if not signal.webgl_supported:
        return Check(
            id="webgl-renderer",
            name="WebGL Renderer",
            status=CheckStatus.PASS,
            message="WebGL is not available, so no GPU identity is exposed.",
        )

    lowered = renderer.lower()
    software = next((name for name in SOFTWARE_RENDERERS if name in lowered), None)
    if software:
        return Check(
            id="webgl-renderer",
            name="WebGL Renderer",
            status=CheckStatus.FAIL,
            message=f"Software renderer detected ({renderer}), a headless or VM indicator.",
        )
    return Check(
        id="webgl-renderer",
        name="WebGL Renderer",
        status=CheckStatus.PASS,
        message=f"Hardware renderer: {renderer or 'unknown'}",
    )


def check_gpu_os(signal: GraphicsSignal, context: EvaluationContext) -> Check:
    os_claim = claimed_os(context_user_agent(context))
    renderer = signal.effective_renderer.lower()
    vendor = signal.effective_vendor.lower()

    problem = None
    if signal.webgl_supported and os_claim is not None:
        if os_claim == ClaimedOS.WINDOWS and ("apple" in renderer or "apple" in vendor):
            problem = "Apple GPU reported, but Apple GPUs cannot run Windows natively."
        elif os_claim == ClaimedOS.IOS and any(gpu in renderer for gpu in NON_APPLE_GPUS):
            problem = f"Non-Apple GPU ({signal.effective_renderer}) reported for an iOS device."

    if problem:
        return Check(id="gpu-os-mismatch", name="GPU/OS Consistency", status=CheckStatus.FAIL, message=problem)
    return Check(
        id="gpu-os-mismatch",
        name="GPU/OS Consistency",
        status=CheckStatus.PASS,
        message="GPU is plausible for the claimed operating system.",
    )


RULES = (check_canvas_noise, check_webgl_renderer, check_gpu_os)
