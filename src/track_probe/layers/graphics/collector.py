"""Canvas and WebGL fingerprinting — render twice, compare, hash."""

from __future__ import annotations

import base64
import binascii
import logging
from typing import Any

from track_probe.core.base import ProbeFailure
from track_probe.core.hashing import sha256_hex, sha256_hex_async
from track_probe.core.signals import GraphicsSignal

logger = logging.getLogger(__name__)

# More differing bytes than this between two identical renders means the
# browser injects per-render noise.
NOISE_THRESHOLD = 10

CANVAS_WIDTH = 240
CANVAS_HEIGHT = 60

# Draws the same scene into two fresh canvases, returns both RGBA buffers
# base64-encoded, then reads the WebGL vendor strings. Surfaces are shrunk to
# zero before returning so the page does not keep their backing stores.
RENDER_SCRIPT = """({ width, height }) => {
    const draw = (canvas) => {
        canvas.width = width;
        canvas.height = height;
        const ctx = canvas.getContext('2d');
        if (!ctx) return null;
        ctx.textBaseline = 'top';
        ctx.font = '14px Arial';
        ctx.fillStyle = '#f60';
        ctx.fillRect(125, 1, 62, 20);
        ctx.fillStyle = '#069';
        ctx.fillText('Track-Probe <canvas> 1.0', 2, 15);
        ctx.fillStyle = 'rgba(102, 204, 0, 0.7)';
        ctx.fillText('Track-Probe <canvas> 1.0', 4, 17);
        ctx.strokeStyle = 'rgba(255, 0, 255, 0.8)';
        ctx.beginPath();
        ctx.arc(200, 30, 20, 0, Math.PI * 2, true);
        ctx.stroke();
        return ctx;
    };
    const encode = (bytes) => {
        let out = '';
        for (let i = 0; i < bytes.length; i += 0x8000) {
            out += String.fromCharCode.apply(null, bytes.subarray(i, i + 0x8000));
        }
        return btoa(out);
    };

    const first = document.createElement('canvas');
    const second = document.createElement('canvas');
    const result = { supported: false, webgl: null };
    try {
        const ctxA = draw(first);
        const ctxB = draw(second);
        if (ctxA && ctxB) {
            result.supported = true;
            result.pixelsA = encode(ctxA.getImageData(0, 0, width, height).data);
            result.pixelsB = encode(ctxB.getImageData(0, 0, width, height).data);
            result.dataUrl = first.toDataURL();
        }

        const glCanvas = document.createElement('canvas');
        const gl = glCanvas.getContext('webgl') || glCanvas.getContext('experimental-webgl');
        if (gl) {
            const debug = gl.getExtension('WEBGL_debug_renderer_info');
            result.webgl = {
                vendor: gl.getParameter(gl.VENDOR) || '',
                renderer: gl.getParameter(gl.RENDERER) || '',
                unmaskedVendor: debug ? gl.getParameter(debug.UNMASKED_VENDOR_WEBGL) || '' : '',
                unmaskedRenderer: debug ? gl.getParameter(debug.UNMASKED_RENDERER_WEBGL) || '' : '',
            };
            const lose = gl.getExtension('WEBGL_lose_context');
            if (lose) lose.loseContext();
        }
    } finally {
        first.width = 0;
        second.width = 0;
    }
    return result;
}"""


def count_byte_differences(first: bytes, second: bytes) -> int:
    """Count positions where two pixel buffers differ; length mismatch counts too."""
    diff = sum(1 for a, b in zip(first, second) if a != b)
    return diff + abs(len(first) - len(second))


def gpu_fingerprint(vendor: str, renderer: str) -> str:
    return sha256_hex(f"{vendor}|{renderer}")


async def collect_graphics(page: Any) -> GraphicsSignal:
    """Render the fixed scene twice and read the GPU identity strings."""
    try:
        payload = await page.evaluate(
            RENDER_SCRIPT, {"width": CANVAS_WIDTH, "height": CANVAS_HEIGHT}
        )
    except Exception as exc:
        logger.warning("Canvas probe failed: %s", exc)
        return GraphicsSignal(unavailable=ProbeFailure.ERROR, detail=str(exc))

    if not isinstance(payload, dict) or not payload.get("supported"):
        return GraphicsSignal(
            unavailable=ProbeFailure.UNSUPPORTED,
            detail="2D canvas context is not available",
        )

    try:
        first = base64.b64decode(payload["pixelsA"])
        second = base64.b64decode(payload["pixelsB"])
        data_url = str(payload["dataUrl"])
    except (KeyError, TypeError, binascii.Error) as exc:
        logger.warning("Canvas probe returned malformed data: %s", exc)
        return GraphicsSignal(unavailable=ProbeFailure.ERROR, detail=str(exc))

    diff = count_byte_differences(first, second)
    canvas_hash = await sha256_hex_async(data_url)

    webgl = payload.get("webgl") or {}
    vendor = str(webgl.get("vendor") or "")
    renderer = str(webgl.get("renderer") or "")
    unmasked_vendor = str(webgl.get("unmaskedVendor") or "")
    unmasked_renderer = str(webgl.get("unmaskedRenderer") or "")

    return GraphicsSignal(
        canvas_hash=canvas_hash,
        noise_diff_bytes=diff,
        is_noisy=diff > NOISE_THRESHOLD,
        webgl_supported=bool(webgl),
        vendor=vendor,
        renderer=renderer,
        unmasked_vendor=unmasked_vendor,
        unmasked_renderer=unmasked_renderer,
        gpu_hash=(
            gpu_fingerprint(unmasked_vendor or vendor, unmasked_renderer or renderer)
            if webgl
            else None
        ),
        fingerprint_hash=canvas_hash,
    )
