"""AudioContext fingerprinting — oscillator through a compressor into an analyser."""

from __future__ import annotations

import asyncio
import logging
import math
from collections.abc import Iterable
from typing import Any

from track_probe.core.base import ProbeFailure
from track_probe.core.hashing import sha256_hex_async
from track_probe.core.signals import AudioSignal

logger = logging.getLogger(__name__)

SETTLE_MS = 500
SAMPLE_BINS = 128
AUDIO_TIMEOUT = 5.0  # seconds, covers the settle delay plus context start-up
_RELEASE_TIMEOUT = 1.0

# Fewer distinct values than this means the browser returns stubbed output.
UNIFORMITY_THRESHOLD = 5

# The chain is muted by a zero gain before the destination. The context is
# closed in every path; it is also parked on window so Python can close it
# if the evaluation itself is abandoned.
PROBE_SCRIPT = """async ({ settleMs, bins }) => {
    const Ctx = window.AudioContext || window.webkitAudioContext;
    if (!Ctx) return { supported: false };
    const ctx = new Ctx();
    window.__tprobeAudio = ctx;
    try {
        const now = ctx.currentTime;
        const oscillator = ctx.createOscillator();
        oscillator.type = 'triangle';
        oscillator.frequency.setValueAtTime(10000, now);
        const compressor = ctx.createDynamicsCompressor();
        compressor.threshold.setValueAtTime(-50, now);
        compressor.knee.setValueAtTime(40, now);
        compressor.ratio.setValueAtTime(12, now);
        compressor.attack.setValueAtTime(0, now);
        compressor.release.setValueAtTime(0.25, now);
        const analyser = ctx.createAnalyser();
        analyser.fftSize = 2048;
        const gain = ctx.createGain();
        gain.gain.setValueAtTime(0, now);

        oscillator.connect(compressor);
        compressor.connect(analyser);
        analyser.connect(gain);
        gain.connect(ctx.destination);
        oscillator.start(0);
        if (ctx.state === 'suspended') {
            try { await ctx.resume(); } catch (e) {}
        }

        await new Promise((resolve) => setTimeout(resolve, settleMs));
        const data = new Float32Array(analyser.frequencyBinCount);
        analyser.getFloatFrequencyData(data);
        oscillator.stop();

        return {
            supported: true,
            sample: Array.from(data.slice(0, bins)),
            sampleRate: ctx.sampleRate,
            channelCount: ctx.destination.channelCount,
            maxChannelCount: ctx.destination.maxChannelCount,
            baseLatency: typeof ctx.baseLatency === 'number' ? ctx.baseLatency : null,
            state: ctx.state,
        };
    } finally {
        try { await ctx.close(); } catch (e) {}
        if (window.__tprobeAudio === ctx) delete window.__tprobeAudio;
    }
}"""

RELEASE_SCRIPT = """() => {
    const ctx = window.__tprobeAudio;
    if (ctx) {
        delete window.__tprobeAudio;
        return ctx.close().catch(() => {});
    }
}"""


def sanitize_sample(values: Iterable[Any]) -> tuple[float | None, ...]:
    """Keep finite floats; silent bins (-inf dB) and garbage become None."""
    sample: list[float | None] = []
    for value in values:
        if isinstance(value, (int, float)) and not isinstance(value, bool) and math.isfinite(value):
            sample.append(float(value))
        else:
            sample.append(None)
    return tuple(sample)


def count_distinct(sample: Iterable[float | None]) -> int:
    return len({v for v in sample if v is not None})


def render_sample(sample: Iterable[float | None]) -> str:
    return ",".join("-" if v is None else f"{v:.6f}" for v in sample)


async def _release(page: Any) -> None:
    try:
        await asyncio.wait_for(page.evaluate(RELEASE_SCRIPT), timeout=_RELEASE_TIMEOUT)
    except Exception:
        logger.debug("Could not release audio context", exc_info=True)


async def collect_audio(page: Any, timeout: float = AUDIO_TIMEOUT) -> AudioSignal:
    """Run the muted signal chain and fingerprint its frequency response."""
    try:
        payload = await asyncio.wait_for(
            page.evaluate(PROBE_SCRIPT, {"settleMs": SETTLE_MS, "bins": SAMPLE_BINS}),
            timeout=timeout,
        )
    except TimeoutError:
        logger.warning("Audio probe timed out after %.1fs", timeout)
        await _release(page)
        return AudioSignal(unavailable=ProbeFailure.TIMEOUT, detail=f"no result after {timeout}s")
    except Exception as exc:
        logger.warning("Audio probe failed: %s", exc)
        await _release(page)
        return AudioSignal(unavailable=ProbeFailure.ERROR, detail=str(exc))

    if not isinstance(payload, dict) or not payload.get("supported"):
        return AudioSignal(
            unavailable=ProbeFailure.UNSUPPORTED,
            detail="AudioContext is not available",
        )

    sample = sanitize_sample(payload.get("sample") or [])
    distinct = count_distinct(sample)

    return AudioSignal(
        sample=sample,
        distinct_values=distinct,
        is_protected=distinct < UNIFORMITY_THRESHOLD,
        sample_rate=payload.get("sampleRate"),
        channel_count=payload.get("channelCount"),
        max_channel_count=payload.get("maxChannelCount"),
        base_latency=payload.get("baseLatency"),
        state=payload.get("state"),
        fingerprint_hash=await sha256_hex_async(render_sample(sample)),
    )
