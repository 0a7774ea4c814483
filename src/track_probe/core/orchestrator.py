"""Collection orchestrator — run every layer probe against one page."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from typing import Any

from track_probe.core.base import LAYER_ORDER, BaseLayer, LayerName, ProbeFailure
from track_probe.core.config import Settings
from track_probe.core.registry import get_all_layers
from track_probe.core.signals import SIGNAL_TYPES, FingerprintData, RawLayerSignal

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[LayerName, float], None]


def _layer_options(settings: Settings) -> dict[LayerName, dict[str, Any]]:
    return {
        LayerName.NETWORK: {"servers": settings.stun_servers, "timeout": settings.stun_timeout},
    }


async def _run_layer(
    layer: BaseLayer,
    page: Any,
    budget: float,
    options: dict[str, Any],
) -> tuple[LayerName, RawLayerSignal]:
    try:
        signal = await asyncio.wait_for(layer.collect(page, **options), timeout=budget)
    except TimeoutError:
        logger.warning("Layer %s exceeded the %.1fs collection budget", layer.name, budget)
        return layer.name, layer.unavailable(ProbeFailure.TIMEOUT, f"exceeded {budget:.1f}s budget")
    except Exception as exc:
        logger.warning("Layer %s collector raised: %s", layer.name, exc, exc_info=True)
        return layer.name, layer.unavailable(ProbeFailure.ERROR, str(exc))

    if not isinstance(signal, SIGNAL_TYPES[layer.name]):
        logger.warning("Layer %s returned %r instead of its signal", layer.name, type(signal).__name__)
        return layer.name, layer.unavailable(ProbeFailure.ERROR, "collector returned the wrong signal type")
    return layer.name, signal


async def collect(
    page: Any,
    *,
    on_progress: ProgressCallback | None = None,
    timeout: float | None = None,
    settings: Settings | None = None,
) -> FingerprintData:
    """Probe every layer concurrently and bundle the signals.

    Each layer shares the same outer *timeout* budget. A layer that times
    out or raises is recorded as unavailable; this never raises itself.
    *on_progress* is called once per layer, in completion order, with the
    layer name and the fraction of layers done.
    """
    settings = settings or Settings()
    budget = timeout if timeout is not None else settings.collection_timeout
    layers = get_all_layers()
    options = _layer_options(settings)

    tasks = [
        asyncio.create_task(_run_layer(layer, page, budget, options.get(name, {})))
        for name, layer in layers.items()
    ]

    signals: dict[LayerName, RawLayerSignal] = {}
    for done, next_result in enumerate(asyncio.as_completed(tasks), start=1):
        name, signal = await next_result
        signals[name] = signal
        logger.debug("Collected %s (%s)", name, signal.unavailable or "ok")
        if on_progress is not None:
            try:
                on_progress(name, done / len(tasks))
            except Exception:
                logger.exception("Progress callback failed for %s", name)

    return FingerprintData(**{name.value: signals[name] for name in LAYER_ORDER})
