"""Canvas and WebGL fingerprinting layer."""

from __future__ import annotations

from typing import Any

from track_probe.core.base import BaseLayer, Check, LayerName, ProbeFailure
from track_probe.core.signals import EvaluationContext, GraphicsSignal
from track_probe.layers.graphics.checks import REMEDIATIONS, RULES
from track_probe.layers.graphics.collector import collect_graphics


class GraphicsLayer(BaseLayer):
    name = LayerName.GRAPHICS
    display_name = "Canvas & WebGL Fingerprinting"
    description = "Fingerprint rendering output and detect anti-fingerprinting canvas noise"
    remediations = REMEDIATIONS

    async def collect(self, page: Any, **kwargs: Any) -> GraphicsSignal:
        return await collect_graphics(page)

    def evaluate(self, signal: GraphicsSignal, context: EvaluationContext) -> list[Check]:
        return [rule(signal, context) for rule in RULES]

    def unavailable(self, reason: ProbeFailure, detail: str | None = None) -> GraphicsSignal:
        return GraphicsSignal(unavailable=reason, detail=detail)
