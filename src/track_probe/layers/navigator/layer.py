"""Navigator and hardware properties layer."""

from __future__ import annotations

from typing import Any

from track_probe.core.base import BaseLayer, Check, LayerName, ProbeFailure
from track_probe.core.signals import EvaluationContext, NavigatorSignal
from track_probe.layers.navigator.checks import REMEDIATIONS, RULES
from track_probe.layers.navigator.collector import collect_navigator


class NavigatorLayer(BaseLayer):
    name = LayerName.NAVIGATOR
    display_name = "Navigator & Hardware"
    description = "User-Agent, platform, language and hardware properties every script can read"
    remediations = REMEDIATIONS

    async def collect(self, page: Any, **kwargs: Any) -> NavigatorSignal:
        return await collect_navigator(page)

    def evaluate(self, signal: NavigatorSignal, context: EvaluationContext) -> list[Check]:
        return [rule(signal, context) for rule in RULES]

    def unavailable(self, reason: ProbeFailure, detail: str | None = None) -> NavigatorSignal:
        return NavigatorSignal(unavailable=reason, detail=detail)
