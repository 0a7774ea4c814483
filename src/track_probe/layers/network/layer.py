"""WebRTC IP leak detection layer."""

from __future__ import annotations

from typing import Any

from track_probe.core.base import BaseLayer, Check, LayerName, ProbeFailure
from track_probe.core.signals import EvaluationContext, NetworkSignal
from track_probe.layers.network.checks import REMEDIATIONS, RULES
from track_probe.layers.network.collector import collect_network


class NetworkLayer(BaseLayer):
    name = LayerName.NETWORK
    display_name = "WebRTC IP Leak Detection"
    description = "Detect local and public addresses that WebRTC exposes past a VPN or proxy"
    remediations = REMEDIATIONS

    async def collect(self, page: Any, **kwargs: Any) -> NetworkSignal:
        return await collect_network(page, **kwargs)

    def evaluate(self, signal: NetworkSignal, context: EvaluationContext) -> list[Check]:
        return [rule(signal, context) for rule in RULES]

    def unavailable(self, reason: ProbeFailure, detail: str | None = None) -> NetworkSignal:
        return NetworkSignal(unavailable=reason, detail=detail)
