"""Font enumeration layer."""

from __future__ import annotations

from typing import Any

from track_probe.core.base import BaseLayer, Check, LayerName, ProbeFailure
from track_probe.core.signals import EvaluationContext, FontsSignal
from track_probe.layers.fonts.checks import REMEDIATIONS, RULES
from track_probe.layers.fonts.collector import collect_fonts


class FontsLayer(BaseLayer):
    name = LayerName.FONTS
    display_name = "Font Enumeration"
    description = "Enumerate installed fonts through text-width measurement"
    remediations = REMEDIATIONS

    async def collect(self, page: Any, **kwargs: Any) -> FontsSignal:
        return await collect_fonts(page)

    def evaluate(self, signal: FontsSignal, context: EvaluationContext) -> list[Check]:
        return [rule(signal, context) for rule in RULES]

    def unavailable(self, reason: ProbeFailure, detail: str | None = None) -> FontsSignal:
        return FontsSignal(unavailable=reason, detail=detail)
