"""Timezone and locale layer."""

from __future__ import annotations

from typing import Any

from track_probe.core.base import BaseLayer, Check, LayerName, ProbeFailure
from track_probe.core.signals import EvaluationContext, LocaleSignal
from track_probe.layers.locale.checks import REMEDIATIONS, RULES
from track_probe.layers.locale.collector import collect_locale


class LocaleLayer(BaseLayer):
    name = LayerName.LOCALE
    display_name = "Timezone & Locale"
    description = "Timezone, UTC offset and locale, cross-checked against each other and your IP"
    remediations = REMEDIATIONS

    async def collect(self, page: Any, **kwargs: Any) -> LocaleSignal:
        return await collect_locale(page)

    def evaluate(self, signal: LocaleSignal, context: EvaluationContext) -> list[Check]:
        return [rule(signal, context) for rule in RULES]

    def unavailable(self, reason: ProbeFailure, detail: str | None = None) -> LocaleSignal:
        return LocaleSignal(unavailable=reason, detail=detail)
