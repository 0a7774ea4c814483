"""Automation framework detection layer."""

from __future__ import annotations

from typing import Any

from track_probe.core.base import BaseLayer, Check, LayerName, ProbeFailure
from track_probe.core.signals import AutomationSignal, EvaluationContext
from track_probe.layers.automation.checks import REMEDIATIONS, RULES
from track_probe.layers.automation.collector import collect_automation


class AutomationLayer(BaseLayer):
    name = LayerName.AUTOMATION
    display_name = "Automation Markers"
    description = "Traces left by WebDriver, CDP, Selenium, Puppeteer, Playwright and friends"
    remediations = REMEDIATIONS

    async def collect(self, page: Any, **kwargs: Any) -> AutomationSignal:
        return await collect_automation(page)

    def evaluate(self, signal: AutomationSignal, context: EvaluationContext) -> list[Check]:
        return [rule(signal, context) for rule in RULES]

    def unavailable(self, reason: ProbeFailure, detail: str | None = None) -> AutomationSignal:
        return AutomationSignal(unavailable=reason, detail=detail)
