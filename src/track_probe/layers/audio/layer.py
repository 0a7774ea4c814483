"""AudioContext fingerprinting layer."""

from __future__ import annotations

from typing import Any

from track_probe.core.base import BaseLayer, Check, LayerName, ProbeFailure
from track_probe.core.signals import AudioSignal, EvaluationContext
from track_probe.layers.audio.checks import REMEDIATIONS, RULES
from track_probe.layers.audio.collector import collect_audio


class AudioLayer(BaseLayer):
    name = LayerName.AUDIO
    display_name = "Audio Fingerprinting"
    description = "Fingerprint the audio stack's frequency response and detect stubbed output"
    remediations = REMEDIATIONS

    async def collect(self, page: Any, **kwargs: Any) -> AudioSignal:
        return await collect_audio(page, **kwargs)

    def evaluate(self, signal: AudioSignal, context: EvaluationContext) -> list[Check]:
        return [rule(signal, context) for rule in RULES]

    def unavailable(self, reason: ProbeFailure, detail: str | None = None) -> AudioSignal:
        return AudioSignal(unavailable=reason, detail=detail)
