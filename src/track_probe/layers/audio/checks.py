"""Audio layer rules."""

from __future__ import annotations

from track_probe.core.base import Check, CheckStatus
from track_probe.core.signals import AudioSignal, EvaluationContext

REMEDIATIONS: dict[str, str] = {
    "audio-protection": (
        "Enable audio fingerprint protection: Brave's fingerprinting protection, "
        "Firefox privacy.resistFingerprinting, or an AudioContext fingerprint defender extension."
    ),
}


def check_audio_protection(signal: AudioSignal, context: EvaluationContext) -> Check:
    if signal.is_protected:
        return Check(
            id="audio-protection",
            name="Audio Protection",
            status=CheckStatus.PASS,
            message=f"Audio output looks stubbed ({signal.distinct_values} distinct values).",
        )
    return Check(
        id="audio-protection",
        name="Audio Protection",
        status=CheckStatus.WARN,
        message=(
            f"Audio processing is fingerprintable ({signal.distinct_values} distinct values "
            "in the frequency response)."
        ),
    )


RULES = (check_audio_protection,)
