"""track-probe — see what a tracking script learns about your browser."""

from track_probe.core.base import Check, CheckStatus, Issue, LayerName, LayerResult, LayerStatus, ProbeFailure
from track_probe.core.orchestrator import collect
from track_probe.core.scoring import DriftReport, LayerDrift, TrustScore, compare, score
from track_probe.core.signals import FingerprintData, GeoHint
from track_probe.core.weights import ScoringWeights, UnknownPresetError, WeightPreset, WeightRegistry

__all__ = [
    "Check",
    "CheckStatus",
    "DriftReport",
    "FingerprintData",
    "GeoHint",
    "Issue",
    "LayerDrift",
    "LayerName",
    "LayerResult",
    "LayerStatus",
    "ProbeFailure",
    "ScoringWeights",
    "TrustScore",
    "UnknownPresetError",
    "WeightPreset",
    "WeightRegistry",
    "collect",
    "compare",
    "score",
]
