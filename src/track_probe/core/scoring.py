"""Scoring engine — run layer rules and aggregate them into a trust score."""

from __future__ import annotations

from collections.abc import Iterable
from typing import TypedDict

import yaml
from pydantic import BaseModel, ConfigDict

from track_probe.core.base import (
    LAYER_ORDER,
    Check,
    CheckStatus,
    Issue,
    LayerName,
    LayerResult,
    LayerStatus,
)
from track_probe.core.paths import SCORING_SCHEMA
from track_probe.core.registry import get_all_layers
from track_probe.core.signals import EvaluationContext, FingerprintData, GeoHint
from track_probe.core.weights import ScoringWeights


class _GradeBand(TypedDict):
    min: int
    grade: str
    label: str
    color: str


def _load_scoring() -> tuple[list[_GradeBand], dict[str, float]]:
    with open(SCORING_SCHEMA) as f:
        data = yaml.safe_load(f)
    bands = sorted(data["grade_bands"], key=lambda band: band["min"], reverse=True)
    return bands, data["check_penalties"]


_GRADE_BANDS, _CHECK_PENALTIES = _load_scoring()

_SEVERITY = {CheckStatus.PASS: 0, CheckStatus.WARN: 1, CheckStatus.FAIL: 2}


class LayerDrift(BaseModel):
    """Whether a layer's fingerprint value changed between two snapshots."""

    model_config = ConfigDict(frozen=True)

    changed: bool | None  # None when either side was unavailable
    previous_hash: str | None = None
    current_hash: str | None = None


class DriftReport(BaseModel):
    model_config = ConfigDict(frozen=True)

    layers: dict[LayerName, LayerDrift]
    score_delta: float

    @property
    def changed_layers(self) -> list[LayerName]:
        return [name for name, drift in self.layers.items() if drift.changed]


class TrustScore(BaseModel):
    """The engine's verdict on one FingerprintData snapshot."""

    model_config = ConfigDict(frozen=True)

    overall: float
    grade: str
    layers: dict[LayerName, LayerResult]
    critical_issues: tuple[Issue, ...] = ()
    warnings: tuple[Issue, ...] = ()
    recommendations: tuple[str, ...] = ()
    weights_used: dict[LayerName, float]
    drift: DriftReport | None = None


def layer_score(checks: Iterable[Check]) -> int:
    """Score a layer 0-100 from its checks. A layer with no checks scores 100."""
    checks = list(checks)
    if not checks:
        return 100
    penalty = sum(_CHECK_PENALTIES.get(check.status.value, 0.0) for check in checks)
    return max(0, min(100, round(100 * (1 - penalty / len(checks)))))


def layer_status(checks: Iterable[Check]) -> LayerStatus:
    """The worst severity among *checks*."""
    worst = max((check.status for check in checks), key=_SEVERITY.__getitem__, default=CheckStatus.PASS)
    return LayerStatus(worst.value)


def get_grade(score: float) -> str:
    """Return the letter grade for an overall score."""
    for band in _GRADE_BANDS:
        if score >= band["min"]:
            return str(band["grade"])
    return str(_GRADE_BANDS[-1]["grade"])


def get_grade_label(score: float) -> str:
    """Return a human-readable label for an overall score."""
    for band in _GRADE_BANDS:
        if score >= band["min"]:
            return str(band["label"])
    return str(_GRADE_BANDS[-1]["label"])


def get_grade_color(score: float) -> str:
    """Return a Rich color name for an overall or layer score."""
    for band in _GRADE_BANDS:
        if score >= band["min"]:
            return str(band["color"])
    return "red"


def effective_weights(data: FingerprintData, weights: ScoringWeights) -> dict[LayerName, float]:
    """Weights renormalized over the layers that were actually collected."""
    available = [name for name, signal in data.layers() if signal.available]
    return weights.normalized(available)


def _evaluate_layers(
    data: FingerprintData,
    applied: dict[LayerName, float],
    context: EvaluationContext,
) -> dict[LayerName, LayerResult]:
    layers = get_all_layers()
    results: dict[LayerName, LayerResult] = {}

    for name, signal in data.layers():
        if not signal.available:
            results[name] = LayerResult(score=None, status=LayerStatus.UNAVAILABLE, weight=0.0)
            continue

        checks = layers[name].evaluate(signal, context)
        results[name] = LayerResult(
            score=layer_score(checks),
            status=layer_status(checks),
            weight=applied[name],
            checks=tuple(checks),
        )

    return results


def compute_overall_score(results: dict[LayerName, LayerResult]) -> float:
    """Weighted mean of available layer scores, rounded to one decimal.

    Returns 0.0 when no layer carries weight.
    """
    total_weight = sum(r.weight for r in results.values() if r.score is not None)
    if total_weight <= 0:
        return 0.0

    weighted_sum = sum(r.score * r.weight for r in results.values() if r.score is not None)
    return round(weighted_sum / total_weight, 1)


def _collect_issues(results: dict[LayerName, LayerResult]) -> tuple[list[Issue], list[Issue]]:
    critical: list[Issue] = []
    warnings: list[Issue] = []
    for name in LAYER_ORDER:
        for check in results[name].checks:
            if check.status == CheckStatus.PASS:
                continue
            issue = Issue(layer=name, check=check.id, message=check.message or check.name, status=check.status)
            (critical if check.status == CheckStatus.FAIL else warnings).append(issue)
    return critical, warnings


def _recommendations(results: dict[LayerName, LayerResult]) -> list[str]:
    layers = get_all_layers()
    seen: set[str] = set()
    recommendations: list[str] = []
    for name in LAYER_ORDER:
        for check in results[name].checks:
            if check.status == CheckStatus.PASS or check.id in seen:
                continue
            seen.add(check.id)
            remediation = layers[name].get_remediation(check.id)
            if remediation:
                recommendations.append(remediation)
    return recommendations


def compare(
    current: FingerprintData,
    previous: FingerprintData,
    weights: ScoringWeights,
    *,
    geo_hint: GeoHint | None = None,
    previous_geo_hint: GeoHint | None = None,
) -> DriftReport:
    """Per-layer hash drift plus the score delta under the same weights.

    Each snapshot is scored with its own geolocation hint, so a previous
    snapshot saved without one is scored without one.
    """
    drift: dict[LayerName, LayerDrift] = {}
    for name in LAYER_ORDER:
        now, before = current.signal(name), previous.signal(name)
        changed = None
        if now.available and before.available:
            changed = now.fingerprint_hash != before.fingerprint_hash
        drift[name] = LayerDrift(
            changed=changed,
            previous_hash=before.fingerprint_hash,
            current_hash=now.fingerprint_hash,
        )

    delta = (
        score(current, weights, geo_hint=geo_hint).overall
        - score(previous, weights, geo_hint=previous_geo_hint).overall
    )
    return DriftReport(layers=drift, score_delta=round(delta, 1))


def score(
    data: FingerprintData,
    weights: ScoringWeights,
    previous: FingerprintData | None = None,
    *,
    geo_hint: GeoHint | None = None,
    previous_geo_hint: GeoHint | None = None,
) -> TrustScore:
    """Evaluate every layer of *data* and aggregate the result.

    Pure and synchronous: the same inputs always produce the same TrustScore.
    """
    applied = effective_weights(data, weights)
    context = EvaluationContext(fingerprint=data, geo_hint=geo_hint)
    results = _evaluate_layers(data, applied, context)
    overall = compute_overall_score(results)
    critical, warnings = _collect_issues(results)

    drift = None
    if previous is not None:
        drift = compare(data, previous, weights, geo_hint=geo_hint, previous_geo_hint=previous_geo_hint)

    return TrustScore(
        overall=overall,
        grade=get_grade(overall),
        layers=results,
        critical_issues=tuple(critical),
        warnings=tuple(warnings),
        recommendations=tuple(_recommendations(results)),
        weights_used=applied,
        drift=drift,
    )
