"""Scan reports — the unit persisted between runs and compared for drift."""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, ConfigDict

from track_probe.core.scoring import TrustScore
from track_probe.core.signals import FingerprintData, GeoHint


class ScanReport(BaseModel):
    model_config = ConfigDict(frozen=True)

    fingerprint: FingerprintData
    trust_score: TrustScore
    preset: str | None = None
    # The hint trust_score was computed with; re-scoring needs it to reproduce the result.
    geo_hint: GeoHint | None = None


def save_report(report: ScanReport, path: Path) -> Path:
    """Write *report* as JSON, creating parent directories."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(report.model_dump_json(indent=2))
    return path


def load_report(path: Path) -> ScanReport:
    return ScanReport.model_validate_json(path.read_text())


def load_snapshot(path: Path) -> tuple[FingerprintData, GeoHint | None]:
    """Load a fingerprint plus the geolocation hint it was scored with.

    Accepts a saved report or a bare FingerprintData snapshot; the latter
    carries no hint.
    """
    text = path.read_text()
    try:
        report = ScanReport.model_validate_json(text)
    except ValueError:
        return FingerprintData.model_validate_json(text), None
    return report.fingerprint, report.geo_hint


def load_fingerprint(path: Path) -> FingerprintData:
    """Load a FingerprintData from either a saved report or a bare snapshot."""
    return load_snapshot(path)[0]
