"""Tests for scan report persistence and the geolocation hint parser."""

import pytest
from conftest import make_fingerprint

from track_probe.core.report import ScanReport, load_fingerprint, load_report, load_snapshot, save_report
from track_probe.core.scoring import score
from track_probe.core.signals import GeoHint
from track_probe.geo import parse_geo_response


def test_report_round_trip(tmp_path, balanced):
    data = make_fingerprint()
    report = ScanReport(fingerprint=data, trust_score=score(data, balanced), preset="balanced")
    path = save_report(report, tmp_path / "nested" / "report.json")
    assert load_report(path) == report


def test_load_fingerprint_accepts_report_or_snapshot(tmp_path, balanced):
    data = make_fingerprint()
    snapshot = tmp_path / "snapshot.json"
    snapshot.write_text(data.model_dump_json())
    report = save_report(
        ScanReport(fingerprint=data, trust_score=score(data, balanced)), tmp_path / "report.json"
    )
    assert load_fingerprint(snapshot) == data
    assert load_fingerprint(report) == data


def test_load_fingerprint_rejects_garbage(tmp_path):
    path = tmp_path / "bad.json"
    path.write_text('{"hello": "world"}')
    with pytest.raises(ValueError):
        load_fingerprint(path)


def test_parse_geo_response():
    hint = parse_geo_response({"timezone": "Asia/Kolkata", "utc_offset": "+0530", "country_code": "in"})
    assert hint.timezone == "Asia/Kolkata"
    assert hint.utc_offset_minutes == 330
    assert hint.country_code == "IN"


def test_parse_geo_response_negative_and_missing():
    hint = parse_geo_response({"utc_offset": "-0700"})
    assert hint.utc_offset_minutes == -420
    assert hint.timezone is None
    assert parse_geo_response({"utc_offset": "bogus"}).utc_offset_minutes is None


def test_load_snapshot_returns_saved_geo_hint(tmp_path, balanced):
    data = make_fingerprint()
    hint = GeoHint(country_code="JP", utc_offset_minutes=540)
    report = ScanReport(fingerprint=data, trust_score=score(data, balanced, geo_hint=hint), geo_hint=hint)
    path = save_report(report, tmp_path / "report.json")

    assert load_snapshot(path) == (data, hint)

    snapshot = tmp_path / "snapshot.json"
    snapshot.write_text(data.model_dump_json())
    assert load_snapshot(snapshot) == (data, None)
