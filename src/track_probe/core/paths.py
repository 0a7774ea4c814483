"""Locations of the policy files shipped beside the package."""

from __future__ import annotations

from pathlib import Path

_PACKAGE_DIR = Path(__file__).resolve().parent.parent


def _find_shared_dir() -> Path:
    # Source checkout: <repo>/shared. Installed wheel: track_probe/_shared.
    checkout = _PACKAGE_DIR.parent.parent / "shared"
    return checkout if checkout.is_dir() else _PACKAGE_DIR / "_shared"


SHARED_DIR = _find_shared_dir()

SCORING_SCHEMA = SHARED_DIR / "schema" / "scoring.yaml"
