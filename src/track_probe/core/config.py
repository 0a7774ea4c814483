"""Configuration loading — reads optional TOML config file and env overrides."""

from __future__ import annotations

import os
import tomllib
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from track_probe.layers.network.collector import STUN_SERVERS, STUN_TIMEOUT

DEFAULT_CONFIG_PATHS = [
    Path.home() / ".config" / "track-probe" / "config.toml",
    Path("tprobe.toml"),
]

DEFAULT_COLLECTION_TIMEOUT = 10.0

_ENV_PRESET = "TPROBE_PRESET"
_ENV_COLLECTION_TIMEOUT = "TPROBE_COLLECTION_TIMEOUT"


class Settings(BaseModel):
    """Runtime settings. Every field has a working default."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    preset: str | None = None
    collection_timeout: float = Field(default=DEFAULT_COLLECTION_TIMEOUT, gt=0)
    stun_timeout: float = Field(default=STUN_TIMEOUT, gt=0)
    stun_servers: tuple[str, ...] = STUN_SERVERS
    presets_file: Path | None = None
    presets_url: str | None = None
    headless: bool = True


def load_config(path: Path | None = None) -> dict[str, Any]:
    """Load configuration from a TOML file.

    Searches default paths if no explicit path is given.
    Returns an empty dict if no config file is found.
    """
    paths = [path] if path is not None else DEFAULT_CONFIG_PATHS

    for p in paths:
        if p.exists():
            with open(p, "rb") as f:
                return tomllib.load(f)

    return {}


def load_settings(path: Path | None = None, env: Mapping[str, str] | None = None) -> Settings:
    """Build Settings: env vars → config.toml → defaults."""
    env = os.environ if env is None else env
    data = load_config(path)

    if env.get(_ENV_PRESET):
        data["preset"] = env[_ENV_PRESET]
    if env.get(_ENV_COLLECTION_TIMEOUT):
        data["collection_timeout"] = env[_ENV_COLLECTION_TIMEOUT]

    return Settings.model_validate(data)
