"""Weight profiles — named presets and the immutable registry that holds them."""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable, Iterator
from pathlib import Path
from types import MappingProxyType
from typing import Any

import httpx
import yaml
from pydantic import BaseModel, ConfigDict, Field, model_validator

from track_probe.core.base import LAYER_ORDER, LayerName
from track_probe.core.paths import SCORING_SCHEMA

logger = logging.getLogger(__name__)

_FETCH_TIMEOUT = 10.0

_Weight = Field(ge=0, allow_inf_nan=False)


class UnknownPresetError(KeyError):
    """Raised when a preset id is not in the registry."""

    def __init__(self, preset_id: str, known: Iterable[str] = ()) -> None:
        self.preset_id = preset_id
        self.known = tuple(known)
        super().__init__(preset_id)

    def __str__(self) -> str:
        return f"Unknown preset {self.preset_id!r}. Known presets: {', '.join(self.known)}"


class ScoringWeights(BaseModel):
    """Relative importance of each layer. Non-negative; normalized by the engine."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    network: float = _Weight
    graphics: float = _Weight
    audio: float = _Weight
    fonts: float = _Weight
    navigator: float = _Weight
    locale: float = _Weight
    automation: float = _Weight

    @model_validator(mode="after")
    def _not_all_zero(self) -> ScoringWeights:
        if sum(self.as_dict().values()) <= 0:
            raise ValueError("at least one layer weight must be positive")
        return self

    def get(self, layer: LayerName | str) -> float:
        return float(getattr(self, LayerName(layer).value))

    def as_dict(self) -> dict[LayerName, float]:
        return {name: getattr(self, name.value) for name in LAYER_ORDER}

    def normalized(self, layers: Iterable[LayerName | str] | None = None) -> dict[LayerName, float]:
        """Rescale the weights of *layers* (default: all) so they sum to 1.

        Layers outside the subset get 0. If the subset's weights are all
        zero, every layer gets 0.
        """
        included = set(LAYER_ORDER) if layers is None else {LayerName(layer) for layer in layers}
        raw = {name: (w if name in included else 0.0) for name, w in self.as_dict().items()}
        total = sum(raw.values())
        if total <= 0:
            return {name: 0.0 for name in LAYER_ORDER}
        return {name: w / total for name, w in raw.items()}


def slugify(name: str) -> str:
    return re.sub(r"[^a-z0-9]+", "-", name.lower()).strip("-")


class WeightPreset(BaseModel):
    """A named weight profile. Built-in and custom presets behave the same."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(pattern=r"^[a-z0-9-]+$")
    name: str = Field(min_length=1, max_length=80)
    description: str = Field(default="", max_length=280)
    weights: ScoringWeights

    @model_validator(mode="before")
    @classmethod
    def _default_id(cls, data: Any) -> Any:
        if isinstance(data, dict) and not data.get("id") and data.get("name"):
            data = {**data, "id": slugify(str(data["name"]))}
        return data


class WeightRegistry:
    """Immutable collection of presets, built once and passed to callers."""

    def __init__(self, presets: Iterable[WeightPreset], default_id: str) -> None:
        by_id: dict[str, WeightPreset] = {}
        for preset in presets:
            if preset.id in by_id:
                raise ValueError(f"Duplicate preset id: {preset.id}")
            by_id[preset.id] = preset
        if default_id not in by_id:
            raise UnknownPresetError(default_id, by_id)
        self._presets = MappingProxyType(by_id)
        self._default_id = default_id

    @classmethod
    def load(cls, path: Path = SCORING_SCHEMA) -> WeightRegistry:
        """Build the registry of built-in presets from the scoring schema."""
        with open(path) as f:
            data = yaml.safe_load(f)
        presets = [WeightPreset.model_validate(p) for p in data["presets"]]
        return cls(presets, data.get("default_preset", presets[0].id))

    def with_presets(self, presets: Iterable[WeightPreset]) -> WeightRegistry:
        """Return a new registry that also contains *presets*."""
        return WeightRegistry([*self._presets.values(), *presets], self._default_id)

    @property
    def default(self) -> WeightPreset:
        return self._presets[self._default_id]

    def ids(self) -> list[str]:
        return list(self._presets)

    def get(self, preset_id: str) -> WeightPreset:
        try:
            return self._presets[preset_id]
        except KeyError:
            raise UnknownPresetError(preset_id, self._presets) from None

    def resolve(self, preset_id: str | None = None) -> ScoringWeights:
        """Weights for *preset_id*, or the default preset's when None."""
        return (self.get(preset_id) if preset_id else self.default).weights

    def __iter__(self) -> Iterator[WeightPreset]:
        return iter(self._presets.values())

    def __len__(self) -> int:
        return len(self._presets)

    def __contains__(self, preset_id: object) -> bool:
        return preset_id in self._presets


def parse_presets(data: Any) -> list[WeightPreset]:
    """Accept either a bare list of presets or a mapping with a ``presets`` key."""
    if isinstance(data, dict):
        data = data.get("presets", [])
    if not isinstance(data, list):
        raise ValueError("preset document must be a list or contain a 'presets' list")
    return [WeightPreset.model_validate(item) for item in data]


def load_preset_file(path: Path) -> list[WeightPreset]:
    """Load custom presets from a YAML or JSON file."""
    with open(path) as f:
        data = yaml.safe_load(f)
    presets = parse_presets(data or [])
    logger.debug("Loaded %d custom preset(s) from %s", len(presets), path)
    return presets


async def fetch_presets(url: str, timeout: float = _FETCH_TIMEOUT) -> list[WeightPreset]:
    """Fetch custom presets published as JSON at *url*."""
    async with httpx.AsyncClient(timeout=timeout) as client:
        resp = await client.get(url)
        resp.raise_for_status()
        data = resp.json()
    presets = parse_presets(data)
    logger.debug("Fetched %d custom preset(s) from %s", len(presets), url)
    return presets
