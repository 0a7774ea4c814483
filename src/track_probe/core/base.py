"""Base layer contract — every detection layer implements this interface."""

from __future__ import annotations

from abc import ABC, abstractmethod
from enum import StrEnum
from typing import TYPE_CHECKING, Any, ClassVar

from pydantic import BaseModel, ConfigDict, Field

if TYPE_CHECKING:
    from track_probe.core.signals import EvaluationContext, RawLayerSignal


class LayerName(StrEnum):
    NETWORK = "network"
    GRAPHICS = "graphics"
    AUDIO = "audio"
    FONTS = "fonts"
    NAVIGATOR = "navigator"
    LOCALE = "locale"
    AUTOMATION = "automation"


# Declaration order: drives FingerprintData field order, issue order and output.
LAYER_ORDER: tuple[LayerName, ...] = tuple(LayerName)


class CheckStatus(StrEnum):
    PASS = "pass"
    WARN = "warn"
    FAIL = "fail"


class LayerStatus(StrEnum):
    PASS = "pass"
    WARN = "warn"
    FAIL = "fail"
    UNAVAILABLE = "unavailable"


class ProbeFailure(StrEnum):
    """Why a layer could not be collected."""

    UNSUPPORTED = "unsupported"  # platform capability missing
    TIMEOUT = "timeout"
    ERROR = "error"  # capability present but threw


class Check(BaseModel):
    """A single evaluated rule — one pass/warn/fail verdict."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    status: CheckStatus
    message: str | None = None


class LayerResult(BaseModel):
    """Aggregated verdict for one detection layer."""

    model_config = ConfigDict(frozen=True)

    score: int | None = Field(default=None, ge=0, le=100)  # None when unavailable
    status: LayerStatus
    weight: float = 0.0
    checks: tuple[Check, ...] = ()


class Issue(BaseModel):
    """A warn/fail check copied out of its layer and tagged with it."""

    model_config = ConfigDict(frozen=True)

    layer: LayerName
    check: str
    message: str
    status: CheckStatus


class BaseLayer(ABC):
    """Abstract base class for all detection layers.

    A layer bundles the probe that reads the browser, the rule set that turns
    the raw signal into checks, and the static remediation text for those
    checks.
    """

    name: ClassVar[LayerName]
    display_name: ClassVar[str]
    description: ClassVar[str]

    # check id -> remediation string
    remediations: ClassVar[dict[str, str]] = {}

    @abstractmethod
    async def collect(self, page: Any, **kwargs: Any) -> RawLayerSignal:
        """Probe the page and return this layer's signal. Must never raise."""
        ...

    @abstractmethod
    def evaluate(self, signal: RawLayerSignal, context: EvaluationContext) -> list[Check]:
        """Run this layer's ordered rule set against an available signal."""
        ...

    @abstractmethod
    def unavailable(self, reason: ProbeFailure, detail: str | None = None) -> RawLayerSignal:
        """Return the empty signal used when collection failed."""
        ...

    def get_remediation(self, check_id: str) -> str | None:
        return self.remediations.get(check_id)
