"""Raw per-layer signals and the FingerprintData snapshot that bundles them."""

from __future__ import annotations

from collections.abc import Iterator
from datetime import UTC, datetime
from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field

from track_probe.core.base import LAYER_ORDER, LayerName, ProbeFailure


class _Signal(BaseModel):
    model_config = ConfigDict(frozen=True)

    unavailable: ProbeFailure | None = None
    detail: str | None = None
    fingerprint_hash: str | None = None

    @property
    def available(self) -> bool:
        return self.unavailable is None


# --- Network -----------------------------------------------------------------


class StunProbeResult(BaseModel):
    """Outcome of gathering candidates against a single STUN server."""

    model_config = ConfigDict(frozen=True)

    server: str
    host_candidates: tuple[str, ...] = ()
    srflx_candidates: tuple[str, ...] = ()
    relay_candidates: tuple[str, ...] = ()
    timed_out: bool = False
    error: str | None = None


class NetworkSignal(_Signal):
    layer: Literal["network"] = "network"
    local_ips: tuple[str, ...] = ()
    public_ip: str | None = None
    has_leak: bool = False
    stun_results: tuple[StunProbeResult, ...] = ()


# --- Graphics ----------------------------------------------------------------


class GraphicsSignal(_Signal):
    layer: Literal["graphics"] = "graphics"
    canvas_hash: str | None = None
    noise_diff_bytes: int = 0
    is_noisy: bool = False
    # Cross-browser uniqueness needs population statistics we never compute.
    uniqueness: Literal["unknown"] = "unknown"
    webgl_supported: bool = False
    vendor: str = ""
    renderer: str = ""
    unmasked_vendor: str = ""
    unmasked_renderer: str = ""
    gpu_hash: str | None = None

    @property
    def effective_vendor(self) -> str:
        return self.unmasked_vendor or self.vendor

    @property
    def effective_renderer(self) -> str:
        return self.unmasked_renderer or self.renderer


# --- Audio -------------------------------------------------------------------


class AudioSignal(_Signal):
    layer: Literal["audio"] = "audio"
    sample: tuple[float | None, ...] = ()
    distinct_values: int = 0
    is_protected: bool = False
    sample_rate: float | None = None
    channel_count: int | None = None
    max_channel_count: int | None = None
    base_latency: float | None = None
    state: str | None = None


# --- Fonts -------------------------------------------------------------------


class FontsSignal(_Signal):
    layer: Literal["fonts"] = "fonts"
    detected: tuple[str, ...] = ()
    tested: int = 0

    @property
    def count(self) -> int:
        return len(self.detected)


# --- Navigator ---------------------------------------------------------------


class NavigatorSignal(_Signal):
    layer: Literal["navigator"] = "navigator"
    user_agent: str = ""
    platform: str = ""
    language: str = ""
    languages: tuple[str, ...] = ()
    cookie_enabled: bool = True
    do_not_track: str | None = None
    hardware_concurrency: int = 0
    device_memory: float | None = None
    max_touch_points: int = 0
    vendor: str = ""
    webdriver: bool = False


# --- Locale ------------------------------------------------------------------


class LocaleSignal(_Signal):
    layer: Literal["locale"] = "locale"
    timezone: str = "Unknown"
    timezone_estimated: bool = False
    # Minutes east of UTC (UTC+2 -> 120), the opposite sign of getTimezoneOffset().
    utc_offset_minutes: int = 0
    january_offset_minutes: int = 0
    july_offset_minutes: int = 0
    dst: bool = False
    languages: tuple[str, ...] = ()
    locale: str = ""


# --- Automation --------------------------------------------------------------


class AutomationSignal(_Signal):
    layer: Literal["automation"] = "automation"
    webdriver: bool = False
    cdp_traces: bool = False
    selenium: bool = False
    puppeteer: bool = False
    playwright: bool = False
    phantomjs: bool = False
    nightmare: bool = False
    markers: tuple[str, ...] = ()


RawLayerSignal = Annotated[
    NetworkSignal
    | GraphicsSignal
    | AudioSignal
    | FontsSignal
    | NavigatorSignal
    | LocaleSignal
    | AutomationSignal,
    Field(discriminator="layer"),
]

SIGNAL_TYPES: dict[LayerName, type[_Signal]] = {
    LayerName.NETWORK: NetworkSignal,
    LayerName.GRAPHICS: GraphicsSignal,
    LayerName.AUDIO: AudioSignal,
    LayerName.FONTS: FontsSignal,
    LayerName.NAVIGATOR: NavigatorSignal,
    LayerName.LOCALE: LocaleSignal,
    LayerName.AUTOMATION: AutomationSignal,
}


class FingerprintData(BaseModel):
    """One scan's worth of raw signals — every layer key is always present."""

    model_config = ConfigDict(frozen=True)

    network: NetworkSignal
    graphics: GraphicsSignal
    audio: AudioSignal
    fonts: FontsSignal
    navigator: NavigatorSignal
    locale: LocaleSignal
    automation: AutomationSignal
    collected_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

    def signal(self, layer: LayerName | str) -> RawLayerSignal:
        return getattr(self, LayerName(layer).value)

    def layers(self) -> Iterator[tuple[LayerName, RawLayerSignal]]:
        """Yield (layer, signal) pairs in declaration order."""
        for name in LAYER_ORDER:
            yield name, getattr(self, name.value)


class GeoHint(BaseModel):
    """Externally supplied location of the visitor's IP, used by locale rules."""

    model_config = ConfigDict(frozen=True)

    timezone: str | None = None
    utc_offset_minutes: int | None = None
    country_code: str | None = None


class EvaluationContext(BaseModel):
    """Inputs a rule set may consult besides its own signal."""

    model_config = ConfigDict(frozen=True)

    fingerprint: FingerprintData
    geo_hint: GeoHint | None = None
