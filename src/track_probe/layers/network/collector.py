"""WebRTC IP leak detection via in-browser ICE candidate gathering."""

from __future__ import annotations

import asyncio
import ipaddress
import logging
import re
from collections.abc import Sequence
from enum import StrEnum
from typing import Any

from track_probe.core.base import ProbeFailure
from track_probe.core.hashing import canonical_hash
from track_probe.core.signals import NetworkSignal, StunProbeResult

logger = logging.getLogger(__name__)

# Public STUN servers used to discover externally-visible IP addresses
STUN_SERVERS = (
    "stun:stun.l.google.com:19302",
    "stun:stun1.l.google.com:19302",
    "stun:stun.cloudflare.com:3478",
)

STUN_TIMEOUT = 3.0  # seconds per server
SCHEDULING_GRACE = 0.5  # extra time the in-page timer gets before Python gives up
_RELEASE_TIMEOUT = 1.0

PRIVATE_NETWORKS = tuple(
    ipaddress.ip_network(net)
    for net in (
        "10.0.0.0/8",
        "172.16.0.0/12",
        "192.168.0.0/16",
        "127.0.0.0/8",
        "169.254.0.0/16",
        "::1/128",
        "fc00::/7",
        "fe80::/10",
    )
)

CAPABILITY_SCRIPT = """() => typeof (
    window.RTCPeerConnection || window.webkitRTCPeerConnection || window.mozRTCPeerConnection
) === 'function'"""

# Gathers candidates against one server until gathering completes or the
# in-page timer fires. The connection is parked on window so a Python-side
# timeout can still close it.
PROBE_SCRIPT = """async ({ server, timeoutMs, key }) => {
    const RTC = window.RTCPeerConnection || window.webkitRTCPeerConnection || window.mozRTCPeerConnection;
    const peers = (window.__tprobePeers = window.__tprobePeers || {});
    const candidates = [];
    let error = null;
    const pc = new RTC({ iceServers: [{ urls: server }] });
    peers[key] = pc;
    try {
        await new Promise((resolve) => {
            const timer = setTimeout(resolve, timeoutMs);
            const done = () => { clearTimeout(timer); resolve(); };
            pc.onicecandidate = (event) => {
                if (event.candidate && event.candidate.candidate) {
                    candidates.push(event.candidate.candidate);
                } else if (!event.candidate) {
                    done();
                }
            };
            pc.onicegatheringstatechange = () => {
                if (pc.iceGatheringState === 'complete') done();
            };
            pc.createDataChannel('tprobe');
            pc.createOffer()
                .then((offer) => pc.setLocalDescription(offer))
                .catch((err) => { error = String(err && err.message || err); done(); });
        });
    } finally {
        pc.close();
        delete peers[key];
    }
    return { candidates, error };
}"""

RELEASE_SCRIPT = """(key) => {
    const peers = window.__tprobePeers || {};
    if (peers[key]) {
        try { peers[key].close(); } catch (e) {}
        delete peers[key];
    }
}"""

_TYP_RE = re.compile(r"\btyp\s+(host|srflx|prflx|relay)\b")
# Candidate literals may carry a port suffix ("192.168.1.5:54321"), so these match inside tokens.
_IPV4_RE = re.compile(r"(?<![\d.])\d{1,3}(?:\.\d{1,3}){3}(?![\d.])")
_IPV6_RE = re.compile(r"(?<![0-9a-f:])[0-9a-f]*:[0-9a-f:]*[0-9a-f]", re.IGNORECASE)


class CandidateKind(StrEnum):
    HOST = "host"
    SRFLX = "srflx"
    RELAY = "relay"


def classify_candidate(candidate: str) -> CandidateKind | None:
    """Classify an ICE candidate line by its type marker."""
    match = _TYP_RE.search(candidate)
    if match:
        kind = match.group(1)
        return CandidateKind.SRFLX if kind == "prflx" else CandidateKind(kind)

    if "srflx" in candidate:
        return CandidateKind.SRFLX
    if "relay" in candidate:
        return CandidateKind.RELAY
    if "host" in candidate:
        return CandidateKind.HOST
    return None


def extract_ip(candidate: str) -> str | None:
    """Return the first IPv4 literal in a candidate line, else the first IPv6 one."""
    for pattern in (_IPV4_RE, _IPV6_RE):
        for match in pattern.finditer(candidate):
            try:
                return str(ipaddress.ip_address(match.group()))
            except ValueError:
                continue
    return None


def is_private_ip(ip: str) -> bool:
    """Check if an IP address is in a private/loopback/link-local range."""
    try:
        addr = ipaddress.ip_address(ip)
    except ValueError:
        return False
    return any(addr.version == net.version and addr in net for net in PRIVATE_NETWORKS)


def summarize_probes(results: Sequence[StunProbeResult]) -> tuple[list[str], str | None]:
    """Fold per-server results into (local_ips, public_ip)."""
    local_ips: list[str] = []
    public_ip: str | None = None

    for result in results:
        for candidate in result.host_candidates:
            ip = extract_ip(candidate)
            if ip and is_private_ip(ip) and ip not in local_ips:
                local_ips.append(ip)

        for candidate in result.srflx_candidates:
            ip = extract_ip(candidate)
            if public_ip is None and ip and not is_private_ip(ip):
                public_ip = ip

    return local_ips, public_ip


def _bucket_candidates(server: str, payload: Any) -> StunProbeResult:
    buckets: dict[CandidateKind, list[str]] = {kind: [] for kind in CandidateKind}
    candidates = payload.get("candidates") if isinstance(payload, dict) else None
    for candidate in candidates or []:
        kind = classify_candidate(str(candidate))
        if kind is not None:
            buckets[kind].append(str(candidate))

    return StunProbeResult(
        server=server,
        host_candidates=tuple(buckets[CandidateKind.HOST]),
        srflx_candidates=tuple(buckets[CandidateKind.SRFLX]),
        relay_candidates=tuple(buckets[CandidateKind.RELAY]),
        error=payload.get("error") if isinstance(payload, dict) else None,
    )


async def _release(page: Any, key: str) -> None:
    try:
        await asyncio.wait_for(page.evaluate(RELEASE_SCRIPT, key), timeout=_RELEASE_TIMEOUT)
    except Exception:
        logger.debug("Could not release peer connection for %s", key, exc_info=True)


async def probe_stun_server(
    page: Any,
    server: str,
    timeout: float = STUN_TIMEOUT,
    grace: float = SCHEDULING_GRACE,
) -> StunProbeResult:
    """Gather candidates against one server. Never raises; failures mean no candidates."""
    args = {"server": server, "timeoutMs": int(timeout * 1000), "key": server}
    try:
        payload = await asyncio.wait_for(page.evaluate(PROBE_SCRIPT, args), timeout=timeout + grace)
    except TimeoutError:
        logger.debug("STUN probe %s timed out after %.1fs", server, timeout)
        await _release(page, server)
        return StunProbeResult(server=server, timed_out=True)
    except Exception as exc:
        logger.debug("STUN probe %s failed: %s", server, exc)
        await _release(page, server)
        return StunProbeResult(server=server, error=str(exc))

    return _bucket_candidates(server, payload)


async def collect_network(
    page: Any,
    servers: Sequence[str] = STUN_SERVERS,
    timeout: float = STUN_TIMEOUT,
    grace: float = SCHEDULING_GRACE,
) -> NetworkSignal:
    """Probe every STUN server concurrently and decide whether addresses leak."""
    try:
        supported = await page.evaluate(CAPABILITY_SCRIPT)
    except Exception as exc:
        logger.warning("WebRTC capability check failed: %s", exc)
        return NetworkSignal(unavailable=ProbeFailure.ERROR, detail=str(exc))

    if not supported:
        return NetworkSignal(
            unavailable=ProbeFailure.UNSUPPORTED,
            detail="RTCPeerConnection is not available",
        )

    results = await asyncio.gather(
        *(probe_stun_server(page, server, timeout, grace) for server in servers)
    )
    local_ips, public_ip = summarize_probes(results)

    return NetworkSignal(
        local_ips=tuple(local_ips),
        public_ip=public_ip,
        has_leak=bool(local_ips) or public_ip is not None,
        stun_results=tuple(results),
        fingerprint_hash=canonical_hash({"local_ips": sorted(local_ips), "public_ip": public_ip}),
    )
