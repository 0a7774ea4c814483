"""Tests for the WebRTC leak layer."""

import asyncio
import time

import pytest
from conftest import FakePage, make_fingerprint

from track_probe.core.base import CheckStatus, ProbeFailure
from track_probe.core.signals import EvaluationContext, NetworkSignal, StunProbeResult
from track_probe.layers.network.checks import check_webrtc_leak
from track_probe.layers.network.collector import (
    CAPABILITY_SCRIPT,
    PROBE_SCRIPT,
    RELEASE_SCRIPT,
    STUN_SERVERS,
    CandidateKind,
    classify_candidate,
    collect_network,
    extract_ip,
    is_private_ip,
    probe_stun_server,
    summarize_probes,
)

HOST = "candidate:842163049 1 udp 2122260223 192.168.1.5 54321 typ host generation 0"
SRFLX = (
    "candidate:1467250027 1 udp 1686052607 8.8.8.8 54321 typ srflx "
    "raddr 192.168.1.5 rport 54321 generation 0"
)
RELAY = "candidate:3 1 udp 41885439 203.0.113.9 3478 typ relay raddr 8.8.8.8 rport 54321"
MDNS = "candidate:1 1 udp 2122260223 1f4712db-ea17-4bcf-a596-105139dfd8bf.local 54321 typ host"


def _context():
    return EvaluationContext(fingerprint=make_fingerprint())


# --- Candidate parsing ---


def test_classify_candidate_types():
    assert classify_candidate(HOST) == CandidateKind.HOST
    assert classify_candidate(SRFLX) == CandidateKind.SRFLX
    assert classify_candidate(RELAY) == CandidateKind.RELAY


def test_classify_prflx_as_srflx():
    assert classify_candidate("candidate:4 1 udp 1 8.8.4.4 1 typ prflx") == CandidateKind.SRFLX


def test_classify_unknown_candidate():
    assert classify_candidate("garbage") is None


def test_extract_ip_first_literal():
    assert extract_ip(HOST) == "192.168.1.5"
    # raddr comes after the candidate's own address
    assert extract_ip(SRFLX) == "8.8.8.8"


def test_extract_ip_ipv6():
    assert extract_ip("candidate:5 1 udp 1 fe80::1 5000 typ host") == "fe80::1"


def test_extract_ip_prefers_ipv4_over_earlier_ipv6():
    candidate = "candidate:1 1 udp 1 2001:4860::8888 5000 typ srflx raddr 192.168.1.5 rport 5000"
    assert extract_ip(candidate) == "192.168.1.5"


def test_extract_ip_inside_address_port_token():
    assert extract_ip("candidate:1 1 udp 1 192.168.1.5:54321 typ host") == "192.168.1.5"
    assert extract_ip("candidate:1 1 udp 1 [2001:db8::1]:5000 typ host") == "2001:db8::1"


def test_extract_ip_skips_invalid_octets():
    assert extract_ip("candidate:1 1 udp 1 999.1.1.1 5000 raddr 10.0.0.2 typ host") == "10.0.0.2"


def test_extract_ip_mdns_host_has_no_literal():
    assert extract_ip(MDNS) is None


def test_is_private_ip():
    assert is_private_ip("10.0.0.1")
    assert is_private_ip("172.20.1.1")
    assert is_private_ip("192.168.1.5")
    assert is_private_ip("127.0.0.1")
    assert is_private_ip("169.254.3.4")
    assert is_private_ip("::1")
    assert is_private_ip("fd00::1")
    assert is_private_ip("fe80::1")
    assert not is_private_ip("8.8.8.8")
    assert not is_private_ip("172.32.0.1")
    assert not is_private_ip("not-an-ip")


def test_summarize_probes_dedupes_local_ips():
    results = [
        StunProbeResult(server="a", host_candidates=(HOST, MDNS), srflx_candidates=(SRFLX,)),
        StunProbeResult(server="b", host_candidates=(HOST,)),
    ]
    local_ips, public_ip = summarize_probes(results)
    assert local_ips == ["192.168.1.5"]
    assert public_ip == "8.8.8.8"


def test_summarize_probes_ignores_private_srflx():
    results = [StunProbeResult(server="a", srflx_candidates=("candidate:1 1 udp 1 10.0.0.2 1 typ srflx",))]
    assert summarize_probes(results) == ([], None)


# --- Collection ---


@pytest.mark.asyncio
async def test_collect_network_host_candidate_leaks_local_ip():
    page = FakePage(
        {
            CAPABILITY_SCRIPT: True,
            PROBE_SCRIPT: lambda arg: {"candidates": [HOST], "error": None},
        }
    )
    signal = await collect_network(page)
    assert signal.available
    assert signal.local_ips == ("192.168.1.5",)
    assert signal.public_ip is None
    assert signal.has_leak is True
    assert len(signal.stun_results) == len(STUN_SERVERS)


@pytest.mark.asyncio
async def test_collect_network_srflx_sets_public_ip():
    page = FakePage(
        {
            CAPABILITY_SCRIPT: True,
            PROBE_SCRIPT: lambda arg: {"candidates": [SRFLX], "error": None},
        }
    )
    signal = await collect_network(page)
    assert signal.public_ip == "8.8.8.8"
    assert signal.local_ips == ()
    assert signal.has_leak is True


@pytest.mark.asyncio
async def test_collect_network_no_candidates_no_leak():
    page = FakePage({CAPABILITY_SCRIPT: True, PROBE_SCRIPT: lambda arg: {"candidates": []}})
    signal = await collect_network(page)
    assert signal.has_leak is False
    assert signal.fingerprint_hash is not None


@pytest.mark.asyncio
async def test_collect_network_probes_each_server_separately():
    page = FakePage({CAPABILITY_SCRIPT: True, PROBE_SCRIPT: lambda arg: {"candidates": []}})
    await collect_network(page, servers=("stun:a:1", "stun:b:2"), timeout=1.5)
    args = page.calls_for(PROBE_SCRIPT)
    assert sorted(a["server"] for a in args) == ["stun:a:1", "stun:b:2"]
    assert all(a["timeoutMs"] == 1500 for a in args)


@pytest.mark.asyncio
async def test_collect_network_unsupported_runs_no_probes():
    page = FakePage({CAPABILITY_SCRIPT: False})
    signal = await collect_network(page)
    assert signal.unavailable == ProbeFailure.UNSUPPORTED
    assert signal.has_leak is False
    assert page.calls_for(PROBE_SCRIPT) == []


@pytest.mark.asyncio
async def test_collect_network_capability_error():
    page = FakePage({CAPABILITY_SCRIPT: RuntimeError("page crashed")})
    signal = await collect_network(page)
    assert signal.unavailable == ProbeFailure.ERROR
    assert "page crashed" in signal.detail


@pytest.mark.asyncio
async def test_hanging_server_is_bounded_and_released():
    """A server that never answers must not stall the scan."""

    async def hang(arg):
        await asyncio.sleep(30)

    page = FakePage({PROBE_SCRIPT: hang, RELEASE_SCRIPT: None})
    started = time.monotonic()
    result = await probe_stun_server(page, "stun:blackhole:1", timeout=0.05, grace=0.05)
    assert time.monotonic() - started < 2
    assert result.timed_out is True
    assert page.calls_for(RELEASE_SCRIPT) == ["stun:blackhole:1"]


@pytest.mark.asyncio
async def test_one_hanging_server_does_not_hide_others():
    async def probe(arg):
        if arg["server"] == "stun:slow:1":
            await asyncio.sleep(30)
        return {"candidates": [SRFLX]}

    page = FakePage({CAPABILITY_SCRIPT: True, PROBE_SCRIPT: probe, RELEASE_SCRIPT: None})
    signal = await collect_network(page, servers=("stun:slow:1", "stun:fast:1"), timeout=0.05, grace=0.05)
    assert signal.public_ip == "8.8.8.8"
    assert [r.timed_out for r in signal.stun_results] == [True, False]


@pytest.mark.asyncio
async def test_probe_error_is_recorded():
    page = FakePage({PROBE_SCRIPT: RuntimeError("boom"), RELEASE_SCRIPT: None})
    result = await probe_stun_server(page, "stun:x:1")
    assert result.error == "boom"
    assert result.host_candidates == ()


# --- Checks ---


def test_check_webrtc_leak_fail_lists_addresses():
    signal = NetworkSignal(local_ips=("192.168.1.5",), public_ip="8.8.8.8", has_leak=True)
    check = check_webrtc_leak(signal, _context())
    assert check.status == CheckStatus.FAIL
    assert "192.168.1.5" in check.message
    assert "8.8.8.8" in check.message


def test_check_webrtc_leak_pass():
    assert check_webrtc_leak(NetworkSignal(), _context()).status == CheckStatus.PASS
