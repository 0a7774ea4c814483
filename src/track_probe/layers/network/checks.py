"""Network layer rules."""

from __future__ import annotations

from track_probe.core.base import Check, CheckStatus
from track_probe.core.signals import EvaluationContext, NetworkSignal

REMEDIATIONS: dict[str, str] = {
    "webrtc-leak": (
        "Stop WebRTC from exposing your addresses: Firefox: about:config → "
        "media.peerconnection.enabled = false. Chrome/Brave: set the WebRTC IP "
        "handling policy to 'Disable non-proxied UDP' or install a WebRTC leak "
        "prevention extension, and enable your VPN's WebRTC leak protection."
    ),
}


def check_webrtc_leak(signal: NetworkSignal, context: EvaluationContext) -> Check:
    if not signal.has_leak:
        return Check(
            id="webrtc-leak",
            name="WebRTC Leak",
            status=CheckStatus.PASS,
            message="No local or public address was exposed through WebRTC.",
        )

    exposed = list(signal.local_ips)
    if signal.public_ip:
        exposed.append(signal.public_ip)
    return Check(
        id="webrtc-leak",
        name="WebRTC Leak",
        status=CheckStatus.FAIL,
        message=f"WebRTC is leaking your addresses: {', '.join(exposed)}",
    )


RULES = (check_webrtc_leak,)
