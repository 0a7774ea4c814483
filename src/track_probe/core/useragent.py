"""User-Agent classification used by rules that cross-check other layers."""

from __future__ import annotations

import re
from enum import StrEnum

from track_probe.core.signals import EvaluationContext

_MOBILE_RE = re.compile(r"Mobile|Android|iPhone|iPad")
_TABLET_RE = re.compile(r"iPad|Tablet")


class ClaimedOS(StrEnum):
    WINDOWS = "Windows"
    MACOS = "macOS"
    LINUX = "Linux"
    IOS = "iOS"
    ANDROID = "Android"


def claimed_os(user_agent: str) -> ClaimedOS | None:
    """The operating system a User-Agent string claims, if recognizable."""
    # iOS UAs say "like Mac OS X" and Android UAs say "Linux", so order matters.
    if "iPhone" in user_agent or "iPad" in user_agent:
        return ClaimedOS.IOS
    if "Android" in user_agent:
        return ClaimedOS.ANDROID
    if "Windows" in user_agent:
        return ClaimedOS.WINDOWS
    if "Mac OS X" in user_agent:
        return ClaimedOS.MACOS
    if "Linux" in user_agent:
        return ClaimedOS.LINUX
    return None


def is_mobile(user_agent: str) -> bool:
    return _MOBILE_RE.search(user_agent) is not None


def is_tablet(user_agent: str) -> bool:
    return _TABLET_RE.search(user_agent) is not None


def context_user_agent(context: EvaluationContext) -> str:
    """The navigator User-Agent of the snapshot, or "" when that layer is unavailable."""
    navigator = context.fingerprint.navigator
    return navigator.user_agent if navigator.available else ""
