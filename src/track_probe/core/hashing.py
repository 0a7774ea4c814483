"""SHA-256 helpers shared by the collectors."""

from __future__ import annotations

import asyncio
import hashlib
import json
from typing import Any

# Inputs above this size are digested off the event loop.
_INLINE_LIMIT = 64 * 1024


def sha256_hex(data: bytes | str) -> str:
    if isinstance(data, str):
        data = data.encode()
    return hashlib.sha256(data).hexdigest()


async def sha256_hex_async(data: bytes | str) -> str:
    """Digest *data*, yielding to the loop for large inputs (canvas data URLs)."""
    if isinstance(data, str):
        data = data.encode()
    if len(data) <= _INLINE_LIMIT:
        return sha256_hex(data)
    loop = asyncio.get_running_loop()
    return await loop.run_in_executor(None, sha256_hex, data)


def canonical_hash(value: Any) -> str:
    """Hash a JSON-able value in a key-order independent way."""
    return sha256_hex(json.dumps(value, sort_keys=True, separators=(",", ":")))
