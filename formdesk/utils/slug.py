from __future__ import annotations

import secrets
import time

_ALPHABET = "0123456789abcdefghijklmnopqrstuvwxyz"


def _base36(n: int) -> str:
    if n == 0:
        return "0"
    out = []
    while n:
        n, r = divmod(n, 36)
        out.append(_ALPHABET[r])
    return "".join(reversed(out))


def generate_slug() -> str:
    """Public form key: a time component plus three random components (64 bits each)."""
    stamp = _base36(int(time.time() * 1000))
    parts = [_base36(secrets.randbits(64)) for _ in range(3)]
    return "-".join([stamp, *parts])
