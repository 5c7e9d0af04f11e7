"""Random identifier helpers."""

from __future__ import annotations

import secrets


def random_hex(length: int) -> str:
    """Return ``length`` lowercase hex characters from a CSPRNG."""
    return secrets.token_hex((length + 1) // 2)[:length]
