"""UTC time helpers."""

from __future__ import annotations

import time
from datetime import datetime, timezone


def utc_now() -> datetime:
    """Return timezone-aware UTC now."""
    return datetime.now(timezone.utc)


def epoch_time() -> float:
    """Return the current time as fractional epoch seconds."""
    return time.time()
