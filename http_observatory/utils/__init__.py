"""Utility helpers for HTTP Observatory."""

from .ids import random_hex
from .time import epoch_time, utc_now

__all__ = ["epoch_time", "random_hex", "utc_now"]
