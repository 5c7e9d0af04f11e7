"""Maps HTTP status codes to trace severity tags."""

from __future__ import annotations

from enum import Enum
from typing import Optional, Union

from .context import Subsegment, Trace


class Severity(str, Enum):
    THROTTLE = "throttle"
    ERROR = "error"
    FAULT = "fault"


def is_429(status: int) -> bool:
    return status == 429


def is_4xx(status: int) -> bool:
    return 400 <= status < 500


def is_5xx(status: int) -> bool:
    return 500 <= status < 600


def is_2xx(status: int) -> bool:
    return 200 <= status < 300


def classify_status(status: int) -> Optional[Severity]:
    """Return the severity for ``status``, or ``None`` for non-failures."""
    if is_429(status):
        return Severity.THROTTLE
    if is_4xx(status):
        return Severity.ERROR
    if is_5xx(status):
        return Severity.FAULT
    return None


def apply_severity(severity: Optional[Severity], *nodes: Union[Trace, Subsegment]) -> None:
    """Set the flag named by ``severity`` on every node."""
    if severity is None:
        return
    for node in nodes:
        setattr(node, severity.value, True)


def parse_content_length(value: Optional[str]) -> Optional[int]:
    if value is None:
        return None
    try:
        return int(value.strip(), 10)
    except ValueError:
        return None
