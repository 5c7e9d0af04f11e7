"""Encoding and parsing of the two trace propagation headers."""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import Mapping, MutableMapping, Optional

from ..errors import TraceHeaderError

X_AMZN_TRACE_ID = "X-Amzn-Trace-Id"
W3C_TRACEPARENT_HEADER_NAME = "traceparent"

W3C_VERSION = "00"
W3C_SAMPLED_FLAGS = "01"

LEGACY_TRACE_ID_RE = re.compile(r"^1-[0-9a-f]{1,8}-[0-9a-f]{24}$")
SEGMENT_ID_RE = re.compile(r"^[0-9a-f]{16}$")
W3C_TRACE_ID_RE = re.compile(r"^[0-9a-f]{32}$")

LEGACY_HEADER_RE = re.compile(
    r"(?:^|;)\s*Root=(?P<root>1-[0-9a-fA-F]{1,8}-[0-9a-fA-F]{24})\s*;\s*Parent=(?P<parent>[0-9a-fA-F]{16})(?:\s*;|\s*$)"
)
LEGACY_SAMPLED_RE = re.compile(r"(?:^|;)\s*Sampled=(?P<sampled>[01?])\s*(?:;|$)")
W3C_HEADER_RE = re.compile(
    r"^(?P<version>[0-9a-f]{2})-(?P<trace>[0-9a-f]{32})-(?P<parent>[0-9a-f]{16})-(?P<flags>[0-9a-f]{2})$"
)


class TraceHeaderFormat(str, Enum):
    """Wire format of the propagated trace header."""

    LEGACY = "legacy"
    W3C = "w3c"

    @classmethod
    def for_flag(cls, use_w3c: bool) -> "TraceHeaderFormat":
        return cls.W3C if use_w3c else cls.LEGACY

    @property
    def header_name(self) -> str:
        return W3C_TRACEPARENT_HEADER_NAME if self is TraceHeaderFormat.W3C else X_AMZN_TRACE_ID


@dataclass(frozen=True)
class TraceHeader:
    trace_id: str
    parent_id: str
    sampled: bool = True


def encode_trace_header(trace_id: str, segment_id: str, fmt: TraceHeaderFormat) -> str:
    """Produce the on-wire header value for ``fmt``."""
    if not SEGMENT_ID_RE.match(segment_id):
        raise TraceHeaderError(f"invalid segment id {segment_id!r}")
    if fmt is TraceHeaderFormat.W3C:
        if not W3C_TRACE_ID_RE.match(trace_id):
            raise TraceHeaderError(f"invalid W3C trace id {trace_id!r}")
        return f"{W3C_VERSION}-{trace_id}-{segment_id}-{W3C_SAMPLED_FLAGS}"
    if not LEGACY_TRACE_ID_RE.match(trace_id):
        raise TraceHeaderError(f"invalid trace id {trace_id!r}")
    return f"Root={trace_id};Parent={segment_id};Sampled=1"


def parse_trace_header(value: Optional[str], fmt: TraceHeaderFormat) -> Optional[TraceHeader]:
    """Return the ids carried by ``value``, or ``None`` when absent or malformed."""
    if not value:
        return None
    value = value.strip()
    if fmt is TraceHeaderFormat.W3C:
        match = W3C_HEADER_RE.match(value)
        if match is None or match.group("version") == "ff":
            return None
        trace_id, parent_id = match.group("trace"), match.group("parent")
        if set(trace_id) == {"0"} or set(parent_id) == {"0"}:
            return None
        return TraceHeader(trace_id=trace_id, parent_id=parent_id, sampled=bool(int(match.group("flags"), 16) & 1))
    match = LEGACY_HEADER_RE.search(value)
    if match is None:
        return None
    sampled = LEGACY_SAMPLED_RE.search(value)
    return TraceHeader(
        trace_id=match.group("root").lower(),
        parent_id=match.group("parent").lower(),
        sampled=sampled is None or sampled.group("sampled") != "0",
    )


def find_header(headers: Mapping[str, str], name: str) -> Optional[str]:
    """Case-insensitive header lookup over a plain mapping."""
    lowered = name.lower()
    for key, value in headers.items():
        if key.lower() == lowered:
            return value
    return None


def set_header(headers: MutableMapping[str, str], name: str, value: str) -> None:
    """Set ``name`` replacing any existing spelling of it."""
    lowered = name.lower()
    for key in [k for k in headers.keys() if k.lower() == lowered]:
        del headers[key]
    headers[name] = value
