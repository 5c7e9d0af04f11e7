"""Tracer that mints trace and segment identifiers for outbound calls."""

from __future__ import annotations

from typing import Callable, Optional
from urllib.parse import urljoin, urlsplit

from ..utils.ids import random_hex
from ..utils.time import epoch_time
from .context import HttpRequestInfo, Subsegment, Trace
from .headers import TraceHeader

IdSource = Callable[[int], str]


class Tracer:
    """Creates :class:`Trace` and :class:`Subsegment` records.

    ``id_source`` returns ``n`` hex characters; it defaults to a
    cryptographically secure generator.
    """

    def __init__(
        self,
        service: str,
        *,
        id_source: Optional[IdSource] = None,
        clock: Optional[Callable[[], float]] = None,
    ) -> None:
        self.service = service
        self._id_source = id_source or random_hex
        self._clock = clock or epoch_time

    def now(self) -> float:
        return self._clock()

    def new_segment_id(self) -> str:
        return self._id_source(16)

    def new_trace_id(self, start_time: float, use_w3c_format: bool) -> str:
        if use_w3c_format:
            return self._id_source(32)
        return f"1-{int(start_time):x}-{self._id_source(24)}"

    def new_trace(
        self,
        start_time: float,
        use_w3c_format: bool,
        *,
        parent: Optional[TraceHeader] = None,
    ) -> Trace:
        """Start a trace, continuing ``parent``'s trace id when given."""
        return Trace(
            name=self.service,
            trace_id=parent.trace_id if parent else self.new_trace_id(start_time, use_w3c_format),
            id=self.new_segment_id(),
            start_time=start_time,
        )

    def new_subsegment(self, name: str, start_time: float, request: HttpRequestInfo) -> Subsegment:
        return Subsegment(id=self.new_segment_id(), name=name, start_time=start_time, request=request)


def request_hostname(url: str, base_url: Optional[str] = None) -> str:
    """Hostname of ``url``; relative URLs are resolved against ``base_url``."""
    if base_url:
        url = urljoin(base_url, url)
    return urlsplit(url).hostname or ""
