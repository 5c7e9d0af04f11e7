"""Trace, subsegment and call-state models for outbound HTTP calls."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

TRACE_VERSION = "1.0.0"
TRACE_ORIGIN = "AWS::RUM::AppMonitor"


@dataclass
class HttpRequestInfo:
    method: str
    url: str
    traced: bool = True


@dataclass
class HttpResponseInfo:
    status: int
    content_length: Optional[int] = None


@dataclass
class Subsegment:
    """The single network leg of a traced call."""

    id: str
    name: str
    start_time: float
    request: HttpRequestInfo
    end_time: Optional[float] = None
    namespace: str = "remote"
    response: Optional[HttpResponseInfo] = None
    error: bool = False
    fault: bool = False
    throttle: bool = False
    cause: Optional[Dict[str, Any]] = None

    def set_cause(self, exception_type: str, message: Optional[str] = None) -> None:
        exception: Dict[str, Any] = {"type": exception_type}
        if message is not None:
            exception["message"] = message
        self.cause = {"exceptions": [exception]}

    def to_dict(self) -> dict:
        http: Dict[str, Any] = {
            "request": {"method": self.request.method, "url": self.request.url, "traced": self.request.traced}
        }
        if self.response is not None:
            response: Dict[str, Any] = {"status": self.response.status}
            if self.response.content_length is not None:
                response["content_length"] = self.response.content_length
            http["response"] = response
        payload: Dict[str, Any] = {
            "id": self.id,
            "name": self.name,
            "start_time": self.start_time,
            "namespace": self.namespace,
            "http": http,
        }
        if self.end_time is not None:
            payload["end_time"] = self.end_time
        _add_flags(payload, self)
        if self.cause is not None:
            payload["cause"] = self.cause
        return payload


@dataclass
class Trace:
    """Root segment of one observed call.

    ``subsegments`` holds exactly one entry once the call has been sent.
    """

    name: str
    trace_id: str
    id: str
    start_time: float
    end_time: Optional[float] = None
    version: str = TRACE_VERSION
    origin: str = TRACE_ORIGIN
    error: bool = False
    fault: bool = False
    throttle: bool = False
    subsegments: List[Subsegment] = field(default_factory=list)

    @property
    def subsegment(self) -> Subsegment:
        return self.subsegments[0]

    def finish(self, end_time: float) -> None:
        """Stamp the end time on the root and its subsegment."""
        if self.end_time is not None:
            raise RuntimeError(f"trace {self.trace_id} already finished")
        self.end_time = end_time
        for sub in self.subsegments:
            sub.end_time = end_time

    def to_dict(self) -> dict:
        """Serialize for the trace event payload."""
        payload: Dict[str, Any] = {
            "version": self.version,
            "name": self.name,
            "origin": self.origin,
            "id": self.id,
            "start_time": self.start_time,
            "trace_id": self.trace_id,
            "subsegments": [sub.to_dict() for sub in self.subsegments],
        }
        if self.end_time is not None:
            payload["end_time"] = self.end_time
        _add_flags(payload, self)
        return payload


@dataclass
class CallState:
    """Ephemeral record for one in-flight call."""

    call_id: int
    method: str
    url: str
    is_async: bool = True
    trace: Optional[Trace] = None


def _add_flags(payload: Dict[str, Any], node: Any) -> None:
    for flag in ("error", "fault", "throttle"):
        if getattr(node, flag):
            payload[flag] = True
