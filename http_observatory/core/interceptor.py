"""Shared call tracking, tracing and emission for outbound HTTP calls."""

from __future__ import annotations

import itertools
import logging
import threading
from typing import Any, Dict, MutableMapping, Optional

from ..config import HttpPluginConfig
from ..errors import HttpRequestError
from ..sinks.base import EventSink
from .classifier import apply_severity, classify_status, is_2xx
from .context import CallState, HttpRequestInfo, HttpResponseInfo
from .events import HTTP_EVENT_TYPE, XRAY_TRACE_EVENT_TYPE, error_payload, http_event
from .headers import TraceHeaderFormat, encode_trace_header, find_header, parse_trace_header, set_header
from .tracer import Tracer, request_hostname
from .url_filter import is_trace_header_enabled, is_url_allowed

logger = logging.getLogger(__name__)


class HttpInterceptor:
    """Tracks in-flight calls and turns their outcomes into events.

    Subclasses adapt a transport's signals to the ``_open_call``,
    ``_send_call`` and ``_complete_*`` steps. Every step contains its own
    failures so instrumentation never changes what the application sees.
    """

    signal_prefix = "HTTP request"

    def __init__(
        self,
        sink: EventSink,
        config: Optional[HttpPluginConfig] = None,
        *,
        tracer: Optional[Tracer] = None,
    ) -> None:
        self.sink = sink
        self.config = config or HttpPluginConfig()
        self.tracer = tracer or Tracer(self.config.logical_service_name)
        self.is_synthetic_agent = self.config.is_synthetic_agent
        self._calls: Dict[int, CallState] = {}
        self._call_ids = itertools.count(1)
        self._lock = threading.Lock()
        self._active = False

    # lifecycle

    @property
    def active(self) -> bool:
        return self._active

    def enable(self) -> None:
        self._active = True

    def disable(self) -> None:
        """Stop observing; calls still in flight are forgotten."""
        with self._lock:
            self._active = False
            self._calls.clear()

    @property
    def in_flight(self) -> int:
        with self._lock:
            return len(self._calls)

    def call_state(self, call_id: int) -> Optional[CallState]:
        with self._lock:
            return self._calls.get(call_id)

    # gates

    def is_tracing_enabled(self) -> bool:
        return bool(self.sink.config.enable_xray)

    def is_session_recorded(self) -> bool:
        session = self.sink.get_session()
        return bool(session and session.record)

    @property
    def header_format(self) -> TraceHeaderFormat:
        return TraceHeaderFormat.for_flag(self.sink.config.enable_w3c_trace_id)

    def should_add_trace_header(self, url: str) -> bool:
        return (
            not self.is_synthetic_agent
            and self.is_tracing_enabled()
            and is_trace_header_enabled(url, self.config.add_trace_id_header)
            and self.is_session_recorded()
        )

    def should_record_trace(self) -> bool:
        return not self.is_synthetic_agent and self.is_tracing_enabled() and self.is_session_recorded()

    # call lifecycle steps

    def _open_call(self, method: str, url: str, is_async: bool = True) -> Optional[int]:
        """Register a call; returns ``None`` when it is not observed."""
        if not self._active:
            return None
        try:
            if not is_url_allowed(url, self.config):
                logger.debug("Not tracking %s %s: filtered", method, url)
                return None
            with self._lock:
                call_id = next(self._call_ids)
                self._calls[call_id] = CallState(call_id=call_id, method=method.upper(), url=url, is_async=is_async)
            return call_id
        except Exception:
            logger.warning("Failed to open call %s %s", method, url, exc_info=True)
            return None

    def _send_call(self, call_id: int, headers: MutableMapping[str, str]) -> None:
        """Start the trace for ``call_id`` and inject the trace header."""
        state = self.call_state(call_id)
        if state is None or state.trace is not None:
            return
        try:
            fmt = self.header_format
            parent = None
            if self.is_tracing_enabled():
                parent = parse_trace_header(find_header(headers, fmt.header_name), fmt)
            # an upstream "not sampled" decision is neither continued nor overwritten
            upstream_unsampled = parent is not None and not parent.sampled
            if upstream_unsampled:
                parent = None
            start_time = self.tracer.now()
            trace = self.tracer.new_trace(start_time, fmt is TraceHeaderFormat.W3C, parent=parent)
            trace.subsegments.append(
                self.tracer.new_subsegment(
                    request_hostname(state.url, self.config.base_url),
                    start_time,
                    HttpRequestInfo(method=state.method, url=state.url),
                )
            )
            state.trace = trace
            if not upstream_unsampled and self.should_add_trace_header(state.url):
                set_header(headers, fmt.header_name, encode_trace_header(trace.trace_id, trace.subsegment.id, fmt))
        except Exception:
            logger.warning("Failed to start trace for %s %s", state.method, state.url, exc_info=True)

    def _take_call(self, call_id: Optional[int]) -> Optional[CallState]:
        """Remove and return the call state; later signals find nothing."""
        if call_id is None:
            return None
        with self._lock:
            state = self._calls.pop(call_id, None)
        if state is None or state.trace is None:
            return None
        return state

    def _complete_response(
        self,
        call_id: Optional[int],
        status: int,
        status_text: str = "",
        content_length: Optional[int] = None,
    ) -> None:
        state = self._take_call(call_id)
        if state is None:
            return
        try:
            trace = state.trace
            assert trace is not None
            trace.finish(self.tracer.now())
            trace.subsegment.response = HttpResponseInfo(status=status, content_length=content_length)
            apply_severity(classify_status(status), trace, trace.subsegment)
            self._record_trace(state)
            event = http_event(state, status=status, status_text=status_text, with_trace=self.is_tracing_enabled())
            if self.config.record_all_requests or not is_2xx(status):
                self.sink.record(HTTP_EVENT_TYPE, event)
        except Exception:
            logger.warning("Failed to record response for %s %s", state.method, state.url, exc_info=True)

    def _complete_failure(
        self,
        call_id: Optional[int],
        *,
        cause_type: str,
        cause_message: Optional[str] = None,
        fault: bool,
        error: Any,
    ) -> None:
        """Finish a call that ended without a response.

        ``fault`` marks a network failure on both root and subsegment;
        otherwise only the subsegment is flagged as an error.
        """
        state = self._take_call(call_id)
        if state is None:
            return
        try:
            trace = state.trace
            assert trace is not None
            trace.finish(self.tracer.now())
            if fault:
                trace.fault = True
                trace.subsegment.fault = True
            else:
                trace.subsegment.error = True
            trace.subsegment.set_cause(cause_type, cause_message)
            self._record_trace(state)
            event = http_event(
                state,
                error=error_payload(error, self.config.stack_trace_length),
                with_trace=self.is_tracing_enabled(),
            )
            self.sink.record(HTTP_EVENT_TYPE, event)
        except Exception:
            logger.warning("Failed to record failure for %s %s", state.method, state.url, exc_info=True)

    def _complete_network_error(self, call_id: Optional[int], status: int = 0, status_text: str = "") -> None:
        message = f"{status}: {status_text}" if status_text else str(status)
        self._complete_failure(
            call_id,
            cause_type=f"{self.signal_prefix} error",
            cause_message=message,
            fault=True,
            error=HttpRequestError(message),
        )

    def _complete_abort(self, call_id: Optional[int]) -> None:
        name = f"{self.signal_prefix} abort"
        self._complete_failure(call_id, cause_type=name, fault=False, error=name)

    def _complete_timeout(self, call_id: Optional[int]) -> None:
        name = f"{self.signal_prefix} timeout"
        self._complete_failure(call_id, cause_type=name, fault=False, error=name)

    def _record_trace(self, state: CallState) -> None:
        """Emit the trace event; a failure here must not cost the HTTP event."""
        try:
            if state.trace is not None and self.should_record_trace():
                self.sink.record(XRAY_TRACE_EVENT_TYPE, state.trace.to_dict())
        except Exception:
            logger.warning("Failed to record trace for %s %s", state.method, state.url, exc_info=True)
