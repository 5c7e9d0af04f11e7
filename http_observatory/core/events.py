"""Payload builders for the HTTP and trace events."""

from __future__ import annotations

import traceback
from typing import Any, Dict, Optional

from .context import CallState

HTTP_EVENT_TYPE = "com.amazon.rum.http_event"
XRAY_TRACE_EVENT_TYPE = "com.amazon.rum.xray_trace_event"

EVENT_VERSION = "1.0.0"


def error_payload(error: Any, stack_trace_length: int) -> Dict[str, Any]:
    """Describe a failure value for the ``error`` field of an HTTP event.

    Exceptions contribute their class name, message and a traceback cut to
    ``stack_trace_length`` characters. Other values become the ``type``.
    """
    payload: Dict[str, Any] = {"version": EVENT_VERSION}
    if isinstance(error, BaseException):
        payload["type"] = type(error).__name__
        message = str(error)
        if message:
            payload["message"] = message
        if stack_trace_length > 0 and error.__traceback__ is not None:
            stack = "".join(traceback.format_exception(type(error), error, error.__traceback__))
            payload["stack"] = stack[:stack_trace_length]
    elif isinstance(error, str):
        payload["type"] = error
    else:
        payload["type"] = str(error)
    return payload


def http_event(
    state: CallState,
    *,
    status: Optional[int] = None,
    status_text: str = "",
    error: Optional[Dict[str, Any]] = None,
    with_trace: bool = False,
) -> Dict[str, Any]:
    """Build the HTTP event; exactly one of ``status`` or ``error`` is used."""
    event: Dict[str, Any] = {
        "version": EVENT_VERSION,
        "request": {"method": state.method, "url": state.url},
    }
    if error is not None:
        event["error"] = error
    else:
        event["response"] = {"status": status, "statusText": status_text}
    if with_trace and state.trace is not None:
        event["trace_id"] = state.trace.trace_id
        event["segment_id"] = state.trace.subsegment.id
    return event
