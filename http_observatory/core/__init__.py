"""Core tracing, classification and interception modules for HTTP Observatory."""

from .callback import CallbackInterceptor
from .classifier import Severity, classify_status
from .context import CallState, Subsegment, Trace
from .events import HTTP_EVENT_TYPE, XRAY_TRACE_EVENT_TYPE
from .headers import TraceHeader, TraceHeaderFormat, encode_trace_header, parse_trace_header
from .interceptor import HttpInterceptor
from .promise import PromiseInterceptor
from .tracer import Tracer
from .url_filter import is_allowed

__all__ = [
    "CallState",
    "CallbackInterceptor",
    "HTTP_EVENT_TYPE",
    "HttpInterceptor",
    "PromiseInterceptor",
    "Severity",
    "Subsegment",
    "Trace",
    "TraceHeader",
    "TraceHeaderFormat",
    "Tracer",
    "XRAY_TRACE_EVENT_TYPE",
    "classify_status",
    "encode_trace_header",
    "is_allowed",
    "parse_trace_header",
]
