"""HTTP Observatory package.

Client-side instrumentation for outbound HTTP calls: builds a distributed
trace per call, classifies the outcome and records telemetry events, plus the
anonymous credential exchange used to authorize their delivery.
"""

from .auth import AnonymousCredentialsProvider, Credentials
from .config import CognitoConfig, HttpPluginConfig, TelemetryConfig
from .core import CallbackInterceptor, PromiseInterceptor
from .instrument import instrument, instrument_callbacks
from .sinks import EventSink, InMemoryEventSink, Session

__all__ = [
    "AnonymousCredentialsProvider",
    "CallbackInterceptor",
    "CognitoConfig",
    "Credentials",
    "EventSink",
    "HttpPluginConfig",
    "InMemoryEventSink",
    "PromiseInterceptor",
    "Session",
    "TelemetryConfig",
    "instrument",
    "instrument_callbacks",
]
