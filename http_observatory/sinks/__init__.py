"""Event sink implementations for HTTP Observatory."""

from .base import EventSink, Session
from .memory import InMemoryEventSink

__all__ = ["EventSink", "Session", "InMemoryEventSink", "PostgresEventSink"]


def __getattr__(name: str):
    if name == "PostgresEventSink":
        from .postgres import PostgresEventSink

        return PostgresEventSink
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
