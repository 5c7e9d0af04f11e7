"""High-level instrumentation helpers for HTTP clients."""

from __future__ import annotations

from typing import Optional

from .config import HttpPluginConfig
from .core.callback import CallbackInterceptor
from .core.promise import PromiseInterceptor
from .core.tracer import IdSource, Tracer
from .sinks.base import EventSink


def _tracer(config: HttpPluginConfig, id_source: Optional[IdSource]) -> Tracer:
    return Tracer(service=config.logical_service_name, id_source=id_source)


def instrument_callbacks(
    sink: EventSink,
    config: Optional[HttpPluginConfig] = None,
    *,
    id_source: Optional[IdSource] = None,
) -> CallbackInterceptor:
    """Create an enabled interceptor for callback-style transports."""
    config = config or HttpPluginConfig()
    interceptor = CallbackInterceptor(sink, config, tracer=_tracer(config, id_source))
    interceptor.enable()
    return interceptor


def instrument(
    sink: EventSink,
    config: Optional[HttpPluginConfig] = None,
    *,
    id_source: Optional[IdSource] = None,
) -> PromiseInterceptor:
    """Create an enabled interceptor for awaitable transports."""
    config = config or HttpPluginConfig()
    interceptor = PromiseInterceptor(sink, config, tracer=_tracer(config, id_source))
    interceptor.enable()
    return interceptor
