import itertools
from typing import Any, Callable, Optional

import pytest

from http_observatory.config import HttpPluginConfig, TelemetryConfig
from http_observatory.core.callback import CallbackInterceptor
from http_observatory.core.promise import PromiseInterceptor
from http_observatory.core.tracer import Tracer
from http_observatory.sinks.base import Session
from http_observatory.sinks.memory import InMemoryEventSink


def zero_ids(length: int) -> str:
    return "0" * length


def sequential_ids() -> Callable[[int], str]:
    """Id source yielding 1, 2, 3... as zero-padded hex of the requested width."""
    counter = itertools.count(1)

    def next_id(length: int) -> str:
        return format(next(counter), f"0{length}x")

    return next_id


@pytest.fixture
def id_sequence() -> Callable[[int], str]:
    return sequential_ids()


@pytest.fixture
def make_sink() -> Callable[..., InMemoryEventSink]:
    def factory(*, xray: bool = False, w3c: bool = False, record: bool = True, session: bool = True) -> InMemoryEventSink:
        return InMemoryEventSink(
            TelemetryConfig(enable_xray=xray, enable_w3c_trace_id=w3c),
            Session(session_id="s-1", record=record) if session else None,
            with_session=session,
        )

    return factory


def _build(cls: type, sink: InMemoryEventSink, id_source: Optional[Callable[[int], str]], config_kwargs: dict) -> Any:
    config = HttpPluginConfig(**config_kwargs)
    tracer = Tracer(config.logical_service_name, id_source=id_source or zero_ids, clock=lambda: 0.0)
    interceptor = cls(sink, config, tracer=tracer)
    interceptor.enable()
    return interceptor


@pytest.fixture
def make_callback() -> Callable[..., CallbackInterceptor]:
    def factory(sink: InMemoryEventSink, *, id_source=None, **config_kwargs: Any) -> CallbackInterceptor:
        return _build(CallbackInterceptor, sink, id_source, config_kwargs)

    return factory


@pytest.fixture
def make_promise() -> Callable[..., PromiseInterceptor]:
    def factory(sink: InMemoryEventSink, *, id_source=None, **config_kwargs: Any) -> PromiseInterceptor:
        return _build(PromiseInterceptor, sink, id_source, config_kwargs)

    return factory
