import asyncio

import pytest

from http_observatory import (
    CallbackInterceptor,
    HttpPluginConfig,
    InMemoryEventSink,
    PromiseInterceptor,
    TelemetryConfig,
    instrument,
    instrument_callbacks,
)


def test_instrument_callbacks_returns_enabled_interceptor() -> None:
    sink = InMemoryEventSink(TelemetryConfig(enable_xray=True))
    interceptor = instrument_callbacks(sink, HttpPluginConfig(logical_service_name="checkout"))

    assert isinstance(interceptor, CallbackInterceptor)
    assert interceptor.active is True

    call_id = interceptor.on_open("GET", "https://api.example.com/cart")
    interceptor.on_send(call_id, {})
    interceptor.on_load(call_id, 200)

    trace = sink.events[0][1]
    assert trace["name"] == "checkout"
    assert trace["subsegments"][0]["name"] == "api.example.com"


def test_instrument_returns_enabled_promise_interceptor() -> None:
    sink = InMemoryEventSink()
    interceptor = instrument(sink, id_source=lambda length: "a" * length)

    assert isinstance(interceptor, PromiseInterceptor)
    assert interceptor.active is True
    assert interceptor.config.logical_service_name == "sample.rum.aws.amazon.com"
    assert interceptor.tracer.new_segment_id() == "a" * 16


def test_instrumented_calls_stop_after_disable() -> None:
    sink = InMemoryEventSink(TelemetryConfig(enable_xray=True))
    interceptor = instrument(sink, HttpPluginConfig(record_all_requests=True))
    interceptor.disable()

    async def send():
        raise RuntimeError("not observed")

    with pytest.raises(RuntimeError):
        asyncio.run(interceptor.observe("GET", "https://api.example.com", {}, send))

    assert sink.events == []
