"""Trace a few httpx requests against an in-process mock backend and print the events."""

from __future__ import annotations

import asyncio
import json
import logging

import httpx

from http_observatory import HttpPluginConfig, InMemoryEventSink, TelemetryConfig, instrument, instrument_callbacks
from http_observatory.transports import traced_async_client, traced_client


def backend(request: httpx.Request) -> httpx.Response:
    if request.url.path == "/missing":
        return httpx.Response(404, json={"error": "not found"})
    if request.url.path == "/flaky":
        raise httpx.ConnectError("connection reset", request=request)
    trace_header = request.headers.get("X-Amzn-Trace-Id") or request.headers.get("traceparent")
    return httpx.Response(200, json={"trace_header": trace_header})


async def run_async(sink: InMemoryEventSink, config: HttpPluginConfig) -> None:
    interceptor = instrument(sink, config)
    async with traced_async_client(interceptor, transport=httpx.MockTransport(backend)) as client:
        response = await client.get("https://api.example.com/orders")
        print(f"async  GET /orders -> {response.status_code} {response.json()}")


def run_sync(sink: InMemoryEventSink, config: HttpPluginConfig) -> None:
    interceptor = instrument_callbacks(sink, config)
    with traced_client(interceptor, transport=httpx.MockTransport(backend)) as client:
        print(f"sync   GET /missing -> {client.get('https://api.example.com/missing').status_code}")
        try:
            client.get("https://api.example.com/flaky")
        except httpx.ConnectError as exc:
            print(f"sync   GET /flaky -> {exc}")


def main() -> None:
    logging.basicConfig(level=logging.INFO)
    sink = InMemoryEventSink(TelemetryConfig(enable_xray=True))
    config = HttpPluginConfig(add_trace_id_header=True, record_all_requests=True)

    asyncio.run(run_async(sink, config))
    run_sync(sink, config)

    print("Recorded events:")
    for event_type, payload in sink.events:
        print(f"- {event_type}: {json.dumps(payload, sort_keys=True)}")


if __name__ == "__main__":
    main()
