"""Bindings of the interceptors to httpx transports."""

from __future__ import annotations

from typing import Any, Optional

import httpx

from ..core.callback import CallbackInterceptor
from ..core.promise import PromiseInterceptor


class CallbackTransport(httpx.BaseTransport):
    """Sync transport that reports each request to a :class:`CallbackInterceptor`."""

    def __init__(self, interceptor: CallbackInterceptor, transport: Optional[httpx.BaseTransport] = None) -> None:
        self.interceptor = interceptor
        self._transport = transport or httpx.HTTPTransport()

    def handle_request(self, request: httpx.Request) -> httpx.Response:
        call_id = self.interceptor.on_open(request.method, str(request.url), is_async=False)
        self.interceptor.on_send(call_id, request.headers)
        try:
            response = self._transport.handle_request(request)
        except httpx.TimeoutException:
            self.interceptor.on_timeout(call_id)
            raise
        except httpx.TransportError:
            self.interceptor.on_error(call_id)
            raise
        except BaseException:
            self.interceptor.on_abort(call_id)
            raise
        self.interceptor.on_load(call_id, response.status_code, response.reason_phrase, response.headers)
        return response

    def close(self) -> None:
        self._transport.close()


class PromiseTransport(httpx.AsyncBaseTransport):
    """Async transport that runs each request through a :class:`PromiseInterceptor`."""

    def __init__(self, interceptor: PromiseInterceptor, transport: Optional[httpx.AsyncBaseTransport] = None) -> None:
        self.interceptor = interceptor
        self._transport = transport or httpx.AsyncHTTPTransport()

    async def handle_async_request(self, request: httpx.Request) -> httpx.Response:
        return await self.interceptor.observe(
            request.method,
            str(request.url),
            request.headers,
            lambda: self._transport.handle_async_request(request),
        )

    async def aclose(self) -> None:
        await self._transport.aclose()


def traced_client(interceptor: CallbackInterceptor, *, transport: Optional[httpx.BaseTransport] = None, **kwargs: Any) -> httpx.Client:
    """Build an ``httpx.Client`` whose requests are observed by ``interceptor``."""
    return httpx.Client(transport=CallbackTransport(interceptor, transport), **kwargs)


def traced_async_client(
    interceptor: PromiseInterceptor,
    *,
    transport: Optional[httpx.AsyncBaseTransport] = None,
    **kwargs: Any,
) -> httpx.AsyncClient:
    """Build an ``httpx.AsyncClient`` whose requests are observed by ``interceptor``."""
    return httpx.AsyncClient(transport=PromiseTransport(interceptor, transport), **kwargs)
