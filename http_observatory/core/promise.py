"""Interceptor for awaitable (promise-style) transports."""

from __future__ import annotations

import asyncio
import functools
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Mapping, MutableMapping, Optional, TypeVar

from .classifier import parse_content_length
from .headers import find_header
from .interceptor import HttpInterceptor

R = TypeVar("R")

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ResponseInfo:
    status: int
    status_text: str = ""
    content_length: Optional[int] = None


def describe_response(response: Any) -> ResponseInfo:
    """Read status, reason and content length from a response-like object.

    Understands ``status_code``/``reason_phrase`` (httpx, requests) and
    ``status``/``reason`` (aiohttp) spellings.
    """
    status = getattr(response, "status_code", None)
    if status is None:
        status = getattr(response, "status", 0)
    status_text = getattr(response, "reason_phrase", None)
    if status_text is None:
        status_text = getattr(response, "reason", None) or getattr(response, "status_text", "")
    headers: Mapping[str, str] = getattr(response, "headers", None) or {}
    return ResponseInfo(
        status=int(status),
        status_text=str(status_text or ""),
        content_length=parse_content_length(find_header(headers, "Content-Length")),
    )


class PromiseInterceptor(HttpInterceptor):
    """Observes calls whose outcome is the result of an awaitable.

    A raised exception is recorded as a network fault named after the
    exception's message, then re-raised unchanged. Cancellation and other
    ``BaseException`` exits are recorded as an abort.
    """

    def __init__(self, *args: Any, response_reader: Callable[[Any], ResponseInfo] = describe_response, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self.response_reader = response_reader

    async def observe(
        self,
        method: str,
        url: str,
        headers: MutableMapping[str, str],
        send: Callable[[], Awaitable[R]],
    ) -> R:
        """Run ``send`` as one observed call."""
        call_id = self._open_call(method, url, True)
        if call_id is None:
            return await send()
        self._send_call(call_id, headers)
        try:
            response = await send()
        except asyncio.CancelledError:
            self._complete_abort(call_id)
            raise
        except Exception as exc:
            self._complete_exception(call_id, exc)
            raise
        except BaseException:
            self._complete_abort(call_id)
            raise
        try:
            info = self.response_reader(response)
        except Exception:
            logger.warning("Unreadable response for %s %s", method, url, exc_info=True)
            self._take_call(call_id)
            return response
        self._complete_response(call_id, info.status, info.status_text, info.content_length)
        return response

    def _complete_exception(self, call_id: int, exc: BaseException) -> None:
        self._complete_failure(
            call_id,
            cause_type=str(exc) or type(exc).__name__,
            fault=True,
            error=exc,
        )

    def wrap(self, send: Callable[..., Awaitable[R]]) -> Callable[..., Awaitable[R]]:
        """Wrap an async ``send(request, ...)`` whose request exposes
        ``method``, ``url`` and mutable ``headers``."""

        @functools.wraps(send)
        async def wrapper(request: Any, *args: Any, **kwargs: Any) -> R:
            return await self.observe(
                request.method,
                str(request.url),
                request.headers,
                lambda: send(request, *args, **kwargs),
            )

        return wrapper
