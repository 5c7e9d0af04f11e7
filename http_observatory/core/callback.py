"""Interceptor driven by synchronous transport callbacks."""

from __future__ import annotations

from typing import Mapping, MutableMapping, Optional

from .classifier import parse_content_length
from .headers import find_header
from .interceptor import HttpInterceptor


class CallbackInterceptor(HttpInterceptor):
    """Receives open/send signals and one terminal signal per call.

    A transport binding calls ``on_open`` when a request is created, passes
    the returned call id to ``on_send`` with the mutable outgoing headers, and
    later reports the outcome through ``on_load``, ``on_error``, ``on_abort``
    or ``on_timeout``. Only the first terminal signal for a call counts.
    """

    def on_open(self, method: str, url: str, is_async: bool = True) -> Optional[int]:
        return self._open_call(method, url, is_async)

    def on_send(self, call_id: Optional[int], headers: MutableMapping[str, str]) -> None:
        if call_id is not None:
            self._send_call(call_id, headers)

    def on_load(
        self,
        call_id: Optional[int],
        status: int,
        status_text: str = "",
        response_headers: Optional[Mapping[str, str]] = None,
    ) -> None:
        content_length = None
        if response_headers is not None:
            content_length = parse_content_length(find_header(response_headers, "Content-Length"))
        self._complete_response(call_id, status, status_text, content_length)

    def on_error(self, call_id: Optional[int], status: int = 0, status_text: str = "") -> None:
        self._complete_network_error(call_id, status, status_text)

    def on_abort(self, call_id: Optional[int]) -> None:
        self._complete_abort(call_id)

    def on_timeout(self, call_id: Optional[int]) -> None:
        self._complete_timeout(call_id)
