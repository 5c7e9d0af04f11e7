"""Transport bindings for HTTP Observatory interceptors."""

from .httpx_client import CallbackTransport, PromiseTransport, traced_async_client, traced_client

__all__ = ["CallbackTransport", "PromiseTransport", "traced_client", "traced_async_client"]
