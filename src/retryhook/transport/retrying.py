"""httpx transports that retry transparently.

Mount a :class:`RetryTransport` on an :class:`httpx.Client` (or an
:class:`AsyncRetryTransport` on an :class:`httpx.AsyncClient`) and every
request goes through a retry controller.  The client only sees the final
outcome: its response is returned, or its transport error is re-raised.

Usage::

    import httpx
    from retryhook import RetryPolicy, RetryTransport
    from retryhook.retry import default_filter

    client = httpx.Client(
        transport=RetryTransport(RetryPolicy(filter=default_filter(), max_attempts=3)),
    )
"""

from __future__ import annotations

import httpx

from retryhook.config import RetryPolicy
from retryhook.controller import AsyncRetryController, RetryController
from retryhook.models import Outcome

from .httpx_transport import AsyncHttpxTransport, HttpxTransport


def _unwrap(outcome: Outcome) -> httpx.Response:
    if outcome.response is not None:
        return outcome.response
    if outcome.error is not None:
        raise outcome.error
    raise httpx.TransportError("Request produced neither a response nor an error")


class RetryTransport(httpx.BaseTransport):
    """An :class:`httpx.BaseTransport` that retries per *policy*.

    Parameters
    ----------
    policy:
        The retry configuration.
    transport:
        The transport performing the I/O.  Defaults to a new
        :class:`httpx.HTTPTransport`.
    """

    def __init__(
        self,
        policy: RetryPolicy,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self._controller = RetryController(policy)
        self._transport = HttpxTransport(transport)

    def handle_request(self, request: httpx.Request) -> httpx.Response:
        return _unwrap(self._controller.send(request, self._transport))

    def close(self) -> None:
        self._transport.close()


class AsyncRetryTransport(httpx.AsyncBaseTransport):
    """An :class:`httpx.AsyncBaseTransport` that retries per *policy*."""

    def __init__(
        self,
        policy: RetryPolicy,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._controller = AsyncRetryController(policy)
        self._transport = AsyncHttpxTransport(transport)

    async def handle_async_request(self, request: httpx.Request) -> httpx.Response:
        return _unwrap(await self._controller.send(request, self._transport))

    async def aclose(self) -> None:
        await self._transport.aclose()
