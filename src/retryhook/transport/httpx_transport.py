"""Outcome-producing adapters around httpx transports.

:class:`HttpxTransport` and :class:`AsyncHttpxTransport` send one request
through an ``httpx.BaseTransport`` / ``httpx.AsyncBaseTransport`` and wrap
the result in an :class:`~retryhook.models.Outcome`:

* a response -- ``Outcome.completed`` with the body already read, so the
  underlying connection is released before any resend;
* an :class:`httpx.TransportError` -- ``Outcome.failed`` with the error
  classified into a :class:`~retryhook.models.TransportErrorCode`.

``transfer_info["total_time"]`` holds the wall-clock duration of the attempt
in seconds.
"""

from __future__ import annotations

import time

import httpx

from retryhook.models import Outcome
from retryhook.observability import get_logger

log = get_logger("retryhook.transport")


class HttpxTransport:
    """Synchronous adapter around an :class:`httpx.BaseTransport`.

    Parameters
    ----------
    transport:
        The transport that performs the I/O.  Defaults to a new
        :class:`httpx.HTTPTransport`.
    """

    def __init__(self, transport: httpx.BaseTransport | None = None) -> None:
        self._transport = transport if transport is not None else httpx.HTTPTransport()

    def send(self, request: httpx.Request) -> Outcome:
        t0 = time.monotonic()
        try:
            response = self._transport.handle_request(request)
            response.request = request
            try:
                response.read()
            finally:
                response.close()
        except httpx.TransportError as exc:
            elapsed = time.monotonic() - t0
            log.debug(
                "Transport error",
                extra={
                    "extra_fields": {
                        "op": "send",
                        "method": request.method,
                        "url": str(request.url),
                        "error": str(exc),
                        "total_time": elapsed,
                    }
                },
            )
            return Outcome.failed(request, exc, transfer_info={"total_time": elapsed})

        return Outcome.completed(
            request,
            response,
            transfer_info={"total_time": time.monotonic() - t0},
        )

    def close(self) -> None:
        """Close the wrapped transport and release its connections."""
        self._transport.close()

    def __enter__(self) -> HttpxTransport:
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()


class AsyncHttpxTransport:
    """Asynchronous adapter around an :class:`httpx.AsyncBaseTransport`.

    Mirrors :class:`HttpxTransport`.
    """

    def __init__(self, transport: httpx.AsyncBaseTransport | None = None) -> None:
        self._transport = transport if transport is not None else httpx.AsyncHTTPTransport()

    async def send(self, request: httpx.Request) -> Outcome:
        t0 = time.monotonic()
        try:
            response = await self._transport.handle_async_request(request)
            response.request = request
            try:
                await response.aread()
            finally:
                await response.aclose()
        except httpx.TransportError as exc:
            elapsed = time.monotonic() - t0
            log.debug(
                "Transport error",
                extra={
                    "extra_fields": {
                        "op": "send",
                        "method": request.method,
                        "url": str(request.url),
                        "error": str(exc),
                        "total_time": elapsed,
                    }
                },
            )
            return Outcome.failed(request, exc, transfer_info={"total_time": elapsed})

        return Outcome.completed(
            request,
            response,
            transfer_info={"total_time": time.monotonic() - t0},
        )

    async def aclose(self) -> None:
        """Close the wrapped transport and release its connections."""
        await self._transport.aclose()

    async def __aenter__(self) -> AsyncHttpxTransport:
        return self

    async def __aexit__(self, *exc: object) -> None:
        await self.aclose()
