"""Data types shared by the retry engine.

* :class:`Verdict` -- the three-valued result of a filter invocation.
* :class:`TransportErrorCode` -- transport-layer failure classes.
* :class:`Outcome` -- the terminal result of one attempt.
* :class:`RetryContext` -- attempt state for exactly one logical request.
"""

from __future__ import annotations

import threading
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any

import httpx


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------

class Verdict(str, Enum):
    """Result of a single filter invocation."""

    RETRY = "retry"
    """Resend the request; later filters in the chain are not consulted."""

    DEFER = "defer"
    """No opinion -- let the next filter in the chain decide."""

    BREAK_CHAIN = "break_chain"
    """Do not resend, and do not consult any later filter."""


class TransportErrorCode(str, Enum):
    """Classification of a transport-level failure (no usable response)."""

    CONNECT_ERROR = "connect_error"
    """DNS resolution failed, connection refused or TLS handshake failed."""

    CONNECT_TIMEOUT = "connect_timeout"
    READ_TIMEOUT = "read_timeout"
    WRITE_TIMEOUT = "write_timeout"
    POOL_TIMEOUT = "pool_timeout"

    READ_ERROR = "read_error"
    """Connection reset or dropped while receiving."""

    WRITE_ERROR = "write_error"
    """Connection reset or dropped while sending."""

    CLOSE_ERROR = "close_error"

    REMOTE_PROTOCOL_ERROR = "remote_protocol_error"
    """The server closed the connection early or sent malformed HTTP."""

    PROXY_ERROR = "proxy_error"

    UNKNOWN = "unknown"
    """Any other :class:`httpx.TransportError`."""


# Most specific classes first: ConnectTimeout is a TimeoutException, and
# every entry is an httpx.TransportError.
_ERROR_CLASSES: tuple[tuple[type[BaseException], TransportErrorCode], ...] = (
    (httpx.ConnectTimeout, TransportErrorCode.CONNECT_TIMEOUT),
    (httpx.ReadTimeout, TransportErrorCode.READ_TIMEOUT),
    (httpx.WriteTimeout, TransportErrorCode.WRITE_TIMEOUT),
    (httpx.PoolTimeout, TransportErrorCode.POOL_TIMEOUT),
    (httpx.ConnectError, TransportErrorCode.CONNECT_ERROR),
    (httpx.ReadError, TransportErrorCode.READ_ERROR),
    (httpx.WriteError, TransportErrorCode.WRITE_ERROR),
    (httpx.CloseError, TransportErrorCode.CLOSE_ERROR),
    (httpx.RemoteProtocolError, TransportErrorCode.REMOTE_PROTOCOL_ERROR),
    (httpx.ProxyError, TransportErrorCode.PROXY_ERROR),
)


def classify_error(exc: BaseException | None) -> TransportErrorCode | None:
    """Map an exception to a :class:`TransportErrorCode`.

    Returns ``None`` for ``None`` and for exceptions that are not transport
    failures (e.g. a ``ValueError`` raised by application code).
    """
    if exc is None:
        return None
    for cls, code in _ERROR_CLASSES:
        if isinstance(exc, cls):
            return code
    if isinstance(exc, httpx.TransportError):
        return TransportErrorCode.UNKNOWN
    return None


# ---------------------------------------------------------------------------
# Outcome
# ---------------------------------------------------------------------------

@dataclass(frozen=True, eq=False)
class Outcome:
    """The result of one attempt at sending a request.

    Exactly one of *response* / *error* is set.  A completed outcome may
    still carry a failing status code (e.g. ``500``); status codes and
    transport errors are separate signals and both are inspectable here.

    Attributes
    ----------
    request:
        The request that was sent.  Treated as an opaque handle by the
        engine apart from its method and URL.
    response:
        The response, when the server answered.
    error:
        The exception raised by the transport, when it did not.
    error_code:
        Transport-level classification of *error*.
    transfer_info:
        Timing metadata recorded by the transport (``total_time``,
        ``connect_time``, ...), used for logging only.
    """

    request: httpx.Request
    response: httpx.Response | None = None
    error: BaseException | None = None
    error_code: TransportErrorCode | None = None
    transfer_info: Mapping[str, Any] = field(default_factory=lambda: MappingProxyType({}))

    @classmethod
    def completed(
        cls,
        request: httpx.Request,
        response: httpx.Response,
        transfer_info: Mapping[str, Any] | None = None,
    ) -> Outcome:
        """Build the outcome of an attempt that received a response."""
        return cls(
            request=request,
            response=response,
            transfer_info=MappingProxyType(dict(transfer_info or {})),
        )

    @classmethod
    def failed(
        cls,
        request: httpx.Request,
        error: BaseException,
        error_code: TransportErrorCode | None = None,
        transfer_info: Mapping[str, Any] | None = None,
    ) -> Outcome:
        """Build the outcome of an attempt that raised instead of answering.

        The error code is derived from *error* when not given explicitly.
        """
        return cls(
            request=request,
            error=error,
            error_code=error_code if error_code is not None else classify_error(error),
            transfer_info=MappingProxyType(dict(transfer_info or {})),
        )

    @property
    def is_completed(self) -> bool:
        return self.response is not None

    @property
    def is_failed(self) -> bool:
        return self.response is None

    @property
    def ok(self) -> bool:
        """``True`` for a completed outcome with a status code below 400."""
        return self.response is not None and self.response.status_code < 400

    @property
    def status_code(self) -> int | None:
        return self.response.status_code if self.response is not None else None

    @property
    def method(self) -> str:
        return self.request.method

    @property
    def url(self) -> str:
        return str(self.request.url)


# ---------------------------------------------------------------------------
# Per-request retry state
# ---------------------------------------------------------------------------

class RetryContext:
    """Attempt state for a single logical request.

    One context is created per logical request (the original submission and
    all of its resends) and is never shared between requests.  ``attempts``
    starts at ``0`` and only :meth:`advance` changes it, by exactly one.
    """

    __slots__ = ("_attempts", "_cancelled", "history")

    def __init__(self) -> None:
        self._attempts = 0
        self._cancelled = threading.Event()
        self.history: list[Outcome] = []

    @property
    def attempts(self) -> int:
        """Number of resends issued so far."""
        return self._attempts

    def advance(self) -> int:
        self._attempts += 1
        return self._attempts

    def record(self, outcome: Outcome) -> None:
        self.history.append(outcome)

    def cancel(self) -> None:
        """Abandon any further retries for this request.

        Safe to call from another thread.
        """
        self._cancelled.set()

    def sleep(self, seconds: float) -> bool:
        """Block for *seconds*, returning early if the request is cancelled.

        Returns ``True`` when the wait was cut short by :meth:`cancel`.
        """
        return self._cancelled.wait(max(0.0, seconds))

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    def __repr__(self) -> str:
        return f"RetryContext(attempts={self._attempts}, cancelled={self.cancelled})"
