"""retryhook -- retry policies for httpx requests.

Public re-exports
-----------------

* **Controllers:** :class:`RetryController`, :class:`AsyncRetryController`
* **Configuration:** :class:`RetryPolicy`
* **Transports:** :class:`RetryTransport`, :class:`AsyncRetryTransport`,
  :class:`HttpxTransport`, :class:`AsyncHttpxTransport`
* **Errors:** every :class:`RetryhookError` subclass and :class:`ErrorCode`
* **Models:** :class:`Outcome`, :class:`Verdict`, :class:`TransportErrorCode`,
  :class:`RetryContext`

Filters and delay strategies live in :mod:`retryhook.retry`.

Usage::

    import httpx
    from retryhook import RetryPolicy, RetryTransport
    from retryhook.retry import chain_filter, idempotent_filter, status_filter

    policy = RetryPolicy(
        filter=chain_filter([idempotent_filter(), status_filter({502, 503})]),
        max_attempts=3,
    )
    with httpx.Client(transport=RetryTransport(policy)) as client:
        client.get("https://example.com/")
"""

from __future__ import annotations

# ── Configuration ───────────────────────────────────────────────────────
from retryhook.config import RetryPolicy

# ── Controllers ─────────────────────────────────────────────────────────
from retryhook.controller import AsyncRetryController, RetryController

# ── Errors ──────────────────────────────────────────────────────────────
from retryhook.errors import (
    ErrorCode,
    RetryCancelledError,
    RetryConfigurationError,
    RetryhookError,
    RetryStrategyError,
)

# ── Models ──────────────────────────────────────────────────────────────
from retryhook.models import (
    Outcome,
    RetryContext,
    TransportErrorCode,
    Verdict,
    classify_error,
)

# ── Transports ──────────────────────────────────────────────────────────
from retryhook.transport import (
    AsyncHttpxTransport,
    AsyncRetryTransport,
    AsyncTransport,
    HttpxTransport,
    RetryTransport,
    Transport,
)

__all__ = [
    # Controllers
    "RetryController",
    "AsyncRetryController",
    # Configuration
    "RetryPolicy",
    # Errors
    "RetryhookError",
    "ErrorCode",
    "RetryConfigurationError",
    "RetryStrategyError",
    "RetryCancelledError",
    # Models
    "Outcome",
    "RetryContext",
    "TransportErrorCode",
    "Verdict",
    "classify_error",
    # Transports
    "Transport",
    "AsyncTransport",
    "HttpxTransport",
    "AsyncHttpxTransport",
    "RetryTransport",
    "AsyncRetryTransport",
]
