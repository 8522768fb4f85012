"""Retry filters and the filter-chain evaluator.

A *filter* is any callable ``(attempts, outcome)`` returning a
:class:`Verdict` or any other value, which is judged by its truthiness:
truthy means :attr:`Verdict.RETRY` and falsy means :attr:`Verdict.DEFER`.
Filters are evaluated in order by :func:`evaluate_chain`:

* ``RETRY`` stops the chain and the request is resent.
* ``BREAK_CHAIN`` stops the chain and the request is **not** resent; no
  later filter is invoked.
* ``DEFER`` passes the decision to the next filter.
* A chain that runs out of filters does not retry.

Usage::

    from retryhook.retry import filters

    policy_filter = filters.chain_filter([
        filters.idempotent_filter(),
        filters.status_filter({429, 502, 503}),
        filters.transport_error_filter(),
    ])
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Sequence
from typing import Any

import httpx

from retryhook.models import Outcome, TransportErrorCode, Verdict

Filter = Callable[[int, Outcome], Any]

DEFAULT_RETRY_STATUSES: frozenset[int] = frozenset({500, 503})

DEFAULT_RETRY_ERROR_CODES: frozenset[TransportErrorCode] = frozenset({
    TransportErrorCode.CONNECT_ERROR,
    TransportErrorCode.CONNECT_TIMEOUT,
    TransportErrorCode.READ_TIMEOUT,
    TransportErrorCode.WRITE_TIMEOUT,
    TransportErrorCode.READ_ERROR,
    TransportErrorCode.WRITE_ERROR,
    TransportErrorCode.REMOTE_PROTOCOL_ERROR,
})
"""Connection reset, timeout and DNS/connect failures."""

IDEMPOTENT_METHODS: frozenset[str] = frozenset({
    "GET", "HEAD", "OPTIONS", "PUT", "DELETE", "TRACE",
})


def as_verdict(result: Any) -> Verdict:
    """Normalise a filter's return value to a :class:`Verdict`.

    :class:`Verdict` members pass through; anything else maps to ``RETRY``
    when truthy and ``DEFER`` when falsy.  A veto must be spelled
    :attr:`Verdict.BREAK_CHAIN`.
    """
    if isinstance(result, Verdict):
        return result
    return Verdict.RETRY if result else Verdict.DEFER


def evaluate_chain(
    attempts: int,
    outcome: Outcome,
    filters: Iterable[Filter],
) -> bool:
    """Run *filters* in order and return the overall retry decision."""
    for retry_filter in filters:
        verdict = as_verdict(retry_filter(attempts, outcome))
        if verdict is Verdict.RETRY:
            return True
        if verdict is Verdict.BREAK_CHAIN:
            return False
    return False


# ---------------------------------------------------------------------------
# Filter factories
# ---------------------------------------------------------------------------

def chain_filter(filters: Sequence[Filter]) -> Filter:
    """Compose *filters* into a single filter.

    The composite returns ``RETRY`` when :func:`evaluate_chain` does and
    ``DEFER`` otherwise, so a veto inside the chain does not leak out to an
    enclosing chain.
    """
    chained = tuple(filters)

    def _chain(attempts: int, outcome: Outcome) -> Verdict:
        if evaluate_chain(attempts, outcome, chained):
            return Verdict.RETRY
        return Verdict.DEFER

    return _chain


def status_filter(statuses: Iterable[int] | None = None) -> Filter:
    """Retry when the response status code is one of *statuses*.

    Defaults to ``{500, 503}``.  Outcomes without a response are deferred.
    """
    failure_statuses = frozenset(statuses) if statuses else DEFAULT_RETRY_STATUSES

    def _status(attempts: int, outcome: Outcome) -> Verdict:
        if outcome.response is None:
            return Verdict.DEFER
        if outcome.response.status_code in failure_statuses:
            return Verdict.RETRY
        return Verdict.DEFER

    return _status


def transport_error_filter(
    codes: Iterable[TransportErrorCode | str] | None = None,
) -> Filter:
    """Retry when the outcome's transport error code is one of *codes*."""
    error_codes = (
        frozenset(TransportErrorCode(code) for code in codes)
        if codes
        else DEFAULT_RETRY_ERROR_CODES
    )

    def _transport_error(attempts: int, outcome: Outcome) -> Verdict:
        if outcome.error_code in error_codes:
            return Verdict.RETRY
        return Verdict.DEFER

    return _transport_error


def connect_filter() -> Filter:
    """Retry when the connection could not be established at all.

    Such requests never reached the server, so resending them is safe even
    for non-idempotent methods.
    """

    def _connect(attempts: int, outcome: Outcome) -> Verdict:
        if isinstance(outcome.error, (httpx.ConnectError, httpx.ConnectTimeout)):
            return Verdict.RETRY
        return Verdict.DEFER

    return _connect


def idempotent_filter(methods: Iterable[str] | None = None) -> Filter:
    """Veto retries of requests whose method is not idempotent.

    Returns ``DEFER`` for idempotent methods and ``BREAK_CHAIN`` for all
    others (``POST``, ``PATCH``), regardless of the outcome.  Meant to be
    placed early in a chain.
    """
    allowed = (
        frozenset(m.upper() for m in methods) if methods else IDEMPOTENT_METHODS
    )

    def _idempotent(attempts: int, outcome: Outcome) -> Verdict:
        if outcome.method.upper() in allowed:
            return Verdict.DEFER
        return Verdict.BREAK_CHAIN

    return _idempotent


def default_filter() -> Filter:
    """Idempotent requests that failed with 500/503 or a transport error."""
    return chain_filter([
        idempotent_filter(),
        status_filter(),
        transport_error_filter(),
    ])
