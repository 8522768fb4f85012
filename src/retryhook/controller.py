"""Retry controllers: the loop that turns failed outcomes into resends.

A controller receives the outcome of an attempt, consults the policy's
filter, waits for the policy's delay, resends the request through the
transport and repeats until the outcome is accepted, the filter vetoes a
retry, or ``max_attempts`` resends have been issued.  The caller only ever
sees the final :class:`~retryhook.models.Outcome`.

Per logical request, the lifecycle is:

1. ``attempts >= max_attempts`` -- settle with the current outcome.
2. The filter does not ask for a retry -- settle with the current outcome.
3. Otherwise compute the delay, wait, increment ``attempts`` by one, resend
   and go back to 1 with the new outcome.

All per-request state lives in a :class:`~retryhook.models.RetryContext`;
a controller only holds its immutable :class:`~retryhook.config.RetryPolicy`
and can serve any number of concurrent requests.
"""

from __future__ import annotations

import asyncio
import inspect
from typing import TYPE_CHECKING, Any

import httpx

from retryhook.config import RetryPolicy
from retryhook.errors import (
    RetryCancelledError,
    RetryConfigurationError,
    RetryStrategyError,
)
from retryhook.models import Outcome, RetryContext
from retryhook.observability import NoopMetricsHook, get_logger
from retryhook.retry.filters import evaluate_chain

if TYPE_CHECKING:
    from retryhook.transport import AsyncTransport, Transport

log = get_logger("retryhook.controller")


def _outcome_tag(outcome: Outcome) -> str:
    if outcome.response is not None:
        return str(outcome.response.status_code)
    if outcome.error_code is not None:
        return outcome.error_code.value
    return "error"


def _outcome_fields(outcome: Outcome) -> dict[str, Any]:
    return {
        "method": outcome.method,
        "url": outcome.url,
        "status_code": outcome.status_code,
        "error_code": outcome.error_code,
        "error": str(outcome.error) if outcome.error is not None else None,
    }


# ---------------------------------------------------------------------------
# Shared decision logic
# ---------------------------------------------------------------------------

class _BaseRetryController:
    """Decision, accounting and logging shared by both controllers."""

    def __init__(self, policy: RetryPolicy | None) -> None:
        if policy is None:
            raise RetryConfigurationError(
                'A retry policy with a "filter" is required',
                context={"field": "policy"},
            )
        if not isinstance(policy, RetryPolicy):
            raise RetryConfigurationError(
                f"policy must be a RetryPolicy, got {type(policy).__name__}",
                context={"field": "policy", "value": policy},
            )
        self._policy = policy
        self._metrics = policy.metrics if policy.metrics is not None else NoopMetricsHook()

    @property
    def policy(self) -> RetryPolicy:
        return self._policy

    # -- decisions ---------------------------------------------------------

    def _observe(self, context: RetryContext, outcome: Outcome) -> str | None:
        """Record *outcome* and return why the request settles, if it does.

        Returns ``None`` when the request must be resent.
        """
        context.record(outcome)
        self._metrics.increment(
            "retryhook.attempts_total",
            tags={"method": outcome.method, "status": _outcome_tag(outcome)},
        )

        if context.attempts >= self._policy.max_attempts:
            return "exhausted"
        if not evaluate_chain(context.attempts, outcome, (self._policy.filter,)):
            return "accepted" if outcome.ok else "vetoed"
        return None

    def _settle(self, context: RetryContext, outcome: Outcome, reason: str) -> Outcome:
        self._metrics.increment(
            "retryhook.settled_total",
            tags={"method": outcome.method, "reason": reason},
        )
        log.debug(
            "Request settled",
            extra={
                "extra_fields": {
                    "op": "settle",
                    "reason": reason,
                    "attempts": context.attempts,
                    **_outcome_fields(outcome),
                }
            },
        )
        return outcome

    def _compute_delay(self, context: RetryContext, outcome: Outcome) -> float:
        try:
            delay = self._policy.delay(context.attempts, outcome)
            if isinstance(delay, bool) or not isinstance(delay, (int, float)):
                raise TypeError(
                    f"delay must return a number of seconds, got {type(delay).__name__}"
                )
            if not delay >= 0:
                raise ValueError(f"delay must be >= 0, got {delay}")
        except Exception as exc:
            raise RetryStrategyError(
                f"Delay strategy failed for {outcome.method} {outcome.url}: {exc}",
                context={
                    "stage": "delay",
                    "attempt": context.attempts + 1,
                    "method": outcome.method,
                    "url": outcome.url,
                },
                cause=exc,
            ) from exc

        self._metrics.timing(
            "retryhook.retry_delay_ms",
            delay * 1000,
            tags={"method": outcome.method},
        )
        return delay

    def _wait_failed(
        self, context: RetryContext, outcome: Outcome, exc: Exception,
    ) -> RetryStrategyError:
        return RetryStrategyError(
            f"Waiter failed for {outcome.method} {outcome.url}: {exc}",
            context={
                "stage": "wait",
                "attempt": context.attempts + 1,
                "method": outcome.method,
                "url": outcome.url,
            },
            cause=exc,
        )

    @staticmethod
    def _check_cancelled(context: RetryContext, outcome: Outcome) -> None:
        if context.cancelled:
            raise RetryCancelledError(
                f"Retry of {outcome.method} {outcome.url} cancelled",
                context={
                    "attempt": context.attempts,
                    "method": outcome.method,
                    "url": outcome.url,
                },
            )

    def _begin_resend(self, context: RetryContext, outcome: Outcome, delay: float) -> None:
        attempt = context.advance()
        self._metrics.increment(
            "retryhook.retries_total",
            tags={"method": outcome.method, "reason": _outcome_tag(outcome)},
        )
        log.info(
            "Retrying request",
            extra={
                "extra_fields": {
                    "op": "retry",
                    "attempt": attempt,
                    "max_attempts": self._policy.max_attempts,
                    "delay": delay,
                    **_outcome_fields(outcome),
                }
            },
        )

    @staticmethod
    def _send_failed(request: httpx.Request, exc: Exception) -> Outcome:
        log.warning(
            "Transport raised instead of returning an outcome",
            extra={
                "extra_fields": {
                    "op": "send",
                    "method": request.method,
                    "url": str(request.url),
                    "error": str(exc),
                }
            },
        )
        return Outcome.failed(request, exc)


# ---------------------------------------------------------------------------
# Sync controller
# ---------------------------------------------------------------------------

class RetryController(_BaseRetryController):
    """Blocking retry controller.

    Parameters
    ----------
    policy:
        The retry configuration shared by every request this controller
        handles.

    Raises
    ------
    RetryConfigurationError
        When *policy* is missing.
    """

    def send(
        self,
        request: httpx.Request,
        transport: Transport,
        context: RetryContext | None = None,
    ) -> Outcome:
        """Send *request* through *transport*, retrying per the policy."""
        context = context if context is not None else RetryContext()
        return self.handle(self._attempt(transport, request), transport, context)

    def handle(
        self,
        outcome: Outcome,
        transport: Transport,
        context: RetryContext | None = None,
    ) -> Outcome:
        """Process the outcome of an attempt and return the final outcome.

        Parameters
        ----------
        outcome:
            The outcome of the most recent attempt.
        transport:
            Used to resend ``outcome.request``.
        context:
            Attempt state of this logical request.  A fresh context (zero
            attempts) is created when omitted.

        Raises
        ------
        RetryStrategyError
            When the delay strategy or the waiter raises.
        RetryCancelledError
            When *context* is cancelled before a resend is issued.
        """
        context = context if context is not None else RetryContext()

        while True:
            reason = self._observe(context, outcome)
            if reason is not None:
                return self._settle(context, outcome, reason)

            self._check_cancelled(context, outcome)
            delay = self._compute_delay(context, outcome)
            self._wait(context, outcome, delay)
            self._check_cancelled(context, outcome)

            self._begin_resend(context, outcome, delay)
            outcome = self._attempt(transport, outcome.request)

    def _wait(self, context: RetryContext, outcome: Outcome, delay: float) -> None:
        try:
            if self._policy.waiter is None:
                context.sleep(delay)
            else:
                self._policy.waiter(delay, outcome)
        except Exception as exc:
            raise self._wait_failed(context, outcome, exc) from exc

    def _attempt(self, transport: Transport, request: httpx.Request) -> Outcome:
        try:
            return transport.send(request)
        except Exception as exc:
            return self._send_failed(request, exc)


# ---------------------------------------------------------------------------
# Async controller
# ---------------------------------------------------------------------------

class AsyncRetryController(_BaseRetryController):
    """Non-blocking retry controller.

    Mirrors :class:`RetryController`; the transport's ``send`` is awaited
    and the wait uses :func:`asyncio.sleep` unless the policy supplies a
    waiter (whose result is awaited when awaitable).

    Cancelling the task that runs :meth:`handle` abandons the request: the
    :class:`asyncio.CancelledError` propagates out of the pending wait or
    resend and no further attempt is made.
    """

    async def send(
        self,
        request: httpx.Request,
        transport: AsyncTransport,
        context: RetryContext | None = None,
    ) -> Outcome:
        """Send *request* through *transport*, retrying per the policy."""
        context = context if context is not None else RetryContext()
        outcome = await self._attempt(transport, request)
        return await self.handle(outcome, transport, context)

    async def handle(
        self,
        outcome: Outcome,
        transport: AsyncTransport,
        context: RetryContext | None = None,
    ) -> Outcome:
        """Process the outcome of an attempt and return the final outcome.

        See :meth:`RetryController.handle`.
        """
        context = context if context is not None else RetryContext()

        while True:
            reason = self._observe(context, outcome)
            if reason is not None:
                return self._settle(context, outcome, reason)

            self._check_cancelled(context, outcome)
            delay = self._compute_delay(context, outcome)
            await self._wait(context, outcome, delay)
            self._check_cancelled(context, outcome)

            self._begin_resend(context, outcome, delay)
            outcome = await self._attempt(transport, outcome.request)

    async def _wait(self, context: RetryContext, outcome: Outcome, delay: float) -> None:
        try:
            if self._policy.waiter is None:
                await asyncio.sleep(delay)
                return
            result = self._policy.waiter(delay, outcome)
            if inspect.isawaitable(result):
                await result
        except Exception as exc:
            raise self._wait_failed(context, outcome, exc) from exc

    async def _attempt(self, transport: AsyncTransport, request: httpx.Request) -> Outcome:
        try:
            return await transport.send(request)
        except Exception as exc:
            return self._send_failed(request, exc)
