"""Delay strategies: how long to wait before the next resend.

A delay strategy is any callable ``(attempts, outcome) -> float`` returning
a non-negative number of **seconds**.  The default waiters
(:func:`time.sleep` and :func:`asyncio.sleep`) take seconds too.

* :func:`exponential_delay` -- ``2 ** (attempts - 1)``, truncated.
* :func:`constant_delay` -- a fixed wait.
* :func:`jittered_backoff` -- capped exponential backoff with jitter that
  honours ``Retry-After``.
* :func:`logging_delay` -- decorator that logs every computed delay.
"""

from __future__ import annotations

import logging
import random
from collections.abc import Callable

import httpx

from retryhook.models import Outcome
from retryhook.observability import get_logger

from .formatter import MessageFormatter

DelayFn = Callable[[int, Outcome], float]


def exponential_delay(attempts: int, outcome: Outcome | None = None) -> int:
    """Return ``2 ** (attempts - 1)`` seconds, truncated toward zero.

    The first resend (``attempts == 0``) therefore happens immediately:
    ``0, 1, 2, 4, 8, ...``.
    """
    return int(2 ** (attempts - 1))


def constant_delay(seconds: float) -> DelayFn:
    """Wait the same number of *seconds* before every resend."""
    if seconds < 0:
        raise ValueError(f"seconds must be >= 0, got {seconds}")

    def _constant(attempts: int, outcome: Outcome) -> float:
        return seconds

    return _constant


def _parse_retry_after(response: httpx.Response | None) -> float | None:
    """Extract the ``Retry-After`` header value as a float, or ``None``."""
    if response is None:
        return None
    raw = response.headers.get("retry-after")
    if raw is None:
        return None
    try:
        return max(0.0, float(raw))
    except (ValueError, TypeError):
        return None


def jittered_backoff(
    base: float = 1.0,
    maximum: float = 60.0,
    jitter: bool = True,
) -> DelayFn:
    """Capped exponential backoff with optional jitter.

    The delay is ``base * 2 ** attempts`` capped at *maximum*, or the
    server's numeric ``Retry-After`` value when the response carries one.
    With *jitter* the result is scaled to between 50 % and 100 % of its
    value, which spreads out clients that failed at the same moment.
    """
    if base < 0:
        raise ValueError(f"base must be >= 0, got {base}")
    if maximum < 0:
        raise ValueError(f"maximum must be >= 0, got {maximum}")

    def _backoff(attempts: int, outcome: Outcome) -> float:
        retry_after = _parse_retry_after(outcome.response)
        if retry_after is not None:
            delay = retry_after
        else:
            delay = min(base * (2 ** attempts), maximum)

        if jitter:
            delay *= 0.5 + random.random() * 0.5

        return delay

    return _backoff


def logging_delay(
    delay: DelayFn,
    logger: logging.Logger | None = None,
    formatter: MessageFormatter | str | None = None,
    level: int = logging.INFO,
) -> DelayFn:
    """Wrap *delay* so that every computed delay is logged.

    The wrapped strategy runs first; one record is then emitted with the
    request method and URL, the status code or error, the 1-based retry
    number (``attempts + 1``), the delay and the outcome's transfer info.
    The delay is returned unchanged.

    Parameters
    ----------
    delay:
        The strategy to wrap.
    logger:
        Destination logger.  Defaults to ``get_logger("retryhook.retry")``.
    formatter:
        A :class:`MessageFormatter` or a template string used to render the
        log message.  Defaults to :data:`~retryhook.retry.formatter.DEFAULT_TEMPLATE`.
    level:
        Log level of the emitted records.
    """
    if logger is None:
        logger = get_logger("retryhook.retry")
    if formatter is None:
        formatter = MessageFormatter()
    elif not isinstance(formatter, MessageFormatter):
        formatter = MessageFormatter(formatter)

    def _logged(attempts: int, outcome: Outcome) -> float:
        computed = delay(attempts, outcome)
        values = {
            **outcome.transfer_info,
            "retries": attempts + 1,
            "delay": computed,
        }
        logger.log(
            level,
            formatter.format(outcome.request, outcome.response, outcome.error, values),
            extra={
                "extra_fields": {
                    **outcome.transfer_info,
                    "op": "retry_delay",
                    "method": outcome.method,
                    "url": outcome.url,
                    "status_code": outcome.status_code,
                    "error": str(outcome.error) if outcome.error is not None else None,
                    "error_code": outcome.error_code,
                    "attempt": attempts + 1,
                    "delay": computed,
                }
            },
        )
        return computed

    return _logged
