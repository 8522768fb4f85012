"""Retry policy configuration.

:class:`RetryPolicy` bundles everything a retry controller needs.  It is
frozen: a controller shares one policy, read-only, across every request it
handles, so no locking is needed between concurrent requests.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from retryhook.errors import RetryConfigurationError
from retryhook.retry.delays import DelayFn, exponential_delay
from retryhook.retry.filters import Filter

Waiter = Callable[[float, Any], Any]
"""``(seconds, outcome) -> None``, or an awaitable for async controllers."""


@dataclass(frozen=True)
class RetryPolicy:
    """Immutable retry configuration.

    Parameters
    ----------
    filter:
        Decides whether a request is resent.  **Required**; see
        :mod:`retryhook.retry.filters`.
    delay:
        Computes the wait in seconds before each resend.  Defaults to
        :func:`~retryhook.retry.delays.exponential_delay`.
    max_attempts:
        Maximum number of resends per logical request.  ``0`` disables
        retrying.
    waiter:
        Called as ``waiter(seconds, outcome)`` to perform the wait.  When
        ``None``, the controller sleeps in real time
        (:meth:`RetryContext.sleep` or ``asyncio.sleep``).  Async
        controllers await the return value when it is awaitable.
    metrics:
        Optional :class:`~retryhook.observability.MetricsHook` backend.

    Raises
    ------
    RetryConfigurationError
        When *filter* is missing, or any setting is invalid.
    """

    filter: Filter | None = None

    delay: DelayFn = exponential_delay

    max_attempts: int = 5

    waiter: Waiter | None = None

    metrics: Any | None = None

    def __post_init__(self) -> None:
        """Validate configuration after initialization."""
        if self.filter is None:
            raise RetryConfigurationError(
                'A "filter" is required',
                context={"field": "filter"},
            )
        if not callable(self.filter):
            raise RetryConfigurationError(
                f"filter must be callable, got {type(self.filter).__name__}",
                context={"field": "filter", "value": self.filter},
            )
        if not callable(self.delay):
            raise RetryConfigurationError(
                f"delay must be callable, got {type(self.delay).__name__}",
                context={"field": "delay", "value": self.delay},
            )
        if self.waiter is not None and not callable(self.waiter):
            raise RetryConfigurationError(
                f"waiter must be callable, got {type(self.waiter).__name__}",
                context={"field": "waiter", "value": self.waiter},
            )
        if isinstance(self.max_attempts, bool) or not isinstance(self.max_attempts, int):
            raise RetryConfigurationError(
                f"max_attempts must be an int, got {type(self.max_attempts).__name__}",
                context={"field": "max_attempts", "value": self.max_attempts},
            )
        if self.max_attempts < 0:
            raise RetryConfigurationError(
                f"max_attempts must be >= 0, got {self.max_attempts}",
                context={"field": "max_attempts", "value": self.max_attempts},
            )
