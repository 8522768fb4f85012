"""Metrics hook protocol and no-op default implementation.

The retry controller reports every attempt, every scheduled resend and the
way each logical request settled.  By default a :class:`NoopMetricsHook` is
used; pass any object satisfying :class:`MetricsHook` as
``RetryPolicy(metrics=...)`` to route the data points to StatsD, Prometheus
or similar.

Emitted metric names:

* ``retryhook.attempts_total``   -- counter, tag ``status``
* ``retryhook.retries_total``    -- counter, tag ``reason``
* ``retryhook.retry_delay_ms``   -- timing
* ``retryhook.settled_total``    -- counter, tag ``reason``
  (``accepted``, ``vetoed``, ``exhausted``)
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class MetricsHook(Protocol):
    """Protocol that any metrics backend must satisfy.

    All methods accept an optional *tags* dict of string keys and values.
    """

    def increment(
        self,
        name: str,
        value: int = 1,
        tags: dict[str, str] | None = None,
    ) -> None:
        """Increment a counter metric."""
        ...

    def timing(
        self,
        name: str,
        ms: float,
        tags: dict[str, str] | None = None,
    ) -> None:
        """Record a duration in milliseconds."""
        ...


class NoopMetricsHook:
    """Metrics backend that silently discards all data points."""

    __slots__ = ()

    def increment(
        self,
        name: str,
        value: int = 1,
        tags: dict[str, str] | None = None,
    ) -> None:
        pass

    def timing(
        self,
        name: str,
        ms: float,
        tags: dict[str, str] | None = None,
    ) -> None:
        pass
