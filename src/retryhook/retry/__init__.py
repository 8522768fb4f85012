"""retryhook.retry -- the pieces a retry policy is built from.

* :mod:`.filters` -- filter-chain evaluation and built-in filters.
* :mod:`.delays` -- backoff strategies and the logging delay decorator.
* :mod:`.formatter` -- one-line message templates for retry logs.
"""

from __future__ import annotations

from .delays import (
    DelayFn,
    constant_delay,
    exponential_delay,
    jittered_backoff,
    logging_delay,
)
from .filters import (
    DEFAULT_RETRY_ERROR_CODES,
    DEFAULT_RETRY_STATUSES,
    IDEMPOTENT_METHODS,
    Filter,
    as_verdict,
    chain_filter,
    connect_filter,
    default_filter,
    evaluate_chain,
    idempotent_filter,
    status_filter,
    transport_error_filter,
)
from .formatter import DEFAULT_TEMPLATE, MessageFormatter

__all__ = [
    "DEFAULT_RETRY_ERROR_CODES",
    "DEFAULT_RETRY_STATUSES",
    "DEFAULT_TEMPLATE",
    "IDEMPOTENT_METHODS",
    "DelayFn",
    "Filter",
    "MessageFormatter",
    "as_verdict",
    "chain_filter",
    "connect_filter",
    "constant_delay",
    "default_filter",
    "evaluate_chain",
    "exponential_delay",
    "idempotent_filter",
    "jittered_backoff",
    "logging_delay",
    "status_filter",
    "transport_error_filter",
]
