"""Error hierarchy for retryhook.

Every public error class inherits from :class:`RetryhookError`.  Each
carries a machine-readable ``code`` (from :class:`ErrorCode`), a
human-readable ``message``, an optional structured ``context`` dict, and an
optional ``cause`` (chained exception).

Transport failures are *not* errors of this package: they are delivered to
the caller as a failed :class:`~retryhook.models.Outcome`.  The classes
below cover misconfiguration and faults inside the retry machinery itself.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

# ---------------------------------------------------------------------------
# Error code enum
# ---------------------------------------------------------------------------

class ErrorCode(str, Enum):
    """Machine-readable error codes for every error the engine can raise."""

    CONFIGURATION_ERROR = "CONFIGURATION_ERROR"
    STRATEGY_ERROR = "STRATEGY_ERROR"
    CANCELLED = "CANCELLED"


# ---------------------------------------------------------------------------
# Base error
# ---------------------------------------------------------------------------

class RetryhookError(Exception):
    """Base exception for all retryhook errors.

    Parameters
    ----------
    code:
        A value from :class:`ErrorCode` (or any string) identifying the
        error category.
    message:
        A developer-friendly description of what went wrong.
    context:
        Arbitrary structured data providing extra diagnostic detail.
    cause:
        The underlying exception, if this error wraps another.
    """

    def __init__(
        self,
        code: str,
        message: str,
        context: dict[str, Any] | None = None,
        cause: BaseException | None = None,
    ) -> None:
        self.code: str = code
        self.message: str = message
        self.context: dict[str, Any] = context or {}
        self.cause: BaseException | None = cause
        super().__init__(message)
        if cause is not None:
            self.__cause__ = cause

    def __repr__(self) -> str:
        ctx = f", context={self.context!r}" if self.context else ""
        return f"{type(self).__name__}(code={self.code!r}, message={self.message!r}{ctx})"


# ---------------------------------------------------------------------------
# Concrete errors
# ---------------------------------------------------------------------------

class RetryConfigurationError(RetryhookError):
    """A retry policy was built with missing or invalid settings.

    Raised at construction time, before any request is processed.

    Context keys: ``field``, ``value``.
    """

    def __init__(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        cause: BaseException | None = None,
    ) -> None:
        super().__init__(
            code=ErrorCode.CONFIGURATION_ERROR,
            message=message,
            context=context,
            cause=cause,
        )


class RetryStrategyError(RetryhookError):
    """The delay strategy or the waiter raised while scheduling a resend.

    These faults are never retried.

    Context keys: ``stage`` (``"delay"`` or ``"wait"``), ``attempt``,
    ``method``, ``url``.
    """

    def __init__(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        cause: BaseException | None = None,
    ) -> None:
        super().__init__(
            code=ErrorCode.STRATEGY_ERROR,
            message=message,
            context=context,
            cause=cause,
        )


class RetryCancelledError(RetryhookError):
    """The logical request was cancelled while a retry was pending.

    Context keys: ``attempt``, ``method``, ``url``.
    """

    def __init__(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        cause: BaseException | None = None,
    ) -> None:
        super().__init__(
            code=ErrorCode.CANCELLED,
            message=message,
            context=context,
            cause=cause,
        )
