"""Transport protocols consumed by the retry controllers."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

import httpx

from retryhook.models import Outcome


@runtime_checkable
class Transport(Protocol):
    """Anything that can (re)send a request and report its outcome."""

    def send(self, request: httpx.Request) -> Outcome:
        """Send *request* once and return the outcome of that attempt.

        Transport failures should be reported as a failed
        :class:`~retryhook.models.Outcome`; an exception raised here is
        turned into one by the controller.
        """
        ...


@runtime_checkable
class AsyncTransport(Protocol):
    """Async counterpart of :class:`Transport`."""

    async def send(self, request: httpx.Request) -> Outcome:
        """Send *request* once and return the outcome of that attempt."""
        ...
