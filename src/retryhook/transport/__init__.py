"""retryhook.transport -- httpx collaborators of the retry controllers.

* :mod:`.base` -- the ``Transport`` / ``AsyncTransport`` protocols.
* :mod:`.httpx_transport` -- adapters that turn httpx attempts into outcomes.
* :mod:`.retrying` -- httpx transports that retry transparently.
"""

from __future__ import annotations

from .base import AsyncTransport, Transport
from .httpx_transport import AsyncHttpxTransport, HttpxTransport
from .retrying import AsyncRetryTransport, RetryTransport

__all__ = [
    "AsyncHttpxTransport",
    "AsyncRetryTransport",
    "AsyncTransport",
    "HttpxTransport",
    "RetryTransport",
    "Transport",
]
