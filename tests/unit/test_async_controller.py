"""Unit tests for AsyncRetryController.

Mirrors test_controller.py for the async code path and adds task
cancellation and concurrent-coroutine isolation.
"""
from __future__ import annotations

import asyncio
from typing import Any
from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest

from retryhook.config import RetryPolicy
from retryhook.controller import AsyncRetryController
from retryhook.errors import RetryCancelledError, RetryConfigurationError, RetryStrategyError
from retryhook.models import Outcome, RetryContext, TransportErrorCode
from retryhook.retry.filters import status_filter

_URL = "https://api.example.com/items"


def make_outcome(status: int, request: httpx.Request | None = None) -> Outcome:
    request = request or httpx.Request("GET", _URL)
    return Outcome.completed(request, httpx.Response(status, request=request))


class AsyncScriptedTransport:
    """Async transport returning (or raising) scripted results in order."""

    def __init__(self, results: list[Any], latency: float = 0.0) -> None:
        self._results = list(results)
        self._latency = latency
        self.sent: list[httpx.Request] = []

    async def send(self, request: httpx.Request) -> Outcome:
        self.sent.append(request)
        if self._latency:
            await asyncio.sleep(self._latency)
        result = self._results.pop(0)
        if isinstance(result, BaseException):
            raise result
        return make_outcome(result, request)


async def no_wait(seconds: float, outcome: Outcome) -> None:
    pass


def make_controller(**overrides: Any) -> AsyncRetryController:
    defaults: dict[str, Any] = dict(filter=status_filter(), waiter=no_wait)
    defaults.update(overrides)
    return AsyncRetryController(RetryPolicy(**defaults))


class TestAsyncConstruction:
    def test_missing_filter_fails_immediately(self):
        with pytest.raises(RetryConfigurationError):
            AsyncRetryController(RetryPolicy())

    def test_missing_policy_fails_immediately(self):
        with pytest.raises(RetryConfigurationError):
            AsyncRetryController(None)


class TestAsyncHandle:
    async def test_success_returned_without_resend(self):
        transport = AsyncScriptedTransport([])
        first = make_outcome(200)
        assert await make_controller().handle(first, transport) is first
        assert transport.sent == []

    async def test_retry_until_success(self):
        transport = AsyncScriptedTransport([500, 200])
        final = await make_controller().handle(make_outcome(503), transport)
        assert final.status_code == 200
        assert len(transport.sent) == 2

    async def test_exhaustion_after_max(self):
        calls = MagicMock(return_value=True)
        transport = AsyncScriptedTransport([500, 500])
        context = RetryContext()
        final = await make_controller(filter=calls, max_attempts=2).handle(
            make_outcome(500), transport, context,
        )
        assert calls.call_count == 2
        assert len(transport.sent) == 2
        assert final.status_code == 500
        assert context.attempts == 2

    async def test_send_issues_first_attempt(self):
        transport = AsyncScriptedTransport([500, 200])
        request = httpx.Request("GET", _URL)
        final = await make_controller().send(request, transport)
        assert final.status_code == 200
        assert transport.sent == [request, request]

    async def test_raised_transport_error_becomes_outcome(self):
        transport = AsyncScriptedTransport([httpx.ReadTimeout("slow")])
        final = await make_controller(max_attempts=1).handle(make_outcome(500), transport)
        assert final.error_code is TransportErrorCode.READ_TIMEOUT


class TestAsyncWaiter:
    async def test_async_waiter_is_awaited(self):
        waiter = AsyncMock()
        first = make_outcome(500)
        await make_controller(waiter=waiter, delay=lambda n, o: 2).handle(
            first, AsyncScriptedTransport([200]),
        )
        waiter.assert_awaited_once_with(2, first)

    async def test_sync_waiter_is_called(self):
        waited: list[float] = []
        await make_controller(waiter=lambda s, o: waited.append(s)).handle(
            make_outcome(500), AsyncScriptedTransport([200]),
        )
        assert waited == [0]

    async def test_default_waiter_uses_asyncio_sleep(self):
        controller = AsyncRetryController(
            RetryPolicy(filter=status_filter(), delay=lambda n, o: 1.5),
        )
        with patch("retryhook.controller.asyncio.sleep", new=AsyncMock()) as sleep:
            await controller.handle(make_outcome(500), AsyncScriptedTransport([200]))
        sleep.assert_awaited_once_with(1.5)

    async def test_waiter_fault_is_strategy_error(self):
        async def broken(seconds, outcome):
            raise RuntimeError("no timer")

        transport = AsyncScriptedTransport([200])
        with pytest.raises(RetryStrategyError) as exc_info:
            await make_controller(waiter=broken).handle(make_outcome(500), transport)
        assert exc_info.value.context["stage"] == "wait"
        assert transport.sent == []

    async def test_delay_fault_is_strategy_error(self):
        def broken(attempts, outcome):
            raise ValueError("negative")

        with pytest.raises(RetryStrategyError) as exc_info:
            await make_controller(delay=broken).handle(
                make_outcome(500), AsyncScriptedTransport([200]),
            )
        assert exc_info.value.context["stage"] == "delay"

    async def test_none_delay_is_strategy_error(self):
        transport = AsyncScriptedTransport([200])
        with pytest.raises(RetryStrategyError) as exc_info:
            await make_controller(delay=lambda n, o: None).handle(make_outcome(500), transport)
        assert isinstance(exc_info.value.__cause__, TypeError)
        assert transport.sent == []

    async def test_truthy_filter_result_retries(self):
        transport = AsyncScriptedTransport([200])
        final = await make_controller(filter=lambda n, o: o.status_code).handle(
            make_outcome(500), transport,
        )
        assert final.status_code == 200


class TestAsyncCancellation:
    async def test_task_cancel_during_wait_stops_retries(self):
        transport = AsyncScriptedTransport([200])
        controller = AsyncRetryController(
            RetryPolicy(filter=status_filter(), delay=lambda n, o: 30),
        )
        task = asyncio.create_task(controller.handle(make_outcome(500), transport))
        await asyncio.sleep(0.01)
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task
        assert transport.sent == []

    async def test_task_cancel_during_resend_stops_retries(self):
        transport = AsyncScriptedTransport([500, 500, 500], latency=30)
        task = asyncio.create_task(make_controller().handle(make_outcome(500), transport))
        await asyncio.sleep(0.01)
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task
        assert len(transport.sent) == 1

    async def test_context_cancel_during_wait(self):
        context = RetryContext()

        async def cancelling(seconds, outcome):
            context.cancel()

        transport = AsyncScriptedTransport([200])
        with pytest.raises(RetryCancelledError):
            await make_controller(waiter=cancelling).handle(make_outcome(500), transport, context)
        assert transport.sent == []


class TestAsyncConcurrency:
    async def test_concurrent_requests_are_isolated(self):
        controller = make_controller(filter=lambda n, o: True, max_attempts=3)

        async def one_request() -> int:
            context = RetryContext()
            transport = AsyncScriptedTransport([500, 500, 500], latency=0.001)
            await controller.handle(make_outcome(500), transport, context)
            return context.attempts

        results = await asyncio.gather(*[one_request() for _ in range(25)])
        assert results == [3] * 25
