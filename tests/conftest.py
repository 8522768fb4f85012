"""Shared test fixtures for the retryhook test suite."""

from __future__ import annotations

import httpx
import pytest

from retryhook.models import Outcome


@pytest.fixture
def get_request() -> httpx.Request:
    """A plain idempotent request."""
    return httpx.Request("GET", "https://api.example.com/items")


@pytest.fixture
def server_error(get_request: httpx.Request) -> Outcome:
    """A completed outcome carrying a 500 response."""
    return Outcome.completed(get_request, httpx.Response(500, request=get_request))


@pytest.fixture
def connect_failure(get_request: httpx.Request) -> Outcome:
    """A failed outcome: the connection could not be established."""
    return Outcome.failed(get_request, httpx.ConnectError("connection refused"))
