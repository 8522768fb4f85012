"""Template-based one-line summaries of an attempt.

:class:`MessageFormatter` renders ``{placeholder}`` templates against a
request, an optional response, an optional error and a mapping of extra
values (retry count, delay, transfer timings).

Supported placeholders:

* ``{ts}`` -- ISO-8601 UTC timestamp
* ``{method}``, ``{url}``, ``{host}``, ``{target}``, ``{version}``
* ``{code}``, ``{phrase}`` -- response status code and reason phrase
* ``{error}`` -- the error message
* ``{req_header_<name>}``, ``{res_header_<name>}``
* any key of the *extra* mapping, e.g. ``{retries}``, ``{delay}``,
  ``{total_time}``

Placeholders without a value render as an empty string.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from datetime import datetime, timezone
from typing import Any

import httpx

DEFAULT_TEMPLATE = (
    "[{ts}] {method} {url} - {code} {phrase} - Retries: {retries}, "
    "Delay: {delay}, Time: {connect_time}, {total_time}, Error: {error}"
)

_PLACEHOLDER_RE = re.compile(r"\{([A-Za-z0-9_\-]+)\}")


class MessageFormatter:
    """Render log lines from a ``{placeholder}`` template."""

    __slots__ = ("template",)

    def __init__(self, template: str = DEFAULT_TEMPLATE) -> None:
        self.template = template

    def format(
        self,
        request: httpx.Request,
        response: httpx.Response | None = None,
        error: BaseException | None = None,
        extra: Mapping[str, Any] | None = None,
    ) -> str:
        values = extra or {}

        def _replace(match: re.Match[str]) -> str:
            key = match.group(1)
            if key in values:
                value = values[key]
                return "" if value is None else str(value)
            return self._builtin(key, request, response, error)

        return _PLACEHOLDER_RE.sub(_replace, self.template)

    @staticmethod
    def _builtin(
        key: str,
        request: httpx.Request,
        response: httpx.Response | None,
        error: BaseException | None,
    ) -> str:
        if key == "ts":
            return datetime.now(timezone.utc).isoformat()
        if key == "method":
            return request.method
        if key == "url":
            return str(request.url)
        if key == "host":
            return request.url.host
        if key == "target":
            return request.url.raw_path.decode("ascii")
        if key == "version":
            return response.http_version if response is not None else ""
        if key == "code":
            return str(response.status_code) if response is not None else ""
        if key == "phrase":
            return response.reason_phrase if response is not None else ""
        if key == "error":
            return str(error) if error is not None else ""
        if key.startswith("req_header_"):
            return request.headers.get(key[len("req_header_"):], "")
        if key.startswith("res_header_") and response is not None:
            return response.headers.get(key[len("res_header_"):], "")
        return ""

    def __repr__(self) -> str:
        return f"MessageFormatter(template={self.template!r})"
