"""Shared pytest fixtures and configuration."""

from __future__ import annotations

import json
from typing import Any

import httpx
import pytest
from starlette.requests import Request

from edge_rollbar import Rollbar
from edge_rollbar.constants import ROLLBAR_API_URL


@pytest.fixture
def access_token() -> str:
    """Return test access token."""
    return "test-token"


@pytest.fixture
def collector_url() -> str:
    """Return the collector endpoint."""
    return ROLLBAR_API_URL


@pytest.fixture
def rollbar(access_token: str) -> Rollbar:
    """Return a client with default configuration."""
    return Rollbar(access_token=access_token)


@pytest.fixture
def accepted() -> httpx.Response:
    """Return an acknowledgement for an accepted item."""
    return httpx.Response(200, json={"err": 0, "result": {"uuid": "test-uuid"}})


def sent_payload(route: Any, index: int = 0) -> dict[str, Any]:
    """Decode the JSON body of a recorded call to a respx route."""
    return json.loads(route.calls[index].request.content)


def make_request(
    url: str = "https://example.com/api/test?foo=bar",
    method: str = "POST",
    headers: dict[str, str] | None = None,
    client: tuple[str, int] | None = ("203.0.113.9", 50123),
) -> Request:
    """Build a Starlette request without running an app."""
    parsed = httpx.URL(url)
    raw_headers = [(b"host", parsed.host.encode())]
    for name, value in (headers or {}).items():
        raw_headers.append((name.lower().encode(), value.encode()))

    scope = {
        "type": "http",
        "http_version": "1.1",
        "method": method,
        "scheme": parsed.scheme,
        "server": (parsed.host, parsed.port or 443),
        "path": parsed.path,
        "root_path": "",
        "query_string": parsed.query,
        "headers": raw_headers,
        "client": client,
    }
    return Request(scope)
