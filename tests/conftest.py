"""
Shared pytest fixtures for the Brinqa client tests.

HTTP is never touched: ``FakeBrinqa`` replaces the ``requests.Session`` with a
MagicMock whose ``post`` routes each URL path to a queue of prepared
``requests.Response`` objects (or exceptions) and records every call.  Time
comes from ``FakeClock`` so expiry can be stepped deterministically.
"""

from __future__ import annotations

import json
from collections import defaultdict
from unittest.mock import MagicMock

import pytest
import requests

from core.client import BrinqaClient
from core.config import GRAPHQL_PATH, INGEST_PATH, LOGIN_PATH, Settings

BASE_URL = "https://brinqa.test"

_REASONS = {
    200: "OK",
    204: "No Content",
    400: "Bad Request",
    401: "Unauthorized",
    403: "Forbidden",
    500: "Internal Server Error",
    502: "Bad Gateway",
}


# ---------------------------------------------------------------------------
# Response builders
# ---------------------------------------------------------------------------

def make_response(status: int = 200, body=None, *, text: str | None = None,
                  path: str = GRAPHQL_PATH) -> requests.Response:
    """Build a real ``requests.Response`` so ``raise_for_status`` behaves."""
    response = requests.Response()
    response.status_code = status
    response.reason = _REASONS.get(status, "")
    response.url = BASE_URL + path
    response.encoding = "utf-8"
    if text is not None:
        response._content = text.encode("utf-8")
    elif body is not None:
        response._content = json.dumps(body).encode("utf-8")
    else:
        response._content = b""
    return response


def login_ok(token: str = "token-1", expires_in: int = 3600) -> requests.Response:
    return make_response(
        200,
        {"access_token": token, "token_type": "Bearer", "expires_in": expires_in},
        path=LOGIN_PATH,
    )


def graphql_ok(data=None) -> requests.Response:
    return make_response(200, {"data": data if data is not None else {"ok": True}})


def unauthorized(path: str = GRAPHQL_PATH) -> requests.Response:
    return make_response(401, {"message": "Token expired"}, path=path)


# ---------------------------------------------------------------------------
# Fakes
# ---------------------------------------------------------------------------

class FakeClock:
    """Callable clock returning a controllable epoch time in seconds."""

    def __init__(self, now: float = 1_700_000_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeBrinqa:
    """Routes POSTs by URL path to queued responses and records the calls."""

    def __init__(self):
        self._queues: dict[str, list] = defaultdict(list)
        self.http = MagicMock(spec=requests.Session)
        self.http.post.side_effect = self._post

    def queue(self, path: str, *responses) -> None:
        self._queues[path].extend(responses)

    def _post(self, url, json=None, headers=None, timeout=None):  # noqa: A002
        assert url.startswith(BASE_URL), url
        path = url[len(BASE_URL):]
        pending = self._queues[path]
        if not pending:
            raise AssertionError(f"unexpected POST to {path}")
        item = pending.pop(0)
        if isinstance(item, Exception):
            raise item
        return item

    def calls(self, path: str) -> list:
        return [c for c in self.http.post.call_args_list if c.args[0] == BASE_URL + path]

    def login_calls(self) -> list:
        return self.calls(LOGIN_PATH)

    def graphql_calls(self) -> list:
        return self.calls(GRAPHQL_PATH)

    def ingest_calls(self) -> list:
        return self.calls(INGEST_PATH)


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def brinqa():
    return FakeBrinqa()


@pytest.fixture
def password_settings():
    return Settings(api_url=BASE_URL, username="analyst", password="s3cret")


@pytest.fixture
def api_key_settings():
    return Settings(api_url=BASE_URL, api_key="key-123")


@pytest.fixture
def password_client(password_settings, brinqa, clock):
    return BrinqaClient(password_settings, http=brinqa.http, clock=clock)


@pytest.fixture
def api_key_client(api_key_settings, brinqa, clock):
    return BrinqaClient(api_key_settings, http=brinqa.http, clock=clock)
