from __future__ import annotations

import io
from typing import Any

import pytest
import requests

from finsys import FinanceClient
from finsys.data.auth import CRUMB_URL, HOME_URL


def make_response(
    request: requests.PreparedRequest, status: int, body: bytes | str, encoding: str = "utf-8"
) -> requests.Response:
    if isinstance(body, str):
        body = body.encode("utf-8")
    res = requests.Response()
    res.status_code = status
    res._content = body
    res._content_consumed = True
    res.raw = io.BytesIO(body)
    res.encoding = encoding
    res.url = request.url
    res.request = request
    return res


class StubTransport:
    """Stand-in for ``Session.send`` answering from a URL table.

    Each URL (query string ignored) maps to a queue of outcomes; the last
    outcome repeats once the queue is down to one entry.
    """

    def __init__(self) -> None:
        self.session: requests.Session | None = None
        self.routes: dict[str, list[Any]] = {}
        self.requests: list[requests.PreparedRequest] = []
        self.send_kwargs: list[dict[str, Any]] = []

    def add(
        self,
        url: str,
        status: int = 200,
        body: bytes | str = b"",
        cookies: dict[str, str] | None = None,
        encoding: str = "utf-8",
    ) -> StubTransport:
        self.routes.setdefault(url, []).append((status, body, cookies, encoding))
        return self

    def fail(self, url: str, exc: Exception) -> StubTransport:
        self.routes.setdefault(url, []).append(exc)
        return self

    def count(self, url: str) -> int:
        return sum(1 for r in self.requests if r.url.split("?")[0] == url)

    def __call__(self, request: requests.PreparedRequest, **kwargs: Any) -> requests.Response:
        self.requests.append(request)
        self.send_kwargs.append(kwargs)

        key = request.url.split("?")[0]
        if key not in self.routes:
            raise AssertionError(f"Unexpected request to {key}")
        queue = self.routes[key]
        outcome = queue.pop(0) if len(queue) > 1 else queue[0]

        if isinstance(outcome, Exception):
            raise outcome
        status, body, cookies, encoding = outcome
        if cookies and self.session is not None:
            for name, value in cookies.items():
                self.session.cookies.set(name, value, domain=".yahoo.com", path="/")
        return make_response(request, status, body, encoding)


@pytest.fixture
def stub():
    return StubTransport()


@pytest.fixture
def session(stub, monkeypatch):
    sess = requests.Session()
    monkeypatch.setattr(sess, "send", stub)
    stub.session = sess
    return sess


@pytest.fixture
def client(session):
    return FinanceClient(session)


@pytest.fixture
def handshake(stub):
    """Prime the stub with a successful two-step crumb handshake."""
    stub.add(HOME_URL, 200, "<html></html>", cookies={"A3": "session-cookie"})
    stub.add(CRUMB_URL, 200, "abc.Crumb/1")
    return stub
