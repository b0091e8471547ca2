from __future__ import annotations

import pytest
import requests

from finsys.data.auth import (
    BROWSER_HEADERS,
    CRUMB_URL,
    HOME_URL,
    CrumbError,
    CrumbStore,
    get_crumb,
)


class TestGetCrumb:
    def test_two_step_handshake(self, session, handshake):
        crumb = get_crumb(session, timeout=7)

        assert crumb == "abc.Crumb/1"
        assert [r.url for r in handshake.requests] == [HOME_URL, CRUMB_URL]
        assert all(kw["timeout"] == 7 for kw in handshake.send_kwargs)

    def test_cookies_primed_before_crumb_request(self, session, handshake):
        get_crumb(session)

        crumb_request = handshake.requests[1]
        assert crumb_request.headers["Cookie"] == "A3=session-cookie"
        assert session.cookies.get("A3") == "session-cookie"

    def test_browser_headers_sent(self, session, handshake):
        get_crumb(session)

        for req in handshake.requests:
            assert req.headers["Accept"] == BROWSER_HEADERS["Accept"]
            assert req.headers["User-Agent"].startswith("Mozilla/5.0 (X11; Linux x86_64)")

    def test_custom_urls(self, session, stub):
        stub.add("https://home.test/", 200, "")
        stub.add("https://crumb.test/getcrumb", 200, "xyz")

        crumb = get_crumb(session, home_url="https://home.test/", crumb_url="https://crumb.test/getcrumb")

        assert crumb == "xyz"

    def test_home_page_failure(self, session, stub):
        stub.add(HOME_URL, 503, "unavailable")

        with pytest.raises(CrumbError, match="503"):
            get_crumb(session)

        assert stub.count(CRUMB_URL) == 0

    def test_crumb_endpoint_failure(self, session, stub):
        stub.add(HOME_URL, 200, "")
        stub.add(CRUMB_URL, 401, "Unauthorized")

        with pytest.raises(CrumbError, match="401"):
            get_crumb(session)

    def test_empty_crumb_rejected(self, session, stub):
        stub.add(HOME_URL, 200, "")
        stub.add(CRUMB_URL, 200, "")

        with pytest.raises(CrumbError, match="empty crumb"):
            get_crumb(session)

    def test_transport_error_propagates(self, session, stub):
        stub.fail(HOME_URL, requests.ConnectionError("refused"))

        with pytest.raises(requests.ConnectionError, match="refused"):
            get_crumb(session)


class TestCrumbStore:
    def test_starts_empty(self):
        store = CrumbStore()

        assert not store
        assert store.value == ""

    def test_set_and_clear(self):
        store = CrumbStore()

        store.set("abc")
        assert store
        assert store.value == "abc"

        store.clear()
        assert not store
