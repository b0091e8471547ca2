from __future__ import annotations

import requests

HOME_URL = "https://finance.yahoo.com/"
CRUMB_URL = "https://query2.finance.yahoo.com/v1/test/getcrumb"

# Yahoo refuses the crumb endpoint to clients that do not look like a browser.
BROWSER_HEADERS = {
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*",
    "User-Agent": (
        "Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/113.0.0.0 Safari/537.36"
    ),
}


class CrumbError(RuntimeError):
    pass


def _browser_get(session: requests.Session, url: str, timeout: float | None) -> requests.Response:
    res = session.get(url, headers=BROWSER_HEADERS, timeout=timeout)
    if not 200 <= res.status_code < 300:
        raise CrumbError(f"GET {url} failed: {res.status_code}")
    return res


def get_crumb(
    session: requests.Session,
    timeout: float | None = None,
    home_url: str = HOME_URL,
    crumb_url: str = CRUMB_URL,
) -> str:
    """Fetch a Yahoo crumb using the session's cookie jar.

    The first request only primes the session cookies; its body is dropped.
    The second returns the crumb as the raw response text.

    Raises CrumbError on a non-2xx status or an empty crumb. Transport errors
    from requests propagate unchanged.
    """
    _browser_get(session, home_url, timeout).close()

    res = _browser_get(session, crumb_url, timeout)
    crumb = res.text
    if not crumb:
        raise CrumbError(f"GET {crumb_url} returned an empty crumb")
    return crumb


class CrumbStore:
    """Crumb cached for the lifetime of a client.

    An empty value means "not fetched yet". There is no lock: concurrent first
    callers may each run the handshake, and the last one to finish wins.
    """

    def __init__(self, value: str = ""):
        self.value = value

    def __bool__(self) -> bool:
        return bool(self.value)

    def set(self, value: str) -> None:
        self.value = value

    def clear(self) -> None:
        self.value = ""
