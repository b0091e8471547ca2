from __future__ import annotations

import dataclasses
import json
import re
import time
from collections.abc import Mapping, MutableMapping
from dataclasses import dataclass, field
from typing import Any
from urllib.parse import urlsplit

import requests
from requests.adapters import HTTPAdapter

from finsys.core.backends.registry import Backend, BackendRegistry, SupportedBackend, parse_backend
from finsys.core.utils.log import SILENT, LogSink, VerboseLogger
from finsys.data.auth import CRUMB_URL, HOME_URL, CrumbError, CrumbStore, get_crumb
from finsys.form import Values

YFIN_URL = "https://query2.finance.yahoo.com"
BATS_URL = ""
QUOTE_PATH = "/v7/finance/quote"
OPTIONS_PREFIX = "/v7/finance/options/"

DEFAULT_HTTP_TIMEOUT = 80.0

DEFAULT_BACKENDS: dict[SupportedBackend, dict[str, Any]] = {
    SupportedBackend.YAHOO: {"url": YFIN_URL, "crumb": True},
    SupportedBackend.BATS: {"url": BATS_URL, "crumb": False},
}

_METHOD_RE = re.compile(r"^[A-Za-z]+$")

SETTING_KEYS = frozenset({"url", "crumb", "timeout"})


class RequestBuildError(ValueError):
    pass


class UnknownBackendError(LookupError):
    pass


class RemoteError(Exception):
    """Upstream answered with an HTTP status >= 400."""

    def __init__(self, msg: str, status_code: int, body: str):
        super().__init__(msg)
        self.msg = msg
        self.status_code = status_code
        self.body = body

    def __str__(self) -> str:
        return f"status: {self.status_code}, detail: {self.msg}"


def _session_with_cookies(pool_maxsize: int = 10) -> requests.Session:
    sess = requests.Session()
    adapter = HTTPAdapter(pool_connections=pool_maxsize, pool_maxsize=pool_maxsize)
    sess.mount("http://", adapter)
    sess.mount("https://", adapter)
    return sess


def _decode(body: bytes, into: Any) -> Any:
    if into is None:
        # Nothing asked for a decode; hand back the payload only when it parses.
        try:
            return json.loads(body)
        except ValueError:
            return None

    payload = json.loads(body)
    if isinstance(into, MutableMapping):
        if not isinstance(payload, Mapping):
            raise TypeError(f"Cannot decode {type(payload).__name__} into a mapping")
        into.update(payload)
        return into
    if isinstance(into, type) and dataclasses.is_dataclass(into) and isinstance(payload, Mapping):
        return into(**payload)
    if callable(into):
        return into(payload)
    raise TypeError(f"Unsupported output destination: {type(into).__name__}")


@dataclass
class APIRequest:
    prepared: requests.PreparedRequest
    timeout: float


@dataclass(frozen=True)
class BackendConfiguration:
    """HTTP implementation of ``Backend`` for one base URL.

    ``crumbs`` and ``log`` are shared with the owning client, so every backend
    created by one client reuses the same crumb and logging settings.
    """

    backend: SupportedBackend
    url: str
    session: requests.Session
    requires_crumb: bool = False
    timeout: float = DEFAULT_HTTP_TIMEOUT
    crumbs: CrumbStore = field(default_factory=CrumbStore, compare=False)
    log: VerboseLogger = field(default_factory=VerboseLogger, compare=False)
    home_url: str = HOME_URL
    crumb_url: str = CRUMB_URL

    def call(
        self,
        path: str,
        params: Values | Mapping[str, Any] | None = None,
        *,
        timeout: float | None = None,
        into: Any = None,
    ) -> Any:
        """GET ``path`` with ``params`` and decode the JSON response.

        Args:
            path: Path relative to the backend URL, with or without a leading "/"
            params: Query parameters, appended URL-encoded when non-empty
            timeout: Per-call deadline in seconds; the backend default applies
                when omitted or looser
            into: Output destination. A mutable mapping is updated in place, a
                dataclass type is built from the payload's keys, any other
                callable receives the decoded payload. Without one nothing fails
                to decode: the payload is returned when the body is JSON, else None.

        Raises:
            RequestBuildError: The URL or method is malformed
            CrumbError: The crumb handshake failed
            requests.RequestException: Transport failure, timeout included
            RemoteError: HTTP status >= 400
            json.JSONDecodeError: A destination was given and the body is not JSON
        """
        query = params if isinstance(params, Values) else Values(params)
        if not query.empty():
            path += ("&" if "?" in path else "?") + query.encode()

        req = self.new_request("GET", path, timeout)
        return self.do(req, into)

    def new_request(self, method: str, path: str, timeout: float | None = None) -> APIRequest:
        """Build the request for ``path`` bound to the effective timeout."""
        if not path.startswith("/"):
            path = "/" + path
        url = self.url + path

        try:
            if not _METHOD_RE.match(method or ""):
                raise ValueError(f"Invalid HTTP method: {method!r}")
            prepared = self.session.prepare_request(requests.Request(method, url))
        except (requests.exceptions.RequestException, ValueError) as e:
            self.log.error("Cannot create api request: %s", e)
            raise RequestBuildError(f"Cannot create api request: {e}") from e

        effective = self.timeout if timeout is None else min(timeout, self.timeout)
        return APIRequest(prepared=prepared, timeout=effective)

    def do(self, request: APIRequest, into: Any = None) -> Any:
        """Execute ``request`` and decode its body into ``into``."""
        prepared = request.prepared
        parts = urlsplit(prepared.url)
        self.log.info("Requesting %s %s%s", prepared.method, parts.netloc, parts.path)

        if self.requires_crumb:
            self._ensure_crumb(request.timeout)
            prepared.prepare_url(prepared.url, {"crumb": self.crumbs.value})
            # The handshake may have primed the jar after the request was built.
            prepared.headers.pop("Cookie", None)
            prepared.prepare_cookies(self.session.cookies)

        start = time.monotonic()

        settings = self.session.merge_environment_settings(prepared.url, {}, None, None, None)
        try:
            res = self.session.send(prepared, timeout=request.timeout, **settings)
        except requests.exceptions.RequestException as e:
            self.log.error("Request to api failed: %s", e)
            raise
        finally:
            self.log.debug("Completed in %.3fs", time.monotonic() - start)

        with res:
            body = res.content

        if res.status_code >= 400:
            self.log.error("API error: %r", body)
            if res.status_code == 401 and self.requires_crumb:
                self.log.info("Dropping cached crumb after 401")
                self.crumbs.clear()
            raise RemoteError(
                "error response received from upstream api",
                status_code=res.status_code,
                body=res.text,
            )

        self.log.debug("API response: %r", body)
        return _decode(body, into)

    def _ensure_crumb(self, timeout: float | None) -> None:
        if self.crumbs:
            return
        try:
            crumb = get_crumb(self.session, timeout, self.home_url, self.crumb_url)
        except (CrumbError, requests.exceptions.RequestException) as e:
            self.log.error("Cannot fetch crumb: %s", e)
            raise CrumbError(f"get yahoo crumb err: {e}") from e
        self.crumbs.set(crumb)


class FinanceClient:
    """Entry point holding the session, crumb, logging and backend registry.

    Examples:
        >>> client = FinanceClient(log_level=2)
        >>> data = client.call("yahoo", QUOTE_PATH, {"symbols": "AAPL"})
        >>> data["quoteResponse"]["result"][0]["symbol"]
        'AAPL'
    """

    def __init__(
        self,
        session: requests.Session | None = None,
        *,
        timeout: float = DEFAULT_HTTP_TIMEOUT,
        log_level: int = SILENT,
        logger: LogSink | None = None,
        urls: Mapping[str, str] | None = None,
        backend_settings: Mapping[str, Mapping[str, Any]] | None = None,
        home_url: str = HOME_URL,
        crumb_url: str = CRUMB_URL,
    ):
        self.session = session or _session_with_cookies()
        self.timeout = timeout
        self.log = VerboseLogger(logger, log_level)
        self.crumbs = CrumbStore()
        self.urls = dict(urls or {})
        self.backend_settings = {k: dict(v) for k, v in (backend_settings or {}).items()}
        self._check_settings()
        self.home_url = home_url
        self.crumb_url = crumb_url
        self.registry = BackendRegistry(self._create_backend)

    def _check_settings(self) -> None:
        for name in list(self.urls) + list(self.backend_settings):
            if parse_backend(name) is None:
                raise ValueError(f"Unsupported backend: {name!r}")
        for name, settings in self.backend_settings.items():
            unknown = set(settings) - SETTING_KEYS
            if unknown:
                raise ValueError(f"Unknown settings for backend '{name}': {', '.join(sorted(unknown))}")

    def _settings_for(self, backend: SupportedBackend) -> dict[str, Any]:
        settings = dict(DEFAULT_BACKENDS[backend])
        settings.update(self.backend_settings.get(backend.value, {}))
        if backend.value in self.urls:
            settings["url"] = self.urls[backend.value]
        return settings

    def _create_backend(
        self, backend: SupportedBackend, session: requests.Session | None = None
    ) -> BackendConfiguration:
        settings = self._settings_for(backend)
        return BackendConfiguration(
            backend=backend,
            url=settings["url"],
            session=session or self.session,
            requires_crumb=bool(settings.get("crumb", False)),
            timeout=float(settings.get("timeout", self.timeout)),
            crumbs=self.crumbs,
            log=self.log,
            home_url=self.home_url,
            crumb_url=self.crumb_url,
        )

    def new_backends(
        self, session: requests.Session | None = None
    ) -> dict[SupportedBackend, BackendConfiguration]:
        """Create a fresh configuration per supported backend, bypassing the registry.

        Mostly useful in tests, together with ``set_backend``.
        """
        return {backend: self._create_backend(backend, session) for backend in SupportedBackend}

    def get_backend(self, backend: SupportedBackend | str) -> Backend | None:
        return self.registry.resolve(backend)

    def set_backend(self, backend: SupportedBackend | str, impl: Backend) -> None:
        self.registry.override(backend, impl)

    def set_session(self, session: requests.Session) -> None:
        """Use ``session`` for backends created from now on.

        Backends already resolved keep their session; call ``registry.clear()``
        to rebuild them.
        """
        self.session = session

    def set_logger(self, logger: LogSink) -> None:
        self.log.sink = logger

    def set_log_level(self, level: int) -> None:
        self.log.level = level

    def invalidate_crumb(self) -> None:
        """Forget the cached crumb; the next call repeats the handshake."""
        self.crumbs.clear()

    def call(
        self,
        backend: SupportedBackend | str,
        path: str,
        params: Values | Mapping[str, Any] | None = None,
        *,
        timeout: float | None = None,
        into: Any = None,
    ) -> Any:
        impl = self.registry.resolve(backend)
        if impl is None:
            raise UnknownBackendError(f"Unsupported backend: {backend!r}")
        return impl.call(path, params, timeout=timeout, into=into)

    def close(self) -> None:
        self.session.close()

    def __enter__(self) -> FinanceClient:
        return self

    def __exit__(self, *exc: Any) -> None:
        self.close()


__all__ = [
    "APIRequest",
    "BackendConfiguration",
    "FinanceClient",
    "RemoteError",
    "RequestBuildError",
    "UnknownBackendError",
    "DEFAULT_HTTP_TIMEOUT",
    "YFIN_URL",
    "BATS_URL",
    "QUOTE_PATH",
    "OPTIONS_PREFIX",
]
