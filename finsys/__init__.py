"""Thin Yahoo Finance request pipeline.

This package provides:
- A client resolving named backends to a base URL and shared HTTP session
- The crumb handshake Yahoo requires before answering quote/option queries
- Structured errors for upstream failures, decoded JSON for successes
"""

from finsys.client import (
    BATS_URL,
    DEFAULT_HTTP_TIMEOUT,
    OPTIONS_PREFIX,
    QUOTE_PATH,
    YFIN_URL,
    APIRequest,
    BackendConfiguration,
    FinanceClient,
    RemoteError,
    RequestBuildError,
    UnknownBackendError,
)
from finsys.core.backends import Backend, BackendRegistry, SupportedBackend
from finsys.data.auth import CrumbError
from finsys.form import Values

__all__ = [
    "APIRequest",
    "Backend",
    "BackendConfiguration",
    "BackendRegistry",
    "CrumbError",
    "FinanceClient",
    "RemoteError",
    "RequestBuildError",
    "SupportedBackend",
    "UnknownBackendError",
    "Values",
    "BATS_URL",
    "DEFAULT_HTTP_TIMEOUT",
    "OPTIONS_PREFIX",
    "QUOTE_PATH",
    "YFIN_URL",
]
