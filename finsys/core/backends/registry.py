"""Registry resolving backend identifiers to lazily created backends."""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from enum import Enum
from typing import Any, Protocol

logger = logging.getLogger(__name__)


class SupportedBackend(str, Enum):
    """Enumeration of supported api endpoints."""

    YAHOO = "yahoo"
    BATS = "bats"


class Backend(Protocol):
    """Anything able to execute a call against an api service.

    Exists so a test double can be registered in place of the HTTP backend.
    """

    def call(
        self,
        path: str,
        params: Any = None,
        *,
        timeout: float | None = None,
        into: Any = None,
    ) -> Any: ...


BackendFactory = Callable[[SupportedBackend], Backend]


def parse_backend(identifier: SupportedBackend | str) -> SupportedBackend | None:
    """Return the enum member for ``identifier``, or None if it is not supported."""
    if isinstance(identifier, SupportedBackend):
        return identifier
    try:
        return SupportedBackend(identifier)
    except ValueError:
        return None


class BackendRegistry:
    """Get-or-create cache of backends, one per identifier.

    Lookups that hit skip the lock entirely; misses take the lock and check
    again before building, so concurrent first callers share one instance.

    Examples:
        >>> registry = BackendRegistry(factory)
        >>> backend = registry.resolve(SupportedBackend.YAHOO)
        >>> registry.resolve("nope") is None
        True
    """

    def __init__(self, factory: BackendFactory):
        self._factory = factory
        self._backends: dict[SupportedBackend, Backend] = {}
        self._lock = threading.Lock()

    def resolve(self, identifier: SupportedBackend | str) -> Backend | None:
        """Return the backend for ``identifier``, creating it on first access.

        Returns None for identifiers that are not supported.
        """
        key = parse_backend(identifier)
        if key is None:
            return None

        backend = self._backends.get(key)
        if backend is not None:
            return backend

        with self._lock:
            backend = self._backends.get(key)
            if backend is None:
                backend = self._factory(key)
                self._backends[key] = backend
                logger.debug(f"Created backend for '{key.value}'")
            return backend

    def override(self, identifier: SupportedBackend | str, backend: Backend) -> None:
        """Replace the backend for ``identifier`` unconditionally.

        Last writer wins; callers racing this against ``resolve`` must
        synchronize themselves.
        """
        key = parse_backend(identifier)
        if key is None:
            raise ValueError(f"Unsupported backend: {identifier!r}")
        self._backends[key] = backend

    def clear(self) -> None:
        """Drop every cached backend so the next resolve rebuilds it."""
        with self._lock:
            self._backends.clear()

    def __contains__(self, identifier: object) -> bool:
        if not isinstance(identifier, (SupportedBackend, str)):
            return False
        key = parse_backend(identifier)
        return key is not None and key in self._backends
