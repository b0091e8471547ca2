"""Backend identifiers and the registry resolving them."""

from finsys.core.backends.registry import (
    Backend,
    BackendFactory,
    BackendRegistry,
    SupportedBackend,
    parse_backend,
)

__all__ = [
    "Backend",
    "BackendFactory",
    "BackendRegistry",
    "SupportedBackend",
    "parse_backend",
]
