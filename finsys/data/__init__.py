"""Session authentication for the Yahoo backend."""

from finsys.data.auth import (
    BROWSER_HEADERS,
    CRUMB_URL,
    HOME_URL,
    CrumbError,
    CrumbStore,
    get_crumb,
)

__all__ = ["BROWSER_HEADERS", "CRUMB_URL", "HOME_URL", "CrumbError", "CrumbStore", "get_crumb"]
