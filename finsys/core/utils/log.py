"""Verbosity-gated logging sink used by the request pipeline.

Levels:
    0: no logging
    1: errors only
    2: errors + informational
    3: errors + informational + debug (raw response bodies)
"""

from __future__ import annotations

import logging
from typing import Any, Protocol

SILENT = 0
ERRORS = 1
INFO = 2
DEBUG = 3


class LogSink(Protocol):
    def error(self, msg: str, *args: Any) -> None: ...

    def info(self, msg: str, *args: Any) -> None: ...

    def debug(self, msg: str, *args: Any) -> None: ...


class VerboseLogger:
    """Forward messages to a sink when the configured verbosity allows it.

    The sink is any object exposing ``error``/``info``/``debug`` in the
    ``logging.Logger`` calling convention, so both can be swapped at runtime.
    """

    def __init__(self, sink: LogSink | None = None, level: int = SILENT):
        self.sink = sink if sink is not None else logging.getLogger("finsys")
        self.level = level

    def error(self, msg: str, *args: Any) -> None:
        if self.level >= ERRORS:
            self.sink.error(msg, *args)

    def info(self, msg: str, *args: Any) -> None:
        if self.level >= INFO:
            self.sink.info(msg, *args)

    def debug(self, msg: str, *args: Any) -> None:
        if self.level >= DEBUG:
            self.sink.debug(msg, *args)
