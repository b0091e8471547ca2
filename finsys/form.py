"""Ordered, multi-valued query parameters."""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from typing import Any
from urllib.parse import urlencode


def _format(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


class Values:
    """Query parameters kept in insertion order, with repeated keys allowed.

    Examples:
        >>> params = Values({"symbols": "AAPL"}).add("fields", "bid").add("fields", "ask")
        >>> params.encode()
        'symbols=AAPL&fields=bid&fields=ask'
    """

    def __init__(self, initial: Mapping[str, Any] | None = None):
        self._pairs: list[tuple[str, str]] = []
        if initial:
            for key, value in initial.items():
                if isinstance(value, (list, tuple)):
                    for item in value:
                        self.add(key, item)
                elif value is not None:
                    self.add(key, value)

    def add(self, key: str, value: Any) -> Values:
        self._pairs.append((key, _format(value)))
        return self

    def set(self, key: str, value: Any) -> Values:
        """Replace every value under ``key`` with ``value``."""
        self.delete(key)
        return self.add(key, value)

    def get(self, key: str) -> str | None:
        for k, v in self._pairs:
            if k == key:
                return v
        return None

    def get_all(self, key: str) -> list[str]:
        return [v for k, v in self._pairs if k == key]

    def delete(self, key: str) -> None:
        self._pairs = [(k, v) for k, v in self._pairs if k != key]

    def empty(self) -> bool:
        return not self._pairs

    def encode(self) -> str:
        return urlencode(self._pairs)

    def __iter__(self) -> Iterator[tuple[str, str]]:
        return iter(self._pairs)

    def __len__(self) -> int:
        return len(self._pairs)

    def __repr__(self) -> str:
        return f"Values({self._pairs!r})"
