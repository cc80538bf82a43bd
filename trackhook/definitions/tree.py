"""Read-only view over the raw configuration document."""

from __future__ import annotations

from typing import Any, Mapping

from .errors import InvalidValue, MissingKey

_MISSING = object()


class ConfigTree:
    """Resolves dotted paths such as ``tags.release`` to configuration values."""

    def __init__(self, data: Mapping[str, Any] | None = None) -> None:
        self._data: Mapping[str, Any] = data or {}

    @property
    def data(self) -> Mapping[str, Any]:
        return self._data

    def find(self, path: str, default: Any = None) -> Any:
        """Return the value at ``path`` or ``default`` when any segment is absent."""
        value = self._lookup(path)
        return default if value is _MISSING else value

    def get(self, path: str) -> Any:
        """Return the value at ``path``, raising ``MissingKey`` when it is absent."""
        value = self._lookup(path)
        if value is _MISSING:
            parent, _, key = path.rpartition(".")
            raise MissingKey(parent, key)
        return value

    def get_table(self, path: str) -> Mapping[str, Any]:
        value = self.get(path)
        if not isinstance(value, Mapping):
            raise InvalidValue(path, f"expected a table, got {type(value).__name__}")
        return value

    def _lookup(self, path: str) -> Any:
        node: Any = self._data
        for segment in path.split("."):
            if not isinstance(node, Mapping) or segment not in node:
                return _MISSING
            node = node[segment]
        return node
