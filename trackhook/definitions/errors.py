"""Errors raised while loading rule definitions from configuration."""

from __future__ import annotations

from typing import Iterable, List


class DefinitionError(Exception):
    """Base class for problems found in the rule definitions."""

    def __init__(self, path: str, message: str) -> None:
        self.path = path
        self.message = message
        super().__init__(f"{path}: {message}" if path else message)


class UnsupportedType(DefinitionError):
    """Raised when an operation declares a type we cannot execute."""

    def __init__(self, type_name: str, path: str = "") -> None:
        self.type_name = type_name
        super().__init__(path, f"unsupported operation type {type_name!r}")


class MissingKey(DefinitionError):
    """Raised when a required key is absent."""

    def __init__(self, path: str, key: str) -> None:
        self.key = key
        super().__init__(path, f"required key {key!r} is missing")


class InvalidValue(DefinitionError):
    """Raised when a value has the wrong shape."""


class AmbiguousEventSection(DefinitionError):
    """Raised when an event section is neither (or both) a list and a bucket table."""


class UnresolvedReference(DefinitionError):
    """Raised when an event refers to an operation that is not defined."""

    def __init__(self, path: str, reference: str) -> None:
        self.reference = reference
        super().__init__(path, f"operation {reference!r} is not defined under 'operations'")


class ConfigurationError(Exception):
    """All definition errors found while validating a configuration document."""

    def __init__(self, errors: Iterable[DefinitionError]) -> None:
        self.errors: List[DefinitionError] = list(errors)
        lines = "\n".join(f"  - {error}" for error in self.errors)
        super().__init__(f"{len(self.errors)} configuration error(s):\n{lines}")
