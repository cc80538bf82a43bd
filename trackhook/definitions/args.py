"""Runtime and custom arguments of an operation, and the gates evaluated over them.

Every argument, whatever its origin, can be viewed as a plain string-keyed
mapping (``Argument.to_config``). Hook payloads get there through a YAML
round-trip so the gate sees exactly the structure a rule author would write in
the configuration file. Two arguments combine with ``+``: the right operand
wins on shared keys and the result is always a ``MERGED`` argument.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Mapping

import yaml
from pydantic import BaseModel

from ..models import MergeRequestHook, NoteHook, PipelineHook


class ArgumentKind(str, Enum):
    NOTE_HOOK = "note_hook"
    PIPELINE_HOOK = "pipeline_hook"
    MERGE_REQUEST_HOOK = "merge_request_hook"
    CUSTOM = "custom"
    MERGED = "merged"


HOOK_KINDS = {
    NoteHook: ArgumentKind.NOTE_HOOK,
    PipelineHook: ArgumentKind.PIPELINE_HOOK,
    MergeRequestHook: ArgumentKind.MERGE_REQUEST_HOOK,
}


def all_equals(merged: Mapping[str, Any], equals: Mapping[str, Any]) -> bool:
    """True when every ``equals`` key is present in ``merged`` with an equal value."""
    if len(merged) < len(equals):
        return False
    return all(key in merged and merged[key] == value for key, value in equals.items())


def has_all(merged: Mapping[str, Any], has: Mapping[str, Any]) -> bool:
    """True when every ``has`` key is present in ``merged``; values are not compared."""
    return all(key in merged for key in has)


@dataclass(frozen=True)
class Argument:
    kind: ArgumentKind
    value: Any = field(default_factory=dict)

    @classmethod
    def from_hook(cls, hook: BaseModel) -> "Argument":
        kind = HOOK_KINDS.get(type(hook))
        if kind is None:
            raise TypeError(f"Unsupported hook payload: {type(hook).__name__}")
        return cls(kind, hook)

    @classmethod
    def custom(cls, data: Mapping[str, Any] | None = None) -> "Argument":
        return cls(ArgumentKind.CUSTOM, dict(data or {}))

    @classmethod
    def merged(cls, data: Mapping[str, Any] | None = None) -> "Argument":
        return cls(ArgumentKind.MERGED, dict(data or {}))

    @property
    def is_hook(self) -> bool:
        return self.kind in HOOK_KINDS.values()

    def to_config(self) -> Dict[str, Any]:
        """Return the argument as a generic mapping.

        Hook fields that are absent or null in the payload are left out, so a
        ``has`` gate only sees what GitLab actually sent.
        """
        if self.is_hook:
            document = yaml.safe_dump(self.value.model_dump(mode="json", exclude_none=True))
            return yaml.safe_load(document) or {}
        return dict(self.value)

    def __add__(self, other: "Argument") -> "Argument":
        if not isinstance(other, Argument):
            return NotImplemented
        result = self.to_config()
        result.update(other.to_config())
        return Argument.merged(result)

    def all_equals(self, equals: Mapping[str, Any]) -> bool:
        return all_equals(self.to_config(), equals)

    def has_all(self, has: Mapping[str, Any]) -> bool:
        return has_all(self.to_config(), has)
