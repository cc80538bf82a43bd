"""Event section parsing and routing of GitLab events to operations.

The ``gitlab`` section maps an event kind to the operations it triggers::

    gitlab:
      on-comment: [notify]               # flat list -> the kind's default bucket
      on-merge-request:
        merged: [close-stale]            # table -> named buckets
        conflict: mark-conflict

A value is read both as a flat reference list and as a bucket table. Exactly
one reading has to succeed; anything else is rejected when the configuration
is loaded.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Any, Dict, Iterator, List, Mapping, Optional, Tuple

from ..models import GitlabHook, MergeRequestHook, NoteHook, PipelineHook
from .errors import AmbiguousEventSection, DefinitionError, InvalidValue, UnresolvedReference
from .operations import OPERATIONS_ROOT, Operation
from .tree import ConfigTree

logger = logging.getLogger(__name__)

EVENTS_ROOT = "gitlab"


class EventKind(str, Enum):
    ON_COMMENT = "on-comment"
    ON_PIPELINE = "on-pipeline"
    ON_MERGE_REQUEST = "on-merge-request"


EVENT_BUCKETS: Dict[EventKind, Tuple[str, ...]] = {
    EventKind.ON_COMMENT: ("comment",),
    EventKind.ON_PIPELINE: ("started", "success", "failed"),
    EventKind.ON_MERGE_REQUEST: ("created", "updated", "conflict", "merged"),
}

DEFAULT_BUCKETS: Dict[EventKind, str] = {
    EventKind.ON_COMMENT: "comment",
    EventKind.ON_PIPELINE: "success",
    EventKind.ON_MERGE_REQUEST: "merged",
}

PIPELINE_BUCKETS = {
    "created": "started",
    "pending": "started",
    "running": "started",
    "success": "success",
    "failed": "failed",
}

MERGE_REQUEST_BUCKETS = {
    "open": "created",
    "reopen": "created",
    "update": "updated",
    "merge": "merged",
}


def reference_list(path: str, value: Any) -> List[str]:
    """Read a single reference or a non-empty list of references."""
    if isinstance(value, str) and value:
        return [value]
    if isinstance(value, list) and value and all(isinstance(item, str) and item for item in value):
        return list(value)
    raise InvalidValue(path, "expected an operation name or a non-empty list of operation names")


def _as_bucket_table(kind: EventKind, path: str, value: Any) -> Dict[str, List[str]]:
    if not isinstance(value, Mapping):
        raise InvalidValue(path, "expected a table of buckets")
    buckets = EVENT_BUCKETS[kind]
    table: Dict[str, List[str]] = {bucket: [] for bucket in buckets}
    for key, refs in value.items():
        if key not in buckets:
            raise InvalidValue(f"{path}.{key}", f"unknown bucket, expected one of: {', '.join(buckets)}")
        table[key] = reference_list(f"{path}.{key}", refs)
    return table


def parse_event_section(kind: EventKind, path: str, value: Any) -> Dict[str, List[str]]:
    """Return bucket -> operation references for one event kind."""
    flat: Optional[Dict[str, List[str]]] = None
    table: Optional[Dict[str, List[str]]] = None
    failures: List[str] = []

    try:
        refs = reference_list(path, value)
        flat = {bucket: [] for bucket in EVENT_BUCKETS[kind]}
        flat[DEFAULT_BUCKETS[kind]] = refs
    except DefinitionError as e:
        failures.append(f"as a list: {e.message}")
    try:
        table = _as_bucket_table(kind, path, value)
    except DefinitionError as e:
        failures.append(f"as a bucket table: {e.message}")

    if flat is not None and table is not None:
        raise AmbiguousEventSection(path, "value reads both as an operation list and as a bucket table")
    if flat is None and table is None:
        raise AmbiguousEventSection(path, "value is neither an operation list nor a bucket table (" + "; ".join(failures) + ")")
    return flat if flat is not None else table


class EventRouter:
    """Ordered operation lists per event kind and bucket."""

    def __init__(self, table: Optional[Dict[EventKind, Dict[str, List[Operation]]]] = None) -> None:
        self._table: Dict[EventKind, Dict[str, List[Operation]]] = {
            kind: {bucket: [] for bucket in buckets} for kind, buckets in EVENT_BUCKETS.items()
        }
        for kind, buckets in (table or {}).items():
            for bucket, operations in buckets.items():
                self._table[kind][bucket] = list(operations)

    def operations_for(self, kind: EventKind, bucket: Optional[str] = None) -> List[Operation]:
        """Operations configured for ``kind``; ``bucket`` defaults to the kind's default bucket."""
        bucket = bucket or DEFAULT_BUCKETS[kind]
        if bucket not in self._table[kind]:
            raise KeyError(f"{kind.value} has no bucket {bucket!r}")
        return list(self._table[kind][bucket])

    def routes(self) -> Iterator[Tuple[EventKind, str, List[Operation]]]:
        for kind, buckets in self._table.items():
            for bucket, operations in buckets.items():
                yield kind, bucket, list(operations)

    def __len__(self) -> int:
        return sum(len(operations) for _, _, operations in self.routes())


def load_event_router(tree: ConfigTree, catalog: Mapping[str, Operation], errors: List[DefinitionError]) -> EventRouter:
    """Build the router from the ``gitlab`` section, appending failures to ``errors``."""
    raw = tree.find(EVENTS_ROOT)
    if raw is None:
        logger.warning("No '%s' event section configured; no operation will ever run", EVENTS_ROOT)
        return EventRouter()
    if not isinstance(raw, Mapping):
        errors.append(InvalidValue(EVENTS_ROOT, "event section must be a table"))
        return EventRouter()

    table: Dict[EventKind, Dict[str, List[Operation]]] = {}
    for key, value in raw.items():
        path = f"{EVENTS_ROOT}.{key}"
        try:
            kind = EventKind(key)
        except ValueError:
            known = ", ".join(k.value for k in EventKind)
            errors.append(InvalidValue(path, f"unknown event kind, expected one of: {known}"))
            continue
        try:
            buckets = parse_event_section(kind, path, value)
        except DefinitionError as e:
            errors.append(e)
            continue

        resolved: Dict[str, List[Operation]] = {}
        for bucket, refs in buckets.items():
            resolved[bucket] = []
            for ref in refs:
                if ref in catalog:
                    resolved[bucket].append(catalog[ref])
                elif tree.find(f"{OPERATIONS_ROOT}.{ref}") is None:
                    errors.append(UnresolvedReference(f"{path}.{bucket}", ref))
                # Otherwise the operation failed to load and its error is already recorded.
        table[kind] = resolved
    return EventRouter(table)


def route_hook(hook: GitlabHook) -> Optional[Tuple[EventKind, str]]:
    """Return the event kind and bucket for a hook, or None when nothing should run."""
    if isinstance(hook, NoteHook):
        return EventKind.ON_COMMENT, "comment"
    if isinstance(hook, PipelineHook):
        bucket = PIPELINE_BUCKETS.get(hook.object_attributes.status)
        return (EventKind.ON_PIPELINE, bucket) if bucket else None
    if isinstance(hook, MergeRequestHook):
        attributes = hook.object_attributes
        bucket = MERGE_REQUEST_BUCKETS.get(attributes.action or "")
        if bucket == "updated" and attributes.merge_status == "cannot_be_merged":
            bucket = "conflict"
        return (EventKind.ON_MERGE_REQUEST, bucket) if bucket else None
    return None
