"""Rule definitions: operations, tags and the event routing table.

``load_definitions`` validates a whole configuration document at once and
reports every problem it finds in a single ``ConfigurationError``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping

from .args import Argument, ArgumentKind, all_equals, has_all
from .base import (
    AddTag,
    Filter,
    FilterArgs,
    IdFilter,
    ProjectNameFilter,
    SearchKind,
    SearchParam,
    StateFilter,
    Status,
    TagFilter,
    Title,
    UpdateKind,
    resolve_filters,
    sort_updates,
)
from .errors import (
    AmbiguousEventSection,
    ConfigurationError,
    DefinitionError,
    InvalidValue,
    MissingKey,
    UnresolvedReference,
    UnsupportedType,
)
from .events import EventKind, EventRouter, load_event_router, route_hook
from .operations import ChangeTasks, Operation, load_operation, load_operation_catalog
from .tags import TAGS_ROOT, TagDefinition, resolve_tag, tag_from_value
from .tree import ConfigTree


@dataclass
class Definitions:
    """Everything the engine needs at runtime, built once at startup."""

    router: EventRouter = field(default_factory=EventRouter)
    operations: Dict[str, Operation] = field(default_factory=dict)
    tags: Dict[str, TagDefinition] = field(default_factory=dict)


def load_definitions(tree: ConfigTree | Mapping[str, Any]) -> Definitions:
    """Validate and build the rule definitions, raising ``ConfigurationError`` on any problem."""
    if not isinstance(tree, ConfigTree):
        tree = ConfigTree(tree)

    errors: List[DefinitionError] = []

    tags: Dict[str, TagDefinition] = {}
    raw_tags = tree.find(TAGS_ROOT)
    if isinstance(raw_tags, Mapping):
        for name, value in raw_tags.items():
            try:
                tags[str(name)] = tag_from_value(str(name), value)
            except DefinitionError as e:
                errors.append(e)
    elif raw_tags is not None:
        errors.append(InvalidValue(TAGS_ROOT, "tags must be a table"))

    # A malformed tag fails again wherever it is referenced; report it once.
    reported = {(type(e), e.path, e.message) for e in errors}
    operation_errors: List[DefinitionError] = []
    operations = load_operation_catalog(tree, operation_errors)
    errors.extend(e for e in operation_errors if (type(e), e.path, e.message) not in reported)

    router = load_event_router(tree, operations, errors)

    if errors:
        raise ConfigurationError(errors)
    return Definitions(router=router, operations=operations, tags=tags)


__all__ = [
    "AddTag",
    "AmbiguousEventSection",
    "Argument",
    "ArgumentKind",
    "ChangeTasks",
    "ConfigTree",
    "ConfigurationError",
    "DefinitionError",
    "Definitions",
    "EventKind",
    "EventRouter",
    "Filter",
    "FilterArgs",
    "IdFilter",
    "InvalidValue",
    "MissingKey",
    "Operation",
    "ProjectNameFilter",
    "SearchKind",
    "SearchParam",
    "StateFilter",
    "Status",
    "TagDefinition",
    "TagFilter",
    "Title",
    "UnresolvedReference",
    "UnsupportedType",
    "UpdateKind",
    "all_equals",
    "has_all",
    "load_definitions",
    "load_operation",
    "resolve_filters",
    "resolve_tag",
    "route_hook",
    "sort_updates",
]
