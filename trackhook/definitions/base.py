"""Filters, updates and gate arguments of an operation definition."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, ClassVar, Dict, Iterable, List, Mapping, Tuple

from .errors import DefinitionError, InvalidValue
from .tags import TagDefinition, resolve_tag
from .tree import ConfigTree

GATE_KEYS = ("equals", "has")


def scalar_text(path: str, value: Any) -> str:
    """Return ``value`` as text, accepting strings and plain numbers."""
    if isinstance(value, bool) or value is None:
        raise InvalidValue(path, f"expected text, got {value!r}")
    if isinstance(value, (str, int, float)):
        return str(value)
    raise InvalidValue(path, f"expected text, got {type(value).__name__}")


# --- search predicates -----------------------------------------------------


class SearchKind(str, Enum):
    ISSUE_ID = "issue_id"
    STATE = "state"
    PROJECT_NAME = "project_name"
    TAG_TITLE = "tag_title"


@dataclass(frozen=True)
class SearchParam:
    """A single predicate handed to the tracker; a list of them is a conjunction."""

    kind: SearchKind
    value: str


# --- filters ---------------------------------------------------------------


@dataclass(frozen=True)
class Filter(ABC):
    @abstractmethod
    def to_search_param(self) -> SearchParam:
        """Return the tracker predicate this filter stands for."""


@dataclass(frozen=True)
class IdFilter(Filter):
    issue_id: str

    def to_search_param(self) -> SearchParam:
        return SearchParam(SearchKind.ISSUE_ID, self.issue_id)


@dataclass(frozen=True)
class StateFilter(Filter):
    state: str

    def to_search_param(self) -> SearchParam:
        return SearchParam(SearchKind.STATE, self.state)


@dataclass(frozen=True)
class ProjectNameFilter(Filter):
    project_name: str

    def to_search_param(self) -> SearchParam:
        return SearchParam(SearchKind.PROJECT_NAME, self.project_name)


@dataclass(frozen=True)
class TagFilter(Filter):
    tag: TagDefinition

    def to_search_param(self) -> SearchParam:
        return SearchParam(SearchKind.TAG_TITLE, self.tag.title)


def parse_filter(tree: ConfigTree, path: str, key: str, value: Any) -> Filter:
    kind = key.lower().replace("-", "_")
    entry_path = f"{path}.{key}"
    if kind == "id":
        return IdFilter(scalar_text(entry_path, value))
    if kind == "state":
        return StateFilter(scalar_text(entry_path, value))
    if kind == "project_name":
        return ProjectNameFilter(scalar_text(entry_path, value))
    if kind == "tag":
        return TagFilter(resolve_tag(tree, scalar_text(entry_path, value)))
    raise InvalidValue(entry_path, "supported filters are: id, state, project_name, tag")


def resolve_filters(filters: Iterable[Filter]) -> List[SearchParam]:
    """Translate filters into the tracker's search predicates, keeping their order."""
    return [f.to_search_param() for f in filters]


# --- updates ---------------------------------------------------------------


@dataclass(frozen=True)
class UpdateKind(ABC):
    rank: ClassVar[int] = 0

    @abstractmethod
    def sort_key(self) -> Tuple[Any, ...]:
        """Key placing updates in canonical order: kind rank first, then value."""


@dataclass(frozen=True)
class Status(UpdateKind):
    """Move the issue to the named workflow state."""

    state: str
    rank: ClassVar[int] = 0

    def sort_key(self) -> Tuple[Any, ...]:
        return (self.rank, self.state)


@dataclass(frozen=True)
class AddTag(UpdateKind):
    """Attach a configured tag to the issue."""

    tag: TagDefinition
    rank: ClassVar[int] = 1

    def sort_key(self) -> Tuple[Any, ...]:
        return (self.rank, self.tag.name, self.tag.title, self.tag.style)


@dataclass(frozen=True)
class Title(UpdateKind):
    """Replace the issue's title text."""

    text: str
    rank: ClassVar[int] = 2

    def sort_key(self) -> Tuple[Any, ...]:
        return (self.rank, self.text)


def sort_updates(updates: Iterable[UpdateKind]) -> List[UpdateKind]:
    """Return updates in canonical order (kind first, then value)."""
    return sorted(updates, key=lambda update: update.sort_key())


def parse_update(tree: ConfigTree, path: str, key: str, value: Any) -> UpdateKind:
    kind = key.lower().replace("_", "-")
    entry_path = f"{path}.{key}"
    if kind == "status":
        return Status(scalar_text(entry_path, value))
    if kind == "add-tag":
        return AddTag(resolve_tag(tree, scalar_text(entry_path, value)))
    if kind == "title":
        return Title(scalar_text(entry_path, value))
    raise InvalidValue(entry_path, "supported updates are: status, add-tag, title")


def _update_entries(path: str, raw: Any) -> List[Tuple[str, Any]]:
    if isinstance(raw, Mapping):
        return list(raw.items())
    if isinstance(raw, list):
        entries: List[Tuple[str, Any]] = []
        for index, item in enumerate(raw):
            if not isinstance(item, Mapping):
                raise InvalidValue(f"{path}[{index}]", "update list entries must be tables")
            entries.extend(item.items())
        return entries
    raise InvalidValue(path, "update must be a table or a list of tables")


def parse_updates(tree: ConfigTree, path: str, raw: Any, errors: List[DefinitionError]) -> List[UpdateKind]:
    """Parse the ``update`` section, collecting errors instead of stopping at the first."""
    if raw is None:
        return []
    try:
        entries = _update_entries(path, raw)
    except DefinitionError as e:
        errors.append(e)
        return []

    updates = []
    for key, value in entries:
        try:
            updates.append(parse_update(tree, path, str(key), value))
        except DefinitionError as e:
            errors.append(e)
    return sort_updates(updates)


def parse_filters(tree: ConfigTree, path: str, raw: Any, errors: List[DefinitionError]) -> List[Filter]:
    if raw is None:
        return []
    if not isinstance(raw, Mapping):
        errors.append(InvalidValue(path, "filter must be a table"))
        return []

    filters = []
    for key, value in raw.items():
        if str(key).lower() in GATE_KEYS:
            continue
        try:
            filters.append(parse_filter(tree, path, str(key), value))
        except DefinitionError as e:
            errors.append(e)
    return filters


# --- gate arguments --------------------------------------------------------


@dataclass(frozen=True)
class FilterArgs:
    """Gate on the merged arguments: ``equals`` keys must match, ``has`` keys must exist."""

    equals: Dict[str, Any] = field(default_factory=dict)
    has: Dict[str, Any] = field(default_factory=dict)


def parse_filter_args(path: str, sources: Iterable[Any], errors: List[DefinitionError]) -> FilterArgs:
    """Merge ``equals``/``has`` tables from every source; later sources win."""
    equals: Dict[str, Any] = {}
    has: Dict[str, Any] = {}
    for source in sources:
        if source is None:
            continue
        if not isinstance(source, Mapping):
            errors.append(InvalidValue(path, "filter arguments must be a table"))
            continue
        for key, target in (("equals", equals), ("has", has)):
            value = source.get(key)
            if value is None:
                continue
            if not isinstance(value, Mapping):
                errors.append(InvalidValue(f"{path}.{key}", "must be a table"))
                continue
            target.update({str(k): v for k, v in value.items()})
    return FilterArgs(equals=equals, has=has)
