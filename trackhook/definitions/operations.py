"""Operation definitions declared under ``operations.<name>``."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping

from .args import Argument
from .base import (
    Filter,
    FilterArgs,
    UpdateKind,
    parse_filter_args,
    parse_filters,
    parse_updates,
)
from .errors import DefinitionError, InvalidValue, MissingKey, UnsupportedType
from .tree import ConfigTree

OPERATIONS_ROOT = "operations"


class DefinitionErrors(DefinitionError):
    """Several problems found in a single operation definition."""

    def __init__(self, path: str, errors: List[DefinitionError]) -> None:
        self.errors = errors
        super().__init__(path, "; ".join(str(e) for e in errors))


@dataclass(frozen=True)
class Operation:
    name: str

    @property
    def type_name(self) -> str:
        return type(self).__name__


@dataclass(frozen=True)
class ChangeTasks(Operation):
    """Find issues matching ``filter`` and apply ``update`` to each of them."""

    custom_args: Argument = field(default_factory=Argument.custom)
    update: List[UpdateKind] = field(default_factory=list)
    filter: List[Filter] = field(default_factory=list)
    filter_args: FilterArgs = field(default_factory=FilterArgs)


def _load_change_tasks(tree: ConfigTree, path: str, default_name: str, definition: Mapping[str, Any]) -> ChangeTasks:
    errors: List[DefinitionError] = []

    name = definition.get("name", default_name)
    if not isinstance(name, str) or not name:
        errors.append(InvalidValue(f"{path}.name", "name must be non-empty text"))
        name = default_name

    custom_args: Dict[str, Any] = {}
    raw_custom = definition.get("custom-args", definition.get("custom_args"))
    if isinstance(raw_custom, Mapping):
        custom_args = {str(k): v for k, v in raw_custom.items()}
    elif raw_custom is not None:
        errors.append(InvalidValue(f"{path}.custom-args", "custom-args must be a table"))

    update = parse_updates(tree, f"{path}.update", definition.get("update"), errors)
    raw_filter = definition.get("filter")
    filters = parse_filters(tree, f"{path}.filter", raw_filter, errors)
    filter_args = parse_filter_args(
        f"{path}.filter-args",
        [
            raw_filter if isinstance(raw_filter, Mapping) else None,
            definition.get("filter-args", definition.get("filter_args")),
        ],
        errors,
    )

    if errors:
        if len(errors) == 1:
            raise errors[0]
        raise DefinitionErrors(path, errors)

    return ChangeTasks(
        name=name,
        custom_args=Argument.custom(custom_args),
        update=update,
        filter=filters,
        filter_args=filter_args,
    )


OPERATION_LOADERS = {
    "ChangeTasks": _load_change_tasks,
}


def load_operation(tree: ConfigTree, default_name: str, definition: Any) -> Operation:
    """Build one operation from its raw table; ``default_name`` is its catalog key."""
    path = f"{OPERATIONS_ROOT}.{default_name}"
    if not isinstance(definition, Mapping):
        raise InvalidValue(path, "operation definition must be a table")
    if "type" not in definition:
        raise MissingKey(path, "type")

    type_name = definition["type"]
    loader = OPERATION_LOADERS.get(type_name) if isinstance(type_name, str) else None
    if loader is None:
        raise UnsupportedType(str(type_name), path=f"{path}.type")
    return loader(tree, path, default_name, definition)


def load_operation_catalog(tree: ConfigTree, errors: List[DefinitionError]) -> Dict[str, Operation]:
    """Load every operation under ``operations``; failures are appended to ``errors``."""
    raw = tree.find(OPERATIONS_ROOT)
    if raw is None:
        return {}
    if not isinstance(raw, Mapping):
        errors.append(InvalidValue(OPERATIONS_ROOT, "operations must be a table"))
        return {}

    catalog: Dict[str, Operation] = {}
    for key, definition in raw.items():
        try:
            catalog[str(key)] = load_operation(tree, str(key), definition)
        except DefinitionErrors as e:
            errors.extend(e.errors)
        except DefinitionError as e:
            errors.append(e)
    return catalog
