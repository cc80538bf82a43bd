"""Tag definitions referenced by updates and filters."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping

from .errors import DefinitionError, InvalidValue, MissingKey
from .tree import ConfigTree

DEFAULT_TAG_STYLE = 13
TAGS_ROOT = "tags"


@dataclass(frozen=True, order=True)
class TagDefinition:
    """A tag as configured under ``tags.<name>``.

    ``style`` is carried for trackers that colour their tags; Jira labels have
    no colour, so ``JiraTracker`` only uses the title.
    """

    name: str
    title: str
    style: int = DEFAULT_TAG_STYLE


def _parse_style(value: Any) -> int:
    # Anything that is not an unsigned byte falls back to the default style.
    if isinstance(value, bool):
        return DEFAULT_TAG_STYLE
    if isinstance(value, str):
        value = value.strip()
        if not value.isdigit():
            return DEFAULT_TAG_STYLE
        value = int(value)
    if isinstance(value, int) and 0 <= value <= 255:
        return value
    return DEFAULT_TAG_STYLE


def tag_from_value(name: str, value: Any) -> TagDefinition:
    """Build a ``TagDefinition`` from the raw value stored for ``name``."""
    path = f"{TAGS_ROOT}.{name}"
    if isinstance(value, str):
        return TagDefinition(name=name, title=value)
    if isinstance(value, Mapping):
        if "title" not in value:
            raise MissingKey(path, "title")
        title = value["title"]
        if not isinstance(title, str):
            raise InvalidValue(f"{path}.title", "tag title must be text")
        return TagDefinition(name=name, title=title, style=_parse_style(value.get("style")))
    raise InvalidValue(path, "tag must be text or a table with 'title' and optional 'style'")


def resolve_tag(tree: ConfigTree, name: str) -> TagDefinition:
    """Resolve a symbolic tag name against the ``tags`` section."""
    if not isinstance(name, str) or not name:
        raise InvalidValue(TAGS_ROOT, f"tag reference must be a non-empty name, got {name!r}")
    value = tree.find(f"{TAGS_ROOT}.{name}")
    if value is None:
        raise DefinitionError(f"{TAGS_ROOT}.{name}", "tag is not defined")
    return tag_from_value(name, value)
