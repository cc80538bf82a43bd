import pytest

from trackhook.definitions import ConfigTree, DefinitionError, InvalidValue, MissingKey, TagDefinition, resolve_tag
from trackhook.definitions.tags import DEFAULT_TAG_STYLE


def test_text_tag_uses_default_style():
    tree = ConfigTree({"tags": {"foo": "Bar"}})
    assert resolve_tag(tree, "foo") == TagDefinition(name="foo", title="Bar", style=13)


def test_table_tag_with_style():
    tree = ConfigTree({"tags": {"foo": {"title": "Bar", "style": 5}}})
    assert resolve_tag(tree, "foo") == TagDefinition(name="foo", title="Bar", style=5)


@pytest.mark.parametrize("style", [None, "bright", 300, -1, True, 2.5])
def test_unparsable_style_falls_back_to_default(style):
    tree = ConfigTree({"tags": {"foo": {"title": "Bar", "style": style}}})
    assert resolve_tag(tree, "foo").style == DEFAULT_TAG_STYLE


def test_numeric_text_style_is_parsed():
    tree = ConfigTree({"tags": {"foo": {"title": "Bar", "style": "7"}}})
    assert resolve_tag(tree, "foo").style == 7


def test_table_tag_requires_title():
    tree = ConfigTree({"tags": {"foo": {"style": 5}}})
    with pytest.raises(MissingKey):
        resolve_tag(tree, "foo")


def test_non_text_title_is_rejected():
    tree = ConfigTree({"tags": {"foo": {"title": ["Bar"]}}})
    with pytest.raises(InvalidValue):
        resolve_tag(tree, "foo")


def test_other_shapes_are_rejected():
    tree = ConfigTree({"tags": {"foo": ["Bar"]}})
    with pytest.raises(InvalidValue):
        resolve_tag(tree, "foo")


def test_undefined_tag():
    with pytest.raises(DefinitionError, match="tags.missing"):
        resolve_tag(ConfigTree({"tags": {}}), "missing")
