import pytest

from conftest import load_resource
from trackhook.definitions import Argument, ArgumentKind, all_equals, has_all
from trackhook.models import parse_hook


def test_hook_argument_normalizes_to_plain_mapping():
    hook = parse_hook(load_resource("merge_request_merged.json"))
    config = Argument.from_hook(hook).to_config()

    assert config["object_kind"] == "merge_request"
    assert config["object_attributes"]["action"] == "merge"
    assert config["project"]["path_with_namespace"] == "gitlabhq/gitlab-test"
    # Unmodelled top-level keys survive the round trip
    assert config["changes"] == {"state_id": {"previous": 1, "current": 3}}


@pytest.mark.parametrize(
    "resource, kind",
    [
        ("note_merge_request.json", ArgumentKind.NOTE_HOOK),
        ("pipeline_failed.json", ArgumentKind.PIPELINE_HOOK),
        ("merge_request_merged.json", ArgumentKind.MERGE_REQUEST_HOOK),
    ],
)
def test_hook_kinds(resource, kind):
    assert Argument.from_hook(parse_hook(load_resource(resource))).kind is kind


def test_mapping_arguments_pass_through():
    data = {"team": "core", "nested": {"a": 1}}
    assert Argument.custom(data).to_config() == data
    assert Argument.merged(data).to_config() == data


def test_merge_is_right_biased():
    left = Argument.custom({"a": 1, "b": 2})
    right = Argument.custom({"b": 3, "c": 4})

    merged = left + right

    assert merged.kind is ArgumentKind.MERGED
    assert merged.to_config() == {"a": 1, "b": 3, "c": 4}
    for key in ("a", "b", "c"):
        expected = right.to_config().get(key, left.to_config().get(key))
        assert merged.to_config().get(key) == expected


def test_merge_with_hook_argument():
    hook = Argument.from_hook(parse_hook(load_resource("pipeline_failed.json")))
    merged = Argument.custom({"object_kind": "custom", "team": "core"}) + hook

    config = merged.to_config()
    assert config["object_kind"] == "pipeline"
    assert config["team"] == "core"


def test_merge_does_not_mutate_operands():
    left = Argument.custom({"a": 1})
    _ = left + Argument.custom({"a": 2})
    assert left.to_config() == {"a": 1}


@pytest.mark.parametrize("merged", [{}, {"a": 1}, {"a": None, "b": [1, 2]}])
def test_all_equals_with_empty_map_is_true(merged):
    assert all_equals(merged, {})


def test_all_equals():
    merged = {"object_kind": "pipeline", "team": "core", "count": 2}

    assert all_equals(merged, {"object_kind": "pipeline"})
    assert all_equals(merged, {"object_kind": "pipeline", "count": 2})
    assert not all_equals(merged, {"object_kind": "note"})
    assert not all_equals(merged, {"missing": "pipeline"})
    assert not all_equals({"a": 1}, {"a": 1, "b": 2})


def test_has_all_checks_key_presence_only():
    merged = {"merge_request": None, "team": "core"}

    assert has_all(merged, {})
    assert has_all(merged, {"merge_request": "anything"})
    assert has_all(merged, {"merge_request": None, "team": None})
    assert not has_all(merged, {"user": None})


def test_argument_gate_methods():
    merged = Argument.custom({"team": "core"}) + Argument.custom({"env": "prod"})
    assert merged.all_equals({"team": "core", "env": "prod"})
    assert merged.has_all({"env": None})
    assert not merged.has_all({"region": None})
