import copy
import json
from pathlib import Path
from typing import List, Sequence

import pytest

from trackhook.definitions import SearchParam, TagDefinition
from trackhook.tracker import TrackedIssue, TrackerError

RESOURCES = Path(__file__).parent / "resources"

SAMPLE_CONFIG = {
    "jira": {"url": "https://test.atlassian.net", "user_id": "bot@example.com"},
    "gitlab": {
        "on-comment": ["tag-discussed"],
        "on-pipeline": {"failed": ["tag-broken-build"]},
        "on-merge-request": {"merged": ["close-stale"]},
    },
    "operations": {
        "close-stale": {
            "type": "ChangeTasks",
            "filter": {"state": "Open"},
            "update": {"status": "Fixed"},
        },
        "tag-broken-build": {
            "type": "ChangeTasks",
            "filter": {"project_name": "BACKEND", "state": "In Review"},
            "update": {"add-tag": "broken-build"},
        },
        "tag-discussed": {
            "type": "ChangeTasks",
            "filter": {"tag": "needs-review"},
            "update": {"add-tag": "discussed"},
        },
    },
    "tags": {
        "needs-review": "Needs Review",
        "discussed": "Discussed",
        "broken-build": {"title": "Broken Build", "style": 5},
    },
}


def load_resource(name: str) -> dict:
    with open(RESOURCES / name, "r", encoding="utf-8") as fh:
        return json.load(fh)


class RecordingTracker:
    """In-memory tracker that records every call made to it."""

    def __init__(self, issues: Sequence[TrackedIssue] = (), fail_on: Sequence[tuple] = ()) -> None:
        self.issues = list(issues)
        self.fail_on = set(fail_on)
        self.searches: List[List[SearchParam]] = []
        self.calls: List[tuple] = []

    def find_issues(self, params: Sequence[SearchParam]) -> List[TrackedIssue]:
        self.searches.append(list(params))
        return [copy.deepcopy(issue) for issue in self.issues]

    def _record(self, call: tuple) -> None:
        if call in self.fail_on:
            raise TrackerError(f"refused {call}")
        self.calls.append(call)

    def transition(self, issue: TrackedIssue, state: str) -> None:
        self._record(("transition", issue.key, state))

    def add_tag(self, issue: TrackedIssue, tag: TagDefinition) -> None:
        self._record(("add_tag", issue.key, tag.title))

    def set_title(self, issue: TrackedIssue, text: str) -> None:
        self._record(("set_title", issue.key, text))


@pytest.fixture
def sample_config_data():
    return copy.deepcopy(SAMPLE_CONFIG)


@pytest.fixture
def tracker():
    return RecordingTracker(
        issues=[
            TrackedIssue(key="BTS-1", project="BTS", state="Open", summary="First"),
            TrackedIssue(key="BTS-2", project="BTS", state="Open", summary="Second"),
        ]
    )
