from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Any, List, Protocol, Sequence

from jira import JIRA, JIRAError
from requests.exceptions import RequestException

from .config import JiraConfig
from .definitions import SearchKind, SearchParam, TagDefinition

logger = logging.getLogger(__name__)


class TrackerError(Exception):
    """Raised when the issue tracker rejects or fails a request."""


@dataclass
class TrackedIssue:
    """In-memory view of a tracker issue, updated as mutations succeed."""

    key: str
    project: str = ""
    state: str = ""
    summary: str = ""
    tags: List[str] = field(default_factory=list)


class Tracker(Protocol):
    """What the operation executor needs from an issue tracker."""

    def find_issues(self, params: Sequence[SearchParam]) -> List[TrackedIssue]:
        ...

    def transition(self, issue: TrackedIssue, state: str) -> None:
        ...

    def add_tag(self, issue: TrackedIssue, tag: TagDefinition) -> None:
        ...

    def set_title(self, issue: TrackedIssue, text: str) -> None:
        ...


def label_for(title: str) -> str:
    """Jira labels cannot contain whitespace."""
    return re.sub(r"\s+", "-", title.strip())


def _quote(value: str) -> str:
    return '"' + value.replace("\\", "\\\\").replace('"', '\\"') + '"'


def to_jql(params: Sequence[SearchParam]) -> str:
    """Render search predicates as a JQL conjunction."""
    clauses = []
    for param in params:
        if param.kind is SearchKind.ISSUE_ID:
            clauses.append(f"key = {_quote(param.value)}")
        elif param.kind is SearchKind.STATE:
            clauses.append(f"status = {_quote(param.value)}")
        elif param.kind is SearchKind.PROJECT_NAME:
            clauses.append(f"project = {_quote(param.value)}")
        elif param.kind is SearchKind.TAG_TITLE:
            clauses.append(f"labels = {_quote(label_for(param.value))}")
        else:  # pragma: no cover - exhaustive over SearchKind
            raise ValueError(f"Unsupported search parameter: {param.kind}")
    return " AND ".join(clauses)


class JiraTracker:
    """Tracker backed by the Jira REST API."""

    def __init__(self, cfg: JiraConfig, client: Any = None) -> None:
        self._jira = client or JIRA(
            server=cfg.url,
            basic_auth=(cfg.user_id, cfg.token),
            timeout=cfg.timeout,
            max_retries=cfg.max_retries,
        )

    def find_issues(self, params: Sequence[SearchParam]) -> List[TrackedIssue]:
        jql = to_jql(params)
        logger.info(f"Searching issues: {jql}")
        try:
            issues = self._jira.search_issues(jql, maxResults=False, fields="project,status,summary,labels")
        except (JIRAError, RequestException) as e:
            raise TrackerError(f"Issue search failed for '{jql}': {e}") from e
        return [self._to_tracked(issue) for issue in issues]

    def transition(self, issue: TrackedIssue, state: str) -> None:
        try:
            transitions = self._jira.transitions(issue.key)
            # Workflow states are matched case-insensitively, by target status or transition name.
            transition_id = next(
                (
                    t["id"]
                    for t in transitions
                    if t.get("to", {}).get("name", "").lower() == state.lower() or t["name"].lower() == state.lower()
                ),
                None,
            )
            if transition_id is None:
                raise TrackerError(f"No transition to '{state}' available for {issue.key}")
            self._jira.transition_issue(issue.key, transition_id)
        except (JIRAError, RequestException) as e:
            raise TrackerError(f"Transition of {issue.key} to '{state}' failed: {e}") from e

    def add_tag(self, issue: TrackedIssue, tag: TagDefinition) -> None:
        # Jira labels carry no colour; the tag style only matters to trackers that support it.
        label = label_for(tag.title)
        try:
            self._jira.issue(issue.key, fields="labels").add_field_value("labels", label)
        except (JIRAError, RequestException) as e:
            raise TrackerError(f"Adding label '{label}' to {issue.key} failed: {e}") from e

    def set_title(self, issue: TrackedIssue, text: str) -> None:
        try:
            self._jira.issue(issue.key, fields="summary").update(fields={"summary": text})
        except (JIRAError, RequestException) as e:
            raise TrackerError(f"Updating summary of {issue.key} failed: {e}") from e

    @staticmethod
    def _to_tracked(issue: Any) -> TrackedIssue:
        fields = issue.fields
        return TrackedIssue(
            key=issue.key,
            project=getattr(getattr(fields, "project", None), "key", "") or "",
            state=getattr(getattr(fields, "status", None), "name", "") or "",
            summary=getattr(fields, "summary", "") or "",
            tags=list(getattr(fields, "labels", None) or []),
        )
