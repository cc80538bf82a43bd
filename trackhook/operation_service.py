"""Execution of operations: gate, issue search, ordered updates."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Iterable, List, Optional

from .definitions import (
    AddTag,
    Argument,
    ChangeTasks,
    Operation,
    Status,
    Title,
    UpdateKind,
    resolve_filters,
)
from .tracker import TrackedIssue, Tracker

logger = logging.getLogger(__name__)


@dataclass
class IssueResult:
    """Outcome of applying an operation's updates to one issue."""

    key: str
    applied: List[UpdateKind] = field(default_factory=list)
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass
class OperationResult:
    """Outcome of one operation invocation."""

    name: str
    gate_passed: bool = False
    issues: List[IssueResult] = field(default_factory=list)
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None and all(issue.ok for issue in self.issues)


class OperationExecutor:
    """Runs operations against a tracker.

    Updates of one issue are applied in canonical order and stop at the first
    failure; the remaining issues are still processed.
    """

    def __init__(self, tracker: Tracker) -> None:
        self.tracker = tracker

    def call_operations(self, operations: Iterable[Operation], args: Argument) -> List[OperationResult]:
        results = []
        for operation in operations:
            try:
                results.append(self.call_operation(operation, args))
            except Exception as e:
                logger.exception(f"Operation {operation.name!r} failed: {e}")
                results.append(OperationResult(name=operation.name, error=str(e)))
        return results

    def call_operation(self, operation: Operation, args: Argument) -> OperationResult:
        if isinstance(operation, ChangeTasks):
            return self._change_tasks(operation, args)
        raise TypeError(f"Unsupported operation: {operation.type_name}")

    def _change_tasks(self, operation: ChangeTasks, args: Argument) -> OperationResult:
        result = OperationResult(name=operation.name)
        merged = operation.custom_args + args

        has_all_args = merged.has_all(operation.filter_args.has)
        all_args_equals = merged.all_equals(operation.filter_args.equals)
        logger.info(
            f"Operation: {operation.name!r}, checking conditions: "
            f"has_all_args - {has_all_args}, all_args_equals - {all_args_equals}"
        )
        if not (has_all_args and all_args_equals):
            return result
        result.gate_passed = True

        params = resolve_filters(operation.filter)
        if not params:
            logger.warning(f"Operation {operation.name!r} has no filter; refusing to update unscoped issues")
            return result

        logger.info(f"Started operation: {operation.name!r}")
        issues = self.tracker.find_issues(params)
        logger.info(f"Operation {operation.name!r} found filtered issues: {len(issues)}")

        for issue in issues:
            result.issues.append(self._update_issue(issue, operation.update))
        return result

    def _update_issue(self, issue: TrackedIssue, updates: List[UpdateKind]) -> IssueResult:
        issue_result = IssueResult(key=issue.key)
        for update in updates:
            try:
                self._apply(issue, update)
            except Exception as e:
                issue_result.error = f"{type(update).__name__} failed: {e}"
                logger.error(f"Updating {issue.key} stopped at {update}: {e}")
                break
            issue_result.applied.append(update)
        return issue_result

    def _apply(self, issue: TrackedIssue, update: UpdateKind) -> None:
        if isinstance(update, Status):
            self.tracker.transition(issue, update.state)
            issue.state = update.state
        elif isinstance(update, AddTag):
            self.tracker.add_tag(issue, update.tag)
            if update.tag.title not in issue.tags:
                issue.tags.append(update.tag.title)
        elif isinstance(update, Title):
            self.tracker.set_title(issue, update.text)
            issue.summary = update.text
        else:
            raise TypeError(f"Unsupported update: {update!r}")
