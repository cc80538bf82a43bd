"""Shared models for GitLab webhook payloads."""

from .gitlab_hooks import (
    GitlabHook,
    GitlabUser,
    GitlabProject,
    GitlabRepository,
    GitlabCommit,
    MergeRequestAttributes,
    NoteAttributes,
    PipelineAttributes,
    NoteHook,
    PipelineHook,
    MergeRequestHook,
    parse_hook,
)

__all__ = [
    "GitlabHook",
    "GitlabUser",
    "GitlabProject",
    "GitlabRepository",
    "GitlabCommit",
    "MergeRequestAttributes",
    "NoteAttributes",
    "PipelineAttributes",
    "NoteHook",
    "PipelineHook",
    "MergeRequestHook",
    "parse_hook",
]
