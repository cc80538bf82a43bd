"""Pydantic models for GitLab webhook payloads (note, pipeline, merge request)."""

from typing import Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


class GitlabUser(BaseModel):
    """GitLab user as embedded in hook payloads."""
    model_config = ConfigDict(extra="ignore")

    id: Optional[int] = None
    name: str
    username: str
    avatar_url: Optional[str] = None
    email: Optional[str] = None


class GitlabProject(BaseModel):
    """GitLab project information."""
    model_config = ConfigDict(extra="ignore")

    id: int
    name: str
    description: Optional[str] = None
    web_url: Optional[str] = None
    namespace: Optional[str] = None
    path_with_namespace: Optional[str] = None
    default_branch: Optional[str] = None


class GitlabRepository(BaseModel):
    """Repository section of note and merge request hooks."""
    model_config = ConfigDict(extra="ignore")

    name: str
    url: Optional[str] = None
    description: Optional[str] = None
    homepage: Optional[str] = None


class GitlabCommitAuthor(BaseModel):
    model_config = ConfigDict(extra="ignore")

    name: str
    email: Optional[str] = None


class GitlabCommit(BaseModel):
    """Commit referenced by a hook (last commit of a merge request, pipeline commit)."""
    model_config = ConfigDict(extra="ignore")

    id: str
    message: Optional[str] = None
    title: Optional[str] = None
    timestamp: Optional[str] = None
    url: Optional[str] = None
    author: Optional[GitlabCommitAuthor] = None


class MergeRequestAttributes(BaseModel):
    """Merge request attributes, shared by merge request, note and pipeline hooks."""
    model_config = ConfigDict(extra="ignore")

    id: int
    iid: int
    title: Optional[str] = None
    description: Optional[str] = None
    source_branch: Optional[str] = None
    target_branch: Optional[str] = None
    source_project_id: Optional[int] = None
    target_project_id: Optional[int] = None
    author_id: Optional[int] = None
    assignee_id: Optional[int] = None
    state: Optional[str] = None
    merge_status: Optional[str] = None
    work_in_progress: Optional[bool] = None
    url: Optional[str] = None
    action: Optional[str] = None
    last_commit: Optional[GitlabCommit] = None


class NoteAttributes(BaseModel):
    """The comment itself."""
    model_config = ConfigDict(extra="ignore")

    id: int
    note: str
    noteable_type: str
    author_id: Optional[int] = None
    project_id: Optional[int] = None
    noteable_id: Optional[int] = None
    commit_id: Optional[str] = None
    system: Optional[bool] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None
    url: Optional[str] = None


class PipelineAttributes(BaseModel):
    """Pipeline status information."""
    model_config = ConfigDict(extra="ignore")

    id: int
    ref: Optional[str] = None
    tag: Optional[bool] = None
    sha: Optional[str] = None
    before_sha: Optional[str] = None
    source: Optional[str] = None
    status: str
    detailed_status: Optional[str] = None
    stages: List[str] = Field(default_factory=list)
    created_at: Optional[str] = None
    finished_at: Optional[str] = None
    duration: Optional[int] = None
    url: Optional[str] = None


class NoteHook(BaseModel):
    """Payload of a GitLab comment ("Note Hook")."""
    model_config = ConfigDict(extra="allow")

    object_kind: Literal["note"]
    event_type: Optional[str] = None
    user: GitlabUser
    project_id: Optional[int] = None
    project: GitlabProject
    repository: Optional[GitlabRepository] = None
    object_attributes: NoteAttributes
    merge_request: Optional[MergeRequestAttributes] = None
    commit: Optional[GitlabCommit] = None


class PipelineHook(BaseModel):
    """Payload of a GitLab pipeline status change ("Pipeline Hook")."""
    model_config = ConfigDict(extra="allow")

    object_kind: Literal["pipeline"]
    object_attributes: PipelineAttributes
    merge_request: Optional[MergeRequestAttributes] = None
    user: Optional[GitlabUser] = None
    project: GitlabProject
    commit: Optional[GitlabCommit] = None
    builds: List[Dict[str, Any]] = Field(default_factory=list)


class MergeRequestHook(BaseModel):
    """Payload of a GitLab merge request event ("Merge Request Hook")."""
    model_config = ConfigDict(extra="allow")

    object_kind: Literal["merge_request"]
    event_type: Optional[str] = None
    user: GitlabUser
    project: GitlabProject
    repository: Optional[GitlabRepository] = None
    object_attributes: MergeRequestAttributes
    labels: List[Dict[str, Any]] = Field(default_factory=list)
    changes: Dict[str, Any] = Field(default_factory=dict)


GitlabHook = Union[NoteHook, PipelineHook, MergeRequestHook]

HOOK_MODELS = {
    "note": NoteHook,
    "pipeline": PipelineHook,
    "merge_request": MergeRequestHook,
}


def parse_hook(payload: Dict[str, Any]) -> GitlabHook:
    """Validate a webhook payload into the model matching its ``object_kind``."""
    kind = payload.get("object_kind")
    model = HOOK_MODELS.get(kind)
    if model is None:
        raise ValueError(f"Unsupported GitLab object_kind: {kind!r}")
    return model.model_validate(payload)
