"""trackhook - issue tracker automation driven by GitLab events.

This package is organised as follows:

- trackhook.definitions: Rule definitions (operations, tags, event routing)
- trackhook.operation_service: Gate, search and update execution
- trackhook.tracker: Issue tracker contract and the Jira implementation
- trackhook.server: GitLab webhook reception
- trackhook.models: GitLab webhook payload models
- trackhook.common: Shared utilities
"""

__version__ = "1.0.0"
