from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict

import yaml
from dotenv import load_dotenv

from .definitions import ConfigTree, Definitions, load_definitions

load_dotenv()


def _load_file(path: str | Path) -> dict:
    with open(path, "r", encoding="utf-8") as fh:
        return yaml.safe_load(fh) or {}


@dataclass
class JiraConfig:
    """Settings required to connect to Jira."""

    url: str
    user_id: str
    token: str = ""
    timeout: float = 30.0
    max_retries: int = 3


@dataclass
class WebhookConfig:
    """Settings of the GitLab webhook receiver."""

    secret: str = ""
    endpoint: str = "/webhook/gitlab"
    host: str = "0.0.0.0"
    port: int = 8080


@dataclass
class AppConfig:
    """Top level application configuration."""

    jira: JiraConfig
    webhook: WebhookConfig = field(default_factory=WebhookConfig)
    definitions: Definitions = field(default_factory=Definitions)
    tree: ConfigTree = field(default_factory=ConfigTree)

    @staticmethod
    def load(path: str | Path) -> "AppConfig":
        """Load configuration from a YAML file and validate its rule definitions."""

        return AppConfig.from_dict(_load_file(path))

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> "AppConfig":
        jira_data = dict(data.get("jira") or {})
        # Secrets are only ever read from the environment
        jira_data["token"] = os.getenv("JIRA_API_TOKEN", "")
        if "url" not in jira_data or "user_id" not in jira_data:
            raise ValueError("Configuration requires 'jira.url' and 'jira.user_id'")
        jira = JiraConfig(**jira_data)

        webhook_data = dict(data.get("webhook") or {})
        webhook_data["secret"] = os.getenv("GITLAB_WEBHOOK_SECRET", "")
        webhook = WebhookConfig(**webhook_data)

        tree = ConfigTree(data)
        definitions = load_definitions(tree)
        return AppConfig(jira=jira, webhook=webhook, definitions=definitions, tree=tree)
