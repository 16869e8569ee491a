from __future__ import annotations

import json
import os
from dataclasses import dataclass
from typing import Mapping, Optional

from conflictlabel.core.errors import ConfigError
from conflictlabel.github.client.github_client import DEFAULT_API_URL, DEFAULT_GRAPHQL_URL

BRANCH_REF_PREFIX = "refs/heads/"


def get_branch_name(ref: str) -> Optional[str]:
    """Branch name for `refs/heads/<name>`, None for tags and other refs."""
    if ref.startswith(BRANCH_REF_PREFIX):
        return ref[len(BRANCH_REF_PREFIX):]
    return None


@dataclass(frozen=True)
class EventContext:
    """What triggered this run, read from the runner's GITHUB_* variables."""
    event_name: str
    ref: str
    owner: str
    repo: str
    payload: dict
    api_url: str = DEFAULT_API_URL
    graphql_url: str = DEFAULT_GRAPHQL_URL

    @property
    def is_push(self) -> bool:
        return self.event_name == "push"

    @property
    def is_pull_request(self) -> bool:
        # pull_request, pull_request_target, pull_request_review, ...
        return self.event_name.startswith("pull_request")

    @property
    def is_supported(self) -> bool:
        return self.is_push or self.is_pull_request

    @property
    def base_ref_name(self) -> Optional[str]:
        """Push runs only look at PRs targeting the pushed branch."""
        if not self.is_push:
            return None
        return get_branch_name(self.ref)

    @property
    def head_ref_name(self) -> Optional[str]:
        """Head branch of the PR that triggered a pull_request* run."""
        if not self.is_pull_request:
            return None
        pull_request = self.payload.get("pull_request") or {}
        head = pull_request.get("head") or {}
        return head.get("ref") or None

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "EventContext":
        env = os.environ if environ is None else environ

        repository = env.get("GITHUB_REPOSITORY", "")
        if "/" not in repository:
            raise ConfigError(f"GITHUB_REPOSITORY must look like 'owner/repo', got '{repository}'")
        owner, repo = repository.split("/", 1)

        return cls(
            event_name=env.get("GITHUB_EVENT_NAME", ""),
            ref=env.get("GITHUB_REF", ""),
            owner=owner,
            repo=repo,
            payload=_read_event_payload(env.get("GITHUB_EVENT_PATH", "")),
            api_url=env.get("GITHUB_API_URL") or DEFAULT_API_URL,
            graphql_url=env.get("GITHUB_GRAPHQL_URL") or DEFAULT_GRAPHQL_URL,
        )


def _read_event_payload(path: str) -> dict:
    """The webhook payload the runner saved to disk; empty when running locally."""
    if not path or not os.path.exists(path):
        return {}
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)
