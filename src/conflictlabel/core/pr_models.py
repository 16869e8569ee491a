from __future__ import annotations
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class MergeableState:
    """Values of the GraphQL `MergeableState` enum."""
    CONFLICTING = "CONFLICTING"
    MERGEABLE = "MERGEABLE"
    UNKNOWN = "UNKNOWN"


class Author(BaseModel):
    login: str


class PullRequest(BaseModel):
    """
    Snapshot of one open pull request, as returned by the GraphQL query.

    `labels` is flattened from `labels.nodes[].name` and reflects label
    membership at query time only.
    """
    model_config = ConfigDict(populate_by_name=True)

    number: int = Field(gt=0)
    title: str = ""
    permalink: str = ""
    updated_at: str = Field(default="", alias="updatedAt")
    # Deleted accounts come back as `author: null`
    author: Optional[Author] = None
    # Kept as str: unrecognized states must reach the dispatcher, not fail parsing
    mergeable: str
    is_draft: bool = Field(default=False, alias="isDraft")
    labels: list[str] = Field(default_factory=list)

    @field_validator("labels", mode="before")
    @classmethod
    def flatten_label_nodes(cls, labels: object) -> object:
        if isinstance(labels, dict):
            return [node["name"] for node in labels.get("nodes") or [] if node]
        return labels

    @property
    def author_login(self) -> str:
        return self.author.login if self.author else ""

    def has_label(self, name: str) -> bool:
        return name in self.labels


class PageInfo(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    end_cursor: Optional[str] = Field(default=None, alias="endCursor")
    has_next_page: bool = Field(default=False, alias="hasNextPage")


class PullRequestPage(BaseModel):
    """One page of open pull requests plus the cursor to continue from."""
    pull_requests: list[PullRequest]
    page_info: PageInfo
