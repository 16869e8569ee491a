from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional

# PR number -> True when conflicting, False once mergable again
DirtyStatusMap = dict[int, bool]


class CommentType(Enum):
    """Kinds of comments this action writes, tagged by a hidden marker in the body."""
    DIRTY = "dirty"


def marker(comment_type: CommentType) -> str:
    """Hidden HTML comment identifying a comment we authored."""
    return f"<!-- conflictlabel:{comment_type.value} -->"


def has_marker(body: str, comment_type: CommentType) -> bool:
    return marker(comment_type) in body


@dataclass(frozen=True)
class ReconciliationContext:
    """
    Parameters of one polling pass.

    Derived copies (next page, next retry) are made with `dataclasses.replace`.
    """
    owner: str
    repo: str
    dirty_label: str
    base_ref_name: Optional[str] = None
    head_ref_name: Optional[str] = None
    after: Optional[str] = None
    remove_on_dirty_label: str = ""
    comment_on_dirty: str = ""
    comment_on_clean: str = ""
    skip_draft: bool = False
    remove_dirty_comment: bool = False
    continue_on_missing_permissions: bool = False
    retry_after: float = 120
    retry_max: int = 5
