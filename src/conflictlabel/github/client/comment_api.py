from __future__ import annotations

import asyncio
import re
from typing import Mapping, Optional

from conflictlabel.core.errors import ReconcileError
from conflictlabel.core.types import CommentType, ReconciliationContext, has_marker, marker
from conflictlabel.github import workflow
from conflictlabel.github.client.github_client import (
    MISSING_PERMISSIONS_DETAIL,
    GitHubClient,
    describe,
    is_missing_permissions,
)

# `<%= key %>`, the spaces around the key are optional
TOKEN_PATTERN = re.compile(r"<%= ?(\S+) ?%>")

COMMENTS_PER_PAGE = 100


# =============================================================================
# TEMPLATING
# =============================================================================

def interpolate(body: str, replacements: Optional[Mapping[str, str]] = None) -> str:
    """
    Substitute `<%= key %>` tokens from `replacements`.

    Keys match case-sensitively; tokens without a replacement are kept verbatim.
    """
    replacements = replacements or {}

    def _replace(match: re.Match) -> str:
        return replacements.get(match.group(1), match.group(0))

    return TOKEN_PATTERN.sub(_replace, body)


def with_marker(body: str, comment_type: CommentType) -> str:
    return f"{body}\n\n{marker(comment_type)}"


# =============================================================================
# ISSUE COMMENTS
# =============================================================================

async def add_comment(
    body: str,
    issue_number: int,
    ctx: ReconciliationContext,
    gh: GitHubClient,
    replacements: Optional[Mapping[str, str]] = None,
    comment_type: Optional[CommentType] = None,
) -> bool:
    """
    Post an interpolated comment on an issue or PR.

    Comments posted with a `comment_type` carry its hidden marker so that
    `remove_comments` can find them later. Returns False when the comment was
    skipped for missing permissions.
    """
    interpolated = interpolate(body, replacements)
    if comment_type is not None:
        interpolated = with_marker(interpolated, comment_type)

    url = f"{gh.repo_url(ctx.owner, ctx.repo)}/issues/{issue_number}/comments"
    try:
        await gh.post_json(url, {"body": interpolated})
    except Exception as comment_error:
        if ctx.continue_on_missing_permissions and is_missing_permissions(comment_error):
            workflow.warning(f'couldn\'t add comment "{body}": {MISSING_PERMISSIONS_DETAIL}')
            return False
        raise ReconcileError(f'error adding "{body}": {describe(comment_error)}') from comment_error

    return True


async def list_recent_comments(
    issue_number: int,
    ctx: ReconciliationContext,
    gh: GitHubClient,
) -> list[dict]:
    """Newest comments first, at most one page."""
    url = f"{gh.repo_url(ctx.owner, ctx.repo)}/issues/{issue_number}/comments"
    return await gh.get_json(
        url,
        params={"sort": "created", "direction": "desc", "per_page": COMMENTS_PER_PAGE},
    )


async def remove_comments(
    issue_number: int,
    comment_type: CommentType,
    ctx: ReconciliationContext,
    gh: GitHubClient,
) -> int:
    """
    Delete our own comments of `comment_type` from the issue.

    Only comments carrying the type's marker are touched. Deletions run
    concurrently and the first failure aborts the batch. Returns the number of
    comments deleted.
    """
    comments = await list_recent_comments(issue_number, ctx, gh)
    marked = [comment for comment in comments if has_marker(comment.get("body") or "", comment_type)]

    if not marked:
        return 0

    workflow.info(f"Removing {len(marked)} {comment_type.value} comment(s) from #{issue_number}")

    comments_url = f"{gh.repo_url(ctx.owner, ctx.repo)}/issues/comments"
    try:
        await asyncio.gather(*(gh.delete(f"{comments_url}/{comment['id']}") for comment in marked))
    except Exception as delete_error:
        raise ReconcileError(
            f"error removing {comment_type.value} comments from #{issue_number}: {describe(delete_error)}"
        ) from delete_error

    return len(marked)
