"""
Idempotent label mutations.

Both helpers decide from the labels observed at query time; they report
whether they actually changed anything so callers can react to transitions.
PRs and issues share the same label endpoints.
"""
from __future__ import annotations

from urllib.parse import quote

from conflictlabel.core.errors import ReconcileError
from conflictlabel.core.pr_models import PullRequest
from conflictlabel.core.types import ReconciliationContext
from conflictlabel.github import workflow
from conflictlabel.github.client.github_client import (
    MISSING_PERMISSIONS_DETAIL,
    GitHubClient,
    describe,
    is_missing_permissions,
    is_not_found,
)


async def add_label_if_absent(
    label: str,
    pr: PullRequest,
    ctx: ReconciliationContext,
    gh: GitHubClient,
) -> bool:
    """
    Add `label` unless the PR already carries it.

    Returns True only if the label was added by this call.
    """
    workflow.debug(f"labels on #{pr.number}: {pr.labels}")

    if pr.has_label(label):
        workflow.info(f"Issue #{pr.number} already has label '{label}'. No need to add.")
        return False

    url = f"{gh.repo_url(ctx.owner, ctx.repo)}/issues/{pr.number}/labels"
    try:
        await gh.post_json(url, {"labels": [label]})
    except Exception as add_error:
        if ctx.continue_on_missing_permissions and is_missing_permissions(add_error):
            workflow.warning(f'could not add label "{label}": {MISSING_PERMISSIONS_DETAIL}')
            return False
        raise ReconcileError(f'error adding "{label}": {describe(add_error)}') from add_error

    return True


async def remove_label_if_present(
    label: str,
    pr: PullRequest,
    ctx: ReconciliationContext,
    gh: GitHubClient,
) -> bool:
    """
    Remove `label` if the PR carries it.

    A 404 means someone else removed it in the meantime, which is fine.
    Returns True only if the label was removed by this call.
    """
    if not pr.has_label(label):
        workflow.info(f"Issue #{pr.number} does not have label '{label}'. No need to remove.")
        return False

    url = f"{gh.repo_url(ctx.owner, ctx.repo)}/issues/{pr.number}/labels/{quote(label, safe='')}"
    try:
        await gh.delete(url)
    except Exception as remove_error:
        if ctx.continue_on_missing_permissions and is_missing_permissions(remove_error):
            workflow.warning(f'could not remove label "{label}": {MISSING_PERMISSIONS_DETAIL}')
            return False
        if not is_not_found(remove_error) or is_missing_permissions(remove_error):
            raise ReconcileError(f'error removing "{label}": {describe(remove_error)}') from remove_error

        workflow.info(
            f'On #{pr.number} label "{label}" doesn\'t need to be removed '
            f"since it doesn't exist on that issue."
        )
        return False

    return True
