from __future__ import annotations

import asyncio
from dataclasses import replace
from typing import Awaitable, Callable, Optional

from conflictlabel.core.errors import UnknownMergeableStateError
from conflictlabel.core.pr_models import MergeableState, PullRequest, PullRequestPage
from conflictlabel.core.retry import RetryBudget
from conflictlabel.core.types import CommentType, DirtyStatusMap, ReconciliationContext
from conflictlabel.github import workflow
from conflictlabel.github.client.comment_api import add_comment, remove_comments
from conflictlabel.github.client.github_client import GitHubClient
from conflictlabel.github.client.label_api import add_label_if_absent, remove_label_if_present
from conflictlabel.github.client.pr_api import get_pull_requests


# =============================================================================
# PAGE LOADING
# =============================================================================

async def fetch_page(ctx: ReconciliationContext, gh: GitHubClient, is_first_page: bool) -> PullRequestPage:
    """
    Load the page at `ctx.after`.

    On pull_request runs the triggering PR is looked up by head branch and
    appended to the first page, so it gets evaluated even when the base
    branch filter would leave it out.
    """
    page = await get_pull_requests(
        ctx.owner,
        ctx.repo,
        gh,
        after=ctx.after,
        base_ref_name=ctx.base_ref_name,
    )
    workflow.debug(page.model_dump_json(indent=2))

    if not (ctx.head_ref_name and is_first_page):
        return page

    head_page = await get_pull_requests(ctx.owner, ctx.repo, gh, head_ref_name=ctx.head_ref_name)
    seen = {pr.number for pr in page.pull_requests}
    extra = [pr for pr in head_page.pull_requests if pr.number not in seen]
    return page.model_copy(update={"pull_requests": page.pull_requests + extra})


# =============================================================================
# PER-PR RECONCILIATION
# =============================================================================

async def _reconcile_conflicting(pr: PullRequest, ctx: ReconciliationContext, gh: GitHubClient) -> Optional[bool]:
    if pr.is_draft and ctx.skip_draft:
        _pr_info(pr, "skipping draft")
        return None

    _pr_info(pr, f'add "{ctx.dirty_label}", remove "{ctx.remove_on_dirty_label or "nothing"}"')

    async def _remove_on_dirty() -> bool:
        if not ctx.remove_on_dirty_label:
            return False
        return await remove_label_if_present(ctx.remove_on_dirty_label, pr, ctx, gh)

    # Independent mutations: the dirty label goes on whatever happens to the other one
    added_dirty_label, _ = await asyncio.gather(
        add_label_if_absent(ctx.dirty_label, pr, ctx, gh),
        _remove_on_dirty(),
    )

    # Only comment on the transition, not on every run while the PR stays dirty
    if added_dirty_label and ctx.comment_on_dirty:
        await add_comment(
            ctx.comment_on_dirty,
            pr.number,
            ctx,
            gh,
            replacements={"author": pr.author_login},
            comment_type=CommentType.DIRTY,
        )

    return True


async def _reconcile_mergeable(pr: PullRequest, ctx: ReconciliationContext, gh: GitHubClient) -> None:
    _pr_info(pr, f'remove "{ctx.dirty_label}"')

    removed_dirty_label = await remove_label_if_present(ctx.dirty_label, pr, ctx, gh)
    if not removed_dirty_label:
        # Already clean, comments were handled when the label came off
        return

    if ctx.remove_dirty_comment:
        await remove_comments(pr.number, CommentType.DIRTY, ctx, gh)

    if ctx.comment_on_clean:
        await add_comment(
            ctx.comment_on_clean,
            pr.number,
            ctx,
            gh,
            replacements={"author": pr.author_login},
        )

    # `remove_on_dirty_label` is not added back here: it usually means
    # "ready to merge" and should take another manual review after a rebase.


def _pr_info(pr: PullRequest, message: str) -> None:
    workflow.info(f'for PR "{pr.title}": {message}')


async def _process_page(
    page: PullRequestPage,
    ctx: ReconciliationContext,
    gh: GitHubClient,
    dirty_statuses: DirtyStatusMap,
    reconciled: set[int],
) -> Optional[PullRequest]:
    """
    Reconcile the PRs of one page in order, recording into `dirty_statuses`.

    PRs in `reconciled` were finished on an earlier page (the triggering PR
    appended to the first page shows up again on its own page) and are skipped.

    Stops at the first PR whose mergeable state is still UNKNOWN and returns
    it, None if the whole page was processed.
    """
    for pr in page.pull_requests:
        if pr.number in reconciled:
            continue
        workflow.debug(pr.model_dump_json(indent=2))

        if pr.mergeable == MergeableState.CONFLICTING:
            status = await _reconcile_conflicting(pr, ctx, gh)
            if status is not None:
                dirty_statuses[pr.number] = status
        elif pr.mergeable == MergeableState.MERGEABLE:
            # Recorded before mutating so the entry exists even when nothing changes
            dirty_statuses[pr.number] = False
            await _reconcile_mergeable(pr, ctx, gh)
        elif pr.mergeable == MergeableState.UNKNOWN:
            return pr
        else:
            raise UnknownMergeableStateError(pr.mergeable, pr.number)

    return None


# =============================================================================
# PASS DRIVER
# =============================================================================

async def check_dirty(
    ctx: ReconciliationContext,
    gh: GitHubClient,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> DirtyStatusMap:
    """
    Run one polling pass over the open PRs and return PR number -> dirty.

    Pages are walked from `ctx.after` until `hasNextPage` is false. When a PR
    is still UNKNOWN the rest of the current page is dropped, the pass waits
    `retry_after` seconds and re-fetches from the same cursor; pages already
    finished are not visited again. Once `retry_max` retries are used up the
    pass stops and returns what it has.

    Skipped drafts are absent from the result.
    """
    budget = RetryBudget(retry_after=ctx.retry_after, remaining=ctx.retry_max, sleep=sleep)
    dirty_statuses: DirtyStatusMap = {}
    # Only grows once a page completes, so a retried page is evaluated again
    reconciled: set[int] = set()
    page_ctx = ctx

    while True:
        if budget.exhausted:
            workflow.warning("reached maximum allowed retries")
            return dirty_statuses

        page = await fetch_page(page_ctx, gh, is_first_page=page_ctx.after == ctx.after)
        if not page.pull_requests:
            return dirty_statuses

        unknown_pr = await _process_page(page, page_ctx, gh, dirty_statuses, reconciled)
        if unknown_pr is not None:
            _pr_info(unknown_pr, f"Retrying after {budget.retry_after}s.")
            await budget.wait()
            workflow.info(f"retrying with {budget.remaining} retries remaining.")
            continue

        reconciled.update(pr.number for pr in page.pull_requests)
        if not page.page_info.has_next_page:
            return dirty_statuses

        page_ctx = replace(page_ctx, after=page.page_info.end_cursor)
