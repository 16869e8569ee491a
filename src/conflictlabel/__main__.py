from __future__ import annotations

import asyncio
import json
import traceback

from dotenv import load_dotenv

from conflictlabel.core.config_models import ActionInputs
from conflictlabel.core.types import DirtyStatusMap, ReconciliationContext
from conflictlabel.github import workflow
from conflictlabel.github.client.github_client import GitHubClient
from conflictlabel.github.event import EventContext
from conflictlabel.reconcile import check_dirty

PR_DIRTY_STATUSES_OUTPUT = "prDirtyStatuses"


def build_context(inputs: ActionInputs, event: EventContext) -> ReconciliationContext:
    return ReconciliationContext(
        owner=event.owner,
        repo=event.repo,
        base_ref_name=event.base_ref_name,
        head_ref_name=event.head_ref_name,
        dirty_label=inputs.dirty_label,
        remove_on_dirty_label=inputs.remove_on_dirty_label,
        comment_on_dirty=inputs.comment_on_dirty,
        comment_on_clean=inputs.comment_on_clean,
        skip_draft=inputs.skip_draft,
        remove_dirty_comment=inputs.remove_dirty_comment,
        continue_on_missing_permissions=inputs.continue_on_missing_permissions,
        retry_after=inputs.retry_after,
        retry_max=inputs.retry_max,
    )


def serialize_statuses(dirty_statuses: DirtyStatusMap) -> str:
    return json.dumps({str(number): dirty for number, dirty in dirty_statuses.items()})


async def run() -> DirtyStatusMap:
    inputs = ActionInputs.from_env()
    event = EventContext.from_env()

    if not event.is_supported:
        workflow.info(f"Event '{event.event_name}' is neither a push nor a pull_request event, nothing to do.")
        workflow.set_output(PR_DIRTY_STATUSES_OUTPUT, serialize_statuses({}))
        return {}

    workflow.debug(f"event = {event.event_name}, base = {event.base_ref_name}, head = {event.head_ref_name}")

    gh = GitHubClient(inputs.repo_token, api_url=event.api_url, graphql_url=event.graphql_url)
    dirty_statuses = await check_dirty(build_context(inputs, event), gh)

    workflow.info(f"Checked {len(dirty_statuses)} pull request(s)")
    workflow.set_output(PR_DIRTY_STATUSES_OUTPUT, serialize_statuses(dirty_statuses))
    return dirty_statuses


def main() -> None:
    load_dotenv()
    try:
        asyncio.run(run())
    except Exception as error:
        workflow.debug(traceback.format_exc())
        workflow.set_failed(str(error))


if __name__ == "__main__":
    main()
