from __future__ import annotations

from typing import Optional

from conflictlabel.core.pr_models import PageInfo, PullRequest, PullRequestPage
from conflictlabel.github.client.github_client import GitHubClient

PAGE_SIZE = 100

# Don't send the merge-info preview Accept header: with it `mergeable`
# reports UNKNOWN where it would otherwise say CONFLICTING.
OPEN_PULL_REQUESTS_QUERY = """
query openPullRequests($owner: String!, $repo: String!, $after: String, $baseRefName: String, $headRefName: String) {
  repository(owner: $owner, name: $repo) {
    pullRequests(first: 100, after: $after, states: OPEN, baseRefName: $baseRefName, headRefName: $headRefName) {
      nodes {
        mergeable
        number
        permalink
        title
        isDraft
        author {
          login
        }
        updatedAt
        labels(first: 100) {
          nodes {
            name
          }
        }
      }
      pageInfo {
        endCursor
        hasNextPage
      }
    }
  }
}
"""


async def get_pull_requests(
    owner: str,
    repo: str,
    gh: GitHubClient,
    after: Optional[str] = None,
    base_ref_name: Optional[str] = None,
    head_ref_name: Optional[str] = None,
) -> PullRequestPage:
    """
    Fetch one page of open pull requests.

    Transport errors propagate as-is; retrying is decided by the caller based
    on the mergeable state, not on the fetch.
    """
    data = await gh.graphql(
        OPEN_PULL_REQUESTS_QUERY,
        {
            "owner": owner,
            "repo": repo,
            "after": after,
            "baseRefName": base_ref_name,
            "headRefName": head_ref_name,
        },
    )

    pull_requests = data["repository"]["pullRequests"]
    return PullRequestPage(
        pull_requests=[PullRequest.model_validate(node) for node in pull_requests["nodes"] if node],
        page_info=PageInfo.model_validate(pull_requests["pageInfo"]),
    )
