from __future__ import annotations

import asyncio

import httpx
import pytest

from conflictlabel.core.errors import GraphQLError
from conflictlabel.github.client.github_client import (
    MISSING_PERMISSIONS_MESSAGE,
    GitHubClient,
    is_missing_permissions,
    is_not_found,
)
from conflictlabel.github.client.pr_api import get_pull_requests

from fake_github import OWNER, REPO, FakeGitHub, pr_node


def _status_error(status: int, body: object) -> httpx.HTTPStatusError:
    request = httpx.Request("POST", "https://api.github.com/repos/o/r/issues/1/labels")
    response = httpx.Response(status, json=body, request=request)
    return httpx.HTTPStatusError("failed", request=request, response=response)


@pytest.mark.parametrize("status", [403, 404])
def test_missing_permissions_detected(status: int) -> None:
    assert is_missing_permissions(_status_error(status, {"message": MISSING_PERMISSIONS_MESSAGE}))


def test_missing_permissions_requires_message_and_status() -> None:
    assert not is_missing_permissions(_status_error(404, {"message": "Not Found"}))
    assert not is_missing_permissions(_status_error(500, {"message": MISSING_PERMISSIONS_MESSAGE}))
    assert not is_missing_permissions(RuntimeError(MISSING_PERMISSIONS_MESSAGE))


def test_is_not_found() -> None:
    assert is_not_found(_status_error(404, {"message": "Not Found"}))
    assert not is_not_found(_status_error(410, {"message": "Gone"}))


def test_sends_token_and_repo_scoped_urls() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json=[])

    gh = GitHubClient("s3cret", api_url="https://ghe.example.com/api/v3/", transport=httpx.MockTransport(handler))
    asyncio.run(gh.get_json(f"{gh.repo_url(OWNER, REPO)}/issues/1/comments"))

    (request,) = seen
    assert request.headers["Authorization"] == "token s3cret"
    assert str(request.url) == f"https://ghe.example.com/api/v3/repos/{OWNER}/{REPO}/issues/1/comments"


def test_graphql_errors_raise() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"data": None, "errors": [{"message": "Could not resolve to a Repository"}]})

    gh = GitHubClient("s3cret", transport=httpx.MockTransport(handler))

    with pytest.raises(GraphQLError, match="Could not resolve to a Repository"):
        asyncio.run(get_pull_requests(OWNER, REPO, gh))


def test_transport_errors_propagate_unmodified() -> None:
    github = FakeGitHub()
    github.failures[("POST", "/graphql")] = (502, "Bad Gateway")

    with pytest.raises(httpx.HTTPStatusError):
        asyncio.run(get_pull_requests(OWNER, REPO, github.client()))


def test_get_pull_requests_parses_page() -> None:
    github = FakeGitHub([[pr_node(1, "CONFLICTING", labels=["conflict"])], [pr_node(2)]])

    page = asyncio.run(get_pull_requests(OWNER, REPO, github.client(), base_ref_name="main"))

    assert [pr.number for pr in page.pull_requests] == [1]
    assert page.pull_requests[0].labels == ["conflict"]
    assert page.page_info.has_next_page is True
    assert page.page_info.end_cursor == "cursor-1"
    (_, variables, _), = github.calls
    assert variables == {
        "owner": OWNER,
        "repo": REPO,
        "after": None,
        "baseRefName": "main",
        "headRefName": None,
    }
