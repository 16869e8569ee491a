from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

import httpx

from conflictlabel.core.errors import GraphQLError

DEFAULT_API_URL = "https://api.github.com"
DEFAULT_GRAPHQL_URL = "https://api.github.com/graphql"

MISSING_PERMISSIONS_MESSAGE = "Resource not accessible by integration"
MISSING_PERMISSIONS_DETAIL = (
    "Workflows can't access secrets and have read-only access to upstream when they are "
    "triggered by a pull request from a fork, [more information]"
    "(https://docs.github.com/en/actions/security-guides/automatic-token-authentication"
    "#permissions-for-the-github_token)"
)


@dataclass(frozen=True)
class GitHubClient:
    token: str
    api_url: str = DEFAULT_API_URL
    graphql_url: str = DEFAULT_GRAPHQL_URL
    # Tests swap in httpx.MockTransport
    transport: Optional[httpx.AsyncBaseTransport] = None

    def headers(self) -> dict[str, str]:
        return {
            "Authorization": f"token {self.token}",
            "Accept": "application/vnd.github+json",
            "User-Agent": "conflictlabel",
        }

    def repo_url(self, owner: str, repo: str) -> str:
        return f"{self.api_url.rstrip('/')}/repos/{owner}/{repo}"

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=30, transport=self.transport)

    async def get_json(self, url: str, params: Optional[dict[str, Any]] = None) -> Any:
        async with self._client() as client:
            r = await client.get(url, headers=self.headers(), params=params)
            r.raise_for_status()
            return r.json()

    async def post_json(self, url: str, body: dict) -> Any:
        async with self._client() as client:
            r = await client.post(url, headers=self.headers(), json=body)
            r.raise_for_status()
            return r.json()

    async def delete(self, url: str) -> None:
        async with self._client() as client:
            r = await client.delete(url, headers=self.headers())
            r.raise_for_status()

    async def graphql(self, query: str, variables: dict[str, Any]) -> dict:
        """Run a GraphQL query and return its `data` object."""
        response = await self.post_json(self.graphql_url, {"query": query, "variables": variables})
        if response.get("errors"):
            raise GraphQLError(response["errors"])
        return response["data"]


def error_message(error: httpx.HTTPStatusError) -> str:
    """The `message` field GitHub puts in error bodies, falling back to raw text."""
    try:
        body = error.response.json()
    except ValueError:
        return error.response.text
    if isinstance(body, dict) and body.get("message"):
        return str(body["message"])
    return error.response.text


def is_missing_permissions(error: Exception) -> bool:
    """
    True for the 403/404 GitHub returns when the token can't write to the repo,
    e.g. workflows triggered from forks.
    """
    if not isinstance(error, httpx.HTTPStatusError):
        return False
    if error.response.status_code not in (403, 404):
        return False
    return error_message(error).endswith(MISSING_PERMISSIONS_MESSAGE)


def is_not_found(error: Exception) -> bool:
    return isinstance(error, httpx.HTTPStatusError) and error.response.status_code == 404


def describe(error: Exception) -> str:
    if isinstance(error, httpx.HTTPStatusError):
        return f"HttpError {error.response.status_code}: {error_message(error)}"
    return str(error)
