"""Async GitHub REST API client using httpx."""

from __future__ import annotations

import logging
from typing import Any

import httpx

from dependent_check.github.errors import (
    GitHubAPIError,
    GitHubAuthenticationError,
    GitHubNotFoundError,
    GitHubPermissionError,
)

logger = logging.getLogger("dependent_check")

_ERROR_MAP: dict[int, type[GitHubAPIError]] = {
    401: GitHubAuthenticationError,
    403: GitHubPermissionError,
    404: GitHubNotFoundError,
}


class GitHubClient:
    """Async wrapper around the parts of the GitHub REST API the check needs."""

    def __init__(
        self,
        base_url: str = "https://api.github.com",
        token: str | None = None,
        timeout: int = 30,
    ):
        headers = {
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": "2022-11-28",
            "User-Agent": "dependent-check/0.1",
        }
        if token:
            headers["Authorization"] = f"Bearer {token}"
        self._client = httpx.AsyncClient(
            base_url=base_url.rstrip("/"),
            headers=headers,
            timeout=timeout,
        )

    async def close(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> GitHubClient:
        return self

    async def __aexit__(self, *_args: Any) -> None:
        await self.close()

    # ------------------------------------------------------------------
    # Request helpers
    # ------------------------------------------------------------------

    async def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        try:
            response = await self._client.request(method, path, **kwargs)
        except httpx.HTTPError as e:
            raise GitHubAPIError(f"GitHub API {method} {path} failed: {e}") from e
        if response.status_code >= 400:
            body = response.text
            error_cls = _ERROR_MAP.get(response.status_code)
            message = f"GitHub API {method} {path} failed ({response.status_code}): {body}"
            if error_cls is None:
                raise GitHubAPIError(message, status_code=response.status_code)
            raise error_cls(message)
        try:
            return response.json()
        except ValueError as e:
            raise GitHubAPIError(
                f"GitHub API {method} {path} returned invalid JSON", status_code=response.status_code
            ) from e

    async def _get(self, path: str, **params: Any) -> Any:
        return await self._request("GET", path, params=params)

    # ------------------------------------------------------------------
    # Repositories
    # ------------------------------------------------------------------

    async def get_repository(self, org: str, repo: str) -> dict[str, Any]:
        return await self._get(f"/repos/{org}/{repo}")

    # ------------------------------------------------------------------
    # Pull requests
    # ------------------------------------------------------------------

    async def get_pull_request(self, org: str, repo: str, number: int) -> dict[str, Any]:
        logger.debug("Querying %s/%s#%d", org, repo, number)
        return await self._get(f"/repos/{org}/{repo}/pulls/{number}")

    async def get_pull_request_body(self, org: str, repo: str, number: int) -> str:
        """Return the description of a pull request; an empty one is returned as ""."""
        pull = await self.get_pull_request(org, repo, number)
        return pull.get("body") or ""
