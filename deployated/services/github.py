"""GitHub contents API client.

Reads repository listings and files for detection, and upserts the
generated workflow file.
"""

import base64
from typing import Any

import httpx

from deployated.config import Settings, get_settings
from deployated.core.exceptions import (
    ConfigurationMissingError,
    GitHubAPIError,
    PublishError,
)
from deployated.models.deployment import PublishResult
from deployated.models.workflow import WORKFLOW_PATH
from deployated.utils.logging import get_logger

COMMIT_MESSAGE = "Add CI/CD workflow"

_PUBLISH_HINTS: dict[int, list[str]] = {
    401: ["Check that GITHUB_TOKEN is valid and not expired"],
    403: [
        "Writing under .github/workflows requires a token with the 'workflow' scope",
        "Branch protection rules may reject direct pushes to this branch",
    ],
    404: [
        "Check that the repository exists and the token has write access",
        "Check that the target branch exists",
    ],
    409: ["The branch changed while pushing; run the command again"],
    422: ["The existing file changed while pushing; run the command again"],
}


class GitHubClient:
    """Thin async wrapper over the GitHub contents API."""

    def __init__(
        self,
        settings: Settings | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.settings = settings or get_settings()
        if not self.settings.github_token:
            raise ConfigurationMissingError("GITHUB_TOKEN", "GitHub")
        self._transport = transport
        self.logger = get_logger("github")

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self.settings.github_api_url,
            headers={
                "Authorization": f"Bearer {self.settings.github_token}",
                "Accept": "application/vnd.github.v3+json",
                "User-Agent": "Deployated-CLI",
            },
            timeout=30.0,
            transport=self._transport,
        )

    @staticmethod
    def _contents_url(owner: str, repo: str, path: str = "") -> str:
        return f"/repos/{owner}/{repo}/contents/{path.lstrip('/')}"

    def _translate(
        self, owner: str, repo: str, error: httpx.HTTPError
    ) -> GitHubAPIError:
        """Map an HTTP failure to a user-facing error."""
        if isinstance(error, httpx.HTTPStatusError):
            status = error.response.status_code
            if status == 404:
                return GitHubAPIError(
                    f"Repository {owner}/{repo} not found or is private", status
                )
            if status == 401:
                return GitHubAPIError(
                    "GitHub token is invalid or has insufficient permissions",
                    status,
                )
            return GitHubAPIError(
                f"Failed to fetch repository contents: HTTP {status}", status
            )
        return GitHubAPIError(f"Failed to fetch repository contents: {error}")

    async def list_directory(self, owner: str, repo: str, path: str = "") -> list[str]:
        """List entry names of a repository directory."""
        try:
            async with self._client() as client:
                response = await client.get(self._contents_url(owner, repo, path))
                response.raise_for_status()
        except httpx.HTTPError as e:
            raise self._translate(owner, repo, e) from e

        data = response.json()
        if not isinstance(data, list):
            # A file path was given; report it as a single entry
            return [data.get("name", path)]
        return [item["name"] for item in data]

    async def read_file(self, owner: str, repo: str, path: str) -> str | None:
        """Read a file's text, or None if it does not exist."""
        try:
            async with self._client() as client:
                response = await client.get(self._contents_url(owner, repo, path))
                if response.status_code == 404:
                    return None
                response.raise_for_status()
        except httpx.HTTPError as e:
            raise self._translate(owner, repo, e) from e

        data = response.json()
        if isinstance(data, list) or "content" not in data:
            return None
        if data.get("encoding", "base64") != "base64":
            return data["content"]
        return base64.b64decode(data["content"]).decode("utf-8", errors="replace")

    async def get_file_sha(
        self, owner: str, repo: str, path: str, branch: str | None = None
    ) -> str | None:
        """Return the blob sha of an existing file, or None."""
        params = {"ref": branch} if branch else None
        try:
            async with self._client() as client:
                response = await client.get(
                    self._contents_url(owner, repo, path), params=params
                )
                if response.status_code == 404:
                    return None
                response.raise_for_status()
        except httpx.HTTPError as e:
            raise self._translate(owner, repo, e) from e

        data = response.json()
        if isinstance(data, list):
            return None
        return data.get("sha")

    async def put_file(
        self,
        owner: str,
        repo: str,
        path: str,
        content: str,
        message: str,
        branch: str,
        sha: str | None = None,
    ) -> dict[str, Any]:
        """Create or update a file. Pass sha when the file already exists."""
        payload: dict[str, Any] = {
            "message": message,
            "content": base64.b64encode(content.encode("utf-8")).decode("ascii"),
            "branch": branch,
        }
        if sha:
            payload["sha"] = sha

        async with self._client() as client:
            response = await client.put(
                self._contents_url(owner, repo, path), json=payload
            )
            response.raise_for_status()
            return response.json()

    async def publish_workflow(
        self,
        owner: str,
        repo: str,
        content: str,
        path: str = WORKFLOW_PATH,
        message: str = COMMIT_MESSAGE,
        branch: str | None = None,
    ) -> PublishResult:
        """Upsert the workflow file on the target branch."""
        branch = branch or self.settings.github_branch

        try:
            sha = await self.get_file_sha(owner, repo, path, branch)
        except GitHubAPIError as e:
            raise PublishError(
                e.message,
                e.status_code,
                _PUBLISH_HINTS.get(e.status_code or 0),
            ) from e

        self.logger.info(
            "github.publishing_workflow",
            repo=f"{owner}/{repo}",
            path=path,
            branch=branch,
            existing=sha is not None,
        )

        try:
            data = await self.put_file(owner, repo, path, content, message, branch, sha)
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            self.logger.error(
                "github.publish_failed",
                status=status,
                body=e.response.text[:500],
            )
            raise PublishError(
                _error_message(e.response), status, _PUBLISH_HINTS.get(status)
            ) from e
        except httpx.HTTPError as e:
            raise PublishError(str(e)) from e

        commit = data.get("commit") or {}
        file_info = data.get("content") or {}
        return PublishResult(
            path=path,
            branch=branch,
            created=sha is None,
            commit_sha=commit.get("sha"),
            html_url=file_info.get("html_url"),
        )


def _error_message(response: httpx.Response) -> str:
    """Pull GitHub's error message out of a response body."""
    try:
        body = response.json()
    except ValueError:
        return f"HTTP {response.status_code}"
    if isinstance(body, dict) and body.get("message"):
        return f"HTTP {response.status_code}: {body['message']}"
    return f"HTTP {response.status_code}"
