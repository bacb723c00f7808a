"""Async GitHub REST client for the three calls the bot needs.

Compares two commits, fetches raw file contents at a ref, and posts an issue
comment on a pull request.
"""

from __future__ import annotations

import logging
from typing import Any, cast
from urllib.parse import quote

import httpx

from prhawk.analysis.models import ChangedFile
from prhawk.config import GitHubConfig
from prhawk.exceptions import CommentError, ContentUnavailableError, FetchError

# HTTP request logs at INFO are too chatty for a webhook server
logging.getLogger("httpx").setLevel(logging.WARNING)
logging.getLogger("httpcore").setLevel(logging.WARNING)

logger = logging.getLogger(__name__)

__all__ = ["GitHubClient"]

GITHUB_ACCEPT = "application/vnd.github+json"
GITHUB_API_VERSION = "2022-11-28"


class GitHubClient:
    """Thin async wrapper over the GitHub REST API.

    Example:
        >>> async with GitHubClient(GitHubConfig()) as github:
        ...     files = await github.compare_commits("octo/repo", base_sha, head_sha)
    """

    def __init__(
        self,
        config: GitHubConfig | None = None,
        token: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.config = config or GitHubConfig()
        token = token or self.config.token

        headers = {
            "Accept": GITHUB_ACCEPT,
            "X-GitHub-Api-Version": GITHUB_API_VERSION,
            "User-Agent": "prhawk",
        }
        if token:
            headers["Authorization"] = f"Bearer {token}"

        self._client = httpx.AsyncClient(
            base_url=self.config.api_url,
            headers=headers,
            timeout=httpx.Timeout(self.config.timeout),
            limits=httpx.Limits(max_connections=self.config.max_connections),
            transport=transport,
        )

    async def __aenter__(self) -> GitHubClient:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def compare_commits(self, repo: str, base: str, head: str) -> list[ChangedFile]:
        """List the files changed between two commits.

        Raises:
            FetchError: If the comparison could not be fetched.
        """
        data = await self._get_json(
            f"/repos/{repo}/compare/{base}...{head}",
            what=f"comparison {base[:7]}...{head[:7]}",
        )
        return [
            ChangedFile(filename=f["filename"], status=f.get("status", "modified"))
            for f in data.get("files", [])
        ]

    async def get_content(self, repo: str, path: str, ref: str) -> str:
        """Fetch a file at `ref` and return its base64-encoded content.

        Raises:
            FetchError: If the file is missing at `ref` or the request fails.
            ContentUnavailableError: If the entry is not a file or its content
                is not inlined as base64.
        """
        data = await self._get_json(
            f"/repos/{repo}/contents/{quote(path, safe='/')}",
            params={"ref": ref},
            what=f"{path}@{ref[:7]}",
        )
        if isinstance(data, list) or data.get("type") != "file":
            kind = "directory" if isinstance(data, list) else data.get("type")
            raise ContentUnavailableError(f"{path}@{ref} is a {kind}, not a file")
        if data.get("encoding") != "base64":
            raise ContentUnavailableError(
                f"{path}@{ref} has unsupported encoding '{data.get('encoding')}'"
            )
        # The API wraps base64 at 60 columns
        return "".join(data.get("content", "").split())

    async def create_comment(self, repo: str, number: int, body: str) -> int:
        """Post a new comment on a pull request and return its id.

        Raises:
            CommentError: If the comment could not be created.
        """
        try:
            response = await self._client.post(
                f"/repos/{repo}/issues/{number}/comments",
                json={"body": body},
            )
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise CommentError(
                f"Could not comment on {repo}#{number}: {e.response.text}",
                status_code=e.response.status_code,
            ) from e
        except httpx.HTTPError as e:
            raise CommentError(f"Could not comment on {repo}#{number}: {e}") from e

        comment_id = cast(dict[str, Any], response.json()).get("id")
        logger.debug("Created comment %s on %s#%d", comment_id, repo, number)
        return int(comment_id) if comment_id is not None else 0

    async def _get_json(
        self,
        url: str,
        what: str,
        params: dict[str, str] | None = None,
    ) -> Any:
        try:
            response = await self._client.get(url, params=params)
            response.raise_for_status()
            return response.json()
        except httpx.HTTPStatusError as e:
            raise FetchError(
                f"Could not fetch {what}: HTTP {e.response.status_code}",
                status_code=e.response.status_code,
            ) from e
        except httpx.HTTPError as e:
            raise FetchError(f"Could not fetch {what}: {e}") from e
