import logging
from typing import Any, Dict, Optional
from urllib.parse import quote

import httpx

from authgate.core.config import settings
from authgate.core.constants import GITHUB_API_VERSION
from authgate.core.exceptions import GitHubAPIError
from authgate.core.http_utils import InstrumentedAsyncClient
from authgate.models.auth import AuthContext
from authgate.models.github_context import Repository

logger = logging.getLogger(__name__)


class GitHubClient:
    """
    Minimal async GitHub REST client for the calls the authorization gate makes.

    Every non-2xx response raises ``GitHubAPIError``; transport problems surface
    as httpx exceptions. Classifying those into policy outcomes is the job of
    ``authgate.core.api_call``, not of this client.

    Usage:
        async with GitHubClient(auth_context) as github:
            repo = await github.get_repository(repository)
    """

    def __init__(
        self,
        auth_context: AuthContext,
        api_url: Optional[str] = None,
        timeout: Optional[float] = None,
        **client_kwargs,
    ):
        self._auth_context = auth_context
        self.api_url = (api_url or settings.GITHUB_API_URL).rstrip("/")
        self._client = InstrumentedAsyncClient(
            "GitHub API",
            timeout=timeout if timeout is not None else settings.GITHUB_API_TIMEOUT,
            **client_kwargs,
        )

    async def __aenter__(self) -> "GitHubClient":
        await self._client.start()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self._client.close()

    def _get_headers(self) -> Dict[str, str]:
        return {
            "Authorization": f"Bearer {self._auth_context.token.get_secret_value()}",
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": GITHUB_API_VERSION,
        }

    @staticmethod
    def _repo_path(repository: Repository, suffix: str = "") -> str:
        return f"/repos/{quote(repository.owner, safe='')}/{quote(repository.repo, safe='')}{suffix}"

    @staticmethod
    def _error_message(response: httpx.Response) -> str:
        try:
            body = response.json()
        except ValueError:
            return response.text or response.reason_phrase
        if isinstance(body, dict) and body.get("message"):
            message = str(body["message"])
            # 422 bodies carry the reason in errors[].code, e.g. "already_exists"
            codes = [e["code"] for e in body.get("errors") or [] if isinstance(e, dict) and e.get("code")]
            if codes:
                message = f"{message}: {', '.join(codes)}"
            return message
        return response.reason_phrase

    async def _request(
        self,
        method: str,
        path: str,
        json: Optional[Dict[str, Any]] = None,
    ) -> Any:
        response = await self._client.request(
            method,
            f"{self.api_url}{path}",
            headers=self._get_headers(),
            json=json,
        )
        if response.is_error:
            raise GitHubAPIError(response.status_code, self._error_message(response), response.headers)
        if response.status_code == 204 or not response.content:
            return None
        return response.json()

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def get_repository(self, repository: Repository) -> Dict[str, Any]:
        """Repository metadata; ``permissions`` reflects the authenticated token."""
        return await self._request("GET", self._repo_path(repository))

    async def get_collaborator_permission_level(self, repository: Repository, username: str) -> Dict[str, Any]:
        """Permission level (admin, maintain, write, triage, read, none) of ``username``."""
        return await self._request(
            "GET",
            self._repo_path(repository, f"/collaborators/{quote(username, safe='')}/permission"),
        )

    async def get_user(self, username: str) -> Dict[str, Any]:
        """Public profile of ``username``, including its account ``type``."""
        return await self._request("GET", f"/users/{quote(username, safe='')}")

    # ------------------------------------------------------------------
    # Labels (write probe)
    # ------------------------------------------------------------------

    async def create_label(
        self,
        repository: Repository,
        name: str,
        color: str,
        description: str = "",
    ) -> Dict[str, Any]:
        return await self._request(
            "POST",
            self._repo_path(repository, "/labels"),
            json={"name": name, "color": color, "description": description},
        )

    async def delete_label(self, repository: Repository, name: str) -> None:
        await self._request("DELETE", self._repo_path(repository, f"/labels/{quote(name, safe='')}"))
