"""GitLab API client for fetching repository tags.

One request per application:

    GET {api_base}/api/v4/projects/{url-encoded path}/repository/tags
    Authorization: Bearer <token>

The response body is a JSON array of tag objects, returned as-is. Only
the first page is read; the deployment projects carry few enough tags
that the default page covers them.

Design notes:
- Uses httpx for async HTTP requests
- Uses a Protocol so the aggregator doesn't depend on the concrete client
  (tests pass MockTagClient instead)

GitLab API docs: https://docs.gitlab.com/ee/api/tags.html
"""

from __future__ import annotations

from typing import Any, Protocol
from urllib.parse import quote

import httpx

from release_feed.errors import FetchError

# ---------------------------------------------------------------------------
# Protocol (Interface)
# ---------------------------------------------------------------------------


class TagFetcherProtocol(Protocol):
    """Interface for anything that can list a project's tags."""

    async def get_tags(self, project: str, token: str) -> list[dict[str, Any]]:
        """Fetch the raw tag list of a project.

        Args:
            project: Project path on the hosting API (e.g., "deployment/wallet")
            token: API token with read access to the project

        Returns:
            Raw tag records, in the order the API returned them

        Raises:
            FetchError: If the tags could not be fetched
        """
        ...


# ---------------------------------------------------------------------------
# Concrete Implementation
# ---------------------------------------------------------------------------


class GitLabTagClient:
    """Tag fetcher backed by the GitLab REST API.

    Usage:
        client = GitLabTagClient(api_base="https://gitlab.example.com")
        tags = await client.get_tags("deployment/wallet", token="glpat-...")
    """

    def __init__(
        self,
        api_base: str,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            api_base: Base URL of the GitLab instance
            timeout: Request timeout in seconds
            transport: Optional httpx transport (tests use httpx.MockTransport)
        """
        self._api_base = api_base.rstrip("/")
        self._timeout = timeout
        self._transport = transport

    @staticmethod
    def tags_path(project: str) -> str:
        """API path of a project's tag list; the project path is fully encoded."""
        return f"/api/v4/projects/{quote(project, safe='')}/repository/tags"

    async def get_tags(self, project: str, token: str) -> list[dict[str, Any]]:
        """Fetch the raw tag list of a project.

        Raises:
            FetchError: On connection errors, non-success status codes, or
                        a body that is not a JSON array
        """
        async with httpx.AsyncClient(
            base_url=self._api_base,
            headers={"Authorization": f"Bearer {token}"},
            timeout=self._timeout,
            transport=self._transport,
        ) as client:
            try:
                resp = await client.get(self.tags_path(project))
                resp.raise_for_status()
                data = resp.json()
            except httpx.HTTPStatusError as exc:
                raise FetchError(
                    project, f"HTTP {exc.response.status_code} from tags endpoint"
                ) from exc
            except httpx.HTTPError as exc:
                raise FetchError(project, f"request failed: {exc}") from exc
            except ValueError as exc:
                raise FetchError(project, "response body is not JSON") from exc

        if not isinstance(data, list):
            raise FetchError(project, "expected a JSON array of tags")
        return data


# ---------------------------------------------------------------------------
# Mock Implementation (for testing)
# ---------------------------------------------------------------------------


class MockTagClient:
    """Fetcher returning predefined tags without touching the network.

    Usage:
        client = MockTagClient(tags={"deployment/wallet": [tag, ...]})
        tags = await client.get_tags("deployment/wallet", "token")
    """

    def __init__(
        self,
        tags: dict[str, list[dict[str, Any]]] | None = None,
        failing: set[str] | None = None,
    ) -> None:
        """Initialize with predefined data.

        Args:
            tags: Project path -> raw tag list. Unknown projects have no tags.
            failing: Project paths whose fetch raises FetchError
        """
        self._tags = tags or {}
        self._failing = failing or set()
        self.calls: list[tuple[str, str]] = []

    async def get_tags(self, project: str, token: str) -> list[dict[str, Any]]:
        self.calls.append((project, token))
        if project in self._failing:
            raise FetchError(project, "HTTP 503 from tags endpoint")
        return list(self._tags.get(project, []))
