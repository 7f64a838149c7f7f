"""
GitHub implementation of the fetch service.

The query executor only depends on the FetchService protocol; this module
provides the concrete REST client used in production.
"""

import os
from typing import Any, Protocol

from prboard.exceptions import AuthError, ValidationError
from prboard.transport import AsyncHTTPTransport, RetryConfig
from prboard.types.records import RawRecordPage

# Lifecycle filter -> GitHub "state" query parameter
_PROVIDER_STATES = {
    "open": "open",
    "closed": "closed",
    "merged": "closed",
    "all": "all",
}


class FetchService(Protocol):
    """Fetch-by-page service consumed by the query executor."""

    async def list_records(
        self, repository: str, state: str, page: int, page_size: int
    ) -> RawRecordPage: ...

    async def list_labels(self, repository: str) -> list[dict[str, Any]]: ...


def split_repository(repository: str) -> tuple[str, str]:
    """Split "owner/name" into its parts."""
    owner, _, name = repository.strip().partition("/")
    if not owner or not name or "/" in name:
        raise ValidationError(f"Invalid repository identifier: {repository!r}")
    return owner, name


class GitHubFetchService:
    """
    Fetch service backed by the GitHub REST API.

    Example:
        ```python
        async with GitHubFetchService.from_token("ghp_...") as service:
            page = await service.list_records("octo/app", "open", 1, 100)
        ```
    """

    LABELS_PAGE_SIZE = 100

    def __init__(self, transport: AsyncHTTPTransport) -> None:
        """
        Initialize the fetch service.

        Args:
            transport: Async HTTP transport for making requests
        """
        self.transport = transport

    @classmethod
    def from_token(
        cls,
        token: str,
        base_url: str = AsyncHTTPTransport.DEFAULT_BASE_URL,
        timeout: float = 30.0,
        retry_config: RetryConfig | None = None,
    ) -> "GitHubFetchService":
        return cls(
            AsyncHTTPTransport(
                token=token,
                base_url=base_url,
                timeout=timeout,
                retry_config=retry_config,
            )
        )

    @classmethod
    def from_env(
        cls,
        timeout: float = 30.0,
        retry_config: RetryConfig | None = None,
    ) -> "GitHubFetchService":
        """
        Create a fetch service from environment variables.

        Environment variables:
            GITHUB_TOKEN: Token used for every request (required)
            GITHUB_API_URL: Base URL for API (optional, default: https://api.github.com)

        Raises:
            AuthError: If GITHUB_TOKEN is not set
        """
        token = os.environ.get("GITHUB_TOKEN")
        if not token:
            raise AuthError("GITHUB_TOKEN environment variable not set")

        base_url = os.environ.get("GITHUB_API_URL", AsyncHTTPTransport.DEFAULT_BASE_URL)
        return cls.from_token(token, base_url=base_url, timeout=timeout, retry_config=retry_config)

    async def close(self) -> None:
        await self.transport.close()

    async def __aenter__(self) -> "GitHubFetchService":
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.close()

    async def list_records(
        self, repository: str, state: str, page: int, page_size: int
    ) -> RawRecordPage:
        """
        List one page of pull requests for a repository.

        Args:
            repository: "owner/name"
            state: Lifecycle filter ("open", "closed", "merged", "all")
            page: 1-based page index
            page_size: Records per page (GitHub caps this at 100)

        Returns:
            RawRecordPage with the raw pull request payloads and whether a
            next page exists
        """
        owner, name = split_repository(repository)
        provider_state = _PROVIDER_STATES.get(state)
        if provider_state is None:
            raise ValidationError(f"Unsupported state filter: {state!r}")

        response = await self.transport.get(
            f"/repos/{owner}/{name}/pulls",
            params={
                "state": provider_state,
                "per_page": page_size,
                "page": page,
                "sort": "updated",
                "direction": "desc",
            },
        )

        records = response.json()
        return RawRecordPage(
            records=list(records),
            has_more="next" in response.links,
        )

    async def list_labels(self, repository: str) -> list[dict[str, Any]]:
        """List the labels defined on a repository, following pagination."""
        owner, name = split_repository(repository)

        labels: list[dict[str, Any]] = []
        page = 1
        while True:
            response = await self.transport.get(
                f"/repos/{owner}/{name}/labels",
                params={"per_page": self.LABELS_PAGE_SIZE, "page": page},
            )
            labels.extend(response.json())
            if "next" not in response.links:
                return labels
            page += 1
