"""
Framework-neutral HTTP endpoints over the query executor.

Each handler takes the request's query parameters and headers and returns an
ApiResponse carrying a status code and a JSON-serializable body, so it can be
mounted under any web framework.
"""

import json
from collections.abc import Callable, Mapping
from contextlib import AbstractAsyncContextManager
from dataclasses import dataclass, field
from typing import Any

from prboard.cache import CacheTTL, TTLCache
from prboard.config import EnvDashboardConfiguration
from prboard.exceptions import AuthError, ConfigurationError, TransportError, ValidationError
from prboard.executor import QueryExecutor, normalize_repositories
from prboard.github import FetchService, GitHubFetchService
from prboard.logging import get_logger

logger = get_logger("api")

TOKEN_HEADER = "x-github-token"
DEFAULT_PER_PAGE = 30

FetchServiceFactory = Callable[[str], AbstractAsyncContextManager[FetchService]]


@dataclass
class ApiResponse:
    """Status code and JSON body of an endpoint call."""

    status: int
    body: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def error(cls, status: int, message: str) -> "ApiResponse":
        return cls(status=status, body={"error": message})

    def to_json(self) -> str:
        return json.dumps(self.body)


def _int_param(params: Mapping[str, str], name: str, default: int) -> int:
    try:
        value = int(params.get(name) or default)
    except ValueError:
        return default
    return value if value > 0 else default


class DashboardAPI:
    """
    Endpoints for records, labels, defaults, dashboards and auth status.

    Example:
        ```python
        api = DashboardAPI.from_env()
        response = await api.get_pulls(
            {"repositories": "octo/app,octo/lib", "state": "open"},
            headers={},
        )
        ```
    """

    def __init__(
        self,
        config: EnvDashboardConfiguration,
        cache: TTLCache | None = None,
        fetch_service_factory: FetchServiceFactory = GitHubFetchService.from_token,
        ttl: CacheTTL | None = None,
    ) -> None:
        """
        Initialize the endpoints.

        Args:
            config: Dashboard configuration, also the source of the server token
            cache: Process-scoped cache shared by every request (default: new TTLCache)
            fetch_service_factory: Builds a fetch service for a token
            ttl: Time-to-live per resource kind
        """
        self.config = config
        self.cache = cache or TTLCache()
        self.fetch_service_factory = fetch_service_factory
        self.ttl = ttl or CacheTTL()

    @classmethod
    def from_env(cls) -> "DashboardAPI":
        return cls(EnvDashboardConfiguration())

    def resolve_token(self, headers: Mapping[str, str]) -> str:
        """
        Pick the caller-supplied token, falling back to the server token.

        Raises:
            AuthError: If neither is available
        """
        lowered = {key.lower(): value for key, value in headers.items()}
        token = lowered.get(TOKEN_HEADER) or self.config.server_token()
        if not token:
            raise AuthError()
        return token

    async def get_pulls(
        self, params: Mapping[str, str], headers: Mapping[str, str]
    ) -> ApiResponse:
        """
        Serve one merged page of pull requests.

        Query parameters: repositories (required, comma-separated), state
        (default "open"), page (default 1), perPage (default 30), refresh.
        """
        try:
            token = self.resolve_token(headers)
            repositories = normalize_repositories(params.get("repositories") or "")
            if not repositories:
                raise ValidationError(
                    "repositories parameter is required (comma-separated owner/repo)"
                )

            async with self.fetch_service_factory(token) as service:
                executor = QueryExecutor(service, self.cache, self.ttl)
                page = await executor.fetch_records(
                    repositories,
                    state=params.get("state") or "open",
                    page=_int_param(params, "page", 1),
                    page_size=_int_param(params, "perPage", DEFAULT_PER_PAGE),
                    force_refresh=params.get("refresh", "").lower() in ("1", "true"),
                )
            return ApiResponse(status=200, body=page.to_dict())
        except AuthError as e:
            return ApiResponse.error(401, e.message)
        except ValidationError as e:
            return ApiResponse.error(400, e.message)
        except TransportError as e:
            logger.error("Error fetching pull requests: %s", e.message)
            return ApiResponse.error(500, e.message)

    async def get_labels(
        self, params: Mapping[str, str], headers: Mapping[str, str]
    ) -> ApiResponse:
        """Serve the deduplicated label catalog. Requires repositories."""
        try:
            token = self.resolve_token(headers)
            repositories = normalize_repositories(params.get("repositories") or "")
            if not repositories:
                raise ValidationError(
                    "repositories parameter is required (comma-separated owner/repo)"
                )

            async with self.fetch_service_factory(token) as service:
                executor = QueryExecutor(service, self.cache, self.ttl)
                labels = await executor.fetch_labels(repositories)
            return ApiResponse(status=200, body=labels.to_dict())
        except AuthError as e:
            return ApiResponse.error(401, e.message)
        except ValidationError as e:
            return ApiResponse.error(400, e.message)
        except TransportError as e:
            logger.error("Error fetching labels: %s", e.message)
            return ApiResponse.error(500, e.message)

    def get_defaults(self) -> ApiResponse:
        return ApiResponse(status=200, body=self.config.get_defaults().to_dict())

    def get_dashboards(self) -> ApiResponse:
        try:
            dashboards = self.config.list_dashboards()
        except ConfigurationError as e:
            return ApiResponse.error(500, e.message)
        return ApiResponse(status=200, body={"dashboards": [d.to_dict() for d in dashboards]})

    def get_auth(self) -> ApiResponse:
        return ApiResponse(status=200, body={"hasToken": self.config.has_server_credential()})
