"""prboard - cached pull request aggregation, filtering and grouping for dashboards."""

from prboard.api import ApiResponse, DashboardAPI
from prboard.cache import CacheTTL, TTLCache
from prboard.config import DashboardConfiguration, EnvDashboardConfiguration
from prboard.dashboard import DashboardSession, DashboardView
from prboard.exceptions import (
    AuthError,
    ConfigurationError,
    NotFoundError,
    PRBoardError,
    RateLimitedError,
    ServerError,
    TransportError,
    ValidationError,
)
from prboard.executor import (
    LabelsPage,
    QueryExecutor,
    RecordsPage,
    build_cache_key,
    normalize_repositories,
)
from prboard.filtering import apply_filters, available_authors, available_branches
from prboard.github import FetchService, GitHubFetchService
from prboard.grouping import group_records
from prboard.logging import configure_logging, get_logger
from prboard.pagination import PaginationController, SessionSnapshot
from prboard.preferences import Preferences, PreferencesStore
from prboard.transport import AsyncHTTPTransport, RetryConfig
from prboard.viewstate import (
    Location,
    ViewStateSynchronizer,
    parse_view_state,
    serialize_view_state,
)

__version__ = "0.1.0"

__all__ = [
    "__version__",
    # Cache and query execution
    "TTLCache",
    "CacheTTL",
    "QueryExecutor",
    "RecordsPage",
    "LabelsPage",
    "build_cache_key",
    "normalize_repositories",
    # Pagination
    "PaginationController",
    "SessionSnapshot",
    # Filtering and grouping
    "apply_filters",
    "available_authors",
    "available_branches",
    "group_records",
    # View state
    "Location",
    "ViewStateSynchronizer",
    "parse_view_state",
    "serialize_view_state",
    # Dashboard
    "DashboardSession",
    "DashboardView",
    "DashboardAPI",
    "ApiResponse",
    "DashboardConfiguration",
    "EnvDashboardConfiguration",
    "Preferences",
    "PreferencesStore",
    # Fetch service
    "FetchService",
    "GitHubFetchService",
    "AsyncHTTPTransport",
    "RetryConfig",
    # Exceptions
    "PRBoardError",
    "ConfigurationError",
    "AuthError",
    "ValidationError",
    "TransportError",
    "NotFoundError",
    "RateLimitedError",
    "ServerError",
    # Logging
    "configure_logging",
    "get_logger",
]
