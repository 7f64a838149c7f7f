"""
Dashboard configuration loaded from the environment.

Environment variables:
    GITHUB_DASHBOARDS: JSON array of {"id", "name", "repos", "filter"} objects
    GITHUB_DEFAULT_REPOS: Comma-separated default repositories
    GITHUB_DEFAULT_FILTER: Default filter query string
    GITHUB_TOKEN: Server-side credential for the fetch service
"""

import json
import os
from collections.abc import Mapping
from typing import Protocol

from prboard.exceptions import ConfigurationError
from prboard.logging import get_logger
from prboard.types.dashboards import DashboardConfig, Defaults, split_csv

logger = get_logger("config")


class DashboardConfiguration(Protocol):
    """Source of dashboards, defaults and the server credential."""

    def list_dashboards(self) -> list[DashboardConfig]: ...

    def get_defaults(self) -> Defaults: ...

    def has_server_credential(self) -> bool: ...


class EnvDashboardConfiguration:
    """DashboardConfiguration backed by environment variables."""

    def __init__(self, environ: Mapping[str, str] | None = None) -> None:
        """
        Args:
            environ: Variables to read (default: os.environ)
        """
        self._environ = os.environ if environ is None else environ

    def list_dashboards(self) -> list[DashboardConfig]:
        """
        Parse GITHUB_DASHBOARDS.

        Raises:
            ConfigurationError: If the value is not a JSON array of dashboard objects
        """
        raw = self._environ.get("GITHUB_DASHBOARDS", "[]") or "[]"
        try:
            entries = json.loads(raw)
        except json.JSONDecodeError as e:
            logger.error("Failed to parse GITHUB_DASHBOARDS: %s", e)
            raise ConfigurationError(f"GITHUB_DASHBOARDS is not valid JSON: {e}") from e

        if not isinstance(entries, list):
            raise ConfigurationError("GITHUB_DASHBOARDS must be a JSON array")

        dashboards: list[DashboardConfig] = []
        for entry in entries:
            if not isinstance(entry, dict) or not entry.get("id"):
                raise ConfigurationError(f"Invalid dashboard entry: {entry!r}")
            dashboards.append(
                DashboardConfig(
                    id=str(entry["id"]),
                    name=str(entry.get("name") or entry["id"]),
                    repos=str(entry.get("repos", "")),
                    filter=str(entry.get("filter", "")),
                )
            )
        return dashboards

    def get_dashboard(self, dashboard_id: str) -> DashboardConfig:
        """
        Look up one dashboard by id.

        Raises:
            ConfigurationError: If no dashboard has that id
        """
        for dashboard in self.list_dashboards():
            if dashboard.id == dashboard_id:
                return dashboard
        raise ConfigurationError(f'Dashboard "{dashboard_id}" not found')

    def get_defaults(self) -> Defaults:
        return Defaults(
            repositories=split_csv(self._environ.get("GITHUB_DEFAULT_REPOS")),
            filters=self._environ.get("GITHUB_DEFAULT_FILTER", ""),
        )

    def server_token(self) -> str | None:
        return self._environ.get("GITHUB_TOKEN") or None

    def has_server_credential(self) -> bool:
        return self.server_token() is not None
