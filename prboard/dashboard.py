"""
One user's dashboard: configuration, view state, pagination and grouping.

Fetching always covers every repository of the dashboard; the repository
subset, labels, authors and the rest are applied to the accumulated records
without re-fetching.
"""

from collections.abc import Sequence
from dataclasses import dataclass

from prboard.config import EnvDashboardConfiguration
from prboard.exceptions import AuthError, TransportError
from prboard.executor import QueryExecutor, normalize_repositories
from prboard.filtering import apply_filters, available_authors, available_branches
from prboard.grouping import group_records, string_to_color
from prboard.logging import get_logger
from prboard.pagination import PaginationController, SessionSnapshot
from prboard.preferences import Preferences, PreferencesStore
from prboard.types.dashboards import DashboardConfig
from prboard.types.filters import FilterOptions
from prboard.types.groups import GroupBucket
from prboard.types.records import Author, Label, Record
from prboard.viewstate import Location, ViewStateSynchronizer

logger = get_logger("dashboard")

DEFAULT_STATE = "open"


@dataclass(frozen=True)
class DashboardView:
    """Everything needed to render the dashboard at one point in time."""

    dashboard: DashboardConfig
    state: str
    filters: FilterOptions
    selected_repositories: tuple[str, ...]
    records: tuple[Record, ...]
    buckets: tuple[GroupBucket, ...]
    fetched_count: int
    status: str
    error: str | None
    has_more: bool
    can_load_more: bool
    last_updated: float | None
    labels: tuple[Label, ...]
    authors: tuple[Author, ...]
    branches: tuple[str, ...]
    preferences: Preferences
    repository_colors: dict[str, str]

    @property
    def filtered_count(self) -> int:
        return len(self.records)


class DashboardSession:
    """
    Drives one dashboard for one user.

    Example:
        ```python
        session = DashboardSession("frontend", config, executor, Location(query="labels=bug"))
        view = await session.open()
        await session.set_state("merged")
        ```
    """

    def __init__(
        self,
        dashboard_id: str,
        config: EnvDashboardConfiguration,
        executor: QueryExecutor,
        location: Location | None = None,
        preferences: PreferencesStore | None = None,
        controller: PaginationController | None = None,
        has_user_credential: bool = False,
    ) -> None:
        self.dashboard_id = dashboard_id
        self.config = config
        self.executor = executor
        self.location = location or Location(path=f"/{dashboard_id}")
        self.preferences_store = preferences or PreferencesStore()
        self.controller = controller or PaginationController(executor)
        self.has_user_credential = has_user_credential

        self.dashboard: DashboardConfig | None = None
        self.sync: ViewStateSynchronizer | None = None
        self.preferences = Preferences()
        self.labels: tuple[Label, ...] = ()

    @property
    def repositories(self) -> list[str]:
        return self.dashboard.repositories if self.dashboard else []

    async def open(self) -> DashboardView:
        """
        Load configuration and view state, then start fetching.

        Raises:
            ConfigurationError: If the dashboard is missing or the configuration is unparseable
            AuthError: If no credential is available
        """
        self.dashboard = self.config.get_dashboard(self.dashboard_id)

        if not (self.has_user_credential or self.config.has_server_credential()):
            raise AuthError()

        self.preferences = self.preferences_store.load(self.dashboard_id)

        dashboard = self.dashboard
        self.sync = ViewStateSynchronizer(
            self.location,
            lambda: dashboard.filter or self.config.get_defaults().filters,
        )
        view_state = self.sync.initialize()

        await self._load_labels()
        await self.controller.select(self.repositories, view_state.state or DEFAULT_STATE)
        return self.view()

    async def set_state(self, state: str) -> DashboardView:
        """Switch lifecycle state; starts a new fetch session."""
        self._require_open().set_state(state)
        await self.controller.select(self.repositories, state)
        return self.view()

    def set_filters(self, filters: FilterOptions) -> DashboardView:
        self._require_open().set_filters(filters)
        return self.view()

    def toggle_repository(self, repository: str) -> DashboardView:
        """Add or remove a repository from the selected subset."""
        selected = list(self._selected_repositories())
        if repository in selected:
            selected.remove(repository)
        elif repository in self.repositories:
            selected.append(repository)

        # An explicit subset equal to every repository is stored as no constraint
        subset = None if set(selected) == set(self.repositories) else selected
        filters = self._require_open().filters.with_changes(repositories=subset)
        return self.set_filters(filters)

    def set_grouping(
        self,
        group_by_labels: Sequence[str] = (),
        group_by_authors: Sequence[str] = (),
    ) -> DashboardView:
        self.preferences = Preferences(
            group_by_labels=list(group_by_labels),
            group_by_authors=list(group_by_authors),
        )
        self.preferences_store.save(self.dashboard_id, self.preferences)
        return self.view()

    async def refresh(self) -> DashboardView:
        await self.controller.refresh()
        return self.view()

    async def load_more(self) -> DashboardView:
        await self.controller.load_more()
        return self.view()

    async def on_visible(self) -> DashboardView:
        """Refresh when the view is foregrounded with stale data."""
        await self.controller.refresh_if_stale()
        return self.view()

    def view(self) -> DashboardView:
        """Re-derive the filtered and grouped view from the accumulated records."""
        sync = self._require_open()
        dashboard = self.dashboard

        snapshot: SessionSnapshot | None = self.controller.snapshot
        records: tuple[Record, ...] = snapshot.records if snapshot else ()

        selected = self._selected_repositories()
        filters = sync.filters.with_changes(repositories=list(selected))
        in_selected = [record for record in records if record.repository in selected]
        filtered = apply_filters(records, filters)
        authors = available_authors(in_selected)

        buckets = group_records(
            filtered,
            self.preferences.group_by_labels,
            self.preferences.group_by_authors,
            self.labels,
            authors,
        )

        return DashboardView(
            dashboard=dashboard,
            state=snapshot.state if snapshot else (sync.view_state.state or DEFAULT_STATE),
            filters=sync.filters,
            selected_repositories=selected,
            records=tuple(filtered),
            buckets=tuple(buckets),
            fetched_count=len(records),
            status=snapshot.status if snapshot else "idle",
            error=snapshot.error if snapshot else None,
            has_more=snapshot.has_more if snapshot else False,
            can_load_more=snapshot.can_load_more if snapshot else False,
            last_updated=snapshot.last_updated if snapshot else None,
            labels=self.labels,
            authors=tuple(authors),
            branches=tuple(available_branches(in_selected)),
            preferences=self.preferences,
            repository_colors={repo: string_to_color(repo) for repo in self.repositories},
        )

    def _selected_repositories(self) -> tuple[str, ...]:
        requested = self._require_open().filters.repositories
        if requested:
            return tuple(repo for repo in self.repositories if repo in requested)
        return tuple(self.repositories)

    async def _load_labels(self) -> None:
        if not self.repositories:
            self.labels = ()
            return
        try:
            page = await self.executor.fetch_labels(normalize_repositories(self.repositories))
        except TransportError as e:
            logger.error("Failed to fetch labels: %s", e.message)
            self.labels = ()
            return
        self.labels = page.data

    def _require_open(self) -> ViewStateSynchronizer:
        if self.sync is None or self.dashboard is None:
            raise RuntimeError("DashboardSession.open() has not been called")
        return self.sync
