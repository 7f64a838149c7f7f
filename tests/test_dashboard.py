"""
End-to-end tests for a dashboard session over the mock fetch service.
"""

import json

import pytest

from prboard.cache import TTLCache
from prboard.config import EnvDashboardConfiguration
from prboard.dashboard import DashboardSession
from prboard.exceptions import AuthError, ConfigurationError, ServerError
from prboard.executor import QueryExecutor
from prboard.grouping import OTHER_KEY, string_to_color
from prboard.pagination import COMPLETE, PaginationController
from prboard.preferences import Preferences, PreferencesStore
from prboard.testing import FakeClock, MockFetchService, create_raw_pull_request
from prboard.types import FilterOptions
from prboard.viewstate import Location

DASHBOARDS = [
    {"id": "web", "name": "Web", "repos": "a/x,a/y", "filter": "labels=type:bug"},
    {"id": "api", "name": "API", "repos": "a/z"},
]


def make_config(**extra: str) -> EnvDashboardConfiguration:
    environ = {"GITHUB_DASHBOARDS": json.dumps(DASHBOARDS), "GITHUB_TOKEN": "ghp_server"}
    environ.update(extra)
    return EnvDashboardConfiguration(environ)


def make_service() -> MockFetchService:
    service = MockFetchService()
    service.configure_page(
        "a/x",
        records=[
            create_raw_pull_request(1, "a/x", author="alice", labels=("type:bug",)),
            create_raw_pull_request(2, "a/x", author="bob", labels=("docs",), base="develop"),
        ],
    )
    service.configure_page(
        "a/y",
        records=[create_raw_pull_request(3, "a/y", author="carol", labels=("type:bug", "docs"))],
    )
    service.configure_labels("a/x", [{"name": "type:bug", "color": "d73a4a"}, {"name": "docs"}])
    service.configure_labels("a/y", [{"name": "type:feature"}])
    return service


def make_session(
    service: MockFetchService,
    dashboard_id: str = "web",
    query: str = "",
    config: EnvDashboardConfiguration | None = None,
    storage: dict[str, str] | None = None,
    clock: FakeClock | None = None,
) -> DashboardSession:
    clock = clock or FakeClock()
    executor = QueryExecutor(service, TTLCache(clock=clock), clock=clock)
    return DashboardSession(
        dashboard_id,
        config or make_config(),
        executor,
        location=Location(path=f"/{dashboard_id}", query=query),
        preferences=PreferencesStore(storage),
        controller=PaginationController(executor, clock=clock),
    )


class TestOpen:
    """Tests for DashboardSession.open."""

    @pytest.mark.asyncio
    async def test_dashboard_filter_applied_when_url_is_empty(self) -> None:
        session = make_session(make_service())

        view = await session.open()

        assert view.status == COMPLETE
        assert view.state == "open"
        assert view.fetched_count == 3
        assert [r.number for r in view.records] == [3, 1]
        assert view.filtered_count == 2
        assert session.location.query == "labels=type%3Abug"
        assert [label.name for label in view.labels] == ["type:bug", "docs", "type:feature"]
        assert set(view.repository_colors) == {"a/x", "a/y"}
        assert view.repository_colors["a/x"] == string_to_color("a/x")

    @pytest.mark.asyncio
    async def test_url_parameters_win_over_dashboard_filter(self) -> None:
        service = make_service()
        service.configure_page("a/x", records=[create_raw_pull_request(9, "a/x", merged=True)])
        service.configure_page("a/y", records=[])
        session = make_session(service, query="state=merged")

        view = await session.open()

        assert view.state == "merged"
        assert view.filters.labels is None
        assert [r.number for r in view.records] == [9]
        assert service.get_calls("list_records")[0].args[1] == "merged"

    @pytest.mark.asyncio
    async def test_server_default_filter_used_without_dashboard_filter(self) -> None:
        service = MockFetchService()
        service.configure_page(
            "a/z",
            records=[
                create_raw_pull_request(1, "a/z", author="alice"),
                create_raw_pull_request(2, "a/z", author="bob"),
            ],
        )
        session = make_session(
            service, "api", config=make_config(GITHUB_DEFAULT_FILTER="authors=bob")
        )

        view = await session.open()

        assert [r.number for r in view.records] == [2]
        assert session.location.query == "authors=bob"

    @pytest.mark.asyncio
    async def test_unknown_dashboard(self) -> None:
        session = make_session(make_service(), "mobile")
        with pytest.raises(ConfigurationError):
            await session.open()

    @pytest.mark.asyncio
    async def test_missing_credential(self) -> None:
        config = EnvDashboardConfiguration({"GITHUB_DASHBOARDS": json.dumps(DASHBOARDS)})
        service = make_service()
        session = make_session(service, config=config)

        with pytest.raises(AuthError):
            await session.open()
        assert not service.was_called("list_records")

    @pytest.mark.asyncio
    async def test_user_credential_is_enough(self) -> None:
        config = EnvDashboardConfiguration({"GITHUB_DASHBOARDS": json.dumps(DASHBOARDS)})
        executor = QueryExecutor(make_service(), TTLCache())
        session = DashboardSession("web", config, executor, has_user_credential=True)

        view = await session.open()

        assert view.fetched_count == 3
        assert session.location.path == "/web"

    @pytest.mark.asyncio
    async def test_label_failure_leaves_catalog_empty(self) -> None:
        service = make_service()
        service.configure_labels("a/x", error=ServerError("SERVER_ERROR", "Bad Gateway", 502))
        session = make_session(service)

        view = await session.open()

        assert view.labels == ()
        assert view.fetched_count == 3

    def test_view_before_open(self) -> None:
        session = make_session(make_service())
        with pytest.raises(RuntimeError):
            session.view()


class TestInteraction:
    """Tests for changes after the dashboard is open."""

    @pytest.mark.asyncio
    async def test_filters_are_applied_without_refetching(self) -> None:
        service = make_service()
        session = make_session(service)
        await session.open()

        view = session.set_filters(FilterOptions(authors=["bob"]))

        assert [r.number for r in view.records] == [2]
        assert session.location.query == "authors=bob"
        assert len(session.location.history) == 1
        assert service.call_count("list_records") == 2

    @pytest.mark.asyncio
    async def test_toggle_repository(self) -> None:
        service = make_service()
        session = make_session(service, query="search=change")
        await session.open()

        view = session.toggle_repository("a/x")
        assert view.selected_repositories == ("a/y",)
        assert [r.number for r in view.records] == [3]
        assert [a.login for a in view.authors] == ["carol"]
        assert view.filters.repositories == ["a/y"]

        view = session.toggle_repository("a/x")
        assert view.selected_repositories == ("a/x", "a/y")
        assert view.filters.repositories is None

        view = session.toggle_repository("elsewhere/repo")
        assert view.selected_repositories == ("a/x", "a/y")

    @pytest.mark.asyncio
    async def test_set_state_starts_new_session(self) -> None:
        service = make_service()
        session = make_session(service, query="search=change")
        await session.open()

        view = await session.set_state("closed")

        assert view.state == "closed"
        assert session.location.query == "state=closed&search=change"
        assert service.call_count("list_records") == 4

    @pytest.mark.asyncio
    async def test_grouping_is_saved_and_applied(self) -> None:
        storage: dict[str, str] = {}
        session = make_session(make_service(), query="search=change", storage=storage)
        await session.open()

        view = session.set_grouping(group_by_labels=["type"])

        assert [b.key for b in view.buckets] == ["label-type", OTHER_KEY]
        assert [r.number for r in view.buckets[0].records] == [3, 1]
        assert PreferencesStore(storage).load("web") == Preferences(group_by_labels=["type"])

    @pytest.mark.asyncio
    async def test_saved_grouping_is_loaded_on_open(self) -> None:
        storage = {"pr-dashboard-group-labels-web": json.dumps(["docs"])}
        session = make_session(make_service(), query="search=change", storage=storage)

        view = await session.open()

        assert view.preferences.group_by_labels == ["docs"]
        assert view.buckets[0].key == "label-docs"

    @pytest.mark.asyncio
    async def test_on_visible_refreshes_only_stale_data(self) -> None:
        clock = FakeClock()
        service = make_service()
        session = make_session(service, clock=clock)
        await session.open()

        await session.on_visible()
        assert service.call_count("list_records") == 2

        clock.advance(301)
        view = await session.on_visible()
        assert service.call_count("list_records") == 4
        assert view.last_updated == clock.now

    @pytest.mark.asyncio
    async def test_refresh_and_load_more(self) -> None:
        service = make_service()
        session = make_session(service)
        await session.open()

        view = await session.load_more()
        assert view.can_load_more is False
        assert service.call_count("list_records") == 2

        await session.refresh()
        assert service.call_count("list_records") == 4
