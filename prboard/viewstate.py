"""
Bidirectional mapping between the view state and a query string.

Query-string grammar (all keys optional, lists comma-separated):

    state | states   lifecycle state to fetch (first entry of "states" wins)
    labels           labels every record must carry
    authors          author logins
    branches         target branches
    search           free-text query
    repositories     repository subset

The synchronizer keeps the view state as the single source of truth and
rewrites the location with replace semantics on every change, so filter edits
never add history entries.
"""

from collections.abc import Callable
from dataclasses import dataclass, field, replace
from urllib.parse import parse_qs, urlencode

from prboard.exceptions import PRBoardError
from prboard.logging import get_logger
from prboard.types.dashboards import split_csv
from prboard.types.filters import FilterOptions, ViewState

logger = get_logger("viewstate")

RECOGNIZED_KEYS = ("state", "states", "labels", "authors", "branches", "search", "repositories")


def _parse_list(params: dict[str, list[str]], key: str) -> list[str] | None:
    values = params.get(key)
    if not values:
        return None
    items = split_csv(values[0])
    return items or None


def _parse_params(query: str) -> dict[str, list[str]]:
    return parse_qs(query.lstrip("?"), keep_blank_values=True)


def has_filter_params(query: str) -> bool:
    """True when the query string carries any recognized key."""
    params = _parse_params(query)
    return any(key in params for key in RECOGNIZED_KEYS)


def parse_view_state(query: str) -> ViewState:
    """Parse a query string into a ViewState; unknown keys are ignored."""
    params = _parse_params(query)

    state = None
    if params.get("state") and params["state"][0]:
        state = params["state"][0]
    else:
        states = _parse_list(params, "states")
        if states:
            state = states[0]

    search = params.get("search", [""])[0] or None

    filters = FilterOptions(
        repositories=_parse_list(params, "repositories"),
        labels=_parse_list(params, "labels"),
        authors=_parse_list(params, "authors"),
        branches=_parse_list(params, "branches"),
        search_query=search,
    )
    return ViewState(filters=filters, state=state)


def serialize_view_state(view: ViewState) -> str:
    """Serialize a ViewState to a query string, omitting empty fields."""
    filters = view.filters
    params: dict[str, str] = {}

    if view.state:
        params["state"] = view.state
    if filters.labels:
        params["labels"] = ",".join(filters.labels)
    if filters.branches:
        params["branches"] = ",".join(filters.branches)
    if filters.authors:
        params["authors"] = ",".join(filters.authors)
    if filters.search_query:
        params["search"] = filters.search_query
    if filters.repositories:
        params["repositories"] = ",".join(filters.repositories)

    return urlencode(params, safe=",")


def merge_view_states(primary: ViewState, fallback: ViewState) -> ViewState:
    """Field-by-field merge; empty fields of primary take fallback's value."""
    p, f = primary.filters, fallback.filters
    filters = replace(
        p,
        repositories=p.repositories or f.repositories,
        labels=p.labels or f.labels,
        authors=p.authors or f.authors,
        branches=p.branches or f.branches,
        assignees=p.assignees or f.assignees,
        reviewers=p.reviewers or f.reviewers,
        search_query=p.search_query or f.search_query,
        date_from=p.date_from or f.date_from,
        date_to=p.date_to or f.date_to,
    )
    return ViewState(filters=filters, state=primary.state or fallback.state)


@dataclass
class Location:
    """Path, query string and history entries of the visible address."""

    path: str = "/"
    query: str = ""
    history: list[str] = field(default_factory=list)

    def __post_init__(self) -> None:
        if not self.history:
            self.history.append(self.url)

    @property
    def url(self) -> str:
        return f"{self.path}?{self.query}" if self.query else self.path

    def replace(self, query: str) -> None:
        """Rewrite the current history entry."""
        self.query = query
        self.history[-1] = self.url

    def push(self, query: str) -> None:
        """Add a new history entry."""
        self.query = query
        self.history.append(self.url)


DefaultsLoader = Callable[[], str]


class ViewStateSynchronizer:
    """
    Keeps a ViewState and a Location in sync.

    Example:
        ```python
        location = Location(path="/frontend", query="labels=bug")
        sync = ViewStateSynchronizer(location, lambda: config.get_defaults().filters)
        view = sync.initialize()
        sync.set_filters(view.filters.with_changes(authors=["octocat"]))
        ```
    """

    def __init__(self, location: Location, defaults_loader: DefaultsLoader | None = None) -> None:
        """
        Initialize the synchronizer.

        Args:
            location: Address whose query string mirrors the view state
            defaults_loader: Returns the externally configured default filter
                query string; called at most once
        """
        self.location = location
        self._defaults_loader = defaults_loader
        self._view = ViewState()
        self._initialized = False

    @property
    def view_state(self) -> ViewState:
        return self._view

    @property
    def filters(self) -> FilterOptions:
        return self._view.filters

    @property
    def initialized(self) -> bool:
        return self._initialized

    def initialize(self, base_defaults: ViewState | None = None) -> ViewState:
        """
        Establish the initial view state.

        A query string carrying any recognized key is adopted verbatim.
        Otherwise the configured defaults are loaded once, merged over
        base_defaults, and written back to the location.
        """
        if self._initialized:
            return self._view

        base = base_defaults or ViewState()
        if has_filter_params(self.location.query):
            self._view = parse_view_state(self.location.query)
        else:
            self._view = merge_view_states(self._load_defaults(), base)
            self.location.replace(serialize_view_state(self._view))

        self._initialized = True
        return self._view

    def set_view_state(self, view: ViewState) -> None:
        self._view = view
        self.location.replace(serialize_view_state(view))

    def set_filters(self, filters: FilterOptions) -> None:
        self.set_view_state(ViewState(filters=filters, state=self._view.state))

    def set_state(self, state: str) -> None:
        self.set_view_state(ViewState(filters=self._view.filters, state=state))

    def _load_defaults(self) -> ViewState:
        if self._defaults_loader is None:
            return ViewState()
        try:
            return parse_view_state(self._defaults_loader() or "")
        except PRBoardError as e:
            logger.error("Failed to load default filters: %s", e.message)
            return ViewState()
