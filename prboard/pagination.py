"""
Incremental multi-page fetch controller.

A session covers one (repository-set, lifecycle-state) pair and moves through
idle -> fetching -> complete | failed. Pages are appended in order and each
partial result is published to subscribers as soon as it is merged, so the
first page is visible before later pages arrive.

There is no cancellation: starting a new session simply replaces the current
one, and responses that arrive for a replaced session are dropped.
"""

import itertools
import time
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass, field
from typing import Protocol

from prboard.exceptions import PRBoardError
from prboard.executor import RecordsPage, normalize_repositories
from prboard.logging import get_logger
from prboard.types.records import Record

logger = get_logger("pagination")

IDLE = "idle"
FETCHING = "fetching"
COMPLETE = "complete"
FAILED = "failed"

DEFAULT_PAGE_SIZE = 100
DEFAULT_MAX_PAGES = 10
STALE_AFTER_SECONDS = 300.0


class RecordPageSource(Protocol):
    """Anything that can serve one merged page of records."""

    async def fetch_records(
        self,
        repositories: Sequence[str],
        state: str = "open",
        page: int = 1,
        page_size: int = 30,
        force_refresh: bool = False,
    ) -> RecordsPage: ...


@dataclass
class FetchSession:
    """Mutable state of one pagination run."""

    session_id: int
    repositories: tuple[str, ...]
    state: str
    page: int = 0
    records: list[Record] = field(default_factory=list)
    has_more: bool = False
    status: str = IDLE
    error: str | None = None
    last_updated: float | None = None  # when the newest merged page was produced
    busy: bool = False


@dataclass(frozen=True)
class SessionSnapshot:
    """Immutable view of a session handed to subscribers."""

    session_id: int
    repositories: tuple[str, ...]
    state: str
    page: int
    records: tuple[Record, ...]
    has_more: bool
    status: str
    error: str | None
    last_updated: float | None
    busy: bool

    @property
    def fetched_count(self) -> int:
        return len(self.records)

    @property
    def can_load_more(self) -> bool:
        return self.has_more and not self.busy and self.status in (COMPLETE, FAILED)


Listener = Callable[[SessionSnapshot], None]


class PaginationController:
    """
    Drives a record page source across sequential pages.

    Example:
        ```python
        controller = PaginationController(executor)
        controller.subscribe(lambda snap: print(snap.fetched_count))
        await controller.select(["octo/app", "octo/lib"], "open")
        if controller.snapshot.can_load_more:
            await controller.load_more()
        ```
    """

    def __init__(
        self,
        source: RecordPageSource,
        page_size: int = DEFAULT_PAGE_SIZE,
        max_pages: int = DEFAULT_MAX_PAGES,
        clock: Callable[[], float] = time.time,
    ) -> None:
        """
        Initialize the controller.

        Args:
            source: Page source, normally a QueryExecutor
            page_size: Records requested per repository per page
            max_pages: Upper bound on automatically fetched pages for open sessions
            clock: Returns the current time in seconds
        """
        self.source = source
        self.page_size = page_size
        self.max_pages = max_pages
        self._clock = clock
        self._session: FetchSession | None = None
        self._session_ids = itertools.count(1)
        self._listeners: list[Listener] = []

    @property
    def session(self) -> FetchSession | None:
        return self._session

    @property
    def snapshot(self) -> SessionSnapshot | None:
        if self._session is None:
            return None
        return self._snapshot(self._session)

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """
        Register a listener called with a snapshot after every change.

        Returns:
            Function removing the listener
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def start(self, repositories: Iterable[str], state: str) -> SessionSnapshot:
        """
        Discard the current session and create a new idle one at page 1.

        Responses still in flight for the discarded session are dropped on arrival.
        """
        session = FetchSession(
            session_id=next(self._session_ids),
            repositories=tuple(normalize_repositories(repositories)),
            state=state,
        )
        if self._session is not None:
            logger.debug(
                "Discarding session %d for new session %d",
                self._session.session_id,
                session.session_id,
            )
        self._session = session
        self._publish(session)
        return self._snapshot(session)

    async def select(self, repositories: Iterable[str], state: str) -> SessionSnapshot | None:
        """
        Start and run a session unless one for the same parameters already exists.
        """
        normalized = tuple(normalize_repositories(repositories))
        current = self._session
        if current is not None and current.repositories == normalized and current.state == state:
            return self.snapshot

        self.start(normalized, state)
        await self.run()
        return self.snapshot

    async def run(self, force_refresh: bool = False) -> None:
        """
        Auto-paginate the current session, which must still be idle.

        Open sessions continue while the source reports more data, up to
        max_pages. Other lifecycle states fetch exactly one page. The forced
        refresh flag is only passed for page 1.
        """
        session = self._session
        if session is None or session.busy or session.status != IDLE:
            return

        if not session.repositories:
            session.status = COMPLETE
            self._publish(session)
            return

        max_pages = self.max_pages if session.state == "open" else 1

        session.busy = True
        try:
            page = 1
            while True:
                if not await self._fetch_page(session, page, force_refresh and page == 1):
                    return
                if not session.has_more or page >= max_pages:
                    break
                page += 1

            session.status = COMPLETE
            logger.debug(
                "Session %d complete after %d page(s), %d records, has_more=%s",
                session.session_id,
                session.page,
                len(session.records),
                session.has_more,
            )
        finally:
            session.busy = False
            if session is self._session:
                self._publish(session)

    async def load_more(self) -> bool:
        """
        Fetch exactly one additional page and append it.

        Available once a run has stopped with more data remaining, whatever the
        lifecycle state.

        Returns:
            True if a page was appended
        """
        session = self._session
        if session is None or session.busy or not session.has_more:
            return False
        if session.status not in (COMPLETE, FAILED):
            return False

        session.busy = True
        session.error = None
        try:
            appended = await self._fetch_page(session, session.page + 1, False)
            if appended:
                session.status = COMPLETE
            return appended
        finally:
            session.busy = False
            if session is self._session:
                self._publish(session)

    async def refresh(self) -> None:
        """Restart the current session, bypassing the cache for page 1 only."""
        session = self._session
        if session is None:
            return
        self.start(session.repositories, session.state)
        await self.run(force_refresh=True)

    def is_stale(self, max_age_seconds: float = STALE_AFTER_SECONDS) -> bool:
        """True when the newest merged page is older than max_age_seconds."""
        session = self._session
        if session is None or session.last_updated is None:
            return False
        return self._clock() - session.last_updated > max_age_seconds

    async def refresh_if_stale(self, max_age_seconds: float = STALE_AFTER_SECONDS) -> bool:
        """
        Refresh when the data is stale; called when the view is foregrounded.

        Returns:
            True if a refresh ran
        """
        if not self.is_stale(max_age_seconds):
            return False
        await self.refresh()
        return True

    async def _fetch_page(self, session: FetchSession, page: int, force_refresh: bool) -> bool:
        """Fetch and merge one page. Returns False when the run must stop."""
        session.status = FETCHING
        self._publish(session)

        try:
            result = await self.source.fetch_records(
                list(session.repositories),
                session.state,
                page,
                self.page_size,
                force_refresh,
            )
        except PRBoardError as e:
            if session is not self._session:
                logger.debug("Dropping failure for discarded session %d", session.session_id)
                return False
            logger.warning(
                "Page %d of session %d failed: %s", page, session.session_id, e.message
            )
            session.status = FAILED
            session.error = e.message
            return False

        if session is not self._session:
            logger.debug("Dropping page %d for discarded session %d", page, session.session_id)
            return False

        session.records.extend(result.data)
        session.page = page
        session.has_more = result.has_more
        session.last_updated = result.cached_at
        self._publish(session)
        return True

    def _snapshot(self, session: FetchSession) -> SessionSnapshot:
        return SessionSnapshot(
            session_id=session.session_id,
            repositories=session.repositories,
            state=session.state,
            page=session.page,
            records=tuple(session.records),
            has_more=session.has_more,
            status=session.status,
            error=session.error,
            last_updated=session.last_updated,
            busy=session.busy,
        )

    def _publish(self, session: FetchSession) -> None:
        if session is not self._session:
            return
        snapshot = self._snapshot(session)
        for listener in list(self._listeners):
            listener(snapshot)
