"""
Pytest fixtures for prboard testing.

Provides helpers building GitHub payloads and Record instances, plus common
fixtures for tests of code that uses the dashboard pipeline.
"""

from collections.abc import Generator, Sequence
from datetime import datetime, timedelta, timezone
from typing import TYPE_CHECKING, Any

import pytest

from prboard.cache import TTLCache
from prboard.types.records import Author, Label, Record

if TYPE_CHECKING:
    from prboard.testing.mock import MockFetchService

BASE_TIME = datetime(2024, 1, 1, tzinfo=timezone.utc)


class FakeClock:
    """Manually advanced clock returning seconds."""

    def __init__(self, now: float = 1_700_000_000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def _iso(value: datetime) -> str:
    return value.strftime("%Y-%m-%dT%H:%M:%SZ")


def create_raw_pull_request(
    number: int = 1,
    repository: str = "octo/app",
    title: str | None = None,
    author: str = "octocat",
    labels: Sequence[str] = (),
    base: str = "main",
    state: str = "open",
    draft: bool = False,
    merged: bool = False,
    assignees: Sequence[str] = (),
    reviewers: Sequence[str] = (),
    created_at: datetime | None = None,
    updated_at: datetime | None = None,
) -> dict[str, Any]:
    """Create a pull request payload shaped like the GitHub pulls list API."""
    created_at = created_at or BASE_TIME + timedelta(hours=number)
    updated_at = updated_at or created_at
    closed_at = _iso(updated_at) if state == "closed" or merged else None

    return {
        "number": number,
        "title": title if title is not None else f"Change {number}",
        "state": "closed" if merged else state,
        "draft": draft,
        "html_url": f"https://github.com/{repository}/pull/{number}",
        "user": {"login": author, "avatar_url": f"https://avatars.example/{author}"},
        "labels": [{"name": name, "color": "ededed"} for name in labels],
        "base": {"ref": base, "repo": {"full_name": repository}},
        "head": {"ref": f"feature-{number}"},
        "assignees": [{"login": login} for login in assignees],
        "requested_reviewers": [{"login": login} for login in reviewers],
        "created_at": _iso(created_at),
        "updated_at": _iso(updated_at),
        "merged_at": _iso(updated_at) if merged else None,
        "closed_at": closed_at,
    }


def create_mock_record(
    number: int = 1,
    repository: str = "octo/app",
    title: str | None = None,
    author: str = "octocat",
    labels: Sequence[str] = (),
    base_branch: str = "main",
    state: str = "open",
    assignees: Sequence[str] = (),
    reviewers: Sequence[str] = (),
    created_at: datetime | None = None,
    updated_at: datetime | None = None,
) -> Record:
    """Create a Record with sensible defaults."""
    created_at = created_at or BASE_TIME + timedelta(hours=number)
    return Record(
        repository=repository,
        number=number,
        title=title if title is not None else f"Change {number}",
        state=state,
        author=Author(login=author, avatar_url=f"https://avatars.example/{author}"),
        base_branch=base_branch,
        created_at=created_at,
        updated_at=updated_at or created_at,
        labels=tuple(Label(name=name, repository=repository) for name in labels),
        assignees=tuple(assignees),
        reviewers=tuple(reviewers),
    )


def create_mock_label(
    name: str = "bug",
    color: str = "d73a4a",
    repository: str | None = "octo/app",
) -> Label:
    """Create a Label with sensible defaults."""
    return Label(name=name, color=color, repository=repository)


# ============================================================================
# Fixtures
# ============================================================================


@pytest.fixture
def mock_fetch_service() -> Generator["MockFetchService", None, None]:
    """Provide a MockFetchService, reset after the test."""
    from prboard.testing.mock import MockFetchService

    service = MockFetchService()
    yield service
    service.reset()


@pytest.fixture
def fake_clock() -> FakeClock:
    """Provide a manually advanced clock."""
    return FakeClock()


@pytest.fixture
def ttl_cache(fake_clock: FakeClock) -> TTLCache:
    """Provide a TTLCache driven by fake_clock."""
    return TTLCache(clock=fake_clock)


@pytest.fixture
def sample_record() -> Record:
    """Provide a sample record."""
    return create_mock_record(number=42, labels=("type:bug",))


@pytest.fixture
def sample_labels() -> list[Label]:
    """Provide a label catalog with a "type" taxonomy."""
    return [
        create_mock_label("type:bug", "d73a4a"),
        create_mock_label("type:feature", "a2eeef"),
        create_mock_label("bugfix", "0e8a16"),
        create_mock_label("needs-review", "fbca04"),
    ]
