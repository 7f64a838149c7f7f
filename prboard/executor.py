"""
Cache-aware query executor.

Builds a deterministic cache key from the query shape, serves cached payloads
unchanged, and otherwise fans out to the fetch service once per repository,
merging the results into a single page.
"""

import asyncio
import time
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

import httpx

from prboard.cache import CacheTTL, TTLCache
from prboard.exceptions import TransportError, ValidationError
from prboard.github import FetchService
from prboard.logging import get_logger
from prboard.transform import (
    format_timestamp,
    label_to_dict,
    record_to_dict,
    transform_label,
    transform_pull_request,
)
from prboard.types.records import STATE_FILTERS, Label, Record

logger = get_logger("executor")

# Errors raised while talking to or parsing the provider
_FETCH_ERRORS = (httpx.HTTPError, ValueError, KeyError, TypeError)


def _raise_first_failure(results: Sequence[object]) -> None:
    """Raise the first exception among gathered results, logging any others."""
    failures = [result for result in results if isinstance(result, BaseException)]
    if not failures:
        return
    for extra in failures[1:]:
        logger.warning("Additional repository fetch failed: %s", extra)
    raise failures[0]


def normalize_repositories(repositories: str | Iterable[str]) -> list[str]:
    """
    Normalize repository identifiers into a sorted, de-duplicated list.

    Accepts either a comma-separated string or an iterable of identifiers, so
    the same set always produces the same cache key.
    """
    if isinstance(repositories, str):
        repositories = repositories.split(",")
    return sorted({repo.strip() for repo in repositories if repo.strip()})


def build_cache_key(kind: str, repositories: Sequence[str], *parts: object) -> str:
    """Concatenate the query inputs in a fixed order."""
    return ":".join([kind, ",".join(repositories), *(str(part) for part in parts)])


@dataclass(frozen=True)
class RecordsPage:
    """One merged page of records across all requested repositories."""

    data: tuple[Record, ...]
    page: int
    per_page: int
    has_more: bool
    cached_at: float

    @property
    def total(self) -> int:
        return len(self.data)

    def to_dict(self) -> dict[str, Any]:
        return {
            "data": [record_to_dict(record) for record in self.data],
            "page": self.page,
            "perPage": self.per_page,
            "total": self.total,
            "hasMore": self.has_more,
            "cachedAt": format_timestamp(datetime.fromtimestamp(self.cached_at, timezone.utc)),
        }


@dataclass(frozen=True)
class LabelsPage:
    """Labels across all requested repositories, deduplicated by name."""

    data: tuple[Label, ...] = field(default_factory=tuple)

    @property
    def total(self) -> int:
        return len(self.data)

    def to_dict(self) -> dict[str, Any]:
        return {
            "data": [label_to_dict(label) for label in self.data],
            "total": self.total,
        }


class QueryExecutor:
    """
    Cache-aware query executor over a fetch service.

    Example:
        ```python
        cache = TTLCache()
        executor = QueryExecutor(GitHubFetchService.from_env(), cache)
        page = await executor.fetch_records(["octo/app", "octo/lib"], "open")
        ```
    """

    def __init__(
        self,
        fetch_service: FetchService,
        cache: TTLCache,
        ttl: CacheTTL | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        """
        Initialize the executor.

        Args:
            fetch_service: Service fetching raw pages from the provider
            cache: Process-scoped response cache
            ttl: Time-to-live per resource kind (default: CacheTTL())
            clock: Returns the current time in seconds
        """
        self.fetch_service = fetch_service
        self.cache = cache
        self.ttl = ttl or CacheTTL()
        self._clock = clock

    async def fetch_records(
        self,
        repositories: Sequence[str],
        state: str = "open",
        page: int = 1,
        page_size: int = 30,
        force_refresh: bool = False,
    ) -> RecordsPage:
        """
        Fetch one merged page of records.

        Args:
            repositories: Normalized repository identifiers (see normalize_repositories)
            state: Lifecycle filter ("open", "closed", "merged", "all")
            page: 1-based page index
            page_size: Records requested per repository
            force_refresh: Skip the cache read (the result is still cached)

        Returns:
            RecordsPage sorted by updated_at descending

        Raises:
            ValidationError: On an empty repository list or unknown state
            TransportError: When any repository fetch fails; nothing is cached
        """
        if not repositories:
            raise ValidationError("At least one repository is required")
        if state not in STATE_FILTERS:
            raise ValidationError(f"Unsupported state filter: {state!r}")

        key = build_cache_key("pulls", repositories, state, page_size, page)
        if not force_refresh:
            cached = self.cache.get(key)
            if cached is not None:
                return cached

        try:
            raw_pages = await asyncio.gather(
                *(
                    self.fetch_service.list_records(repo, state, page, page_size)
                    for repo in repositories
                ),
                return_exceptions=True,
            )
            _raise_first_failure(raw_pages)
            records = [
                transform_pull_request(raw, repo)
                for repo, raw_page in zip(repositories, raw_pages)
                for raw in raw_page.records
            ]
        except TransportError as e:
            logger.error("Error fetching pull requests for %s: %s", key, e.message)
            raise
        except _FETCH_ERRORS as e:
            logger.error("Error fetching pull requests for %s: %s", key, e)
            raise TransportError("FETCH_FAILED", f"Failed to fetch pull requests: {e}") from e

        if state == "merged":
            records = [record for record in records if record.state == "merged"]

        records.sort(key=lambda record: record.updated_at, reverse=True)

        result = RecordsPage(
            data=tuple(records),
            page=page,
            per_page=page_size,
            has_more=any(raw_page.has_more for raw_page in raw_pages),
            cached_at=self._clock(),
        )
        self.cache.set(key, result, self.ttl.pulls)
        return result

    async def fetch_labels(
        self,
        repositories: Sequence[str],
        force_refresh: bool = False,
    ) -> LabelsPage:
        """
        Fetch the label catalog for the repositories.

        Labels are deduplicated by name; the first repository defining a name wins.

        Raises:
            ValidationError: On an empty repository list
            TransportError: When any repository fetch fails; nothing is cached
        """
        if not repositories:
            raise ValidationError("At least one repository is required")

        key = build_cache_key("labels", repositories)
        if not force_refresh:
            cached = self.cache.get(key)
            if cached is not None:
                return cached

        try:
            raw_labels = await asyncio.gather(
                *(self.fetch_service.list_labels(repo) for repo in repositories),
                return_exceptions=True,
            )
            _raise_first_failure(raw_labels)
            unique: dict[str, Label] = {}
            for repo, labels in zip(repositories, raw_labels):
                for raw in labels:
                    label = transform_label(raw, repo)
                    unique.setdefault(label.name, label)
        except TransportError as e:
            logger.error("Error fetching labels for %s: %s", key, e.message)
            raise
        except _FETCH_ERRORS as e:
            logger.error("Error fetching labels for %s: %s", key, e)
            raise TransportError("FETCH_FAILED", f"Failed to fetch labels: {e}") from e

        result = LabelsPage(data=tuple(unique.values()))
        self.cache.set(key, result, self.ttl.labels)
        return result
