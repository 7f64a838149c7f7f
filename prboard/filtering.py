"""
Record filtering.

All present constraints are ANDed. The output is always re-sorted by number
descending so the view order never depends on fetch or merge order.
"""

from collections.abc import Iterable
from datetime import datetime, timezone

from prboard.types.filters import FilterOptions
from prboard.types.records import Author, Record


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def matches_filters(record: Record, filters: FilterOptions) -> bool:
    """Return True if the record satisfies every constraint in filters."""
    if filters.repositories and record.repository not in filters.repositories:
        return False

    # Labels: record must carry every listed label
    if filters.labels:
        names = set(record.label_names)
        if not all(label in names for label in filters.labels):
            return False

    if filters.branches and record.base_branch not in filters.branches:
        return False

    # Assignees / reviewers: at least one listed login
    if filters.assignees and not any(a in record.assignees for a in filters.assignees):
        return False

    if filters.authors and record.author.login not in filters.authors:
        return False

    if filters.reviewers and not any(r in record.reviewers for r in filters.reviewers):
        return False

    if filters.search_query:
        query = filters.search_query.lower()
        if not (
            query in record.title.lower()
            or query in str(record.number)
            or query in record.author.login.lower()
        ):
            return False

    created_at = _as_utc(record.created_at)
    if filters.date_from is not None and created_at < _as_utc(filters.date_from):
        return False
    if filters.date_to is not None and created_at > _as_utc(filters.date_to):
        return False

    return True


def apply_filters(records: Iterable[Record], filters: FilterOptions | None = None) -> list[Record]:
    """
    Filter records and sort them by number descending.

    Args:
        records: Aggregated records in any order
        filters: Predicate set; None applies no constraint

    Returns:
        New list of matching records
    """
    if filters is None or filters.is_empty():
        matching = list(records)
    else:
        matching = [record for record in records if matches_filters(record, filters)]
    matching.sort(key=lambda record: (record.number, record.repository), reverse=True)
    return matching


def available_authors(records: Iterable[Record]) -> list[Author]:
    """Unique authors (first avatar seen wins), sorted by login."""
    authors: dict[str, Author] = {}
    for record in records:
        authors.setdefault(record.author.login, record.author)
    return sorted(authors.values(), key=lambda author: author.login)


def available_branches(records: Iterable[Record]) -> list[str]:
    """Unique target branches, sorted."""
    return sorted({record.base_branch for record in records})
