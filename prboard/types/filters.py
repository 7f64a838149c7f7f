"""Filter predicate and view-state data models."""

from dataclasses import dataclass, field, replace
from datetime import datetime


@dataclass(frozen=True)
class FilterOptions:
    """
    Predicate set applied to the aggregated records.

    A field left as None (or an empty list) means "no constraint", never
    "exclude all".
    """

    repositories: list[str] | None = None
    labels: list[str] | None = None
    authors: list[str] | None = None
    branches: list[str] | None = None
    assignees: list[str] | None = None
    reviewers: list[str] | None = None
    search_query: str | None = None
    date_from: datetime | None = None
    date_to: datetime | None = None

    def is_empty(self) -> bool:
        """True when no field constrains the record set."""
        return not any(
            [
                self.repositories,
                self.labels,
                self.authors,
                self.branches,
                self.assignees,
                self.reviewers,
                self.search_query,
                self.date_from,
                self.date_to,
            ]
        )

    def with_changes(self, **changes: object) -> "FilterOptions":
        return replace(self, **changes)


@dataclass(frozen=True)
class ViewState:
    """Filters plus the lifecycle state selected for fetching."""

    filters: FilterOptions = field(default_factory=FilterOptions)
    state: str | None = None  # "open", "closed", "merged"
