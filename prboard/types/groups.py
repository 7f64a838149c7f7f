"""Grouping output data models."""

from dataclasses import dataclass

from prboard.types.records import Record


@dataclass(frozen=True)
class GroupBucket:
    """A named group of records, optionally split into child buckets."""

    key: str
    label: str
    records: tuple[Record, ...]
    color: str | None = None
    avatar_url: str | None = None
    children: tuple["GroupBucket", ...] = ()
    is_catch_all: bool = False

    @property
    def count(self) -> int:
        return len(self.records)
