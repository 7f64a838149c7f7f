"""Pull request record data models."""

from dataclasses import dataclass, field
from datetime import datetime


# Lifecycle filters accepted when fetching
STATE_FILTERS = ("open", "closed", "merged", "all")

DEFAULT_LABEL_COLOR = "6b7280"


@dataclass(frozen=True)
class Author:
    """Author of a pull request."""

    login: str
    avatar_url: str = ""


@dataclass(frozen=True)
class Label:
    """Label attached to a pull request or defined on a repository."""

    name: str
    color: str = DEFAULT_LABEL_COLOR
    description: str | None = None
    repository: str | None = None

    @property
    def prefix(self) -> str | None:
        """Category part of a ``prefix:value`` label name."""
        if ":" not in self.name:
            return None
        return self.name.split(":", 1)[0]


@dataclass(frozen=True)
class Record:
    """A pull request, immutable for a given cache generation."""

    repository: str  # "owner/name"
    number: int
    title: str
    state: str  # "open", "closed", "merged", "draft"
    author: Author
    base_branch: str
    created_at: datetime
    updated_at: datetime
    labels: tuple[Label, ...] = ()
    assignees: tuple[str, ...] = ()
    reviewers: tuple[str, ...] = ()
    head_branch: str = ""
    html_url: str = ""
    merged_at: datetime | None = None
    closed_at: datetime | None = None
    comments: int = 0
    additions: int = 0
    deletions: int = 0
    changed_files: int = 0

    @property
    def key(self) -> str:
        """Globally unique identity of the record."""
        return f"{self.repository}#{self.number}"

    @property
    def label_names(self) -> tuple[str, ...]:
        return tuple(label.name for label in self.labels)

    @property
    def changed_lines(self) -> int:
        return self.additions + self.deletions


@dataclass
class RawRecordPage:
    """One page of untransformed provider records for a single repository."""

    records: list[dict] = field(default_factory=list)
    has_more: bool = False
