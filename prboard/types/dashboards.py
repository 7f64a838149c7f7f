"""Dashboard configuration data models."""

from dataclasses import dataclass, field


def split_csv(value: str | None) -> list[str]:
    """Split a comma-separated string, dropping blanks."""
    if not value:
        return []
    return [item.strip() for item in value.split(",") if item.strip()]


@dataclass(frozen=True)
class DashboardConfig:
    """One configured dashboard."""

    id: str
    name: str
    repos: str = ""  # comma-separated "owner/name" list
    filter: str = ""  # default filter query string

    @property
    def repositories(self) -> list[str]:
        return split_csv(self.repos)

    def to_dict(self) -> dict[str, str]:
        return {"id": self.id, "name": self.name, "repos": self.repos, "filter": self.filter}


@dataclass(frozen=True)
class Defaults:
    """Server-wide default repositories and filter query string."""

    repositories: list[str] = field(default_factory=list)
    filters: str = ""

    def to_dict(self) -> dict[str, object]:
        return {"repositories": list(self.repositories), "filters": self.filters}
