"""
Conversion between GitHub payloads, Record/Label models and the JSON envelope.
"""

from datetime import datetime, timezone
from typing import Any

from prboard.types.records import DEFAULT_LABEL_COLOR, Author, Label, Record


def parse_timestamp(value: str | None) -> datetime | None:
    """Parse an ISO 8601 timestamp (with optional Z suffix) as UTC."""
    if not value:
        return None
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def format_timestamp(value: datetime | None) -> str | None:
    """Format a datetime as ISO 8601 UTC with Z suffix."""
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


def derive_state(data: dict[str, Any]) -> str:
    """Map a GitHub pull request payload to open/closed/merged/draft."""
    if data.get("merged_at"):
        return "merged"
    if data.get("state") == "closed":
        return "closed"
    if data.get("draft"):
        return "draft"
    return "open"


def transform_label(data: dict[str, Any], repository: str | None = None) -> Label:
    """Parse a GitHub label payload."""
    return Label(
        name=data["name"],
        color=data.get("color") or DEFAULT_LABEL_COLOR,
        description=data.get("description"),
        repository=repository,
    )


def transform_pull_request(data: dict[str, Any], repository: str | None = None) -> Record:
    """
    Parse a GitHub pull request payload into a Record.

    Args:
        data: Pull request object as returned by the pulls list endpoint
        repository: "owner/name" the request was made for; falls back to the
            payload's base repository

    Returns:
        Record
    """
    base = data.get("base") or {}
    head = data.get("head") or {}
    user = data.get("user") or {}

    if repository is None:
        repository = (base.get("repo") or {}).get("full_name", "")

    created_at = parse_timestamp(data["created_at"])
    updated_at = parse_timestamp(data.get("updated_at")) or created_at

    return Record(
        repository=repository,
        number=data["number"],
        title=data.get("title", ""),
        state=derive_state(data),
        author=Author(login=user.get("login", ""), avatar_url=user.get("avatar_url", "")),
        base_branch=base.get("ref", ""),
        head_branch=head.get("ref", ""),
        created_at=created_at,
        updated_at=updated_at,
        labels=tuple(transform_label(label, repository) for label in data.get("labels", [])),
        assignees=tuple(a["login"] for a in data.get("assignees") or []),
        reviewers=tuple(r["login"] for r in data.get("requested_reviewers") or []),
        html_url=data.get("html_url", ""),
        merged_at=parse_timestamp(data.get("merged_at")),
        closed_at=parse_timestamp(data.get("closed_at")),
        comments=data.get("comments", 0),
        additions=data.get("additions", 0),
        deletions=data.get("deletions", 0),
        changed_files=data.get("changed_files", 0),
    )


def label_to_dict(label: Label) -> dict[str, Any]:
    return {
        "name": label.name,
        "color": label.color,
        "description": label.description,
        "repository": label.repository,
    }


def label_from_dict(data: dict[str, Any]) -> Label:
    return Label(
        name=data["name"],
        color=data.get("color") or DEFAULT_LABEL_COLOR,
        description=data.get("description"),
        repository=data.get("repository"),
    )


def record_to_dict(record: Record) -> dict[str, Any]:
    """Serialize a Record to the camelCase JSON shape served by the endpoints."""
    return {
        "repository": record.repository,
        "number": record.number,
        "title": record.title,
        "state": record.state,
        "author": {"login": record.author.login, "avatarUrl": record.author.avatar_url},
        "baseBranch": record.base_branch,
        "headBranch": record.head_branch,
        "labels": [label_to_dict(label) for label in record.labels],
        "assignees": list(record.assignees),
        "reviewers": list(record.reviewers),
        "htmlUrl": record.html_url,
        "createdAt": format_timestamp(record.created_at),
        "updatedAt": format_timestamp(record.updated_at),
        "mergedAt": format_timestamp(record.merged_at),
        "closedAt": format_timestamp(record.closed_at),
        "comments": record.comments,
        "additions": record.additions,
        "deletions": record.deletions,
        "changedFiles": record.changed_files,
        "changedLines": record.changed_lines,
    }


def record_from_dict(data: dict[str, Any]) -> Record:
    """Rehydrate a Record from its JSON envelope shape."""
    author = data.get("author") or {}
    return Record(
        repository=data["repository"],
        number=data["number"],
        title=data.get("title", ""),
        state=data["state"],
        author=Author(login=author.get("login", ""), avatar_url=author.get("avatarUrl", "")),
        base_branch=data.get("baseBranch", ""),
        head_branch=data.get("headBranch", ""),
        created_at=parse_timestamp(data["createdAt"]),
        updated_at=parse_timestamp(data["updatedAt"]),
        labels=tuple(label_from_dict(label) for label in data.get("labels", [])),
        assignees=tuple(data.get("assignees", [])),
        reviewers=tuple(data.get("reviewers", [])),
        html_url=data.get("htmlUrl", ""),
        merged_at=parse_timestamp(data.get("mergedAt")),
        closed_at=parse_timestamp(data.get("closedAt")),
        comments=data.get("comments", 0),
        additions=data.get("additions", 0),
        deletions=data.get("deletions", 0),
        changed_files=data.get("changedFiles", 0),
    )
