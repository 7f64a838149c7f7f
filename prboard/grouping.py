"""
Record grouping by author and label keys.

Buckets are rebuilt from scratch on every call. Sibling buckets never share a
record: a record joins the first listed key it matches, and every level ends
with a catch-all bucket for records matching none. Empty buckets are dropped.

A label key without ":" is a prefix key when the catalog holds any label named
"<key>:...", so grouping by "type" collects "type:bug", "type:feature", etc.
"""

from collections.abc import Iterable, Sequence

from prboard.types.groups import GroupBucket
from prboard.types.records import DEFAULT_LABEL_COLOR, Author, Label, Record

OTHER_KEY = "__other__"
OTHER_AUTHORS_KEY = "__other_authors__"

_PALETTE = (
    "3b82f6",  # blue
    "10b981",  # green
    "f59e0b",  # amber
    "ef4444",  # red
    "8b5cf6",  # violet
    "ec4899",  # pink
    "06b6d4",  # cyan
    "f97316",  # orange
)


def string_to_color(text: str) -> str:
    """Pick a stable palette color for a string, e.g. a repository badge."""
    value = 0
    for char in text:
        value = (ord(char) + ((value << 5) - value)) & 0xFFFFFFFF
    return _PALETTE[value % len(_PALETTE)]


def is_prefix_key(key: str, catalog: Iterable[Label]) -> bool:
    """True when key has no ':' and some catalog label starts with 'key:'."""
    if ":" in key:
        return False
    prefix = f"{key}:"
    return any(label.name.startswith(prefix) for label in catalog)


def record_matches_label(record: Record, key: str, prefix: bool) -> bool:
    if prefix:
        return any(name.startswith(f"{key}:") for name in record.label_names)
    return key in record.label_names


def _unique(keys: Iterable[str]) -> list[str]:
    return list(dict.fromkeys(key for key in keys if key))


def _label_buckets(
    records: Sequence[Record],
    label_keys: Sequence[str],
    catalog: Sequence[Label],
    key_prefix: str,
    other_key: str,
) -> tuple[GroupBucket, ...]:
    colors = {label.name: label.color for label in catalog}
    prefixes = {key: is_prefix_key(key, catalog) for key in label_keys}

    members: dict[str, list[Record]] = {key: [] for key in label_keys}
    unmatched: list[Record] = []
    for record in records:
        for key in label_keys:
            if record_matches_label(record, key, prefixes[key]):
                members[key].append(record)
                break
        else:
            unmatched.append(record)

    buckets = [
        GroupBucket(
            key=f"{key_prefix}label-{key}",
            label=key,
            records=tuple(members[key]),
            color=colors.get(key, DEFAULT_LABEL_COLOR),
        )
        for key in label_keys
        if members[key]
    ]
    if unmatched:
        buckets.append(
            GroupBucket(key=other_key, label="Other", records=tuple(unmatched), is_catch_all=True)
        )
    return tuple(buckets)


def group_records(
    records: Sequence[Record],
    group_by_labels: Sequence[str] = (),
    group_by_authors: Sequence[str] = (),
    label_catalog: Sequence[Label] = (),
    author_catalog: Sequence[Author] = (),
) -> list[GroupBucket]:
    """
    Group filtered records into buckets.

    Args:
        records: Filtered records, in display order
        group_by_labels: Ordered label keys (exact names or prefixes)
        group_by_authors: Ordered author logins
        label_catalog: Known labels, used for prefix detection and colors
        author_catalog: Known authors, used for avatars

    Returns:
        Top-level buckets. With author keys, author buckets come first,
        followed by "Other Authors"; label keys then nest one level inside
        each. With only label keys, label buckets are followed by "Other".
        With neither, an empty list.
    """
    label_keys = _unique(group_by_labels)
    author_keys = _unique(group_by_authors)

    if not author_keys:
        if not label_keys:
            return []
        return list(_label_buckets(records, label_keys, label_catalog, "", OTHER_KEY))

    avatars = {author.login: author.avatar_url for author in author_catalog}
    by_author: dict[str, list[Record]] = {login: [] for login in author_keys}
    other_authors: list[Record] = []
    for record in records:
        login = record.author.login
        if login in by_author:
            by_author[login].append(record)
            avatars.setdefault(login, record.author.avatar_url)
        else:
            other_authors.append(record)

    buckets: list[GroupBucket] = []
    for login in author_keys:
        members = by_author[login]
        if not members:
            continue
        key = f"author-{login}"
        children: tuple[GroupBucket, ...] = ()
        if label_keys:
            children = _label_buckets(members, label_keys, label_catalog, f"{key}-", f"{key}-other")
        buckets.append(
            GroupBucket(
                key=key,
                label=login,
                records=tuple(members),
                avatar_url=avatars.get(login) or None,
                children=children,
            )
        )

    if other_authors:
        children = ()
        if label_keys:
            children = _label_buckets(
                other_authors,
                label_keys,
                label_catalog,
                f"{OTHER_AUTHORS_KEY}-",
                f"{OTHER_AUTHORS_KEY}-other",
            )
        buckets.append(
            GroupBucket(
                key=OTHER_AUTHORS_KEY,
                label="Other Authors",
                records=tuple(other_authors),
                children=children,
                is_catch_all=True,
            )
        )

    return buckets
