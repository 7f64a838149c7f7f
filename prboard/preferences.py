"""
Per-dashboard display preferences.

One versioned JSON record per dashboard replaces the older one-key-per-feature
layout. Loading migrates the legacy grouping key and removes keys that are no
longer used. A record that cannot be parsed yields the default preferences.
"""

import json
from collections.abc import MutableMapping
from dataclasses import dataclass, field

from prboard.logging import get_logger

logger = get_logger("preferences")

PREFERENCES_VERSION = 1

_KEY_TEMPLATE = "prboard-preferences-{dashboard_id}"
_LEGACY_GROUP_LABELS_TEMPLATE = "pr-dashboard-group-labels-{dashboard_id}"
_LEGACY_COLUMN_CONFIG_KEY = "pr-dashboard-column-config"


@dataclass
class Preferences:
    """Grouping choices remembered for one dashboard."""

    group_by_labels: list[str] = field(default_factory=list)
    group_by_authors: list[str] = field(default_factory=list)
    version: int = PREFERENCES_VERSION

    def to_dict(self) -> dict[str, object]:
        return {
            "version": self.version,
            "groupByLabels": list(self.group_by_labels),
            "groupByAuthors": list(self.group_by_authors),
        }


def _string_list(value: object) -> list[str]:
    if not isinstance(value, list):
        raise ValueError(f"expected a list, got {type(value).__name__}")
    return [str(item) for item in value]


class PreferencesStore:
    """Loads and saves Preferences in a string key/value store."""

    def __init__(self, storage: MutableMapping[str, str] | None = None) -> None:
        """
        Args:
            storage: Backing store (default: a private in-memory dict)
        """
        self.storage: MutableMapping[str, str] = {} if storage is None else storage

    @staticmethod
    def key_for(dashboard_id: str) -> str:
        return _KEY_TEMPLATE.format(dashboard_id=dashboard_id)

    def load(self, dashboard_id: str) -> Preferences:
        """Load preferences, migrating and cleaning up legacy keys first."""
        self.storage.pop(_LEGACY_COLUMN_CONFIG_KEY, None)
        legacy_key = _LEGACY_GROUP_LABELS_TEMPLATE.format(dashboard_id=dashboard_id)
        legacy = self.storage.pop(legacy_key, None)

        raw = self.storage.get(self.key_for(dashboard_id))
        if raw is not None:
            return self._parse(raw)

        if legacy is None:
            return Preferences()

        try:
            migrated = Preferences(group_by_labels=_string_list(json.loads(legacy)))
        except ValueError:
            logger.debug("Dropping unparseable legacy grouping for %s", dashboard_id)
            return Preferences()

        self.save(dashboard_id, migrated)
        return migrated

    def save(self, dashboard_id: str, preferences: Preferences) -> None:
        self.storage[self.key_for(dashboard_id)] = json.dumps(preferences.to_dict())

    def _parse(self, raw: str) -> Preferences:
        try:
            data = json.loads(raw)
            if not isinstance(data, dict):
                raise ValueError("preferences record is not an object")
            return Preferences(
                group_by_labels=_string_list(data.get("groupByLabels", [])),
                group_by_authors=_string_list(data.get("groupByAuthors", [])),
                version=int(data.get("version", PREFERENCES_VERSION)),
            )
        except (ValueError, TypeError):
            logger.debug("Unparseable preferences record, using defaults")
            return Preferences()
