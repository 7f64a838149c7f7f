"""prboard type definitions.

This module exports all data model types used by the dashboard pipeline.
"""

from prboard.types.dashboards import DashboardConfig, Defaults, split_csv
from prboard.types.filters import FilterOptions, ViewState
from prboard.types.groups import GroupBucket
from prboard.types.records import (
    DEFAULT_LABEL_COLOR,
    STATE_FILTERS,
    Author,
    Label,
    RawRecordPage,
    Record,
)

__all__ = [
    # Record types
    "Author",
    "Label",
    "Record",
    "RawRecordPage",
    "STATE_FILTERS",
    "DEFAULT_LABEL_COLOR",
    # Filter types
    "FilterOptions",
    "ViewState",
    # Grouping types
    "GroupBucket",
    # Dashboard types
    "DashboardConfig",
    "Defaults",
    "split_csv",
]
