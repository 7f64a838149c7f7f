"""prboard testing utilities.

Provides a mock fetch service and fixtures for testing applications that use
the dashboard pipeline.
"""

from prboard.testing.fixtures import (
    FakeClock,
    create_mock_label,
    create_mock_record,
    create_raw_pull_request,
)
from prboard.testing.mock import MockCall, MockFetchService, MockResponse

__all__ = [
    # Mock service
    "MockFetchService",
    "MockCall",
    "MockResponse",
    # Helper functions
    "FakeClock",
    "create_mock_record",
    "create_mock_label",
    "create_raw_pull_request",
]
