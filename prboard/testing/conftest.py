"""
Pytest plugin for prboard testing fixtures.

To use these fixtures in your tests, add this to your conftest.py:

    pytest_plugins = ["prboard.testing.conftest"]
"""

from prboard.testing.fixtures import (
    fake_clock,
    mock_fetch_service,
    sample_labels,
    sample_record,
    ttl_cache,
)

__all__ = [
    "fake_clock",
    "mock_fetch_service",
    "sample_labels",
    "sample_record",
    "ttl_cache",
]
