"""Shared fixtures for prboard tests."""

from prboard.testing.fixtures import (  # noqa: F401
    fake_clock,
    mock_fetch_service,
    sample_labels,
    sample_record,
    ttl_cache,
)
