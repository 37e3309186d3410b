"""Shared fixtures for the resolver test-suite."""

import pytest

from versioning.cache import RESULT_CACHE


@pytest.fixture(autouse=True)
def clear_result_cache():
    """Keep the process-wide result cache from leaking between tests."""
    RESULT_CACHE.clear()
    yield
    RESULT_CACHE.clear()
