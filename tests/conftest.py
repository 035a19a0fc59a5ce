"""Shared pytest fixtures for atomsync tests."""

import pytest

from atomsync import _anchor, set_scheduler


@pytest.fixture(autouse=True)
def reset_runtime():
    """Start every test with no listeners, no pending batch and no scheduler."""
    _anchor.reset()
    yield
    set_scheduler(None)
    _anchor.reset()
