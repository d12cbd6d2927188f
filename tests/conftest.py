"""Shared fixtures for the DOM Snapshot test suite."""

import pytest

from fakes import FakeEnvironment, FakeFetcher


@pytest.fixture
def fetcher():
    """Fetcher with no resources; every fetch fails."""
    return FakeFetcher()


@pytest.fixture
def environment():
    """Light-mode environment where no media condition matches."""
    return FakeEnvironment()
