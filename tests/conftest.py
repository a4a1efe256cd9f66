"""Shared fixtures for the docs proxy tests."""

import pytest

from fakes import SEARCH_TOOL, FakeClock, FakeRemoteClient


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def remote():
    return FakeRemoteClient([SEARCH_TOOL])


@pytest.fixture
def unreachable():
    return FakeRemoteClient(fail=True)
