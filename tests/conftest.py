"""Shared pytest fixtures."""
import pytest

from netbridge.services.monitoring import ConnectivityMonitor, ImmediateDispatcher
from tests.fakes import FIXED_MILLIS, FakeChangeSource, FakeSampler


@pytest.fixture
def sampler():
    return FakeSampler()


@pytest.fixture
def source():
    return FakeChangeSource()


@pytest.fixture
def monitor(sampler, source):
    """Monitor with inline delivery and a frozen clock."""
    mon = ConnectivityMonitor(
        sampler=sampler,
        change_source=source,
        dispatcher=ImmediateDispatcher(),
        clock=lambda: FIXED_MILLIS,
    )
    yield mon
    mon.dispose()
