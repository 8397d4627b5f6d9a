"""Pytest configuration and fixtures."""

import pytest

from tests.helpers import ONE_TOKEN, FakeClock, PoolHarness, make_pool


@pytest.fixture
def clock() -> FakeClock:
    """A fresh settable clock at T0."""
    return FakeClock()


@pytest.fixture
def balanced_pool(clock: FakeClock) -> PoolHarness:
    """1000/1000 pool at A=5, 0.3% fee, rates 1:1, seeded by ALICE."""
    return make_pool(balances=(1000 * ONE_TOKEN, 1000 * ONE_TOKEN), clock=clock)
