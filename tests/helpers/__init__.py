"""Test helpers module for shared test utilities.

This module consolidates common test utilities to reduce duplication:
- constants: Token addresses, accounts and common amounts
- factories: Pool and clock factories
"""

from tests.helpers.constants import (
    ALICE,
    AUSDC,
    BOB,
    HOUR,
    ONE_TOKEN,
    POOL,
    RETH,
    T0,
    TREASURY,
    WSTETH,
)
from tests.helpers.factories import FakeClock, PoolHarness, make_pool

__all__ = [
    # Constants
    "WSTETH",
    "RETH",
    "AUSDC",
    "POOL",
    "ALICE",
    "BOB",
    "TREASURY",
    "ONE_TOKEN",
    "T0",
    "HOUR",
    # Factories
    "FakeClock",
    "PoolHarness",
    "make_pool",
]
