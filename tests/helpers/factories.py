"""Factory functions for creating test pools.

Usage:
    from tests.helpers import make_pool
    # or
    from tests.helpers.factories import make_pool, FakeClock

    harness = make_pool(balances=(1000 * ONE_TOKEN, 1000 * ONE_TOKEN))
    harness.pool.quote_given_in(WSTETH, ONE_TOKEN)
"""

from dataclasses import dataclass, field
from decimal import Decimal

from tests.helpers.constants import ALICE, POOL, RETH, T0, WSTETH
from yieldswap.amm import InMemoryLedger, PoolToken, StableSwapPool, StaticRateProvider
from yieldswap.math.fixed_point import ONE_18, Fp


class FakeClock:
    """Settable clock returning unix seconds."""

    def __init__(self, now: int = T0) -> None:
        self.now = now

    def __call__(self) -> int:
        return self.now

    def advance(self, seconds: int) -> None:
        self.now += seconds


@dataclass
class PoolHarness:
    """A pool together with the collaborators tests need to poke at."""

    pool: StableSwapPool
    ledger: InMemoryLedger
    clock: FakeClock
    rate_providers: tuple[StaticRateProvider, StaticRateProvider]
    shares: int = 0
    lp: str = field(default=ALICE)

    @property
    def deadline(self) -> int:
        """A deadline one hour out."""
        return self.clock.now + 3600

    def fund(self, account: str, amount0: int = 0, amount1: int = 0) -> None:
        """Mint pool tokens to account."""
        token0, token1 = self.pool.tokens
        if amount0:
            self.ledger.mint(token0, account, amount0)
        if amount1:
            self.ledger.mint(token1, account, amount1)

    def set_rates(self, rate0: int | None = None, rate1: int | None = None) -> None:
        """Move the rate of either asset (raw 18-decimal values)."""
        if rate0 is not None:
            self.rate_providers[0].set_rate(Fp(rate0))
        if rate1 is not None:
            self.rate_providers[1].set_rate(Fp(rate1))


def make_pool(
    balances: tuple[int, int] | None = None,
    amplification: int = 5,
    swap_fee: str | Decimal = "0.003",
    protocol_swap_fee: str | Decimal = "0",
    rates: tuple[int, int] = (ONE_18, ONE_18),
    scaling_factors: tuple[int, int] = (1, 1),
    tokens: tuple[str, str] = (WSTETH, RETH),
    clock: FakeClock | None = None,
    lp: str = ALICE,
    amplification_end: int | None = None,
    amplification_end_time: int | None = None,
) -> PoolHarness:
    """Create a pool with sensible defaults, optionally seeded by lp.

    Args:
        balances: Initial join amounts (raw). None leaves the pool empty.
        amplification: Raw amplification (default: 5)
        swap_fee: Swap fee as decimal (default: 0.3%)
        protocol_swap_fee: Protocol fee share as decimal (default: 0)
        rates: Initial rates, 18 decimals (default: 1.0 each)
        scaling_factors: Per-token scaling factors (default: 1 each)
        tokens: Token ids (default: wstETH, rETH)
        clock: Clock to drive the pool (default: FakeClock at T0)
        lp: Account that performs the initial join (default: ALICE)

    Returns:
        PoolHarness with the pool, ledger, clock and rate providers
    """
    clock = clock or FakeClock()
    ledger = InMemoryLedger()
    providers = (StaticRateProvider(Fp(rates[0])), StaticRateProvider(Fp(rates[1])))
    pool = StableSwapPool(
        address=POOL,
        tokens=(
            PoolToken(tokens[0], scaling_factors[0], providers[0]),
            PoolToken(tokens[1], scaling_factors[1], providers[1]),
        ),
        amplification=amplification,
        swap_fee=Fp.from_decimal(swap_fee),
        ledger=ledger,
        protocol_swap_fee=Fp.from_decimal(protocol_swap_fee),
        clock=clock,
        amplification_end=amplification_end,
        amplification_end_time=amplification_end_time,
    )
    harness = PoolHarness(pool=pool, ledger=ledger, clock=clock, rate_providers=providers, lp=lp)

    if balances is not None:
        harness.fund(lp, *balances)
        harness.shares = pool.join(
            balances[0], balances[1], min_shares_out=0, recipient=lp, deadline=harness.deadline
        )
    return harness
