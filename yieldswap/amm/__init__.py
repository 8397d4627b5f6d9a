"""Rate-aware two-asset stable-swap pool.

Layers, bottom up:
- stable_math: invariant and balance solvers, swap and LP share formulas
- scaling: raw <-> rate-adjusted conversion and swap fee helpers
- amplification: amplification ramp schedule
- rates / ledger: rate provider and transfer interfaces
- pool: StableSwapPool, the stateful orchestrator
"""

# Amplification
from .amplification import AmplificationParameter, AmplificationSchedule

# Equal-shares swap sizing
from .equal_shares import get_swap_amount_to_end_with_equal_shares

# Errors
from .errors import (
    AmplificationOutOfBounds,
    AmplificationUpdateTooShort,
    ConvergenceFailure,
    DeadlineExpired,
    InsufficientFunds,
    InsufficientLiquidity,
    InvalidRate,
    InvalidScalingFactor,
    InvalidSwapFee,
    InvalidToken,
    NoOngoingUpdate,
    OngoingUpdate,
    RateTooHigh,
    SlippageExceeded,
    StableSwapError,
    Uninitialized,
    ZeroAmount,
    ZeroBalanceError,
)

# Ledger
from .ledger import InMemoryLedger, Ledger, Transfer

# Pool
from .pool import PoolToken, StableSwapPool, SwapKind, utc_now

# Rate providers
from .rates import CachedRateProvider, RateProvider, StaticRateProvider

# Stable math
from .stable_math import (
    calc_in_given_out,
    calc_out_given_in,
    calculate_invariant,
    get_token_balance_given_invariant_and_other_balance,
)

__all__ = [
    # Amplification
    "AmplificationParameter",
    "AmplificationSchedule",
    # Equal shares
    "get_swap_amount_to_end_with_equal_shares",
    # Errors
    "AmplificationOutOfBounds",
    "AmplificationUpdateTooShort",
    "ConvergenceFailure",
    "DeadlineExpired",
    "InsufficientFunds",
    "InsufficientLiquidity",
    "InvalidRate",
    "InvalidScalingFactor",
    "InvalidSwapFee",
    "InvalidToken",
    "NoOngoingUpdate",
    "OngoingUpdate",
    "RateTooHigh",
    "SlippageExceeded",
    "StableSwapError",
    "Uninitialized",
    "ZeroAmount",
    "ZeroBalanceError",
    # Ledger
    "InMemoryLedger",
    "Ledger",
    "Transfer",
    # Pool
    "PoolToken",
    "StableSwapPool",
    "SwapKind",
    "utc_now",
    # Rates
    "CachedRateProvider",
    "RateProvider",
    "StaticRateProvider",
    # Stable math
    "calc_in_given_out",
    "calc_out_given_in",
    "calculate_invariant",
    "get_token_balance_given_invariant_and_other_balance",
]
