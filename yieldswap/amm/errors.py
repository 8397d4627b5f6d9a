"""Stable-swap engine error classes.

Every failure the engine can surface derives from StableSwapError. Errors are
raised before any state is committed, so a caller that catches one can retry
with adjusted parameters against an unchanged pool.
"""


class StableSwapError(Exception):
    """Base error for stable-swap pool operations."""

    pass


class ZeroAmount(StableSwapError):
    """An amount that must be positive was zero."""

    pass


class InvalidToken(StableSwapError):
    """Token is not one of the pool's two assets."""

    pass


class SlippageExceeded(StableSwapError):
    """Quoted result is worse than the caller's bound."""

    pass


class Uninitialized(StableSwapError):
    """Operation requires existing liquidity."""

    pass


class ConvergenceFailure(StableSwapError):
    """An iterative solver exceeded its iteration budget.

    Never a normal-path outcome: it signals mis-sized inputs or a precision
    mismatch and should be treated as a defect.
    """

    pass


class ZeroBalanceError(StableSwapError):
    """One balance is zero while the other is positive."""

    pass


class InsufficientLiquidity(StableSwapError):
    """Requested output meets or exceeds what the pool holds."""

    pass


class DeadlineExpired(StableSwapError):
    """The caller's deadline is in the past."""

    pass


class InvalidSwapFee(StableSwapError):
    """Swap or protocol fee percentage is out of range."""

    pass


class InvalidScalingFactor(StableSwapError):
    """Scaling factor must be positive."""

    pass


class InvalidRate(StableSwapError):
    """Rate provider returned a non-positive rate."""

    pass


# Amplification ramp state machine


class AmplificationOutOfBounds(StableSwapError):
    """Target amplification is outside [MIN_AMPLIFICATION, MAX_AMPLIFICATION]."""

    pass


class AmplificationUpdateTooShort(StableSwapError):
    """Ramp end time is less than MIN_UPDATE_DURATION away."""

    pass


class OngoingUpdate(StableSwapError):
    """A ramp is already in progress."""

    pass


class NoOngoingUpdate(StableSwapError):
    """There is no ramp in progress to stop."""

    pass


class RateTooHigh(StableSwapError):
    """Ramp would change amplification faster than the daily limit."""

    pass


# Ledger


class InsufficientFunds(StableSwapError):
    """An account cannot cover a transfer."""

    pass
