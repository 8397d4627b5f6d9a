"""Rate-aware scaling and swap fee helpers.

Raw token amounts are converted into invariant space by normalizing them to
18 decimals (scaling factor) and multiplying by the asset's exchange rate.
Downscaling divides by the rate again, rounding in the direction the caller
asks for.
"""

from yieldswap.constants import MAX_SWAP_FEE_PERCENTAGE
from yieldswap.math.fixed_point import Fp

from .errors import InvalidRate, InvalidScalingFactor, InvalidSwapFee


def _check_scaling(scaling_factor: int, rate: Fp) -> None:
    if scaling_factor <= 0:
        raise InvalidScalingFactor(f"Scaling factor must be positive, got {scaling_factor}")
    if rate.value <= 0:
        raise InvalidRate(f"Rate must be positive, got {rate.value}")


def scale_up(amount: int, scaling_factor: int, rate: Fp, round_up: bool = False) -> Fp:
    """Convert a raw amount into a rate-adjusted 18-decimal amount.

    Args:
        amount: Amount in the token's native decimals
        scaling_factor: Factor normalizing to 18 decimals (10^12 for 6 decimals)
        rate: Current exchange rate of the asset (18 decimals)
        round_up: Round the rate multiplication up instead of down

    Returns:
        Rate-adjusted amount

    Raises:
        InvalidScalingFactor: If scaling_factor <= 0
        InvalidRate: If rate <= 0
    """
    _check_scaling(scaling_factor, rate)
    normalized = Fp.from_wei(amount * scaling_factor)
    return normalized.mul_up(rate) if round_up else normalized.mul_down(rate)


def scale_down_down(amount: Fp, scaling_factor: int, rate: Fp) -> int:
    """Convert a rate-adjusted amount back to raw units, rounding down."""
    _check_scaling(scaling_factor, rate)
    return amount.div_down(rate).value // scaling_factor


def scale_down_up(amount: Fp, scaling_factor: int, rate: Fp) -> int:
    """Convert a rate-adjusted amount back to raw units, rounding up."""
    _check_scaling(scaling_factor, rate)
    unrated = amount.div_up(rate).value
    if unrated == 0:
        return 0
    return (unrated - 1) // scaling_factor + 1


def validate_swap_fee(swap_fee: Fp) -> Fp:
    """Check 0 <= swap_fee <= MAX_SWAP_FEE_PERCENTAGE.

    Raises:
        InvalidSwapFee: If the fee is out of range
    """
    if swap_fee.value < 0 or swap_fee > MAX_SWAP_FEE_PERCENTAGE:
        raise InvalidSwapFee(
            f"Swap fee must be in range [0, {MAX_SWAP_FEE_PERCENTAGE}], got {swap_fee}"
        )
    return swap_fee


def subtract_swap_fee_amount(amount: int, swap_fee: Fp) -> int:
    """Subtract the swap fee from an input amount.

    Used for given-in swaps: the fee is rounded up, favoring the pool.

    Raises:
        InvalidSwapFee: If the fee is out of range
    """
    validate_swap_fee(swap_fee)
    amount_fp = Fp.from_wei(amount)
    fee_amount = amount_fp.mul_up(swap_fee)
    return amount_fp.sub(fee_amount).value


def add_swap_fee_amount(amount: int, swap_fee: Fp) -> int:
    """Gross up a pre-fee input amount: amount / (1 - fee), rounded up.

    Used for given-out swaps after the pre-fee input has been solved.

    Raises:
        InvalidSwapFee: If the fee is out of range
    """
    validate_swap_fee(swap_fee)
    return Fp.from_wei(amount).div_up(swap_fee.complement()).value
