"""Swap sizing to even out a two-token position.

A holder of (amount0, amount1) who wants to exit with equal amounts of both
tokens swaps part of the larger side into the smaller one. The swap size is
found by re-estimating the effective exchange rate from each quote:

    amount_in = difference / (1 + rate)
    rate      = amount_out / amount_in

starting from the pool's spot price. Each step uses stored rates only.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog

from yieldswap import constants
from yieldswap.math.fixed_point import ONE, Fp

from .errors import ConvergenceFailure

if TYPE_CHECKING:
    from .pool import StableSwapPool

logger = structlog.get_logger()


def get_swap_amount_to_end_with_equal_shares(
    pool: StableSwapPool,
    amount0: int,
    amount1: int,
    threshold: int,
) -> tuple[str, int]:
    """Size a given-in swap that leaves both amounts within threshold.

    Args:
        pool: Pool to quote against
        amount0: Holding of the pool's first token (raw units)
        amount1: Holding of the pool's second token (raw units)
        threshold: Largest acceptable difference between the final amounts

    Returns:
        (token_in, amount_in). amount_in is 0 when the holdings are already
        within threshold.

    Raises:
        ConvergenceFailure: If no swap size is found within the iteration cap
    """
    if threshold <= 0:
        raise ValueError(f"threshold must be positive, got {threshold}")

    token0, token1 = pool.tokens
    in_is_first = amount0 >= amount1
    token_in = token0 if in_is_first else token1
    larger, smaller = (amount0, amount1) if in_is_first else (amount1, amount0)

    difference = larger - smaller
    if difference < threshold:
        return token_in, 0

    spot = pool.spot_price()
    rate = spot if in_is_first else ONE.div_down(spot)

    for iteration in range(constants.EQUAL_SHARES_MAX_ITERATIONS):
        amount_in = max(1, Fp(difference).div_down(ONE.add(rate)).value)
        amount_out = pool.quote_given_in(token_in, amount_in)

        new_difference = abs((larger - amount_in) - (smaller + amount_out))
        if new_difference < threshold:
            logger.debug(
                "equal_shares_converged",
                pool=pool.address,
                token_in=token_in,
                amount_in=amount_in,
                iterations=iteration + 1,
            )
            return token_in, amount_in

        rate = Fp(amount_out).div_down(Fp(amount_in))

    logger.debug(
        "equal_shares_not_converged",
        pool=pool.address,
        amount0=amount0,
        amount1=amount1,
        threshold=threshold,
    )
    raise ConvergenceFailure(
        f"Equal-shares swap did not converge after "
        f"{constants.EQUAL_SHARES_MAX_ITERATIONS} iterations"
    )
