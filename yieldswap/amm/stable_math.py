"""Two-asset stable-swap math.

Pure functions over rate-adjusted, 18-decimal balances:
- the invariant D (Newton-Raphson, capped at 255 iterations)
- the complementary balance for a given D (closed-form quadratic)
- swap quotes (given in / given out)
- LP share quotes for proportional and imbalanced joins and exits
- protocol fee sizing and spot price

Amplification values are scaled by AMP_PRECISION (A=5 is passed as 5000).
Fees are applied by the callers except where the liquidity formulas charge
them on the excess contribution.

IMPORTANT: All intermediate arithmetic uses SafeInt so that a division by
zero or an unexpected underflow raises instead of producing a bogus quote.
"""

from collections.abc import Sequence

from yieldswap.constants import AMP_PRECISION, INVARIANT_MAX_ITERATIONS, N_TOKENS
from yieldswap.math.fixed_point import ONE, Fp
from yieldswap.safe_int import S

from .errors import ConvergenceFailure, InsufficientLiquidity, InvalidToken, ZeroBalanceError


def _check_index(token_index: int) -> int:
    if token_index not in (0, 1):
        raise InvalidToken(f"token index {token_index} out of range for {N_TOKENS} tokens")
    return 1 - token_index


def calculate_invariant(amp: int, balances: Sequence[Fp], round_up: bool = True) -> Fp:
    """Calculate the stable-swap invariant D using Newton-Raphson iteration.

    Algorithm:
        1. Initial guess: D = sum(balances)
        2. P_D = n * b0, then P_D = P_D * b_j * n / D for the remaining balances
        3. D' = (n*D^2 + A*n*S*P_D) / ((n+1)*D + (A*n - 1)*P_D)
        4. Stop once |D' - D| <= 1

    Args:
        amp: Amplification parameter (scaled by AMP_PRECISION)
        balances: Rate-adjusted balances (18 decimals)
        round_up: Rounding direction for the divisions inside each iteration

    Returns:
        The invariant D as Fp. Zero when both balances are zero.

    Raises:
        ZeroBalanceError: If exactly one balance is zero
        ConvergenceFailure: If the iteration does not converge within budget
    """
    n_coins = len(balances)
    sum_balances = S(sum(b.value for b in balances))
    if sum_balances == 0:
        return Fp(0)

    for i, bal in enumerate(balances):
        if bal.value <= 0:
            raise ZeroBalanceError(f"Balance at index {i} must be positive")

    invariant = sum_balances
    amp_times_total = S(amp) * n_coins

    for _ in range(INVARIANT_MAX_ITERATIONS):
        p_d = S(balances[0].value) * n_coins
        for bal in balances[1:]:
            p_d = (p_d * bal.value * n_coins).div(invariant, round_up)

        prev_invariant = invariant

        numerator = S(n_coins) * invariant * invariant + (amp_times_total * sum_balances * p_d).div(
            AMP_PRECISION, round_up
        )
        denominator = S(n_coins + 1) * invariant + ((amp_times_total - AMP_PRECISION) * p_d).div(
            AMP_PRECISION, not round_up
        )
        invariant = numerator.div(denominator, round_up)

        if invariant.abs_diff(prev_invariant) <= 1:
            return Fp(invariant.to_uint256())

    raise ConvergenceFailure(
        f"Stable invariant did not converge after {INVARIANT_MAX_ITERATIONS} iterations"
    )


def get_token_balance_given_invariant_and_other_balance(
    amp: int,
    other_balance: Fp,
    invariant: Fp,
) -> Fp:
    """Solve for the missing balance y given D and the other balance.

    Fixing the known balance x and D reduces the invariant to

        y^2 + b*y - c = 0
        b = D / (A*n) + x - D
        c = D^(n+1) / (n^(n+1) * x * A)

    whose positive root is y = (-b + sqrt(b^2 + 4c)) / 2. The result is
    rounded up so the pool never hands out more than the curve allows.

    Args:
        amp: Amplification parameter (scaled by AMP_PRECISION)
        other_balance: Balance of the token NOT being solved for
        invariant: The invariant D to preserve

    Returns:
        The solved balance as Fp

    Raises:
        ZeroBalanceError: If other_balance is zero
    """
    if other_balance.value <= 0:
        raise ZeroBalanceError("Known balance must be positive")

    d = S(invariant.value)
    known = S(other_balance.value)
    amp_times_total = S(amp) * N_TOKENS

    # b is signed: it goes negative whenever D exceeds D/(A*n) + x
    b = ((d * AMP_PRECISION) // amp_times_total + known).value - d.value
    c = (d * d * d * AMP_PRECISION).ceiling_div(S(N_TOKENS ** (N_TOKENS + 1)) * known * amp)

    discriminant = S(b * b) + c * 4
    root = discriminant.isqrt(round_up=True)

    return Fp(S(root.value - b).ceiling_div(2).to_uint256())


def calc_out_given_in(
    amp: int,
    balances: Sequence[Fp],
    token_index_in: int,
    amount_in: Fp,
) -> Fp:
    """Calculate the output amount for a given input.

    The swap fee must already be subtracted from amount_in.

    Algorithm:
        1. Calculate current invariant D
        2. Add amount_in to the in-balance
        3. Solve the out-balance at the same D
        4. Return old_out - new_out - 1 (1 wei rounding protection)

    Raises:
        InvalidToken: If token_index_in is not 0 or 1
        ConvergenceFailure: If the invariant does not converge
    """
    token_index_out = _check_index(token_index_in)

    invariant = calculate_invariant(amp, balances, round_up=True)

    new_balance_in = balances[token_index_in].add(amount_in)
    new_balance_out = get_token_balance_given_invariant_and_other_balance(
        amp, new_balance_in, invariant
    )

    old_balance_out = balances[token_index_out].value
    if new_balance_out.value + 1 >= old_balance_out:
        return Fp(0)
    return Fp(old_balance_out - new_balance_out.value - 1)


def calc_in_given_out(
    amp: int,
    balances: Sequence[Fp],
    token_index_in: int,
    amount_out: Fp,
) -> Fp:
    """Calculate the input amount needed for a given output.

    The swap fee must be added to the result by the caller.

    Algorithm:
        1. Calculate current invariant D
        2. Subtract amount_out from the out-balance
        3. Solve the in-balance at the same D
        4. Return new_in - old_in + 1 (1 wei rounding protection)

    Raises:
        InvalidToken: If token_index_in is not 0 or 1
        InsufficientLiquidity: If amount_out >= balance_out
        ConvergenceFailure: If the invariant does not converge
    """
    token_index_out = _check_index(token_index_in)

    if amount_out.value >= balances[token_index_out].value:
        raise InsufficientLiquidity("amount_out must be less than balance_out")

    invariant = calculate_invariant(amp, balances, round_up=True)

    new_balance_out = balances[token_index_out].sub(amount_out)
    new_balance_in = get_token_balance_given_invariant_and_other_balance(
        amp, new_balance_out, invariant
    )

    old_balance_in = balances[token_index_in].value
    return Fp(max(0, new_balance_in.value - old_balance_in) + 1)


def calc_lp_out_given_exact_tokens_in(
    amp: int,
    balances: Sequence[Fp],
    amounts_in: Sequence[Fp],
    total_supply: int,
    swap_fee: Fp,
) -> int:
    """LP shares minted for an imbalanced deposit.

    Each asset's balance ratio (after/before) is compared with the
    value-weighted average ratio. Assets above the average pay the swap fee
    on the excess portion only, so a proportional deposit pays nothing.

    Returns:
        Shares to mint; zero if the fee-adjusted invariant does not grow.
    """
    current_invariant = calculate_invariant(amp, balances, round_up=True)

    sum_balances = Fp(sum(b.value for b in balances))

    balance_ratios_with_fee = []
    invariant_ratio_with_fees = Fp(0)
    for balance, amount_in in zip(balances, amounts_in, strict=True):
        current_weight = balance.div_down(sum_balances)
        ratio = balance.add(amount_in).div_down(balance)
        balance_ratios_with_fee.append(ratio)
        invariant_ratio_with_fees = invariant_ratio_with_fees.add(ratio.mul_down(current_weight))

    new_balances = []
    for balance, amount_in, ratio in zip(balances, amounts_in, balance_ratios_with_fee, strict=True):
        if ratio > invariant_ratio_with_fees:
            non_taxable_amount = balance.mul_down(invariant_ratio_with_fees.sub(ONE))
            taxable_amount = amount_in.sub(non_taxable_amount)
            amount_in_without_fee = non_taxable_amount.add(
                taxable_amount.mul_down(swap_fee.complement())
            )
        else:
            amount_in_without_fee = amount_in
        new_balances.append(balance.add(amount_in_without_fee))

    new_invariant = calculate_invariant(amp, new_balances, round_up=False)
    invariant_ratio = new_invariant.div_down(current_invariant)

    if invariant_ratio > ONE:
        return Fp(total_supply).mul_down(invariant_ratio.sub(ONE)).value
    return 0


def calc_lp_in_given_exact_tokens_out(
    amp: int,
    balances: Sequence[Fp],
    amounts_out: Sequence[Fp],
    total_supply: int,
    swap_fee: Fp,
) -> int:
    """LP shares burned for an imbalanced withdrawal.

    Mirror of calc_lp_out_given_exact_tokens_in: assets withdrawn beyond the
    value-weighted average ratio have the excess grossed up by 1/(1 - fee).

    Raises:
        InsufficientLiquidity: If a withdrawal (with fee) drains an asset
    """
    current_invariant = calculate_invariant(amp, balances, round_up=True)

    sum_balances = Fp(sum(b.value for b in balances))

    balance_ratios_without_fee = []
    invariant_ratio_without_fees = Fp(0)
    for balance, amount_out in zip(balances, amounts_out, strict=True):
        if amount_out >= balance:
            raise InsufficientLiquidity("amount_out must be less than balance")
        current_weight = balance.div_up(sum_balances)
        ratio = balance.sub(amount_out).div_up(balance)
        balance_ratios_without_fee.append(ratio)
        invariant_ratio_without_fees = invariant_ratio_without_fees.add(ratio.mul_up(current_weight))

    new_balances = []
    for balance, amount_out, ratio in zip(
        balances, amounts_out, balance_ratios_without_fee, strict=True
    ):
        # Swap fees are normally charged on the token in; with no token in,
        # they are charged on the token out instead.
        if invariant_ratio_without_fees > ratio:
            non_taxable_amount = balance.mul_down(invariant_ratio_without_fees.complement())
            taxable_amount = amount_out.sub(non_taxable_amount)
            amount_out_with_fee = non_taxable_amount.add(
                taxable_amount.div_up(swap_fee.complement())
            )
        else:
            amount_out_with_fee = amount_out
        if amount_out_with_fee >= balance:
            raise InsufficientLiquidity("withdrawal plus fee exceeds balance")
        new_balances.append(balance.sub(amount_out_with_fee))

    new_invariant = calculate_invariant(amp, new_balances, round_up=True)
    invariant_ratio = new_invariant.div_down(current_invariant)

    return Fp(total_supply).mul_up(invariant_ratio.complement()).value


def calc_tokens_out_given_exact_lp_in(
    balances: Sequence[int],
    lp_amount_in: int,
    total_supply: int,
) -> tuple[int, int]:
    """Proportional exit: each asset out in proportion to the shares burned.

    Works on raw balances and rounds down, so no fee is needed.
    """
    if lp_amount_in > total_supply:
        raise InsufficientLiquidity("lp_amount_in exceeds total supply")
    supply = S(total_supply)
    amount0, amount1 = ((S(b) * lp_amount_in // supply).value for b in balances)
    return amount0, amount1


def calc_tokens_in_given_exact_lp_out(
    balances: Sequence[int],
    lp_amount_out: int,
    total_supply: int,
) -> tuple[int, int]:
    """Proportional join: each asset in proportion to the shares minted.

    Works on raw balances and rounds up.
    """
    supply = S(total_supply)
    amount0, amount1 = ((S(b) * lp_amount_out).ceiling_div(supply).value for b in balances)
    return amount0, amount1


def calc_token_out_given_exact_lp_in(
    amp: int,
    balances: Sequence[Fp],
    token_index: int,
    lp_amount_in: int,
    total_supply: int,
    swap_fee: Fp,
) -> Fp:
    """Single-asset exit: amount of one token for burning lp_amount_in shares.

    The burn lowers the invariant proportionally; the asset's balance at the
    new invariant is solved directly. Only the part of the withdrawal that
    exceeds the asset's current weight is a virtual swap and pays the fee.
    """
    other_index = _check_index(token_index)
    if lp_amount_in >= total_supply:
        raise InsufficientLiquidity("lp_amount_in must be less than total supply")

    current_invariant = calculate_invariant(amp, balances, round_up=True)
    supply = Fp(total_supply)
    new_invariant = Fp(total_supply - lp_amount_in).div_up(supply).mul_up(current_invariant)

    sum_balances = Fp(sum(b.value for b in balances))

    new_balance = get_token_balance_given_invariant_and_other_balance(
        amp, balances[other_index], new_invariant
    )
    amount_out_without_fee = balances[token_index].sub(new_balance)

    current_weight = balances[token_index].div_down(sum_balances)
    taxable_percentage = current_weight.complement()

    taxable_amount = amount_out_without_fee.mul_up(taxable_percentage)
    non_taxable_amount = amount_out_without_fee.sub(taxable_amount)

    return non_taxable_amount.add(taxable_amount.mul_down(swap_fee.complement()))


def calc_due_protocol_swap_fee_amount(
    amp: int,
    balances: Sequence[Fp],
    last_invariant: Fp,
    token_index: int,
    protocol_swap_fee_percentage: Fp,
) -> Fp:
    """Protocol share of the swap fees accumulated since last_invariant.

    Solves the fee token's balance that would reproduce last_invariant with
    the other balance as it is now. Anything above that is invariant growth
    from trading; the protocol takes its percentage of it, in one token.
    """
    other_index = _check_index(token_index)

    final_balance_fee_token = get_token_balance_given_invariant_and_other_balance(
        amp, balances[other_index], last_invariant
    )
    if balances[token_index] <= final_balance_fee_token:
        return Fp(0)

    accumulated_token_swap_fees = balances[token_index].sub(final_balance_fee_token)
    return accumulated_token_swap_fees.mul_down(protocol_swap_fee_percentage)


def calc_spot_price(amp: int, balances: Sequence[Fp]) -> Fp:
    """Marginal price of asset0 in units of asset1 (rate-adjusted).

    Ratio of the invariant's partial derivatives, with both multiplied
    through by AMP_PRECISION so the amplification stays an integer.
    """
    invariant = calculate_invariant(amp, balances, round_up=True).value
    x, y = (b.value for b in balances)

    a = 2 * amp
    b = invariant * AMP_PRECISION - invariant * a
    axy2 = 2 * a * x * y

    derivative_x = axy2 + a * y * y + b * y
    derivative_y = axy2 + a * x * x + b * x

    return Fp((S(derivative_x) * Fp.ONE // S(derivative_y)).value)
