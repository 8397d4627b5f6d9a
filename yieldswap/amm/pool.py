"""Two-asset rate-aware stable-swap pool.

StableSwapPool holds the pool state and orchestrates every operation:

1. read rates (fresh for one asset on mutating calls, stored otherwise)
2. upscale raw balances into invariant space
3. read the current amplification from the ramp schedule
4. call the stable math solvers and apply fees
5. settle transfers with the ledger, then commit state

Every mutating method computes all new values into locals first. Pool
attributes are only assigned after the ledger has settled, so an exception
at any step leaves the pool untouched. The pool performs no locking; callers
serialize mutating calls.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass
from datetime import UTC, datetime
from enum import Enum

import structlog

from yieldswap.constants import AMP_PRECISION, MAX_PROTOCOL_SWAP_FEE_PERCENTAGE
from yieldswap.math.fixed_point import Fp

from .amplification import AmplificationParameter, AmplificationSchedule, validate_raw_amplification
from .errors import (
    DeadlineExpired,
    InsufficientFunds,
    InsufficientLiquidity,
    InvalidScalingFactor,
    InvalidSwapFee,
    InvalidToken,
    SlippageExceeded,
    Uninitialized,
    ZeroAmount,
)
from .ledger import Ledger, Transfer
from .rates import RateProvider
from .scaling import (
    add_swap_fee_amount,
    scale_down_down,
    scale_down_up,
    scale_up,
    subtract_swap_fee_amount,
    validate_swap_fee,
)
from .stable_math import (
    calc_due_protocol_swap_fee_amount,
    calc_in_given_out,
    calc_lp_in_given_exact_tokens_out,
    calc_lp_out_given_exact_tokens_in,
    calc_out_given_in,
    calc_spot_price,
    calc_token_out_given_exact_lp_in,
    calc_tokens_in_given_exact_lp_out,
    calc_tokens_out_given_exact_lp_in,
    calculate_invariant,
)

logger = structlog.get_logger()

Clock = Callable[[], int]


def utc_now() -> int:
    """Current unix time in seconds."""
    return int(datetime.now(UTC).timestamp())


class SwapKind(str, Enum):
    """Which side of the swap the caller fixes."""

    GIVEN_IN = "given_in"
    GIVEN_OUT = "given_out"


@dataclass(frozen=True)
class PoolToken:
    """One asset slot of the pool.

    Attributes:
        token: Token identifier (address or symbol)
        scaling_factor: Factor normalizing raw amounts to 18 decimals.
            For 6-decimal tokens this is 10^12.
        rate_provider: Source of the asset's exchange rate
    """

    token: str
    scaling_factor: int
    rate_provider: RateProvider


@dataclass(frozen=True)
class _Accrual:
    """Balances net of protocol fees due since the last join/exit."""

    balances: tuple[int, int]
    fees: tuple[int, int]


class StableSwapPool:
    """Stable-swap pool between two yield-bearing assets.

    Args:
        address: Account the pool holds its tokens under in the ledger
        tokens: The two asset slots, in pool order
        amplification: Initial raw amplification (A=5 means 5, not 5000)
        swap_fee: Swap fee percentage, 0 <= fee <= 5%
        ledger: Transfer layer used to move tokens
        protocol_swap_fee: Protocol share of swap-fee growth, 0 <= pct <= 50%
        clock: Returns the current unix time in seconds
        amplification_end: Optional raw amplification to ramp to from creation
        amplification_end_time: End of that initial ramp
    """

    def __init__(
        self,
        address: str,
        tokens: tuple[PoolToken, PoolToken],
        amplification: int,
        swap_fee: Fp,
        ledger: Ledger,
        protocol_swap_fee: Fp | None = None,
        clock: Clock = utc_now,
        amplification_end: int | None = None,
        amplification_end_time: int | None = None,
    ) -> None:
        if len(tokens) != 2:
            raise ValueError(f"Pool requires exactly 2 tokens, got {len(tokens)}")
        if tokens[0].token.lower() == tokens[1].token.lower():
            raise InvalidToken(f"Pool tokens must be distinct, got {tokens[0].token} twice")
        for pool_token in tokens:
            if pool_token.scaling_factor <= 0:
                raise InvalidScalingFactor(
                    f"Scaling factor for {pool_token.token} must be positive, "
                    f"got {pool_token.scaling_factor}"
                )
        protocol_swap_fee = protocol_swap_fee if protocol_swap_fee is not None else Fp(0)
        _validate_protocol_fee(protocol_swap_fee)

        self.address = address
        self._tokens = tokens
        self._swap_fee = validate_swap_fee(swap_fee)
        self._protocol_swap_fee = protocol_swap_fee
        self._ledger = ledger
        self._clock = clock

        now = clock()
        schedule = AmplificationSchedule.stable(validate_raw_amplification(amplification), now)
        if amplification_end is not None or amplification_end_time is not None:
            if amplification_end is None or amplification_end_time is None:
                raise ValueError("amplification_end and amplification_end_time go together")
            schedule = schedule.start_update(amplification_end, amplification_end_time, now)
        self._schedule = schedule

        self._balances: tuple[int, int] = (0, 0)
        self._protocol_fees: tuple[int, int] = (0, 0)
        self._total_supply = 0
        self._shares: dict[str, int] = {}
        self._last_invariant = 0
        self._last_invariant_amp = 0
        self._last_invariant_rates: tuple[Fp, Fp] = (Fp(Fp.ONE), Fp(Fp.ONE))

    # ------------------------------------------------------------------
    # State accessors
    # ------------------------------------------------------------------

    @property
    def tokens(self) -> tuple[str, str]:
        return self._tokens[0].token, self._tokens[1].token

    @property
    def balances(self) -> tuple[int, int]:
        """Raw balances available to LPs (protocol fees excluded)."""
        return self._balances

    @property
    def protocol_fees(self) -> tuple[int, int]:
        """Raw protocol fees withheld and not yet collected."""
        return self._protocol_fees

    @property
    def swap_fee(self) -> Fp:
        return self._swap_fee

    @property
    def protocol_swap_fee(self) -> Fp:
        return self._protocol_swap_fee

    @property
    def total_supply(self) -> int:
        return self._total_supply

    @property
    def schedule(self) -> AmplificationSchedule:
        return self._schedule

    @property
    def is_initialized(self) -> bool:
        return self._total_supply > 0

    def balance_of(self, holder: str) -> int:
        """LP shares held by holder."""
        return self._shares.get(holder, 0)

    def get_last_invariant(self) -> tuple[int, int]:
        """(invariant, amplification) recorded at the last join or exit."""
        return self._last_invariant, self._last_invariant_amp

    def get_amplification(self) -> AmplificationParameter:
        """Current (value, is_updating, precision)."""
        return self._schedule.value_at(self._clock())

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _index_of(self, token: str) -> int:
        token_lower = token.lower()
        for index, pool_token in enumerate(self._tokens):
            if pool_token.token.lower() == token_lower:
                return index
        logger.debug("stable_pool_token_not_found", pool=self.address, token=token)
        raise InvalidToken(f"{token} is not traded by pool {self.address}")

    def _rates(self, fresh_index: int | None) -> tuple[Fp, Fp]:
        """Read both rates; fresh_index (if any) is read fresh."""
        rate0, rate1 = (
            pool_token.rate_provider.current_rate()
            if index == fresh_index
            else pool_token.rate_provider.stored_rate()
            for index, pool_token in enumerate(self._tokens)
        )
        return rate0, rate1

    def _active_index(self, amounts: Sequence[int]) -> int:
        """Asset moving the most value in a join or exit; its rate is read fresh.

        A single-sided amount picks its own asset. When both move, the larger
        amount at stored rates wins, ties going to asset0.
        """
        if amounts[1] == 0:
            return 0
        if amounts[0] == 0:
            return 1
        scaled = self._upscale(amounts, self._rates(None))
        return 0 if scaled[0] >= scaled[1] else 1

    def _upscale(self, amounts: Sequence[int], rates: Sequence[Fp]) -> list[Fp]:
        return [
            scale_up(amount, pool_token.scaling_factor, rate)
            for amount, pool_token, rate in zip(amounts, self._tokens, rates, strict=True)
        ]

    def _amp(self, now: int) -> int:
        return self._schedule.value_at(now).value

    def _check_deadline(self, deadline: int, now: int) -> None:
        if now > deadline:
            logger.debug("stable_pool_deadline_expired", pool=self.address, deadline=deadline, now=now)
            raise DeadlineExpired(f"Deadline {deadline} passed at {now}")

    def _require_initialized(self) -> None:
        if self._total_supply == 0:
            raise Uninitialized(f"Pool {self.address} has no liquidity")

    def _accrue_protocol_fees(self) -> _Accrual:
        """Protocol fees due since the last join/exit, collected in one token.

        Balances are upscaled with the rates recorded alongside the last
        invariant, so rate drift since then is not counted as fee growth.
        The asset with the larger rate-adjusted balance pays; ties go to
        asset0.
        """
        balances = self._balances
        if self._protocol_swap_fee.value == 0 or self._last_invariant == 0:
            return _Accrual(balances=balances, fees=(0, 0))

        rates = self._last_invariant_rates
        scaled = self._upscale(balances, rates)
        chosen = 0 if scaled[0] >= scaled[1] else 1
        fee_scaled = calc_due_protocol_swap_fee_amount(
            self._last_invariant_amp,
            scaled,
            Fp(self._last_invariant),
            chosen,
            self._protocol_swap_fee,
        )
        fee = scale_down_down(fee_scaled, self._tokens[chosen].scaling_factor, rates[chosen])
        if fee == 0:
            return _Accrual(balances=balances, fees=(0, 0))

        fees = (fee, 0) if chosen == 0 else (0, fee)
        return _Accrual(
            balances=(balances[0] - fees[0], balances[1] - fees[1]),
            fees=fees,
        )

    def _invariant_of(self, balances: Sequence[int], rates: Sequence[Fp], amp: int) -> int:
        return calculate_invariant(amp, self._upscale(balances, rates), round_up=True).value

    def _commit_liquidity(
        self,
        balances: tuple[int, int],
        accrual: _Accrual,
        holder: str,
        share_delta: int,
        invariant: int,
        amp: int,
        rates: tuple[Fp, Fp],
    ) -> None:
        """Write the outcome of a join or exit and refresh the invariant cache."""
        self._balances = balances
        self._protocol_fees = (
            self._protocol_fees[0] + accrual.fees[0],
            self._protocol_fees[1] + accrual.fees[1],
        )
        self._total_supply += share_delta
        holder_shares = self._shares.get(holder, 0) + share_delta
        if holder_shares:
            self._shares[holder] = holder_shares
        else:
            self._shares.pop(holder, None)
        self._last_invariant = invariant
        self._last_invariant_amp = amp
        self._last_invariant_rates = rates

        if accrual.fees != (0, 0):
            logger.info(
                "protocol_fees_accrued",
                pool=self.address,
                fee0=accrual.fees[0],
                fee1=accrual.fees[1],
            )

    # ------------------------------------------------------------------
    # Swap pricing
    # ------------------------------------------------------------------

    def _price_given_in(
        self,
        index_in: int,
        amount_in: int,
        balances: Sequence[int],
        rates: Sequence[Fp],
        amp: int,
    ) -> int:
        if amount_in <= 0:
            raise ZeroAmount("amount_in must be positive")
        self._require_initialized()
        index_out = 1 - index_in

        amount_in_after_fee = subtract_swap_fee_amount(amount_in, self._swap_fee)
        scaled_balances = self._upscale(balances, rates)
        scaled_in = scale_up(
            amount_in_after_fee, self._tokens[index_in].scaling_factor, rates[index_in]
        )

        scaled_out = calc_out_given_in(amp, scaled_balances, index_in, scaled_in)
        return scale_down_down(scaled_out, self._tokens[index_out].scaling_factor, rates[index_out])

    def _price_given_out(
        self,
        index_in: int,
        amount_out: int,
        balances: Sequence[int],
        rates: Sequence[Fp],
        amp: int,
    ) -> int:
        if amount_out <= 0:
            raise ZeroAmount("amount_out must be positive")
        self._require_initialized()
        index_out = 1 - index_in

        if amount_out >= balances[index_out]:
            raise InsufficientLiquidity(
                f"amount_out {amount_out} must be less than balance {balances[index_out]}"
            )

        scaled_balances = self._upscale(balances, rates)
        scaled_out = scale_up(
            amount_out, self._tokens[index_out].scaling_factor, rates[index_out], round_up=True
        )

        scaled_in = calc_in_given_out(amp, scaled_balances, index_in, scaled_out)
        amount_in = scale_down_up(scaled_in, self._tokens[index_in].scaling_factor, rates[index_in])
        return add_swap_fee_amount(amount_in, self._swap_fee)

    def quote_given_in(self, token_in: str, amount_in: int) -> int:
        """Expected output for selling amount_in of token_in. Pure."""
        index_in = self._index_of(token_in)
        return self._price_given_in(
            index_in, amount_in, self._balances, self._rates(None), self._amp(self._clock())
        )

    def quote_given_out(self, token_in: str, amount_out: int) -> int:
        """Input of token_in required to buy amount_out of the other token. Pure."""
        index_in = self._index_of(token_in)
        return self._price_given_out(
            index_in, amount_out, self._balances, self._rates(None), self._amp(self._clock())
        )

    def swap(
        self,
        token_in: str,
        amount: int,
        slippage_bound: int,
        kind: SwapKind,
        deadline: int,
        sender: str,
        recipient: str | None = None,
    ) -> int:
        """Execute a swap.

        For GIVEN_IN, amount is the input and slippage_bound the minimum
        output. For GIVEN_OUT, amount is the output and slippage_bound the
        maximum input.

        Returns:
            The computed side of the trade (amount out for GIVEN_IN, amount
            in for GIVEN_OUT)

        Raises:
            DeadlineExpired, InvalidToken, ZeroAmount, Uninitialized,
            SlippageExceeded, InsufficientLiquidity, InsufficientFunds
        """
        now = self._clock()
        self._check_deadline(deadline, now)
        index_in = self._index_of(token_in)
        index_out = 1 - index_in
        recipient = recipient or sender

        rates = self._rates(fresh_index=index_in)
        amp = self._amp(now)
        kind = SwapKind(kind)

        if kind is SwapKind.GIVEN_IN:
            amount_in = amount
            amount_out = self._price_given_in(index_in, amount_in, self._balances, rates, amp)
            if amount_out < slippage_bound:
                logger.debug(
                    "stable_pool_slippage_exceeded",
                    pool=self.address,
                    kind=kind.value,
                    amount_out=amount_out,
                    min_amount_out=slippage_bound,
                )
                raise SlippageExceeded(f"amount_out {amount_out} below minimum {slippage_bound}")
            if amount_out == 0:
                raise ZeroAmount("swap output rounds to zero")
            applied = amount_out
        else:
            amount_out = amount
            amount_in = self._price_given_out(index_in, amount_out, self._balances, rates, amp)
            if amount_in > slippage_bound:
                logger.debug(
                    "stable_pool_slippage_exceeded",
                    pool=self.address,
                    kind=kind.value,
                    amount_in=amount_in,
                    max_amount_in=slippage_bound,
                )
                raise SlippageExceeded(f"amount_in {amount_in} above maximum {slippage_bound}")
            applied = amount_in

        new_balances = list(self._balances)
        new_balances[index_in] += amount_in
        new_balances[index_out] -= amount_out

        self._ledger.settle(
            [
                Transfer(self._tokens[index_in].token, sender, self.address, amount_in),
                Transfer(self._tokens[index_out].token, self.address, recipient, amount_out),
            ]
        )
        self._balances = (new_balances[0], new_balances[1])

        logger.info(
            "swap_executed",
            pool=self.address,
            kind=kind.value,
            token_in=self._tokens[index_in].token,
            token_out=self._tokens[index_out].token,
            amount_in=amount_in,
            amount_out=amount_out,
            amplification=amp,
        )
        return applied

    # ------------------------------------------------------------------
    # Liquidity pricing
    # ------------------------------------------------------------------

    def _lp_out_given_tokens_in(
        self,
        amounts: tuple[int, int],
        balances: tuple[int, int],
        rates: Sequence[Fp],
        amp: int,
    ) -> int:
        if amounts[0] == 0 and amounts[1] == 0:
            raise ZeroAmount("join requires a positive amount")
        if self._total_supply == 0:
            if amounts[0] == 0 or amounts[1] == 0:
                raise ZeroAmount("initial join requires both amounts")
            return calculate_invariant(amp, self._upscale(amounts, rates), round_up=False).value
        return calc_lp_out_given_exact_tokens_in(
            amp,
            self._upscale(balances, rates),
            self._upscale(amounts, rates),
            self._total_supply,
            self._swap_fee,
        )

    def _lp_in_given_tokens_out(
        self,
        amounts: tuple[int, int],
        balances: tuple[int, int],
        rates: Sequence[Fp],
        amp: int,
    ) -> int:
        self._require_initialized()
        if amounts[0] == 0 and amounts[1] == 0:
            raise ZeroAmount("exit requires a positive amount")
        for amount, balance in zip(amounts, balances, strict=True):
            if amount >= balance:
                raise InsufficientLiquidity(f"amount_out {amount} must be less than balance {balance}")
        return calc_lp_in_given_exact_tokens_out(
            amp,
            self._upscale(balances, rates),
            self._upscale(amounts, rates),
            self._total_supply,
            self._swap_fee,
        )

    def quote_lp_out_given_tokens_in(self, amount0: int, amount1: int, initial: bool = False) -> int:
        """Shares a join of (amount0, amount1) would mint. Pure.

        Raises:
            Uninitialized: If the pool is empty and initial is not requested
        """
        if self._total_supply == 0 and not initial:
            raise Uninitialized(f"Pool {self.address} has no liquidity")
        rates = self._rates(None)
        accrual = self._accrue_protocol_fees()
        return self._lp_out_given_tokens_in(
            (amount0, amount1), accrual.balances, rates, self._amp(self._clock())
        )

    def quote_lp_in_given_tokens_out(self, amount0: int, amount1: int) -> int:
        """Shares an exit of exactly (amount0, amount1) would burn. Pure."""
        self._require_initialized()
        rates = self._rates(None)
        accrual = self._accrue_protocol_fees()
        return self._lp_in_given_tokens_out(
            (amount0, amount1), accrual.balances, rates, self._amp(self._clock())
        )

    def quote_tokens_out_given_lp_in(self, shares_in: int) -> tuple[int, int]:
        """Amounts a proportional exit of shares_in would pay out. Pure."""
        self._require_initialized()
        accrual = self._accrue_protocol_fees()
        return calc_tokens_out_given_exact_lp_in(accrual.balances, shares_in, self._total_supply)

    def quote_tokens_in_given_lp_out(self, shares_out: int) -> tuple[int, int]:
        """Amounts a proportional join minting shares_out would take. Pure."""
        self._require_initialized()
        accrual = self._accrue_protocol_fees()
        return calc_tokens_in_given_exact_lp_out(accrual.balances, shares_out, self._total_supply)

    def quote_token_out_given_lp_in(self, token_out: str, shares_in: int) -> int:
        """Amount of one token a single-asset exit of shares_in would pay. Pure."""
        self._require_initialized()
        if shares_in <= 0:
            raise ZeroAmount("shares_in must be positive")
        index = self._index_of(token_out)
        rates = self._rates(None)
        accrual = self._accrue_protocol_fees()
        scaled_out = calc_token_out_given_exact_lp_in(
            self._amp(self._clock()),
            self._upscale(accrual.balances, rates),
            index,
            shares_in,
            self._total_supply,
            self._swap_fee,
        )
        return scale_down_down(scaled_out, self._tokens[index].scaling_factor, rates[index])

    def composition_balance_of(self, holder: str) -> tuple[int, int]:
        """Token amounts holder's shares currently represent."""
        shares = self.balance_of(holder)
        if shares == 0:
            return 0, 0
        return self.quote_tokens_out_given_lp_in(shares)

    def get_rate(self) -> Fp:
        """Value of one LP share: invariant / total shares."""
        self._require_initialized()
        scaled = self._upscale(self._balances, self._rates(None))
        invariant = calculate_invariant(self._amp(self._clock()), scaled, round_up=False)
        return invariant.div_down(Fp(self._total_supply))

    def spot_price(self) -> Fp:
        """Marginal price of one token0 in token1 (18 decimals)."""
        self._require_initialized()
        rates = self._rates(None)
        spot = calc_spot_price(self._amp(self._clock()), self._upscale(self._balances, rates))
        return spot.mul_down(rates[0]).div_down(rates[1])

    # ------------------------------------------------------------------
    # Liquidity operations
    # ------------------------------------------------------------------

    def join(
        self,
        amount0: int,
        amount1: int,
        min_shares_out: int,
        recipient: str,
        deadline: int,
        sender: str | None = None,
    ) -> int:
        """Deposit exact amounts and mint shares.

        The first join initializes the pool and mints shares equal to the
        invariant. Later joins mint shares for the invariant growth after
        the excess-contribution fee.

        Returns:
            Shares minted to recipient
        """
        now = self._clock()
        self._check_deadline(deadline, now)
        sender = sender or recipient
        amounts = (amount0, amount1)

        rates = self._rates(fresh_index=self._active_index(amounts))
        amp = self._amp(now)
        initial = self._total_supply == 0
        accrual = _Accrual(self._balances, (0, 0)) if initial else self._accrue_protocol_fees()

        shares_out = self._lp_out_given_tokens_in(amounts, accrual.balances, rates, amp)
        if shares_out < min_shares_out:
            logger.debug(
                "stable_pool_slippage_exceeded",
                pool=self.address,
                operation="join",
                shares_out=shares_out,
                min_shares_out=min_shares_out,
            )
            raise SlippageExceeded(f"shares_out {shares_out} below minimum {min_shares_out}")
        if shares_out == 0:
            raise ZeroAmount("join mints no shares")

        new_balances = (accrual.balances[0] + amount0, accrual.balances[1] + amount1)
        new_invariant = self._invariant_of(new_balances, rates, amp)

        self._ledger.settle(
            [
                Transfer(pool_token.token, sender, self.address, amount)
                for pool_token, amount in zip(self._tokens, amounts, strict=True)
                if amount > 0
            ]
        )
        self._commit_liquidity(new_balances, accrual, recipient, shares_out, new_invariant, amp, rates)

        logger.info(
            "liquidity_joined",
            pool=self.address,
            initial=initial,
            amount0=amount0,
            amount1=amount1,
            shares_out=shares_out,
            total_supply=self._total_supply,
        )
        return shares_out

    def join_exact_shares_out(
        self,
        shares_out: int,
        max_amounts: tuple[int, int],
        recipient: str,
        deadline: int,
        sender: str | None = None,
    ) -> tuple[int, int]:
        """Mint exactly shares_out by depositing both tokens proportionally.

        Returns:
            Amounts taken from sender
        """
        now = self._clock()
        self._check_deadline(deadline, now)
        self._require_initialized()
        if shares_out <= 0:
            raise ZeroAmount("shares_out must be positive")
        sender = sender or recipient

        rates = self._rates(fresh_index=self._active_index(self._balances))
        amp = self._amp(now)
        accrual = self._accrue_protocol_fees()

        amounts = calc_tokens_in_given_exact_lp_out(accrual.balances, shares_out, self._total_supply)
        for amount, maximum in zip(amounts, max_amounts, strict=True):
            if amount > maximum:
                raise SlippageExceeded(f"amount_in {amount} above maximum {maximum}")

        new_balances = (accrual.balances[0] + amounts[0], accrual.balances[1] + amounts[1])
        new_invariant = self._invariant_of(new_balances, rates, amp)

        self._ledger.settle(
            [
                Transfer(pool_token.token, sender, self.address, amount)
                for pool_token, amount in zip(self._tokens, amounts, strict=True)
                if amount > 0
            ]
        )
        self._commit_liquidity(new_balances, accrual, recipient, shares_out, new_invariant, amp, rates)

        logger.info(
            "liquidity_joined_proportional",
            pool=self.address,
            amount0=amounts[0],
            amount1=amounts[1],
            shares_out=shares_out,
        )
        return amounts

    def exit_exact_shares_in(
        self,
        shares_in: int,
        min_amounts: tuple[int, int],
        recipient: str,
        deadline: int,
        sender: str | None = None,
    ) -> tuple[int, int]:
        """Burn shares_in and withdraw both tokens proportionally.

        Returns:
            Amounts paid to recipient
        """
        now = self._clock()
        self._check_deadline(deadline, now)
        self._require_initialized()
        if shares_in <= 0:
            raise ZeroAmount("shares_in must be positive")
        sender = sender or recipient
        self._check_share_balance(sender, shares_in)

        rates = self._rates(fresh_index=self._active_index(self._balances))
        amp = self._amp(now)
        accrual = self._accrue_protocol_fees()

        amounts = calc_tokens_out_given_exact_lp_in(accrual.balances, shares_in, self._total_supply)
        for amount, minimum in zip(amounts, min_amounts, strict=True):
            if amount < minimum:
                raise SlippageExceeded(f"amount_out {amount} below minimum {minimum}")

        new_balances = (accrual.balances[0] - amounts[0], accrual.balances[1] - amounts[1])
        new_invariant = self._invariant_of(new_balances, rates, amp)

        self._ledger.settle(
            [
                Transfer(pool_token.token, self.address, recipient, amount)
                for pool_token, amount in zip(self._tokens, amounts, strict=True)
                if amount > 0
            ]
        )
        self._commit_liquidity(new_balances, accrual, sender, -shares_in, new_invariant, amp, rates)

        logger.info(
            "liquidity_exited",
            pool=self.address,
            amount0=amounts[0],
            amount1=amounts[1],
            shares_in=shares_in,
            total_supply=self._total_supply,
        )
        return amounts

    def exit_exact_amounts_out(
        self,
        amounts: tuple[int, int],
        max_shares_in: int,
        recipient: str,
        deadline: int,
        sender: str | None = None,
    ) -> int:
        """Withdraw exact amounts, burning the shares that costs.

        Returns:
            Shares burned from sender
        """
        now = self._clock()
        self._check_deadline(deadline, now)
        self._require_initialized()
        sender = sender or recipient

        rates = self._rates(fresh_index=self._active_index(amounts))
        amp = self._amp(now)
        accrual = self._accrue_protocol_fees()

        shares_in = self._lp_in_given_tokens_out(amounts, accrual.balances, rates, amp)
        if shares_in > max_shares_in:
            logger.debug(
                "stable_pool_slippage_exceeded",
                pool=self.address,
                operation="exit",
                shares_in=shares_in,
                max_shares_in=max_shares_in,
            )
            raise SlippageExceeded(f"shares_in {shares_in} above maximum {max_shares_in}")
        self._check_share_balance(sender, shares_in)

        new_balances = (accrual.balances[0] - amounts[0], accrual.balances[1] - amounts[1])
        new_invariant = self._invariant_of(new_balances, rates, amp)

        self._ledger.settle(
            [
                Transfer(pool_token.token, self.address, recipient, amount)
                for pool_token, amount in zip(self._tokens, amounts, strict=True)
                if amount > 0
            ]
        )
        self._commit_liquidity(new_balances, accrual, sender, -shares_in, new_invariant, amp, rates)

        logger.info(
            "liquidity_exited_exact_amounts",
            pool=self.address,
            amount0=amounts[0],
            amount1=amounts[1],
            shares_in=shares_in,
            total_supply=self._total_supply,
        )
        return shares_in

    def _check_share_balance(self, holder: str, shares: int) -> None:
        held = self.balance_of(holder)
        if held < shares:
            raise InsufficientFunds(f"{holder} holds {held} shares, needs {shares}")

    # ------------------------------------------------------------------
    # Amplification ramp and admin
    # ------------------------------------------------------------------

    def start_ramp_update(self, end_value: int, end_time: int) -> None:
        """Start ramping amplification to raw end_value by end_time."""
        now = self._clock()
        self._schedule = self._schedule.start_update(end_value, end_time, now)
        logger.info(
            "amplification_update_started",
            pool=self.address,
            start_value=self._schedule.start_value,
            end_value=self._schedule.end_value,
            start_time=self._schedule.start_time,
            end_time=end_time,
        )

    def stop_ramp_update(self) -> None:
        """Freeze amplification at its current interpolated value."""
        now = self._clock()
        self._schedule = self._schedule.stop_update(now)
        logger.info(
            "amplification_update_stopped",
            pool=self.address,
            value=self._schedule.end_value,
            precision=AMP_PRECISION,
        )

    def set_swap_fee_percentage(self, swap_fee: Fp) -> None:
        self._swap_fee = validate_swap_fee(swap_fee)
        logger.info("swap_fee_updated", pool=self.address, swap_fee=str(swap_fee))

    def collect_protocol_fees(self, recipient: str) -> tuple[int, int]:
        """Pay out withheld protocol fees to recipient.

        Returns:
            Amounts paid per token
        """
        fees = self._protocol_fees
        self._ledger.settle(
            [
                Transfer(pool_token.token, self.address, recipient, amount)
                for pool_token, amount in zip(self._tokens, fees, strict=True)
                if amount > 0
            ]
        )
        self._protocol_fees = (0, 0)
        logger.info("protocol_fees_collected", pool=self.address, fee0=fees[0], fee1=fees[1])
        return fees


def _validate_protocol_fee(protocol_swap_fee: Fp) -> None:
    if protocol_swap_fee.value < 0 or protocol_swap_fee > MAX_PROTOCOL_SWAP_FEE_PERCENTAGE:
        raise InvalidSwapFee(
            f"Protocol swap fee must be in range [0, {MAX_PROTOCOL_SWAP_FEE_PERCENTAGE}], "
            f"got {protocol_swap_fee}"
        )
