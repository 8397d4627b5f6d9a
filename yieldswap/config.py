"""Pool configuration models.

Pools served by the quote API are described as JSON and validated with
pydantic before any engine object is built. Fees and rates are given as
decimals ("0.0004", "1.05"), amplification as its raw value (A=200 -> 200).
"""

from __future__ import annotations

from collections.abc import Callable
from decimal import Decimal
from typing import Annotated, Any

from pydantic import BaseModel, BeforeValidator, Field, field_validator, model_validator

from yieldswap.amm import InMemoryLedger, PoolToken, StableSwapPool, StaticRateProvider, utc_now
from yieldswap.constants import MAX_AMPLIFICATION, MIN_AMPLIFICATION
from yieldswap.math.fixed_point import Fp
from yieldswap.safe_int import UINT256_MAX


def validate_uint256(value: Any) -> int:
    """Accept a uint256 as int or decimal string.

    Raises:
        ValueError: If value is not a non-negative integer within uint256 range
    """
    if isinstance(value, bool):
        raise ValueError("Uint256 must be string or int, got bool")
    if isinstance(value, str):
        try:
            value = int(value)
        except ValueError as err:
            raise ValueError(f"Uint256 must be a decimal integer string: '{value}'") from err
    if not isinstance(value, int):
        raise ValueError(f"Uint256 must be string or int, got {type(value).__name__}")
    if value < 0:
        raise ValueError(f"Uint256 cannot be negative: {value}")
    if value > UINT256_MAX:
        raise ValueError(f"Uint256 overflow: {value} > 2^256-1")
    return value


# 256-bit unsigned integer, accepted as int or decimal string
Uint256 = Annotated[
    int,
    BeforeValidator(validate_uint256),
    Field(description="256-bit unsigned integer"),
]


class TokenConfig(BaseModel):
    """One asset of a pool."""

    token: str = Field(min_length=1)
    scaling_factor: int = Field(default=1, gt=0, alias="scalingFactor")
    rate: Decimal = Field(default=Decimal(1), gt=0)

    model_config = {"populate_by_name": True, "frozen": True}


class PoolConfig(BaseModel):
    """Static description of a stable-swap pool."""

    pool_id: str = Field(min_length=1, alias="poolId")
    address: str | None = None
    tokens: tuple[TokenConfig, TokenConfig]
    amplification: int = Field(ge=MIN_AMPLIFICATION, le=MAX_AMPLIFICATION)
    swap_fee: Decimal = Field(ge=0, le=Decimal("0.05"), alias="swapFee")
    protocol_swap_fee: Decimal = Field(
        default=Decimal(0), ge=0, le=Decimal("0.5"), alias="protocolSwapFee"
    )
    amplification_end: int | None = Field(
        default=None, ge=MIN_AMPLIFICATION, le=MAX_AMPLIFICATION, alias="amplificationEnd"
    )
    amplification_end_time: int | None = Field(default=None, ge=0, alias="amplificationEndTime")
    initial_balances: tuple[Uint256, Uint256] | None = Field(default=None, alias="initialBalances")

    model_config = {"populate_by_name": True, "frozen": True}

    @field_validator("tokens")
    @classmethod
    def _distinct_tokens(cls, tokens: tuple[TokenConfig, TokenConfig]) -> tuple[TokenConfig, TokenConfig]:
        if tokens[0].token.lower() == tokens[1].token.lower():
            raise ValueError(f"Pool tokens must be distinct, got {tokens[0].token} twice")
        return tokens

    @model_validator(mode="after")
    def _ramp_fields_together(self) -> PoolConfig:
        if (self.amplification_end is None) != (self.amplification_end_time is None):
            raise ValueError("amplificationEnd and amplificationEndTime must be set together")
        return self

    @property
    def pool_address(self) -> str:
        return self.address or self.pool_id

    def build_pool(
        self,
        ledger: InMemoryLedger | None = None,
        clock: Callable[[], int] = utc_now,
    ) -> StableSwapPool:
        """Create an empty StableSwapPool from this config.

        Each token gets a StaticRateProvider holding its configured rate.
        """
        tokens = tuple(
            PoolToken(
                token=token.token,
                scaling_factor=token.scaling_factor,
                rate_provider=StaticRateProvider(Fp.from_decimal(token.rate)),
            )
            for token in self.tokens
        )
        return StableSwapPool(
            address=self.pool_address,
            tokens=(tokens[0], tokens[1]),
            amplification=self.amplification,
            swap_fee=Fp.from_decimal(self.swap_fee),
            ledger=ledger if ledger is not None else InMemoryLedger(),
            protocol_swap_fee=Fp.from_decimal(self.protocol_swap_fee),
            clock=clock,
            amplification_end=self.amplification_end,
            amplification_end_time=self.amplification_end_time,
        )
