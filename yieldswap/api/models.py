"""Request and response models for the quote API.

Amounts travel as decimal strings so that uint256 values survive JSON
clients that parse numbers as doubles.
"""

from __future__ import annotations

from pydantic import BaseModel, Field, model_validator

from yieldswap.amm import SwapKind
from yieldswap.config import Uint256


class AmplificationResponse(BaseModel):
    """Current amplification of a pool."""

    value: int
    is_updating: bool = Field(alias="isUpdating")
    precision: int

    model_config = {"populate_by_name": True}


class PoolSummary(BaseModel):
    """Pool state as exposed over HTTP."""

    pool_id: str = Field(alias="poolId")
    address: str
    tokens: list[str]
    balances: list[str]
    total_supply: str = Field(alias="totalSupply")
    swap_fee: str = Field(alias="swapFee")
    amplification: AmplificationResponse
    spot_price: str | None = Field(
        default=None,
        alias="spotPrice",
        description="Price of the first token in units of the second; null while empty.",
    )
    rate: str | None = Field(
        default=None,
        description="Invariant per LP share; null while empty.",
    )

    model_config = {"populate_by_name": True}


class PoolListResponse(BaseModel):
    pools: list[PoolSummary]


class SwapQuoteRequest(BaseModel):
    """Quote a swap in either direction.

    For given_in, amount is the input of token_in. For given_out, amount is
    the output of the other token.
    """

    token_in: str = Field(alias="tokenIn")
    kind: SwapKind = SwapKind.GIVEN_IN
    amount: Uint256

    model_config = {"populate_by_name": True}


class SwapQuoteResponse(BaseModel):
    token_in: str = Field(alias="tokenIn")
    token_out: str = Field(alias="tokenOut")
    amount_in: str = Field(alias="amountIn")
    amount_out: str = Field(alias="amountOut")

    model_config = {"populate_by_name": True}


class JoinQuoteRequest(BaseModel):
    """Quote a join by exact amounts in, or by exact shares out."""

    amounts: tuple[Uint256, Uint256] | None = None
    shares_out: Uint256 | None = Field(default=None, alias="sharesOut")

    model_config = {"populate_by_name": True}

    @model_validator(mode="after")
    def _exactly_one_side(self) -> JoinQuoteRequest:
        if (self.amounts is None) == (self.shares_out is None):
            raise ValueError("Provide exactly one of amounts or sharesOut")
        return self


class ExitQuoteRequest(BaseModel):
    """Quote an exit by exact shares in, or by exact amounts out.

    With sharesIn and tokenOut, the exit is quoted as single-asset.
    """

    amounts: tuple[Uint256, Uint256] | None = None
    shares_in: Uint256 | None = Field(default=None, alias="sharesIn")
    token_out: str | None = Field(default=None, alias="tokenOut")

    model_config = {"populate_by_name": True}

    @model_validator(mode="after")
    def _exactly_one_side(self) -> ExitQuoteRequest:
        if (self.amounts is None) == (self.shares_in is None):
            raise ValueError("Provide exactly one of amounts or sharesIn")
        if self.token_out is not None and self.shares_in is None:
            raise ValueError("tokenOut requires sharesIn")
        return self


class LiquidityQuoteResponse(BaseModel):
    """Token amounts and LP shares of a join or exit."""

    amounts: list[str]
    shares: str


class ErrorResponse(BaseModel):
    error: str
    detail: str
