"""Read-only quote endpoints.

Every endpoint prices against stored rates and leaves pool state untouched.
Engine errors propagate to the StableSwapError handler in main.py.
"""

import structlog
from fastapi import APIRouter, Depends, HTTPException

from yieldswap.amm import StableSwapPool, SwapKind
from yieldswap.api.models import (
    AmplificationResponse,
    ExitQuoteRequest,
    JoinQuoteRequest,
    LiquidityQuoteResponse,
    PoolListResponse,
    PoolSummary,
    SwapQuoteRequest,
    SwapQuoteResponse,
)
from yieldswap.registry import PoolRegistry, get_default_registry

logger = structlog.get_logger()

router = APIRouter()


def get_registry() -> PoolRegistry:
    """Dependency provider for the pool registry.

    Override this in tests to inject a prepared registry:
        app.dependency_overrides[get_registry] = lambda: registry
    """
    return get_default_registry()


def _get_pool(pool_id: str, registry: PoolRegistry) -> StableSwapPool:
    pool = registry.get(pool_id)
    if pool is None:
        logger.debug("pool_not_found", pool_id=pool_id)
        raise HTTPException(status_code=404, detail=f"Unknown pool: {pool_id}")
    return pool


def _amplification(pool: StableSwapPool) -> AmplificationResponse:
    value, is_updating, precision = pool.get_amplification()
    return AmplificationResponse(value=value, is_updating=is_updating, precision=precision)


def _summarize(pool_id: str, pool: StableSwapPool) -> PoolSummary:
    spot_price = rate = None
    if pool.is_initialized:
        spot_price = str(pool.spot_price())
        rate = str(pool.get_rate())
    return PoolSummary(
        pool_id=pool_id,
        address=pool.address,
        tokens=list(pool.tokens),
        balances=[str(b) for b in pool.balances],
        total_supply=str(pool.total_supply),
        swap_fee=str(pool.swap_fee),
        amplification=_amplification(pool),
        spot_price=spot_price,
        rate=rate,
    )


@router.get("/pools")
async def list_pools(registry: PoolRegistry = Depends(get_registry)) -> PoolListResponse:
    """List every registered pool."""
    return PoolListResponse(
        pools=[_summarize(pool_id, _get_pool(pool_id, registry)) for pool_id in registry]
    )


@router.get("/pools/{pool_id}")
async def get_pool(pool_id: str, registry: PoolRegistry = Depends(get_registry)) -> PoolSummary:
    return _summarize(pool_id, _get_pool(pool_id, registry))


@router.get("/pools/{pool_id}/amplification")
async def get_amplification(
    pool_id: str, registry: PoolRegistry = Depends(get_registry)
) -> AmplificationResponse:
    return _amplification(_get_pool(pool_id, registry))


@router.post("/pools/{pool_id}/quote/swap")
async def quote_swap(
    pool_id: str,
    request: SwapQuoteRequest,
    registry: PoolRegistry = Depends(get_registry),
) -> SwapQuoteResponse:
    """Quote a swap.

    Returns both sides of the trade. The side given in the request is echoed
    back unchanged.
    """
    pool = _get_pool(pool_id, registry)
    token0, token1 = pool.tokens
    token_in = request.token_in
    token_out = token1 if token_in.lower() == token0.lower() else token0

    if request.kind is SwapKind.GIVEN_IN:
        amount_in = request.amount
        amount_out = pool.quote_given_in(token_in, amount_in)
    else:
        amount_out = request.amount
        amount_in = pool.quote_given_out(token_in, amount_out)

    logger.info(
        "swap_quoted",
        pool_id=pool_id,
        kind=request.kind.value,
        token_in=token_in,
        amount_in=amount_in,
        amount_out=amount_out,
    )
    return SwapQuoteResponse(
        token_in=token_in,
        token_out=token_out,
        amount_in=str(amount_in),
        amount_out=str(amount_out),
    )


@router.post("/pools/{pool_id}/quote/join")
async def quote_join(
    pool_id: str,
    request: JoinQuoteRequest,
    registry: PoolRegistry = Depends(get_registry),
) -> LiquidityQuoteResponse:
    """Quote a join by exact amounts in or by exact shares out."""
    pool = _get_pool(pool_id, registry)

    if request.amounts is not None:
        amounts = request.amounts
        shares = pool.quote_lp_out_given_tokens_in(
            amounts[0], amounts[1], initial=not pool.is_initialized
        )
    elif request.shares_out is not None:
        shares = request.shares_out
        amounts = pool.quote_tokens_in_given_lp_out(shares)
    else:
        raise HTTPException(status_code=422, detail="Provide exactly one of amounts or sharesOut")

    logger.info("join_quoted", pool_id=pool_id, amounts=list(amounts), shares=shares)
    return LiquidityQuoteResponse(amounts=[str(a) for a in amounts], shares=str(shares))


@router.post("/pools/{pool_id}/quote/exit")
async def quote_exit(
    pool_id: str,
    request: ExitQuoteRequest,
    registry: PoolRegistry = Depends(get_registry),
) -> LiquidityQuoteResponse:
    """Quote an exit by exact shares in (optionally single-asset) or exact amounts out."""
    pool = _get_pool(pool_id, registry)

    if request.amounts is not None:
        amounts = request.amounts
        shares = pool.quote_lp_in_given_tokens_out(amounts[0], amounts[1])
    elif request.shares_in is not None:
        shares = request.shares_in
        if request.token_out is not None:
            amount = pool.quote_token_out_given_lp_in(request.token_out, shares)
            token0, _ = pool.tokens
            amounts = (amount, 0) if request.token_out.lower() == token0.lower() else (0, amount)
        else:
            amounts = pool.quote_tokens_out_given_lp_in(shares)
    else:
        raise HTTPException(status_code=422, detail="Provide exactly one of amounts or sharesIn")

    logger.info("exit_quoted", pool_id=pool_id, amounts=list(amounts), shares=shares)
    return LiquidityQuoteResponse(amounts=[str(a) for a in amounts], shares=str(shares))
