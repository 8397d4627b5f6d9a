"""Static pool registry backing the quote API.

Pools are built from PoolConfig entries. A config with initialBalances is
seeded through a normal initial join: the balances are minted to a
bootstrap account on the pool's own InMemoryLedger and deposited, so the
pool's invariant cache and share supply are set exactly as a real first
join would set them.
"""

from __future__ import annotations

import json
import os
from collections.abc import Callable, Iterator
from pathlib import Path

import structlog
from pydantic import TypeAdapter

from yieldswap.amm import InMemoryLedger, StableSwapPool, utc_now
from yieldswap.config import PoolConfig
from yieldswap.constants import SCHEDULE_FIELD_MAX

logger = structlog.get_logger()

# Account that owns the shares minted when a pool is seeded
BOOTSTRAP_ACCOUNT = "bootstrap"

_pool_configs_adapter = TypeAdapter(list[PoolConfig])


class PoolRegistry:
    """In-memory mapping of pool id to StableSwapPool."""

    def __init__(self, clock: Callable[[], int] = utc_now) -> None:
        self._clock = clock
        self._pools: dict[str, StableSwapPool] = {}
        self._configs: dict[str, PoolConfig] = {}

    def __len__(self) -> int:
        return len(self._pools)

    def __iter__(self) -> Iterator[str]:
        return iter(self._pools)

    def __contains__(self, pool_id: object) -> bool:
        return pool_id in self._pools

    def add(self, config: PoolConfig) -> StableSwapPool:
        """Build, seed and register a pool.

        Args:
            config: Pool description. Replaces any pool with the same id.

        Returns:
            The registered pool
        """
        ledger = InMemoryLedger()
        pool = config.build_pool(ledger=ledger, clock=self._clock)

        if config.initial_balances is not None:
            amount0, amount1 = config.initial_balances
            for token, amount in zip(pool.tokens, (amount0, amount1), strict=True):
                ledger.mint(token, BOOTSTRAP_ACCOUNT, amount)
            pool.join(
                amount0,
                amount1,
                min_shares_out=0,
                recipient=BOOTSTRAP_ACCOUNT,
                deadline=SCHEDULE_FIELD_MAX,
            )

        if config.pool_id in self._pools:
            logger.debug("stable_pool_replaced", pool_id=config.pool_id)
        self._pools[config.pool_id] = pool
        self._configs[config.pool_id] = config
        logger.info(
            "stable_pool_registered",
            pool_id=config.pool_id,
            tokens=list(pool.tokens),
            seeded=config.initial_balances is not None,
        )
        return pool

    def get(self, pool_id: str) -> StableSwapPool | None:
        """Look up a pool by id; None if unknown."""
        return self._pools.get(pool_id)

    def get_config(self, pool_id: str) -> PoolConfig | None:
        return self._configs.get(pool_id)

    @classmethod
    def from_configs(
        cls,
        configs: list[PoolConfig],
        clock: Callable[[], int] = utc_now,
    ) -> PoolRegistry:
        registry = cls(clock=clock)
        for config in configs:
            registry.add(config)
        return registry


def load_pool_configs(path: Path) -> list[PoolConfig]:
    """Read and validate a JSON list of pool configs.

    Raises:
        FileNotFoundError: If path does not exist
        pydantic.ValidationError: If any entry is invalid
    """
    with open(path) as f:
        data = json.load(f)
    return _pool_configs_adapter.validate_python(data)


def _create_default_registry() -> PoolRegistry:
    """Build the registry from YIELDSWAP_POOLS_FILE, or empty if unset."""
    pools_file = os.environ.get("YIELDSWAP_POOLS_FILE")
    if not pools_file:
        logger.info("pool_registry_empty", reason="YIELDSWAP_POOLS_FILE not set")
        return PoolRegistry()

    configs = load_pool_configs(Path(pools_file))
    logger.info("pool_registry_loaded", path=pools_file, pool_count=len(configs))
    return PoolRegistry.from_configs(configs)


_default_registry: PoolRegistry | None = None


def get_default_registry() -> PoolRegistry:
    """Process-wide registry, created on first use."""
    global _default_registry
    if _default_registry is None:
        _default_registry = _create_default_registry()
    return _default_registry
