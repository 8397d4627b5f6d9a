"""Tests for the static pool registry."""

import json
from pathlib import Path

import pytest
from pydantic import ValidationError

from tests.helpers import ONE_TOKEN, RETH, WSTETH
from yieldswap import registry as registry_module
from yieldswap.config import PoolConfig
from yieldswap.registry import BOOTSTRAP_ACCOUNT, PoolRegistry, get_default_registry, load_pool_configs

THOUSAND = 1000 * ONE_TOKEN


def make_config(pool_id: str = "wsteth-reth", seeded: bool = True) -> PoolConfig:
    data: dict[str, object] = {
        "poolId": pool_id,
        "tokens": [{"token": WSTETH}, {"token": RETH}],
        "amplification": 5,
        "swapFee": "0.003",
    }
    if seeded:
        data["initialBalances"] = [str(THOUSAND), str(THOUSAND)]
    return PoolConfig.model_validate(data)


class TestPoolRegistry:
    def test_add_seeds_pool(self) -> None:
        registry = PoolRegistry()
        pool = registry.add(make_config())
        assert pool.balances == (THOUSAND, THOUSAND)
        assert pool.total_supply == 2000 * ONE_TOKEN
        assert pool.balance_of(BOOTSTRAP_ACCOUNT) == 2000 * ONE_TOKEN

    def test_add_unseeded(self) -> None:
        pool = PoolRegistry().add(make_config(seeded=False))
        assert not pool.is_initialized

    def test_lookup(self) -> None:
        registry = PoolRegistry.from_configs([make_config("a"), make_config("b")])
        assert len(registry) == 2
        assert list(registry) == ["a", "b"]
        assert "a" in registry
        assert registry.get("missing") is None
        assert registry.get_config("a") == make_config("a")

    def test_replace(self) -> None:
        registry = PoolRegistry()
        first = registry.add(make_config())
        second = registry.add(make_config())
        assert registry.get("wsteth-reth") is second
        assert second is not first


class TestLoading:
    def test_load_pool_configs(self, tmp_path: Path) -> None:
        path = tmp_path / "pools.json"
        path.write_text(json.dumps([make_config().model_dump(by_alias=True, mode="json")]))
        configs = load_pool_configs(path)
        assert [config.model_dump() for config in configs] == [make_config().model_dump()]

    def test_load_invalid(self, tmp_path: Path) -> None:
        path = tmp_path / "pools.json"
        path.write_text(json.dumps([{"poolId": "x"}]))
        with pytest.raises(ValidationError):
            load_pool_configs(path)

    def test_default_registry_from_env(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        path = tmp_path / "pools.json"
        path.write_text(json.dumps([make_config().model_dump(by_alias=True, mode="json")]))
        monkeypatch.setenv("YIELDSWAP_POOLS_FILE", str(path))
        monkeypatch.setattr(registry_module, "_default_registry", None)
        registry = get_default_registry()
        assert "wsteth-reth" in registry
        assert get_default_registry() is registry

    def test_default_registry_empty_without_env(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("YIELDSWAP_POOLS_FILE", raising=False)
        monkeypatch.setattr(registry_module, "_default_registry", None)
        assert len(get_default_registry()) == 0
