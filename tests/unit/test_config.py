"""Tests for pool configuration models."""

from decimal import Decimal

import pytest
from pydantic import ValidationError

from tests.helpers import AUSDC, ONE_TOKEN, RETH, T0, WSTETH, FakeClock
from yieldswap.config import PoolConfig, TokenConfig, validate_uint256
from yieldswap.constants import DAY
from yieldswap.math.fixed_point import Fp
from yieldswap.safe_int import UINT256_MAX


def pool_json(**overrides: object) -> dict[str, object]:
    data: dict[str, object] = {
        "poolId": "wsteth-reth",
        "tokens": [{"token": WSTETH, "rate": "1.15"}, {"token": RETH, "rate": "1.08"}],
        "amplification": 50,
        "swapFee": "0.0004",
    }
    data.update(overrides)
    return data


class TestValidateUint256:
    def test_accepts_int_and_string(self) -> None:
        assert validate_uint256(5) == 5
        assert validate_uint256("5") == 5

    @pytest.mark.parametrize("value", [-1, "-1", "1.5", "abc", 1.5, True, UINT256_MAX + 1])
    def test_rejects(self, value: object) -> None:
        with pytest.raises(ValueError):
            validate_uint256(value)


class TestTokenConfig:
    def test_defaults(self) -> None:
        token = TokenConfig(token=WSTETH)
        assert token.scaling_factor == 1
        assert token.rate == Decimal(1)

    def test_camel_case_alias(self) -> None:
        token = TokenConfig.model_validate({"token": AUSDC, "scalingFactor": 10**12})
        assert token.scaling_factor == 10**12

    @pytest.mark.parametrize("field", [{"scalingFactor": 0}, {"rate": "0"}])
    def test_rejects_non_positive(self, field: dict[str, object]) -> None:
        with pytest.raises(ValidationError):
            TokenConfig.model_validate({"token": WSTETH, **field})


class TestPoolConfig:
    def test_parses(self) -> None:
        config = PoolConfig.model_validate(pool_json())
        assert config.pool_id == "wsteth-reth"
        assert config.pool_address == "wsteth-reth"
        assert config.swap_fee == Decimal("0.0004")
        assert config.protocol_swap_fee == Decimal(0)
        assert config.initial_balances is None

    @pytest.mark.parametrize(
        "overrides",
        [
            {"swapFee": "0.06"},
            {"protocolSwapFee": "0.6"},
            {"amplification": 0},
            {"amplification": 5001},
            {"tokens": [{"token": WSTETH}, {"token": WSTETH.upper()}]},
            {"tokens": [{"token": WSTETH}]},
            {"amplificationEnd": 60},
            {"initialBalances": ["1", "-1"]},
        ],
    )
    def test_rejects_invalid(self, overrides: dict[str, object]) -> None:
        with pytest.raises(ValidationError):
            PoolConfig.model_validate(pool_json(**overrides))

    def test_initial_balances_from_strings(self) -> None:
        config = PoolConfig.model_validate(pool_json(initialBalances=[str(ONE_TOKEN), ONE_TOKEN]))
        assert config.initial_balances == (ONE_TOKEN, ONE_TOKEN)


class TestBuildPool:
    def test_builds_empty_pool(self) -> None:
        pool = PoolConfig.model_validate(pool_json(address="0xpool")).build_pool()
        assert pool.address == "0xpool"
        assert pool.tokens == (WSTETH, RETH)
        assert pool.swap_fee == Fp.from_decimal("0.0004")
        assert pool.get_amplification().value == 50_000
        assert not pool.is_initialized

    def test_builds_with_ramp(self) -> None:
        config = PoolConfig.model_validate(
            pool_json(amplificationEnd=60, amplificationEndTime=T0 + DAY)
        )
        pool = config.build_pool(clock=FakeClock())
        assert pool.get_amplification().is_updating
