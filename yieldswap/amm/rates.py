"""Exchange rate providers.

The engine never computes rates itself. Each asset has a RateProvider with
two reads:

- current_rate(): fresh rate, may refresh the provider's cache
- stored_rate(): last cached rate, a pure read

Mutating pool operations read at least one asset fresh to avoid pricing
against a stale rate; quotes only use stored rates.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Protocol, runtime_checkable

import structlog

from yieldswap.math.fixed_point import ONE_18, Fp

from .errors import InvalidRate

logger = structlog.get_logger()


@runtime_checkable
class RateProvider(Protocol):
    """Source of an asset's exchange rate (18 decimals)."""

    def current_rate(self) -> Fp: ...

    def stored_rate(self) -> Fp: ...


def _check_rate(rate: Fp) -> Fp:
    if rate.value <= 0:
        raise InvalidRate(f"Rate must be positive, got {rate.value}")
    return rate


class StaticRateProvider:
    """Rate provider holding a single settable value.

    Fresh and stored reads return the same value. Useful for fixed-rate
    assets and for tests that move the rate by hand.
    """

    def __init__(self, rate: Fp | None = None) -> None:
        self._rate = _check_rate(rate if rate is not None else Fp(ONE_18))

    def set_rate(self, rate: Fp) -> None:
        self._rate = _check_rate(rate)

    def current_rate(self) -> Fp:
        return self._rate

    def stored_rate(self) -> Fp:
        return self._rate


class CachedRateProvider:
    """Rate provider wrapping a fetch callable.

    The cache is filled by one fetch at construction. current_rate() fetches
    again and updates the cache; stored_rate() only returns the cache.
    """

    def __init__(self, fetch: Callable[[], Fp], name: str = "") -> None:
        self._fetch = fetch
        self._name = name
        self._cached = _check_rate(fetch())

    def current_rate(self) -> Fp:
        rate = _check_rate(self._fetch())
        if rate != self._cached:
            logger.debug(
                "rate_refreshed",
                provider=self._name,
                previous=self._cached.value,
                rate=rate.value,
            )
        self._cached = rate
        return rate

    def stored_rate(self) -> Fp:
        return self._cached
