"""18-decimal fixed-point numbers.

Rates, fee percentages and rate-adjusted balances are all integers scaled by
10^18. Each multiplication or division names its rounding direction; pool code
picks the direction that leaves rounding dust with the pool.
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal
from typing import ClassVar

__all__ = [
    "Fp",
    "ONE",
    "ONE_18",
    "ZERO",
]

ONE_18 = 10**18


def _divide(numerator: int, denominator: int, round_up: bool) -> int:
    if denominator == 0:
        raise ZeroDivisionError("Fp division by zero")
    if round_up:
        return -(-numerator // denominator)
    return numerator // denominator


class Fp:
    """Fixed-point value held as an int scaled by 10^18 (1.5 -> 1.5e18)."""

    ONE: ClassVar[int] = ONE_18

    __slots__ = ("value",)
    __hash__ = None  # type: ignore[assignment]

    def __init__(self, value: int) -> None:
        self.value = value

    @classmethod
    def from_wei(cls, wei: int) -> Fp:
        """Wrap a value that is already 18-decimal scaled."""
        return cls(wei)

    @classmethod
    def from_int(cls, whole: int) -> Fp:
        return cls(whole * cls.ONE)

    @classmethod
    def from_decimal(cls, amount: Decimal | str) -> Fp:
        """Scale a non-negative decimal by 10^18, rounding half up.

        Raises:
            ValueError: If amount is negative
        """
        amount = Decimal(amount)
        if amount < 0:
            raise ValueError(f"Fp.from_decimal requires non-negative input, got {amount}")
        return cls(int((amount * cls.ONE).quantize(Decimal(1), rounding=ROUND_HALF_UP)))

    def to_decimal(self) -> Decimal:
        return Decimal(self.value) / Decimal(self.ONE)

    def mul_down(self, other: Fp) -> Fp:
        return Fp(_divide(self.value * other.value, self.ONE, round_up=False))

    def mul_up(self, other: Fp) -> Fp:
        return Fp(_divide(self.value * other.value, self.ONE, round_up=True))

    def div_down(self, other: Fp) -> Fp:
        """self / other rounded down. Raises ZeroDivisionError on zero."""
        return Fp(_divide(self.value * self.ONE, other.value, round_up=False))

    def div_up(self, other: Fp) -> Fp:
        """self / other rounded up. Raises ZeroDivisionError on zero."""
        return Fp(_divide(self.value * self.ONE, other.value, round_up=True))

    def add(self, other: Fp) -> Fp:
        return Fp(self.value + other.value)

    def sub(self, other: Fp) -> Fp:
        """self - other, floored at zero."""
        return Fp(max(0, self.value - other.value))

    def complement(self) -> Fp:
        """1 - self, floored at zero."""
        return Fp(max(0, self.ONE - self.value))

    def _compare_value(self, other: object) -> int:
        if not isinstance(other, Fp):
            raise TypeError(f"Cannot compare Fp with {type(other).__name__}")
        return other.value

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Fp):
            return NotImplemented
        return self.value == other.value

    def __lt__(self, other: object) -> bool:
        return self.value < self._compare_value(other)

    def __le__(self, other: object) -> bool:
        return self.value <= self._compare_value(other)

    def __gt__(self, other: object) -> bool:
        return self.value > self._compare_value(other)

    def __ge__(self, other: object) -> bool:
        return self.value >= self._compare_value(other)

    def __repr__(self) -> str:
        return f"Fp({self.value})"

    def __str__(self) -> str:
        return str(self.to_decimal())


ONE = Fp(ONE_18)
ZERO = Fp(0)
