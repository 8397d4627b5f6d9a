"""Checked integers for the stable-swap solvers.

The invariant and balance solvers work on unbounded Python ints. SafeInt
wraps them so the failure modes of on-chain uint256 math show up as typed
errors instead of wrong numbers:

- a negative subtraction result raises Underflow
- a zero divisor raises DivisionByZero
- a result outside uint256 raises Uint256Overflow when it is handed back
  through to_uint256()

    from yieldswap.safe_int import S

    shares = (S(balance) * shares_in // supply).value
"""

from __future__ import annotations

import math

UINT256_MAX = 2**256 - 1


class SafeIntError(ArithmeticError):
    """Base class for checked-arithmetic failures."""


class DivisionByZero(SafeIntError):
    pass


class Underflow(SafeIntError):
    """A subtraction or square root would go below zero."""


class Uint256Overflow(SafeIntError):
    """A solver result does not fit in uint256."""


def _raw(operand: SafeInt | int) -> int:
    return operand._value if isinstance(operand, SafeInt) else operand


def _divisor(operand: SafeInt | int, dividend: int) -> int:
    divisor = _raw(operand)
    if divisor == 0:
        raise DivisionByZero(f"Cannot divide {dividend} by zero")
    return divisor


class SafeInt:
    """Integer with checked subtraction, division and uint256 exit.

    Addition and multiplication never fail; intermediate products may exceed
    uint256 as long as the final result fits.
    """

    __slots__ = ("_value",)

    def __init__(self, value: int | SafeInt) -> None:
        if isinstance(value, SafeInt):
            value = value._value
        elif isinstance(value, bool) or not isinstance(value, int):
            raise TypeError(f"SafeInt requires int, got {type(value).__name__}")
        self._value: int = value

    @property
    def value(self) -> int:
        return self._value

    def __repr__(self) -> str:
        return f"S({self._value})"

    def __int__(self) -> int:
        return self._value

    def __bool__(self) -> bool:
        return self._value != 0

    def __hash__(self) -> int:
        return hash(self._value)

    def __add__(self, other: SafeInt | int) -> SafeInt:
        return SafeInt(self._value + _raw(other))

    __radd__ = __add__

    def __mul__(self, other: SafeInt | int) -> SafeInt:
        return SafeInt(self._value * _raw(other))

    __rmul__ = __mul__

    def __sub__(self, other: SafeInt | int) -> SafeInt:
        subtrahend = _raw(other)
        if subtrahend > self._value:
            raise Underflow(f"{self._value} - {subtrahend} is negative")
        return SafeInt(self._value - subtrahend)

    def __floordiv__(self, other: SafeInt | int) -> SafeInt:
        return SafeInt(self._value // _divisor(other, self._value))

    def ceiling_div(self, other: SafeInt | int) -> SafeInt:
        """Divide rounding toward +infinity (for non-negative operands)."""
        divisor = _divisor(other, self._value)
        return SafeInt(-(-self._value // divisor))

    def div(self, other: SafeInt | int, round_up: bool) -> SafeInt:
        """Divide rounding up or down."""
        return self.ceiling_div(other) if round_up else self // other

    def abs_diff(self, other: SafeInt | int) -> SafeInt:
        return SafeInt(abs(self._value - _raw(other)))

    def isqrt(self, round_up: bool = False) -> SafeInt:
        """Integer square root, rounded down unless round_up is set."""
        if self._value < 0:
            raise Underflow(f"Square root of negative value {self._value}")
        root = math.isqrt(self._value)
        if round_up and root * root != self._value:
            root += 1
        return SafeInt(root)

    def to_uint256(self) -> int:
        """Return the plain int, checking it is a valid uint256."""
        if not 0 <= self._value <= UINT256_MAX:
            raise Uint256Overflow(f"{self._value} is outside the uint256 range")
        return self._value

    def __eq__(self, other: object) -> bool:
        if isinstance(other, SafeInt | int):
            return self._value == _raw(other)
        return NotImplemented

    def __lt__(self, other: SafeInt | int) -> bool:
        return self._value < _raw(other)

    def __le__(self, other: SafeInt | int) -> bool:
        return self._value <= _raw(other)

    def __gt__(self, other: SafeInt | int) -> bool:
        return self._value > _raw(other)

    def __ge__(self, other: SafeInt | int) -> bool:
        return self._value >= _raw(other)


S = SafeInt
