"""Tests for SafeInt checked arithmetic wrapper."""

import pytest

from yieldswap.safe_int import (
    UINT256_MAX,
    DivisionByZero,
    S,
    SafeInt,
    SafeIntError,
    Uint256Overflow,
    Underflow,
)


class TestSafeIntConstruction:
    """Tests for SafeInt construction."""

    def test_from_int(self):
        """SafeInt can be constructed from int."""
        assert SafeInt(42).value == 42

    def test_from_safeint(self):
        """SafeInt can be constructed from another SafeInt."""
        assert SafeInt(SafeInt(42)).value == 42

    def test_from_invalid_type_raises(self):
        """SafeInt rejects strings, floats and bools."""
        with pytest.raises(TypeError):
            SafeInt("42")  # type: ignore
        with pytest.raises(TypeError):
            SafeInt(3.14)  # type: ignore
        with pytest.raises(TypeError):
            SafeInt(True)

    def test_alias_s(self):
        """S is an alias for SafeInt."""
        assert S is SafeInt


class TestSafeIntArithmetic:
    """Tests for checked operators."""

    def test_add_and_radd(self):
        assert (S(2) + 3).value == 5
        assert (3 + S(2)).value == 5

    def test_mul_and_rmul(self):
        assert (S(6) * 7).value == 42
        assert (7 * S(6)).value == 42

    def test_sub_underflow_raises(self):
        """Subtraction below zero raises Underflow."""
        with pytest.raises(Underflow):
            S(1) - 2

    def test_floordiv_by_zero_raises(self):
        with pytest.raises(DivisionByZero):
            S(1) // 0

    def test_errors_share_base(self):
        """All SafeInt errors derive from SafeIntError and ArithmeticError."""
        for error in (DivisionByZero, Underflow, Uint256Overflow):
            assert issubclass(error, SafeIntError)
            assert issubclass(error, ArithmeticError)


class TestSafeIntNamedOperations:
    """Tests for rounding helpers used by the solvers."""

    @pytest.mark.parametrize(
        ("numerator", "denominator", "expected"),
        [(0, 7, 0), (7, 7, 1), (8, 7, 2), (13, 7, 2), (14, 7, 2)],
    )
    def test_ceiling_div(self, numerator, denominator, expected):
        assert S(numerator).ceiling_div(denominator).value == expected

    def test_ceiling_div_by_zero_raises(self):
        with pytest.raises(DivisionByZero):
            S(5).ceiling_div(0)

    def test_div_picks_rounding(self):
        """div() rounds up or down as asked."""
        assert S(10).div(3, round_up=True).value == 4
        assert S(10).div(3, round_up=False).value == 3

    def test_abs_diff(self):
        assert S(3).abs_diff(10).value == 7
        assert S(10).abs_diff(3).value == 7

    def test_isqrt_rounding(self):
        """isqrt rounds down by default and up on request."""
        assert S(15).isqrt().value == 3
        assert S(15).isqrt(round_up=True).value == 4
        assert S(16).isqrt(round_up=True).value == 4

    def test_isqrt_negative_raises(self):
        with pytest.raises(Underflow):
            S(-1).isqrt()


class TestSafeIntUint256:
    """Tests for uint256 boundary conversion."""

    def test_max_passes(self):
        assert S(UINT256_MAX).to_uint256() == UINT256_MAX

    def test_overflow_raises(self):
        with pytest.raises(Uint256Overflow):
            S(UINT256_MAX + 1).to_uint256()

    def test_negative_raises(self):
        with pytest.raises(Uint256Overflow):
            S(-1).to_uint256()


class TestSafeIntComparison:
    """Comparisons work against ints and other SafeInts."""

    def test_comparisons(self):
        assert S(5) == 5
        assert S(5) == S(5)
        assert S(4) < 5
        assert S(5) <= S(5)
        assert S(6) > 5
        assert S(6) >= 6

    def test_bool_and_int(self):
        assert not S(0)
        assert S(1)
        assert int(S(9)) == 9
