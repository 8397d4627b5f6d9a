"""Tests for the amplification ramp schedule."""

import pytest

from tests.helpers import HOUR, T0
from yieldswap.amm.amplification import (
    AmplificationParameter,
    AmplificationSchedule,
    validate_raw_amplification,
)
from yieldswap.amm.errors import (
    AmplificationOutOfBounds,
    AmplificationUpdateTooShort,
    NoOngoingUpdate,
    OngoingUpdate,
    RateTooHigh,
)
from yieldswap.constants import AMP_PRECISION, DAY, SCHEDULE_FIELD_MAX


def stable(raw: int) -> AmplificationSchedule:
    return AmplificationSchedule.stable(raw * AMP_PRECISION, T0)


class TestValidateRawAmplification:
    """Tests for raw amplification bounds."""

    @pytest.mark.parametrize("raw", [1, 200, 5000])
    def test_in_bounds_scaled(self, raw: int) -> None:
        assert validate_raw_amplification(raw) == raw * AMP_PRECISION

    @pytest.mark.parametrize("raw", [0, 5001])
    def test_out_of_bounds_raises(self, raw: int) -> None:
        with pytest.raises(AmplificationOutOfBounds):
            validate_raw_amplification(raw)


class TestScheduleFields:
    """The schedule fields are bounded uint64 values."""

    def test_field_too_large_raises(self) -> None:
        with pytest.raises(ValueError):
            AmplificationSchedule(1000, 1000, 0, SCHEDULE_FIELD_MAX + 1)

    def test_start_after_end_raises(self) -> None:
        with pytest.raises(ValueError):
            AmplificationSchedule(1000, 1000, T0 + 1, T0)

    def test_stable_value(self) -> None:
        schedule = stable(5)
        assert schedule.value_at(T0 + 10 * DAY) == AmplificationParameter(5000, False, AMP_PRECISION)
        assert not schedule.is_updating(T0)


class TestStartUpdate:
    """Tests for ramp validation."""

    def test_four_times_in_twelve_hours_is_rate_too_high(self) -> None:
        """4x over half a day implies 8x per day."""
        with pytest.raises(RateTooHigh):
            stable(100).start_update(400, T0 + 12 * HOUR, T0)

    def test_gentle_ramp_under_a_day_is_too_short(self) -> None:
        with pytest.raises(AmplificationUpdateTooShort):
            stable(100).start_update(101, T0 + 23 * HOUR, T0)

    def test_end_time_not_after_now_is_too_short(self) -> None:
        with pytest.raises(AmplificationUpdateTooShort):
            stable(100).start_update(101, T0, T0)

    def test_out_of_bounds_target_raises(self) -> None:
        with pytest.raises(AmplificationOutOfBounds):
            stable(100).start_update(5001, T0 + 10 * DAY, T0)

    def test_doubling_in_one_day_is_allowed(self) -> None:
        schedule = stable(5).start_update(10, T0 + DAY, T0)
        assert schedule == AmplificationSchedule(5000, 10_000, T0, T0 + DAY)

    def test_halving_in_one_day_is_allowed(self) -> None:
        schedule = stable(10).start_update(5, T0 + DAY, T0)
        assert schedule.end_value == 5000

    def test_tripling_in_one_day_is_rate_too_high(self) -> None:
        with pytest.raises(RateTooHigh):
            stable(5).start_update(15, T0 + DAY, T0)

    def test_long_ramp_is_allowed(self) -> None:
        schedule = stable(5).start_update(95, T0 + 30 * DAY, T0)
        assert schedule.is_updating(T0)

    def test_ongoing_update_raises(self) -> None:
        schedule = stable(5).start_update(10, T0 + 2 * DAY, T0)
        with pytest.raises(OngoingUpdate):
            schedule.start_update(6, T0 + 5 * DAY, T0 + DAY)

    def test_new_ramp_after_completion_starts_from_end_value(self) -> None:
        schedule = stable(5).start_update(10, T0 + 2 * DAY, T0)
        later = T0 + 3 * DAY
        next_schedule = schedule.start_update(15, later + 2 * DAY, later)
        assert next_schedule.start_value == 10_000
        assert next_schedule.start_time == later


class TestInterpolation:
    """Tests for the current amplification value."""

    def test_continuous_at_endpoints(self) -> None:
        schedule = stable(5).start_update(10, T0 + 2 * DAY, T0)
        assert schedule.value_at(T0).value == 5000
        assert schedule.value_at(T0 + 2 * DAY) == AmplificationParameter(10_000, False, AMP_PRECISION)

    def test_midpoint(self) -> None:
        schedule = stable(5).start_update(10, T0 + 2 * DAY, T0)
        assert schedule.value_at(T0 + DAY) == AmplificationParameter(7500, True, AMP_PRECISION)

    def test_monotonic_increasing(self) -> None:
        schedule = stable(5).start_update(95, T0 + 30 * DAY, T0)
        values = [schedule.value_at(T0 + step * 7 * HOUR).value for step in range(0, 104)]
        assert values == sorted(values)

    def test_monotonic_decreasing(self) -> None:
        schedule = stable(95).start_update(5, T0 + 30 * DAY, T0)
        values = [schedule.value_at(T0 + step * 7 * HOUR).value for step in range(0, 104)]
        assert values == sorted(values, reverse=True)

    def test_rounds_toward_start(self) -> None:
        """One second into a 1000 -> 2000 ramp over a day has not moved yet."""
        up = AmplificationSchedule(1000, 2000, T0, T0 + DAY)
        down = AmplificationSchedule(2000, 1000, T0, T0 + DAY)
        assert up.value_at(T0 + 1).value == 1000
        assert down.value_at(T0 + 1).value == 2000


class TestStopUpdate:
    """Tests for freezing a ramp."""

    def test_freezes_current_value(self) -> None:
        schedule = stable(5).start_update(10, T0 + 2 * DAY, T0)
        stopped = schedule.stop_update(T0 + DAY)
        assert stopped.value_at(T0 + 10 * DAY) == AmplificationParameter(7500, False, AMP_PRECISION)

    def test_no_ongoing_update_raises(self) -> None:
        with pytest.raises(NoOngoingUpdate):
            stable(5).stop_update(T0)

    def test_completed_ramp_cannot_be_stopped(self) -> None:
        schedule = stable(5).start_update(10, T0 + DAY, T0)
        with pytest.raises(NoOngoingUpdate):
            schedule.stop_update(T0 + DAY)
