"""Amplification ramp state machine.

The amplification parameter A moves linearly between two values over a
configured time window. A schedule is one of two states:

    Stable(value)                               start == end, not updating
    Ramping(start, end, start_time, end_time)   now < end_time

A ramp completes on its own once end_time passes; the value is then exactly
end_value and a new ramp may be started without stopping the old one.

The four fields are updated as one unit by replacing the frozen schedule.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import NamedTuple

from yieldswap.constants import (
    AMP_PRECISION,
    DAY,
    MAX_AMP_UPDATE_DAILY_RATE,
    MAX_AMPLIFICATION,
    MIN_AMPLIFICATION,
    MIN_UPDATE_DURATION,
    SCHEDULE_FIELD_MAX,
)
from yieldswap.safe_int import S

from .errors import (
    AmplificationOutOfBounds,
    AmplificationUpdateTooShort,
    NoOngoingUpdate,
    OngoingUpdate,
    RateTooHigh,
)


class AmplificationParameter(NamedTuple):
    """Current amplification as reported to callers."""

    value: int
    is_updating: bool
    precision: int


def validate_raw_amplification(raw_value: int) -> int:
    """Check a raw amplification value and return it scaled by AMP_PRECISION.

    Raises:
        AmplificationOutOfBounds: If raw_value is outside the allowed range
    """
    if raw_value < MIN_AMPLIFICATION:
        raise AmplificationOutOfBounds(
            f"Amplification {raw_value} below minimum {MIN_AMPLIFICATION}"
        )
    if raw_value > MAX_AMPLIFICATION:
        raise AmplificationOutOfBounds(
            f"Amplification {raw_value} above maximum {MAX_AMPLIFICATION}"
        )
    return raw_value * AMP_PRECISION


@dataclass(frozen=True)
class AmplificationSchedule:
    """Linear amplification schedule.

    Attributes:
        start_value: Amplification at start_time (scaled by AMP_PRECISION)
        end_value: Amplification from end_time on (scaled by AMP_PRECISION)
        start_time: Unix timestamp (seconds) the ramp started
        end_time: Unix timestamp (seconds) the ramp ends
    """

    start_value: int
    end_value: int
    start_time: int
    end_time: int

    def __post_init__(self) -> None:
        for name in ("start_value", "end_value", "start_time", "end_time"):
            field_value = getattr(self, name)
            if not 0 <= field_value <= SCHEDULE_FIELD_MAX:
                raise ValueError(f"{name}={field_value} does not fit in 64 bits")
        if self.start_time > self.end_time:
            raise ValueError(
                f"start_time {self.start_time} is after end_time {self.end_time}"
            )

    @classmethod
    def stable(cls, value: int, now: int) -> AmplificationSchedule:
        """A stopped schedule holding value (already scaled)."""
        return cls(start_value=value, end_value=value, start_time=now, end_time=now)

    def value_at(self, now: int) -> AmplificationParameter:
        """Interpolated amplification at time now."""
        if now < self.end_time:
            elapsed = max(0, now - self.start_time)
            duration = self.end_time - self.start_time
            if self.end_value > self.start_value:
                delta = (S(self.end_value - self.start_value) * elapsed) // duration
                value = self.start_value + delta.value
            else:
                delta = (S(self.start_value - self.end_value) * elapsed) // duration
                value = self.start_value - delta.value
            return AmplificationParameter(value, True, AMP_PRECISION)
        return AmplificationParameter(self.end_value, False, AMP_PRECISION)

    def is_updating(self, now: int) -> bool:
        return now < self.end_time

    def start_update(self, raw_end_value: int, end_time: int, now: int) -> AmplificationSchedule:
        """Validate and build a ramp from the current value to raw_end_value.

        Checks, in order: target bounds, end_time after now, no ramp in
        progress, the daily rate of change, then the minimum duration. A steep
        ramp over a short window is therefore reported as RateTooHigh.

        Raises:
            AmplificationOutOfBounds: Target outside [MIN_AMPLIFICATION, MAX_AMPLIFICATION]
            AmplificationUpdateTooShort: end_time - now < MIN_UPDATE_DURATION
            OngoingUpdate: A ramp is still in progress
            RateTooHigh: Implied change exceeds MAX_AMP_UPDATE_DAILY_RATE per day
        """
        end_value = validate_raw_amplification(raw_end_value)

        duration = end_time - now
        if duration <= 0:
            raise AmplificationUpdateTooShort(f"Ramp end_time {end_time} is not after now {now}")

        current_value, is_updating, _ = self.value_at(now)
        if is_updating:
            raise OngoingUpdate(f"Ramp in progress until {self.end_time}")

        # daily rate = (larger / smaller) / (duration / 1 day), rounded up
        high, low = max(end_value, current_value), min(end_value, current_value)
        daily_rate = (S(DAY) * high).ceiling_div(S(low) * duration)
        if daily_rate > MAX_AMP_UPDATE_DAILY_RATE:
            raise RateTooHigh(
                f"Daily amplification change {daily_rate.value}x exceeds "
                f"{MAX_AMP_UPDATE_DAILY_RATE}x"
            )
        if duration < MIN_UPDATE_DURATION:
            raise AmplificationUpdateTooShort(
                f"Ramp duration {duration}s is below minimum {MIN_UPDATE_DURATION}s"
            )

        return AmplificationSchedule(
            start_value=current_value,
            end_value=end_value,
            start_time=now,
            end_time=end_time,
        )

    def stop_update(self, now: int) -> AmplificationSchedule:
        """Freeze the amplification at its currently interpolated value.

        Raises:
            NoOngoingUpdate: If no ramp is in progress
        """
        current_value, is_updating, _ = self.value_at(now)
        if not is_updating:
            raise NoOngoingUpdate("No amplification ramp in progress")
        return AmplificationSchedule.stable(current_value, now)
