from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, time

from ..core.constants import EXPECTED_CHECK_IN, HALF_DAY_HOURS, LATE_GRACE_MINUTES, SHORT_DAY_HOURS
from ..core.enums import AttendanceStatus, StatusSource
from .strategies.base import AttendanceStrategy, minutes_late
from .strategies.half_day_strategy import HalfDayStrategy
from .strategies.late_strategy import LateStrategy
from .strategies.normal_strategy import NormalStrategy


@dataclass
class AttendanceStrategyFactory:
    """Factory Pattern: choose appropriate strategy based on rules."""

    expected_check_in: time = EXPECTED_CHECK_IN
    grace_minutes: int = LATE_GRACE_MINUTES
    half_day_hours: float = HALF_DAY_HOURS
    short_day_hours: float = SHORT_DAY_HOURS

    def for_checkin(self, *, now: datetime) -> AttendanceStrategy:
        if minutes_late(now, self.expected_check_in) > self.grace_minutes:
            return LateStrategy()
        return NormalStrategy()

    def for_checkout(
        self,
        *,
        check_in: datetime,
        now: datetime,
        current_status: AttendanceStatus,
        source: StatusSource,
    ) -> AttendanceStrategy:
        if not source.is_automatic:
            return NormalStrategy()

        hours = (now - check_in).total_seconds() / 3600
        if hours < self.half_day_hours:
            return HalfDayStrategy()
        if hours < self.short_day_hours and current_status == AttendanceStatus.PRESENT:
            return HalfDayStrategy()
        return NormalStrategy()
