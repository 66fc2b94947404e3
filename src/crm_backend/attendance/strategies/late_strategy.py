from __future__ import annotations

from datetime import datetime, time

from ...core.enums import AttendanceStatus
from .base import AttendanceStrategy, StatusDecision, minutes_late


class LateStrategy(AttendanceStrategy):
    """Late check-in."""

    def decide_checkin(self, *, now: datetime, expected: time) -> StatusDecision:
        return StatusDecision(status=AttendanceStatus.LATE, late_minutes=minutes_late(now, expected))

    def decide_checkout(self, *, check_in: datetime, now: datetime, current: AttendanceStatus) -> StatusDecision:
        return StatusDecision(status=current)
