from __future__ import annotations

import math
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime, time

from ...core.enums import AttendanceStatus


@dataclass(frozen=True)
class StatusDecision:
    status: AttendanceStatus
    late_minutes: int = 0


def minutes_late(now: datetime, expected: time) -> int:
    """Whole minutes past the expected time, rounded half up; 0 when on time."""

    start = datetime.combine(now.date(), expected)
    if now <= start:
        return 0
    return int(math.floor((now - start).total_seconds() / 60 + 0.5))


class AttendanceStrategy(ABC):
    """Strategy Pattern: encapsulate how we decide an attendance status."""

    @abstractmethod
    def decide_checkin(self, *, now: datetime, expected: time) -> StatusDecision:
        raise NotImplementedError

    @abstractmethod
    def decide_checkout(self, *, check_in: datetime, now: datetime, current: AttendanceStatus) -> StatusDecision:
        raise NotImplementedError
