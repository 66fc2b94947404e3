from __future__ import annotations

import logging
from collections import defaultdict
from datetime import date, datetime
from typing import Any, Mapping, Optional, Sequence

from ..common.datetime_utils import month_range, now_local, parse_iso_datetime
from ..common.validators import optional_text, require_enum
from ..core.constants import MY_ATTENDANCE_LIMIT
from ..core.enums import AttendanceStatus, StatusSource
from ..core.exceptions import ConflictError, NotFoundError, ValidationError
from ..users.model import User
from .factory import AttendanceStrategyFactory
from .model import AttendanceRecord, BulkUpdateResult, GeoPoint, StatusSummary
from .repository import AttendanceRepository

logger = logging.getLogger(__name__)


def _parse_point(longitude: Any, latitude: Any) -> Optional[GeoPoint]:
    if longitude in (None, "") or latitude in (None, ""):
        return None
    try:
        return GeoPoint(longitude=float(longitude), latitude=float(latitude))
    except (TypeError, ValueError):
        raise ValidationError("longitude and latitude must be numbers")


def _parse_day(value: Any, field_name: str) -> Optional[date]:
    parsed = parse_iso_datetime(value, field_name)
    return parsed.date() if parsed else None


def _parse_int(value: Any, field_name: str) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field_name} must be an integer")


class AttendanceService:
    def __init__(
        self,
        attendance: AttendanceRepository,
        *,
        strategy_factory: AttendanceStrategyFactory | None = None,
    ):
        self._attendance = attendance
        self._factory = strategy_factory or AttendanceStrategyFactory()

    def check_in(
        self,
        caller: User,
        *,
        longitude: Any = None,
        latitude: Any = None,
        ip_address: Optional[str] = None,
        device: Optional[str] = None,
        now: datetime | None = None,
    ) -> AttendanceRecord:
        now = now or now_local()
        today = now.date()

        if self._attendance.get_for_user_and_date(caller.user_id, today):
            raise ConflictError("Already checked in today")

        strategy = self._factory.for_checkin(now=now)
        decision = strategy.decide_checkin(now=now, expected=self._factory.expected_check_in)

        record = self._attendance.create_checkin(
            user_id=caller.user_id,
            work_date=today,
            check_in=now,
            status=decision.status,
            late_minutes=decision.late_minutes,
            location=_parse_point(longitude, latitude),
            ip_address=ip_address,
            device=device,
        )
        logger.info("Check-in %s for user %s: %s (%d min late)", record.attendance_id, caller.user_id, record.status.value, record.late_minutes)
        return record

    def check_out(self, caller: User, *, now: datetime | None = None) -> AttendanceRecord:
        now = now or now_local()

        record = self._attendance.get_for_user_and_date(caller.user_id, now.date())
        if not record or record.check_out is not None:
            raise NotFoundError("No active check-in found")

        strategy = self._factory.for_checkout(
            check_in=record.check_in, now=now, current_status=record.status, source=record.status_source
        )
        decision = strategy.decide_checkout(check_in=record.check_in, now=now, current=record.status)

        updated = self._attendance.update_checkout(record.attendance_id, check_out=now, status=decision.status)
        if not updated:
            raise NotFoundError("No active check-in found")
        return updated

    def my_attendance(self, caller: User, *, month: Any = None, year: Any = None) -> Sequence[AttendanceRecord]:
        start = end = None
        if month and year:
            start, end = month_range(_parse_int(year, "year"), _parse_int(month, "month"))
        return self._attendance.list_for_user(caller.user_id, start=start, end=end, limit=MY_ATTENDANCE_LIMIT)

    def list_records(
        self,
        *,
        start_date: Any = None,
        end_date: Any = None,
        user_id: Optional[str] = None,
        status: Optional[str] = None,
    ) -> Sequence[AttendanceRecord]:
        start = end = None
        # The date window applies only when both bounds are given.
        if start_date and end_date:
            start = _parse_day(start_date, "startDate")
            end = _parse_day(end_date, "endDate")
        return self._attendance.list_filtered(start=start, end=end, user_id=user_id, status=status)

    def stats(self, *, start_date: Any = None, end_date: Any = None) -> Sequence[StatusSummary]:
        """Count records per status over a date window.

        A missing bound falls back to the day of the other bound, or today
        when both are missing.
        """

        start = _parse_day(start_date, "startDate")
        end = _parse_day(end_date, "endDate")
        anchor = start or end or now_local().date()
        records = self._attendance.list_filtered(start=start or anchor, end=end or anchor)

        counts: dict[AttendanceStatus, int] = defaultdict(int)
        users: dict[AttendanceStatus, set[str]] = defaultdict(set)
        for r in records:
            counts[r.status] += 1
            users[r.status].add(r.user)
        return [StatusSummary(status=s, count=counts[s], unique_users=len(users[s])) for s in counts]

    def update_record(self, attendance_id: str, data: Mapping[str, Any]) -> AttendanceRecord:
        changes: dict[str, Any] = {}
        for key in ("check_in", "check_out"):
            if key in data:
                changes[key] = parse_iso_datetime(data[key], key.replace("_", " "))
        if changes.get("check_in") is None:
            changes.pop("check_in", None)
        if "late_minutes" in data:
            changes["late_minutes"] = _parse_int(data["late_minutes"], "lateMinutes")
        if "status" in data:
            changes["status"] = require_enum(AttendanceStatus, data["status"], "attendance status")
        if "notes" in data:
            changes["notes"] = optional_text(data["notes"], "Notes", 500)
        if "status" in changes or "notes" in changes:
            changes["status_source"] = StatusSource.MANUALLY_OVERRIDDEN

        updated = self._attendance.update_record(attendance_id, changes)
        if not updated:
            raise NotFoundError("Attendance not found")
        return updated

    def update_status(self, attendance_id: str, status: Any, notes: Any = None) -> AttendanceRecord:
        if not status:
            raise ValidationError("Please provide status")
        changes = {
            "status": require_enum(AttendanceStatus, status, "attendance status"),
            "notes": optional_text(notes, "Notes", 500),
            "status_source": StatusSource.MANUALLY_OVERRIDDEN,
        }
        updated = self._attendance.update_record(attendance_id, changes)
        if not updated:
            raise NotFoundError("Attendance not found")
        logger.info("Attendance %s manually set to %s", attendance_id, updated.status.value)
        return updated

    def bulk_update_status(self, data: Mapping[str, Any]) -> BulkUpdateResult:
        work_date = _parse_day(data.get("date"), "date")
        if work_date is None:
            raise ValidationError("Please provide date")
        if not data.get("status"):
            raise ValidationError("Please provide status")
        user_ids = data.get("user_ids")
        if not isinstance(user_ids, list):
            raise ValidationError("userIds must be a list of user ids")

        changes = {
            "status": require_enum(AttendanceStatus, data["status"], "attendance status"),
            "notes": optional_text(data.get("notes"), "Notes", 500),
            "status_source": StatusSource.MANUALLY_OVERRIDDEN,
        }
        result = self._attendance.bulk_update(work_date, [str(u) for u in user_ids], changes)
        logger.info("Bulk attendance update for %s: matched=%d updated=%d", work_date, result.matched, result.updated)
        return result

    def delete_record(self, attendance_id: str) -> None:
        if not self._attendance.delete_by_id(attendance_id):
            raise NotFoundError("Attendance not found")
