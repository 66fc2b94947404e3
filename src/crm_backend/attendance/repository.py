from __future__ import annotations

from datetime import date
from typing import Any, Iterable, Mapping, Optional, Protocol, Sequence

from ..core.enums import AttendanceStatus
from .model import AttendanceRecord, BulkUpdateResult, GeoPoint


class AttendanceRepository(Protocol):
    """Lists return the most recent work_date first."""

    def get_by_id(self, attendance_id: str) -> Optional[AttendanceRecord]:
        raise NotImplementedError

    def get_for_user_and_date(self, user_id: str, work_date: date) -> Optional[AttendanceRecord]:
        raise NotImplementedError

    def create_checkin(
        self,
        *,
        user_id: str,
        work_date: date,
        check_in,
        status: AttendanceStatus,
        late_minutes: int,
        location: Optional[GeoPoint] = None,
        ip_address: Optional[str] = None,
        device: Optional[str] = None,
    ) -> AttendanceRecord:
        """Raises ConflictError when the user already has a record for work_date."""
        raise NotImplementedError

    def update_checkout(
        self, attendance_id: str, *, check_out, status: AttendanceStatus
    ) -> Optional[AttendanceRecord]:
        """Stamp check_out on an open record.

        `status` is applied only while the record is still automatic. Returns
        None when the record is gone or already checked out.
        """
        raise NotImplementedError

    def list_for_user(
        self, user_id: str, *, start: Optional[date] = None, end: Optional[date] = None, limit: int = 0
    ) -> Sequence[AttendanceRecord]:
        raise NotImplementedError

    def list_filtered(
        self,
        *,
        start: Optional[date] = None,
        end: Optional[date] = None,
        user_id: Optional[str] = None,
        status: Optional[str] = None,
    ) -> Sequence[AttendanceRecord]:
        raise NotImplementedError

    def update_record(self, attendance_id: str, changes: Mapping[str, Any]) -> Optional[AttendanceRecord]:
        raise NotImplementedError

    def bulk_update(self, work_date: date, user_ids: Iterable[str], changes: Mapping[str, Any]) -> BulkUpdateResult:
        raise NotImplementedError

    def delete_by_id(self, attendance_id: str) -> bool:
        raise NotImplementedError
