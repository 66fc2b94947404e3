from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Optional

from ..core.enums import AttendanceStatus, StatusSource


@dataclass(frozen=True)
class GeoPoint:
    longitude: float
    latitude: float

    def to_geojson(self) -> dict[str, Any]:
        return {"type": "Point", "coordinates": [self.longitude, self.latitude]}


@dataclass(frozen=True)
class AttendanceRecord:
    """Domain entity: one user's attendance for one local calendar day."""

    attendance_id: str
    user: str
    work_date: date
    check_in: datetime
    status: AttendanceStatus
    check_out: Optional[datetime] = None
    late_minutes: int = 0
    status_source: StatusSource = StatusSource.AUTOMATIC
    notes: Optional[str] = None
    location: Optional[GeoPoint] = None
    ip_address: Optional[str] = None
    device: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def auto_status(self) -> bool:
        return self.status_source.is_automatic


@dataclass(frozen=True)
class StatusSummary:
    """Read-model for the stats endpoint."""

    status: AttendanceStatus
    count: int
    unique_users: int


@dataclass(frozen=True)
class BulkUpdateResult:
    matched: int
    updated: int
