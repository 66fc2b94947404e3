from __future__ import annotations

import logging
from datetime import date, datetime
from enum import Enum
from typing import Any, Iterable, Mapping, Optional, Sequence

from pymongo import DESCENDING, ReturnDocument
from pymongo.errors import DuplicateKeyError

from ..common.datetime_utils import now_local
from ..core.enums import AttendanceStatus, StatusSource
from ..core.exceptions import ConflictError
from ..database.connection import DatabaseConnection
from ..database.mongo_base import date_to_mongo, id_str, mongo_to_date, stamp_new, to_object_id, to_object_ids
from .model import AttendanceRecord, BulkUpdateResult, GeoPoint
from .repository import AttendanceRepository

logger = logging.getLogger(__name__)

_FIELD_MAP = {
    "check_in": "checkIn",
    "check_out": "checkOut",
    "status": "status",
    "late_minutes": "lateMinutes",
    "notes": "notes",
    "ip_address": "ipAddress",
    "device": "device",
}


def _to_point(value: Optional[Mapping[str, Any]]) -> Optional[GeoPoint]:
    if not value or len(value.get("coordinates") or ()) != 2:
        return None
    lng, lat = value["coordinates"]
    return GeoPoint(longitude=float(lng), latitude=float(lat))


def _to_record(doc: Mapping[str, Any]) -> AttendanceRecord:
    return AttendanceRecord(
        attendance_id=str(doc["_id"]),
        user=id_str(doc.get("user")),
        work_date=mongo_to_date(doc["workDate"]),
        check_in=doc["checkIn"],
        status=AttendanceStatus(doc.get("status", AttendanceStatus.PRESENT.value)),
        check_out=doc.get("checkOut"),
        late_minutes=int(doc.get("lateMinutes") or 0),
        status_source=StatusSource.AUTOMATIC if doc.get("autoStatus", True) else StatusSource.MANUALLY_OVERRIDDEN,
        notes=doc.get("notes"),
        location=_to_point(doc.get("location")),
        ip_address=doc.get("ipAddress"),
        device=doc.get("device"),
        created_at=doc.get("createdAt"),
        updated_at=doc.get("updatedAt"),
    )


def _to_doc(fields: Mapping[str, Any]) -> dict[str, Any]:
    out: dict[str, Any] = {}
    for k, v in fields.items():
        if k == "status_source":
            out["autoStatus"] = v.is_automatic
        elif k in _FIELD_MAP:
            out[_FIELD_MAP[k]] = v.value if isinstance(v, Enum) else v
    return out


def _date_window(start: Optional[date], end: Optional[date]) -> dict[str, Any]:
    window: dict[str, Any] = {}
    if start is not None:
        window["$gte"] = date_to_mongo(start)
    if end is not None:
        window["$lte"] = date_to_mongo(end)
    return window


class MongoAttendanceRepository(AttendanceRepository):
    def __init__(self, conn: DatabaseConnection):
        self._attendance = conn.db.attendance

    def _find(self, query: Mapping[str, Any], limit: int = 0) -> Sequence[AttendanceRecord]:
        cursor = self._attendance.find(query).sort("workDate", DESCENDING)
        if limit:
            cursor = cursor.limit(limit)
        return [_to_record(d) for d in cursor]

    def get_by_id(self, attendance_id: str) -> Optional[AttendanceRecord]:
        oid = to_object_id(attendance_id)
        if oid is None:
            return None
        doc = self._attendance.find_one({"_id": oid})
        return _to_record(doc) if doc else None

    def get_for_user_and_date(self, user_id: str, work_date: date) -> Optional[AttendanceRecord]:
        doc = self._attendance.find_one({"user": to_object_id(user_id), "workDate": date_to_mongo(work_date)})
        return _to_record(doc) if doc else None

    def create_checkin(
        self,
        *,
        user_id: str,
        work_date: date,
        check_in: datetime,
        status: AttendanceStatus,
        late_minutes: int,
        location: Optional[GeoPoint] = None,
        ip_address: Optional[str] = None,
        device: Optional[str] = None,
    ) -> AttendanceRecord:
        doc: dict[str, Any] = {
            "user": to_object_id(user_id),
            "workDate": date_to_mongo(work_date),
            "checkIn": check_in,
            "status": status.value,
            "lateMinutes": late_minutes,
            "autoStatus": True,
            "ipAddress": ip_address,
            "device": device,
        }
        # 2dsphere rejects partial points, so the field is omitted instead.
        if location is not None:
            doc["location"] = location.to_geojson()
        stamp_new(doc, now_local())
        try:
            res = self._attendance.insert_one(doc)
        except DuplicateKeyError:
            logger.info("Duplicate check-in rejected for user %s on %s", user_id, work_date)
            raise ConflictError("Already checked in today")
        doc["_id"] = res.inserted_id
        return _to_record(doc)

    def update_checkout(
        self, attendance_id: str, *, check_out: datetime, status: AttendanceStatus
    ) -> Optional[AttendanceRecord]:
        oid = to_object_id(attendance_id)
        if oid is None:
            return None
        now = now_local()
        doc = self._attendance.find_one_and_update(
            {"_id": oid, "checkOut": None, "autoStatus": {"$ne": False}},
            {"$set": {"checkOut": check_out, "status": status.value, "updatedAt": now}},
            return_document=ReturnDocument.AFTER,
        )
        if doc is None:
            # Manually overridden since it was read: keep its status.
            doc = self._attendance.find_one_and_update(
                {"_id": oid, "checkOut": None},
                {"$set": {"checkOut": check_out, "updatedAt": now}},
                return_document=ReturnDocument.AFTER,
            )
        return _to_record(doc) if doc else None

    def list_for_user(
        self, user_id: str, *, start: Optional[date] = None, end: Optional[date] = None, limit: int = 0
    ) -> Sequence[AttendanceRecord]:
        query: dict[str, Any] = {"user": to_object_id(user_id)}
        window = _date_window(start, end)
        if window:
            query["workDate"] = window
        return self._find(query, limit)

    def list_filtered(
        self,
        *,
        start: Optional[date] = None,
        end: Optional[date] = None,
        user_id: Optional[str] = None,
        status: Optional[str] = None,
    ) -> Sequence[AttendanceRecord]:
        query: dict[str, Any] = {}
        window = _date_window(start, end)
        if window:
            query["workDate"] = window
        if user_id:
            query["user"] = to_object_id(user_id)
        if status:
            query["status"] = status
        return self._find(query)

    def update_record(self, attendance_id: str, changes: Mapping[str, Any]) -> Optional[AttendanceRecord]:
        oid = to_object_id(attendance_id)
        if oid is None:
            return None
        update = _to_doc(changes)
        update["updatedAt"] = now_local()
        doc = self._attendance.find_one_and_update(
            {"_id": oid}, {"$set": update}, return_document=ReturnDocument.AFTER
        )
        return _to_record(doc) if doc else None

    def bulk_update(self, work_date: date, user_ids: Iterable[str], changes: Mapping[str, Any]) -> BulkUpdateResult:
        update = _to_doc(changes)
        update["updatedAt"] = now_local()
        res = self._attendance.update_many(
            {"workDate": date_to_mongo(work_date), "user": {"$in": to_object_ids(user_ids)}},
            {"$set": update},
        )
        return BulkUpdateResult(matched=res.matched_count, updated=res.modified_count)

    def delete_by_id(self, attendance_id: str) -> bool:
        oid = to_object_id(attendance_id)
        if oid is None:
            return False
        return self._attendance.delete_one({"_id": oid}).deleted_count == 1
