from __future__ import annotations

from typing import Any

from flask import Flask, request

from ..auth.guards import current_user
from ..auth.policy import Action, Resource
from ..common.http import json_body, ok, ok_list
from ..common.references import ReferencePopulator
from ..common.serialization import to_json
from ..container import Container
from ..core.constants import API_PREFIX
from .model import AttendanceRecord

BASE = f"{API_PREFIX}/attendance"


def present_record(record: AttendanceRecord, refs: ReferencePopulator) -> dict[str, Any]:
    out = to_json(record)
    out.pop("statusSource", None)
    out["autoStatus"] = record.auto_status
    out["user"] = refs.user(record.user)
    out["location"] = record.location.to_geojson() if record.location else None
    return out


def register(app: Flask, container: Container) -> None:
    guard = container.guard
    service = container.attendance_service
    refs = container.references

    def _many(records):
        return ok_list([present_record(r, refs) for r in records])

    @app.route(f"{BASE}/check-in", methods=["POST"], endpoint="attendance_check_in")
    @guard.allow(Resource.ATTENDANCE, Action.CREATE)
    def check_in():
        data = json_body()
        record = service.check_in(
            current_user(),
            longitude=data.get("longitude"),
            latitude=data.get("latitude"),
            ip_address=request.remote_addr,
            device=request.headers.get("User-Agent"),
        )
        return ok(present_record(record, refs), status=201)

    @app.route(f"{BASE}/check-out", methods=["PUT"], endpoint="attendance_check_out")
    @guard.allow(Resource.ATTENDANCE, Action.CREATE)
    def check_out():
        return ok(present_record(service.check_out(current_user()), refs))

    @app.route(f"{BASE}/my-attendance", methods=["GET"], endpoint="attendance_mine")
    @guard.allow(Resource.ATTENDANCE, Action.READ)
    def my_attendance():
        records = service.my_attendance(
            current_user(), month=request.args.get("month"), year=request.args.get("year")
        )
        return _many(records)

    @app.route(BASE, methods=["GET"], endpoint="attendance_list")
    @guard.allow(Resource.ATTENDANCE, Action.LIST)
    def list_attendance():
        records = service.list_records(
            start_date=request.args.get("startDate"),
            end_date=request.args.get("endDate"),
            user_id=request.args.get("userId"),
            status=request.args.get("status"),
        )
        return _many(records)

    @app.route(f"{BASE}/stats", methods=["GET"], endpoint="attendance_stats")
    @guard.allow(Resource.ATTENDANCE, Action.STATS)
    def attendance_stats():
        summary = service.stats(start_date=request.args.get("startDate"), end_date=request.args.get("endDate"))
        return ok(list(summary))

    @app.route(f"{BASE}/<attendance_id>", methods=["PUT"], endpoint="attendance_update")
    @guard.allow(Resource.ATTENDANCE, Action.UPDATE)
    def update_attendance(attendance_id: str):
        return ok(present_record(service.update_record(attendance_id, json_body()), refs))

    @app.route(f"{BASE}/<attendance_id>/status", methods=["PATCH"], endpoint="attendance_update_status")
    @guard.allow(Resource.ATTENDANCE, Action.UPDATE_STATUS)
    def update_attendance_status(attendance_id: str):
        data = json_body()
        record = service.update_status(attendance_id, data.get("status"), data.get("notes"))
        return ok(present_record(record, refs))

    @app.route(f"{BASE}/bulk-status", methods=["POST"], endpoint="attendance_bulk_status")
    @guard.allow(Resource.ATTENDANCE, Action.BULK_UPDATE)
    def bulk_update_status():
        return ok(service.bulk_update_status(json_body()))

    @app.route(f"{BASE}/<attendance_id>", methods=["DELETE"], endpoint="attendance_delete")
    @guard.allow(Resource.ATTENDANCE, Action.DELETE)
    def delete_attendance(attendance_id: str):
        service.delete_record(attendance_id)
        return ok({})
