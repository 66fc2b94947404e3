from __future__ import annotations

from typing import Any

from flask import Flask

from ..auth.guards import current_user
from ..auth.policy import Action, Resource
from ..common.http import json_body, ok, ok_list
from ..common.references import ReferencePopulator
from ..common.serialization import to_json
from ..container import Container
from ..core.constants import API_PREFIX
from .model import Lead

BASE = f"{API_PREFIX}/leads"


def present_lead(lead: Lead, refs: ReferencePopulator) -> dict[str, Any]:
    out = to_json(lead)
    out["createdBy"] = refs.user(lead.created_by)
    out["assignedTo"] = refs.user(lead.assigned_to)
    out["client"] = refs.client(lead.client)
    out["isHot"] = lead.is_hot
    return out


def register(app: Flask, container: Container) -> None:
    guard = container.guard
    service = container.lead_service
    refs = container.references

    def _many(leads):
        return ok_list([present_lead(lead, refs) for lead in leads])

    @app.route(BASE, methods=["POST"], endpoint="leads_create")
    @guard.allow(Resource.LEAD, Action.CREATE)
    def create_lead():
        return ok(present_lead(service.create_lead(current_user(), json_body()), refs), status=201)

    @app.route(BASE, methods=["GET"], endpoint="leads_list")
    @guard.allow(Resource.LEAD, Action.LIST)
    def list_leads():
        return _many(service.list_leads())

    @app.route(f"{BASE}/my-leads", methods=["GET"], endpoint="leads_mine")
    @guard.login_required
    def my_leads():
        return _many(service.my_leads(current_user()))

    @app.route(f"{BASE}/<lead_id>", methods=["GET"], endpoint="leads_get")
    @guard.allow(Resource.LEAD, Action.READ)
    def get_lead(lead_id: str):
        return ok(present_lead(service.get_lead(current_user(), lead_id), refs))

    @app.route(f"{BASE}/<lead_id>", methods=["PUT"], endpoint="leads_update")
    @guard.allow(Resource.LEAD, Action.UPDATE)
    def update_lead(lead_id: str):
        return ok(present_lead(service.update_lead(current_user(), lead_id, json_body()), refs))

    @app.route(f"{BASE}/<lead_id>", methods=["DELETE"], endpoint="leads_delete")
    @guard.allow(Resource.LEAD, Action.DELETE)
    def delete_lead(lead_id: str):
        service.delete_lead(current_user(), lead_id)
        return ok({})

    @app.route(f"{BASE}/<lead_id>/convert", methods=["POST"], endpoint="leads_convert")
    @guard.allow(Resource.LEAD, Action.CONVERT)
    def convert_lead(lead_id: str):
        result = container.conversion_service.convert(current_user(), lead_id)
        return ok({"lead": present_lead(result.lead, refs), "client": result.client})

    @app.route(f"{BASE}/<lead_id>/assign", methods=["PUT"], endpoint="leads_assign")
    @guard.allow(Resource.LEAD, Action.ASSIGN)
    def assign_lead(lead_id: str):
        lead = service.assign_lead(lead_id, json_body().get("assigned_to"))
        return ok(present_lead(lead, refs))

    @app.route(f"{BASE}/<lead_id>/status", methods=["PATCH"], endpoint="leads_update_status")
    @guard.allow(Resource.LEAD, Action.UPDATE_STATUS)
    def update_lead_status(lead_id: str):
        lead = service.update_status(current_user(), lead_id, json_body().get("status"))
        return ok(present_lead(lead, refs))

    @app.route(f"{BASE}/status/<status>", methods=["GET"], endpoint="leads_by_status")
    @guard.allow(Resource.LEAD, Action.LIST)
    def leads_by_status(status: str):
        return _many(service.leads_by_status(status))

    @app.route(f"{BASE}/source/<source>", methods=["GET"], endpoint="leads_by_source")
    @guard.allow(Resource.LEAD, Action.LIST)
    def leads_by_source(source: str):
        return _many(service.leads_by_source(source))

    @app.route(f"{BASE}/stats/overview", methods=["GET"], endpoint="leads_stats")
    @guard.allow(Resource.LEAD, Action.STATS)
    def leads_stats():
        stats = service.stats()
        return ok(stats if stats is not None else {})

    @app.route(f"{BASE}/recent", methods=["GET"], endpoint="leads_recent_default")
    @app.route(f"{BASE}/recent/<limit>", methods=["GET"], endpoint="leads_recent")
    @guard.allow(Resource.LEAD, Action.LIST)
    def recent_leads(limit: str | None = None):
        return _many(service.recent_leads(limit))
