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
from .model import Sale

BASE = f"{API_PREFIX}/sales"


def present_sale(sale: Sale, refs: ReferencePopulator) -> dict[str, Any]:
    out = to_json(sale)
    out["project"] = refs.project(sale.project)
    out["client"] = refs.client(sale.client)
    out["salesperson"] = refs.user(sale.salesperson)
    return out


def register(app: Flask, container: Container) -> None:
    guard = container.guard
    service = container.sale_service
    refs = container.references

    def _many(sales):
        return ok_list([present_sale(s, refs) for s in sales])

    @app.route(BASE, methods=["GET"], endpoint="sales_list")
    @guard.allow(Resource.SALE, Action.LIST)
    def list_sales():
        return _many(service.list_sales())

    @app.route(f"{BASE}/stats", methods=["GET"], endpoint="sales_stats")
    @guard.allow(Resource.SALE, Action.STATS)
    def sales_stats():
        stats = service.stats()
        return ok(stats if stats is not None else {})

    @app.route(f"{BASE}/date-range", methods=["GET"], endpoint="sales_date_range")
    @guard.allow(Resource.SALE, Action.LIST)
    def sales_by_date_range():
        return _many(service.sales_between(request.args.get("startDate"), request.args.get("endDate")))

    @app.route(f"{BASE}/my-sales", methods=["GET"], endpoint="sales_mine")
    @guard.login_required
    def my_sales():
        return _many(service.my_sales(current_user()))

    @app.route(f"{BASE}/project/<project_id>", methods=["GET"], endpoint="sales_by_project")
    @guard.allow(Resource.SALE, Action.LIST)
    def sales_by_project(project_id: str):
        return _many(service.sales_for_project(project_id))

    @app.route(f"{BASE}/client/<client_id>", methods=["GET"], endpoint="sales_by_client")
    @guard.allow(Resource.SALE, Action.LIST)
    def sales_by_client(client_id: str):
        return _many(service.sales_for_client(client_id))

    @app.route(BASE, methods=["POST"], endpoint="sales_create")
    @guard.allow(Resource.SALE, Action.CREATE)
    def create_sale():
        return ok(present_sale(service.create_sale(current_user(), json_body()), refs), status=201)

    @app.route(f"{BASE}/<sale_id>", methods=["GET"], endpoint="sales_get")
    @guard.allow(Resource.SALE, Action.READ)
    def get_sale(sale_id: str):
        return ok(present_sale(service.get_sale(current_user(), sale_id), refs))

    @app.route(f"{BASE}/<sale_id>", methods=["PUT"], endpoint="sales_update")
    @guard.allow(Resource.SALE, Action.UPDATE)
    def update_sale(sale_id: str):
        return ok(present_sale(service.update_sale(current_user(), sale_id, json_body()), refs))

    @app.route(f"{BASE}/<sale_id>", methods=["DELETE"], endpoint="sales_delete")
    @guard.allow(Resource.SALE, Action.DELETE)
    def delete_sale(sale_id: str):
        service.delete_sale(sale_id)
        return ok({})
