from __future__ import annotations

from flask import Flask

from ..auth.policy import Action, Resource
from ..common.http import json_body, ok, ok_list
from ..container import Container
from ..core.constants import API_PREFIX

BASE = f"{API_PREFIX}/clients"


def register(app: Flask, container: Container) -> None:
    guard = container.guard
    service = container.client_service

    @app.route(f"{BASE}/add", methods=["POST"], endpoint="clients_add")
    @guard.allow(Resource.CLIENT, Action.CREATE)
    def add_client():
        return ok(service.add_client(json_body()), status=201)

    @app.route(BASE, methods=["GET"], endpoint="clients_list")
    @guard.allow(Resource.CLIENT, Action.LIST)
    def list_clients():
        return ok_list(list(service.list_clients()))

    @app.route(f"{BASE}/<client_id>", methods=["GET"], endpoint="clients_get")
    @guard.allow(Resource.CLIENT, Action.READ)
    def get_client(client_id: str):
        return ok(service.get_client(client_id))

    @app.route(f"{BASE}/<client_id>", methods=["PUT"], endpoint="clients_update")
    @guard.allow(Resource.CLIENT, Action.UPDATE)
    def update_client(client_id: str):
        return ok(service.update_client(client_id, json_body()))

    @app.route(f"{BASE}/<client_id>", methods=["DELETE"], endpoint="clients_delete")
    @guard.allow(Resource.CLIENT, Action.DELETE)
    def delete_client(client_id: str):
        service.delete_client(client_id)
        return ok({})
