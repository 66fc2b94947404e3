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
from .model import Project

BASE = f"{API_PREFIX}/projects"


def present_project(project: Project, refs: ReferencePopulator) -> dict[str, Any]:
    out = to_json(project)
    out["client"] = refs.client(project.client)
    out["projectManager"] = refs.user(project.project_manager)
    out["createdBy"] = refs.user(project.created_by)
    out["teamMembers"] = [refs.user(m) for m in project.team_members]
    return out


def register(app: Flask, container: Container) -> None:
    guard = container.guard
    service = container.project_service
    refs = container.references

    @app.route(BASE, methods=["GET"], endpoint="projects_list")
    @guard.allow(Resource.PROJECT, Action.LIST)
    def list_projects():
        return ok_list([present_project(p, refs) for p in service.list_projects()])

    @app.route(f"{BASE}/<project_id>", methods=["GET"], endpoint="projects_get")
    @guard.allow(Resource.PROJECT, Action.READ)
    def get_project(project_id: str):
        return ok(present_project(service.get_project(project_id), refs))

    @app.route(BASE, methods=["POST"], endpoint="projects_create")
    @guard.allow(Resource.PROJECT, Action.CREATE)
    def create_project():
        return ok(service.create_project(current_user(), json_body()), status=201)

    @app.route(f"{BASE}/<project_id>", methods=["PUT"], endpoint="projects_update")
    @guard.allow(Resource.PROJECT, Action.UPDATE)
    def update_project(project_id: str):
        return ok(service.update_project(project_id, json_body()))

    @app.route(f"{BASE}/<project_id>", methods=["DELETE"], endpoint="projects_delete")
    @guard.allow(Resource.PROJECT, Action.DELETE)
    def delete_project(project_id: str):
        service.delete_project(project_id)
        return ok({})
