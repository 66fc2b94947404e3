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
from .model import Task

BASE = f"{API_PREFIX}/tasks"


def present_task(task: Task, refs: ReferencePopulator) -> dict[str, Any]:
    out = to_json(task)
    out.pop("related", None)
    out["relatedTo"] = task.related.kind.value
    out["relatedEntity"] = task.related.entity_id
    out["assignedTo"] = refs.user(task.assigned_to)
    out["createdBy"] = refs.user(task.created_by)
    out["isOverdue"] = task.is_overdue
    return out


def register(app: Flask, container: Container) -> None:
    guard = container.guard
    service = container.task_service
    refs = container.references

    def _many(tasks):
        return ok_list([present_task(t, refs) for t in tasks])

    @app.route(BASE, methods=["GET"], endpoint="tasks_list")
    @guard.allow(Resource.TASK, Action.LIST)
    def list_tasks():
        return _many(service.list_tasks())

    @app.route(f"{BASE}/my-tasks", methods=["GET"], endpoint="tasks_mine")
    @guard.login_required
    def my_tasks():
        return _many(service.my_tasks(current_user()))

    @app.route(f"{BASE}/project/<project_id>", methods=["GET"], endpoint="tasks_by_project")
    @guard.allow(Resource.TASK, Action.LIST)
    def tasks_by_project(project_id: str):
        return _many(service.tasks_for_project(current_user(), project_id))

    @app.route(BASE, methods=["POST"], endpoint="tasks_create")
    @guard.allow(Resource.TASK, Action.CREATE)
    def create_task():
        task = service.create_task(current_user(), json_body())
        return ok(present_task(task, refs), status=201)

    @app.route(f"{BASE}/<task_id>", methods=["GET"], endpoint="tasks_get")
    @guard.allow(Resource.TASK, Action.READ)
    def get_task(task_id: str):
        return ok(present_task(service.get_task(current_user(), task_id), refs))

    @app.route(f"{BASE}/<task_id>", methods=["PUT"], endpoint="tasks_update")
    @guard.allow(Resource.TASK, Action.UPDATE)
    def update_task(task_id: str):
        return ok(present_task(service.update_task(current_user(), task_id, json_body()), refs))

    @app.route(f"{BASE}/<task_id>/status", methods=["PATCH"], endpoint="tasks_update_status")
    @guard.allow(Resource.TASK, Action.UPDATE_STATUS)
    def update_task_status(task_id: str):
        task = service.update_status(current_user(), task_id, json_body().get("status"))
        return ok(present_task(task, refs))

    @app.route(f"{BASE}/<task_id>", methods=["DELETE"], endpoint="tasks_delete")
    @guard.allow(Resource.TASK, Action.DELETE)
    def delete_task(task_id: str):
        service.delete_task(current_user(), task_id)
        return ok({})
