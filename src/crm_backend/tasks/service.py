from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Mapping, Optional, Sequence

from ..auth.policy import Action, Resource, ensure_owner
from ..common.datetime_utils import now_local, parse_iso_datetime
from ..common.validators import optional_text, require_enum, require_max_length, require_non_empty
from ..core.enums import RelatedKind, Role, TaskPriority, TaskStatus
from ..core.exceptions import AuthorizationError, NotFoundError, ValidationError
from ..projects.repository import ProjectRepository
from ..users.model import User
from ..users.repository import UserRepository
from .model import Task, agenda_key
from .related import RelatedEntity, RelatedEntityRegistry
from .repository import TaskRepository

logger = logging.getLogger(__name__)

IMMUTABLE_FIELDS = ("created_by", "related_to", "related_entity", "related")


def _parse_reminders(value: Any, now: datetime) -> tuple[datetime, ...]:
    if value is None:
        return ()
    if not isinstance(value, list):
        raise ValidationError("reminders must be a list of dates")
    out = []
    for raw in value:
        when = parse_iso_datetime(raw, "reminder")
        if when is None or when <= now:
            raise ValidationError("Reminder must be in the future")
        out.append(when)
    return tuple(out)


def _completion_changes(status: TaskStatus, current: Optional[Task], now: datetime) -> dict[str, Any]:
    """completed_at follows status: stamped once on completion, cleared otherwise."""

    if status is TaskStatus.COMPLETED:
        if current is not None and current.completed_at is not None:
            return {}
        return {"completed_at": now}
    return {"completed_at": None}


class TaskService:
    def __init__(
        self,
        tasks: TaskRepository,
        users: UserRepository,
        projects: ProjectRepository,
        related: RelatedEntityRegistry,
    ):
        self._tasks = tasks
        self._users = users
        self._projects = projects
        self._related = related

    def _clean(self, data: Mapping[str, Any], now: datetime) -> dict[str, Any]:
        out: dict[str, Any] = {}
        if "name" in data:
            out["name"] = require_max_length(require_non_empty(data["name"], "a task name"), "Title", 100)
        if "description" in data:
            out["description"] = optional_text(data["description"], "Description", 1000)
        if "due_date" in data:
            out["due_date"] = parse_iso_datetime(data["due_date"], "due date")
        if "priority" in data:
            out["priority"] = require_enum(TaskPriority, data["priority"] or TaskPriority.MEDIUM, "priority")
        if "status" in data:
            out["status"] = require_enum(TaskStatus, data["status"] or TaskStatus.NOT_STARTED, "status")
        if "assigned_to" in data:
            assignee = data["assigned_to"]
            if assignee and not self._users.get_by_id(str(assignee)):
                raise NotFoundError("Assigned user not found")
            out["assigned_to"] = str(assignee) if assignee else None
        if "reminders" in data:
            out["reminders"] = _parse_reminders(data["reminders"], now)
        return out

    def create_task(self, caller: User, data: Mapping[str, Any]) -> Task:
        now = now_local()
        related = RelatedEntity.parse(data.get("related_to"), data.get("related_entity"))
        self._related.ensure_exists(related)

        fields = self._clean(
            {"name": data.get("name"), **{k: v for k, v in data.items() if k not in IMMUTABLE_FIELDS}},
            now,
        )
        due = fields.get("due_date")
        if due is not None and due < now:
            raise ValidationError("Due date must be in the future")
        status = fields.setdefault("status", TaskStatus.NOT_STARTED)
        fields.setdefault("priority", TaskPriority.MEDIUM)
        fields.update(_completion_changes(status, None, now))
        fields.update(related=related, created_by=caller.user_id)
        task = self._tasks.create_task(fields)
        logger.info("Task %s created by %s (%s)", task.task_id, caller.user_id, related.kind.value)
        return task

    def list_tasks(self) -> Sequence[Task]:
        return sorted(self._tasks.list_all(), key=agenda_key)

    def my_tasks(self, caller: User) -> Sequence[Task]:
        return sorted(self._tasks.list_assigned_to(caller.user_id), key=agenda_key)

    def tasks_for_project(self, caller: User, project_id: str) -> Sequence[Task]:
        project = self._projects.get_by_id(project_id)
        if not project:
            raise NotFoundError("Project not found")
        if caller.role not in (Role.ADMIN, Role.MANAGER) and not project.involves(caller.user_id):
            raise AuthorizationError("Not authorized to access tasks for this project")
        tasks = self._tasks.list_related_to(RelatedEntity(RelatedKind.PROJECT, project.project_id))
        return sorted(tasks, key=agenda_key)

    def _load(self, task_id: str) -> Task:
        task = self._tasks.get_by_id(task_id)
        if not task:
            raise NotFoundError("Task not found")
        return task

    def get_task(self, caller: User, task_id: str) -> Task:
        task = self._load(task_id)
        ensure_owner(caller.user_id, caller.role, Resource.TASK, Action.READ, task)
        return task

    def update_task(self, caller: User, task_id: str, data: Mapping[str, Any]) -> Task:
        task = self._load(task_id)
        ensure_owner(caller.user_id, caller.role, Resource.TASK, Action.UPDATE, task)
        now = now_local()
        changes = self._clean({k: v for k, v in data.items() if k not in IMMUTABLE_FIELDS}, now)
        if "status" in changes:
            changes.update(_completion_changes(changes["status"], task, now))
        return self._save(task_id, changes)

    def update_status(self, caller: User, task_id: str, status: Any) -> Task:
        if not status:
            raise ValidationError("Please provide status")
        new_status = require_enum(TaskStatus, status, "status")
        task = self._load(task_id)
        ensure_owner(caller.user_id, caller.role, Resource.TASK, Action.UPDATE_STATUS, task)
        changes: dict[str, Any] = {"status": new_status}
        changes.update(_completion_changes(new_status, task, now_local()))
        return self._save(task_id, changes)

    def delete_task(self, caller: User, task_id: str) -> None:
        task = self._load(task_id)
        ensure_owner(caller.user_id, caller.role, Resource.TASK, Action.DELETE, task)
        if not self._tasks.delete_by_id(task_id):
            raise NotFoundError("Task not found")

    def _save(self, task_id: str, changes: Mapping[str, Any]) -> Task:
        updated = self._tasks.update_task(task_id, changes)
        if not updated:
            raise NotFoundError("Task not found")
        return updated
