from __future__ import annotations

from datetime import datetime
from typing import Any, Mapping, Optional, Sequence

from ..clients.repository import ClientRepository
from ..common.datetime_utils import now_local, parse_iso_datetime
from ..common.validators import optional_text, require_enum, require_max_length, require_non_empty, require_non_negative
from ..core.enums import ProjectPriority, ProjectStatus
from ..core.exceptions import NotFoundError, ValidationError
from ..users.model import User
from .model import Milestone, Project
from .repository import ProjectRepository


def _parse_milestones(value: Any) -> tuple[Milestone, ...]:
    if value is None:
        return ()
    if not isinstance(value, list):
        raise ValidationError("milestones must be a list")
    out = []
    for m in value:
        if not isinstance(m, Mapping):
            raise ValidationError("Each milestone must be an object")
        out.append(
            Milestone(
                name=str(m.get("name") or ""),
                due_date=parse_iso_datetime(m.get("dueDate"), "milestone due date"),
                completed=bool(m.get("completed", False)),
                completed_date=parse_iso_datetime(m.get("completedDate"), "milestone completed date"),
            )
        )
    return tuple(out)


def _parse_member_ids(value: Any) -> tuple[str, ...]:
    if value is None:
        return ()
    if not isinstance(value, list):
        raise ValidationError("teamMembers must be a list of user ids")
    return tuple(str(v) for v in value)


def _ensure_dates(start: Optional[datetime], end: Optional[datetime]) -> None:
    if start and end and not end > start:
        raise ValidationError("End date must be after start date")


class ProjectService:
    def __init__(self, projects: ProjectRepository, clients: ClientRepository):
        self._projects = projects
        self._clients = clients

    def _clean(self, data: Mapping[str, Any]) -> dict[str, Any]:
        out: dict[str, Any] = {}
        if "name" in data:
            out["name"] = require_max_length(require_non_empty(data["name"], "a project name"), "Project name", 100)
        if "client" in data:
            client_id = data["client"]
            if not client_id:
                raise ValidationError("Please provide a client")
            if not self._clients.get_by_id(str(client_id)):
                raise NotFoundError("Client not found")
            out["client"] = str(client_id)
        if "start_date" in data:
            out["start_date"] = parse_iso_datetime(data["start_date"], "start date") or now_local()
        if "end_date" in data:
            out["end_date"] = parse_iso_datetime(data["end_date"], "end date")
        if "description" in data:
            out["description"] = optional_text(data["description"], "Description", 2000)
        if "status" in data:
            out["status"] = require_enum(ProjectStatus, data["status"], "project status")
        if "priority" in data:
            out["priority"] = require_enum(ProjectPriority, data["priority"], "project priority")
        if "project_manager" in data:
            out["project_manager"] = str(data["project_manager"]) if data["project_manager"] else None
        if "team_members" in data:
            out["team_members"] = _parse_member_ids(data["team_members"])
        if "budget" in data:
            out["budget"] = None if data["budget"] is None else require_non_negative(data["budget"], "Budget")
        if "expenses" in data:
            out["expenses"] = require_non_negative(data["expenses"] or 0, "Expenses")
        if "milestones" in data:
            out["milestones"] = _parse_milestones(data["milestones"])
        return out

    def create_project(self, caller: User, data: Mapping[str, Any]) -> Project:
        fields = self._clean({"name": data.get("name"), "client": data.get("client"), **data})
        fields.setdefault("start_date", now_local())
        _ensure_dates(fields["start_date"], fields.get("end_date"))
        fields["created_by"] = caller.user_id
        return self._projects.create_project(fields)

    def list_projects(self) -> Sequence[Project]:
        return self._projects.list_all()

    def get_project(self, project_id: str) -> Project:
        project = self._projects.get_by_id(project_id)
        if not project:
            raise NotFoundError("Project not found")
        return project

    def update_project(self, project_id: str, data: Mapping[str, Any]) -> Project:
        current = self.get_project(project_id)
        changes = self._clean({k: v for k, v in data.items() if k != "created_by"})
        _ensure_dates(changes.get("start_date", current.start_date), changes.get("end_date", current.end_date))
        updated = self._projects.update_project(project_id, changes)
        if not updated:
            raise NotFoundError("Project not found")
        return updated

    def delete_project(self, project_id: str) -> None:
        if not self._projects.delete_by_id(project_id):
            raise NotFoundError("Project not found")
