from __future__ import annotations

from enum import Enum
from typing import Any, Mapping, Optional, Sequence

from pymongo import ReturnDocument

from ..common.datetime_utils import now_local
from ..core.enums import ProjectPriority, ProjectStatus
from ..database.connection import DatabaseConnection
from ..database.mongo_base import id_str, stamp_new, to_object_id, to_object_ids
from .model import Milestone, Project
from .repository import ProjectRepository

_FIELD_MAP = {
    "name": "name",
    "client": "client",
    "start_date": "startDate",
    "end_date": "endDate",
    "description": "description",
    "status": "status",
    "priority": "priority",
    "project_manager": "projectManager",
    "team_members": "teamMembers",
    "budget": "budget",
    "expenses": "expenses",
    "milestones": "milestones",
    "created_by": "createdBy",
}


def _to_project(doc: Mapping[str, Any]) -> Project:
    return Project(
        project_id=str(doc["_id"]),
        name=doc["name"],
        client=id_str(doc.get("client")),
        start_date=doc["startDate"],
        created_by=id_str(doc.get("createdBy")),
        end_date=doc.get("endDate"),
        description=doc.get("description"),
        status=ProjectStatus(doc.get("status", ProjectStatus.NOT_STARTED.value)),
        priority=ProjectPriority(doc.get("priority", ProjectPriority.MEDIUM.value)),
        project_manager=id_str(doc.get("projectManager")),
        team_members=tuple(str(m) for m in doc.get("teamMembers") or ()),
        budget=doc.get("budget"),
        expenses=float(doc.get("expenses") or 0),
        milestones=tuple(
            Milestone(
                name=m.get("name", ""),
                due_date=m.get("dueDate"),
                completed=bool(m.get("completed", False)),
                completed_date=m.get("completedDate"),
            )
            for m in doc.get("milestones") or ()
        ),
        created_at=doc.get("createdAt"),
        updated_at=doc.get("updatedAt"),
    )


def _to_mongo_value(key: str, value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    if key in ("client", "project_manager", "created_by"):
        return to_object_id(value)
    if key == "team_members":
        return to_object_ids(value)
    if key == "milestones":
        return [
            {"name": m.name, "dueDate": m.due_date, "completed": m.completed, "completedDate": m.completed_date}
            for m in value
        ]
    return value


def _to_doc(fields: Mapping[str, Any]) -> dict[str, Any]:
    return {_FIELD_MAP[k]: _to_mongo_value(k, v) for k, v in fields.items() if k in _FIELD_MAP}


class MongoProjectRepository(ProjectRepository):
    def __init__(self, conn: DatabaseConnection):
        self._projects = conn.db.projects

    def get_by_id(self, project_id: str) -> Optional[Project]:
        oid = to_object_id(project_id)
        if oid is None:
            return None
        doc = self._projects.find_one({"_id": oid})
        return _to_project(doc) if doc else None

    def list_all(self) -> Sequence[Project]:
        return [_to_project(d) for d in self._projects.find().sort("createdAt", -1)]

    def create_project(self, fields: Mapping[str, Any]) -> Project:
        doc = stamp_new(_to_doc(fields), now_local())
        res = self._projects.insert_one(doc)
        doc["_id"] = res.inserted_id
        return _to_project(doc)

    def update_project(self, project_id: str, changes: Mapping[str, Any]) -> Optional[Project]:
        oid = to_object_id(project_id)
        if oid is None:
            return None
        update = _to_doc(changes)
        update["updatedAt"] = now_local()
        doc = self._projects.find_one_and_update(
            {"_id": oid}, {"$set": update}, return_document=ReturnDocument.AFTER
        )
        return _to_project(doc) if doc else None

    def delete_by_id(self, project_id: str) -> bool:
        oid = to_object_id(project_id)
        if oid is None:
            return False
        return self._projects.delete_one({"_id": oid}).deleted_count == 1
