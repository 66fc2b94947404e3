from __future__ import annotations

from enum import Enum
from typing import Any, Mapping, Optional, Sequence

from pymongo import ReturnDocument

from ..common.datetime_utils import now_local
from ..core.enums import RelatedKind, TaskPriority, TaskStatus
from ..database.connection import DatabaseConnection
from ..database.mongo_base import id_str, stamp_new, to_object_id
from .model import Task
from .related import RelatedEntity
from .repository import TaskRepository

_FIELD_MAP = {
    "name": "name",
    "description": "description",
    "due_date": "dueDate",
    "priority": "priority",
    "status": "status",
    "assigned_to": "assignedTo",
    "created_by": "createdBy",
    "completed_at": "completedAt",
    "reminders": "reminders",
}
_REFERENCES = ("assigned_to", "created_by")


def _to_task(doc: Mapping[str, Any]) -> Task:
    return Task(
        task_id=str(doc["_id"]),
        name=doc["name"],
        related=RelatedEntity(RelatedKind(doc["relatedTo"]), str(doc["relatedEntity"])),
        description=doc.get("description"),
        due_date=doc.get("dueDate"),
        priority=TaskPriority(doc.get("priority", TaskPriority.MEDIUM.value)),
        status=TaskStatus(doc.get("status", TaskStatus.NOT_STARTED.value)),
        assigned_to=id_str(doc.get("assignedTo")),
        created_by=id_str(doc.get("createdBy")),
        completed_at=doc.get("completedAt"),
        reminders=tuple(doc.get("reminders") or ()),
        created_at=doc.get("createdAt"),
        updated_at=doc.get("updatedAt"),
    )


def _related_query(related: RelatedEntity) -> dict[str, Any]:
    # Other-kind ids are free-form and may not be ObjectIds.
    return {
        "relatedTo": related.kind.value,
        "relatedEntity": to_object_id(related.entity_id) or related.entity_id,
    }


def _to_doc(fields: Mapping[str, Any]) -> dict[str, Any]:
    out: dict[str, Any] = {}
    for k, v in fields.items():
        if k == "related":
            out.update(_related_query(v))
            continue
        if k not in _FIELD_MAP:
            continue
        if k in _REFERENCES:
            v = to_object_id(v)
        elif isinstance(v, Enum):
            v = v.value
        elif k == "reminders":
            v = list(v)
        out[_FIELD_MAP[k]] = v
    return out


class MongoTaskRepository(TaskRepository):
    def __init__(self, conn: DatabaseConnection):
        self._tasks = conn.db.tasks

    def get_by_id(self, task_id: str) -> Optional[Task]:
        oid = to_object_id(task_id)
        if oid is None:
            return None
        doc = self._tasks.find_one({"_id": oid})
        return _to_task(doc) if doc else None

    def list_all(self) -> Sequence[Task]:
        return [_to_task(d) for d in self._tasks.find()]

    def list_assigned_to(self, user_id: str) -> Sequence[Task]:
        return [_to_task(d) for d in self._tasks.find({"assignedTo": to_object_id(user_id)})]

    def list_related_to(self, related: RelatedEntity) -> Sequence[Task]:
        return [_to_task(d) for d in self._tasks.find(_related_query(related))]

    def create_task(self, fields: Mapping[str, Any]) -> Task:
        doc = stamp_new(_to_doc(fields), now_local())
        res = self._tasks.insert_one(doc)
        doc["_id"] = res.inserted_id
        return _to_task(doc)

    def update_task(self, task_id: str, changes: Mapping[str, Any]) -> Optional[Task]:
        oid = to_object_id(task_id)
        if oid is None:
            return None
        update = _to_doc(changes)
        update["updatedAt"] = now_local()
        doc = self._tasks.find_one_and_update(
            {"_id": oid}, {"$set": update}, return_document=ReturnDocument.AFTER
        )
        return _to_task(doc) if doc else None

    def delete_by_id(self, task_id: str) -> bool:
        oid = to_object_id(task_id)
        if oid is None:
            return False
        return self._tasks.delete_one({"_id": oid}).deleted_count == 1
