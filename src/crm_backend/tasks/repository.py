from __future__ import annotations

from typing import Any, Mapping, Optional, Protocol, Sequence

from .model import Task
from .related import RelatedEntity


class TaskRepository(Protocol):
    def get_by_id(self, task_id: str) -> Optional[Task]:
        raise NotImplementedError

    def list_all(self) -> Sequence[Task]:
        raise NotImplementedError

    def list_assigned_to(self, user_id: str) -> Sequence[Task]:
        raise NotImplementedError

    def list_related_to(self, related: RelatedEntity) -> Sequence[Task]:
        raise NotImplementedError

    def create_task(self, fields: Mapping[str, Any]) -> Task:
        raise NotImplementedError

    def update_task(self, task_id: str, changes: Mapping[str, Any]) -> Optional[Task]:
        raise NotImplementedError

    def delete_by_id(self, task_id: str) -> bool:
        raise NotImplementedError
