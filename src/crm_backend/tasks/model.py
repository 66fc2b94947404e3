from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from ..common.datetime_utils import now_local
from ..core.enums import TaskPriority, TaskStatus
from .related import RelatedEntity


@dataclass(frozen=True)
class Task:
    """Domain entity: a unit of work tied to one related record.

    `completed_at` is set only while status is completed.
    """

    task_id: str
    name: str
    related: RelatedEntity
    description: Optional[str] = None
    due_date: Optional[datetime] = None
    priority: TaskPriority = TaskPriority.MEDIUM
    status: TaskStatus = TaskStatus.NOT_STARTED
    assigned_to: Optional[str] = None
    created_by: Optional[str] = None
    completed_at: Optional[datetime] = None
    reminders: tuple[datetime, ...] = field(default_factory=tuple)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def is_overdue(self) -> bool:
        return (
            self.due_date is not None
            and self.status is not TaskStatus.COMPLETED
            and now_local() > self.due_date
        )


def agenda_key(task: Task) -> tuple:
    # Due date ascending (undated last), then priority descending.
    return (task.due_date is None, task.due_date or datetime.max, -task.priority.rank)
