from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from ..core.enums import ProjectPriority, ProjectStatus


@dataclass(frozen=True)
class Milestone:
    name: str
    due_date: Optional[datetime] = None
    completed: bool = False
    completed_date: Optional[datetime] = None


@dataclass(frozen=True)
class Project:
    """Domain entity: engagement for one client, run by a manager and a team."""

    project_id: str
    name: str
    client: str
    start_date: datetime
    created_by: str
    end_date: Optional[datetime] = None
    description: Optional[str] = None
    status: ProjectStatus = ProjectStatus.NOT_STARTED
    priority: ProjectPriority = ProjectPriority.MEDIUM
    project_manager: Optional[str] = None
    team_members: tuple[str, ...] = ()
    budget: Optional[float] = None
    expenses: float = 0.0
    milestones: tuple[Milestone, ...] = field(default_factory=tuple)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def involves(self, user_id: str) -> bool:
        return user_id in self.team_members or self.project_manager == user_id
