from __future__ import annotations

from typing import Any, Mapping, Optional, Protocol, Sequence

from .model import Project


class ProjectRepository(Protocol):
    def get_by_id(self, project_id: str) -> Optional[Project]:
        raise NotImplementedError

    def list_all(self) -> Sequence[Project]:
        """Newest first."""

        raise NotImplementedError

    def create_project(self, fields: Mapping[str, Any]) -> Project:
        """`fields` uses Project attribute names (without project_id / timestamps)."""

        raise NotImplementedError

    def update_project(self, project_id: str, changes: Mapping[str, Any]) -> Optional[Project]:
        raise NotImplementedError

    def delete_by_id(self, project_id: str) -> bool:
        raise NotImplementedError
