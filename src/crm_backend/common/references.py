from __future__ import annotations

from typing import Any, Optional

from ..clients.repository import ClientRepository
from ..projects.repository import ProjectRepository
from ..users.repository import UserRepository


class ReferencePopulator:
    """Expand stored ids into small embedded summaries for API responses.

    A dangling id renders as None.
    """

    def __init__(self, users: UserRepository, clients: ClientRepository, projects: ProjectRepository):
        self._users = users
        self._clients = clients
        self._projects = projects

    def user(self, user_id: Optional[str]) -> Optional[dict[str, Any]]:
        user = self._users.get_by_id(user_id) if user_id else None
        if not user:
            return None
        return {"_id": user.user_id, "name": user.name, "email": user.email}

    def client(self, client_id: Optional[str]) -> Optional[dict[str, Any]]:
        client = self._clients.get_by_id(client_id) if client_id else None
        if not client:
            return None
        return {"_id": client.client_id, "name": client.name, "email": client.email}

    def project(self, project_id: Optional[str]) -> Optional[dict[str, Any]]:
        project = self._projects.get_by_id(project_id) if project_id else None
        if not project:
            return None
        return {"_id": project.project_id, "name": project.name, "status": project.status.value}
