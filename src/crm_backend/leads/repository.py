from __future__ import annotations

from datetime import datetime
from typing import Any, Mapping, Optional, Protocol, Sequence

from .model import Lead


class LeadRepository(Protocol):
    """List queries return newest first (created_at descending)."""

    def get_by_id(self, lead_id: str) -> Optional[Lead]:
        raise NotImplementedError

    def list_all(self) -> Sequence[Lead]:
        raise NotImplementedError

    def list_recent(self, limit: int) -> Sequence[Lead]:
        raise NotImplementedError

    def list_assigned_to(self, user_id: str) -> Sequence[Lead]:
        raise NotImplementedError

    def list_by_status(self, status: str) -> Sequence[Lead]:
        raise NotImplementedError

    def list_by_source(self, source: str) -> Sequence[Lead]:
        raise NotImplementedError

    def create_lead(self, fields: Mapping[str, Any]) -> Lead:
        raise NotImplementedError

    def update_lead(self, lead_id: str, changes: Mapping[str, Any]) -> Optional[Lead]:
        raise NotImplementedError

    def mark_converted(
        self, lead_id: str, client_id: str, converted_at: datetime, *, session: Any = None
    ) -> Optional[Lead]:
        """Link the lead to `client_id` and close it as won.

        Conditional on the lead having no client yet; returns None when that
        condition fails (already converted, or gone).
        """
        raise NotImplementedError

    def delete_by_id(self, lead_id: str) -> bool:
        raise NotImplementedError
