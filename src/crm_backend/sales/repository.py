from __future__ import annotations

from datetime import datetime
from typing import Any, Mapping, Optional, Protocol, Sequence

from .model import Sale, SalesStats


class SaleRepository(Protocol):
    """All list queries return newest sale_date first."""

    def get_by_id(self, sale_id: str) -> Optional[Sale]:
        raise NotImplementedError

    def list_all(self) -> Sequence[Sale]:
        raise NotImplementedError

    def list_between(self, start: datetime, end: datetime) -> Sequence[Sale]:
        raise NotImplementedError

    def list_by_salesperson(self, user_id: str) -> Sequence[Sale]:
        raise NotImplementedError

    def list_by_project(self, project_id: str) -> Sequence[Sale]:
        raise NotImplementedError

    def list_by_client(self, client_id: str) -> Sequence[Sale]:
        raise NotImplementedError

    def create_sale(self, fields: Mapping[str, Any]) -> Sale:
        raise NotImplementedError

    def update_sale(self, sale_id: str, changes: Mapping[str, Any]) -> Optional[Sale]:
        raise NotImplementedError

    def summarize(self) -> Optional[SalesStats]:
        """Totals over every sale; None when there are no sales."""
        raise NotImplementedError

    def delete_by_id(self, sale_id: str) -> bool:
        raise NotImplementedError
