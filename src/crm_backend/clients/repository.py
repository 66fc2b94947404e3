from __future__ import annotations

from typing import Any, Mapping, Optional, Protocol, Sequence

from .model import Client


class ClientRepository(Protocol):
    def get_by_id(self, client_id: str) -> Optional[Client]:
        raise NotImplementedError

    def list_all(self) -> Sequence[Client]:
        raise NotImplementedError

    def create_client(
        self,
        *,
        name: str,
        email: Optional[str] = None,
        phone: Optional[str] = None,
        address: Optional[str] = None,
        description: Optional[str] = None,
        session: Any = None,
    ) -> Client:
        """`session` joins the write to an open store transaction when given."""

        raise NotImplementedError

    def update_client(self, client_id: str, changes: Mapping[str, Any]) -> Optional[Client]:
        raise NotImplementedError

    def delete_by_id(self, client_id: str, *, session: Any = None) -> bool:
        raise NotImplementedError
