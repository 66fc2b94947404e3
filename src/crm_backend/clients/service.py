from __future__ import annotations

from typing import Any, Mapping, Sequence

from ..common.validators import optional_text, require_email, require_max_length, require_non_empty
from ..core.exceptions import NotFoundError
from .model import Client
from .repository import ClientRepository


def _clean_fields(data: Mapping[str, Any]) -> dict[str, Any]:
    out: dict[str, Any] = {}
    if "name" in data:
        out["name"] = require_max_length(require_non_empty(data["name"], "a client name"), "Name", 50)
    if "email" in data:
        out["email"] = require_email(data["email"], required=False)
    if "phone" in data:
        out["phone"] = optional_text(data["phone"], "Phone", 30)
    if "address" in data:
        out["address"] = optional_text(data["address"], "Address", 200)
    if "description" in data:
        out["description"] = optional_text(data["description"], "Description", 500)
    return out


class ClientService:
    def __init__(self, clients: ClientRepository):
        self._clients = clients

    def add_client(self, data: Mapping[str, Any]) -> Client:
        fields = _clean_fields({"name": data.get("name"), **data})
        return self._clients.create_client(**fields)

    def list_clients(self) -> Sequence[Client]:
        return self._clients.list_all()

    def get_client(self, client_id: str) -> Client:
        client = self._clients.get_by_id(client_id)
        if not client:
            raise NotFoundError("Client not found")
        return client

    def update_client(self, client_id: str, data: Mapping[str, Any]) -> Client:
        updated = self._clients.update_client(client_id, _clean_fields(data))
        if not updated:
            raise NotFoundError("Client not found")
        return updated

    def delete_client(self, client_id: str) -> None:
        if not self._clients.delete_by_id(client_id):
            raise NotFoundError("Client not found")
