from __future__ import annotations

from typing import Any, Mapping, Optional, Sequence

from pymongo import ReturnDocument

from ..common.datetime_utils import now_local
from ..database.connection import DatabaseConnection
from ..database.mongo_base import stamp_new, to_object_id
from .model import Client
from .repository import ClientRepository

_FIELDS = ("name", "email", "phone", "address", "description")


def _to_client(doc: Mapping[str, Any]) -> Client:
    return Client(
        client_id=str(doc["_id"]),
        name=doc["name"],
        email=doc.get("email"),
        phone=doc.get("phone"),
        address=doc.get("address"),
        description=doc.get("description"),
        created_at=doc.get("createdAt"),
        updated_at=doc.get("updatedAt"),
    )


class MongoClientRepository(ClientRepository):
    def __init__(self, conn: DatabaseConnection):
        self._clients = conn.db.clients

    def get_by_id(self, client_id: str) -> Optional[Client]:
        oid = to_object_id(client_id)
        if oid is None:
            return None
        doc = self._clients.find_one({"_id": oid})
        return _to_client(doc) if doc else None

    def list_all(self) -> Sequence[Client]:
        return [_to_client(d) for d in self._clients.find().sort("createdAt", -1)]

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
        doc = stamp_new(
            {"name": name, "email": email, "phone": phone, "address": address, "description": description},
            now_local(),
        )
        res = self._clients.insert_one(doc, session=session)
        doc["_id"] = res.inserted_id
        return _to_client(doc)

    def update_client(self, client_id: str, changes: Mapping[str, Any]) -> Optional[Client]:
        oid = to_object_id(client_id)
        if oid is None:
            return None
        update = {k: v for k, v in changes.items() if k in _FIELDS}
        update["updatedAt"] = now_local()
        doc = self._clients.find_one_and_update(
            {"_id": oid}, {"$set": update}, return_document=ReturnDocument.AFTER
        )
        return _to_client(doc) if doc else None

    def delete_by_id(self, client_id: str, *, session: Any = None) -> bool:
        oid = to_object_id(client_id)
        if oid is None:
            return False
        return self._clients.delete_one({"_id": oid}, session=session).deleted_count == 1
