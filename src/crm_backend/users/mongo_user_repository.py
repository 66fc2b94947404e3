from __future__ import annotations

from typing import Any, Mapping, Optional, Sequence

from pymongo import ReturnDocument
from pymongo.errors import DuplicateKeyError

from ..common.datetime_utils import now_local
from ..core.constants import DEFAULT_PROFILE_PICTURE
from ..core.enums import Role
from ..core.exceptions import ConflictError
from ..database.connection import DatabaseConnection
from ..database.mongo_base import stamp_new, to_object_id
from .model import Permissions, User
from .repository import UserRepository

_FIELD_MAP = {
    "name": "name",
    "email": "email",
    "phone": "phone",
    "password_hash": "password",
    "role": "role",
    "permissions": "permissions",
    "profile_picture": "profilePicture",
}


def _to_user(doc: Mapping[str, Any]) -> User:
    return User(
        user_id=str(doc["_id"]),
        name=doc["name"],
        email=doc["email"],
        phone=doc.get("phone", ""),
        password_hash=doc.get("password", ""),
        role=Role(doc.get("role", Role.EMPLOYEE.value)),
        permissions=Permissions.from_dict(doc.get("permissions")),
        profile_picture=doc.get("profilePicture") or DEFAULT_PROFILE_PICTURE,
        created_at=doc.get("createdAt"),
        updated_at=doc.get("updatedAt"),
    )


def _to_mongo_value(key: str, value: Any) -> Any:
    if key == "role":
        return Role(value).value
    if key == "permissions":
        return value.to_dict() if isinstance(value, Permissions) else dict(value)
    return value


def _duplicate_message(err: DuplicateKeyError) -> str:
    key = (err.details or {}).get("keyValue") or {}
    field = next(iter(key), "value")
    return f"Duplicate field value entered: {field}"


class MongoUserRepository(UserRepository):
    def __init__(self, conn: DatabaseConnection):
        self._users = conn.db.users

    def get_by_id(self, user_id: str) -> Optional[User]:
        oid = to_object_id(user_id)
        if oid is None:
            return None
        doc = self._users.find_one({"_id": oid})
        return _to_user(doc) if doc else None

    def get_by_email(self, email: str) -> Optional[User]:
        doc = self._users.find_one({"email": email})
        return _to_user(doc) if doc else None

    def get_by_phone(self, phone: str) -> Optional[User]:
        doc = self._users.find_one({"phone": phone})
        return _to_user(doc) if doc else None

    def list_all(self) -> Sequence[User]:
        return [_to_user(d) for d in self._users.find().sort("createdAt", -1)]

    def create_user(
        self,
        *,
        name: str,
        email: str,
        phone: str,
        password_hash: str,
        role: Role,
        permissions: Permissions,
        profile_picture: str,
    ) -> User:
        doc = stamp_new(
            {
                "name": name,
                "email": email,
                "phone": phone,
                "password": password_hash,
                "role": role.value,
                "permissions": permissions.to_dict(),
                "profilePicture": profile_picture,
            },
            now_local(),
        )
        try:
            res = self._users.insert_one(doc)
        except DuplicateKeyError as e:
            raise ConflictError(_duplicate_message(e))
        doc["_id"] = res.inserted_id
        return _to_user(doc)

    def update_user(self, user_id: str, changes: Mapping[str, Any]) -> Optional[User]:
        oid = to_object_id(user_id)
        if oid is None:
            return None
        update = {_FIELD_MAP[k]: _to_mongo_value(k, v) for k, v in changes.items() if k in _FIELD_MAP}
        update["updatedAt"] = now_local()
        try:
            doc = self._users.find_one_and_update(
                {"_id": oid},
                {"$set": update},
                return_document=ReturnDocument.AFTER,
            )
        except DuplicateKeyError as e:
            raise ConflictError(_duplicate_message(e))
        return _to_user(doc) if doc else None

    def delete_by_id(self, user_id: str) -> bool:
        oid = to_object_id(user_id)
        if oid is None:
            return False
        return self._users.delete_one({"_id": oid}).deleted_count == 1
