from __future__ import annotations

from typing import Any, Mapping, Optional, Protocol, Sequence

from ..core.enums import Role
from .model import Permissions, User


class UserRepository(Protocol):
    """Repository interface for User.

    Note (DIP): the service layer depends on this interface, not on MongoDB.
    """

    def get_by_id(self, user_id: str) -> Optional[User]:
        raise NotImplementedError

    def get_by_email(self, email: str) -> Optional[User]:
        raise NotImplementedError

    def get_by_phone(self, phone: str) -> Optional[User]:
        raise NotImplementedError

    def list_all(self) -> Sequence[User]:
        raise NotImplementedError

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
        raise NotImplementedError

    def update_user(self, user_id: str, changes: Mapping[str, Any]) -> Optional[User]:
        """Apply field changes (model field names) and return the updated user."""

        raise NotImplementedError

    def delete_by_id(self, user_id: str) -> bool:
        raise NotImplementedError
