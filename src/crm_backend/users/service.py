from __future__ import annotations

import json
import logging
from typing import Any, Mapping, Optional, Sequence

from werkzeug.security import check_password_hash, generate_password_hash

from ..auth.tokens import TokenCodec
from ..common.validators import (
    USER_PHONE_RE,
    require_email,
    require_enum,
    require_max_length,
    require_min_length,
    require_non_empty,
    require_phone,
    strip_quotes,
)
from ..core.constants import DEFAULT_PROFILE_PICTURE
from ..core.enums import Role
from ..core.exceptions import AuthenticationError, ConflictError, DomainError, NotFoundError, ValidationError
from ..storage.avatar import AvatarStorage, UploadedImage, is_default_picture
from .model import Permissions, User
from .repository import UserRepository

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 6


def _permission_flags(value: Any) -> dict[str, Any]:
    # Multipart forms carry the permissions object as a JSON string.
    if isinstance(value, str):
        try:
            value = json.loads(value) if value.strip() else {}
        except ValueError:
            raise ValidationError("permissions must be a JSON object")
    if value is not None and not isinstance(value, Mapping):
        raise ValidationError("permissions must be an object")
    return dict(value or {})


class AuthService:
    """Use case: authenticate user (login) and issue the bearer credential."""

    def __init__(self, users: UserRepository, tokens: TokenCodec):
        self._users = users
        self._tokens = tokens

    def login(self, email: Optional[str], password: Optional[str]) -> tuple[User, str]:
        if not email or not password:
            raise ValidationError("Please provide email and password")

        clean_email = str(strip_quotes(email)).lower()
        user = self._users.get_by_email(clean_email)
        if not user:
            logger.info("Login failed: no user with email %s", clean_email)
            raise AuthenticationError("Invalid credentials")

        try:
            ok = check_password_hash(user.password_hash, password)
        except (TypeError, ValueError):
            # e.g. placeholder or corrupted hashes
            ok = False

        if not ok:
            logger.info("Login failed: password mismatch for user %s", user.user_id)
            raise AuthenticationError("Invalid credentials")

        return user, self._tokens.issue(user.user_id)


class UserService:
    """Use case: manage users (admin)."""

    def __init__(self, users: UserRepository, avatars: AvatarStorage):
        self._users = users
        self._avatars = avatars

    def get_user(self, user_id: str) -> User:
        user = self._users.get_by_id(user_id)
        if not user:
            raise NotFoundError("User not found")
        return user

    def list_users(self) -> Sequence[User]:
        return self._users.list_all()

    def register(self, data: Mapping[str, Any], *, picture: Optional[UploadedImage] = None) -> User:
        name = require_max_length(require_non_empty(data.get("name"), "a name"), "Name", 50)
        email = require_email(data.get("email"))
        password = require_min_length(data.get("password"), "Password", MIN_PASSWORD_LENGTH)
        phone = require_phone(data.get("phone"), pattern=USER_PHONE_RE, required=True)
        role = require_enum(Role, data.get("role") or Role.EMPLOYEE.value, "role")
        permissions = Permissions.from_dict(_permission_flags(data.get("permissions")))

        if self._users.get_by_email(email):
            raise ConflictError("Duplicate field value entered: email")
        if self._users.get_by_phone(phone):
            raise ConflictError("Duplicate field value entered: phone")

        profile_picture = self._avatars.upload(picture) if picture else DEFAULT_PROFILE_PICTURE

        return self._users.create_user(
            name=name,
            email=email,
            phone=phone,
            password_hash=generate_password_hash(password),
            role=role,
            permissions=permissions,
            profile_picture=profile_picture,
        )

    def update_user(self, user_id: str, data: Mapping[str, Any], *, picture: Optional[UploadedImage] = None) -> User:
        current = self.get_user(user_id)
        changes: dict[str, Any] = {}

        if "name" in data:
            changes["name"] = require_max_length(require_non_empty(data["name"], "a name"), "Name", 50)
        if "email" in data:
            changes["email"] = require_email(data["email"])
            other = self._users.get_by_email(changes["email"])
            if other and other.user_id != user_id:
                raise ConflictError("Duplicate field value entered: email")
        if "phone" in data:
            changes["phone"] = require_phone(data["phone"], pattern=USER_PHONE_RE, required=True)
            other = self._users.get_by_phone(changes["phone"])
            if other and other.user_id != user_id:
                raise ConflictError("Duplicate field value entered: phone")
        if "role" in data:
            changes["role"] = require_enum(Role, data["role"], "role")
        if "permissions" in data:
            merged = {**current.permissions.to_dict(), **_permission_flags(data["permissions"])}
            changes["permissions"] = Permissions.from_dict(merged)
        if data.get("password"):
            password = require_min_length(data["password"], "Password", MIN_PASSWORD_LENGTH)
            changes["password_hash"] = generate_password_hash(password)

        if picture:
            changes["profile_picture"] = self._avatars.upload(picture)

        try:
            updated = self._users.update_user(user_id, changes)
        except Exception:
            if picture:
                self._discard_picture(changes["profile_picture"])
            raise
        if not updated:
            if picture:
                self._discard_picture(changes["profile_picture"])
            raise NotFoundError("User not found")

        if picture:
            self._discard_picture(current.profile_picture)
        return updated

    def delete_user(self, user_id: str) -> None:
        """Delete the account; other records keep their now-dangling references."""

        user = self.get_user(user_id)
        self._discard_picture(user.profile_picture)
        if not self._users.delete_by_id(user_id):
            raise NotFoundError("User not found")

    def _discard_picture(self, url: Optional[str]) -> None:
        if is_default_picture(url):
            return
        try:
            self._avatars.delete(url)
        except DomainError as e:
            logger.warning("Failed to delete profile picture %s: %s", url, e)
