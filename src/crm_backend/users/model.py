from __future__ import annotations

from dataclasses import asdict, dataclass, field, fields
from datetime import datetime
from typing import Any, Mapping, Optional

from ..core.constants import DEFAULT_PROFILE_PICTURE
from ..core.enums import Role
from ..core.exceptions import ValidationError

_FLAG_TEXT = {"true": True, "false": False}


def _flag(name: str, value: Any) -> bool:
    # Form posts may send flags as "true"/"false" text.
    if isinstance(value, bool):
        return value
    if isinstance(value, str) and value.strip().lower() in _FLAG_TEXT:
        return _FLAG_TEXT[value.strip().lower()]
    raise ValidationError(f"Permission {name} must be true or false")


@dataclass(frozen=True)
class Permissions:
    """Granular feature flags; every flag defaults to off."""

    dashboard: bool = False
    users: bool = False
    tasks: bool = False
    leads: bool = False
    projects: bool = False
    clients: bool = False
    reports: bool = False

    @classmethod
    def from_dict(cls, data: Optional[Mapping[str, Any]]) -> "Permissions":
        known = {f.name for f in fields(cls)}
        return cls(**{k: _flag(k, v) for k, v in (data or {}).items() if k in known})

    def to_dict(self) -> dict[str, bool]:
        return asdict(self)


@dataclass(frozen=True)
class User:
    """Domain entity: an account in the identity store.

    Note: password_hash never leaves the service layer; presenters drop it.
    """

    user_id: str
    name: str
    email: str
    phone: str
    password_hash: str
    role: Role
    permissions: Permissions = field(default_factory=Permissions)
    profile_picture: str = DEFAULT_PROFILE_PICTURE
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
