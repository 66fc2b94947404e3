"""Authorization policy: which roles reach an operation, and who may skip ownership.

ROUTE_ROLES gates an operation by role alone. OWNERSHIP lists the record
fields that identify an owner and the roles that bypass the owner check.
Destructive operations have a narrower bypass set than read/update ones.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Iterable

from ..core.enums import Role
from ..core.exceptions import AuthorizationError


class Resource(str, Enum):
    USER = "user"
    CLIENT = "client"
    PROJECT = "project"
    TASK = "task"
    SALE = "sale"
    LEAD = "lead"
    ATTENDANCE = "attendance"


class Action(str, Enum):
    CREATE = "create"
    LIST = "list"
    READ = "read"
    UPDATE = "update"
    DELETE = "delete"
    UPDATE_STATUS = "update_status"
    ASSIGN = "assign"
    CONVERT = "convert"
    STATS = "stats"
    BULK_UPDATE = "bulk_update"


ADMIN = frozenset({Role.ADMIN})
ADMIN_MANAGER = frozenset({Role.ADMIN, Role.MANAGER})
STAFF = frozenset({Role.ADMIN, Role.MANAGER, Role.EMPLOYEE})
ANY_ROLE = frozenset(Role)


ROUTE_ROLES: dict[tuple[Resource, Action], frozenset[Role]] = {
    (Resource.USER, Action.CREATE): ADMIN,
    (Resource.USER, Action.LIST): ADMIN,
    (Resource.USER, Action.READ): ADMIN,
    (Resource.USER, Action.UPDATE): ADMIN,
    (Resource.USER, Action.DELETE): ADMIN,

    (Resource.CLIENT, Action.CREATE): ADMIN_MANAGER,
    (Resource.CLIENT, Action.LIST): ADMIN_MANAGER,
    (Resource.CLIENT, Action.READ): ADMIN_MANAGER,
    (Resource.CLIENT, Action.UPDATE): ADMIN_MANAGER,
    (Resource.CLIENT, Action.DELETE): ADMIN_MANAGER,

    (Resource.PROJECT, Action.CREATE): ADMIN,
    (Resource.PROJECT, Action.LIST): ADMIN_MANAGER,
    (Resource.PROJECT, Action.READ): ADMIN_MANAGER,
    (Resource.PROJECT, Action.UPDATE): ADMIN,
    (Resource.PROJECT, Action.DELETE): ADMIN,

    (Resource.TASK, Action.CREATE): ADMIN_MANAGER,
    (Resource.TASK, Action.LIST): ADMIN_MANAGER,
    (Resource.TASK, Action.READ): ANY_ROLE,
    (Resource.TASK, Action.UPDATE): ANY_ROLE,
    (Resource.TASK, Action.UPDATE_STATUS): ANY_ROLE,
    (Resource.TASK, Action.DELETE): ADMIN_MANAGER,

    (Resource.SALE, Action.CREATE): STAFF,
    (Resource.SALE, Action.LIST): ADMIN_MANAGER,
    (Resource.SALE, Action.STATS): ADMIN_MANAGER,
    (Resource.SALE, Action.READ): ANY_ROLE,
    (Resource.SALE, Action.UPDATE): STAFF,
    (Resource.SALE, Action.DELETE): ADMIN,

    (Resource.LEAD, Action.CREATE): STAFF,
    (Resource.LEAD, Action.LIST): ADMIN_MANAGER,
    (Resource.LEAD, Action.STATS): ADMIN_MANAGER,
    (Resource.LEAD, Action.READ): ANY_ROLE,
    (Resource.LEAD, Action.UPDATE): STAFF,
    (Resource.LEAD, Action.UPDATE_STATUS): STAFF,
    (Resource.LEAD, Action.ASSIGN): ADMIN_MANAGER,
    (Resource.LEAD, Action.CONVERT): ANY_ROLE,
    (Resource.LEAD, Action.DELETE): ADMIN_MANAGER,

    (Resource.ATTENDANCE, Action.CREATE): ANY_ROLE,
    (Resource.ATTENDANCE, Action.LIST): ADMIN_MANAGER,
    (Resource.ATTENDANCE, Action.STATS): ADMIN_MANAGER,
    (Resource.ATTENDANCE, Action.READ): ANY_ROLE,
    (Resource.ATTENDANCE, Action.UPDATE): ADMIN,
    (Resource.ATTENDANCE, Action.UPDATE_STATUS): ADMIN,
    (Resource.ATTENDANCE, Action.BULK_UPDATE): ADMIN,
    (Resource.ATTENDANCE, Action.DELETE): ADMIN,
}


@dataclass(frozen=True)
class OwnershipRule:
    owner_fields: tuple[str, ...]
    bypass_roles: frozenset[Role]


OWNERSHIP: dict[tuple[Resource, Action], OwnershipRule] = {
    (Resource.TASK, Action.READ): OwnershipRule(("assigned_to", "created_by"), ADMIN_MANAGER),
    (Resource.TASK, Action.UPDATE): OwnershipRule(("created_by",), ADMIN_MANAGER),
    (Resource.TASK, Action.UPDATE_STATUS): OwnershipRule(("assigned_to",), ADMIN_MANAGER),
    (Resource.TASK, Action.DELETE): OwnershipRule(("created_by",), ADMIN),

    (Resource.SALE, Action.READ): OwnershipRule(("salesperson",), ADMIN_MANAGER),
    (Resource.SALE, Action.UPDATE): OwnershipRule(("salesperson",), ADMIN_MANAGER),

    (Resource.LEAD, Action.READ): OwnershipRule(("assigned_to", "created_by"), ADMIN_MANAGER),
    (Resource.LEAD, Action.UPDATE): OwnershipRule(("created_by",), ADMIN_MANAGER),
    (Resource.LEAD, Action.UPDATE_STATUS): OwnershipRule(("assigned_to", "created_by"), ADMIN_MANAGER),
    (Resource.LEAD, Action.CONVERT): OwnershipRule(("created_by",), ADMIN_MANAGER),
    (Resource.LEAD, Action.DELETE): OwnershipRule(("created_by",), ADMIN),
}


def allowed_roles(resource: Resource, action: Action) -> frozenset[Role]:
    try:
        return ROUTE_ROLES[(resource, action)]
    except KeyError:
        raise LookupError(f"No policy for {resource.value}.{action.value}")


def ensure_role(role: Role, allowed: Iterable[Role]) -> None:
    if role not in frozenset(allowed):
        raise AuthorizationError(f"User role {role.value} is not authorized to access this route")


def ensure_owner(user_id: str, role: Role, resource: Resource, action: Action, record: object) -> None:
    """Raise AuthorizationError unless the caller owns `record` or holds a bypass role."""

    rule = OWNERSHIP.get((resource, action))
    if rule is None or role in rule.bypass_roles:
        return
    owners = {getattr(record, f, None) for f in rule.owner_fields}
    if user_id is not None and user_id in owners:
        return
    verb = action.value.replace("_", " ")
    raise AuthorizationError(f"Not authorized to {verb} this {resource.value}")
