from __future__ import annotations

import logging
from typing import Optional

from pymongo import ASCENDING, DESCENDING, GEOSPHERE
from pymongo.database import Database
from werkzeug.security import generate_password_hash

from ..common.datetime_utils import now_local
from ..core.constants import DEFAULT_PROFILE_PICTURE
from ..core.enums import Role
from ..users.model import Permissions
from .mongo_base import stamp_new

logger = logging.getLogger(__name__)


def apply_indexes(db: Database) -> None:
    """Create every index the application relies on (idempotent)."""

    db.users.create_index([("email", ASCENDING)], unique=True)
    db.users.create_index([("phone", ASCENDING)], unique=True)

    # One record per user per calendar day; rejects racing duplicate check-ins.
    db.attendance.create_index([("user", ASCENDING), ("workDate", ASCENDING)], unique=True)
    db.attendance.create_index([("status", ASCENDING)])
    db.attendance.create_index([("user", ASCENDING), ("status", ASCENDING)])
    db.attendance.create_index([("location", GEOSPHERE)], sparse=True)

    db.leads.create_index([("status", ASCENDING)])
    db.leads.create_index([("assignedTo", ASCENDING)])
    db.leads.create_index([("source", ASCENDING)])
    db.leads.create_index([("createdAt", DESCENDING)])
    db.leads.create_index([("nextFollowUpDate", ASCENDING)])

    db.tasks.create_index([("status", ASCENDING)])
    db.tasks.create_index([("dueDate", ASCENDING)])
    db.tasks.create_index([("assignedTo", ASCENDING)])
    db.tasks.create_index([("relatedTo", ASCENDING), ("relatedEntity", ASCENDING)])

    db.sales.create_index([("saleDate", DESCENDING)])
    db.sales.create_index([("salesperson", ASCENDING)])


def list_collections(db: Database) -> list[str]:
    return sorted(db.list_collection_names())


def ensure_admin_user(db: Database, *, name: str, email: str, phone: str, password: str) -> Optional[str]:
    """Create the first admin account if no admin exists yet.

    Registration is admin-only, so a fresh deployment needs one seeded admin.
    Returns the new id, or None when an admin is already present.
    """

    if db.users.find_one({"role": Role.ADMIN.value}):
        return None

    doc = stamp_new(
        {
            "name": name,
            "email": email.strip().lower(),
            "phone": phone,
            "password": generate_password_hash(password),
            "role": Role.ADMIN.value,
            "permissions": {k: True for k in Permissions().to_dict()},
            "profilePicture": DEFAULT_PROFILE_PICTURE,
        },
        now_local(),
    )
    res = db.users.insert_one(doc)
    logger.info("Seeded admin account %s", email)
    return str(res.inserted_id)
