from __future__ import annotations

from datetime import date, datetime, time
from typing import Any, Iterable, Optional

from bson import ObjectId
from bson.errors import InvalidId


def to_object_id(value: Any) -> Optional[ObjectId]:
    """Convert an API id to ObjectId; None when it cannot be one.

    Callers treat None as "no such document", so a malformed id behaves like an
    unknown id (404) instead of a server error.
    """

    if value is None:
        return None
    if isinstance(value, ObjectId):
        return value
    try:
        return ObjectId(str(value))
    except (InvalidId, TypeError):
        return None


def to_object_ids(values: Iterable[Any]) -> list[ObjectId]:
    return [oid for oid in (to_object_id(v) for v in values) if oid is not None]


def id_str(value: Any) -> Optional[str]:
    if value is None:
        return None
    return str(value)


def date_to_mongo(value: Optional[date]) -> Optional[datetime]:
    # BSON has no date-only type.
    if value is None:
        return None
    if isinstance(value, datetime):
        return value
    return datetime.combine(value, time.min)


def mongo_to_date(value: Any) -> Optional[date]:
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    return value


def stamp_new(doc: dict[str, Any], now: datetime) -> dict[str, Any]:
    doc["createdAt"] = now
    doc["updatedAt"] = now
    return doc
