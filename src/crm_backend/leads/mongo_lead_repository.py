from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any, Mapping, Optional, Sequence

from pymongo import DESCENDING, ReturnDocument

from ..common.datetime_utils import now_local
from ..core.enums import LeadSource, LeadStatus
from ..database.connection import DatabaseConnection
from ..database.mongo_base import id_str, stamp_new, to_object_id
from .model import Lead
from .repository import LeadRepository

_FIELD_MAP = {
    "name": "name",
    "company": "company",
    "email": "email",
    "phone": "phone",
    "source": "source",
    "status": "status",
    "potential_value": "potentialValue",
    "notes": "notes",
    "client": "client",
    "assigned_to": "assignedTo",
    "created_by": "createdBy",
    "last_contact_date": "lastContactDate",
    "next_follow_up_date": "nextFollowUpDate",
    "conversion_date": "conversionDate",
}
_REFERENCES = ("client", "assigned_to", "created_by")


def _to_lead(doc: Mapping[str, Any]) -> Lead:
    return Lead(
        lead_id=str(doc["_id"]),
        name=doc["name"],
        created_by=id_str(doc.get("createdBy")),
        company=doc.get("company"),
        email=doc.get("email"),
        phone=doc.get("phone"),
        source=LeadSource(doc.get("source", LeadSource.WEBSITE.value)),
        status=LeadStatus(doc.get("status", LeadStatus.NEW.value)),
        potential_value=doc.get("potentialValue"),
        notes=doc.get("notes"),
        client=id_str(doc.get("client")),
        assigned_to=id_str(doc.get("assignedTo")),
        last_contact_date=doc.get("lastContactDate"),
        next_follow_up_date=doc.get("nextFollowUpDate"),
        conversion_date=doc.get("conversionDate"),
        created_at=doc.get("createdAt"),
        updated_at=doc.get("updatedAt"),
    )


def _to_doc(fields: Mapping[str, Any]) -> dict[str, Any]:
    out: dict[str, Any] = {}
    for k, v in fields.items():
        if k not in _FIELD_MAP:
            continue
        if k in _REFERENCES:
            v = to_object_id(v)
        elif isinstance(v, Enum):
            v = v.value
        out[_FIELD_MAP[k]] = v
    return out


class MongoLeadRepository(LeadRepository):
    def __init__(self, conn: DatabaseConnection):
        self._leads = conn.db.leads

    def _find(self, query: Mapping[str, Any], limit: int = 0) -> Sequence[Lead]:
        cursor = self._leads.find(query).sort("createdAt", DESCENDING)
        if limit:
            cursor = cursor.limit(limit)
        return [_to_lead(d) for d in cursor]

    def get_by_id(self, lead_id: str) -> Optional[Lead]:
        oid = to_object_id(lead_id)
        if oid is None:
            return None
        doc = self._leads.find_one({"_id": oid})
        return _to_lead(doc) if doc else None

    def list_all(self) -> Sequence[Lead]:
        return self._find({})

    def list_recent(self, limit: int) -> Sequence[Lead]:
        return self._find({}, limit)

    def list_assigned_to(self, user_id: str) -> Sequence[Lead]:
        return self._find({"assignedTo": to_object_id(user_id)})

    def list_by_status(self, status: str) -> Sequence[Lead]:
        return self._find({"status": status})

    def list_by_source(self, source: str) -> Sequence[Lead]:
        return self._find({"source": source})

    def create_lead(self, fields: Mapping[str, Any]) -> Lead:
        doc = stamp_new(_to_doc(fields), now_local())
        res = self._leads.insert_one(doc)
        doc["_id"] = res.inserted_id
        return _to_lead(doc)

    def update_lead(self, lead_id: str, changes: Mapping[str, Any]) -> Optional[Lead]:
        oid = to_object_id(lead_id)
        if oid is None:
            return None
        update = _to_doc(changes)
        update["updatedAt"] = now_local()
        doc = self._leads.find_one_and_update(
            {"_id": oid}, {"$set": update}, return_document=ReturnDocument.AFTER
        )
        return _to_lead(doc) if doc else None

    def mark_converted(
        self, lead_id: str, client_id: str, converted_at: datetime, *, session: Any = None
    ) -> Optional[Lead]:
        oid = to_object_id(lead_id)
        if oid is None:
            return None
        doc = self._leads.find_one_and_update(
            {"_id": oid, "client": None},
            {
                "$set": {
                    "client": to_object_id(client_id),
                    "status": LeadStatus.CLOSED_WON.value,
                    "conversionDate": converted_at,
                    "updatedAt": converted_at,
                }
            },
            return_document=ReturnDocument.AFTER,
            session=session,
        )
        return _to_lead(doc) if doc else None

    def delete_by_id(self, lead_id: str) -> bool:
        oid = to_object_id(lead_id)
        if oid is None:
            return False
        return self._leads.delete_one({"_id": oid}).deleted_count == 1
