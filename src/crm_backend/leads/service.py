from __future__ import annotations

from collections import Counter
from typing import Any, Mapping, Optional, Sequence

from ..auth.policy import Action, Resource, ensure_owner
from ..common.datetime_utils import parse_iso_datetime
from ..common.validators import (
    optional_text,
    require_email,
    require_enum,
    require_max_length,
    require_non_empty,
    require_non_negative,
    require_phone,
    round_currency,
)
from ..core.constants import DEFAULT_RECENT_LEADS
from ..core.enums import LeadSource, LeadStatus
from ..core.exceptions import NotFoundError, ValidationError
from ..users.model import User
from ..users.repository import UserRepository
from .model import Lead, LeadStats
from .repository import LeadRepository

IMMUTABLE_FIELDS = ("created_by", "client", "conversion_date")


class LeadService:
    def __init__(self, leads: LeadRepository, users: UserRepository):
        self._leads = leads
        self._users = users

    def _clean(self, data: Mapping[str, Any]) -> dict[str, Any]:
        out: dict[str, Any] = {}
        if "name" in data:
            out["name"] = require_max_length(require_non_empty(data["name"], "a lead name"), "Name", 100)
        if "company" in data:
            out["company"] = optional_text(data["company"], "Company name", 100)
        if "email" in data:
            out["email"] = require_email(data["email"], required=False)
        if "phone" in data:
            out["phone"] = require_phone(data["phone"])
        if "source" in data:
            out["source"] = require_enum(LeadSource, data["source"] or LeadSource.WEBSITE, "lead source")
        if "status" in data:
            out["status"] = require_enum(LeadStatus, data["status"] or LeadStatus.NEW, "lead status")
        if "potential_value" in data:
            value = data["potential_value"]
            out["potential_value"] = (
                None if value in (None, "") else round_currency(require_non_negative(value, "Potential value"))
            )
        if "notes" in data:
            out["notes"] = optional_text(data["notes"], "Notes", 2000)
        if "assigned_to" in data:
            assignee = data["assigned_to"]
            if assignee and not self._users.get_by_id(str(assignee)):
                raise NotFoundError("Assigned user not found")
            out["assigned_to"] = str(assignee) if assignee else None
        for key in ("last_contact_date", "next_follow_up_date"):
            if key in data:
                out[key] = parse_iso_datetime(data[key], key.replace("_", " "))
        return out

    def create_lead(self, caller: User, data: Mapping[str, Any]) -> Lead:
        fields = self._clean(
            {"name": data.get("name"), **{k: v for k, v in data.items() if k not in IMMUTABLE_FIELDS}}
        )
        fields.setdefault("source", LeadSource.WEBSITE)
        fields.setdefault("status", LeadStatus.NEW)
        fields["created_by"] = caller.user_id
        return self._leads.create_lead(fields)

    def list_leads(self) -> Sequence[Lead]:
        return self._leads.list_all()

    def my_leads(self, caller: User) -> Sequence[Lead]:
        return self._leads.list_assigned_to(caller.user_id)

    def leads_by_status(self, status: str) -> Sequence[Lead]:
        return self._leads.list_by_status(status)

    def leads_by_source(self, source: str) -> Sequence[Lead]:
        return self._leads.list_by_source(source)

    def recent_leads(self, limit: Optional[str] = None) -> Sequence[Lead]:
        try:
            count = int(limit) if limit else DEFAULT_RECENT_LEADS
        except ValueError:
            count = DEFAULT_RECENT_LEADS
        return self._leads.list_recent(count if count > 0 else DEFAULT_RECENT_LEADS)

    def load(self, lead_id: str) -> Lead:
        lead = self._leads.get_by_id(lead_id)
        if not lead:
            raise NotFoundError("Lead not found")
        return lead

    def get_lead(self, caller: User, lead_id: str) -> Lead:
        lead = self.load(lead_id)
        ensure_owner(caller.user_id, caller.role, Resource.LEAD, Action.READ, lead)
        return lead

    def update_lead(self, caller: User, lead_id: str, data: Mapping[str, Any]) -> Lead:
        lead = self.load(lead_id)
        ensure_owner(caller.user_id, caller.role, Resource.LEAD, Action.UPDATE, lead)
        changes = self._clean({k: v for k, v in data.items() if k not in IMMUTABLE_FIELDS})
        return self._save(lead_id, changes)

    def update_status(self, caller: User, lead_id: str, status: Any) -> Lead:
        if not status:
            raise ValidationError("Please provide status")
        new_status = require_enum(LeadStatus, status, "lead status")
        lead = self.load(lead_id)
        ensure_owner(caller.user_id, caller.role, Resource.LEAD, Action.UPDATE_STATUS, lead)
        return self._save(lead_id, {"status": new_status})

    def assign_lead(self, lead_id: str, assignee: Any) -> Lead:
        if not assignee:
            raise ValidationError("Please provide user ID to assign")
        if not self._users.get_by_id(str(assignee)):
            raise NotFoundError("User not found")
        self.load(lead_id)
        return self._save(lead_id, {"assigned_to": str(assignee)})

    def delete_lead(self, caller: User, lead_id: str) -> None:
        lead = self.load(lead_id)
        ensure_owner(caller.user_id, caller.role, Resource.LEAD, Action.DELETE, lead)
        if not self._leads.delete_by_id(lead_id):
            raise NotFoundError("Lead not found")

    def stats(self) -> Optional[LeadStats]:
        leads = self._leads.list_all()
        if not leads:
            return None
        total = len(leads)
        converted = sum(1 for lead in leads if lead.is_converted)
        values = [lead.potential_value for lead in leads if lead.potential_value is not None]
        by_status = Counter(lead.status.value for lead in leads)
        by_source = Counter(lead.source.value for lead in leads)
        return LeadStats(
            total_leads=total,
            converted_leads=converted,
            conversion_rate=round_currency(converted / total * 100),
            avg_potential_value=round_currency(sum(values) / len(values)) if values else None,
            status_count=tuple({"status": k, "count": v} for k, v in by_status.items()),
            source_count=tuple({"source": k, "count": v} for k, v in by_source.items()),
        )

    def _save(self, lead_id: str, changes: Mapping[str, Any]) -> Lead:
        updated = self._leads.update_lead(lead_id, changes)
        if not updated:
            raise NotFoundError("Lead not found")
        return updated
