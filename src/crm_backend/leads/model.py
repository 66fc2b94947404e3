from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from ..core.enums import LeadSource, LeadStatus

HOT_STATUSES = (LeadStatus.QUALIFIED, LeadStatus.NEGOTIATION)


@dataclass(frozen=True)
class Lead:
    """Domain entity: a sales prospect.

    `client` is set exactly once, when the lead is converted.
    """

    lead_id: str
    name: str
    created_by: str
    company: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    source: LeadSource = LeadSource.WEBSITE
    status: LeadStatus = LeadStatus.NEW
    potential_value: Optional[float] = None
    notes: Optional[str] = None
    client: Optional[str] = None
    assigned_to: Optional[str] = None
    last_contact_date: Optional[datetime] = None
    next_follow_up_date: Optional[datetime] = None
    conversion_date: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def is_hot(self) -> bool:
        return self.status in HOT_STATUSES

    @property
    def is_converted(self) -> bool:
        return self.client is not None


@dataclass(frozen=True)
class LeadStats:
    total_leads: int
    converted_leads: int
    conversion_rate: float
    avg_potential_value: Optional[float]
    status_count: tuple[dict, ...] = field(default_factory=tuple)
    source_count: tuple[dict, ...] = field(default_factory=tuple)
