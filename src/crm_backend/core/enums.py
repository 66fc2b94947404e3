from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """Account tier used for route-level authorization."""

    ADMIN = "admin"
    MANAGER = "manager"
    EMPLOYEE = "employee"
    CLIENT = "client"


class AttendanceStatus(str, Enum):
    PRESENT = "present"
    ABSENT = "absent"
    LATE = "late"
    HALF_DAY = "half-day"
    ON_LEAVE = "on-leave"
    HOLIDAY = "holiday"


class StatusSource(str, Enum):
    """Who decided an attendance status.

    Only AUTOMATIC -> MANUALLY_OVERRIDDEN is a legal transition; once a human
    has set the status the record never goes back to automatic derivation.
    """

    AUTOMATIC = "automatic"
    MANUALLY_OVERRIDDEN = "manual"

    @property
    def is_automatic(self) -> bool:
        return self is StatusSource.AUTOMATIC


class LeadStatus(str, Enum):
    NEW = "New"
    CONTACTED = "Contacted"
    QUALIFIED = "Qualified"
    PROPOSAL_SENT = "Proposal Sent"
    NEGOTIATION = "Negotiation"
    CLOSED_WON = "Closed Won"
    CLOSED_LOST = "Closed Lost"
    NURTURING = "Nurturing"


class LeadSource(str, Enum):
    WEBSITE = "Website"
    REFERRAL = "Referral"
    SOCIAL_MEDIA = "Social Media"
    EMAIL_CAMPAIGN = "Email Campaign"
    COLD_CALL = "Cold Call"
    TRADE_SHOW = "Trade Show"
    OTHER = "Other"


class ProjectStatus(str, Enum):
    NOT_STARTED = "Not Started"
    IN_PROGRESS = "In Progress"
    ON_HOLD = "On Hold"
    COMPLETED = "Completed"
    CANCELLED = "Cancelled"


class ProjectPriority(str, Enum):
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"
    CRITICAL = "Critical"


class TaskStatus(str, Enum):
    NOT_STARTED = "not started"
    IN_PROGRESS = "in progress"
    COMPLETED = "completed"
    DEFERRED = "deferred"
    CANCELLED = "cancelled"


class TaskPriority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"

    @property
    def rank(self) -> int:
        return list(TaskPriority).index(self)


class RelatedKind(str, Enum):
    """Collections a task may point at through its related entity."""

    PROJECT = "Project"
    LEAD = "Lead"
    CLIENT = "Client"
    SALE = "Sale"
    OTHER = "Other"


class PaymentMethod(str, Enum):
    CREDIT_CARD = "Credit Card"
    BANK_TRANSFER = "Bank Transfer"
    CHECK = "Check"
    CASH = "Cash"
    OTHER = "Other"
