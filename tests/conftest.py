from __future__ import annotations

import itertools
from dataclasses import dataclass, replace
from datetime import date, datetime
from typing import Any, Iterable, Mapping, Optional

import pytest
from werkzeug.security import generate_password_hash

from crm_backend.attendance.model import AttendanceRecord, BulkUpdateResult
from crm_backend.clients.model import Client
from crm_backend.container import assemble
from crm_backend.core.enums import LeadStatus, Role
from crm_backend.core.exceptions import ConflictError
from crm_backend.leads.model import Lead
from crm_backend.projects.model import Project
from crm_backend.sales.model import Sale, SalesStats
from crm_backend.tasks.model import Task
from crm_backend.users.model import Permissions, User

_ids = itertools.count(1)


def next_id(prefix: str) -> str:
    return f"{prefix}{next(_ids):04d}"


FIXED_NOW = datetime(2026, 3, 2, 9, 0, 0)


class InMemoryUsers:
    def __init__(self):
        self.items: dict[str, User] = {}

    def get_by_id(self, user_id: str) -> Optional[User]:
        return self.items.get(user_id)

    def get_by_email(self, email: str) -> Optional[User]:
        return next((u for u in self.items.values() if u.email == email), None)

    def get_by_phone(self, phone: str) -> Optional[User]:
        return next((u for u in self.items.values() if u.phone == phone), None)

    def list_all(self):
        return list(self.items.values())

    def create_user(self, *, name, email, phone, password_hash, role, permissions, profile_picture) -> User:
        user = User(
            user_id=next_id("u"),
            name=name,
            email=email,
            phone=phone,
            password_hash=password_hash,
            role=role,
            permissions=permissions,
            profile_picture=profile_picture,
            created_at=FIXED_NOW,
        )
        self.items[user.user_id] = user
        return user

    def update_user(self, user_id: str, changes: Mapping[str, Any]) -> Optional[User]:
        if user_id not in self.items:
            return None
        self.items[user_id] = replace(self.items[user_id], **changes)
        return self.items[user_id]

    def delete_by_id(self, user_id: str) -> bool:
        return self.items.pop(user_id, None) is not None


class InMemoryClients:
    def __init__(self):
        self.items: dict[str, Client] = {}
        self.sessions: list[Any] = []

    def get_by_id(self, client_id: str) -> Optional[Client]:
        return self.items.get(client_id)

    def list_all(self):
        return list(self.items.values())

    def create_client(self, *, name, email=None, phone=None, address=None, description=None, session=None) -> Client:
        self.sessions.append(session)
        client = Client(
            client_id=next_id("c"),
            name=name,
            email=email,
            phone=phone,
            address=address,
            description=description,
            created_at=FIXED_NOW,
        )
        self.items[client.client_id] = client
        return client

    def update_client(self, client_id: str, changes: Mapping[str, Any]) -> Optional[Client]:
        if client_id not in self.items:
            return None
        self.items[client_id] = replace(self.items[client_id], **changes)
        return self.items[client_id]

    def delete_by_id(self, client_id: str, *, session=None) -> bool:
        return self.items.pop(client_id, None) is not None


class _SimpleStore:
    """Dict-backed store for records created from a field mapping."""

    model: type
    key: str
    prefix: str

    def __init__(self):
        self.items: dict[str, Any] = {}

    def get_by_id(self, record_id: str):
        return self.items.get(record_id)

    def list_all(self):
        return list(self.items.values())

    def _create(self, fields: Mapping[str, Any]):
        record = self.model(**{self.key: next_id(self.prefix)}, created_at=FIXED_NOW, **fields)
        self.items[getattr(record, self.key)] = record
        return record

    def _update(self, record_id: str, changes: Mapping[str, Any]):
        if record_id not in self.items:
            return None
        self.items[record_id] = replace(self.items[record_id], **changes)
        return self.items[record_id]

    def delete_by_id(self, record_id: str) -> bool:
        return self.items.pop(record_id, None) is not None


class InMemoryProjects(_SimpleStore):
    model, key, prefix = Project, "project_id", "p"

    def create_project(self, fields):
        return self._create(fields)

    def update_project(self, project_id, changes):
        return self._update(project_id, changes)


class InMemoryTasks(_SimpleStore):
    model, key, prefix = Task, "task_id", "t"

    def list_assigned_to(self, user_id):
        return [t for t in self.items.values() if t.assigned_to == user_id]

    def list_related_to(self, related):
        return [t for t in self.items.values() if t.related == related]

    def create_task(self, fields):
        return self._create(fields)

    def update_task(self, task_id, changes):
        return self._update(task_id, changes)


class InMemorySales(_SimpleStore):
    model, key, prefix = Sale, "sale_id", "s"

    def list_all(self):
        return sorted(self.items.values(), key=lambda s: s.sale_date, reverse=True)

    def list_between(self, start, end):
        return [s for s in self.list_all() if start <= s.sale_date <= end]

    def list_by_salesperson(self, user_id):
        return [s for s in self.list_all() if s.salesperson == user_id]

    def list_by_project(self, project_id):
        return [s for s in self.list_all() if s.project == project_id]

    def list_by_client(self, client_id):
        return [s for s in self.list_all() if s.client == client_id]

    def create_sale(self, fields):
        return self._create(fields)

    def update_sale(self, sale_id, changes):
        return self._update(sale_id, changes)

    def summarize(self) -> Optional[SalesStats]:
        amounts = [s.amount for s in self.items.values()]
        if not amounts:
            return None
        return SalesStats(
            total_sales=sum(amounts),
            avg_sale=sum(amounts) / len(amounts),
            min_sale=min(amounts),
            max_sale=max(amounts),
            count=len(amounts),
        )


class InMemoryLeads(_SimpleStore):
    model, key, prefix = Lead, "lead_id", "l"

    def list_all(self):
        return list(reversed(list(self.items.values())))

    def list_recent(self, limit):
        return self.list_all()[:limit]

    def list_assigned_to(self, user_id):
        return [lead for lead in self.list_all() if lead.assigned_to == user_id]

    def list_by_status(self, status):
        return [lead for lead in self.list_all() if lead.status.value == status]

    def list_by_source(self, source):
        return [lead for lead in self.list_all() if lead.source.value == source]

    def create_lead(self, fields):
        return self._create(fields)

    def update_lead(self, lead_id, changes):
        return self._update(lead_id, changes)

    def mark_converted(self, lead_id, client_id, converted_at, *, session=None):
        lead = self.items.get(lead_id)
        if lead is None or lead.client is not None:
            return None
        return self._update(
            lead_id, {"client": client_id, "status": LeadStatus.CLOSED_WON, "conversion_date": converted_at}
        )


class InMemoryAttendance:
    def __init__(self):
        self.items: dict[str, AttendanceRecord] = {}

    def get_by_id(self, attendance_id: str) -> Optional[AttendanceRecord]:
        return self.items.get(attendance_id)

    def get_for_user_and_date(self, user_id: str, work_date: date) -> Optional[AttendanceRecord]:
        return next((r for r in self.items.values() if r.user == user_id and r.work_date == work_date), None)

    def create_checkin(self, *, user_id, work_date, check_in, status, late_minutes, location=None, ip_address=None, device=None):
        if self.get_for_user_and_date(user_id, work_date):
            raise ConflictError("Already checked in today")
        record = AttendanceRecord(
            attendance_id=next_id("a"),
            user=user_id,
            work_date=work_date,
            check_in=check_in,
            status=status,
            late_minutes=late_minutes,
            location=location,
            ip_address=ip_address,
            device=device,
        )
        self.items[record.attendance_id] = record
        return record

    def update_checkout(self, attendance_id, *, check_out, status):
        record = self.items.get(attendance_id)
        if record is None or record.check_out is not None:
            return None
        changes: dict[str, Any] = {"check_out": check_out}
        if record.status_source.is_automatic:
            changes["status"] = status
        self.items[attendance_id] = replace(record, **changes)
        return self.items[attendance_id]

    def _sorted(self, records: Iterable[AttendanceRecord]):
        return sorted(records, key=lambda r: r.work_date, reverse=True)

    def list_for_user(self, user_id, *, start=None, end=None, limit=0):
        records = [r for r in self.items.values() if r.user == user_id]
        if start and end:
            records = [r for r in records if start <= r.work_date <= end]
        records = self._sorted(records)
        return records[:limit] if limit else records

    def list_filtered(self, *, start=None, end=None, user_id=None, status=None):
        records = list(self.items.values())
        if start and end:
            records = [r for r in records if start <= r.work_date <= end]
        if user_id:
            records = [r for r in records if r.user == user_id]
        if status:
            records = [r for r in records if r.status.value == status]
        return self._sorted(records)

    def update_record(self, attendance_id, changes):
        if attendance_id not in self.items:
            return None
        self.items[attendance_id] = replace(self.items[attendance_id], **changes)
        return self.items[attendance_id]

    def bulk_update(self, work_date, user_ids, changes):
        wanted = set(user_ids)
        matched = [r for r in self.items.values() if r.work_date == work_date and r.user in wanted]
        for r in matched:
            self.items[r.attendance_id] = replace(r, **changes)
        return BulkUpdateResult(matched=len(matched), updated=len(matched))

    def delete_by_id(self, attendance_id: str) -> bool:
        return self.items.pop(attendance_id, None) is not None


class ImmediateTransactions:
    """Runs the work without a session, like a standalone store."""

    def run(self, work):
        return work(None)


class RecordingAvatars:
    def __init__(self):
        self.uploaded: list[str] = []
        self.deleted: list[str] = []

    def upload(self, image) -> str:
        url = f"https://avatars.test/user-profiles/{image.filename}"
        self.uploaded.append(url)
        return url

    def delete(self, url: str) -> None:
        self.deleted.append(url)


@dataclass
class Repos:
    users: InMemoryUsers
    clients: InMemoryClients
    projects: InMemoryProjects
    tasks: InMemoryTasks
    sales: InMemorySales
    leads: InMemoryLeads
    attendance: InMemoryAttendance
    avatars: RecordingAvatars


@pytest.fixture
def repos() -> Repos:
    return Repos(
        users=InMemoryUsers(),
        clients=InMemoryClients(),
        projects=InMemoryProjects(),
        tasks=InMemoryTasks(),
        sales=InMemorySales(),
        leads=InMemoryLeads(),
        attendance=InMemoryAttendance(),
        avatars=RecordingAvatars(),
    )


@pytest.fixture
def container(repos):
    return assemble(
        users_repo=repos.users,
        clients_repo=repos.clients,
        projects_repo=repos.projects,
        tasks_repo=repos.tasks,
        sales_repo=repos.sales,
        leads_repo=repos.leads,
        attendance_repo=repos.attendance,
        transactions=ImmediateTransactions(),
        avatars=repos.avatars,
        secret_key="test-secret",
    )


@pytest.fixture
def make_user(repos):
    def _make(role: Role = Role.EMPLOYEE, *, name: Optional[str] = None, password: str = "secret1") -> User:
        n = next(_ids)
        return repos.users.create_user(
            name=name or f"{role.value.title()} {n}",
            email=f"{role.value}{n}@example.com",
            phone=f"+1555000{n:04d}",
            password_hash=generate_password_hash(password),
            role=role,
            permissions=Permissions(),
            profile_picture="default-profile.jpg",
        )

    return _make


@pytest.fixture
def admin(make_user):
    return make_user(Role.ADMIN)


@pytest.fixture
def manager(make_user):
    return make_user(Role.MANAGER)


@pytest.fixture
def employee(make_user):
    return make_user(Role.EMPLOYEE)


@pytest.fixture
def fixed_now(monkeypatch):
    """Pin now_local() in every module that imported it."""

    def _pin(when: datetime = FIXED_NOW) -> datetime:
        for module in (
            "crm_backend.common.datetime_utils",
            "crm_backend.tasks.service",
            "crm_backend.tasks.model",
            "crm_backend.sales.service",
            "crm_backend.projects.service",
            "crm_backend.leads.conversion",
            "crm_backend.attendance.service",
        ):
            monkeypatch.setattr(f"{module}.now_local", lambda: when)
        return when

    return _pin


@pytest.fixture
def app(container, monkeypatch):
    monkeypatch.setenv("APP_ENV", "testing")
    from crm_backend.main import create_app

    return create_app(container)


@pytest.fixture
def http(app):
    return app.test_client()


@pytest.fixture
def auth_header(container):
    def _header(user: User) -> dict[str, str]:
        return {"Authorization": f"Bearer {container.tokens.issue(user.user_id)}"}

    return _header
