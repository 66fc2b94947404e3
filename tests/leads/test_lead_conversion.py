from datetime import datetime

import pytest

from crm_backend.core.enums import LeadStatus
from crm_backend.core.exceptions import AuthorizationError, ConflictError, NotFoundError
from crm_backend.leads.conversion import LeadConversionService, conversion_note


class LosingRaceLeads:
    """Wraps a lead store whose conditional update always loses to a concurrent converter."""

    def __init__(self, inner):
        self._inner = inner

    def __getattr__(self, name):
        return getattr(self._inner, name)

    def mark_converted(self, lead_id, client_id, converted_at, *, session=None):
        return None


class SessionTransactions:
    def __init__(self, session=None):
        self.session = session

    def run(self, work):
        return work(self.session)


@pytest.fixture
def lead(repos, employee):
    return repos.leads.create_lead(
        {"name": "Globex", "email": "buyer@globex.test", "phone": "+1 555 0100", "created_by": employee.user_id}
    )


def test_convert_creates_client_and_closes_lead(container, repos, employee, lead, fixed_now):
    when = fixed_now(datetime(2026, 3, 2, 15, 0, 0))

    result = container.conversion_service.convert(employee, lead.lead_id)

    assert result.client.name == "Globex"
    assert result.client.email == "buyer@globex.test"
    assert result.client.phone == "+1 555 0100"
    assert result.client.description == "Converted from lead on 3/2/2026"
    assert result.lead.client == result.client.client_id
    assert result.lead.status == LeadStatus.CLOSED_WON
    assert result.lead.conversion_date == when
    assert list(repos.clients.items) == [result.client.client_id]


def test_second_conversion_conflicts_without_new_client(container, repos, employee, lead):
    container.conversion_service.convert(employee, lead.lead_id)

    with pytest.raises(ConflictError, match="Lead already converted to client"):
        container.conversion_service.convert(employee, lead.lead_id)

    assert len(repos.clients.items) == 1


def test_lost_race_removes_created_client(repos, employee, lead):
    service = LeadConversionService(LosingRaceLeads(repos.leads), repos.clients, SessionTransactions())

    with pytest.raises(ConflictError):
        service.convert(employee, lead.lead_id)

    assert repos.clients.items == {}


def test_lost_race_inside_transaction_leaves_rollback_to_store(repos, employee, lead):
    transactions = SessionTransactions(object())
    service = LeadConversionService(LosingRaceLeads(repos.leads), repos.clients, transactions)

    with pytest.raises(ConflictError):
        service.convert(employee, lead.lead_id)

    assert repos.clients.sessions == [transactions.session]
    assert len(repos.clients.items) == 1


def test_convert_requires_creator_or_manager(container, make_user, manager, lead):
    stranger = make_user()

    with pytest.raises(AuthorizationError):
        container.conversion_service.convert(stranger, lead.lead_id)

    result = container.conversion_service.convert(manager, lead.lead_id)
    assert result.lead.is_converted


def test_convert_unknown_lead(container, employee):
    with pytest.raises(NotFoundError, match="Lead not found"):
        container.conversion_service.convert(employee, "missing")


def test_conversion_note_has_no_zero_padding():
    assert conversion_note(datetime(2026, 1, 5, 8, 0, 0)) == "Converted from lead on 1/5/2026"
