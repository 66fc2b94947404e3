import pytest

from crm_backend.core.enums import LeadSource, LeadStatus
from crm_backend.core.exceptions import AuthorizationError, NotFoundError, ValidationError


def _lead(container, caller, **extra):
    return container.lead_service.create_lead(caller, {"name": "Initech", **extra})


def test_create_lead_defaults_and_owner(container, employee):
    lead = _lead(container, employee, potential_value="1250.555")

    assert lead.source == LeadSource.WEBSITE
    assert lead.status == LeadStatus.NEW
    assert lead.created_by == employee.user_id
    assert lead.potential_value == 1250.56
    assert lead.client is None


def test_create_lead_ignores_client_and_conversion_fields(container, employee):
    lead = _lead(container, employee, client="c1", conversion_date="2026-01-01")

    assert lead.client is None
    assert lead.conversion_date is None


def test_create_lead_validates_name_and_email(container, employee):
    with pytest.raises(ValidationError, match="Please provide a lead name"):
        container.lead_service.create_lead(employee, {})
    with pytest.raises(ValidationError, match="valid email"):
        _lead(container, employee, email="not-an-email")


def test_hot_flag_follows_status(container, employee):
    lead = _lead(container, employee, status="Qualified")
    assert lead.is_hot

    lead = container.lead_service.update_status(employee, lead.lead_id, "Proposal Sent")
    assert not lead.is_hot


def test_update_status_requires_value(container, employee):
    lead = _lead(container, employee)

    with pytest.raises(ValidationError, match="Please provide status"):
        container.lead_service.update_status(employee, lead.lead_id, "")


def test_assignee_may_read_and_move_status_but_not_edit(container, manager, employee):
    lead = _lead(container, manager)
    container.lead_service.assign_lead(lead.lead_id, employee.user_id)

    assert container.lead_service.get_lead(employee, lead.lead_id).assigned_to == employee.user_id
    assert container.lead_service.update_status(employee, lead.lead_id, "Contacted").status == LeadStatus.CONTACTED
    with pytest.raises(AuthorizationError):
        container.lead_service.update_lead(employee, lead.lead_id, {"notes": "mine now"})


def test_stranger_cannot_read_lead(container, make_user, employee):
    lead = _lead(container, employee)

    with pytest.raises(AuthorizationError):
        container.lead_service.get_lead(make_user(), lead.lead_id)


def test_assign_lead_checks_user(container, manager):
    lead = _lead(container, manager)

    with pytest.raises(ValidationError, match="Please provide user ID to assign"):
        container.lead_service.assign_lead(lead.lead_id, None)
    with pytest.raises(NotFoundError, match="User not found"):
        container.lead_service.assign_lead(lead.lead_id, "nobody")


def test_delete_is_creator_or_admin_only(container, admin, manager, employee):
    lead = _lead(container, employee)

    with pytest.raises(AuthorizationError):
        container.lead_service.delete_lead(manager, lead.lead_id)

    container.lead_service.delete_lead(admin, lead.lead_id)
    with pytest.raises(NotFoundError):
        container.lead_service.load(lead.lead_id)


def test_recent_leads_defaults_to_five(container, employee):
    for i in range(7):
        _lead(container, employee, notes=f"#{i}")

    assert len(container.lead_service.recent_leads()) == 5
    assert len(container.lead_service.recent_leads("abc")) == 5
    assert len(container.lead_service.recent_leads("2")) == 2


def test_filters_by_status_and_source(container, employee):
    _lead(container, employee, source="Referral")
    _lead(container, employee, status="Qualified")

    assert len(container.lead_service.leads_by_source("Referral")) == 1
    assert len(container.lead_service.leads_by_status("Qualified")) == 1
    assert container.lead_service.leads_by_status("Bogus") == []


def test_stats_overview(container, employee):
    a = _lead(container, employee, potential_value=100)
    _lead(container, employee, potential_value=300, source="Referral")
    _lead(container, employee)
    container.conversion_service.convert(employee, a.lead_id)

    stats = container.lead_service.stats()

    assert stats.total_leads == 3
    assert stats.converted_leads == 1
    assert stats.conversion_rate == 33.33
    assert stats.avg_potential_value == 200.0
    assert {"status": "Closed Won", "count": 1} in stats.status_count
    assert {"source": "Website", "count": 2} in stats.source_count


def test_stats_empty_is_none(container):
    assert container.lead_service.stats() is None
