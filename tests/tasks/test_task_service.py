from datetime import datetime, timedelta

import pytest

from crm_backend.core.enums import RelatedKind, TaskPriority, TaskStatus
from crm_backend.core.exceptions import AuthorizationError, NotFoundError, ValidationError
from crm_backend.tasks.related import RelatedEntity, RelatedEntityRegistry


@pytest.fixture
def project(repos, admin):
    client = repos.clients.create_client(name="Acme")
    return repos.projects.create_project(
        {"name": "Rollout", "client": client.client_id, "start_date": datetime(2026, 1, 1), "created_by": admin.user_id}
    )


@pytest.fixture
def now(fixed_now):
    return fixed_now()


def _task(container, caller, project, **extra):
    data = {"name": "Call back", "related_to": "Project", "related_entity": project.project_id, **extra}
    return container.task_service.create_task(caller, data)


def test_create_task_defaults(container, manager, project, now):
    task = _task(container, manager, project)

    assert task.status == TaskStatus.NOT_STARTED
    assert task.priority == TaskPriority.MEDIUM
    assert task.created_by == manager.user_id
    assert task.related == RelatedEntity(RelatedKind.PROJECT, project.project_id)
    assert task.completed_at is None


def test_create_task_checks_related_entity(container, manager, project, now):
    with pytest.raises(ValidationError, match="Invalid related entity type"):
        _task(container, manager, project, related_to="Invoice")
    with pytest.raises(NotFoundError, match="Lead not found"):
        _task(container, manager, project, related_to="Lead", related_entity="missing")

    other = _task(container, manager, project, related_to="Other", related_entity="free text")
    assert other.related.kind == RelatedKind.OTHER


def test_due_date_must_be_in_future_at_creation(container, manager, project, now):
    with pytest.raises(ValidationError, match="Due date must be in the future"):
        _task(container, manager, project, due_date=(now - timedelta(days=1)).isoformat())

    task = _task(container, manager, project, due_date=(now + timedelta(days=1)).isoformat())
    assert task.due_date == now + timedelta(days=1)


def test_reminders_must_be_in_future(container, manager, project, now):
    with pytest.raises(ValidationError, match="Reminder must be in the future"):
        _task(container, manager, project, reminders=[(now - timedelta(hours=1)).isoformat()])


def test_unknown_assignee_rejected(container, manager, project, now):
    with pytest.raises(NotFoundError, match="Assigned user not found"):
        _task(container, manager, project, assigned_to="ghost")


def test_completed_at_follows_status(container, manager, employee, project, now, fixed_now):
    task = _task(container, manager, project, assigned_to=employee.user_id)

    done = container.task_service.update_status(employee, task.task_id, "completed")
    assert done.completed_at == now

    fixed_now(now + timedelta(hours=2))
    again = container.task_service.update_status(employee, task.task_id, "completed")
    assert again.completed_at == now

    reopened = container.task_service.update_status(employee, task.task_id, "in progress")
    assert reopened.completed_at is None


def test_created_completed_stamps_immediately(container, manager, project, now):
    task = _task(container, manager, project, status="completed")

    assert task.completed_at == now


def test_update_status_is_assignee_only_for_staff(container, manager, employee, make_user, project, now):
    task = _task(container, manager, project, assigned_to=employee.user_id)

    with pytest.raises(AuthorizationError):
        container.task_service.update_status(make_user(), task.task_id, "completed")
    with pytest.raises(ValidationError, match="Please provide status"):
        container.task_service.update_status(employee, task.task_id, None)


def test_assignee_reads_but_cannot_edit(container, manager, employee, project, now):
    task = _task(container, manager, project, assigned_to=employee.user_id)

    assert container.task_service.get_task(employee, task.task_id).task_id == task.task_id
    with pytest.raises(AuthorizationError):
        container.task_service.update_task(employee, task.task_id, {"name": "Renamed"})


def test_update_keeps_related_and_creator(container, manager, admin, project, now):
    task = _task(container, manager, project)

    updated = container.task_service.update_task(
        admin, task.task_id, {"name": "Renamed", "created_by": admin.user_id, "related_to": "Other"}
    )

    assert updated.name == "Renamed"
    assert updated.created_by == manager.user_id
    assert updated.related.kind == RelatedKind.PROJECT


def test_delete_is_creator_or_admin(container, manager, make_user, project, now):
    other_manager = make_user(manager.role)
    task = _task(container, manager, project)

    with pytest.raises(AuthorizationError):
        container.task_service.delete_task(other_manager, task.task_id)
    container.task_service.delete_task(manager, task.task_id)
    with pytest.raises(NotFoundError, match="Task not found"):
        container.task_service.get_task(manager, task.task_id)


def test_agenda_order(container, manager, employee, project, now):
    later = _task(container, manager, project, name="later", due_date=(now + timedelta(days=3)).isoformat())
    soon_low = _task(
        container, manager, project, name="soon low", priority="low", due_date=(now + timedelta(days=1)).isoformat()
    )
    soon_urgent = _task(
        container, manager, project, name="soon urgent", priority="urgent", due_date=(now + timedelta(days=1)).isoformat()
    )
    undated = _task(container, manager, project, name="undated", priority="urgent")

    ordered = [t.name for t in container.task_service.list_tasks()]

    assert ordered == [soon_urgent.name, soon_low.name, later.name, undated.name]


def test_overdue_flag(container, manager, project, now, fixed_now):
    task = _task(container, manager, project, due_date=(now + timedelta(hours=1)).isoformat())
    assert not task.is_overdue

    fixed_now(now + timedelta(hours=2))
    assert task.is_overdue


def test_project_tasks_visible_to_team_only(container, manager, employee, make_user, repos, project, now):
    _task(container, manager, project)
    repos.projects.update_project(project.project_id, {"team_members": (employee.user_id,)})

    assert len(container.task_service.tasks_for_project(employee, project.project_id)) == 1
    assert len(container.task_service.tasks_for_project(manager, project.project_id)) == 1
    with pytest.raises(AuthorizationError, match="Not authorized to access tasks for this project"):
        container.task_service.tasks_for_project(make_user(), project.project_id)
    with pytest.raises(NotFoundError, match="Project not found"):
        container.task_service.tasks_for_project(manager, "missing")


def test_my_tasks_lists_assigned(container, manager, employee, project, now):
    _task(container, manager, project, assigned_to=employee.user_id)
    _task(container, manager, project)

    assert len(container.task_service.my_tasks(employee)) == 1


def test_registry_accepts_new_kinds():
    registry = RelatedEntityRegistry()

    with pytest.raises(ValidationError):
        registry.ensure_exists(RelatedEntity(RelatedKind.SALE, "s1"))

    registry.register(RelatedKind.SALE, {"s1": object()}.get)
    registry.ensure_exists(RelatedEntity(RelatedKind.SALE, "s1"))
