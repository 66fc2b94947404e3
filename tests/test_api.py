from datetime import datetime

import pytest

from crm_backend.core.constants import API_PREFIX
from crm_backend.core.enums import Role


def test_health(http):
    res = http.get("/health")

    assert res.status_code == 200
    assert res.get_json() == {"success": True, "message": "OK"}


def test_cors_allows_configured_origin_with_credentials(container, monkeypatch):
    monkeypatch.setenv("APP_ENV", "testing")
    monkeypatch.setattr("config.testing.CORS_ORIGINS", "https://app.example.test, ")
    from crm_backend.main import create_app

    http = create_app(container).test_client()

    allowed = http.get("/health", headers={"Origin": "https://app.example.test"})
    assert allowed.headers["Access-Control-Allow-Origin"] == "https://app.example.test"
    assert allowed.headers["Access-Control-Allow-Credentials"] == "true"

    other = http.get("/health", headers={"Origin": "https://evil.example.test"})
    assert "Access-Control-Allow-Origin" not in other.headers


def test_cors_is_off_without_origins(http):
    res = http.get("/health", headers={"Origin": "https://app.example.test"})

    assert "Access-Control-Allow-Origin" not in res.headers


def test_login_sets_http_only_cookie(http, make_user):
    user = make_user(password="secret1")

    res = http.post(f"{API_PREFIX}/users/login", json={"email": user.email, "password": "secret1"})

    assert res.status_code == 200
    body = res.get_json()
    assert body["success"] is True
    assert body["data"]["user"]["_id"] == user.user_id
    assert "passwordHash" not in body["data"]["user"]
    cookie = res.headers["Set-Cookie"]
    assert cookie.startswith("token=")
    assert "HttpOnly" in cookie
    assert "SameSite=Strict" in cookie


def test_login_failure_envelope(http):
    res = http.post(f"{API_PREFIX}/users/login", json={"email": "no@example.com", "password": "x"})

    assert res.status_code == 401
    assert res.get_json() == {"success": False, "message": "Invalid credentials"}


def test_me_requires_credential(http):
    res = http.get(f"{API_PREFIX}/users/me")

    assert res.status_code == 401
    assert res.get_json()["message"] == "Not authorized to access this route"


def test_me_with_bearer_header(http, auth_header, employee):
    res = http.get(f"{API_PREFIX}/users/me", headers=auth_header(employee))

    assert res.status_code == 200
    assert res.get_json()["data"]["email"] == employee.email


def test_token_for_deleted_user_is_rejected(http, auth_header, repos, employee):
    headers = auth_header(employee)
    repos.users.delete_by_id(employee.user_id)

    assert http.get(f"{API_PREFIX}/users/me", headers=headers).status_code == 401


def test_logout_overwrites_cookie(http, auth_header, employee):
    res = http.get(f"{API_PREFIX}/users/logout", headers=auth_header(employee))

    assert res.status_code == 200
    assert res.headers["Set-Cookie"].startswith("token=none")


def test_role_gate_returns_403(http, auth_header, employee):
    res = http.get(f"{API_PREFIX}/users", headers=auth_header(employee))

    assert res.status_code == 403
    assert res.get_json()["message"] == "User role employee is not authorized to access this route"


def test_admin_lists_users_with_count(http, auth_header, admin, employee):
    res = http.get(f"{API_PREFIX}/users", headers=auth_header(admin))

    body = res.get_json()
    assert res.status_code == 200
    assert body["count"] == 2
    assert all("passwordHash" not in u for u in body["data"])


def test_unknown_record_is_404(http, auth_header, admin):
    res = http.get(f"{API_PREFIX}/clients/missing", headers=auth_header(admin))

    assert res.status_code == 404
    assert res.get_json() == {"success": False, "message": "Client not found"}


def test_unknown_route_uses_envelope(http):
    res = http.get("/nope")

    assert res.status_code == 404
    assert res.get_json()["success"] is False


def test_client_role_cannot_create_lead(http, auth_header, make_user):
    res = http.post(f"{API_PREFIX}/leads", json={"name": "X"}, headers=auth_header(make_user(Role.CLIENT)))

    assert res.status_code == 403


def test_lead_flow_create_convert_twice(http, auth_header, repos, employee):
    headers = auth_header(employee)

    created = http.post(
        f"{API_PREFIX}/leads", json={"name": "Globex", "email": "hi@globex.test", "status": "Qualified"}, headers=headers
    )
    assert created.status_code == 201
    lead = created.get_json()["data"]
    assert lead["isHot"] is True
    assert lead["createdBy"]["_id"] == employee.user_id

    converted = http.post(f"{API_PREFIX}/leads/{lead['_id']}/convert", headers=headers)
    assert converted.status_code == 200
    data = converted.get_json()["data"]
    assert data["lead"]["status"] == "Closed Won"
    assert data["client"]["name"] == "Globex"

    again = http.post(f"{API_PREFIX}/leads/{lead['_id']}/convert", headers=headers)
    assert again.status_code == 400
    assert again.get_json()["message"] == "Lead already converted to client"
    assert len(repos.clients.items) == 1


def test_recent_leads_routes(http, auth_header, manager):
    headers = auth_header(manager)
    for i in range(3):
        http.post(f"{API_PREFIX}/leads", json={"name": f"Lead {i}"}, headers=headers)

    assert http.get(f"{API_PREFIX}/leads/recent", headers=headers).get_json()["count"] == 3
    assert http.get(f"{API_PREFIX}/leads/recent/2", headers=headers).get_json()["count"] == 2


def test_empty_stats_render_empty_object(http, auth_header, manager):
    headers = auth_header(manager)

    assert http.get(f"{API_PREFIX}/sales/stats", headers=headers).get_json()["data"] == {}
    assert http.get(f"{API_PREFIX}/leads/stats/overview", headers=headers).get_json()["data"] == {}


def test_sale_create_renders_references(http, auth_header, repos, admin, employee):
    client = repos.clients.create_client(name="Acme", email="ap@acme.test")
    project = repos.projects.create_project(
        {"name": "Portal", "client": client.client_id, "start_date": datetime(2026, 1, 1), "created_by": admin.user_id}
    )

    res = http.post(
        f"{API_PREFIX}/sales",
        json={"project": project.project_id, "client": client.client_id, "amount": 19.999, "paymentMethod": "Check"},
        headers=auth_header(employee),
    )

    assert res.status_code == 201
    sale = res.get_json()["data"]
    assert sale["amount"] == 20.0
    assert sale["paymentMethod"] == "Check"
    assert sale["client"] == {"_id": client.client_id, "name": "Acme", "email": "ap@acme.test"}
    assert sale["project"] == {"_id": project.project_id, "name": "Portal", "status": "Not Started"}
    assert sale["salesperson"]["_id"] == employee.user_id


@pytest.mark.parametrize("raw_amount", ["Infinity", "NaN", "1e400"])
def test_sale_with_non_finite_amount_is_a_400(http, auth_header, repos, admin, employee, raw_amount):
    client = repos.clients.create_client(name="Acme")
    project = repos.projects.create_project(
        {"name": "Portal", "client": client.client_id, "start_date": datetime(2026, 1, 1), "created_by": admin.user_id}
    )
    body = (
        f'{{"project": "{project.project_id}", "client": "{client.client_id}", '
        f'"amount": {raw_amount}, "paymentMethod": "Cash"}}'
    )

    res = http.post(
        f"{API_PREFIX}/sales", data=body, content_type="application/json", headers=auth_header(employee)
    )

    assert res.status_code == 400
    assert res.get_json() == {"success": False, "message": "Amount must be a finite number"}
    assert repos.sales.items == {}


def test_attendance_check_in_and_out(http, auth_header, employee, fixed_now):
    headers = auth_header(employee)
    fixed_now(datetime(2026, 3, 2, 10, 5, 0))

    res = http.post(f"{API_PREFIX}/attendance/check-in", json={"longitude": 105.8, "latitude": 21.0}, headers=headers)
    assert res.status_code == 201
    record = res.get_json()["data"]
    assert record["status"] == "late"
    assert record["lateMinutes"] == 35
    assert record["autoStatus"] is True
    assert record["location"] == {"type": "Point", "coordinates": [105.8, 21.0]}
    assert record["user"]["_id"] == employee.user_id

    dup = http.post(f"{API_PREFIX}/attendance/check-in", json={}, headers=headers)
    assert dup.status_code == 400
    assert dup.get_json()["message"] == "Already checked in today"

    fixed_now(datetime(2026, 3, 2, 12, 0, 0))
    out = http.put(f"{API_PREFIX}/attendance/check-out", headers=headers)
    assert out.status_code == 200
    assert out.get_json()["data"]["status"] == "half-day"


def test_attendance_admin_routes_are_admin_only(http, auth_header, manager, admin):
    body = {"date": "2026-03-02", "status": "holiday", "userIds": []}

    assert http.post(f"{API_PREFIX}/attendance/bulk-status", json=body, headers=auth_header(manager)).status_code == 403
    res = http.post(f"{API_PREFIX}/attendance/bulk-status", json=body, headers=auth_header(admin))
    assert res.status_code == 200


def test_task_flow_through_api(http, auth_header, repos, admin, manager, employee, fixed_now):
    fixed_now(datetime(2026, 3, 2, 9, 0, 0))
    client = repos.clients.create_client(name="Acme")
    project = repos.projects.create_project(
        {"name": "Portal", "client": client.client_id, "start_date": datetime(2026, 1, 1), "created_by": admin.user_id}
    )

    created = http.post(
        f"{API_PREFIX}/tasks",
        json={
            "name": "Kickoff call",
            "relatedTo": "Project",
            "relatedEntity": project.project_id,
            "assignedTo": employee.user_id,
            "dueDate": "2026-03-03T10:00:00",
            "priority": "high",
        },
        headers=auth_header(manager),
    )
    assert created.status_code == 201
    task = created.get_json()["data"]
    assert task["relatedTo"] == "Project"
    assert task["relatedEntity"] == project.project_id
    assert task["assignedTo"]["_id"] == employee.user_id
    assert task["isOverdue"] is False

    mine = http.get(f"{API_PREFIX}/tasks/my-tasks", headers=auth_header(employee)).get_json()
    assert mine["count"] == 1

    done = http.patch(
        f"{API_PREFIX}/tasks/{task['_id']}/status", json={"status": "completed"}, headers=auth_header(employee)
    )
    assert done.status_code == 200
    assert done.get_json()["data"]["completedAt"] == "2026-03-02T09:00:00"
