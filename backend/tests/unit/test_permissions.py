from __future__ import annotations

import pytest

from app.core.permissions import (
    DEMO_USERS,
    can_edit_employee,
    get_user_by_employee_id,
    get_user_by_id,
    has_permission,
    permissions_for,
)


@pytest.mark.parametrize(
    ("role", "permission", "expected"),
    [
        ("admin", "employee.delete", True),
        ("hr", "employee.delete", False),
        ("hr", "employee.view.salary", True),
        ("manager", "employee.view.salary", False),
        ("manager", "employee.edit.own-department", True),
        ("employee", "employee.edit.own-department", False),
        ("admin", "team.edit", True),
        ("hr", "team.edit", False),
        ("hr", "team.export", True),
        ("admin", "payroll.run", False),
    ],
)
def test_has_permission(role, permission, expected):
    assert has_permission(role, permission) is expected


def test_employee_role_has_no_permissions():
    assert permissions_for("employee") == []


def test_one_demo_user_per_role():
    assert sorted(u.role for u in DEMO_USERS) == ["admin", "employee", "hr", "manager"]


def test_lookup_demo_users():
    admin = get_user_by_id("demo-admin")
    assert admin.name == "Sarah Chen"
    assert get_user_by_employee_id(admin.employee_id) == admin
    assert get_user_by_id("nobody") is None


def test_can_edit_employee(admin, manager_user, employee_user):
    assert can_edit_employee(admin, "Finance") is True
    assert can_edit_employee(manager_user, "Engineering") is True
    assert can_edit_employee(manager_user, "Finance") is False
    assert can_edit_employee(manager_user, None) is False
    assert can_edit_employee(employee_user, "Finance") is False


def test_me_defaults_to_configured_demo_user(client):
    response = client.get("/api/v1/me")
    assert response.status_code == 200
    data = response.json()
    assert data["id"] == "demo-admin"
    assert "employee.delete" in data["permissions"]


def test_me_with_header(client):
    response = client.get("/api/v1/me", headers={"X-Demo-User": "demo-manager"})
    assert response.json()["permissions"] == ["employee.edit.own-department"]


def test_unknown_demo_user_is_401(client):
    response = client.get("/api/v1/me", headers={"X-Demo-User": "mallory"})
    assert response.status_code == 401


def test_delete_requires_permission(client):
    response = client.delete("/api/v1/employees/e1", headers={"X-Demo-User": "demo-hr"})
    assert response.status_code == 403
