"""Role based permission policy and the demo users that carry the roles."""

from __future__ import annotations

from app.models.auth import DemoUser, Role

DEMO_USERS: list[DemoUser] = [
    DemoUser(
        id="demo-admin",
        employee_id="10000000-0000-0000-0000-000000000001",
        name="Sarah Chen",
        email="sarah.chen@echelon.com",
        title="Chief Executive Officer",
        department="Executive",
        role="admin",
        avatar="SC",
    ),
    DemoUser(
        id="demo-hr",
        employee_id="10000000-0000-0000-0000-000000000003",
        name="Emily Watson",
        email="emily.watson@echelon.com",
        title="Chief People Officer",
        department="Human Resources",
        role="hr",
        avatar="EW",
    ),
    DemoUser(
        id="demo-manager",
        employee_id="10000000-0000-0000-0000-000000000002",
        name="Michael Rodriguez",
        email="michael.rodriguez@echelon.com",
        title="Chief Technology Officer",
        department="Engineering",
        role="manager",
        avatar="MR",
    ),
    DemoUser(
        id="demo-employee",
        employee_id="10000000-0000-0000-0000-000000000004",
        name="David Kim",
        email="david.kim@echelon.com",
        title="Chief Financial Officer",
        department="Finance",
        role="employee",
        avatar="DK",
    ),
]

PERMISSIONS: dict[str, tuple[Role, ...]] = {
    "employee.create": ("admin", "hr"),
    "employee.edit.all": ("admin", "hr"),
    "employee.edit.own-department": ("admin", "hr", "manager"),
    "employee.delete": ("admin",),
    "employee.import": ("admin", "hr"),
    "employee.export": ("admin", "hr"),
    "employee.view.salary": ("admin", "hr"),
    "team.create": ("admin",),
    "team.edit": ("admin",),
    "team.delete": ("admin",),
    "team.export": ("admin", "hr"),
}


def has_permission(role: str, permission: str) -> bool:
    return role in PERMISSIONS.get(permission, ())


def permissions_for(role: str) -> list[str]:
    return [permission for permission, roles in PERMISSIONS.items() if role in roles]


def get_user_by_id(user_id: str) -> DemoUser | None:
    return next((user for user in DEMO_USERS if user.id == user_id), None)


def get_user_by_employee_id(employee_id: str) -> DemoUser | None:
    return next((user for user in DEMO_USERS if user.employee_id == employee_id), None)


def can_edit_employee(actor: DemoUser, employee_department: str | None) -> bool:
    if has_permission(actor.role, "employee.edit.all"):
        return True
    if has_permission(actor.role, "employee.edit.own-department") and employee_department:
        return employee_department == actor.department
    return False
