from __future__ import annotations

import copy
from typing import Any

import pytest
from httpx import ASGITransport, AsyncClient
from starlette.testclient import TestClient

from app.core.permissions import get_user_by_id
from app.core.query import Equals, Predicate, combine
from app.main import app
from app.models.auth import DemoUser


class FakeStore:
    """In-memory stand-in for the Cosmos record store.

    Predicates are evaluated with ``matches``; every call is recorded in
    ``calls`` as ``(method, entity)``.
    """

    def __init__(self, data: dict[str, list[dict[str, Any]]] | None = None) -> None:
        self.data: dict[str, list[dict[str, Any]]] = {k: [dict(d) for d in v] for k, v in (data or {}).items()}
        self.calls: list[tuple[str, str]] = []
        self.initialized = True

    def _rows(self, entity: str, predicate: Predicate | None, status: str | None) -> list[dict[str, Any]]:
        where = combine(Equals("status", status) if status else None, predicate)
        return [copy.deepcopy(r) for r in self.data.get(entity, []) if where is None or where.matches(r)]

    async def find_many(
        self,
        entity: str,
        predicate: Predicate | None = None,
        *,
        status: str | None = None,
        order_by: str | None = None,
        descending: bool = False,
        offset: int | None = None,
        limit: int | None = None,
    ) -> list[dict[str, Any]]:
        self.calls.append(("find_many", entity))
        rows = self._rows(entity, predicate, status)
        if order_by:
            rows.sort(key=lambda r: (r.get(order_by) is None, r.get(order_by) or ""), reverse=descending)
        if limit is not None:
            start = offset or 0
            rows = rows[start : start + limit]
        return rows

    async def count(self, entity: str, predicate: Predicate | None = None, *, status: str | None = None) -> int:
        self.calls.append(("count", entity))
        return len(self._rows(entity, predicate, status))

    async def get(self, entity: str, record_id: str) -> dict[str, Any] | None:
        self.calls.append(("get", entity))
        for row in self.data.get(entity, []):
            if row["id"] == record_id:
                return copy.deepcopy(row)
        return None

    async def create(self, entity: str, doc: dict[str, Any]) -> dict[str, Any]:
        self.calls.append(("create", entity))
        self.data.setdefault(entity, []).append(copy.deepcopy(doc))
        return copy.deepcopy(doc)

    async def replace(self, entity: str, doc: dict[str, Any]) -> dict[str, Any]:
        self.calls.append(("replace", entity))
        rows = self.data.setdefault(entity, [])
        for i, row in enumerate(rows):
            if row["id"] == doc["id"]:
                rows[i] = copy.deepcopy(doc)
                break
        else:
            rows.append(copy.deepcopy(doc))
        return copy.deepcopy(doc)

    async def delete(self, entity: str, record_id: str) -> None:
        self.calls.append(("delete", entity))
        self.data[entity] = [r for r in self.data.get(entity, []) if r["id"] != record_id]

    async def check_connection(self) -> bool:
        return True


def make_employee(
    employee_id: str,
    first_name: str,
    last_name: str,
    *,
    title: str = "Engineer",
    department: str = "Engineering",
    status: str = "active",
    manager_id: str | None = None,
    email: str | None = None,
    salary: float | None = None,
    hire_date: str = "2022-01-10",
) -> dict[str, Any]:
    return {
        "id": employee_id,
        "firstName": first_name,
        "lastName": last_name,
        "email": email or f"{first_name}.{last_name}@echelon.com".lower(),
        "phone": None,
        "title": title,
        "department": department,
        "status": status,
        "managerId": manager_id,
        "hireDate": hire_date,
        "salary": salary,
        "createdAt": "2024-01-01T00:00:00+00:00",
        "updatedAt": "2024-01-01T00:00:00+00:00",
    }


def make_team(
    team_id: str,
    name: str,
    *,
    description: str | None = None,
    team_lead_id: str | None = None,
    parent_team_id: str | None = None,
) -> dict[str, Any]:
    return {
        "id": team_id,
        "name": name,
        "description": description,
        "teamLeadId": team_lead_id,
        "parentTeamId": parent_team_id,
    }


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
def store():
    return FakeStore()


@pytest.fixture
def admin() -> DemoUser:
    return get_user_by_id("demo-admin")


@pytest.fixture
def hr_user() -> DemoUser:
    return get_user_by_id("demo-hr")


@pytest.fixture
def manager_user() -> DemoUser:
    return get_user_by_id("demo-manager")


@pytest.fixture
def employee_user() -> DemoUser:
    return get_user_by_id("demo-employee")


@pytest.fixture
def client():
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
async def async_client():
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()
