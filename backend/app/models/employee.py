"""Employee models for Cosmos DB employee documents."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field

EmployeeStatus = Literal["active", "inactive", "terminated"]


class PersonRef(BaseModel):
    """Short reference to another employee (manager, report, team lead)."""

    id: str
    first_name: str | None = None
    last_name: str | None = None
    title: str | None = None
    email: str | None = None
    department: str | None = None


class TeamRef(BaseModel):
    id: str
    name: str | None = None
    description: str | None = None
    joined_at: str | None = None


class EmployeeSummary(BaseModel):
    """Minimal employee info for lists and search results."""

    id: str
    first_name: str | None = None
    last_name: str | None = None
    email: str | None = None
    title: str | None = None
    department: str | None = None
    status: str | None = None
    manager_id: str | None = None
    manager: PersonRef | None = None


class ScoredEmployee(EmployeeSummary):
    relevance_score: int = 0


class EmployeeDetail(EmployeeSummary):
    """Full employee record with reporting lines and team memberships."""

    phone: str | None = None
    hire_date: str | None = None
    salary: float | None = None
    created_at: str | None = None
    updated_at: str | None = None
    direct_reports: list[PersonRef] = []
    teams: list[TeamRef] = []


class EmployeeUpdate(BaseModel):
    first_name: str | None = Field(default=None, min_length=1)
    last_name: str | None = Field(default=None, min_length=1)
    email: str | None = Field(default=None, pattern=r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
    phone: str | None = None
    title: str | None = Field(default=None, min_length=1)
    department: str | None = Field(default=None, min_length=1)
    status: EmployeeStatus | None = None
    manager_id: str | None = None
    hire_date: str | None = None
    salary: float | None = None


class EmployeeImportRow(BaseModel):
    """One parsed row of a bulk import; validated by the import service."""

    first_name: str | None = None
    last_name: str | None = None
    email: str | None = None
    phone: str | None = None
    title: str | None = None
    department: str | None = None
    manager_id: str | None = None
    hire_date: str | None = None
    salary: float | str | None = None
    status: str | None = None


class EmployeeImportRequest(BaseModel):
    employees: list[EmployeeImportRow]


class ImportRowError(BaseModel):
    row: int
    errors: list[str]


class EmployeeImportResponse(BaseModel):
    success: bool
    imported: int
    employees: list[EmployeeSummary]


class ListPagination(BaseModel):
    page: int
    limit: int
    total_count: int
    total_pages: int
    has_more: bool


class EmployeeListResponse(BaseModel):
    employees: list[ScoredEmployee]
    pagination: ListPagination
