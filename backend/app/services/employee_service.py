"""Employee directory service backed by the Cosmos DB record store."""

from __future__ import annotations

import asyncio
import logging
import re
import uuid
from datetime import date, datetime, timezone
from typing import Any

from app.core.permissions import can_edit_employee
from app.core.query import Equals, In, IsNull, Predicate, combine
from app.models.auth import DemoUser
from app.models.employee import (
    EmployeeDetail,
    EmployeeImportRow,
    EmployeeListResponse,
    EmployeeSummary,
    EmployeeUpdate,
    ImportRowError,
    ListPagination,
    PersonRef,
    ScoredEmployee,
    TeamRef,
)
from app.services import pagination
from app.services.audit_service import AuditService, audit_service, build_changes
from app.services.hierarchy import has_cycle
from app.services.query_expander import build_employee_predicate
from app.services.record_store import EMPLOYEES, TEAM_MEMBERS, TEAMS, RecordStore, record_store
from app.services.relevance import EMPLOYEE_RULES, rank

logger = logging.getLogger(__name__)

# Python attribute names → Cosmos DB document keys
_FIELD_MAP: list[tuple[str, str]] = [
    ("first_name", "firstName"),
    ("last_name", "lastName"),
    ("email", "email"),
    ("phone", "phone"),
    ("title", "title"),
    ("department", "department"),
    ("status", "status"),
    ("manager_id", "managerId"),
    ("hire_date", "hireDate"),
    ("salary", "salary"),
    ("created_at", "createdAt"),
    ("updated_at", "updatedAt"),
]
_DOC_KEYS = dict(_FIELD_MAP)

SORT_FIELDS: dict[str, str] = {
    "first_name": "firstName",
    "last_name": "lastName",
    "title": "title",
    "department": "department",
    "hire_date": "hireDate",
    "email": "email",
}
DEFAULT_SORT = "last_name"
RELEVANCE_SORT = "relevance"

VALID_STATUSES = ("active", "inactive", "terminated")
_EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


class EmployeeNotFoundError(Exception):
    pass


class EmployeePermissionError(Exception):
    pass


class EmployeeUpdateError(Exception):
    pass


class EmployeeImportError(Exception):
    def __init__(self, message: str, status_code: int = 400, **details: Any) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.details = details


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _parse_date(value: str) -> date | None:
    for parse in (date.fromisoformat, lambda v: datetime.fromisoformat(v).date()):
        try:
            return parse(value)
        except ValueError:
            continue
    return None


def to_person_ref(raw: dict[str, Any]) -> PersonRef:
    return PersonRef(
        id=raw.get("id") or "unknown",
        first_name=raw.get("firstName"),
        last_name=raw.get("lastName"),
        title=raw.get("title"),
        email=raw.get("email"),
        department=raw.get("department"),
    )


def to_summary(raw: dict[str, Any], manager: dict[str, Any] | None = None) -> EmployeeSummary:
    return EmployeeSummary(
        id=raw.get("id") or "unknown",
        first_name=raw.get("firstName"),
        last_name=raw.get("lastName"),
        email=raw.get("email"),
        title=raw.get("title"),
        department=raw.get("department"),
        status=raw.get("status"),
        manager_id=raw.get("managerId"),
        manager=to_person_ref(manager) if manager else None,
    )


def to_scored(raw: dict[str, Any], score: int = 0, manager: dict[str, Any] | None = None) -> ScoredEmployee:
    return ScoredEmployee(**to_summary(raw, manager).model_dump(), relevance_score=score)


def validate_import_row(row: EmployeeImportRow) -> list[str]:
    errors: list[str] = []

    if not (row.first_name or "").strip():
        errors.append("First name is required")
    if not (row.last_name or "").strip():
        errors.append("Last name is required")
    if not (row.email or "").strip():
        errors.append("Email is required")
    if not (row.title or "").strip():
        errors.append("Title is required")
    if not (row.department or "").strip():
        errors.append("Department is required")
    if not row.hire_date:
        errors.append("Hire date is required")

    if row.email and not _EMAIL_RE.match(row.email.strip()):
        errors.append("Invalid email format")

    if row.status and row.status not in VALID_STATUSES:
        errors.append("Invalid status (must be: active, inactive, or terminated)")

    if row.hire_date and _parse_date(row.hire_date) is None:
        errors.append("Invalid hire date format")

    if row.salary not in (None, ""):
        try:
            float(row.salary)
        except (TypeError, ValueError):
            errors.append("Invalid salary")

    return errors


class EmployeeService:
    def __init__(self, store: RecordStore | None = None, audit: AuditService | None = None) -> None:
        self.store = store if store is not None else record_store
        self.audit = audit if audit is not None else audit_service

    async def _get_optional(self, employee_id: str | None) -> dict[str, Any] | None:
        if not employee_id:
            return None
        return await self.store.get(EMPLOYEES, employee_id)

    async def _managers_by_id(self, rows: list[dict[str, Any]]) -> dict[str, dict[str, Any]]:
        ids = tuple(sorted({r["managerId"] for r in rows if r.get("managerId")}))
        if not ids:
            return {}
        managers = await self.store.find_many(EMPLOYEES, In("id", ids))
        return {m["id"]: m for m in managers}

    async def list_employees(
        self,
        *,
        search: str = "",
        status: str = "active",
        department: str = "",
        manager_id: str = "",
        sort_by: str = DEFAULT_SORT,
        sort_order: str = "asc",
        page: int = 1,
        limit: int = 20,
    ) -> EmployeeListResponse:
        filters: list[Predicate | None] = []
        if status and status != "all":
            filters.append(Equals("status", status))
        if department and department != "all":
            filters.append(Equals("department", department))
        if manager_id and manager_id != "all":
            filters.append(IsNull("managerId") if manager_id == "none" else Equals("managerId", manager_id))
        if search.strip():
            filters.append(build_employee_predicate(search))
        where = combine(*filters)

        if sort_by == RELEVANCE_SORT and search.strip():
            rows = await self.store.find_many(EMPLOYEES, where)
            ranked = rank(rows, search, EMPLOYEE_RULES)
            total = len(ranked)
            page_rows = pagination.paginate(ranked, page, limit)
        else:
            order_field = SORT_FIELDS.get(sort_by, SORT_FIELDS[DEFAULT_SORT])
            rows, total = await asyncio.gather(
                self.store.find_many(
                    EMPLOYEES,
                    where,
                    order_by=order_field,
                    descending=sort_order == "desc",
                    offset=pagination.page_offset(page, limit),
                    limit=limit,
                ),
                self.store.count(EMPLOYEES, where),
            )
            page_rows = [(row, 0) for row in rows]

        managers = await self._managers_by_id([row for row, _ in page_rows])
        employees = [to_scored(row, score, managers.get(row.get("managerId") or "")) for row, score in page_rows]

        return EmployeeListResponse(
            employees=employees,
            pagination=ListPagination(
                page=page,
                limit=limit,
                total_count=total,
                total_pages=pagination.total_pages(total, limit),
                has_more=pagination.has_more(page, total, limit),
            ),
        )

    async def get_departments(self) -> list[str]:
        rows = await self.store.find_many(EMPLOYEES, status="active")
        return sorted({r["department"] for r in rows if r.get("department")})

    async def get_managers(self) -> list[PersonRef]:
        rows = await self.store.find_many(EMPLOYEES, status="active")
        manager_ids = {r.get("managerId") for r in rows if r.get("managerId")}
        managers = [r for r in rows if r["id"] in manager_ids]
        managers.sort(key=lambda r: ((r.get("lastName") or "").lower(), (r.get("firstName") or "").lower()))
        return [to_person_ref(m) for m in managers]

    async def get_employee(self, employee_id: str, include_salary: bool = False) -> EmployeeDetail | None:
        raw = await self.store.get(EMPLOYEES, employee_id)
        if not raw:
            return None

        manager, reports, memberships = await asyncio.gather(
            self._get_optional(raw.get("managerId")),
            self.store.find_many(EMPLOYEES, Equals("managerId", employee_id), order_by="lastName"),
            self.store.find_many(TEAM_MEMBERS, Equals("employeeId", employee_id)),
        )

        teams: list[TeamRef] = []
        if memberships:
            team_rows = await self.store.find_many(TEAMS, In("id", tuple(m["teamId"] for m in memberships)))
            by_id = {t["id"]: t for t in team_rows}
            for membership in memberships:
                team = by_id.get(membership["teamId"])
                if team:
                    teams.append(
                        TeamRef(
                            id=team["id"],
                            name=team.get("name"),
                            description=team.get("description"),
                            joined_at=membership.get("joinedAt"),
                        )
                    )

        return self._transform_employee(raw, manager, reports, teams, include_salary)

    def _transform_employee(
        self,
        raw: dict[str, Any],
        manager: dict[str, Any] | None = None,
        reports: list[dict[str, Any]] | None = None,
        teams: list[TeamRef] | None = None,
        include_salary: bool = False,
    ) -> EmployeeDetail:
        data: dict[str, Any] = {"id": raw.get("id") or "unknown"}
        for python_key, cosmos_key in _FIELD_MAP:
            data[python_key] = raw.get(cosmos_key)

        if not include_salary:
            data["salary"] = None

        data["manager"] = to_person_ref(manager) if manager else None
        data["direct_reports"] = [to_person_ref(r) for r in reports or []]
        data["teams"] = teams or []
        return EmployeeDetail(**data)

    async def _check_manager(self, employee_id: str, manager_id: str) -> None:
        if manager_id == employee_id:
            raise EmployeeUpdateError("An employee cannot be their own manager")

        manager = await self.store.get(EMPLOYEES, manager_id)
        if not manager:
            raise EmployeeUpdateError(f"Manager '{manager_id}' not found")

        rows = await self.store.find_many(EMPLOYEES)
        parent_of = {r["id"]: r.get("managerId") for r in rows}
        if has_cycle(employee_id, parent_of, manager_id):
            raise EmployeeUpdateError("Manager assignment would create a reporting cycle")

    async def update_employee(
        self,
        employee_id: str,
        update: EmployeeUpdate,
        actor: DemoUser,
        ip_address: str | None = None,
    ) -> EmployeeDetail:
        raw = await self.store.get(EMPLOYEES, employee_id)
        if not raw:
            raise EmployeeNotFoundError(employee_id)

        if not can_edit_employee(actor, raw.get("department")):
            raise EmployeePermissionError(f"{actor.name} cannot edit employees in {raw.get('department')}")

        fields = update.model_dump(exclude_unset=True)
        new_values = {_DOC_KEYS[key]: value for key, value in fields.items()}

        if "managerId" in new_values and not new_values["managerId"]:
            new_values["managerId"] = None
        if new_values.get("managerId"):
            await self._check_manager(employee_id, new_values["managerId"])

        if "email" in new_values and new_values["email"] != raw.get("email"):
            clash = await self.store.count(EMPLOYEES, Equals("email", new_values["email"]))
            if clash:
                raise EmployeeUpdateError(f"Email '{new_values['email']}' is already in use")

        changes = build_changes(raw, new_values)
        if changes:
            updated = {**raw, **new_values, "updatedAt": _now()}
            raw = await self.store.replace(EMPLOYEES, updated)
            await self.audit.create_log(
                entity_type="employee",
                entity_id=employee_id,
                action="update",
                changes=changes,
                user_id=actor.employee_id,
                ip_address=ip_address,
            )
            logger.info("Employee %s updated by %s: %s", employee_id, actor.id, ", ".join(changes))

        detail = await self.get_employee(employee_id, include_salary=True)
        return detail if detail is not None else self._transform_employee(raw, include_salary=True)

    async def terminate_employee(self, employee_id: str, actor: DemoUser, ip_address: str | None = None) -> None:
        raw = await self.store.get(EMPLOYEES, employee_id)
        if not raw:
            raise EmployeeNotFoundError(employee_id)

        if raw.get("status") == "terminated":
            return

        await self.store.replace(EMPLOYEES, {**raw, "status": "terminated", "updatedAt": _now()})
        await self.audit.create_log(
            entity_type="employee",
            entity_id=employee_id,
            action="delete",
            changes={"status": {"old": raw.get("status"), "new": "terminated"}},
            user_id=actor.employee_id,
            ip_address=ip_address,
        )

    async def import_employees(
        self,
        rows: list[EmployeeImportRow],
        actor: DemoUser,
        ip_address: str | None = None,
    ) -> list[EmployeeSummary]:
        if not rows:
            raise EmployeeImportError("No employees provided")

        validation_errors = [
            ImportRowError(row=i + 1, errors=errors)
            for i, row in enumerate(rows)
            if (errors := validate_import_row(row))
        ]
        if validation_errors:
            raise EmployeeImportError(
                "Validation errors found",
                validation_errors=[e.model_dump() for e in validation_errors],
                success_count=0,
                failure_count=len(validation_errors),
            )

        emails = [(row.email or "").strip() for row in rows]
        seen: set[str] = set()
        duplicates: list[str] = []
        for email in emails:
            if email in seen and email not in duplicates:
                duplicates.append(email)
            seen.add(email)
        if duplicates:
            raise EmployeeImportError("Duplicate emails found in import", duplicates=duplicates)

        existing = await self.store.find_many(EMPLOYEES, In("email", tuple(emails)))
        if existing:
            raise EmployeeImportError(
                "Some emails already exist in database",
                status_code=409,
                existing_emails=[e["email"] for e in existing],
            )

        created: list[EmployeeSummary] = []
        now = _now()
        for row in rows:
            doc = {
                "id": str(uuid.uuid4()),
                "firstName": (row.first_name or "").strip(),
                "lastName": (row.last_name or "").strip(),
                "email": (row.email or "").strip(),
                "phone": (row.phone or "").strip() or None,
                "title": (row.title or "").strip(),
                "department": (row.department or "").strip(),
                "managerId": row.manager_id or None,
                "hireDate": _parse_date(row.hire_date or "").isoformat(),
                "salary": float(row.salary) if row.salary not in (None, "") else None,
                "status": row.status or "active",
                "createdAt": now,
                "updatedAt": now,
            }
            saved = await self.store.create(EMPLOYEES, doc)
            created.append(to_summary(saved))
            await self.audit.create_log(
                entity_type="employee",
                entity_id=doc["id"],
                action="create",
                changes={
                    "firstName": doc["firstName"],
                    "lastName": doc["lastName"],
                    "email": doc["email"],
                    "title": doc["title"],
                    "department": doc["department"],
                },
                user_id=actor.employee_id,
                ip_address=ip_address,
            )

        logger.info("Imported %d employees (actor=%s)", len(created), actor.id)
        return created


employee_service = EmployeeService()
