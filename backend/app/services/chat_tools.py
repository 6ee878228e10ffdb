"""HRIS data tools exposed to the chat model through function calling.

Every tool returns a JSON-serialisable dict with ``success`` set, and an
``error`` message instead of raising.
"""

from __future__ import annotations

import asyncio
import inspect
import json
import logging
from datetime import datetime, timedelta, timezone
from typing import Any

from app.core.query import Contains, Equals, In, Predicate, combine
from app.services.org_chart_service import OrgChartService
from app.services.query_expander import build_employee_predicate, build_team_predicate
from app.services.record_store import EMPLOYEES, TEAM_MEMBERS, TEAMS, RecordStore, record_store
from app.services.relevance import EMPLOYEE_RULES, TEAM_RULES, rank
from app.services.team_service import TeamService

logger = logging.getLogger(__name__)

DEFAULT_LIMIT = 10


def _function(name: str, description: str, properties: dict[str, Any], required: list[str] | None = None) -> dict:
    return {
        "type": "function",
        "function": {
            "name": name,
            "description": description,
            "parameters": {
                "type": "object",
                "properties": properties,
                "required": required or [],
            },
        },
    }


TOOL_DEFINITIONS: list[dict[str, Any]] = [
    _function(
        "search_employees",
        "Search for employees by name, department, title, status, or other criteria. "
        "Returns matching employees ranked by relevance.",
        {
            "query": {"type": "string", "description": "Text matched against name, email, title or department"},
            "department": {"type": "string", "description": "Filter by specific department"},
            "title": {"type": "string", "description": "Filter by job title"},
            "status": {"type": "string", "enum": ["active", "inactive", "terminated", ""]},
            "manager_id": {"type": "string", "description": "Filter by manager ID"},
            "limit": {"type": "integer", "description": "Maximum number of results"},
        },
    ),
    _function(
        "get_employee",
        "Get detailed information about a specific employee by ID or email, including manager, "
        "direct reports and team memberships.",
        {
            "employee_id": {"type": "string", "description": "Employee ID"},
            "email": {"type": "string", "description": "Employee email address"},
        },
    ),
    _function(
        "get_org_chart",
        "Get the reporting hierarchy starting from an employee, or from the top-level executives.",
        {
            "start_from_employee_id": {"type": "string", "description": "Employee ID to start from"},
            "depth": {"type": "integer", "description": "How many levels deep to traverse"},
        },
    ),
    _function(
        "search_teams",
        "Search for teams by name or description. Returns matching teams ranked by relevance.",
        {
            "query": {"type": "string", "description": "Text matched against team name or description"},
            "team_lead_id": {"type": "string", "description": "Filter by team lead ID"},
            "parent_team_id": {"type": "string", "description": "Filter by parent team ID"},
            "limit": {"type": "integer", "description": "Maximum number of results"},
        },
    ),
    _function(
        "get_team",
        "Get detailed information about a team including members, sub-teams and parent team.",
        {
            "team_id": {"type": "string", "description": "Team ID"},
            "include_members": {"type": "boolean"},
            "include_sub_teams": {"type": "boolean"},
        },
        required=["team_id"],
    ),
    _function(
        "get_departments",
        "List all departments with employee counts.",
        {"include_inactive": {"type": "boolean", "description": "Include inactive employees in counts"}},
    ),
    _function(
        "get_employees_by_department",
        "Get all employees in a specific department.",
        {
            "department": {"type": "string", "description": "Department name"},
            "status": {"type": "string", "enum": ["active", "inactive", "terminated"]},
        },
        required=["department"],
    ),
    _function(
        "get_company_stats",
        "Get company statistics: employee counts, team count, recent hires and largest departments.",
        {"top_departments_limit": {"type": "integer", "description": "Number of top departments"}},
    ),
]


def _name(raw: dict[str, Any] | None) -> str | None:
    if not raw:
        return None
    return f"{raw.get('firstName', '')} {raw.get('lastName', '')}".strip()


def _equals_ci(field: str, value: str) -> Predicate:
    # Cosmos has no case-insensitive equality; containment narrows, the caller compares exactly.
    return Contains(field, value)


class ChatTools:
    def __init__(self, store: RecordStore | None = None) -> None:
        self.store = store if store is not None else record_store
        self.teams = TeamService(store=self.store)
        self.org_chart = OrgChartService(store=self.store)

    async def execute(self, name: str, arguments: str | None) -> dict[str, Any]:
        handler = getattr(self, name, None) if name in {t["function"]["name"] for t in TOOL_DEFINITIONS} else None
        if handler is None:
            return {"success": False, "error": f"Unknown tool: {name}"}

        try:
            kwargs = json.loads(arguments or "{}")
        except json.JSONDecodeError as e:
            return {"success": False, "error": f"Invalid arguments: {e}"}
        if not isinstance(kwargs, dict):
            return {"success": False, "error": "Arguments must be a JSON object"}

        try:
            inspect.signature(handler).bind(**kwargs)
        except TypeError as e:
            return {"success": False, "error": f"Invalid arguments: {e}"}

        try:
            return await handler(**kwargs)
        except Exception as e:
            logger.exception("Tool %s failed", name)
            return {"success": False, "error": str(e) or f"Failed to run {name}"}

    async def search_employees(
        self,
        query: str = "",
        department: str = "",
        title: str = "",
        status: str = "",
        manager_id: str = "",
        limit: int = DEFAULT_LIMIT,
    ) -> dict[str, Any]:
        where = combine(
            build_employee_predicate(query) if query.strip() else None,
            _equals_ci("department", department.strip()) if department.strip() else None,
            Contains("title", title.strip()) if title.strip() else None,
            Equals("managerId", manager_id.strip()) if manager_id.strip() else None,
        )
        rows = await self.store.find_many(EMPLOYEES, where, status=status or None, order_by="firstName")
        if department.strip():
            rows = [r for r in rows if (r.get("department") or "").lower() == department.strip().lower()]

        ranked = rank(rows, query, EMPLOYEE_RULES) if query.strip() else [(r, 0) for r in rows]
        ranked = ranked[: max(limit, 0)]

        manager_ids = tuple(sorted({r["managerId"] for r, _ in ranked if r.get("managerId")}))
        managers = {m["id"]: m for m in await self.store.find_many(EMPLOYEES, In("id", manager_ids))} if manager_ids else {}

        employees = []
        for row, score in ranked:
            manager = managers.get(row.get("managerId") or "")
            employees.append(
                {
                    "id": row["id"],
                    "name": _name(row),
                    "email": row.get("email"),
                    "title": row.get("title"),
                    "department": row.get("department"),
                    "status": row.get("status"),
                    "hire_date": row.get("hireDate"),
                    "manager": f"{_name(manager)} ({manager.get('title')})" if manager else None,
                    "relevance_score": score,
                }
            )
        return {"success": True, "count": len(employees), "employees": employees}

    async def get_employee(self, employee_id: str = "", email: str = "") -> dict[str, Any]:
        if not employee_id and not email:
            return {"success": False, "error": "Either employee_id or email must be provided"}

        if employee_id:
            raw = await self.store.get(EMPLOYEES, employee_id)
        else:
            matches = await self.store.find_many(EMPLOYEES, Equals("email", email))
            raw = matches[0] if matches else None

        if not raw:
            return {"success": False, "error": "Employee not found"}

        manager = await self.store.get(EMPLOYEES, raw["managerId"]) if raw.get("managerId") else None
        reports, memberships = await asyncio.gather(
            self.store.find_many(EMPLOYEES, Equals("managerId", raw["id"])),
            self.store.find_many(TEAM_MEMBERS, Equals("employeeId", raw["id"])),
        )
        teams = (
            await self.store.find_many(TEAMS, In("id", tuple(m["teamId"] for m in memberships)))
            if memberships
            else []
        )

        return {
            "success": True,
            "employee": {
                "id": raw["id"],
                "first_name": raw.get("firstName"),
                "last_name": raw.get("lastName"),
                "email": raw.get("email"),
                "title": raw.get("title"),
                "department": raw.get("department"),
                "status": raw.get("status"),
                "phone": raw.get("phone"),
                "hire_date": raw.get("hireDate"),
                "manager": (
                    {"id": manager["id"], "name": _name(manager), "title": manager.get("title")}
                    if manager
                    else None
                ),
                "direct_reports": [
                    {"id": r["id"], "name": _name(r), "title": r.get("title"), "department": r.get("department")}
                    for r in reports
                ],
                "teams": [{"id": t["id"], "name": t.get("name"), "description": t.get("description")} for t in teams],
            },
        }

    async def get_org_chart(self, start_from_employee_id: str = "", depth: int = 3) -> dict[str, Any]:
        start = start_from_employee_id.strip() or None
        forest = await self.org_chart.get_org_chart(start_from=start, depth=depth)
        if start and not forest:
            return {"success": False, "error": "Employee not found"}
        return {"success": True, "org_chart": forest[0] if start else forest}

    async def search_teams(
        self,
        query: str = "",
        team_lead_id: str = "",
        parent_team_id: str = "",
        limit: int = DEFAULT_LIMIT,
    ) -> dict[str, Any]:
        where = combine(
            build_team_predicate(query) if query.strip() else None,
            Equals("teamLeadId", team_lead_id.strip()) if team_lead_id.strip() else None,
            Equals("parentTeamId", parent_team_id.strip()) if parent_team_id.strip() else None,
        )
        rows = await self.store.find_many(TEAMS, where, order_by="name")
        ranked = rank(rows, query, TEAM_RULES) if query.strip() else [(r, 0) for r in rows]
        summaries = await self.teams.scored_summaries(ranked[: max(limit, 0)])

        return {
            "success": True,
            "count": len(summaries),
            "teams": [
                {
                    "id": s.id,
                    "name": s.name,
                    "description": s.description,
                    "team_lead": (
                        f"{s.team_lead.first_name} {s.team_lead.last_name} ({s.team_lead.title})"
                        if s.team_lead
                        else None
                    ),
                    "parent_team": s.parent_team.name if s.parent_team else None,
                    "members_count": s.member_count,
                    "sub_teams_count": s.sub_team_count,
                }
                for s in summaries
            ],
        }

    async def get_team(self, team_id: str, include_members: bool = True, include_sub_teams: bool = True) -> dict[str, Any]:
        team = await self.teams.get_team(team_id)
        if team is None:
            return {"success": False, "error": "Team not found"}

        data = team.model_dump(exclude={"members", "sub_teams"})
        if include_members:
            data["members"] = [m.model_dump() for m in team.members]
        if include_sub_teams:
            data["sub_teams"] = [s.model_dump() for s in team.sub_teams]
        return {"success": True, "team": data}

    async def get_departments(self, include_inactive: bool = False) -> dict[str, Any]:
        rows = await self.store.find_many(EMPLOYEES, status=None if include_inactive else "active")
        counts: dict[str, int] = {}
        for row in rows:
            if row.get("department"):
                counts[row["department"]] = counts.get(row["department"], 0) + 1
        return {
            "success": True,
            "departments": [{"name": name, "employee_count": counts[name]} for name in sorted(counts)],
        }

    async def get_employees_by_department(self, department: str, status: str = "active") -> dict[str, Any]:
        rows = await self.store.find_many(EMPLOYEES, _equals_ci("department", department), status=status)
        rows = [r for r in rows if (r.get("department") or "").lower() == department.lower()]
        rows.sort(key=lambda r: ((r.get("title") or "").lower(), (r.get("firstName") or "").lower()))

        return {
            "success": True,
            "department": department,
            "count": len(rows),
            "employees": [
                {
                    "id": r["id"],
                    "name": _name(r),
                    "title": r.get("title"),
                    "email": r.get("email"),
                    "hire_date": r.get("hireDate"),
                }
                for r in rows
            ],
        }

    async def get_company_stats(self, top_departments_limit: int = 5) -> dict[str, Any]:
        total, active, total_teams, active_rows = await asyncio.gather(
            self.store.count(EMPLOYEES),
            self.store.count(EMPLOYEES, status="active"),
            self.store.count(TEAMS),
            self.store.find_many(EMPLOYEES, status="active"),
        )

        counts: dict[str, int] = {}
        for row in active_rows:
            if row.get("department"):
                counts[row["department"]] = counts.get(row["department"], 0) + 1
        top = sorted(counts.items(), key=lambda item: (-item[1], item[0]))[: max(top_departments_limit, 0)]

        cutoff = (datetime.now(timezone.utc) - timedelta(days=91)).date().isoformat()
        recent_hires = sum(1 for r in active_rows if (r.get("hireDate") or "")[:10] >= cutoff)

        return {
            "success": True,
            "stats": {
                "total_employees": total,
                "active_employees": active,
                "inactive_employees": total - active,
                "total_teams": total_teams,
                "recent_hires_3_months": recent_hires,
                "top_departments": [{"department": d, "employee_count": c} for d, c in top],
            },
        }


chat_tools = ChatTools()
