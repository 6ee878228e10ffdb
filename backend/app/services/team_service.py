"""Team directory service: listings, hierarchy and memberships."""

from __future__ import annotations

import asyncio
import logging
import uuid
from datetime import datetime, timezone
from typing import Any

from app.core.query import AllOf, Equals, In
from app.models.auth import DemoUser
from app.models.employee import PersonRef
from app.models.team import ParentTeamRef, ScoredTeam, SubTeam, TeamDetail, TeamMemberInfo, TeamSummary
from app.services.audit_service import AuditService, audit_service
from app.services.employee_service import to_person_ref
from app.services.hierarchy import Node, build_forest
from app.services.query_expander import build_team_predicate
from app.services.record_store import EMPLOYEES, TEAM_MEMBERS, TEAMS, RecordStore, record_store
from app.services.relevance import TEAM_RULES, rank

logger = logging.getLogger(__name__)


class TeamNotFoundError(Exception):
    pass


class TeamMemberError(Exception):
    pass


def _team_node(raw: dict[str, Any]) -> Node:
    return {
        "id": raw["id"],
        "name": raw.get("name"),
        "description": raw.get("description"),
        "team_lead_id": raw.get("teamLeadId"),
    }


class TeamService:
    def __init__(self, store: RecordStore | None = None, audit: AuditService | None = None) -> None:
        self.store = store if store is not None else record_store
        self.audit = audit if audit is not None else audit_service

    async def build_summaries(self, rows: list[dict[str, Any]]) -> list[TeamSummary]:
        """Attach lead, parent and member/sub-team counts to raw team documents."""
        if not rows:
            return []

        team_ids = tuple(r["id"] for r in rows)
        lead_ids = tuple(sorted({r["teamLeadId"] for r in rows if r.get("teamLeadId")}))
        parent_ids = tuple(sorted({r["parentTeamId"] for r in rows if r.get("parentTeamId")}))

        memberships, children, leads, parents = await asyncio.gather(
            self.store.find_many(TEAM_MEMBERS, In("teamId", team_ids)),
            self.store.find_many(TEAMS, In("parentTeamId", team_ids)),
            self.store.find_many(EMPLOYEES, In("id", lead_ids)) if lead_ids else _empty(),
            self.store.find_many(TEAMS, In("id", parent_ids)) if parent_ids else _empty(),
        )

        member_counts: dict[str, int] = {}
        for m in memberships:
            member_counts[m["teamId"]] = member_counts.get(m["teamId"], 0) + 1
        sub_counts: dict[str, int] = {}
        for child in children:
            sub_counts[child["parentTeamId"]] = sub_counts.get(child["parentTeamId"], 0) + 1
        leads_by_id = {lead["id"]: lead for lead in leads}
        parents_by_id = {p["id"]: p for p in parents}

        summaries: list[TeamSummary] = []
        for raw in rows:
            lead = leads_by_id.get(raw.get("teamLeadId") or "")
            parent = parents_by_id.get(raw.get("parentTeamId") or "")
            summaries.append(
                TeamSummary(
                    id=raw["id"],
                    name=raw.get("name") or "",
                    description=raw.get("description"),
                    team_lead_id=raw.get("teamLeadId"),
                    parent_team_id=raw.get("parentTeamId"),
                    team_lead=to_person_ref(lead) if lead else None,
                    parent_team=ParentTeamRef(id=parent["id"], name=parent.get("name")) if parent else None,
                    member_count=member_counts.get(raw["id"], 0),
                    sub_team_count=sub_counts.get(raw["id"], 0),
                )
            )
        return summaries

    async def scored_summaries(self, ranked: list[tuple[dict[str, Any], int]]) -> list[ScoredTeam]:
        summaries = await self.build_summaries([row for row, _ in ranked])
        return [
            ScoredTeam(**summary.model_dump(), relevance_score=score)
            for summary, (_, score) in zip(summaries, ranked, strict=True)
        ]

    async def list_teams(self, search: str = "") -> list[ScoredTeam]:
        if search.strip():
            rows = await self.store.find_many(TEAMS, build_team_predicate(search), order_by="name")
            ranked = rank(rows, search, TEAM_RULES)
        else:
            rows = await self.store.find_many(TEAMS, order_by="name")
            ranked = [(row, 0) for row in rows]
        return await self.scored_summaries(ranked)

    async def get_hierarchy(self) -> list[Node]:
        rows = await self.store.find_many(TEAMS, order_by="name")
        return build_forest(rows, "parentTeamId", _team_node)

    async def get_team_leads(self) -> list[PersonRef]:
        teams = await self.store.find_many(TEAMS)
        lead_ids = tuple(sorted({t["teamLeadId"] for t in teams if t.get("teamLeadId")}))
        if not lead_ids:
            return []
        leads = await self.store.find_many(EMPLOYEES, In("id", lead_ids), order_by="lastName")
        return [to_person_ref(lead) for lead in leads]

    async def get_team(self, team_id: str) -> TeamDetail | None:
        raw = await self.store.get(TEAMS, team_id)
        if not raw:
            return None

        summaries, sub_rows, memberships = await asyncio.gather(
            self.build_summaries([raw]),
            self.store.find_many(TEAMS, Equals("parentTeamId", team_id), order_by="name"),
            self.store.find_many(TEAM_MEMBERS, Equals("teamId", team_id)),
        )

        sub_teams = [
            SubTeam(id=s.id, name=s.name, description=s.description, member_count=s.member_count)
            for s in await self.build_summaries(sub_rows)
        ]

        members: list[TeamMemberInfo] = []
        if memberships:
            joined = {m["employeeId"]: m.get("joinedAt") for m in memberships}
            employees = await self.store.find_many(EMPLOYEES, In("id", tuple(joined)), order_by="lastName")
            members = [
                TeamMemberInfo(**to_person_ref(e).model_dump(), joined_at=joined.get(e["id"])) for e in employees
            ]

        summary = summaries[0]
        if summary.parent_team:
            parent = await self.store.get(TEAMS, summary.parent_team.id)
            if parent:
                summary.parent_team.description = parent.get("description")

        return TeamDetail(**summary.model_dump(), sub_teams=sub_teams, members=members)

    async def add_members(
        self,
        team_id: str,
        employee_ids: list[str],
        actor: DemoUser,
        ip_address: str | None = None,
    ) -> int:
        if not employee_ids:
            raise TeamMemberError("Employee IDs are required")

        team = await self.store.get(TEAMS, team_id)
        if not team:
            raise TeamNotFoundError(f"Team '{team_id}' not found")

        wanted = list(dict.fromkeys(employee_ids))
        employees = await self.store.find_many(EMPLOYEES, In("id", tuple(wanted)))
        if len(employees) != len(wanted):
            raise TeamNotFoundError("One or more employees not found")

        existing = await self.store.find_many(
            TEAM_MEMBERS, AllOf((Equals("teamId", team_id), In("employeeId", tuple(wanted))))
        )
        already = {m["employeeId"] for m in existing}

        now = datetime.now(timezone.utc).isoformat()
        added: list[str] = []
        for employee_id in wanted:
            if employee_id in already:
                continue
            await self.store.create(
                TEAM_MEMBERS,
                {"id": str(uuid.uuid4()), "teamId": team_id, "employeeId": employee_id, "joinedAt": now},
            )
            added.append(employee_id)

        if added:
            await self.audit.create_log(
                entity_type="team",
                entity_id=team_id,
                action="update",
                changes={"addedMembers": added},
                user_id=actor.employee_id,
                ip_address=ip_address,
            )
        return len(added)

    async def remove_members(
        self,
        team_id: str,
        employee_ids: list[str],
        actor: DemoUser,
        ip_address: str | None = None,
    ) -> int:
        if not employee_ids:
            raise TeamMemberError("Employee IDs are required")

        team = await self.store.get(TEAMS, team_id)
        if not team:
            raise TeamNotFoundError(f"Team '{team_id}' not found")

        memberships = await self.store.find_many(
            TEAM_MEMBERS, AllOf((Equals("teamId", team_id), In("employeeId", tuple(employee_ids))))
        )
        for membership in memberships:
            await self.store.delete(TEAM_MEMBERS, membership["id"])

        if memberships:
            await self.audit.create_log(
                entity_type="team",
                entity_id=team_id,
                action="update",
                changes={"removedMembers": [m["employeeId"] for m in memberships]},
                user_id=actor.employee_id,
                ip_address=ip_address,
            )
        return len(memberships)


async def _empty() -> list[dict[str, Any]]:
    return []


team_service = TeamService()
