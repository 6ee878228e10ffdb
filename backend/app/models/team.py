"""Team models."""

from __future__ import annotations

from pydantic import BaseModel

from app.models.employee import PersonRef


class ParentTeamRef(BaseModel):
    id: str
    name: str | None = None
    description: str | None = None


class SubTeam(BaseModel):
    id: str
    name: str | None = None
    description: str | None = None
    member_count: int = 0


class TeamMemberInfo(PersonRef):
    joined_at: str | None = None


class TeamSummary(BaseModel):
    id: str
    name: str
    description: str | None = None
    team_lead_id: str | None = None
    parent_team_id: str | None = None
    team_lead: PersonRef | None = None
    parent_team: ParentTeamRef | None = None
    member_count: int = 0
    sub_team_count: int = 0


class ScoredTeam(TeamSummary):
    relevance_score: int = 0


class TeamDetail(TeamSummary):
    sub_teams: list[SubTeam] = []
    members: list[TeamMemberInfo] = []


class TeamMembersRequest(BaseModel):
    employee_ids: list[str]


class TeamMembersResponse(BaseModel):
    success: bool
    added_count: int | None = None
    removed_count: int | None = None
