"""Response models for the global directory search."""

from __future__ import annotations

from pydantic import BaseModel

from app.models.employee import ScoredEmployee
from app.models.team import ScoredTeam


class EmployeeResults(BaseModel):
    items: list[ScoredEmployee] = []
    total: int = 0


class TeamResults(BaseModel):
    items: list[ScoredTeam] = []
    total: int = 0


class SearchPagination(BaseModel):
    page: int
    limit: int
    total_results: int
    total_pages: int | None = None
    has_more: bool | None = None


class SearchResponse(BaseModel):
    employees: EmployeeResults
    teams: TeamResults
    pagination: SearchPagination
