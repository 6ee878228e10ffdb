"""Global directory search across employees and teams.

One pass per request: expand the query into a structural predicate, fetch
every matching record, score and stable-sort them, then either truncate
(combined view) or paginate (single entity type).
"""

from __future__ import annotations

import asyncio
import logging
from typing import Literal

from app.core.query import In
from app.models.search import EmployeeResults, SearchPagination, SearchResponse, TeamResults
from app.services import pagination
from app.services.employee_service import to_scored
from app.services.query_expander import build_employee_predicate, build_team_predicate
from app.services.record_store import EMPLOYEES, TEAMS, RecordStore, record_store
from app.services.relevance import EMPLOYEE_RULES, TEAM_RULES, rank
from app.services.team_service import TeamService

logger = logging.getLogger(__name__)

SearchType = Literal["all", "employees", "teams"]

COMBINED_VIEW_LIMIT = 10


class SearchService:
    def __init__(self, store: RecordStore | None = None) -> None:
        self.store = store if store is not None else record_store
        self.teams = TeamService(store=self.store)

    async def _search_employees(self, query: str, search_type: SearchType, page: int, limit: int) -> EmployeeResults:
        # Only active employees are ever searchable.
        rows = await self.store.find_many(EMPLOYEES, build_employee_predicate(query), status="active")
        ranked = rank(rows, query, EMPLOYEE_RULES)
        total = len(ranked)

        if search_type == "all":
            ranked = ranked[:COMBINED_VIEW_LIMIT]
        else:
            ranked = pagination.paginate(ranked, page, limit)

        manager_ids = tuple(sorted({r["managerId"] for r, _ in ranked if r.get("managerId")}))
        managers: dict[str, dict] = {}
        if manager_ids:
            managers = {
                m["id"]: m for m in await self.store.find_many(EMPLOYEES, In("id", manager_ids))
            }

        items = [to_scored(row, score, managers.get(row.get("managerId") or "")) for row, score in ranked]
        return EmployeeResults(items=items, total=total)

    async def _search_teams(self, query: str, search_type: SearchType, page: int, limit: int) -> TeamResults:
        rows = await self.store.find_many(TEAMS, build_team_predicate(query))
        ranked = rank(rows, query, TEAM_RULES)
        total = len(ranked)

        if search_type == "all":
            ranked = ranked[:COMBINED_VIEW_LIMIT]
        else:
            ranked = pagination.paginate(ranked, page, limit)

        return TeamResults(items=await self.teams.scored_summaries(ranked), total=total)

    async def search(
        self,
        query: str,
        search_type: SearchType = "all",
        page: int = 1,
        limit: int = 20,
    ) -> SearchResponse:
        if not query.strip():
            return SearchResponse(
                employees=EmployeeResults(),
                teams=TeamResults(),
                pagination=SearchPagination(page=page, limit=limit, total_results=0),
            )

        employees = EmployeeResults()
        teams = TeamResults()
        lookups = []
        if search_type in ("all", "employees"):
            lookups.append(self._search_employees(query, search_type, page, limit))
        if search_type in ("all", "teams"):
            lookups.append(self._search_teams(query, search_type, page, limit))

        for result in await asyncio.gather(*lookups):
            if isinstance(result, EmployeeResults):
                employees = result
            else:
                teams = result

        meta = SearchPagination(page=page, limit=limit, total_results=employees.total + teams.total)
        if search_type != "all":
            total = employees.total if search_type == "employees" else teams.total
            meta.total_pages = pagination.total_pages(total, limit)
            meta.has_more = pagination.has_more(page, total, limit)

        logger.info(
            "Search q=%r type=%s: %d employees, %d teams",
            query,
            search_type,
            employees.total,
            teams.total,
        )
        return SearchResponse(employees=employees, teams=teams, pagination=meta)


search_service = SearchService()
