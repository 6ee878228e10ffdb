from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import Any

from app.services.hierarchy import Node, build_forest, flatten_to_flow
from app.services.record_store import EMPLOYEES, RecordStore, record_store

logger = logging.getLogger(__name__)


def _employee_node(raw: dict[str, Any]) -> Node:
    first = raw.get("firstName") or ""
    last = raw.get("lastName") or ""
    return {
        "id": raw["id"],
        "first_name": first,
        "last_name": last,
        "name": f"{first} {last}".strip(),
        "title": raw.get("title"),
        "department": raw.get("department"),
        "email": raw.get("email"),
    }


def _flow_label(node: Node) -> dict[str, Any]:
    return {
        "id": node["id"],
        "first_name": node.get("first_name"),
        "last_name": node.get("last_name"),
        "title": node.get("title"),
        "department": node.get("department"),
    }


def _attach_report_counts(forest: list[Node], counts: dict[str, int]) -> None:
    for node in forest:
        node["direct_reports_count"] = counts.get(node["id"], 0)
        _attach_report_counts(node["children"], counts)


class OrgChartService:
    def __init__(self, store: RecordStore | None = None) -> None:
        self.store = store if store is not None else record_store

    async def get_org_chart(self, start_from: str | None = None, depth: int | None = None) -> list[Node]:
        rows = await self.store.find_many(EMPLOYEES, status="active", order_by="firstName")
        forest = build_forest(rows, "managerId", _employee_node, root_id=start_from or None, max_depth=depth)
        counts: dict[str, int] = {}
        for row in rows:
            if row.get("managerId"):
                counts[row["managerId"]] = counts.get(row["managerId"], 0) + 1
        _attach_report_counts(forest, counts)
        return forest

    async def get_flow(
        self,
        expanded: Iterable[str] = (),
        start_from: str | None = None,
        depth: int | None = None,
    ) -> dict[str, list[dict[str, Any]]]:
        forest = await self.get_org_chart(start_from, depth)
        return flatten_to_flow(forest, expanded, _flow_label)


org_chart_service = OrgChartService()
