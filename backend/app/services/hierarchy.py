"""Tree building for self-referencing records (reporting lines, team nesting).

Parent links come from user-edited data and may contain cycles, so every
walk keeps a visited set and emits each record at most once.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping
from typing import Any

VIRTUAL_ROOT_ID = "virtual-root"

Node = dict[str, Any]


def _children_index(records: list[Mapping[str, Any]], parent_key: str) -> dict[str | None, list[Mapping[str, Any]]]:
    known = {r["id"] for r in records}
    index: dict[str | None, list[Mapping[str, Any]]] = {}
    for record in records:
        parent = record.get(parent_key)
        if parent not in known or parent == record["id"]:
            parent = None
        index.setdefault(parent, []).append(record)
    return index


def build_forest(
    records: Iterable[Mapping[str, Any]],
    parent_key: str,
    to_node: Callable[[Mapping[str, Any]], Node],
    *,
    root_id: str | None = None,
    max_depth: int | None = None,
) -> list[Node]:
    """Build nested ``{..., "children": [...]}`` nodes.

    Without ``root_id`` the roots are records whose parent is empty, unknown
    or themselves. Records only reachable through a cycle become extra roots.
    ``max_depth`` counts levels below the roots (0 keeps only the roots).
    """
    rows = list(records)
    by_id = {r["id"]: r for r in rows}
    index = _children_index(rows, parent_key)
    visited: set[str] = set()

    def walk(record: Mapping[str, Any], depth: int) -> Node:
        visited.add(record["id"])
        node = to_node(record)
        children: list[Node] = []
        if max_depth is None or depth < max_depth:
            for child in index.get(record["id"], []):
                if child["id"] in visited:
                    continue
                children.append(walk(child, depth + 1))
        node["children"] = children
        return node

    if root_id is not None:
        root = by_id.get(root_id)
        return [walk(root, 0)] if root is not None else []

    roots = list(index.get(None, []))
    reachable: set[str] = set()

    def mark(record: Mapping[str, Any]) -> None:
        stack = [record]
        while stack:
            current = stack.pop()
            if current["id"] in reachable:
                continue
            reachable.add(current["id"])
            stack.extend(index.get(current["id"], []))

    for root in roots:
        mark(root)
    for record in rows:
        if record["id"] not in reachable:
            roots.append(record)
            mark(record)

    return [walk(r, 0) for r in roots if r["id"] not in visited]


def has_cycle(start_id: str, parent_of: Mapping[str, str | None], candidate_parent: str | None) -> bool:
    """Whether making ``candidate_parent`` the parent of ``start_id`` closes a loop."""
    current = candidate_parent
    seen: set[str] = set()
    while current is not None and current not in seen:
        if current == start_id:
            return True
        seen.add(current)
        current = parent_of.get(current)
    return False


def flatten_to_flow(forest: list[Node], expanded: Iterable[str], label: Callable[[Node], dict[str, Any]]) -> dict[str, list[dict[str, Any]]]:
    """Flatten a forest into graph nodes and edges for a client-side layout.

    Children are emitted only for expanded nodes. Several roots are grouped
    under a virtual root that is always expanded.
    """
    expanded_ids = set(expanded)
    nodes: list[dict[str, Any]] = []
    edges: list[dict[str, Any]] = []

    if not forest:
        return {"nodes": nodes, "edges": edges}

    if len(forest) == 1:
        roots = forest
    else:
        roots = [
            {
                "id": VIRTUAL_ROOT_ID,
                "first_name": "Organization",
                "last_name": "",
                "title": "Organization Structure",
                "department": "All Departments",
                "name": "Organization",
                "children": forest,
            }
        ]
        expanded_ids.add(VIRTUAL_ROOT_ID)

    def visit(node: Node, parent_id: str | None) -> None:
        children = node.get("children") or []
        is_expanded = node["id"] in expanded_ids
        nodes.append(
            {
                "id": node["id"],
                "type": "orgChartNode",
                "data": {
                    **label(node),
                    "has_children": bool(children),
                    "is_expanded": is_expanded,
                },
            }
        )
        if parent_id is not None:
            edges.append({"id": f"{parent_id}-{node['id']}", "source": parent_id, "target": node["id"]})
        if children and is_expanded:
            for child in children:
                visit(child, node["id"])

    for root in roots:
        visit(root, None)

    return {"nodes": nodes, "edges": edges}
