"""Structural predicates over store documents.

A predicate can be rendered to a parameterised Cosmos DB SQL condition
(``c.<field>`` references) or evaluated in memory against a plain dict.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any


class ParamBag:
    """Collects ``@pN`` query parameters while a predicate is rendered."""

    def __init__(self) -> None:
        self.parameters: list[dict[str, Any]] = []

    def add(self, value: Any) -> str:
        name = f"@p{len(self.parameters)}"
        self.parameters.append({"name": name, "value": value})
        return name


def _field_ref(field: str) -> str:
    return f'c["{field}"]'


def _text(value: Any) -> str:
    if value is None:
        return ""
    return str(value)


@dataclass(frozen=True)
class Contains:
    """Case-insensitive substring containment."""

    field: str
    value: str

    def render(self, params: ParamBag) -> str:
        return f"CONTAINS({_field_ref(self.field)}, {params.add(self.value)}, true)"

    def matches(self, record: Mapping[str, Any]) -> bool:
        value = record.get(self.field)
        if value is None:
            return False
        return self.value.lower() in _text(value).lower()


@dataclass(frozen=True)
class Equals:
    field: str
    value: Any

    def render(self, params: ParamBag) -> str:
        return f"{_field_ref(self.field)} = {params.add(self.value)}"

    def matches(self, record: Mapping[str, Any]) -> bool:
        return record.get(self.field) == self.value


@dataclass(frozen=True)
class In:
    field: str
    values: tuple[Any, ...]

    def render(self, params: ParamBag) -> str:
        return f"ARRAY_CONTAINS({params.add(list(self.values))}, {_field_ref(self.field)})"

    def matches(self, record: Mapping[str, Any]) -> bool:
        return record.get(self.field) in self.values


@dataclass(frozen=True)
class IsNull:
    """Field is missing or null."""

    field: str

    def render(self, params: ParamBag) -> str:
        ref = _field_ref(self.field)
        return f"(NOT IS_DEFINED({ref}) OR IS_NULL({ref}))"

    def matches(self, record: Mapping[str, Any]) -> bool:
        return record.get(self.field) is None


@dataclass(frozen=True)
class AllOf:
    conditions: tuple[Predicate, ...] = ()

    def render(self, params: ParamBag) -> str:
        if not self.conditions:
            return "true"
        return "(" + " AND ".join(c.render(params) for c in self.conditions) + ")"

    def matches(self, record: Mapping[str, Any]) -> bool:
        return all(c.matches(record) for c in self.conditions)


@dataclass(frozen=True)
class AnyOf:
    conditions: tuple[Predicate, ...] = ()

    def render(self, params: ParamBag) -> str:
        # An empty disjunction matches nothing.
        if not self.conditions:
            return "false"
        return "(" + " OR ".join(c.render(params) for c in self.conditions) + ")"

    def matches(self, record: Mapping[str, Any]) -> bool:
        return any(c.matches(record) for c in self.conditions)


Predicate = Contains | Equals | In | IsNull | AllOf | AnyOf


def combine(*predicates: Predicate | None) -> Predicate | None:
    """AND together the given predicates, skipping ``None``."""
    present = tuple(p for p in predicates if p is not None)
    if not present:
        return None
    if len(present) == 1:
        return present[0]
    return AllOf(present)


def build_query(
    predicate: Predicate | None,
    *,
    select: str = "*",
    order_by: str | None = None,
    descending: bool = False,
    offset: int | None = None,
    limit: int | None = None,
) -> tuple[str, list[dict[str, Any]]]:
    params = ParamBag()
    query = f"SELECT {select} FROM c"

    if predicate is not None:
        query += f" WHERE {predicate.render(params)}"

    if order_by:
        query += f" ORDER BY {_field_ref(order_by)} {'DESC' if descending else 'ASC'}"

    if limit is not None:
        query += f" OFFSET {params.add(max(offset or 0, 0))} LIMIT {params.add(max(limit, 0))}"

    return query, params.parameters
