"""Relevance scoring for directory search results.

Each entity type has a table of field rules. A rule reads one or more
document fields and awards its exact, starts-with or contains bonus (the
first tier that matches); the bonuses of all rules are summed.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass
from typing import Any, TypeVar

T = TypeVar("T", bound=Mapping[str, Any])


def _text(value: Any) -> str:
    if value is None:
        return ""
    return str(value).lower()


@dataclass(frozen=True)
class FieldRule:
    name: str
    source_fields: tuple[str, ...]
    exact: int = 0
    prefix: int = 0
    contains: int = 0
    extract: Callable[[Mapping[str, Any]], str] | None = None

    def value(self, record: Mapping[str, Any]) -> str:
        if self.extract is not None:
            return self.extract(record).lower()
        return _text(record.get(self.source_fields[0]))

    def score(self, record: Mapping[str, Any], query: str) -> int:
        value = self.value(record)
        if self.exact and value == query:
            return self.exact
        if self.prefix and value.startswith(query):
            return self.prefix
        if self.contains and query in value:
            return self.contains
        return 0


def full_name(record: Mapping[str, Any]) -> str:
    return f"{record.get('firstName') or ''} {record.get('lastName') or ''}"


EMPLOYEE_RULES: tuple[FieldRule, ...] = (
    FieldRule("name", ("firstName", "lastName"), exact=1000, prefix=500, contains=250, extract=full_name),
    FieldRule("title", ("title",), exact=800, prefix=400, contains=200),
    FieldRule("email", ("email",), exact=600, prefix=300, contains=150),
    FieldRule("department", ("department",), contains=100),
)

TEAM_RULES: tuple[FieldRule, ...] = (
    FieldRule("name", ("name",), exact=1000, prefix=500, contains=250),
    FieldRule("description", ("description",), contains=100),
)


def normalize_query(query: str) -> str:
    return " ".join(query.split()).lower()


def score_record(record: Mapping[str, Any], query: str, rules: tuple[FieldRule, ...]) -> int:
    q = normalize_query(query)
    if not q:
        return 0
    return sum(rule.score(record, q) for rule in rules)


def rank(records: Iterable[T], query: str, rules: tuple[FieldRule, ...]) -> list[tuple[T, int]]:
    """Score records and sort them by descending score.

    ``sorted`` is stable, so records with equal scores keep their input order.
    """
    scored = [(record, score_record(record, query, rules)) for record in records]
    return sorted(scored, key=lambda pair: pair[1], reverse=True)


def scored_fields(rules: tuple[FieldRule, ...]) -> set[str]:
    return {
        field
        for rule in rules
        if rule.exact or rule.prefix or rule.contains
        for field in rule.source_fields
    }
