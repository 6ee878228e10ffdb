"""Name-aware expansion of free-text queries into structural predicates."""

from __future__ import annotations

from app.core.query import AllOf, AnyOf, Contains

EMPLOYEE_SEARCH_FIELDS: tuple[str, ...] = ("firstName", "lastName", "email", "title", "department")
TEAM_SEARCH_FIELDS: tuple[str, ...] = ("name", "description")


def split_terms(query: str) -> list[str]:
    return query.split()


def base_conditions(query: str, fields: tuple[str, ...]) -> tuple[Contains, ...]:
    q = query.strip()
    if not q:
        return ()
    return tuple(Contains(field, q) for field in fields)


def full_name_conditions(query: str) -> tuple[AllOf, ...]:
    """First/last name pairs for multi-term queries, in both orders."""
    terms = split_terms(query)
    if len(terms) < 2:
        return ()

    first_term = terms[0]
    last_term = " ".join(terms[1:])
    return (
        AllOf((Contains("firstName", first_term), Contains("lastName", last_term))),
        AllOf((Contains("firstName", last_term), Contains("lastName", first_term))),
    )


def build_employee_predicate(query: str) -> AnyOf:
    return AnyOf(base_conditions(query, EMPLOYEE_SEARCH_FIELDS) + full_name_conditions(query))


def build_team_predicate(query: str) -> AnyOf:
    return AnyOf(base_conditions(query, TEAM_SEARCH_FIELDS))
