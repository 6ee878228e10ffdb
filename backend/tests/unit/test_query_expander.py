from __future__ import annotations

from app.core.query import AllOf, AnyOf, Contains
from app.services.query_expander import (
    EMPLOYEE_SEARCH_FIELDS,
    TEAM_SEARCH_FIELDS,
    build_employee_predicate,
    build_team_predicate,
    full_name_conditions,
)

JOHN_DOE = {
    "firstName": "John",
    "lastName": "Doe",
    "email": "jd@echelon.com",
    "title": "Engineer",
    "department": "Engineering",
}


def _compound(predicate: AnyOf) -> list[AllOf]:
    return [c for c in predicate.conditions if isinstance(c, AllOf)]


def test_empty_query_matches_nothing():
    for query in ("", "   ", "\t\n"):
        predicate = build_employee_predicate(query)
        assert predicate.conditions == ()
        assert not predicate.matches(JOHN_DOE)


def test_base_conditions_use_trimmed_full_query():
    predicate = build_employee_predicate("  alice  ")
    assert predicate.conditions == tuple(Contains(f, "alice") for f in EMPLOYEE_SEARCH_FIELDS)


def test_single_term_has_no_compound_conditions():
    for query in ("john", "  doe ", "engineering"):
        assert _compound(build_employee_predicate(query)) == []


def test_two_terms_add_both_name_orders():
    assert full_name_conditions("john doe") == (
        AllOf((Contains("firstName", "john"), Contains("lastName", "doe"))),
        AllOf((Contains("firstName", "doe"), Contains("lastName", "john"))),
    )


def test_reversed_query_produces_same_compound_pair():
    forward = set(full_name_conditions("john doe"))
    backward = set(full_name_conditions("doe john"))
    assert forward == backward


def test_full_name_matches_in_either_order():
    assert build_employee_predicate("john doe").matches(JOHN_DOE)
    assert build_employee_predicate("doe john").matches(JOHN_DOE)
    assert build_employee_predicate("JOHN DOE").matches(JOHN_DOE)


def test_more_than_two_terms_join_the_tail():
    (first, _) = full_name_conditions("mary ann van der berg")
    assert first == AllOf((Contains("firstName", "mary"), Contains("lastName", "ann van der berg")))


def test_unrelated_record_does_not_match():
    other = {**JOHN_DOE, "firstName": "Jane", "lastName": "Smith", "email": "js@echelon.com"}
    assert not build_employee_predicate("john doe").matches(other)


def test_team_predicate_uses_team_fields_only():
    predicate = build_team_predicate("platform")
    assert predicate.conditions == tuple(Contains(f, "platform") for f in TEAM_SEARCH_FIELDS)
    assert _compound(build_team_predicate("platform team")) == []
