from __future__ import annotations

from app.core.query import AllOf, AnyOf, Contains, Equals, In, IsNull, build_query, combine


class TestRender:
    def test_select_all_without_predicate(self):
        query, params = build_query(None)
        assert query == "SELECT * FROM c"
        assert params == []

    def test_contains_is_case_insensitive_and_parameterised(self):
        query, params = build_query(Contains("firstName", "ali"))
        assert query == 'SELECT * FROM c WHERE CONTAINS(c["firstName"], @p0, true)'
        assert params == [{"name": "@p0", "value": "ali"}]

    def test_nested_conditions_number_parameters_in_order(self):
        predicate = AnyOf(
            (
                Contains("email", "doe"),
                AllOf((Contains("firstName", "john"), Contains("lastName", "doe"))),
            )
        )
        query, params = build_query(predicate)
        assert query == (
            'SELECT * FROM c WHERE (CONTAINS(c["email"], @p0, true) OR '
            '(CONTAINS(c["firstName"], @p1, true) AND CONTAINS(c["lastName"], @p2, true)))'
        )
        assert [p["value"] for p in params] == ["doe", "john", "doe"]

    def test_empty_disjunction_renders_false(self):
        query, _ = build_query(AnyOf(()))
        assert query.endswith("WHERE false")

    def test_empty_conjunction_renders_true(self):
        query, _ = build_query(AllOf(()))
        assert query.endswith("WHERE true")

    def test_in_and_is_null(self):
        query, params = build_query(AllOf((In("id", ("a", "b")), IsNull("managerId"))))
        assert 'ARRAY_CONTAINS(@p0, c["id"])' in query
        assert 'NOT IS_DEFINED(c["managerId"]) OR IS_NULL(c["managerId"])' in query
        assert params[0]["value"] == ["a", "b"]

    def test_order_offset_limit(self):
        query, params = build_query(
            Equals("status", "active"), order_by="lastName", descending=True, offset=40, limit=20
        )
        assert query.endswith('ORDER BY c["lastName"] DESC OFFSET @p1 LIMIT @p2')
        assert [p["value"] for p in params] == ["active", 40, 20]

    def test_count_select(self):
        query, _ = build_query(None, select="VALUE COUNT(1)")
        assert query == "SELECT VALUE COUNT(1) FROM c"


class TestMatches:
    def test_contains_ignores_case(self):
        assert Contains("title", "ENGINEER").matches({"title": "Senior Engineer"})

    def test_contains_missing_field_is_false(self):
        assert not Contains("title", "x").matches({})
        assert not Contains("title", "x").matches({"title": None})

    def test_is_null_covers_missing_and_none(self):
        assert IsNull("managerId").matches({})
        assert IsNull("managerId").matches({"managerId": None})
        assert not IsNull("managerId").matches({"managerId": "m1"})

    def test_empty_any_of_matches_nothing(self):
        assert not AnyOf(()).matches({"name": "x"})

    def test_empty_all_of_matches_everything(self):
        assert AllOf(()).matches({})

    def test_in(self):
        assert In("id", ("a", "b")).matches({"id": "b"})
        assert not In("id", ("a", "b")).matches({"id": "c"})


class TestCombine:
    def test_skips_none(self):
        assert combine(None, None) is None

    def test_single_predicate_is_returned_unchanged(self):
        predicate = Equals("status", "active")
        assert combine(None, predicate) is predicate

    def test_several_predicates_are_anded(self):
        a, b = Equals("status", "active"), Equals("department", "Finance")
        assert combine(a, None, b) == AllOf((a, b))
