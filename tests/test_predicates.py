"""Unit tests for predicate building and the predicate compiler."""

from __future__ import annotations

import datetime as dt

import pytest

from fluentsql.compile.predicate_compiler import PredicateCompiler
from fluentsql.errors import InvalidOperatorError, ValidationError
from fluentsql.query.builders import SelectQuery
from fluentsql.query.predicates import PredicateBuilder
from fluentsql.schema.predicates import Condition, ConditionGroup, Conjunction, Operator
from tests.fixtures import assert_contiguous


def _where(ctx, build):
    q = SelectQuery(ctx).from_("t")
    build(q)
    return q.raw()


# ---------------------------------------------------------------------------
# Operator parsing
# ---------------------------------------------------------------------------


class TestOperatorParse:
    @pytest.mark.parametrize(
        "text, expected",
        [
            ("=", Operator.EQ),
            ("<>", Operator.NE),
            ("!=", Operator.NE),
            ("like", Operator.LIKE),
            ("not   ilike", Operator.NOT_ILIKE),
            (" is not null ", Operator.IS_NOT_NULL),
            (Operator.GTE, Operator.GTE),
        ],
    )
    def test_accepted(self, text, expected):
        assert Operator.parse(text) is expected

    @pytest.mark.parametrize("text", ["==", "REGEXP", "", 5])
    def test_rejected(self, text):
        with pytest.raises(InvalidOperatorError) as exc_info:
            Operator.parse(text)
        assert exc_info.value.code == "INVALID_OPERATOR"
        assert "=" in exc_info.value.details["allowed_operators"]

    def test_properties(self):
        assert not Operator.IS_NULL.takes_value
        assert Operator.NOT_IN.takes_list
        assert Operator.NOT_ILIKE.is_pattern
        assert not Operator.EQ.is_pattern


# ---------------------------------------------------------------------------
# Canonicalization
# ---------------------------------------------------------------------------


class TestNullHandling:
    def test_equals_none_is_null(self, pg):
        r = _where(pg, lambda q: q.where("deleted_at", None))
        assert r.sql == 'SELECT * FROM "t" WHERE "deleted_at" IS NULL'
        assert r.params == []

    def test_not_equals_none_is_not_null(self, pg):
        r = _where(pg, lambda q: q.where("deleted_at", "<>", None))
        assert r.sql.endswith('WHERE "deleted_at" IS NOT NULL')

    def test_two_argument_null_operator(self, pg):
        r = _where(pg, lambda q: q.where("a", 1).or_where("deleted_at", "is not null"))
        assert r.sql.endswith('WHERE "a" = $1 OR "deleted_at" IS NOT NULL')
        assert r.params == [1]

    def test_null_sugar(self, pg):
        r = _where(pg, lambda q: q.where_null("a").or_where_not_null("b"))
        assert r.sql.endswith('WHERE "a" IS NULL OR "b" IS NOT NULL')

    def test_ordering_operator_rejects_none(self, pg):
        with pytest.raises(ValidationError) as exc_info:
            SelectQuery(pg).from_("t").where("age", ">", None)
        assert exc_info.value.code == "INVALID_VALUE"


class TestMembership:
    def test_empty_in_is_always_false(self, pg):
        r = _where(pg, lambda q: q.where_in("id", []))
        assert r.sql == 'SELECT * FROM "t" WHERE 1 = 0'
        assert r.params == []

    def test_empty_not_in_is_always_true(self, pg):
        r = _where(pg, lambda q: q.where_not_in("id", []))
        assert r.sql == 'SELECT * FROM "t" WHERE 1 = 1'

    def test_empty_in_keeps_numbering(self, pg):
        r = _where(pg, lambda q: q.where("a", 1).where_in("id", []).where("b", 2))
        assert r.sql.endswith('WHERE "a" = $1 AND 1 = 0 AND "b" = $2')
        assert_contiguous(r)

    def test_in_accepts_tuple_and_set(self, pg):
        r = _where(pg, lambda q: q.where_in("a", (1, 2)).or_where_not_in("b", {3, 1}))
        assert r.sql.endswith('WHERE "a" IN ($1, $2) OR "b" NOT IN ($3, $4)')
        assert r.params == [1, 2, 1, 3]

    def test_in_via_operator_string(self, pg):
        r = _where(pg, lambda q: q.where("status", "in", ["a", "b"]))
        assert r.sql.endswith('WHERE "status" IN ($1, $2)')

    def test_in_requires_a_list(self, pg):
        with pytest.raises(ValidationError):
            SelectQuery(pg).from_("t").where("id", "IN", 5)


class TestPatterns:
    def test_postgres_native_ilike(self, pg):
        r = _where(pg, lambda q: q.where_ilike("name", "%ada%").where_not_like("name", "x%"))
        assert r.sql.endswith('WHERE "name" ILIKE $1 AND "name" NOT LIKE $2')
        assert r.params == ["%ada%", "x%"]

    def test_sqlite_emulates_ilike(self, sq):
        r = _where(sq, lambda q: q.where_ilike("name", "%ada%").or_where_not_ilike("email", "%x"))
        assert r.sql.endswith(
            'WHERE LOWER("name") LIKE LOWER(?) OR LOWER("email") NOT LIKE LOWER(?)'
        )
        assert r.params == ["%ada%", "%x"]

    def test_sqlite_plain_like(self, sq):
        r = _where(sq, lambda q: q.where_like("name", "A%"))
        assert r.sql.endswith('WHERE "name" LIKE ?')


class TestBetween:
    def test_between(self, pg):
        r = _where(pg, lambda q: q.where("a", 0).where_between("age", 18, 65))
        assert r.sql.endswith('WHERE "a" = $1 AND "age" BETWEEN $2 AND $3')
        assert r.params == [0, 18, 65]

    def test_not_between_with_dates(self, sq):
        start, end = dt.date(2024, 1, 1), dt.date(2024, 12, 31)
        r = _where(sq, lambda q: q.or_where_not_between("created", start, end))
        assert r.sql.endswith('WHERE "created" NOT BETWEEN ? AND ?')
        assert r.params == [start, end]


class TestRaw:
    def test_markers_are_renumbered(self, pg):
        r = _where(pg, lambda q: q.where("a", 1).where_raw("b > ? AND c < ?", [2, 3]))
        assert r.sql.endswith('WHERE "a" = $1 AND b > $2 AND c < $3')
        assert r.params == [1, 2, 3]

    def test_raw_without_params(self, pg):
        r = _where(pg, lambda q: q.or_where_raw("archived IS FALSE"))
        assert r.sql.endswith("WHERE archived IS FALSE")

    def test_marker_count_mismatch(self, pg):
        with pytest.raises(ValidationError) as exc_info:
            SelectQuery(pg).from_("t").where_raw("a = ? AND b = ?", [1])
        assert exc_info.value.code == "PARAM_COUNT_MISMATCH"

    def test_raw_fragment_is_checked(self, pg):
        with pytest.raises(ValidationError):
            SelectQuery(pg).from_("t").where_raw("1 = 1; DELETE FROM t")

    def test_raw_operator_cannot_be_passed_directly(self, pg):
        with pytest.raises(ValidationError):
            SelectQuery(pg).from_("t").where("a", "RAW", "x")


# ---------------------------------------------------------------------------
# Tree shape
# ---------------------------------------------------------------------------


class TestFlattening:
    def test_and_nodes_come_before_or_nodes(self, pg):
        r = _where(pg, lambda q: q.where("a", 1).or_where("b", 3).where("c", 2))
        assert r.sql.endswith('WHERE "a" = $1 AND "c" = $2 OR "b" = $3')
        assert r.params == [1, 2, 3]
        assert_contiguous(r)

    def test_deep_nesting(self, pg):
        r = _where(
            pg,
            lambda q: q.where(
                lambda g: g.where("a", 1).or_where(
                    lambda h: h.where("b", 2).where("c", 3)
                )
            ),
        )
        assert r.sql.endswith('WHERE ("a" = $1 OR ("b" = $2 AND "c" = $3))')
        assert r.params == [1, 2, 3]

    def test_empty_callback_group_is_dropped(self, pg):
        r = _where(pg, lambda q: q.where("a", 1).where(lambda g: None).or_where(lambda g: g))
        assert r.sql.endswith('WHERE "a" = $1')

    def test_only_or_nodes(self, pg):
        r = _where(pg, lambda q: q.or_where("a", 1).or_where("b", 2))
        assert r.sql.endswith('WHERE "a" = $1 OR "b" = $2')

    def test_no_conditions_omit_where(self, pg):
        assert "WHERE" not in _where(pg, lambda q: None).sql


class TestValueDomain:
    def test_object_value_is_rejected(self, pg):
        with pytest.raises(ValidationError) as exc_info:
            SelectQuery(pg).from_("t").where("a", object())
        assert exc_info.value.code == "INVALID_VALUE"

    def test_missing_value(self, pg):
        with pytest.raises(ValidationError) as exc_info:
            SelectQuery(pg).from_("t").where("a")
        assert exc_info.value.code == "MISSING_VALUE"

    def test_bad_operator(self, pg):
        with pytest.raises(InvalidOperatorError):
            SelectQuery(pg).from_("t").where("a", "===", 1)

    def test_bad_column(self, pg):
        with pytest.raises(ValidationError):
            SelectQuery(pg).from_("t").where("a; drop", 1)


# ---------------------------------------------------------------------------
# Compiler used directly
# ---------------------------------------------------------------------------


class TestPredicateCompiler:
    def test_offset_shifts_numbering(self, pg):
        group = PredicateBuilder().where("a", 1).where_in("b", [2, 3]).group
        sql, params = PredicateCompiler(pg).compile(group, offset=4)
        assert sql == '"a" = $5 AND "b" IN ($6, $7)'
        assert params == [1, 2, 3]

    def test_empty_group(self, pg):
        assert PredicateCompiler(pg).compile(ConditionGroup()) == ("", [])

    def test_nested_empty_groups_are_empty(self):
        group = ConditionGroup(nodes=[ConditionGroup(nodes=[ConditionGroup()])])
        assert group.is_empty()

    def test_hand_built_tree(self, pg):
        group = ConditionGroup(
            nodes=[
                Condition(column="x", operator=Operator.GT, value=10),
                ConditionGroup(
                    nodes=[
                        Condition(column="y", operator=Operator.IS_NULL),
                        Condition(
                            column="z",
                            operator=Operator.EQ,
                            value="q",
                            conjunction=Conjunction.OR,
                        ),
                    ],
                    conjunction=Conjunction.OR,
                ),
            ]
        )
        sql, params = PredicateCompiler(pg).compile(group)
        assert sql == '"x" > $1 OR ("y" IS NULL OR "z" = $2)'
        assert params == [10, "q"]


def test_mixed_type_set_for_in_is_rejected(pg):
    with pytest.raises(ValidationError) as exc_info:
        SelectQuery(pg).from_("t").where_in("a", {1, "a"})
    assert exc_info.value.code == "INVALID_VALUE"
