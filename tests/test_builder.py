"""Tests for ``quarry.query.builder``: the fluent surface."""

from __future__ import annotations

import pytest

from quarry.errors import QueryStateError, ValidationError
from quarry.query.builder import QueryBuilder
from quarry.query.types import QueryType
from quarry.result.mapper import ResultMapper
from tests._support.fakes import RecordingPlatform


@pytest.fixture
def qb() -> QueryBuilder:
    return RecordingPlatform(autocommit=True).query_builder()


class TestSelectQueries:
    def test_select_from_where(self, qb):
        qb.select(["id", "name"]).from_("users").where("id", 5)
        assert qb.get_query() == "SELECT id,name FROM users WHERE id=:id"
        assert qb.get_query_parameters() == {"id": 5}
        compiled = qb.to_sql()
        assert compiled.query == "SELECT id,name FROM users WHERE id=?"
        assert compiled.parameters == ["id"]

    def test_call_order_is_sql_order(self):
        a = RecordingPlatform().query_builder().where("a", 1).or_where("b", 2)
        b = RecordingPlatform().query_builder().or_where("b", 2).where("a", 1)
        assert a.get_query() == " WHERE a=:a OR b=:b"
        assert b.get_query() == " WHERE b=:b AND a=:a"

    def test_select_sets_query_type(self, qb):
        qb.select()
        assert qb.get_query_type() is QueryType.SELECT

    def test_where_family(self, qb):
        (
            qb.select()
            .from_("users")
            .where("age", 18, ">")
            .and_where_not("team", "red")
            .or_where_not("name", "Ann")
            .where_in("id", [1, 2])
            .where_not_in("id", [9])
            .where_between("age", 20, 40)
            .where_not_between("age", 60, 70)
            .where_like("name", "A%")
            .where_not_like("name", "%x")
            .where_null("deleted_at")
            .where_not_null("email")
        )
        assert qb.get_query() == (
            "SELECT * FROM users WHERE age>:age AND team!=:team OR name!=:name"
            " AND id IN (:id) AND id NOT IN (:id)"
            " AND age BETWEEN :age_from AND :age_to AND age NOT BETWEEN :age_from AND :age_to"
            " AND name LIKE :name AND name NOT LIKE :name"
            " AND deleted_at IS NULL AND email IS NOT NULL"
        )

    def test_where_in_expands_markers(self, qb):
        qb.select().from_("t").where_in("id", [1, 2, 3])
        assert qb.to_sql().query == "SELECT * FROM t WHERE id IN (?, ?, ?)"

    def test_where_in_never_inlines_values(self, qb):
        qb.select().from_("t").where_not_in("name", ["x'; DROP TABLE t; --"])
        assert "DROP" not in qb.get_query()

    def test_repeated_column_collides(self, qb):
        qb.select().from_("t").where("status", "open").or_where("status", "held")
        assert qb.get_query_parameters() == {"status": ["open", "held"]}
        assert qb.to_sql().query == "SELECT * FROM t WHERE status=? OR status=?"

    def test_joins_group_order_limit(self, qb):
        (
            qb.select(["u.name", "t.label"])
            .from_("users u")
            .join("teams t", "u.team_id", "t.id")
            .left_join("badges b", "b.user_id", "u.id")
            .right_join("orgs o", "o.id", "t.org_id")
            .group_by(["u.name", "t.label"])
            .order_by("u.name", "DESC")
            .limit(10, 5)
        )
        assert qb.get_query() == (
            "SELECT u.name,t.label FROM users u"
            " INNER JOIN teams t ON u.team_id=t.id"
            " LEFT JOIN badges b ON b.user_id=u.id"
            " RIGHT JOIN orgs o ON o.id=t.org_id"
            " GROUP BY u.name,t.label ORDER BY u.name DESC"
            " LIMIT :_limit OFFSET :_offset"
        )
        assert qb.get_query_parameters() == {"_limit": 10, "_offset": 5}

    def test_order_by_field(self, qb):
        qb.select().from_("t").order_by_field("status", ["b", "a"])
        assert qb.get_query() == (
            "SELECT * FROM t ORDER BY CASE status WHEN :status_field_0 THEN 0 "
            "WHEN :status_field_1 THEN 1 ELSE 2 END"
        )
        assert qb.get_query_parameters() == {"status_field_0": "b", "status_field_1": "a"}

    def test_order_by_field_needs_values(self, qb):
        with pytest.raises(ValidationError):
            qb.order_by_field("status", [])


class TestAggregates:
    def test_count_default(self, qb):
        qb.count().from_("users")
        assert qb.get_query() == "SELECT COUNT(*) AS count FROM users"
        assert qb.get_query_type() is QueryType.SELECT

    def test_aggregates_chain(self, qb):
        qb.select(["team"]).sum("age", "total").avg("age", "mean").min("age").max("age")
        assert qb.get_query() == (
            "SELECT team,SUM(age) AS total,AVG(age) AS mean,MIN(age) AS min,MAX(age) AS max"
        )

    def test_group_concat_binds_separator(self, qb):
        qb.group_concat("name", "names", ";").from_("users")
        assert qb.get_query() == "SELECT group_concat(name, :names_separator) AS names FROM users"
        assert qb.get_query_parameters() == {"names_separator": ";"}

    def test_least(self, qb):
        qb.least(["a", "b"], "low")
        assert qb.get_query() == "SELECT MIN(a,b) AS low"


class TestRawQueries:
    def test_raw_matches_fluent(self):
        raw = RecordingPlatform().query_builder().raw_query("SELECT * FROM t WHERE x=:x").set_param("x", 1)
        fluent = RecordingPlatform().query_builder().select().from_("t").where("x", 1)
        assert raw.to_sql() == fluent.to_sql()
        assert raw.is_raw is True
        assert fluent.is_raw is False

    def test_raw_detects_type(self, qb):
        qb.raw_query("DELETE FROM t WHERE id=:id")
        assert qb.get_query_type() is QueryType.DELETE

    def test_raw_needs_empty_builder(self, qb):
        qb.select()
        with pytest.raises(QueryStateError):
            qb.raw_query("SELECT 1")


class TestSetOperator:
    def test_allowed(self, qb):
        qb.select().from_("t").where("a", 1).set_operator("OR").where("b", 2)
        assert qb.get_query() == "SELECT * FROM t WHERE a=:a OR b=:b"

    def test_symbolic_operator(self, qb):
        qb.raw_query("SELECT * FROM t WHERE a=1").set_operator("&&").where_null("b")
        assert qb.get_query() == "SELECT * FROM t WHERE a=1 AND b IS NULL"

    def test_rejects_unknown_operator(self, qb):
        qb.select()
        with pytest.raises(QueryStateError):
            qb.set_operator("XOR")

    def test_rejects_empty_query(self, qb):
        with pytest.raises(QueryStateError):
            qb.set_operator("AND")

    def test_rejects_operator_before_where(self, qb):
        qb.select().from_("t")
        with pytest.raises(QueryStateError):
            qb.set_operator("OR")
        qb.where("b", 2)
        assert qb.get_query() == "SELECT * FROM t WHERE b=:b"

    def test_operator_must_precede_a_condition(self, qb):
        qb.select().from_("t").where("a", 1).set_operator("OR")
        with pytest.raises(QueryStateError):
            qb.order_by("a")
        with pytest.raises(QueryStateError):
            qb.limit(5)
        qb.where("b", 2).order_by("a")
        assert qb.get_query() == "SELECT * FROM t WHERE a=:a OR b=:b ORDER BY a"

    def test_dangling_operator_not_executed(self):
        platform = RecordingPlatform(autocommit=True)
        qb = platform.query_builder().select().from_("t").where("a", 1).set_operator("OR")
        with pytest.raises(QueryStateError):
            qb.get()
        with pytest.raises(QueryStateError):
            qb.delete("t")
        assert platform.calls == []


class TestQueryTypeLock:
    def test_select_then_delete_rejected(self, qb):
        qb.select().from_("t")
        with pytest.raises(QueryStateError):
            qb.delete("t")

    def test_rejected_write_leaves_builder_usable(self):
        platform = RecordingPlatform(autocommit=True, rows=[(1,)], columns=["id"])
        qb = platform.query_builder().select(["id"]).from_("t")
        with pytest.raises(QueryStateError):
            qb.delete("t")
        with pytest.raises(QueryStateError):
            qb.update("t", {"id": 2})
        assert qb.get_query() == "SELECT id FROM t"
        assert qb.get().first() == {"id": 1}
        assert platform.executed() == [("SELECT id FROM t", ())]

    def test_insert_after_clauses_rejected(self, qb):
        qb.where("id", 1)
        with pytest.raises(QueryStateError):
            qb.insert("t", {"a": 1})

    def test_get_after_write_rejected(self):
        platform = RecordingPlatform(autocommit=True)
        qb = platform.query_builder()
        qb.where("id", 1).delete("t")
        with pytest.raises(QueryStateError):
            qb.get()


class TestWriteTerminals:
    def test_insert(self):
        platform = RecordingPlatform(autocommit=True)
        qb = platform.query_builder()
        result = qb.insert("users", {"name": "Ann", "age": 30})
        assert qb.get_query() == "INSERT INTO users (name,age) VALUES (:name,:age)"
        assert qb.get_query_parameters() == {"name": "Ann", "age": 30}
        assert platform.executed() == [("INSERT INTO users (name,age) VALUES (?,?)", ("Ann", 30))]
        assert result.query_type is QueryType.INSERT

    def test_update_binds_set_before_where(self):
        platform = RecordingPlatform(autocommit=True)
        platform.query_builder().where("id", 7).update("users", {"name": "Bob"})
        assert platform.executed() == [("UPDATE users SET name=? WHERE id=?", ("Bob", 7))]

    def test_update_same_column_in_set_and_where(self):
        platform = RecordingPlatform(autocommit=True)
        platform.query_builder().where("status", "old").update("t", {"status": "new"})
        assert platform.executed() == [("UPDATE t SET status=? WHERE status=?", ("new", "old"))]

    def test_delete(self):
        platform = RecordingPlatform(autocommit=True)
        platform.query_builder().where("id", 3).delete("users")
        assert platform.executed() == [("DELETE FROM users WHERE id=?", (3,))]

    def test_second_write_terminal_rejected(self):
        platform = RecordingPlatform(autocommit=True)
        qb = platform.query_builder()
        qb.where("id", 3).delete("users")
        with pytest.raises(QueryStateError):
            qb.delete("users")
        assert len(platform.executed()) == 1

    def test_execute_runs_once(self):
        platform = RecordingPlatform(autocommit=True)
        qb = platform.query_builder().raw_query("DROP TABLE t")
        qb.execute()
        with pytest.raises(QueryStateError):
            qb.execute()

    def test_empty_fields_rejected(self, qb):
        with pytest.raises(ValidationError):
            qb.insert("users", {})

    def test_execute_empty_rejected(self, qb):
        with pytest.raises(QueryStateError):
            qb.execute()


class TestMapperAndIntrospection:
    def test_set_result_mapper(self, qb):
        class User(ResultMapper):
            id: int

        assert qb.result_mapping_enabled() is False
        qb.set_result_mapper(User)
        assert qb.result_mapping_enabled() is True
        assert qb.get_result_mapper() is User

    def test_rejects_non_mapper(self, qb):
        with pytest.raises(ValidationError):
            qb.set_result_mapper(dict)  # type: ignore[arg-type]

    def test_platform_name_and_bag(self, qb):
        qb.set_param("x", 1)
        assert qb.get_platform_name() == "sqlite"
        assert qb.get_parameter_bag().get_parameter("x") == 1
        assert "sqlite" in repr(qb)
