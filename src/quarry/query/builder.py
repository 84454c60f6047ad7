"""
Fluent query builder.

A ``QueryBuilder`` is bound to one resolved platform and represents exactly
one logical query. Each chained call asks the binder for a fragment,
appends it to the accumulated SQL and records the caller's values in the
parameter bag; terminals hand the result to the platform's processor.

Manifesto:
    Fragments are concatenated in call order, so call order is SQL order:
    ``where("a", 1).or_where("b", 2)`` and ``or_where("b", 2).where("a", 1)``
    produce different keyword placement. Values never enter the SQL text;
    they go through the bag and the generator, for fluent and raw queries
    alike.

Architecture::

    QueryBuilder ──► QueryBinder ──► Fragment(" WHERE id=:id", ("id",))
         │                                   │
         │ values                            │ text
         ▼                                   ▼
    ParameterBag {id: 5}          "SELECT id,name FROM users WHERE id=:id"
         │                                   │
         └────────────► Processor ◄──────────┘
                           │
              Collection (get/first) · StatementResult (insert/update/delete/execute)

Lifecycle:
    - The query type (SELECT/INSERT/UPDATE/DELETE) is fixed once set;
      setting another raises QueryStateError.
    - Write terminals (insert/update/delete/execute) run once per builder.
    - get() and first() may be called repeatedly.

Examples:
    >>> builder = platform.query_builder()
    >>> builder.select(["id", "name"]).from_("users").where("id", 5).get_query()
    'SELECT id,name FROM users WHERE id=:id'

Tags:
    query-builder, fluent, sql, quarry

Doc-Types:
    - API Reference
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import TYPE_CHECKING, Any

from quarry.errors import QueryStateError, ValidationError
from quarry.query.binder import BOOLEAN_OPERATORS, Fragment, QueryBinder, Section
from quarry.query.generator import statement_type
from quarry.query.parameters import ParameterBag
from quarry.query.types import CompiledSql, QueryType
from quarry.result.mapper import ResultMapper

if TYPE_CHECKING:
    from quarry.platforms.base import Platform
    from quarry.query.processor import Processor, StatementResult
    from quarry.result.collection import Collection


def _columns(columns: str | Sequence[str] | None) -> list[str]:
    if columns is None:
        return []
    if isinstance(columns, str):
        return [columns]
    return list(columns)


class QueryBuilder:
    """Fluent surface over one query bound to one platform."""

    def __init__(self, platform: Platform, processor: Processor | None = None):
        self._platform = platform
        self._processor = processor or platform.processor()
        self._binder = QueryBinder(platform.dialect)
        self._fragments: list[Fragment] = []
        self._bag = ParameterBag()
        self._query_type = QueryType.NONE
        self._is_raw = False
        self._mapper: type[ResultMapper] | None = None
        self._terminated = False

    # =========================================================================
    # Internals
    # =========================================================================

    def _append(self, fragment: Fragment) -> QueryBuilder:
        self._fragments.append(fragment)
        return self

    def _bind(self, fragment: Fragment, *values: Any, override: bool = False) -> QueryBuilder:
        for name, value in zip(fragment.placeholders, values):
            self._bag.set_parameter(name, value, override=override)
        return self._append(fragment)

    def _set_type(self, query_type: QueryType) -> None:
        if self._query_type not in (QueryType.NONE, query_type):
            raise QueryStateError(
                f"Query type is already {self._query_type.name}; cannot change it to {query_type.name}"
            )
        self._query_type = query_type

    def _ensure_complete(self, name: str) -> None:
        if self._binder.operator_pending:
            raise QueryStateError(f"{name}() called while set_operator() still waits for a condition")

    def _claim_terminal(self, name: str) -> None:
        if self._terminated:
            raise QueryStateError(
                f"{name}() called on a builder whose write statement already ran; "
                "create a new builder for each statement"
            )
        self._terminated = True

    def _condition(self, kind: str, column: str, *args: Any, values: tuple[Any, ...] = ()) -> QueryBuilder:
        fragment = self._binder.create_binding(kind, column, *args)
        return self._bind(fragment, *values)

    def _aggregate(self, expression: str, alias: str, placeholders: tuple[str, ...] = (), *values: Any) -> QueryBuilder:
        self._set_type(QueryType.SELECT)
        fragment = self._binder.create_binding("alias", expression, alias, placeholders)
        return self._bind(fragment, *values, override=True)

    # =========================================================================
    # SELECT / FROM / JOIN
    # =========================================================================

    def select(self, columns: str | Sequence[str] | None = None) -> QueryBuilder:
        """``SELECT a,b`` (``SELECT *`` when no columns are given)."""
        self._set_type(QueryType.SELECT)
        return self._append(self._binder.create_binding("select", _columns(columns)))

    def from_(self, table: str) -> QueryBuilder:
        return self._append(self._binder.create_binding("from", table))

    def join(self, table: str, left: str | None = None, right: str | None = None, kind: str = "INNER") -> QueryBuilder:
        return self._append(self._binder.create_binding("join", kind, table, left, right))

    def left_join(self, table: str, left: str, right: str) -> QueryBuilder:
        return self.join(table, left, right, kind="LEFT")

    def right_join(self, table: str, left: str, right: str) -> QueryBuilder:
        return self.join(table, left, right, kind="RIGHT")

    # =========================================================================
    # WHERE family
    # =========================================================================

    def where(self, column: str, value: Any, operator: str = "=") -> QueryBuilder:
        """``WHERE col=:col`` or ``AND col=:col`` once a condition exists."""
        return self._condition("where", column, operator, "AND", values=(value,))

    def and_where(self, column: str, value: Any, operator: str = "=") -> QueryBuilder:
        return self._condition("where", column, operator, "AND", values=(value,))

    def or_where(self, column: str, value: Any, operator: str = "=") -> QueryBuilder:
        return self._condition("where", column, operator, "OR", values=(value,))

    def where_not(self, column: str, value: Any) -> QueryBuilder:
        return self._condition("where", column, "!=", "AND", values=(value,))

    def and_where_not(self, column: str, value: Any) -> QueryBuilder:
        return self._condition("where", column, "!=", "AND", values=(value,))

    def or_where_not(self, column: str, value: Any) -> QueryBuilder:
        return self._condition("where", column, "!=", "OR", values=(value,))

    def where_in(self, column: str, values: Sequence[Any], boolean: str = "AND") -> QueryBuilder:
        """``col IN (:col)``; the values expand to one marker each."""
        return self._condition("in", column, False, boolean, values=(tuple(values),))

    def where_not_in(self, column: str, values: Sequence[Any], boolean: str = "AND") -> QueryBuilder:
        return self._condition("in", column, True, boolean, values=(tuple(values),))

    def where_between(self, column: str, low: Any, high: Any, boolean: str = "AND") -> QueryBuilder:
        return self._condition("between", column, False, boolean, values=(low, high))

    def where_not_between(self, column: str, low: Any, high: Any, boolean: str = "AND") -> QueryBuilder:
        return self._condition("between", column, True, boolean, values=(low, high))

    def where_like(self, column: str, pattern: str, boolean: str = "AND") -> QueryBuilder:
        return self._condition("like", column, False, boolean, values=(pattern,))

    def where_not_like(self, column: str, pattern: str, boolean: str = "AND") -> QueryBuilder:
        return self._condition("like", column, True, boolean, values=(pattern,))

    def where_null(self, column: str, boolean: str = "AND") -> QueryBuilder:
        return self._condition("null", column, False, boolean)

    def where_not_null(self, column: str, boolean: str = "AND") -> QueryBuilder:
        return self._condition("null", column, True, boolean)

    def set_operator(self, operator: str) -> QueryBuilder:
        """Inject ``AND``/``OR`` (``&&``/``||``) before the next condition."""
        if operator.upper() not in BOOLEAN_OPERATORS:
            raise QueryStateError(f"Operator {operator!r} is not allowed; use AND, OR, && or ||")
        if not self._fragments:
            raise QueryStateError("set_operator() needs an existing query to attach to")
        if not self._is_raw and not self._binder.is_open(Section.WHERE):
            raise QueryStateError("set_operator() needs an open WHERE clause; add a condition first")
        return self._append(self._binder.create_binding("operator", operator))

    # =========================================================================
    # GROUP / ORDER / LIMIT
    # =========================================================================

    def group_by(self, columns: str | Sequence[str]) -> QueryBuilder:
        return self._append(self._binder.create_binding("group_by", _columns(columns)))

    def order_by(self, columns: str | Sequence[str], direction: str | None = None) -> QueryBuilder:
        return self._append(self._binder.create_binding("order_by", _columns(columns), direction))

    def order_by_field(self, column: str, values: Sequence[Any]) -> QueryBuilder:
        """Order rows so ``column`` values follow the order of ``values``."""
        if not values:
            raise ValidationError("order_by_field() needs at least one value")
        fragment = self._binder.create_binding("order_by_field", column, len(values))
        return self._bind(fragment, *values, override=True)

    def limit(self, count: int, offset: int | None = None) -> QueryBuilder:
        self._bind(self._binder.create_binding("limit"), count, override=True)
        if offset is not None:
            self._bind(self._binder.create_binding("offset"), offset, override=True)
        return self

    # =========================================================================
    # Aggregates
    # =========================================================================

    def count(self, column: str = "*", alias: str = "count") -> QueryBuilder:
        return self._aggregate(f"COUNT({column})", alias)

    def sum(self, column: str, alias: str = "sum") -> QueryBuilder:
        return self._aggregate(f"SUM({column})", alias)

    def avg(self, column: str, alias: str = "avg") -> QueryBuilder:
        return self._aggregate(f"AVG({column})", alias)

    def min(self, column: str, alias: str = "min") -> QueryBuilder:
        return self._aggregate(f"MIN({column})", alias)

    def max(self, column: str, alias: str = "max") -> QueryBuilder:
        return self._aggregate(f"MAX({column})", alias)

    def group_concat(self, column: str, alias: str = "group_concat", separator: str = ",") -> QueryBuilder:
        """Concatenate ``column`` values per group; the separator is bound."""
        token = f"{alias}_separator"
        expression = self._platform.dialect.group_concat(column, f":{token}")
        return self._aggregate(expression, alias, (token,), separator)

    def least(self, columns: Sequence[str], alias: str = "least") -> QueryBuilder:
        return self._aggregate(self._platform.dialect.least(list(columns)), alias)

    # =========================================================================
    # Parameters / raw SQL / mapping
    # =========================================================================

    def set_param(self, name: str, value: Any, override: bool = False) -> QueryBuilder:
        """Bind a value for a placeholder written by hand (raw queries)."""
        self._bag.set_parameter(name, value, override=override)
        return self

    def raw_query(self, text: str) -> QueryBuilder:
        """Use ``text`` as the whole query; ``:name`` placeholders still bind."""
        if self._fragments:
            raise QueryStateError("raw_query() needs a builder without fluent clauses")
        self._set_type(statement_type(text))
        self._is_raw = True
        return self._append(self._binder.create_binding("sql", text))

    def set_result_mapper(self, mapper: type[ResultMapper]) -> QueryBuilder:
        if not (isinstance(mapper, type) and issubclass(mapper, ResultMapper)):
            raise ValidationError(f"{mapper!r} is not a ResultMapper subclass")
        self._mapper = mapper
        return self

    def result_mapping_enabled(self) -> bool:
        return self._mapper is not None

    def get_result_mapper(self) -> type[ResultMapper] | None:
        return self._mapper

    # =========================================================================
    # Terminals
    # =========================================================================

    def get(self) -> Collection:
        """Run the query on the read path and return its rows."""
        if not self._fragments:
            raise QueryStateError("get() called on an empty query")
        self._ensure_complete("get")
        if not self._is_raw:
            self._set_type(QueryType.SELECT)
        query = self.get_query()
        if not self._is_raw and not self._binder.is_open(Section.SELECT):
            query = "SELECT *" + query
        return self._processor.fetch(
            query,
            self._bag,
            mapper=self._mapper,
            query_type=self._query_type,
            is_raw=self._is_raw,
        )

    def first(self) -> Any:
        """First row (or mapped instance) of ``get()``, or None."""
        return self.get().first()

    def insert(self, table: str, fields: Mapping[str, Any]) -> StatementResult:
        """``INSERT INTO table (a,b) VALUES (:a,:b)`` and run it."""
        if self._fragments:
            raise QueryStateError("insert() cannot be combined with other clauses")
        if not fields:
            raise ValidationError(f"insert() into {table} needs at least one field")
        self._set_type(QueryType.INSERT)
        fragment = self._binder.create_binding("insert", table, list(fields))
        self._claim_terminal("insert")
        self._bind(fragment, *fields.values())
        return self._run_write()

    def update(self, table: str, fields: Mapping[str, Any]) -> StatementResult:
        """``UPDATE table SET a=:a`` followed by any conditions already built."""
        if not fields:
            raise ValidationError(f"update() of {table} needs at least one field")
        self._ensure_complete("update")
        self._set_type(QueryType.UPDATE)
        fragment = self._binder.create_binding("update", table, list(fields))
        self._claim_terminal("update")

        # SET values bind ahead of WHERE values, matching text order.
        bag = ParameterBag()
        for name, value in zip(fragment.placeholders, fields.values()):
            bag.set_parameter(name, value)
        self._bag = bag.merge(self._bag)
        self._fragments.insert(0, fragment)
        return self._run_write()

    def delete(self, table: str) -> StatementResult:
        """``DELETE FROM table`` followed by any conditions already built."""
        self._ensure_complete("delete")
        self._set_type(QueryType.DELETE)
        fragment = self._binder.create_binding("delete", table)
        self._claim_terminal("delete")
        self._fragments.insert(0, fragment)
        return self._run_write()

    def execute(self) -> StatementResult:
        """Run the accumulated (usually raw) statement on the write path."""
        if not self._fragments:
            raise QueryStateError("execute() called on an empty query")
        self._ensure_complete("execute")
        self._claim_terminal("execute")
        return self._run_write()

    def _run_write(self) -> StatementResult:
        return self._processor.execute(
            self.get_query(),
            self._bag,
            query_type=self._query_type,
            is_raw=self._is_raw,
        )

    # =========================================================================
    # Introspection
    # =========================================================================

    def get_query(self) -> str:
        """Accumulated SQL with named placeholders."""
        return "".join(fragment.sql for fragment in self._fragments)

    def get_query_parameters(self) -> dict[str, Any]:
        return self._bag.get_all()

    def get_query_type(self) -> QueryType:
        return self._query_type

    def get_parameter_bag(self) -> ParameterBag:
        return self._bag

    def get_platform_name(self) -> str:
        return self._platform.name

    def to_sql(self) -> CompiledSql:
        """Accumulated SQL rewritten for the bound platform."""
        return self._processor.generator.convert_to_sql(self.get_query(), self._bag)

    @property
    def is_raw(self) -> bool:
        return self._is_raw

    @property
    def platform(self) -> Platform:
        return self._platform

    def __repr__(self) -> str:
        return f"QueryBuilder(platform={self._platform.name!r}, query={self.get_query()!r})"


__all__ = [
    "QueryBuilder",
]
