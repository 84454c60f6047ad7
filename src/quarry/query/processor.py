"""
Processor: execute a built query and materialize its rows.

Per execution the processor walks a fixed sequence:

1. **Resolve**   generator rewrites ``:name`` placeholders for the dialect
2. **Bind**      values are flattened along the binding order and typed
3. **Begin**     explicit transaction when the platform is not autocommit
4. **Execute**   ``Platform.execute`` on the live connection
5. **Finish**    commit; a failed statement or a rejected COMMIT rolls back
                 once, then raises ``QueryError``
6. **Map**       rows become ``Row`` objects or result-mapper instances

Manifesto:
    Everything that can be checked without the backend is checked before
    the backend is touched: unbound placeholders and unbindable values
    raise before ``begin``. After ``begin`` there is exactly one exit per
    outcome: commit, or rollback-then-raise. A COMMIT the backend
    rejects (deferred constraints, serialization failures) counts as a
    failure of the statement, so the connection never stays inside an
    open transaction. Mapping runs after commit, so a MappingError never
    undoes the statement's side effects.

Architecture::

    Processor(platform)
      ├── resolve(text, bag)   → ResolvedQuery
      ├── fetch(text, bag, …)  → Collection       (read path)
      └── execute(text, bag, …) → StatementResult (write path)

Guardrails:
    ❌ DON'T: Log bound values
    ✅ DO: Log the rewritten SQL and placeholder names

Tags:
    processor, execution, transactions, materialization, quarry
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from quarry.errors import DriverError, QueryError, TransactionError, UnbindableValueError
from quarry.logging import LogContext, get_logger
from quarry.query.generator import SqlGenerator, occurrence_values
from quarry.query.parameters import ParameterBag, WireType
from quarry.query.types import CompiledSql, QueryType
from quarry.result.collection import Collection
from quarry.result.mapper import ResultMapper
from quarry.result.row import Row

if TYPE_CHECKING:
    from quarry.platforms.base import Platform, Transaction

logger = get_logger(__name__)


@dataclass
class ResolvedQuery:
    """Everything needed to run one statement, created per execution."""

    sql: str
    parameters: list[str]
    values: list[Any]
    types: list[WireType]
    connection: Any
    transaction: Transaction | None = None

    @property
    def type_string(self) -> str:
        """Concatenated wire type tags, e.g. ``'sid'``."""
        return "".join(wire.value for wire in self.types)


@dataclass(frozen=True)
class StatementResult:
    """Outcome of a statement on the write path (also attached to collections)."""

    query: str
    parameters: list[str] = field(default_factory=list)
    rowcount: int = -1
    lastrowid: int | None = None
    query_type: QueryType = QueryType.NONE
    is_raw: bool = False


@dataclass
class _Outcome:
    columns: list[str]
    rows: list[Any]
    rowcount: int
    lastrowid: int | None


class Processor:
    """Executes queries for one platform."""

    def __init__(self, platform: Platform, generator: SqlGenerator | None = None):
        self._platform = platform
        self._generator = generator or SqlGenerator(platform.dialect)

    @property
    def generator(self) -> SqlGenerator:
        return self._generator

    @property
    def platform(self) -> Platform:
        return self._platform

    def _statement_context(self) -> LogContext:
        return LogContext(connection=self._platform.profile.name)

    # ── Resolve / bind ───────────────────────────────────────────

    def bind(self, compiled: CompiledSql, bag: ParameterBag) -> tuple[list[Any], list[WireType]]:
        """Flatten values along the binding order and infer their wire types."""
        values: list[Any] = []
        types: list[WireType] = []
        for name, group in zip(compiled.parameters, occurrence_values(compiled.parameters, bag)):
            for value in group:
                wire = bag.get_type(value)
                if wire is None:
                    raise UnbindableValueError(name, value)
                values.append(value)
                types.append(wire)
        return values, types

    def resolve(self, text: str, bag: ParameterBag) -> ResolvedQuery:
        compiled = self._generator.convert_to_sql(text, bag)
        values, types = self.bind(compiled, bag)
        logger.debug(
            "query_resolved",
            backend=self._platform.name,
            sql=compiled.query,
            placeholders=compiled.placeholder_names,
        )
        return ResolvedQuery(
            sql=compiled.query,
            parameters=compiled.parameters,
            values=values,
            types=types,
            connection=self._platform.get_connection(),
        )

    # ── Execution ────────────────────────────────────────────────

    def _fail(self, resolved: ResolvedQuery, backend_message: str, cause: Exception) -> QueryError:
        """Roll back (when a transaction is open) and build the QueryError."""
        platform = self._platform
        if resolved.transaction is not None:
            try:
                resolved.transaction.rollback(resolved.connection)
                logger.debug("transaction_rollback", backend=platform.name)
            except TransactionError as rollback_error:
                # the original failure is the one raised
                logger.warning(
                    "transaction_rollback_failed",
                    backend=platform.name,
                    error=str(rollback_error.cause or rollback_error),
                )
        logger.error(
            "query_failed",
            backend=platform.name,
            sql=resolved.sql,
            error=backend_message,
        )
        return QueryError(
            f"Query failed: {backend_message}",
            sql=resolved.sql,
            backend_message=backend_message,
            cause=cause,
        ).with_context(backend=platform.name, connection=platform.profile.name)

    def _run(self, resolved: ResolvedQuery, *, fetch: bool) -> _Outcome:
        platform = self._platform
        if not platform.is_autocommit_enabled():
            resolved.transaction = platform.transaction()
            resolved.transaction.begin(resolved.connection)
            logger.debug("transaction_begin", backend=platform.name)

        try:
            cursor = platform.execute(resolved.connection, resolved.sql, resolved.values)
            try:
                columns = platform.describe_columns(cursor) if fetch else []
                rows = platform.fetch_rows(cursor) if fetch else []
                outcome = _Outcome(
                    columns=columns,
                    rows=rows,
                    rowcount=getattr(cursor, "rowcount", -1),
                    lastrowid=getattr(cursor, "lastrowid", None),
                )
            finally:
                cursor.close()
        except DriverError as exc:
            raise self._fail(resolved, exc.backend_message, exc) from exc

        if resolved.transaction is not None:
            try:
                resolved.transaction.commit(resolved.connection)
            except TransactionError as exc:
                # deferred constraints and serialization failures surface at COMMIT
                raise self._fail(resolved, str(exc.cause or exc.message), exc) from exc
            logger.debug("transaction_commit", backend=platform.name)
        return outcome

    def fetch(
        self,
        text: str,
        bag: ParameterBag,
        *,
        mapper: type[ResultMapper] | None = None,
        query_type: QueryType = QueryType.SELECT,
        is_raw: bool = False,
    ) -> Collection:
        """Read path: run ``text`` and return its rows as a Collection."""
        with self._statement_context():
            resolved = self.resolve(text, bag)
            outcome = self._run(resolved, fetch=True)
            statement = StatementResult(
                query=resolved.sql,
                parameters=resolved.parameters,
                rowcount=outcome.rowcount,
                lastrowid=outcome.lastrowid,
                query_type=query_type,
                is_raw=is_raw,
            )
            items = self.materialize(outcome.columns, outcome.rows, mapper)
        return Collection(items, statement=statement)

    def execute(
        self,
        text: str,
        bag: ParameterBag,
        *,
        query_type: QueryType = QueryType.NONE,
        is_raw: bool = False,
    ) -> StatementResult:
        """Write path: run ``text`` and report affected rows."""
        with self._statement_context():
            resolved = self.resolve(text, bag)
            outcome = self._run(resolved, fetch=False)
        return StatementResult(
            query=resolved.sql,
            parameters=resolved.parameters,
            rowcount=outcome.rowcount,
            lastrowid=outcome.lastrowid,
            query_type=query_type,
            is_raw=is_raw,
        )

    # ── Materialization ──────────────────────────────────────────

    def materialize(
        self,
        columns: list[str],
        rows: list[Any],
        mapper: type[ResultMapper] | None = None,
    ) -> list[Any]:
        """Turn raw driver rows into Row objects or mapper instances.

        A mapper whose ``register()`` returns False skips that row.

        Raises:
            MappingError: A column has no declared field on the mapper.
        """
        items: list[Any] = []
        skipped = 0
        for values in rows:
            if mapper is None:
                items.append(Row(columns, values))
                continue

            instance = mapper()
            if not instance.register():
                skipped += 1
                continue
            for column, value in zip(columns, values):
                instance.map_field(column, value)
            items.append(instance)

        logger.debug(
            "rows_materialized",
            backend=self._platform.name,
            count=len(items),
            skipped=skipped,
            mapper=mapper.__name__ if mapper else None,
        )
        return items


__all__ = [
    "Processor",
    "ResolvedQuery",
    "StatementResult",
]
