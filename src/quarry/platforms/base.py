"""Platform base class.

Manifesto:
    A platform is one resolved backend: a connection profile, the dialect
    for that backend and a single live DB-API connection. Everything the
    processor needs from a database goes through this contract, so the
    query pipeline never imports a driver and never depends on a vendor.

Features:
    - Lazy ``connect()`` with driver imported at connect time only
    - Explicit ``Transaction`` (begin/commit/rollback on a connection)
    - ``execute()`` / ``fetch_rows()`` translating driver errors to ``DriverError``
    - ``describe_columns()`` from ``cursor.description``
    - Context-manager protocol for connection lifecycle
    - ``processor()`` / ``query_builder()`` factories bound to this platform

Tags:
    quarry, database, abstract-base, platform

Doc-Types:
    api-reference
"""

from __future__ import annotations

import importlib.util
from abc import ABC, abstractmethod
from collections.abc import Sequence
from typing import TYPE_CHECKING, Any, ClassVar

from quarry.config.profiles import ConnectionProfile
from quarry.dialect import Dialect, get_dialect
from quarry.errors import DriverError, TransactionError
from quarry.logging import get_logger
from quarry.protocols import Connection, Cursor

if TYPE_CHECKING:
    from quarry.query.builder import QueryBuilder
    from quarry.query.processor import Processor

logger = get_logger(__name__)


class Transaction:
    """Explicit transaction boundaries for one platform.

    Driver failures in begin/commit/rollback surface as TransactionError.
    """

    def __init__(self, platform: Platform):
        self._platform = platform

    def begin(self, connection: Connection) -> None:
        self._call("begin", self._platform._begin, connection)

    def commit(self, connection: Connection) -> None:
        self._call("commit", self._platform._commit, connection)

    def rollback(self, connection: Connection) -> None:
        self._call("rollback", self._platform._rollback, connection)

    def _call(self, step: str, action: Any, connection: Connection) -> None:
        try:
            action(connection)
        except self._platform.driver_errors() as e:
            raise TransactionError(
                f"Transaction {step} failed on {self._platform.name}: {e}",
                cause=e,
            ).with_context(backend=self._platform.name) from e


class Platform(ABC):
    """
    Abstract base class for platforms.

    Subclasses provide the driver specifics: how to open a connection,
    which exceptions the driver raises and how transactions start.
    """

    backend: ClassVar[str] = ""
    driver_module: ClassVar[str] = ""

    def __init__(self, profile: ConnectionProfile):
        self._profile = profile
        self._dialect: Dialect = get_dialect(self.backend)
        self._connection: Any = None

    # ── Introspection ────────────────────────────────────────────

    @property
    def name(self) -> str:
        """Backend name (``sqlite``, ``postgresql``, ``mysql``)."""
        return self.backend

    @property
    def dialect(self) -> Dialect:
        return self._dialect

    @property
    def profile(self) -> ConnectionProfile:
        return self._profile

    @property
    def is_connected(self) -> bool:
        return self._connection is not None

    @classmethod
    def is_available(cls) -> bool:
        """Whether the driver module can be imported."""
        try:
            return importlib.util.find_spec(cls.driver_module) is not None
        except ModuleNotFoundError:
            # parent package of a dotted driver module is missing
            return False

    def is_autocommit_enabled(self) -> bool:
        return self._profile.autocommit

    # ── Driver specifics ─────────────────────────────────────────

    @abstractmethod
    def _open(self) -> Any:
        """Open and return a new DB-API connection."""
        ...

    @abstractmethod
    def driver_errors(self) -> tuple[type[BaseException], ...]:
        """Exception classes raised by the driver for backend failures."""
        ...

    @abstractmethod
    def _begin(self, connection: Connection) -> None:
        ...

    def _commit(self, connection: Connection) -> None:
        connection.commit()

    def _rollback(self, connection: Connection) -> None:
        connection.rollback()

    # ── Connection lifecycle ─────────────────────────────────────

    def connect(self) -> Connection:
        """Open the connection if it is not open yet."""
        if self._connection is None:
            self._connection = self._open()
            logger.debug("platform_connected", backend=self.name, connection=self._profile.name)
        return self._connection

    def disconnect(self) -> None:
        if self._connection is not None:
            connection, self._connection = self._connection, None
            connection.close()
            logger.debug("platform_disconnected", backend=self.name, connection=self._profile.name)

    def get_connection(self) -> Connection:
        return self.connect()

    def transaction(self) -> Transaction:
        return Transaction(self)

    # ── Statements ───────────────────────────────────────────────

    def execute(self, connection: Connection, sql: str, values: Sequence[Any] = ()) -> Cursor:
        """Run ``sql`` with positional ``values`` and return the open cursor."""
        cursor = connection.cursor()
        try:
            if values:
                cursor.execute(sql, tuple(values))
            else:
                # no parameters: %-style drivers send the text verbatim
                cursor.execute(sql)
        except self.driver_errors() as e:
            cursor.close()
            raise DriverError(str(e), backend_message=str(e), cause=e).with_context(
                backend=self.name
            ) from e
        return cursor

    def describe_columns(self, cursor: Cursor) -> list[str]:
        """Ordered result column names (empty for statements without rows)."""
        return [column[0] for column in cursor.description or ()]

    def fetch_rows(self, cursor: Cursor) -> list[Any]:
        if cursor.description is None:
            return []
        try:
            return list(cursor.fetchall())
        except self.driver_errors() as e:
            raise DriverError(str(e), backend_message=str(e), cause=e).with_context(
                backend=self.name
            ) from e

    # ── Factories ────────────────────────────────────────────────

    def processor(self) -> Processor:
        from quarry.query.processor import Processor

        return Processor(self)

    def query_builder(self) -> QueryBuilder:
        from quarry.query.builder import QueryBuilder

        return QueryBuilder(self)

    # ── Context manager ──────────────────────────────────────────

    def __enter__(self) -> Platform:
        self.connect()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.disconnect()

    def __repr__(self) -> str:
        return f"{type(self).__name__}(connection={self._profile.name!r})"


__all__ = [
    "Platform",
    "Transaction",
]
