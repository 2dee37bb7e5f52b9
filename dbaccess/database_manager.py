"""Central database manager.

Provides connection, query and transaction management with specific exception
handling, uniformly across MySQL, PostgreSQL, SQL Server and Oracle.

Connection policy:

- Outside a transaction every statement opens its own auto-committing
  connection and closes it when the statement finishes.
- Inside a transaction every statement borrows the manager's tracked
  connection through a ``NonClosableConnection``, so the statement's
  release on exit leaves the transaction open.

A manager instance is meant for use from one thread at a time; concurrent
calls race on the tracked connection and the transaction state.
"""

import contextlib
import datetime
import decimal
import enum
import logging
import os
from types import TracebackType
from typing import Dict, Iterator, List, NoReturn, Optional, Sequence, Tuple, Type, Union, cast

from .backends import BACKENDS, BackendAdapter, BackendKind, load_driver
from .connection import ManagedConnection, NonClosableConnection
from .dialects import SQLDialect, get_dialect
from .exceptions import (
    ConstraintError,
    DatabaseError,
    DatabaseTypeError,
    DBConnectionError,
    ForeignKeyError,
    IntegrityError,
    QueryError,
    SchemaError,
    TableNotFoundError,
)
from .interfaces import CursorProtocol, DriverModule
from .placeholders import count_placeholders, translate_placeholders

logger = logging.getLogger(__name__)

SqlValue = Union[None, bool, int, float, str, datetime.datetime, bytes]
Row = Dict[str, SqlValue]

_CONNECTION_MARKERS = (
    "connection",
    "server has gone away",
    "can't connect",
    "could not connect",
    "closed database",
)
_TABLE_MISSING_MARKERS = ("no such table", "doesn't exist", "invalid object name", "ora-00942")
_COLUMN_MISSING_MARKERS = ("no such column", "unknown column", "invalid column name", "ora-00904")
_CONSTRAINT_MARKERS = (
    "not null",
    "not-null",
    "null value",
    "cannot be null",
    "cannot insert the value null",
    "unique",
    "duplicate",
    "primary key",
    "ora-00001",
    "ora-01400",
)


def debug_print(*args: object, **kwargs: object) -> None:
    """Emit a debug message when no DebugUtil is attached to the manager.

    Prints when DBACCESS_DEBUG_MODE is "loud", otherwise logs at DEBUG level.
    """
    debug_mode = os.environ.get("DBACCESS_DEBUG_MODE", "quiet").lower()
    if debug_mode == "loud":
        sep_val = kwargs.get("sep")
        print("[DEBUG]", *args, sep=sep_val if isinstance(sep_val, str) else " ")
    else:
        logger.debug(" ".join(str(arg) for arg in args))


class TransactionState(enum.Enum):
    """Whether statements run on their own connections or share one."""

    AUTONOMOUS = "autonomous"
    ACTIVE = "active"


def normalize_value(value: object) -> SqlValue:
    """Map a driver value onto the scalar kinds returned in result rows."""
    if value is None or isinstance(value, (bool, int, float, str, bytes, datetime.datetime)):
        return cast(SqlValue, value)
    if isinstance(value, datetime.date):
        return datetime.datetime.combine(value, datetime.time())
    if isinstance(value, datetime.time):
        return value.isoformat()
    if isinstance(value, decimal.Decimal):
        if value.is_finite() and value == value.to_integral_value():
            return int(value)
        return float(value)
    if isinstance(value, (bytearray, memoryview)):
        return bytes(value)
    if hasattr(value, "read"):
        # LOB locators (oracledb)
        return normalize_value(value.read())
    return str(value)


class DatabaseManager:
    """Connection, statement and transaction manager for one database.

    Handles connection management, parameterized query execution, transactions
    and exception translation. The backend is fixed at construction: ``kind``
    selects the SQL dialect and the driver adapter.
    """

    def __init__(
        self,
        kind: Union[str, BackendKind],
        url: str,
        username: str = "",
        password: str = "",
        driver: Union[str, DriverModule, None] = None,
        *,
        adapter: Optional[BackendAdapter] = None,
        debug_util: Optional[object] = None,
    ) -> None:
        """Initialize a DatabaseManager. No connection is opened here.

        Args:
            kind: Backend kind, e.g. "mysql" or BackendKind.MYSQL.
            url: Database URL, ``scheme://host[:port][/database][?options]``.
            username: Login name.
            password: Login password.
            driver: DB-API module, or its import name. Defaults to the
                adapter's driver.
            adapter: Driver adapter overriding the one registered for ``kind``.
            debug_util: Optional DebugUtil instance for handling debug output.

        Raises:
            UnsupportedBackendError: If ``kind`` is not a supported backend.
        """
        self._kind = BackendKind.parse(kind)
        self._url = url
        self._username = username or ""
        self._password = password or ""
        self._adapter = adapter or BACKENDS[self._kind]
        self._dialect = get_dialect(self._kind)
        self.debug_util = debug_util

        self._driver: Optional[DriverModule] = None
        if driver is None:
            self._driver_name = self._adapter.default_driver
        elif isinstance(driver, str):
            self._driver_name = driver
        else:
            self._driver = driver
            self._driver_name = getattr(driver, "__name__", type(driver).__name__)

        self._connection: Optional[ManagedConnection] = None
        self._state = TransactionState.AUTONOMOUS

    # --- read-only configuration ---

    @property
    def kind(self) -> BackendKind:
        return self._kind

    @property
    def url(self) -> str:
        return self._url

    @property
    def username(self) -> str:
        return self._username

    @property
    def password(self) -> str:
        return self._password

    @property
    def driver_name(self) -> str:
        return self._driver_name

    @property
    def dialect(self) -> SQLDialect:
        """The SQL dialect bound to this manager."""
        return self._dialect

    @property
    def transaction_state(self) -> TransactionState:
        return self._state

    @property
    def is_connected(self) -> bool:
        """True when a tracked connection exists and is open."""
        return self._connection is not None and not self._connection.closed

    @property
    def in_transaction(self) -> bool:
        """True while a transaction is active on the tracked connection."""
        return (
            self._state is TransactionState.ACTIVE
            and self._connection is not None
            and not self._connection.closed
            and not self._connection.autocommit
        )

    def _debug_message(self, *args: object, **kwargs: object) -> None:
        """Send debug message through DebugUtil if available, otherwise use debug_print fallback."""
        if self.debug_util and hasattr(self.debug_util, "debugMessage"):
            self.debug_util.debugMessage(*args, **kwargs)
        else:
            debug_print(*args, **kwargs)

    # --- connection lifecycle ---

    def _load_driver(self) -> DriverModule:
        if self._driver is None:
            self._driver = load_driver(self._driver_name)
        return self._driver

    def _open_connection(self) -> ManagedConnection:
        """Open a new auto-committing connection that nobody tracks yet.

        Raises:
            DBConnectionError: If the driver is missing or rejects the connection.
        """
        driver = self._load_driver()
        args, kwargs = self._adapter.connect_args(self._url, self._username, self._password)
        try:
            raw = driver.connect(*args, **kwargs)
        except Exception as e:
            self._debug_message(f"{self._kind.value} connection failed: {e}")
            raise DBConnectionError(f"Failed to connect to {self._kind.value} database at {self._url}: {e}") from e

        conn = ManagedConnection(raw, self._adapter)
        try:
            conn.autocommit = True
        except Exception as e:
            with contextlib.suppress(Exception):
                conn.close()
            raise DBConnectionError(f"Failed to enable auto-commit on {self._kind.value} connection: {e}") from e
        return conn

    def connect(self) -> ManagedConnection:
        """Return the tracked connection, opening it first if needed.

        Calling connect() while the tracked connection is open returns that
        same connection.

        Raises:
            DBConnectionError: If the database connection cannot be established.
        """
        if self._connection is not None and not self._connection.closed:
            return self._connection
        self._connection = self._open_connection()
        self._state = TransactionState.AUTONOMOUS
        self._debug_message(f"Connected to {self._kind.value} ({self._url}).")
        return self._connection

    def disconnect(self) -> None:
        """Close the tracked connection, if any.

        Does nothing when there is no tracked connection or it is already
        closed. Any transaction still pending is abandoned to the driver's
        close semantics.

        Raises:
            DBConnectionError: If closing a live connection fails.
        """
        conn = self._connection
        self._connection = None
        self._state = TransactionState.AUTONOMOUS
        if conn is None or conn.closed:
            return
        try:
            conn.close()
        except Exception as e:
            if conn.raw is not None and getattr(conn.raw, "closed", False):
                return
            logger.error("Error closing database connection: %s", e)
            raise DBConnectionError(f"Failed to close {self._kind.value} connection: {e}") from e
        self._debug_message("Connection closed.")

    def close(self) -> None:
        """Alias of disconnect()."""
        self.disconnect()

    def _get_connection(self) -> Union[ManagedConnection, NonClosableConnection]:
        """Resolve the connection a single statement runs on.

        Returns a non-closable view of the tracked connection while a
        transaction is active, otherwise a new connection that the caller
        closes after use.

        Raises:
            DBConnectionError: If the transaction's connection has been lost or
                a new connection cannot be opened.
        """
        if self.in_transaction:
            return NonClosableConnection(cast(ManagedConnection, self._connection))
        if self._state is TransactionState.ACTIVE:
            raise DBConnectionError("Connection of the active transaction is no longer open")
        return self._open_connection()

    @contextlib.contextmanager
    def _statement_connection(self) -> Iterator[Union[ManagedConnection, NonClosableConnection]]:
        """Scope one statement's connection.

        A failure while closing a per-statement connection is logged; it never
        replaces the statement's result or the statement's own error.
        """
        conn = self._get_connection()
        try:
            yield conn
        finally:
            try:
                conn.close()
            except Exception as e:
                logger.warning("Error closing statement connection: %s", e)

    # --- statement execution ---

    def _prepare(self, query: str, params: Sequence[object]) -> Tuple[str, Tuple[object, ...]]:
        mysql_quoting = self._kind is BackendKind.MYSQL
        expected = count_placeholders(query, mysql_quoting)
        if expected != len(params):
            raise QueryError(
                f"Query expects {expected} parameter(s) but {len(params)} were supplied: {query.strip()}"
            )
        sql = translate_placeholders(
            query, self._adapter.paramstyle, has_params=bool(params), mysql_quoting=mysql_quoting
        )
        return sql, tuple(params)

    def _execute(self, cursor: CursorProtocol, sql: str, params: Tuple[object, ...]) -> None:
        dbg_sql = " ".join(sql.split())
        self._debug_message(f"Executing SQL ({self._kind.value}): {dbg_sql}; params={params}")
        if params:
            cursor.execute(sql, params)
        else:
            cursor.execute(sql)

    def execute_query(self, query: str, *params: object) -> List[Row]:
        """Execute a query and return all rows.

        Args:
            query: SQL with ``?`` positional placeholders
            *params: One value per placeholder, in placeholder order

        Returns:
            A list of dictionaries, one per row, keyed by the lower-cased column
            label in result-set column order. Empty when nothing matched.

        Raises:
            QueryError (or a subclass) when the statement fails, DBConnectionError
            when no usable connection is available.
        """
        sql, bound = self._prepare(query, params)
        try:
            with self._statement_connection() as conn, contextlib.closing(conn.cursor()) as cursor:
                self._execute(cursor, sql, bound)
                if cursor.description is None:
                    return []
                labels = [str(col[0]).lower() for col in cursor.description]
                return [
                    {labels[i]: normalize_value(row[i]) for i in range(len(labels))}
                    for row in cursor.fetchall()
                ]
        except DatabaseError:
            raise
        except Exception as e:
            self._translate_and_raise(e)

    def execute_update(self, query: str, *params: object) -> int:
        """Execute an INSERT, UPDATE, DELETE or DDL statement.

        Args:
            query: SQL with ``?`` positional placeholders
            *params: One value per placeholder, in placeholder order

        Returns:
            Number of affected rows; 0 when the driver cannot tell (DDL).

        Raises:
            QueryError (or a subclass) when the statement fails, DBConnectionError
            when no usable connection is available.
        """
        sql, bound = self._prepare(query, params)
        try:
            with self._statement_connection() as conn, contextlib.closing(conn.cursor()) as cursor:
                self._execute(cursor, sql, bound)
                return max(int(cursor.rowcount), 0)
        except DatabaseError:
            raise
        except Exception as e:
            self._translate_and_raise(e)

    def fetchone(self, query: str, *params: object) -> Optional[Row]:
        """Execute a query and return its first row, or None if no results."""
        rows = self.execute_query(query, *params)
        return rows[0] if rows else None

    # --- dialect-backed helpers ---

    def create_table_if_not_exists(self, table_name: str, column_definitions: str) -> int:
        """Create ``table_name`` unless it already exists."""
        return self.execute_update(self._dialect.create_table_if_not_exists(table_name, column_definitions))

    def drop_table_if_exists(self, table_name: str) -> int:
        """Drop ``table_name`` if it exists."""
        return self.execute_update(self._dialect.drop_table_if_exists(table_name))

    def count_all(self, table_name: str) -> int:
        """Return the number of rows in ``table_name``."""
        row = self.fetchone(self._dialect.count_all(table_name))
        if row is None or row.get("count") is None:
            return 0
        return int(cast(int, row["count"]))

    # --- transactions ---

    def begin_transaction(self) -> None:
        """Start a transaction on the tracked connection, connecting first if needed.

        Calling it again before commit/rollback keeps the same transaction;
        nested transactions are not supported.
        """
        conn = self.connect()
        try:
            # some drivers (psycopg2) refuse to toggle auto-commit mid-transaction
            if conn.autocommit:
                conn.autocommit = False
        except Exception as e:
            self._translate_and_raise(e)
        self._state = TransactionState.ACTIVE
        self._debug_message("Transaction started.")

    def commit_transaction(self) -> None:
        """Commit pending work and return to auto-commit mode.

        No-op when there is no open tracked connection.
        """
        conn = self._connection
        if conn is None or conn.closed:
            self._state = TransactionState.AUTONOMOUS
            return
        try:
            conn.commit()
            conn.autocommit = True
        except Exception as e:
            self._translate_and_raise(e)
        self._state = TransactionState.AUTONOMOUS
        self._debug_message("Transaction committed.")

    def rollback_transaction(self) -> None:
        """Discard pending work and return to auto-commit mode.

        No-op when there is no open tracked connection.
        """
        conn = self._connection
        if conn is None or conn.closed:
            self._state = TransactionState.AUTONOMOUS
            return
        try:
            conn.rollback()
            conn.autocommit = True
        except Exception as e:
            self._translate_and_raise(e)
        self._state = TransactionState.AUTONOMOUS
        self._debug_message("Transaction rolled back.")

    # --- error translation ---

    def _is_driver_error(self, e: Exception, name: str) -> bool:
        cls = getattr(self._driver, name, None) if self._driver is not None else None
        return isinstance(cls, type) and isinstance(e, cls)

    def _translate_and_raise(self, e: Exception) -> NoReturn:
        """Translate driver exceptions to our custom exceptions and raise.

        Always raises; does not return.
        """
        error_msg = str(e).lower()

        if self._is_driver_error(e, "IntegrityError"):
            if "foreign key" in error_msg or "ora-02291" in error_msg:
                raise ForeignKeyError(f"Foreign key constraint failed: {e}") from e
            if any(marker in error_msg for marker in _CONSTRAINT_MARKERS):
                raise ConstraintError(f"Constraint violation: {e}") from e
            raise IntegrityError(f"Integrity error: {e}") from e
        if self._is_driver_error(e, "DataError"):
            raise DatabaseTypeError(f"Type error in query parameters: {e}") from e
        if self._is_driver_error(e, "InterfaceError"):
            raise DBConnectionError(f"Database interface error: {e}") from e
        if self._is_driver_error(e, "OperationalError") or self._is_driver_error(e, "ProgrammingError"):
            if any(marker in error_msg for marker in _CONNECTION_MARKERS):
                raise DBConnectionError(f"Lost connection to {self._kind.value} database: {e}") from e
            if any(marker in error_msg for marker in _TABLE_MISSING_MARKERS) or (
                "does not exist" in error_msg and ("relation" in error_msg or "table" in error_msg)
            ):
                raise TableNotFoundError(f"Table not found: {e}") from e
            if any(marker in error_msg for marker in _COLUMN_MISSING_MARKERS) or (
                "column" in error_msg and "does not exist" in error_msg
            ):
                raise SchemaError(f"Schema error: {e}") from e
            raise QueryError(f"Database operation failed: {e}") from e
        if self._is_driver_error(e, "Error"):
            raise QueryError(f"Database error: {e}") from e

        # Fallback: binding/formatting errors raised before reaching the server
        raise QueryError(f"Unexpected database error: {e}") from e

    # --- context manager ---

    def __enter__(self) -> "DatabaseManager":
        """Context manager protocol support.

        Returns:
            Self for using in with statements.
        """
        return self

    def __exit__(
        self,
        exc_type: Optional[Type[BaseException]],
        exc_val: Optional[BaseException],
        exc_tb: Optional[TracebackType],
    ) -> None:
        """Context manager protocol support - close connection when exiting context."""
        self.disconnect()

    def __repr__(self) -> str:
        return f"<DatabaseManager {self._kind.value} {self._url} state={self._state.value}>"
