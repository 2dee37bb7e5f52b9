"""Shared database interface definitions.

This module provides lightweight typing Protocols for the DB-API objects the
manager talks to, so the manager, the connection wrappers and the tests can
depend on abstractions instead of a concrete driver.
"""

from __future__ import annotations

from typing import Any, List, Optional, Protocol, Sequence, Tuple


class CursorProtocol(Protocol):
    """Minimal DB-API cursor protocol used by DatabaseManager."""

    def execute(self, query: str, params: Sequence[object] = ...) -> Any:
        """Execute a single SQL statement with optional parameters."""
        ...

    def fetchall(self) -> List[Sequence[object]]:
        """Fetch all remaining rows of a query result."""
        ...

    def close(self) -> None:
        """Close the cursor."""
        ...

    @property
    def description(self) -> Optional[Sequence[Sequence[object]]]:
        """DB-API cursor description: column metadata or None before execution."""
        ...

    @property
    def rowcount(self) -> int:
        """Rows affected by the last statement, -1 when undetermined."""
        ...


class ConnectionProtocol(Protocol):
    """Minimal DB-API connection protocol used by DatabaseManager."""

    def cursor(self) -> CursorProtocol:
        """Return a new database cursor."""
        ...

    def commit(self) -> None:
        """Commit the current transaction."""
        ...

    def rollback(self) -> None:
        """Rollback the current transaction."""
        ...

    def close(self) -> None:
        """Close the underlying connection."""
        ...


class DriverModule(Protocol):
    """A DB-API 2.0 driver module (psycopg2, pymysql, pyodbc, oracledb...)."""

    paramstyle: str
    Error: type
    InterfaceError: type
    DatabaseError: type
    OperationalError: type
    IntegrityError: type
    ProgrammingError: type
    DataError: type

    def connect(self, *args: Any, **kwargs: Any) -> ConnectionProtocol:
        """Open a new connection."""
        ...


class DBExecutor(Protocol):
    """Protocol for statement execution used by callers of the manager.

    Implemented by `dbaccess.database_manager.DatabaseManager`.
    """

    def execute_query(self, query: str, *params: object) -> List[dict]:
        """Execute a SELECT and return the materialized rows."""
        ...

    def execute_update(self, query: str, *params: object) -> int:
        """Execute an INSERT/UPDATE/DELETE/DDL and return the affected row count."""
        ...


ConnectArgs = Tuple[Tuple[Any, ...], dict]
