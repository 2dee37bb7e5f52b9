"""SQL dialects: backend-correct text for the statements that differ per product.

Each operation is a pure string function looked up by :class:`BackendKind`.
Table and column text is inserted as given; callers are responsible for
passing trusted identifiers.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Dict

from .backends import BackendKind


def _quote_literal(text: str) -> str:
    return text.replace("'", "''")


# --- create table if absent ---


def _create_native(table: str, columns: str) -> str:
    return f"CREATE TABLE IF NOT EXISTS {table} ({columns})"


def _create_sqlserver(table: str, columns: str) -> str:
    return (
        f"IF NOT EXISTS (SELECT * FROM sys.tables WHERE name = '{_quote_literal(table)}') "
        f"BEGIN CREATE TABLE {table} ({columns}) END"
    )


def _create_oracle(table: str, columns: str) -> str:
    # ORA-00955: name is already used by an existing object
    ddl = _quote_literal(f"CREATE TABLE {table} ({columns})")
    return (
        "BEGIN "
        f"EXECUTE IMMEDIATE '{ddl}'; "
        "EXCEPTION WHEN OTHERS THEN "
        "IF SQLCODE = -955 THEN NULL; ELSE RAISE; END IF; "
        "END;"
    )


# --- drop table if present ---


def _drop_native(table: str) -> str:
    return f"DROP TABLE IF EXISTS {table}"


def _drop_sqlserver(table: str) -> str:
    return f"IF OBJECT_ID('{_quote_literal(table)}', 'U') IS NOT NULL DROP TABLE {table}"


def _drop_oracle(table: str) -> str:
    # ORA-00942: table or view does not exist
    ddl = _quote_literal(f"DROP TABLE {table}")
    return (
        "BEGIN "
        f"EXECUTE IMMEDIATE '{ddl}'; "
        "EXCEPTION WHEN OTHERS THEN "
        "IF SQLCODE != -942 THEN RAISE; END IF; "
        "END;"
    )


# --- count all ---


def _count_plain(table: str) -> str:
    return f"SELECT COUNT(*) AS count FROM {table}"


def _count_quoted(table: str) -> str:
    return f'SELECT COUNT(*) AS "count" FROM {table}'


# --- auto-increment primary key ---


def _auto_increment_mysql(column: str) -> str:
    return f"{column} INT PRIMARY KEY AUTO_INCREMENT"


def _auto_increment_postgresql(column: str) -> str:
    return f"{column} SERIAL PRIMARY KEY"


def _auto_increment_sqlserver(column: str) -> str:
    return f"{column} INT IDENTITY(1,1) PRIMARY KEY"


def _auto_increment_oracle(column: str) -> str:
    return f"{column} NUMBER GENERATED ALWAYS AS IDENTITY PRIMARY KEY"


_CREATE_TABLE: Dict[BackendKind, Callable[[str, str], str]] = {
    BackendKind.MYSQL: _create_native,
    BackendKind.POSTGRESQL: _create_native,
    BackendKind.SQLSERVER: _create_sqlserver,
    BackendKind.ORACLE: _create_oracle,
}

_DROP_TABLE: Dict[BackendKind, Callable[[str], str]] = {
    BackendKind.MYSQL: _drop_native,
    BackendKind.POSTGRESQL: _drop_native,
    BackendKind.SQLSERVER: _drop_sqlserver,
    BackendKind.ORACLE: _drop_oracle,
}

_COUNT_ALL: Dict[BackendKind, Callable[[str], str]] = {
    BackendKind.MYSQL: _count_plain,
    BackendKind.POSTGRESQL: _count_plain,
    BackendKind.SQLSERVER: _count_plain,
    BackendKind.ORACLE: _count_quoted,
}

_AUTO_INCREMENT_PK: Dict[BackendKind, Callable[[str], str]] = {
    BackendKind.MYSQL: _auto_increment_mysql,
    BackendKind.POSTGRESQL: _auto_increment_postgresql,
    BackendKind.SQLSERVER: _auto_increment_sqlserver,
    BackendKind.ORACLE: _auto_increment_oracle,
}

_UPPER_CASE_IDENTIFIERS = frozenset({BackendKind.ORACLE})


@dataclass(frozen=True)
class SQLDialect:
    """SQL text generation rules for one backend kind."""

    kind: BackendKind

    def create_table_if_not_exists(self, table_name: str, column_definitions: str) -> str:
        """Return an idempotent CREATE TABLE statement.

        Args:
            table_name: Name of the table
            column_definitions: Column definitions, without the surrounding parentheses
        """
        return _CREATE_TABLE[self.kind](table_name, column_definitions)

    def drop_table_if_exists(self, table_name: str) -> str:
        """Return a DROP TABLE statement that succeeds when the table is absent."""
        return _DROP_TABLE[self.kind](table_name)

    def count_all(self, table_name: str) -> str:
        """Return a row-count query whose single column is labelled ``count``."""
        return _COUNT_ALL[self.kind](table_name)

    def auto_increment_primary_key(self, column_name: str) -> str:
        """Return the column declaration of an auto-incremented primary key."""
        return _AUTO_INCREMENT_PK[self.kind](column_name)

    @property
    def uses_upper_case_identifiers(self) -> bool:
        """Whether the backend upper-cases unquoted identifiers by default."""
        return self.kind in _UPPER_CASE_IDENTIFIERS


_DIALECTS: Dict[BackendKind, SQLDialect] = {kind: SQLDialect(kind) for kind in BackendKind}


def get_dialect(kind: "str | BackendKind") -> SQLDialect:
    """Return the dialect for ``kind`` (case-insensitive name or enum member)."""
    return _DIALECTS[BackendKind.parse(kind)]
