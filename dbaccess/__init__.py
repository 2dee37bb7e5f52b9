"""
Database access layer.

Usage:
    from dbaccess import DBConfigLoader, DatabaseManagerFactory

    factory = DatabaseManagerFactory(DBConfigLoader("db.properties"))
    with factory.create_database_manager("postgresql") as db:
        rows = db.execute_query("SELECT * FROM users WHERE age > ?", 25)
"""

from .backends import BACKENDS, BackendAdapter, BackendKind, get_adapter
from .config import DatabaseInfo, DBConfigLoader
from .connection import ManagedConnection, NonClosableConnection
from .csv_loader import CSVDataLoader
from .database_manager import DatabaseManager, Row, SqlValue, TransactionState
from .dialects import SQLDialect, get_dialect
from .exceptions import (
    ConfigurationError,
    ConstraintError,
    DatabaseError,
    DatabaseTypeError,
    DBConnectionError,
    ForeignKeyError,
    IntegrityError,
    QueryError,
    SchemaError,
    TableNotFoundError,
    UnsupportedBackendError,
)
from .factory import DatabaseManagerFactory, create_manager

__all__ = [
    "BACKENDS",
    "BackendAdapter",
    "BackendKind",
    "CSVDataLoader",
    "ConfigurationError",
    "ConstraintError",
    "DBConfigLoader",
    "DBConnectionError",
    "DatabaseError",
    "DatabaseInfo",
    "DatabaseManager",
    "DatabaseManagerFactory",
    "DatabaseTypeError",
    "ForeignKeyError",
    "IntegrityError",
    "ManagedConnection",
    "NonClosableConnection",
    "QueryError",
    "Row",
    "SQLDialect",
    "SchemaError",
    "SqlValue",
    "TableNotFoundError",
    "TransactionState",
    "UnsupportedBackendError",
    "create_manager",
    "get_adapter",
    "get_dialect",
]
