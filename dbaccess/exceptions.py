"""
Custom database exceptions for the dbaccess layer.
"""


class DatabaseError(Exception):
    """Base class for all database-related exceptions."""


class DBConnectionError(DatabaseError):
    """Raised when a connection cannot be opened or is no longer usable."""


class ConfigurationError(DatabaseError):
    """Raised when the configuration for a backend is missing or invalid."""


class UnsupportedBackendError(DatabaseError, ValueError):
    """Raised when a backend kind is not one of the supported products."""


class QueryError(DatabaseError):
    """Raised when a statement fails: malformed SQL, bad parameters, violations."""


class IntegrityError(QueryError):
    """Raised when database integrity is violated."""


class ConstraintError(IntegrityError):
    """Raised when a NOT NULL, UNIQUE or primary key constraint is violated."""


class ForeignKeyError(IntegrityError):
    """Raised when a foreign key constraint fails."""


class SchemaError(QueryError):
    """Raised when there are schema-related issues."""


class TableNotFoundError(QueryError):
    """Raised when a table is not found in the database."""


class DatabaseTypeError(QueryError, TypeError):
    """Raised when there's a type mismatch in database operations."""
