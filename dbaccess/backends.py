"""Supported database products and the per-product driver adapters.

Every product in :class:`BackendKind` has exactly one :class:`BackendAdapter`
in :data:`BACKENDS`. An adapter knows which DB-API module talks to the
product, which placeholder style that module expects, how to turn a
configured URL plus credentials into ``connect()`` arguments and how to
toggle auto-commit on a live connection.
"""

from __future__ import annotations

import enum
import importlib
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Optional, Tuple, cast
from urllib.parse import parse_qsl, urlsplit

from .exceptions import ConfigurationError, DBConnectionError, UnsupportedBackendError
from .interfaces import ConnectArgs, DriverModule


class BackendKind(enum.Enum):
    """Database products supported by the access layer."""

    MYSQL = "mysql"
    POSTGRESQL = "postgresql"
    SQLSERVER = "sqlserver"
    ORACLE = "oracle"

    @classmethod
    def parse(cls, name: "str | BackendKind") -> "BackendKind":
        """Return the kind matching ``name`` case-insensitively.

        Raises:
            UnsupportedBackendError: If ``name`` is not a supported product.
        """
        if isinstance(name, BackendKind):
            return name
        normalized = str(name or "").strip().lower()
        for kind in cls:
            if kind.value == normalized:
                return kind
        supported = ", ".join(k.value for k in cls)
        raise UnsupportedBackendError(f"Unsupported database type: {name!r} (expected one of {supported})")


@dataclass(frozen=True)
class ConnectionURL:
    """Pieces of a ``scheme://host[:port][/database][?opt=value]`` URL."""

    scheme: str
    host: str
    port: Optional[int] = None
    database: Optional[str] = None
    options: Dict[str, Any] = field(default_factory=dict)


def _coerce_option(value: str) -> Any:
    lowered = value.lower()
    if lowered in ("true", "false"):
        return lowered == "true"
    if value.isdigit():
        return int(value)
    return value


def parse_url(url: str) -> ConnectionURL:
    """Parse a configured database URL.

    A leading ``jdbc:`` prefix is ignored. Options may be given as a query
    string (``?a=1&b=2``) or as ``;key=value`` segments after the address.

    Raises:
        ConfigurationError: If the URL has no scheme/host or an invalid port.
    """
    raw = (url or "").strip()
    if raw.lower().startswith("jdbc:"):
        raw = raw[len("jdbc:"):]
    address, _, extra = raw.partition(";")
    parts = urlsplit(address)
    if not parts.scheme or not parts.hostname:
        raise ConfigurationError(f"Invalid database URL: {url!r}")
    try:
        port = parts.port
    except ValueError as exc:
        raise ConfigurationError(f"Invalid port in database URL: {url!r}") from exc

    options: Dict[str, Any] = {k: _coerce_option(v) for k, v in parse_qsl(parts.query)}
    for item in extra.split(";"):
        if "=" in item:
            key, value = item.split("=", 1)
            options[key.strip()] = _coerce_option(value.strip())

    database = parts.path.lstrip("/") or None
    if database is None:
        for key in ("databaseName", "database"):
            if key in options:
                database = str(options.pop(key))
                break

    return ConnectionURL(
        scheme=parts.scheme.lower(),
        host=parts.hostname,
        port=port,
        database=database,
        options=options,
    )


# --- connect-argument builders -------------------------------------------------


def _mysql_connect_args(url: ConnectionURL, username: str, password: str) -> ConnectArgs:
    kwargs: Dict[str, Any] = {
        "host": url.host,
        "port": url.port or 3306,
        "user": username,
        "password": password,
    }
    if url.database:
        kwargs["database"] = url.database
    kwargs.update(url.options)
    return (), kwargs


def _postgresql_connect_args(url: ConnectionURL, username: str, password: str) -> ConnectArgs:
    kwargs: Dict[str, Any] = {
        "host": url.host,
        "port": url.port or 5432,
        "user": username,
        "password": password,
    }
    if url.database:
        kwargs["dbname"] = url.database
    kwargs.update(url.options)
    return (), kwargs


DEFAULT_ODBC_DRIVER = "ODBC Driver 18 for SQL Server"


def _sqlserver_connect_args(url: ConnectionURL, username: str, password: str) -> ConnectArgs:
    options = dict(url.options)
    odbc_driver = options.pop("odbc_driver", DEFAULT_ODBC_DRIVER)
    parts = [
        f"DRIVER={{{odbc_driver}}}",
        f"SERVER={url.host},{url.port or 1433}",
    ]
    if url.database:
        parts.append(f"DATABASE={url.database}")
    parts.append(f"UID={username}")
    parts.append(f"PWD={{{password}}}")
    for key, value in options.items():
        if isinstance(value, bool):
            value = "yes" if value else "no"
        parts.append(f"{key}={value}")
    return (";".join(parts),), {}


def _oracle_connect_args(url: ConnectionURL, username: str, password: str) -> ConnectArgs:
    dsn = f"{url.host}:{url.port or 1521}"
    if url.database:
        dsn = f"{dsn}/{url.database}"
    kwargs: Dict[str, Any] = {"user": username, "password": password, "dsn": dsn}
    kwargs.update(url.options)
    return (), kwargs


# --- auto-commit hooks ---------------------------------------------------------


def _set_autocommit_attribute(conn: Any, enabled: bool) -> None:
    conn.autocommit = enabled


def _set_autocommit_method(conn: Any, enabled: bool) -> None:
    # pymysql exposes autocommit as a method
    conn.autocommit(enabled)


@dataclass(frozen=True)
class BackendAdapter:
    """Driver-facing behaviour for one database product.

    Attributes:
        kind: Product this adapter serves.
        default_driver: DB-API module imported when configuration names none.
        paramstyle: Placeholder style of the driver: "qmark", "format" or "numeric".
        build_connect_args: Turns (url, username, password) into connect() args.
        set_autocommit: Enables or disables auto-commit on a raw connection.
    """

    kind: BackendKind
    default_driver: str
    paramstyle: str
    build_connect_args: Callable[[ConnectionURL, str, str], ConnectArgs]
    set_autocommit: Callable[[Any, bool], None] = _set_autocommit_attribute

    def connect_args(self, url: str, username: str, password: str) -> Tuple[Tuple[Any, ...], dict]:
        """Return positional and keyword arguments for the driver's connect()."""
        return self.build_connect_args(parse_url(url), username or "", password or "")


BACKENDS: Dict[BackendKind, BackendAdapter] = {
    BackendKind.MYSQL: BackendAdapter(
        kind=BackendKind.MYSQL,
        default_driver="pymysql",
        paramstyle="format",
        build_connect_args=_mysql_connect_args,
        set_autocommit=_set_autocommit_method,
    ),
    BackendKind.POSTGRESQL: BackendAdapter(
        kind=BackendKind.POSTGRESQL,
        default_driver="psycopg2",
        paramstyle="format",
        build_connect_args=_postgresql_connect_args,
    ),
    BackendKind.SQLSERVER: BackendAdapter(
        kind=BackendKind.SQLSERVER,
        default_driver="pyodbc",
        paramstyle="qmark",
        build_connect_args=_sqlserver_connect_args,
    ),
    BackendKind.ORACLE: BackendAdapter(
        kind=BackendKind.ORACLE,
        default_driver="oracledb",
        paramstyle="numeric",
        build_connect_args=_oracle_connect_args,
    ),
}


def get_adapter(kind: "str | BackendKind") -> BackendAdapter:
    """Return the adapter registered for ``kind``."""
    return BACKENDS[BackendKind.parse(kind)]


def load_driver(module_name: str) -> DriverModule:
    """Import a DB-API driver module by name.

    Raises:
        DBConnectionError: If the driver module cannot be imported.
    """
    try:
        return cast(DriverModule, importlib.import_module(module_name))
    except ImportError as exc:
        raise DBConnectionError(f"Database driver '{module_name}' is not available: {exc}") from exc
