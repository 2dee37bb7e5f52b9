"""Tests for backend kinds, URL parsing and driver adapters."""

from typing import Any, List

import pytest

from dbaccess.backends import (
    BACKENDS,
    DEFAULT_ODBC_DRIVER,
    BackendKind,
    get_adapter,
    load_driver,
    parse_url,
)
from dbaccess.exceptions import ConfigurationError, DBConnectionError, UnsupportedBackendError


class TestBackendKind:
    @pytest.mark.parametrize(
        "name,expected",
        [
            ("mysql", BackendKind.MYSQL),
            ("PostgreSQL", BackendKind.POSTGRESQL),
            (" SQLSERVER ", BackendKind.SQLSERVER),
            ("Oracle", BackendKind.ORACLE),
        ],
    )
    def test_parse_is_case_insensitive(self, name: str, expected: BackendKind) -> None:
        assert BackendKind.parse(name) is expected

    def test_parse_passes_kind_through(self) -> None:
        assert BackendKind.parse(BackendKind.ORACLE) is BackendKind.ORACLE

    @pytest.mark.parametrize("name", ["sqlite", "", "db2"])
    def test_parse_rejects_unknown(self, name: str) -> None:
        with pytest.raises(UnsupportedBackendError) as excinfo:
            BackendKind.parse(name)
        assert isinstance(excinfo.value, ValueError)

    def test_every_kind_has_an_adapter(self) -> None:
        assert set(BACKENDS) == set(BackendKind)
        for kind, adapter in BACKENDS.items():
            assert adapter.kind is kind


class TestParseUrl:
    def test_full_url(self) -> None:
        url = parse_url("postgresql://db.example.com:6543/appdb?sslmode=require&connect_timeout=10")
        assert url.scheme == "postgresql"
        assert url.host == "db.example.com"
        assert url.port == 6543
        assert url.database == "appdb"
        assert url.options == {"sslmode": "require", "connect_timeout": 10}

    def test_jdbc_prefix_and_semicolon_options(self) -> None:
        url = parse_url("jdbc:sqlserver://sql.local:1433;databaseName=sales;encrypt=true")
        assert url.scheme == "sqlserver"
        assert url.port == 1433
        assert url.database == "sales"
        assert url.options == {"encrypt": True}

    def test_port_and_database_optional(self) -> None:
        url = parse_url("mysql://localhost")
        assert url.port is None
        assert url.database is None

    @pytest.mark.parametrize("raw", ["", "localhost:3306/db", "mysql:///db"])
    def test_rejects_missing_scheme_or_host(self, raw: str) -> None:
        with pytest.raises(ConfigurationError):
            parse_url(raw)

    def test_rejects_invalid_port(self) -> None:
        with pytest.raises(ConfigurationError):
            parse_url("mysql://localhost:notaport/db")


class TestConnectArgs:
    def test_mysql(self) -> None:
        args, kwargs = get_adapter("mysql").connect_args("mysql://localhost/testdb?charset=utf8mb4", "root", "pw")
        assert args == ()
        assert kwargs == {
            "host": "localhost",
            "port": 3306,
            "user": "root",
            "password": "pw",
            "database": "testdb",
            "charset": "utf8mb4",
        }

    def test_postgresql_uses_dbname(self) -> None:
        args, kwargs = get_adapter("postgresql").connect_args("postgresql://pg:5433/testdb", "postgres", "pw")
        assert args == ()
        assert kwargs == {"host": "pg", "port": 5433, "user": "postgres", "password": "pw", "dbname": "testdb"}

    def test_sqlserver_builds_odbc_string(self) -> None:
        args, kwargs = get_adapter("sqlserver").connect_args(
            "sqlserver://sql.local;databaseName=testdb;TrustServerCertificate=true", "sa", "p;w"
        )
        assert kwargs == {}
        assert args == (
            f"DRIVER={{{DEFAULT_ODBC_DRIVER}}};SERVER=sql.local,1433;DATABASE=testdb;"
            "UID=sa;PWD={p;w};TrustServerCertificate=yes",
        )

    def test_sqlserver_odbc_driver_option(self) -> None:
        (conn_str,), _ = get_adapter("sqlserver").connect_args(
            "sqlserver://sql.local:1444/testdb?odbc_driver=FreeTDS", "sa", "pw"
        )
        assert conn_str.startswith("DRIVER={FreeTDS};SERVER=sql.local,1444;DATABASE=testdb;")
        assert "odbc_driver" not in conn_str

    def test_oracle_builds_dsn(self) -> None:
        args, kwargs = get_adapter("oracle").connect_args("oracle://ora.local/XEPDB1", "system", "pw")
        assert args == ()
        assert kwargs == {"user": "system", "password": "pw", "dsn": "ora.local:1521/XEPDB1"}

    def test_paramstyles(self) -> None:
        assert {kind.value: a.paramstyle for kind, a in BACKENDS.items()} == {
            "mysql": "format",
            "postgresql": "format",
            "sqlserver": "qmark",
            "oracle": "numeric",
        }


class _AttributeConnection:
    autocommit = False


class _MethodConnection:
    def __init__(self) -> None:
        self.calls: List[Any] = []

    def autocommit(self, enabled: bool) -> None:
        self.calls.append(enabled)


class TestAutocommitHooks:
    def test_mysql_calls_method(self) -> None:
        conn = _MethodConnection()
        get_adapter("mysql").set_autocommit(conn, True)
        get_adapter("mysql").set_autocommit(conn, False)
        assert conn.calls == [True, False]

    @pytest.mark.parametrize("kind", ["postgresql", "sqlserver", "oracle"])
    def test_others_set_attribute(self, kind: str) -> None:
        conn = _AttributeConnection()
        get_adapter(kind).set_autocommit(conn, True)
        assert conn.autocommit is True


class TestLoadDriver:
    def test_imports_module(self) -> None:
        assert load_driver("sqlite3").paramstyle == "qmark"

    def test_missing_module_is_connection_error(self) -> None:
        with pytest.raises(DBConnectionError, match="not available"):
            load_driver("no_such_dbapi_driver")
