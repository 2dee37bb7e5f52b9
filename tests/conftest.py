"""Pytest configuration for the test suite.

Most tests run the manager against SQLite through ``sqlite_adapter``: the
stdlib sqlite3 module is a DB-API driver, so connection lifecycle,
transactions and row materialization are exercised for real without a
server. ``recording_driver`` is a scripted fake driver used where a test must
see exactly what reached the driver. PostgreSQL tests use a Docker container
and are skipped when Docker is unavailable.
"""

import contextlib
import sqlite3
import sys
from pathlib import Path
from typing import Any, Dict, Generator, List, Optional, Tuple

import pytest

project_root = Path(__file__).parent.parent
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))

from dbaccess.backends import BackendAdapter, BackendKind, ConnectionURL
from dbaccess.csv_loader import CSVDataLoader
from dbaccess.database_manager import DatabaseManager

FIXTURES_DIR = Path(__file__).parent / "fixtures"
TEST_DATA_CSV = FIXTURES_DIR / "test_data.csv"
USERS_TABLE = "test_users"
USERS_COLUMNS = "id INTEGER PRIMARY KEY, name TEXT NOT NULL, age INTEGER, email TEXT UNIQUE"


# --- SQLite-backed adapter ---


def _sqlite_set_autocommit(conn: sqlite3.Connection, enabled: bool) -> None:
    conn.isolation_level = None if enabled else "DEFERRED"


@pytest.fixture
def sqlite_path(tmp_path: Path) -> Path:
    return tmp_path / "dbaccess.sqlite3"


@pytest.fixture
def sqlite_adapter(sqlite_path: Path) -> BackendAdapter:
    """Adapter opening connections to one SQLite file, with PostgreSQL dialect rules."""

    def connect_args(url: ConnectionURL, username: str, password: str) -> Tuple[Tuple[Any, ...], dict]:
        return (), {"database": str(sqlite_path)}

    return BackendAdapter(
        kind=BackendKind.POSTGRESQL,
        default_driver="sqlite3",
        paramstyle="qmark",
        build_connect_args=connect_args,
        set_autocommit=_sqlite_set_autocommit,
    )


@pytest.fixture
def db_manager(sqlite_adapter: BackendAdapter) -> Generator[DatabaseManager, None, None]:
    """Provide a DatabaseManager bound to a per-test SQLite file."""
    db = DatabaseManager(
        "postgresql",
        "postgresql://localhost:5432/dbaccess",
        "tester",
        "secret",
        adapter=sqlite_adapter,
    )
    try:
        yield db
    finally:
        with contextlib.suppress(Exception):
            db.disconnect()


@pytest.fixture
def initialized_db(db_manager: DatabaseManager) -> Generator[DatabaseManager, None, None]:
    """Seed the per-test database with the rows from fixtures/test_data.csv."""
    db_manager.drop_table_if_exists(USERS_TABLE)
    db_manager.create_table_if_not_exists(USERS_TABLE, USERS_COLUMNS)
    CSVDataLoader(TEST_DATA_CSV).insert_into(db_manager, USERS_TABLE)
    yield db_manager


# --- Recording fake driver ---


class FakeError(Exception):
    pass


class FakeInterfaceError(FakeError):
    pass


class FakeDatabaseError(FakeError):
    pass


class FakeOperationalError(FakeDatabaseError):
    pass


class FakeIntegrityError(FakeDatabaseError):
    pass


class FakeProgrammingError(FakeDatabaseError):
    pass


class FakeDataError(FakeDatabaseError):
    pass


class FakeCursor:
    def __init__(self, conn: "FakeConnection") -> None:
        self.conn = conn
        self.closed = False
        self.description: Optional[List[Tuple[str]]] = None
        self.rowcount = -1
        self._rows: List[Tuple[Any, ...]] = []

    def execute(self, sql: str, params: Any = None) -> None:
        if self.conn.closed:
            raise FakeInterfaceError("connection already closed")
        self.conn.executed.append((sql, tuple(params) if params else ()))
        self.conn.driver.executed.append((sql, tuple(params) if params else ()))
        result = self.conn.driver.results.pop(0) if self.conn.driver.results else None
        if isinstance(result, Exception):
            raise result
        if result is not None:
            columns = result.get("columns")
            self.description = [(c,) for c in columns] if columns else None
            self._rows = list(result.get("rows", []))
            self.rowcount = result.get("rowcount", len(self._rows))

    def fetchall(self) -> List[Tuple[Any, ...]]:
        return list(self._rows)

    def close(self) -> None:
        self.closed = True
        self.conn.driver.closed_cursors += 1


class FakeConnection:
    def __init__(self, driver: "RecordingDriver", args: Tuple[Any, ...], kwargs: Dict[str, Any]) -> None:
        self.driver = driver
        self.args = args
        self.kwargs = kwargs
        self.closed = False
        self.autocommit = False
        self.commits = 0
        self.rollbacks = 0
        self.executed: List[Tuple[str, Tuple[Any, ...]]] = []

    def cursor(self) -> FakeCursor:
        if self.closed:
            raise FakeInterfaceError("connection already closed")
        return FakeCursor(self)

    def commit(self) -> None:
        self.commits += 1

    def rollback(self) -> None:
        self.rollbacks += 1

    def close(self) -> None:
        if self.closed:
            raise FakeInterfaceError("connection already closed")
        if self.driver.close_error is not None:
            raise self.driver.close_error
        self.closed = True


class RecordingDriver:
    """DB-API module stand-in that records connections and statements.

    ``results`` is a queue consumed by each execute(): None for no result set,
    a dict with ``columns``/``rows``/``rowcount``, or an exception to raise.
    ``connect_error`` and ``close_error`` make connect() or close() fail.
    """

    paramstyle = "qmark"
    Error = FakeError
    InterfaceError = FakeInterfaceError
    DatabaseError = FakeDatabaseError
    OperationalError = FakeOperationalError
    IntegrityError = FakeIntegrityError
    ProgrammingError = FakeProgrammingError
    DataError = FakeDataError

    def __init__(self) -> None:
        self.__name__ = "recording_driver"
        self.connections: List[FakeConnection] = []
        self.executed: List[Tuple[str, Tuple[Any, ...]]] = []
        self.results: List[Any] = []
        self.closed_cursors = 0
        self.connect_error: Optional[Exception] = None
        self.close_error: Optional[Exception] = None

    def connect(self, *args: Any, **kwargs: Any) -> FakeConnection:
        if self.connect_error is not None:
            raise self.connect_error
        conn = FakeConnection(self, args, kwargs)
        self.connections.append(conn)
        return conn


@pytest.fixture
def recording_driver() -> RecordingDriver:
    return RecordingDriver()


@pytest.fixture
def fake_db(recording_driver: RecordingDriver) -> Generator[DatabaseManager, None, None]:
    """A PostgreSQL-kind manager whose driver is the recording fake."""
    db = DatabaseManager(
        "postgresql",
        "postgresql://db.example.com:6543/appdb",
        "alice",
        "s3cret",
        driver=recording_driver,
    )
    try:
        yield db
    finally:
        with contextlib.suppress(Exception):
            db.disconnect()


# --- Docker PostgreSQL ---


@pytest.fixture(scope="session")
def docker_postgres_session() -> Generator[Any, None, None]:
    """Launch a shared PostgreSQL Docker container for the test session."""
    docker_manager = pytest.importorskip("helpers.docker_manager")
    try:
        manager = docker_manager.DockerManager()
    except Exception as exc:
        pytest.skip(f"Docker is not available: {exc}")
    try:
        manager.start_postgres_container()
    except Exception as exc:
        manager.remove_container()
        pytest.skip(f"Could not start PostgreSQL container: {exc}")
    try:
        yield manager
    finally:
        manager.remove_container()


@pytest.fixture
def postgres_db(docker_postgres_session: Any) -> Generator[DatabaseManager, None, None]:
    """Provide a DatabaseManager bound to a per-test PostgreSQL database."""
    tmp_db = docker_postgres_session.add_tmp_db()
    params = docker_postgres_session.connection_params
    db = DatabaseManager(
        "postgresql",
        docker_postgres_session.url_for(tmp_db),
        str(params["user"]),
        str(params["password"]),
    )
    try:
        yield db
    finally:
        with contextlib.suppress(Exception):
            db.disconnect()
        with contextlib.suppress(Exception):
            docker_postgres_session.remove_tmp_db(tmp_db)
