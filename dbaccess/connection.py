"""Connection handles handed out by DatabaseManager.

``ManagedConnection`` owns one live DB-API connection. ``NonClosableConnection``
is a borrowed view of a ``ManagedConnection`` used while a transaction is
active: it forwards everything except ``close``, so code that always releases
its connection on exit can run inside a transaction without ending it.
"""

from __future__ import annotations

from types import TracebackType
from typing import Any, Optional, Type

from .backends import BackendAdapter
from .interfaces import ConnectionProtocol, CursorProtocol


class ManagedConnection:
    """A live database session together with its auto-commit state."""

    def __init__(self, raw: ConnectionProtocol, adapter: BackendAdapter) -> None:
        """Wrap ``raw``, a connection returned by the driver's connect()."""
        self._raw = raw
        self._adapter = adapter
        self._closed = False
        self._autocommit = False

    @property
    def raw(self) -> ConnectionProtocol:
        """The underlying DB-API connection."""
        return self._raw

    @property
    def closed(self) -> bool:
        """True once closed here or when the driver reports the session gone."""
        if self._closed:
            return True
        # psycopg2: non-zero int; pymysql: ``open`` flag
        closed_attr = getattr(self._raw, "closed", None)
        if isinstance(closed_attr, (bool, int)) and closed_attr:
            return True
        open_attr = getattr(self._raw, "open", None)
        if isinstance(open_attr, bool) and not open_attr:
            return True
        return False

    @property
    def autocommit(self) -> bool:
        return self._autocommit

    @autocommit.setter
    def autocommit(self, enabled: bool) -> None:
        self._adapter.set_autocommit(self._raw, enabled)
        self._autocommit = enabled

    def cursor(self) -> CursorProtocol:
        return self._raw.cursor()

    def commit(self) -> None:
        self._raw.commit()

    def rollback(self) -> None:
        self._raw.rollback()

    def close(self) -> None:
        """Close the session. Closing an already-closed connection does nothing."""
        if self.closed:
            self._closed = True
            return
        self._closed = True
        self._raw.close()

    def __getattr__(self, name: str) -> Any:
        return getattr(self._raw, name)

    def __enter__(self) -> "ManagedConnection":
        return self

    def __exit__(
        self,
        exc_type: Optional[Type[BaseException]],
        exc_val: Optional[BaseException],
        exc_tb: Optional[TracebackType],
    ) -> None:
        self.close()

    def __repr__(self) -> str:
        state = "closed" if self.closed else "open"
        return f"<ManagedConnection {self._adapter.kind.value} {state} autocommit={self._autocommit}>"


class NonClosableConnection:
    """View of a transaction's connection whose ``close`` is a no-op.

    The view does not own the connection and must not be used after the
    owning manager commits, rolls back or disconnects.
    """

    def __init__(self, connection: ManagedConnection) -> None:
        self._connection = connection

    @property
    def closed(self) -> bool:
        return self._connection.closed

    @property
    def autocommit(self) -> bool:
        return self._connection.autocommit

    @autocommit.setter
    def autocommit(self, enabled: bool) -> None:
        self._connection.autocommit = enabled

    def cursor(self) -> CursorProtocol:
        return self._connection.cursor()

    def commit(self) -> None:
        self._connection.commit()

    def rollback(self) -> None:
        self._connection.rollback()

    def close(self) -> None:
        """Do nothing; the owning manager ends the transaction."""

    def __getattr__(self, name: str) -> Any:
        return getattr(self._connection, name)

    def __enter__(self) -> "NonClosableConnection":
        return self

    def __exit__(
        self,
        exc_type: Optional[Type[BaseException]],
        exc_val: Optional[BaseException],
        exc_tb: Optional[TracebackType],
    ) -> None:
        self.close()
