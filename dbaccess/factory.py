"""Factory selecting the DatabaseManager for a configured backend."""

from __future__ import annotations

from typing import Optional, Union

from .backends import BackendKind
from .config import DatabaseInfo, DBConfigLoader
from .database_manager import DatabaseManager


def create_manager(
    kind: Union[str, BackendKind],
    config: Union[DBConfigLoader, DatabaseInfo],
    debug_util: Optional[object] = None,
) -> DatabaseManager:
    """Build a DatabaseManager for ``kind``.

    Args:
        kind: Backend name, matched case-insensitively against
            mysql, postgresql, sqlserver and oracle.
        config: Loaded configuration, or an already resolved DatabaseInfo.
        debug_util: Optional DebugUtil passed on to the manager.

    Raises:
        UnsupportedBackendError: If ``kind`` is not a supported backend.
        ConfigurationError: If the configuration lacks a URL for ``kind``.
    """
    backend = BackendKind.parse(kind)
    info = config if isinstance(config, DatabaseInfo) else config.get_database_info(backend)
    return DatabaseManager(
        backend,
        info.url,
        info.username,
        info.password,
        driver=info.driver,
        debug_util=debug_util,
    )


class DatabaseManagerFactory:
    """Creates managers from one loaded configuration."""

    def __init__(self, config_loader: DBConfigLoader, debug_util: Optional[object] = None) -> None:
        self.config_loader = config_loader
        self.debug_util = debug_util

    def create_database_manager(self, db_type: Union[str, BackendKind]) -> DatabaseManager:
        """Create the manager for ``db_type`` (mysql, postgresql, sqlserver, oracle)."""
        return create_manager(db_type, self.config_loader, debug_util=self.debug_util)

    def create_default_database_manager(self) -> DatabaseManager:
        """Create the manager for the backend named by ``default.database``."""
        return self.create_database_manager(self.config_loader.get_default_database_type())
