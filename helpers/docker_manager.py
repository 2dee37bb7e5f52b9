"""Docker manager for the PostgreSQL container used by integration tests."""

import logging
import os
import time
import uuid
from types import TracebackType
from typing import Any, Dict, Optional, Type

import docker
import psycopg2
from docker.errors import APIError, ImageNotFound
from docker.models.images import Image

logger = logging.getLogger(__name__)

DEFAULT_IMAGE_TAG = "postgres:16-alpine"
IMAGE_ENV = "DBACCESS_POSTGRES_IMAGE"


class DockerManager:
    """Manages a throw-away PostgreSQL container and its temporary databases."""

    def __init__(self, image_tag: Optional[str] = None) -> None:
        """Connect to the Docker daemon.

        Raises:
            docker.errors.DockerException: If the daemon is unreachable.
        """
        self.client = docker.from_env()
        self.client.ping()
        self.container: Optional[Any] = None
        self.connection_params: Dict[str, Any] = {}
        self.image_tag = image_tag or os.environ.get(IMAGE_ENV, DEFAULT_IMAGE_TAG)

    def ensure_image(self) -> Image:
        """Ensure the PostgreSQL image is available locally, pulling if needed."""
        try:
            return self.client.images.get(self.image_tag)
        except ImageNotFound:
            logger.info("Docker image '%s' not found locally. Pulling...", self.image_tag)
            return self.client.images.pull(self.image_tag)
        except APIError as exc:
            logger.error("Docker API error when ensuring image '%s': %s", self.image_tag, exc)
            raise

    def start_postgres_container(
        self,
        container_name: Optional[str] = None,
        postgres_user: str = "dbaccess",
        postgres_password: str = "dbaccess",
        postgres_db: str = "dbaccess",
    ) -> Dict[str, Any]:
        """Start a PostgreSQL container on a free host port.

        Returns:
            Dictionary with host, port, user, password and database.
        """
        name = container_name or f"dbaccess-pg-{uuid.uuid4().hex[:8]}"
        self.ensure_image()
        logger.info("Starting PostgreSQL container '%s' with image '%s'", name, self.image_tag)
        self.container = self.client.containers.run(
            self.image_tag,
            name=name,
            environment={
                "POSTGRES_USER": postgres_user,
                "POSTGRES_PASSWORD": postgres_password,
                "POSTGRES_DB": postgres_db,
            },
            ports={"5432/tcp": ("127.0.0.1", 0)},
            detach=True,
        )
        self.container.reload()
        mapping = self.container.attrs.get("NetworkSettings", {}).get("Ports", {}).get("5432/tcp") or []
        if not mapping:
            self.remove_container()
            raise RuntimeError("Failed to determine mapped host port for PostgreSQL container")

        self.connection_params = {
            "host": "127.0.0.1",
            "port": int(mapping[0]["HostPort"]),
            "user": postgres_user,
            "password": postgres_password,
            "database": postgres_db,
        }
        self._wait_for_postgres()
        return dict(self.connection_params)

    def _wait_for_postgres(self, max_attempts: int = 20) -> None:
        """Wait for PostgreSQL to accept connections."""
        for attempt in range(max_attempts):
            try:
                conn = psycopg2.connect(connect_timeout=5, **self._psycopg_params())
                conn.close()
                logger.info("PostgreSQL is ready to accept connections")
                return
            except psycopg2.Error as e:
                if attempt == max_attempts - 1:
                    raise RuntimeError("PostgreSQL failed to start within timeout") from e
                logger.debug("Connection failed (%s); retrying in 1 second", e)
                time.sleep(1)

    def _psycopg_params(self, database: Optional[str] = None) -> Dict[str, Any]:
        if not self.connection_params:
            raise RuntimeError("PostgreSQL container is not running")
        params = {k: self.connection_params[k] for k in ("host", "port", "user", "password")}
        params["dbname"] = database or self.connection_params["database"]
        return params

    def add_tmp_db(self) -> str:
        """Create a temporary database with a unique name and return that name."""
        db_name = f"tmp_{uuid.uuid4().hex[:12]}"
        conn = psycopg2.connect(**self._psycopg_params(database="postgres"))
        conn.autocommit = True
        try:
            with conn.cursor() as cursor:
                cursor.execute(f'CREATE DATABASE "{db_name}"')
        finally:
            conn.close()
        logger.info("Temporary database '%s' created", db_name)
        return db_name

    def remove_tmp_db(self, db_name: str) -> None:
        """Drop a temporary database, terminating sessions still attached to it."""
        conn = psycopg2.connect(**self._psycopg_params(database="postgres"))
        conn.autocommit = True
        try:
            with conn.cursor() as cursor:
                cursor.execute(
                    """
                    SELECT pg_terminate_backend(pid)
                    FROM pg_stat_activity
                    WHERE datname = %s AND pid <> pg_backend_pid()
                    """,
                    (db_name,),
                )
                cursor.execute(f'DROP DATABASE IF EXISTS "{db_name}"')
        finally:
            conn.close()
        logger.info("Temporary database '%s' removed", db_name)

    def url_for(self, database: str) -> str:
        """Return a postgresql:// URL for ``database`` in the running container."""
        return f"postgresql://{self.connection_params['host']}:{self.connection_params['port']}/{database}"

    def remove_container(self) -> None:
        """Stop and remove the PostgreSQL container."""
        if self.container is None:
            return
        name = getattr(self.container, "name", "<unknown>")
        try:
            self.container.remove(force=True)
            logger.info("Container '%s' removed", name)
        except Exception as e:
            logger.warning("Error removing container '%s': %s", name, e)
        finally:
            self.container = None
            self.connection_params = {}

    def __enter__(self) -> "DockerManager":
        return self

    def __exit__(
        self,
        exc_type: Optional[Type[BaseException]],
        exc_val: Optional[BaseException],
        exc_tb: Optional[TracebackType],
    ) -> None:
        self.remove_container()
