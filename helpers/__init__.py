"""Helper utilities shared by the dbaccess package and its test suite."""

from .debug_util import DebugUtil  # noqa: F401
