"""Debug utilities for controlling diagnostic output of the access layer.

Provides a centralized way to handle debug messages, supporting both quiet mode
(logging only) and loud mode (print to stdout).
"""

import logging
import os
from typing import Optional

DEBUG_MODE_ENV = "DBACCESS_DEBUG_MODE"
_MODES = ("quiet", "loud")


class DebugUtil:
    """Manage debug output based on debug mode setting.

    Supports two modes:
    - "quiet": Debug messages are logged only
    - "loud": Debug messages are printed to stdout
    """

    def __init__(self, mode: Optional[str] = None, logger_name: str = "dbaccess") -> None:
        """Initialize from ``mode`` or the DBACCESS_DEBUG_MODE environment variable.

        Defaults to "quiet" if neither is set or the value is invalid.
        """
        env_mode = (mode or os.environ.get(DEBUG_MODE_ENV, "quiet")).lower()
        self._mode = env_mode if env_mode in _MODES else "quiet"

        self._logger = logging.getLogger(logger_name)
        if not self._logger.handlers:
            handler = logging.StreamHandler()
            formatter = logging.Formatter(
                fmt="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
                datefmt="%Y-%m-%d %H:%M:%S",
            )
            handler.setFormatter(formatter)
            self._logger.addHandler(handler)
            self._logger.setLevel(logging.DEBUG)

    def debug_mode(self) -> str:
        """Get the current debug mode ("quiet" or "loud")."""
        return self._mode

    def debugMessage(self, *args: object, **kwargs: object) -> None:
        """Output a debug message based on the current debug mode.

        In "quiet" mode: Messages are logged using the logger.
        In "loud" mode: Messages are printed to stdout using print().

        Args:
            *args: Arguments to pass to print() or logger.
            **kwargs: ``sep`` and ``end`` are honoured in loud mode; others are ignored.
        """
        if self._mode == "loud":
            sep_val = kwargs.get("sep")
            end_val = kwargs.get("end")
            sep = sep_val if isinstance(sep_val, str) else " "
            end = end_val if isinstance(end_val, str) else "\n"
            print("[DEBUG]", *args, sep=sep, end=end, flush=True)
        else:
            message = " ".join(str(arg) for arg in args)
            if message:
                self._logger.debug(message)

    def set_mode(self, mode: str) -> None:
        """Change the debug mode. Invalid values fall back to "quiet"."""
        self._mode = mode.lower() if mode.lower() in _MODES else "quiet"

    def is_loud(self) -> bool:
        return self._mode == "loud"

    def is_quiet(self) -> bool:
        return self._mode == "quiet"
