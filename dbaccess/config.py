"""
Database configuration.

Loads a Java-style properties file with one block of keys per backend::

    default.database=postgresql
    postgresql.driver=psycopg2
    postgresql.url=postgresql://localhost:5432/testdb
    postgresql.username=postgres
    postgresql.password=secret

and resolves it into :class:`DatabaseInfo` records.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Dict, Iterator, List, Mapping, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .backends import BackendKind
from .exceptions import ConfigurationError

logger = logging.getLogger(__name__)

DEFAULT_DATABASE = "mysql"

_WHITESPACE = " \t\f"
_SEPARATORS = "=:"
_ESCAPES = {"t": "\t", "n": "\n", "r": "\r", "f": "\f"}
_HEX_DIGITS = frozenset("0123456789abcdefABCDEF")


def _continues(line: str) -> bool:
    # an odd run of trailing backslashes joins the next line
    return (len(line) - len(line.rstrip("\\"))) % 2 == 1


def _logical_lines(text: str) -> Iterator[str]:
    """Yield logical lines: comments and blanks dropped, continuations joined."""
    lines = text.splitlines()
    i = 0
    while i < len(lines):
        line = lines[i].lstrip(_WHITESPACE)
        i += 1
        if not line or line[0] in "#!":
            continue
        while _continues(line):
            line = line[:-1]
            if i >= len(lines):
                break
            line += lines[i].lstrip(_WHITESPACE)
            i += 1
        yield line


def _split_entry(line: str) -> Tuple[str, str]:
    """Split a logical line at the first unescaped separator.

    The key ends at ``=``, ``:`` or whitespace; whitespace around the separator
    is skipped and a whitespace separator may be followed by one ``=`` or ``:``.
    """
    i = 0
    while i < len(line):
        ch = line[i]
        if ch == "\\":
            i += 2
            continue
        if ch in _SEPARATORS or ch in _WHITESPACE:
            break
        i += 1
    key = line[:i]
    rest = line[i:].lstrip(_WHITESPACE)
    if rest and rest[0] in _SEPARATORS:
        rest = rest[1:].lstrip(_WHITESPACE)
    return key, rest


def _unescape(text: str) -> str:
    out: List[str] = []
    i = 0
    while i < len(text):
        ch = text[i]
        if ch != "\\" or i + 1 >= len(text):
            out.append(ch)
            i += 1
            continue
        nxt = text[i + 1]
        if nxt == "u":
            digits = text[i + 2:i + 6]
            if len(digits) != 4 or not _HEX_DIGITS.issuperset(digits):
                raise ConfigurationError(f"Malformed \\uxxxx escape in properties: {text!r}")
            out.append(chr(int(digits, 16)))
            i += 6
            continue
        out.append(_ESCAPES.get(nxt, nxt))
        i += 2
    return "".join(out)


def parse_properties(text: str) -> Dict[str, str]:
    """Parse properties text into a dict with lower-cased keys.

    Follows the Java properties line format: ``#`` and ``!`` comments, ``=``,
    ``:`` or whitespace between key and value, backslash escapes and
    backslash-newline continuation. Later keys override earlier ones.

    Raises:
        ConfigurationError: On a malformed ``\\uxxxx`` escape.
    """
    properties: Dict[str, str] = {}
    for line in _logical_lines(text):
        key, value = _split_entry(line)
        properties[_unescape(key).lower()] = _unescape(value)
    return properties


class DatabaseInfo(BaseModel):
    """Resolved connection settings for one backend.

    Attributes:
        driver: DB-API module name; None selects the backend's default driver.
        url: Database URL (``scheme://host[:port][/database]``).
        username: Login name.
        password: Login password.
    """

    driver: Optional[str] = None
    url: str = Field(...)
    username: str = Field(default="")
    password: str = Field(default="")

    model_config = ConfigDict(frozen=True)

    @field_validator("url")
    @classmethod
    def validate_url(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("Database URL cannot be blank.")
        return v.strip()

    @field_validator("driver")
    @classmethod
    def validate_driver(cls, v: Optional[str]) -> Optional[str]:
        if v is None or not v.strip():
            return None
        return v.strip()

    def __repr__(self) -> str:
        return f"DatabaseInfo(driver={self.driver!r}, url={self.url!r}, username={self.username!r})"


class DBConfigLoader:
    """Key/value configuration read from a properties file."""

    def __init__(self, file_path: Union[str, Path, None] = None, properties: Optional[Mapping[str, str]] = None) -> None:
        """Load ``file_path`` and/or take ``properties`` (which win on conflicts).

        A missing or unreadable file is logged and leaves the configuration empty.
        """
        self.properties: Dict[str, str] = {}
        if file_path is not None:
            self._load_file(Path(file_path))
        if properties:
            self.properties.update({k.strip().lower(): str(v).strip() for k, v in properties.items()})

    @classmethod
    def from_string(cls, text: str) -> "DBConfigLoader":
        loader = cls()
        loader.properties.update(cls._parse(text))
        return loader

    @staticmethod
    def _parse(text: str) -> Dict[str, str]:
        return parse_properties(text)

    def _load_file(self, path: Path) -> None:
        if not path.exists():
            logger.warning("Unable to find configuration file %s", path)
            return
        try:
            self.properties.update(self._parse(path.read_text(encoding="utf-8")))
        except (OSError, UnicodeDecodeError, ConfigurationError) as exc:
            logger.warning("Error loading configuration from %s: %s", path, exc)

    def get(self, key: str, default: Optional[str] = None) -> Optional[str]:
        value = self.properties.get(key.lower())
        return value if value not in (None, "") else default

    def get_default_database_type(self) -> str:
        """Backend kind named by ``default.database``, "mysql" when absent."""
        return self.get("default.database", DEFAULT_DATABASE) or DEFAULT_DATABASE

    def get_database_info(self, db_type: Union[str, BackendKind]) -> DatabaseInfo:
        """Resolve driver, URL and credentials for ``db_type``.

        Raises:
            UnsupportedBackendError: If ``db_type`` is not a supported backend.
            ConfigurationError: If the backend has no usable URL configured.
        """
        kind = BackendKind.parse(db_type)
        prefix = kind.value
        try:
            return DatabaseInfo(
                driver=self.get(f"{prefix}.driver"),
                url=self.get(f"{prefix}.url", "") or "",
                username=self.get(f"{prefix}.username", "") or "",
                password=self.get(f"{prefix}.password", "") or "",
            )
        except ValidationError as exc:
            raise ConfigurationError(f"Invalid configuration for {prefix}: {exc}") from exc
