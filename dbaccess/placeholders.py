"""Positional placeholder handling.

Queries are written with ``?`` placeholders. Before execution they are
rewritten to the placeholder style of the driver in use:

- ``qmark``   (pyodbc, sqlite3): ``?`` is kept
- ``format``  (psycopg2, pymysql): ``%s``, with literal ``%`` doubled
- ``numeric`` (oracledb): ``:1``, ``:2``, ...

Question marks and percent signs inside string literals, quoted identifiers
and comments are left untouched. With ``mysql_quoting`` a backslash escapes
the next character inside string literals and backtick-quoted identifiers are
recognised, as in MySQL's default SQL mode.
"""

from __future__ import annotations

from typing import List, Tuple

PARAMSTYLES = ("qmark", "format", "numeric")


def _scan(query: str, mysql_quoting: bool = False) -> List[Tuple[str, bool]]:
    """Split ``query`` into (text, is_code) chunks.

    Chunks with ``is_code`` False are quoted literals, quoted identifiers or
    comments and must be copied verbatim.
    """
    quotes = ("'", '"', "`") if mysql_quoting else ("'", '"')
    chunks: List[Tuple[str, bool]] = []
    buf: List[str] = []
    i = 0
    n = len(query)
    while i < n:
        ch = query[i]
        if ch in quotes:
            end = i + 1
            while end < n:
                if mysql_quoting and ch != "`" and query[end] == "\\":
                    end += 2
                    continue
                if query[end] == ch:
                    # doubled quote is an escaped quote
                    if end + 1 < n and query[end + 1] == ch:
                        end += 2
                        continue
                    break
                end += 1
            chunks.append(("".join(buf), True))
            buf = []
            chunks.append((query[i:end + 1], False))
            i = end + 1
        elif query.startswith("--", i):
            end = query.find("\n", i)
            end = n if end == -1 else end
            chunks.append(("".join(buf), True))
            buf = []
            chunks.append((query[i:end], False))
            i = end
        elif query.startswith("/*", i):
            end = query.find("*/", i + 2)
            end = n if end == -1 else end + 2
            chunks.append(("".join(buf), True))
            buf = []
            chunks.append((query[i:end], False))
            i = end
        else:
            buf.append(ch)
            i += 1
    chunks.append(("".join(buf), True))
    return [chunk for chunk in chunks if chunk[0]]


def count_placeholders(query: str, mysql_quoting: bool = False) -> int:
    """Return the number of ``?`` placeholders outside literals and comments."""
    return sum(text.count("?") for text, is_code in _scan(query, mysql_quoting) if is_code)


def translate_placeholders(query: str, paramstyle: str, has_params: bool = True, mysql_quoting: bool = False) -> str:
    """Rewrite ``?`` placeholders for a driver's paramstyle.

    Args:
        query: SQL with ``?`` placeholders
        paramstyle: One of "qmark", "format" or "numeric"
        has_params: Whether parameters will be passed to the driver. Format-style
            drivers only interpret ``%`` when parameters are given.
        mysql_quoting: Apply MySQL literal and identifier quoting rules.

    Raises:
        ValueError: If ``paramstyle`` is unknown.
    """
    if paramstyle not in PARAMSTYLES:
        raise ValueError(f"Unsupported paramstyle: {paramstyle}")
    if paramstyle == "qmark" or (paramstyle == "format" and not has_params):
        return query

    out: List[str] = []
    index = 0
    for text, is_code in _scan(query, mysql_quoting):
        if paramstyle == "format":
            text = text.replace("%", "%%")
        if not is_code:
            out.append(text)
            continue
        pieces = text.split("?")
        for pos, piece in enumerate(pieces):
            out.append(piece)
            if pos < len(pieces) - 1:
                index += 1
                out.append("%s" if paramstyle == "format" else f":{index}")
    return "".join(out)
