"""Lexical safety classifier for caller-supplied SQL.

This is deliberately not a parser. A statement is accepted only when, after
comments are removed, it starts with SELECT or WITH and the text contains
none of the forbidden keywords anywhere, string literals and identifiers
included. False positives such as ``SELECT 'DROP' AS label`` are rejected on
purpose.

All functions here are pure and never raise.
"""

from __future__ import annotations

from typing import Final

FORBIDDEN_KEYWORDS: Final[tuple[str, ...]] = (
    "INSERT",
    "UPDATE",
    "DELETE",
    "MERGE",
    "EXEC",
    "EXECUTE",
    "CREATE",
    "ALTER",
    "DROP",
    "TRUNCATE",
    "GRANT",
    "REVOKE",
    "DENY",
    "BACKUP",
    "RESTORE",
    "DBCC",
)

ALLOWED_PREFIXES: Final[tuple[str, ...]] = ("SELECT", "WITH")


def _strip_once(text: str) -> str:
    lines = text.split("\n")
    for i, line in enumerate(lines):
        idx = line.find("--")
        if idx >= 0:
            lines[i] = line[:idx]
    text = "\n".join(lines)

    while True:
        start = text.find("/*")
        if start < 0:
            break
        end = text.find("*/", start + 2)
        if end < 0:
            text = text[:start]
            break
        text = text[:start] + text[end + 2 :]

    return text.strip()


def strip_sql_comments(sql: str) -> str:
    """Remove ``--`` line comments and ``/* */`` block comments, then trim.

    An unterminated ``/*`` truncates the text at that point. Removal repeats
    until nothing changes, so ``-/**/-`` cannot leave a fresh ``--`` behind.
    """
    if not sql:
        return sql

    current = sql
    while True:
        stripped = _strip_once(current)
        if stripped == current:
            return stripped
        current = stripped


def is_read_only(sql: str) -> bool:
    """Return True when ``sql`` is an allowed read-only statement."""
    if not isinstance(sql, str) or not sql.strip():
        return False

    cleaned = strip_sql_comments(sql)
    if not cleaned.upper().startswith(ALLOWED_PREFIXES):
        return False

    # Substring scan over the original text, comments and literals included.
    upper = sql.upper()
    return not any(word in upper for word in FORBIDDEN_KEYWORDS)
