"""Read-only SQL guard.

Lexical accept/reject gate applied to every statement before it reaches the
database.
"""

from __future__ import annotations

from .classifier import FORBIDDEN_KEYWORDS, is_read_only, strip_sql_comments

__all__ = [
    "FORBIDDEN_KEYWORDS",
    "is_read_only",
    "strip_sql_comments",
]
