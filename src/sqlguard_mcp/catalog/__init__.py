"""Schema catalog reader and its metadata models."""

from __future__ import annotations

from .identifiers import bracket_quote, qualify, split_qualified_name
from .models import (
    ColumnMetadata,
    ColumnStats,
    ForeignKeyInfo,
    OverviewColumn,
    Relationship,
    TableOverview,
)
from .reader import NUMERIC_TYPE_MARKERS, CatalogReader, is_numeric_type

__all__ = [
    "NUMERIC_TYPE_MARKERS",
    "CatalogReader",
    "ColumnMetadata",
    "ColumnStats",
    "ForeignKeyInfo",
    "OverviewColumn",
    "Relationship",
    "TableOverview",
    "bracket_quote",
    "is_numeric_type",
    "qualify",
    "split_qualified_name",
]
