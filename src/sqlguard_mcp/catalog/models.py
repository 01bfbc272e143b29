"""Pydantic models for catalog metadata.

Field names are snake_case in Python and camelCase on the wire.
"""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class _WireModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)


class ColumnMetadata(_WireModel):
    """One column of one table, as reported by the catalog."""

    qualified_table: str = Field(description="Owning table as 'schema.table'")
    name: str = Field(description="Column name")
    type: str = Field(description="Type name reported by the database")
    is_nullable: bool = Field(description="True when the column accepts NULL")
    max_length: int | None = Field(default=None, description="Declared length for sized types")
    ordinal: int = Field(description="1-based position within the table")

    def describe(self) -> dict[str, Any]:
        """Shape used by describe_table."""
        return self.model_dump(by_alias=True, include={"name", "type", "is_nullable", "max_length"})


class ForeignKeyInfo(_WireModel):
    """Outbound foreign key column of a table in the schema overview."""

    name: str | None = Field(default=None, description="Constraint name when the database names it")
    column: str = Field(description="Referencing column")
    references: str = Field(description="Target as 'schema.table(column)'")


class Relationship(_WireModel):
    """Foreign-key edge touching a table, tagged with its direction.

    Both directions are reported from the requested table's side. Outbound:
    ``table.column`` holds the key and ``references`` is its target. Inbound:
    ``table.column`` is the referenced key and ``references`` is the other
    table's referencing column.
    """

    direction: Literal["Inbound", "Outbound"]
    table: str = Field(description="The requested table as 'schema.table'")
    column: str = Field(description="Column of the requested table in this key")
    references: str = Field(description="Other end of the key as 'schema.table(column)'")
    constraint: str | None = Field(default=None, description="Constraint name")


class OverviewColumn(_WireModel):
    name: str
    type: str
    is_nullable: bool


class TableOverview(_WireModel):
    """Columns and outbound foreign keys of one table."""

    columns: list[OverviewColumn] = Field(default_factory=list)
    foreign_keys: list[ForeignKeyInfo] = Field(default_factory=list)


class ColumnStats(_WireModel):
    """Profile of a single column.

    Numeric columns carry ``min``/``max``/``avg``; every other column carries
    ``distinct``. The inapplicable group is left out of the payload entirely.
    """

    column: str
    type: str
    numeric: bool = Field(exclude=True)
    total: int
    nulls: int
    min: Any = None
    max: Any = None
    avg: float | None = None
    distinct: int | None = None

    def as_payload(self) -> dict[str, Any]:
        group = {"distinct"} if self.numeric else {"min", "max", "avg"}
        return self.model_dump(by_alias=True, exclude=group)
