"""
Schema Contracts

Tables, columns and relations of a connected database.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class TableColumn(BaseModel):
    """A single column of a table."""
    name: str
    data_type: str
    is_primary_key: bool = False
    is_foreign_key: bool = False
    is_nullable: bool = True
    is_indexed: bool = False
    foreign_key_table: str | None = None
    foreign_key_column: str | None = None
    description: str | None = None


class TableSchema(BaseModel):
    """A table with its columns and storage statistics."""
    name: str
    columns: list[TableColumn]
    row_count: int | None = None
    size_kb: float | None = None
    has_data: bool = False
    description: str | None = None


class DatabaseSchema(BaseModel):
    """
    Full database schema.

    Relations are free-form dictionaries; the backend fills
    ``source_table``, ``source_column``, ``target_table``,
    ``target_column`` and ``relationship_type``.
    """
    tables: list[TableSchema]
    relations: list[dict[str, Any]] = Field(default_factory=list)


class SchemaRequest(BaseModel):
    connection_profile_id: str


class SchemaResponse(BaseModel):
    """
    Schema fetch result.

    The wire field is ``schema``, which shadows a BaseModel attribute,
    so it is stored as ``db_schema``. Dump with ``by_alias=True``.
    """
    model_config = ConfigDict(populate_by_name=True)

    db_schema: DatabaseSchema | None = Field(default=None, alias="schema")
    success: bool = True
    message: str | None = None
