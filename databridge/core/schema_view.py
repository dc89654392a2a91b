"""
Schema View

Helpers for browsing a fetched database schema.
"""

from typing import Any

from databridge.contracts import DatabaseSchema, TableColumn, TableSchema


def filter_tables(schema: DatabaseSchema, text: str = "") -> list[TableSchema]:
    """
    Tables whose name or description contains ``text``.

    Matching is case-insensitive; results are sorted by name.
    """
    needle = text.lower()
    tables = [
        table for table in schema.tables
        if not needle
        or needle in table.name.lower()
        or (table.description is not None and needle in table.description.lower())
    ]
    return sorted(tables, key=lambda t: t.name.lower())


def find_table(schema: DatabaseSchema, name: str) -> TableSchema | None:
    for table in schema.tables:
        if table.name == name:
            return table
    return None


def table_relations(
    schema: DatabaseSchema,
    table_name: str,
) -> tuple[list[dict[str, Any]], list[dict[str, Any]]]:
    """
    Relations touching a table.

    Returns:
        Tuple of (incoming, outgoing): incoming relations target the
        table, outgoing ones start from it
    """
    incoming = [rel for rel in schema.relations if rel.get("target_table") == table_name]
    outgoing = [rel for rel in schema.relations if rel.get("source_table") == table_name]
    return incoming, outgoing


def key_columns(table: TableSchema) -> list[TableColumn]:
    """Primary and foreign key columns, in table order."""
    return [c for c in table.columns if c.is_primary_key or c.is_foreign_key]


def format_size(size_bytes: float | None) -> str:
    """Human-readable size: ``-`` when unknown."""
    if size_bytes is None:
        return "-"
    if size_bytes < 1024:
        return f"{size_bytes:g} B"
    if size_bytes < 1024 ** 2:
        return f"{size_bytes / 1024:.2f} KB"
    if size_bytes < 1024 ** 3:
        return f"{size_bytes / 1024 ** 2:.2f} MB"
    return f"{size_bytes / 1024 ** 3:.2f} GB"


def schema_summary(schema: DatabaseSchema) -> dict[str, int]:
    """Counts of tables, columns, relations and tables holding data."""
    return {
        "tables": len(schema.tables),
        "columns": sum(len(t.columns) for t in schema.tables),
        "relations": len(schema.relations),
        "tables_with_data": sum(1 for t in schema.tables if t.has_data),
    }
