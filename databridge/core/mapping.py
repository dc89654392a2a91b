"""
Table Mappings

Builds the table mappings of a migration job from a CSV/Excel mapping
sheet or from a fetched database schema.
"""

from pathlib import Path

import pandas as pd

from databridge.contracts import DatabaseSchema, MigrationTableMapping


class MappingError(Exception):
    """Raised when table mappings cannot be built."""
    pass


class MappingReader:
    """
    Reads column-level mapping sheets.

    One row per column pair::

        source_table,source_column,destination_table,destination_column,transformation_rule
        Users,id,Users,id,
        Users,mail,Users,email,lowercase

    Rows are grouped by (source_table, destination_table) in first-seen
    order. ``transformation_rule`` is optional and keyed by the
    destination column.

    Example:
        >>> reader = MappingReader()
        >>> mappings = reader.read_file("mappings.xlsx", sheet="Tables")
    """

    REQUIRED_COLUMNS = ("source_table", "source_column", "destination_table", "destination_column")
    RULE_COLUMN = "transformation_rule"

    ENCODINGS = ["utf-8", "utf-8-sig", "latin-1", "cp1252"]
    SUPPORTED_EXTENSIONS = {".csv", ".xlsx", ".xls"}

    def read_file(
        self,
        file_path: str | Path,
        sheet: str | None = None,
    ) -> list[MigrationTableMapping]:
        """
        Read a mapping sheet.

        Args:
            file_path: CSV or Excel file
            sheet: Sheet name for Excel files (first sheet if None)

        Returns:
            One mapping per table pair

        Raises:
            MappingError: If the file is missing, unreadable or malformed
        """
        path = Path(file_path)

        if not path.exists():
            raise MappingError(f"Mapping file not found: {path}")

        suffix = path.suffix.lower()
        if suffix not in self.SUPPORTED_EXTENSIONS:
            raise MappingError(
                f"Unsupported file type: {suffix}. "
                f"Supported: {', '.join(sorted(self.SUPPORTED_EXTENSIONS))}"
            )

        if suffix == ".csv":
            df = self._read_csv(path)
        else:
            df = self._read_excel(path, sheet)

        return self.from_dataframe(df, source=str(path))

    def from_dataframe(
        self,
        df: pd.DataFrame,
        source: str = "<dataframe>",
    ) -> list[MigrationTableMapping]:
        """Group mapping rows into table mappings."""
        df = df.rename(columns=lambda c: str(c).strip().lower())

        missing = [c for c in self.REQUIRED_COLUMNS if c not in df.columns]
        if missing:
            raise MappingError(f"{source}: missing columns: {', '.join(missing)}")

        groups: dict[tuple[str, str], dict] = {}

        for index, row in df.iterrows():
            values = {c: str(row[c]).strip() for c in self.REQUIRED_COLUMNS}
            if not any(values.values()):
                continue  # blank line

            empty = [c for c, v in values.items() if not v]
            if empty:
                # Row numbers are 1-indexed, accounting for header
                raise MappingError(
                    f"{source}: row {int(index) + 2} is missing {', '.join(empty)}"
                )

            key = (values["source_table"], values["destination_table"])
            group = groups.setdefault(key, {
                "source_table": values["source_table"],
                "destination_table": values["destination_table"],
                "source_columns": [],
                "destination_columns": [],
                "transformation_rules": {},
            })
            group["source_columns"].append(values["source_column"])
            group["destination_columns"].append(values["destination_column"])

            if self.RULE_COLUMN in df.columns:
                rule = str(row[self.RULE_COLUMN]).strip()
                if rule:
                    group["transformation_rules"][values["destination_column"]] = rule

        if not groups:
            raise MappingError(f"{source}: no mappings found")

        return [
            MigrationTableMapping(
                source_table=g["source_table"],
                source_columns=g["source_columns"],
                destination_table=g["destination_table"],
                destination_columns=g["destination_columns"],
                transformation_rules=g["transformation_rules"] or None,
            )
            for g in groups.values()
        ]

    def _read_csv(self, path: Path) -> pd.DataFrame:
        """Read CSV file with encoding detection."""
        for enc in self.ENCODINGS:
            try:
                return pd.read_csv(
                    path,
                    encoding=enc,
                    dtype=str,  # Keep column names verbatim
                    keep_default_na=False,  # Don't convert empty to NaN
                )
            except UnicodeDecodeError:
                continue
            except pd.errors.EmptyDataError as e:
                raise MappingError(f"Mapping file is empty: {path}") from e
            except pd.errors.ParserError as e:
                raise MappingError(f"Cannot parse CSV file {path}: {e}") from e

        raise MappingError(
            f"Cannot decode CSV file. Tried encodings: {', '.join(self.ENCODINGS)}"
        )

    def _read_excel(self, path: Path, sheet: str | None) -> pd.DataFrame:
        """Read Excel file."""
        try:
            return pd.read_excel(
                path,
                sheet_name=sheet if sheet else 0,
                dtype=str,
                keep_default_na=False,
                engine="openpyxl",
            )
        except ValueError as e:
            if "Worksheet" in str(e):
                raise MappingError(f"Sheet '{sheet}' not found in {path}") from e
            raise MappingError(f"Error reading Excel file: {e}") from e
        except Exception as e:
            raise MappingError(f"Error reading Excel file: {e}") from e


def mappings_from_schema(
    schema: DatabaseSchema,
    tables: list[str] | None = None,
) -> list[MigrationTableMapping]:
    """
    Identity mappings: every column to the same name in the same table.

    Args:
        schema: Source schema
        tables: Restrict to these table names (all tables if None)

    Raises:
        MappingError: If a requested table is not in the schema
    """
    by_name = {t.name: t for t in schema.tables}

    if tables:
        unknown = [name for name in tables if name not in by_name]
        if unknown:
            raise MappingError(f"Tables not found in schema: {', '.join(unknown)}")
        selected = [by_name[name] for name in tables]
    else:
        selected = sorted(schema.tables, key=lambda t: t.name)

    mappings = []
    for table in selected:
        columns = [c.name for c in table.columns]
        if not columns:
            continue
        mappings.append(MigrationTableMapping(
            source_table=table.name,
            source_columns=columns,
            destination_table=table.name,
            destination_columns=list(columns),
        ))

    if not mappings:
        raise MappingError("Schema has no tables with columns to map")
    return mappings
