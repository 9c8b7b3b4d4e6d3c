"""CSV ingestion for carrier commission reports."""

from .columns import DEFAULT_COLUMN_ALIASES, ColumnMapping, resolve_columns
from .pipeline import RowRejected, build_commission_row, ingest_commission_csv
from .utils import LoadedCsv, read_csv_path, read_csv_text

__all__ = [
    "DEFAULT_COLUMN_ALIASES",
    "ColumnMapping",
    "LoadedCsv",
    "RowRejected",
    "build_commission_row",
    "ingest_commission_csv",
    "read_csv_path",
    "read_csv_text",
    "resolve_columns",
]
