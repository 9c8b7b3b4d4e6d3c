"""CSV loading helpers shared by the ingestion pipeline and the CLI.

Parsing follows RFC 4180 via the stdlib :mod:`csv` module (quoted fields,
embedded commas, doubled quotes). Failures that make the whole file unusable
(empty text, no header, no data rows, missing required columns) raise
``csv.Error`` before any row is processed.
"""

from __future__ import annotations

import csv
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from io import StringIO
from os import PathLike
from pathlib import Path

from .columns import DEFAULT_COLUMN_ALIASES, ColumnMapping, resolve_columns


@dataclass(frozen=True, slots=True)
class LoadedCsv:
    """Header-resolved CSV content: the column mapping plus raw row dicts.

    ``rows`` keeps file order; each entry is ``(line_number, row)`` where
    ``line_number`` is the 1-based data row index (header excluded).
    """

    mapping: ColumnMapping
    headers: tuple[str, ...]
    rows: list[tuple[int, dict[str, str]]]


def read_csv_text(
    csv_text: str,
    *,
    aliases: Mapping[str, Sequence[str]] = DEFAULT_COLUMN_ALIASES,
) -> LoadedCsv:
    """Parse commission CSV text and resolve its columns."""

    # Exports saved from Excel often carry a UTF-8 BOM.
    text = csv_text.lstrip("\ufeff")
    if not text.strip():
        raise csv.Error("CSV is empty")

    with StringIO(text) as f:
        reader = csv.DictReader(f)
        headers = [h.strip() if h else "" for h in (reader.fieldnames or [])]
        if not any(headers):
            raise csv.Error("CSV appears to have no header row")
        reader.fieldnames = headers
        mapping = resolve_columns(headers, aliases)

        rows: list[tuple[int, dict[str, str]]] = []
        for idx, row in enumerate(reader, start=1):
            # DictReader collects surplus cells under a None key; drop them and
            # turn missing trailing cells (None) into empty strings.
            normalized = {k: (v if v is not None else "") for k, v in row.items() if k is not None}
            if all(v.strip() == "" for v in normalized.values()):
                continue
            rows.append((idx, normalized))

    if not rows:
        raise csv.Error("No data found in CSV file")
    return LoadedCsv(mapping=mapping, headers=tuple(headers), rows=rows)


def read_csv_path(csv_path: str | PathLike[str]) -> str:
    """Read a CSV file as UTF-8 text (BOM tolerated)."""

    p = Path(csv_path)
    with p.open(encoding="utf-8-sig", newline="") as f:
        return f.read()


__all__ = ["LoadedCsv", "read_csv_path", "read_csv_text"]
