"""Column mapping for carrier commission CSVs.

Carriers rename their export columns over time (``ACCOUNT_NUM`` becomes
``Account Number`` becomes ``MDN``...). Rather than one adapter per shape,
ingestion maps each *logical* field to a list of accepted header aliases and
resolves the mapping once per file. Row processing only ever sees logical
field names.

Header matching ignores case, surrounding whitespace, and the difference
between ``_``, ``-`` and spaces, so ``COMP_PAID``, ``Comp Paid`` and
``comp-paid`` are the same header.
"""

from __future__ import annotations

import csv
import re
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass

# Logical fields
MDN = "mdn"
CUSTOMER = "customer"
PROVIDER = "provider"
CYCLE = "cycle"
AMOUNT = "amount"
NOTE = "note"
ACTIVITY_TYPE = "activity_type"

REQUIRED_FIELDS: frozenset[str] = frozenset({MDN, AMOUNT})

DEFAULT_COLUMN_ALIASES: Mapping[str, tuple[str, ...]] = {
    MDN: (
        "ACCOUNT_NUM",
        "ACCOUNT NUMBER",
        "ACCOUNT",
        "MDN",
        "CTN",
        "PHONE",
        "PHONE NUMBER",
        "MOBILE NUMBER",
        "WIRELESS NUMBER",
        "SERVICE NUMBER",
        "SUBSCRIBER NUMBER",
    ),
    CUSTOMER: (
        "CUSTOMER",
        "CUSTOMER NAME",
        "CUST NAME",
        "SUBSCRIBER NAME",
        "ACCOUNT NAME",
        "NAME",
    ),
    PROVIDER: ("PROVIDER", "CARRIER", "CARRIER NAME", "VENDOR"),
    CYCLE: (
        "CYCLE",
        "COMM CYCLE",
        "BILL CYCLE",
        "BILLING CYCLE",
        "BILLING PERIOD",
        "PERIOD",
        "STATEMENT MONTH",
        "PAY PERIOD",
    ),
    AMOUNT: (
        "COMP_PAID",
        "COMP PAID",
        "COMPENSATION",
        "COMMISSION",
        "COMMISSION AMOUNT",
        "AMOUNT",
        "PAYOUT",
        "NET COMP",
    ),
    NOTE: ("NOTE", "NOTES", "COMMENT", "COMMENTS", "DESCRIPTION", "DETAILS", "COMP NOTE"),
    ACTIVITY_TYPE: (
        "ACTIVITY_TYPE",
        "ACTIVITY TYPE",
        "ACTIVITY",
        "ACT TYPE",
        "TRANSACTION TYPE",
        "COMP TYPE",
        "TYPE",
    ),
}


def normalize_header(name: str) -> str:
    """Canonical form used for alias comparison (``" Comp_Paid "`` -> ``"COMP PAID"``)."""

    return re.sub(r"[\s_\-]+", " ", name.replace("\ufeff", "")).strip().upper()


@dataclass(frozen=True, slots=True)
class ColumnMapping:
    """Logical field -> actual header name for one file."""

    columns: Mapping[str, str]

    def get(self, row: Mapping[str, str | None], field: str) -> str:
        """Cell value for ``field`` in ``row``; ``""`` when absent or unmapped."""

        header = self.columns.get(field)
        if header is None:
            return ""
        value = row.get(header)
        return value if value is not None else ""

    def has(self, field: str) -> bool:
        return field in self.columns


def merge_aliases(
    extra: Mapping[str, Sequence[str]] | None,
    base: Mapping[str, Sequence[str]] = DEFAULT_COLUMN_ALIASES,
) -> dict[str, tuple[str, ...]]:
    """Extend ``base`` with ``extra`` aliases; extra aliases are tried first."""

    merged = {field: tuple(aliases) for field, aliases in base.items()}
    for field, aliases in (extra or {}).items():
        merged[field] = tuple(aliases) + merged.get(field, ())
    return merged


def resolve_columns(
    headers: Iterable[str],
    aliases: Mapping[str, Sequence[str]] = DEFAULT_COLUMN_ALIASES,
) -> ColumnMapping:
    """Map logical fields onto the headers present in a file.

    Alias order decides ties: the first alias that matches a header wins, and
    a header claimed by one field is not reused for another. Raises
    ``csv.Error`` when a required field has no matching header.
    """

    by_norm: dict[str, str] = {}
    for h in headers:
        if h is None:
            continue
        by_norm.setdefault(normalize_header(h), h)

    claimed: set[str] = set()
    columns: dict[str, str] = {}
    for field, field_aliases in aliases.items():
        for alias in field_aliases:
            header = by_norm.get(normalize_header(alias))
            if header is not None and header not in claimed:
                columns[field] = header
                claimed.add(header)
                break

    missing = sorted(f for f in REQUIRED_FIELDS if f not in columns)
    if missing:
        expected = "; ".join(f"{f}: {', '.join(aliases.get(f, ()))}" for f in missing)
        raise csv.Error(
            "CSV header mismatch: no column found for required field(s) "
            + ", ".join(missing)
            + f". Accepted headers -> {expected}"
        )
    return ColumnMapping(columns=columns)


__all__ = [
    "ACTIVITY_TYPE",
    "AMOUNT",
    "CUSTOMER",
    "CYCLE",
    "DEFAULT_COLUMN_ALIASES",
    "MDN",
    "NOTE",
    "PROVIDER",
    "REQUIRED_FIELDS",
    "ColumnMapping",
    "merge_aliases",
    "normalize_header",
    "resolve_columns",
]
