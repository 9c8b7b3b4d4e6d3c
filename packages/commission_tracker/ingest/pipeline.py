"""Commission CSV ingestion: rows -> lines and transactions.

Rows are processed strictly in file order, one at a time, each in its own
database transaction. Line resolution and the duplicate check therefore see
every earlier row of the same upload, and an interrupted run leaves its
committed rows in place; re-running the same file resumes it because
already-stored rows are detected as duplicates.

Per-row outcomes never escape the batch:

- no usable MDN, or an amount cell that is not a storable number -> ``invalid``
- already stored -> ``skipped``
- database error while resolving/inserting -> rolled back, ``failed``

Only batch preconditions raise: a missing user (``RuntimeError``) and an
unusable file (``csv.Error``, see :mod:`.utils`).
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence

from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..classify import classify
from ..duplicates import is_duplicate
from ..logging_setup import get_logger
from ..models import CommissionRow, IngestSummary
from ..normalizers import (
    amount_in_range,
    clean_customer_name,
    clean_text,
    cycle_to_date,
    extract_mdn,
    try_parse_amount,
)
from ..persistence import insert_transaction, resolve_line
from . import columns as col
from .columns import DEFAULT_COLUMN_ALIASES, ColumnMapping, merge_aliases
from .utils import read_csv_text

logger = get_logger("commission_tracker.ingest.pipeline")


class RowRejected(ValueError):
    """A CSV row that cannot become a transaction (counted as ``invalid``)."""


def build_commission_row(
    row: Mapping[str, str],
    mapping: ColumnMapping,
    *,
    row_number: int,
) -> CommissionRow:
    """Normalize and classify one raw CSV row.

    Raises ``RowRejected`` when the account field yields fewer than 10 digits,
    the amount cell holds non-numeric text or the amount is too large to store.
    """

    raw_account = mapping.get(row, col.MDN)
    mdn = extract_mdn(raw_account)
    if mdn is None:
        raise RowRejected(f"no 10-digit service number in {raw_account.strip()!r}")

    raw_amount = mapping.get(row, col.AMOUNT)
    amount = try_parse_amount(raw_amount)
    if amount is None:
        raise RowRejected(f"malformed amount {raw_amount.strip()!r}")
    if not amount_in_range(amount):
        raise RowRejected(f"amount out of range {raw_amount.strip()!r}")

    cycle = clean_text(mapping.get(row, col.CYCLE)) or ""
    note = clean_text(mapping.get(row, col.NOTE))
    activity_type = clean_text(mapping.get(row, col.ACTIVITY_TYPE))

    try:
        return CommissionRow(
            row_number=row_number,
            mdn=mdn,
            customer=clean_customer_name(mapping.get(row, col.CUSTOMER)),
            provider=clean_text(mapping.get(row, col.PROVIDER)),
            cycle=cycle,
            note=note,
            activity_type=activity_type,
            category=classify(activity_type, note, cycle, amount),
            amount=amount,
            transaction_date=cycle_to_date(cycle),
        )
    except ValidationError as exc:
        raise RowRejected(str(exc)) from exc


def ingest_commission_csv(
    session: Session,
    csv_text: str,
    *,
    user_id: str | None,
    column_aliases: Mapping[str, Sequence[str]] | None = None,
) -> IngestSummary:
    """Ingest a carrier commission report for ``user_id``.

    Parameters
    ----------
    session:
        Session used for every lookup and insert. The pipeline commits after
        each row and rolls back a row that fails.
    csv_text:
        Full CSV text including the header row.
    user_id:
        Owning user; required for every record.
    column_aliases:
        Extra header aliases per logical field, tried before the defaults.

    Returns
    -------
    IngestSummary
        ``created``/``updated`` count rows whose line was created/found,
        ``transactions`` inserted rows, ``skipped`` duplicates, ``invalid``
        rejected rows and ``failed`` rows lost to database errors.
    """

    if not user_id or not str(user_id).strip():
        raise RuntimeError("Not authenticated: ingestion requires a user id")
    user_id = str(user_id).strip()

    aliases = merge_aliases(column_aliases) if column_aliases else DEFAULT_COLUMN_ALIASES
    loaded = read_csv_text(csv_text, aliases=aliases)
    logger.info(
        "Ingesting %d row(s) for user %s (columns: %s)",
        len(loaded.rows),
        user_id,
        ", ".join(f"{k}={v}" for k, v in sorted(loaded.mapping.columns.items())),
    )

    summary = IngestSummary()
    for row_number, raw in loaded.rows:
        try:
            row = build_commission_row(raw, loaded.mapping, row_number=row_number)
        except RowRejected as exc:
            logger.warning("Skipping row %d: %s", row_number, exc)
            summary.invalid += 1
            continue

        try:
            line, created = resolve_line(session, user_id=user_id, row=row)
            if is_duplicate(session, user_id=user_id, row=row):
                # Duplicate rows still resolve (and may create) their line.
                session.commit()
                if created:
                    summary.created += 1
                else:
                    summary.updated += 1
                summary.skipped += 1
                logger.debug(
                    "Row %d duplicates an existing %s transaction for %s (cycle %r, amount %s)",
                    row_number,
                    row.category,
                    row.mdn,
                    row.cycle,
                    row.amount,
                )
                continue

            insert_transaction(session, user_id=user_id, line=line, row=row)
            session.commit()
        except SQLAlchemyError:
            session.rollback()
            summary.failed += 1
            logger.exception("Row %d: database error; row skipped", row_number)
            continue

        if created:
            summary.created += 1
        else:
            summary.updated += 1
        summary.transactions += 1

    logger.info(
        "Ingestion finished: created=%d updated=%d transactions=%d skipped=%d invalid=%d failed=%d",
        summary.created,
        summary.updated,
        summary.transactions,
        summary.skipped,
        summary.invalid,
        summary.failed,
    )
    return summary


__all__ = ["RowRejected", "build_commission_row", "ingest_commission_csv"]
