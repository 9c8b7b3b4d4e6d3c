from __future__ import annotations

import logging
from datetime import date
from decimal import Decimal
from pathlib import Path

import pytest
from db.models.commissions import CmLine, CmTransaction
from sqlalchemy import select
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session

import commission_tracker.ingest.pipeline as pipeline
from commission_tracker.ingest import ingest_commission_csv
from commission_tracker.ingest.columns import resolve_columns
from commission_tracker.ingest.pipeline import RowRejected, build_commission_row
from commission_tracker.models import ActivityType

from tests.helpers.db import seed_line

USER = "user-1"


def _lines(session: Session, user_id: str = USER) -> list[CmLine]:
    return list(
        session.scalars(
            select(CmLine).where(CmLine.user_id == user_id).order_by(CmLine.created_at)
        )
    )


def _txs(session: Session, user_id: str = USER) -> list[CmTransaction]:
    return list(
        session.scalars(
            select(CmTransaction)
            .where(CmTransaction.user_id == user_id)
            .order_by(CmTransaction.created_at)
        )
    )


# ---- Row building ------------------------------------------------------------


def test_build_commission_row_normalizes_and_classifies():
    mapping = resolve_columns(["ACCOUNT_NUM", "CUSTOMER", "PROVIDER", "CYCLE", "COMP_PAID", "NOTE"])
    row = build_commission_row(
        {
            "ACCOUNT_NUM": " 1-202-555-1234 ",
            "CUSTOMER": " Doe, Jane, ",
            "PROVIDER": "  ",
            "CYCLE": " 11/2025 ",
            "COMP_PAID": "$150.00",
            "NOTE": "Component:Upfront",
        },
        mapping,
        row_number=1,
    )
    assert row.mdn == "2025551234"
    assert row.customer == "Doe, Jane"
    assert row.provider is None
    assert row.cycle == "11/2025"
    assert row.category is ActivityType.ACT
    assert row.amount == Decimal("150.00")
    assert row.transaction_date == date(2025, 11, 1)


@pytest.mark.parametrize(
    ("account", "amount", "message"),
    [
        ("555-1234", "$1.00", "service number"),
        ("2025551234", "TBD", "malformed amount"),
        ("2025551234", "1e30", "out of range"),
        ("2025551234", "$10,000,000,000.00", "out of range"),
    ],
)
def test_build_commission_row_rejects(account, amount, message):
    mapping = resolve_columns(["MDN", "Amount"])
    with pytest.raises(RowRejected, match=message):
        build_commission_row({"MDN": account, "Amount": amount}, mapping, row_number=3)


def test_blank_amount_is_zero_not_invalid():
    mapping = resolve_columns(["MDN", "Amount"])
    row = build_commission_row({"MDN": "2025551234", "Amount": " "}, mapping, row_number=1)
    assert row.amount == Decimal("0")
    assert row.category is ActivityType.RESIDUAL


# ---- Pipeline ----------------------------------------------------------------


def test_mixed_file_counts_and_records(session: Session, data_dir: Path):
    text = (data_dir / "commissions_nov_2025.csv").read_text(encoding="utf-8")

    summary = ingest_commission_csv(session, text, user_id=USER)

    assert summary.as_dict() == {
        "created": 3,
        "updated": 2,
        "transactions": 5,
        "skipped": 0,
        "invalid": 2,
        "failed": 0,
    }

    lines = _lines(session)
    assert [(ln.mdn, ln.customer_name, ln.provider, ln.status) for ln in lines] == [
        ("2025551234", "Doe, Jane", "Verizon", "ACTIVE"),
        ("3035550000", "Bob Smith", "AT&T", "ACTIVE"),
        ("4045550001", "Unknown", "Verizon", "ACTIVE"),
    ]
    assert lines[0].activation_date == date(2025, 11, 1)

    txs = _txs(session)
    assert [(t.mdn, t.category, t.amount) for t in txs] == [
        ("2025551234", "ACT", Decimal("150.00")),
        ("2025551234", "RESIDUAL", Decimal("20.00")),
        ("3035550000", "ACT", Decimal("1000.00")),
        ("3035550000", "DEACT", Decimal("-50.00")),
        ("4045550001", "RESIDUAL", Decimal("5.00")),
    ]
    by_line = {ln.mdn: ln.id for ln in lines}
    assert all(t.line_id == by_line[t.mdn] for t in txs)
    # The raw carrier code is stored as-is (this export has none).
    assert all(t.activity_type is None for t in txs)


def test_reingest_is_idempotent(session: Session, data_dir: Path):
    text = (data_dir / "commissions_nov_2025.csv").read_text(encoding="utf-8")
    first = ingest_commission_csv(session, text, user_id=USER)

    second = ingest_commission_csv(session, text, user_id=USER)

    assert second.transactions == 0
    assert second.created == 0
    assert second.skipped == first.transactions
    assert second.invalid == first.invalid
    assert len(_txs(session)) == first.transactions


def test_users_never_share_lines(session: Session, data_dir: Path):
    text = (data_dir / "commissions_single_upfront.csv").read_text(encoding="utf-8")
    ingest_commission_csv(session, text, user_id=USER)

    other = ingest_commission_csv(session, text, user_id="user-2")

    assert (other.created, other.transactions, other.skipped) == (1, 1, 0)
    assert len(_lines(session)) == 1
    assert len(_lines(session, "user-2")) == 1


@pytest.mark.parametrize("user_id", [None, "", "   "])
def test_missing_user_is_fatal(session: Session, user_id):
    with pytest.raises(RuntimeError, match="Not authenticated"):
        ingest_commission_csv(session, "MDN,Amount\n2025551234,1\n", user_id=user_id)


def test_duplicate_lines_prefer_exact_provider_and_customer(session: Session, db_url: str):
    first = seed_line(database_url=db_url, user_id=USER, mdn="2025551234", customer_name="A")
    second = seed_line(database_url=db_url, user_id=USER, mdn="2025551234", customer_name="B")

    text = (
        "MDN,Customer,Provider,Amount,Note\n"
        "2025551234,B,Carrier,10,residual\n"
        "2025551234,C,Carrier,11,residual\n"
    )
    summary = ingest_commission_csv(session, text, user_id=USER)

    assert (summary.created, summary.updated, summary.transactions) == (0, 2, 2)
    assert [t.line_id for t in _txs(session)] == [second, first]


def test_column_aliases_extend_defaults(session: Session):
    text = "Svc #,Net $\n2025551234,12.50\n"
    summary = ingest_commission_csv(
        session,
        text,
        user_id=USER,
        column_aliases={"mdn": ["Svc #"], "amount": ["Net $"]},
    )
    assert summary.transactions == 1
    assert _txs(session)[0].amount == Decimal("12.50")


def test_invalid_rows_are_logged(session: Session, caplog: pytest.LogCaptureFixture):
    caplog.set_level(logging.WARNING, logger="commission_tracker")
    text = "MDN,Amount\n555-1234,1\n2025551234,abc\n"

    summary = ingest_commission_csv(session, text, user_id=USER)

    assert summary.invalid == 2
    assert summary.transactions == 0
    messages = [r.getMessage() for r in caplog.records]
    assert any("row 1" in m and "service number" in m for m in messages)
    assert any("row 2" in m and "malformed amount" in m for m in messages)


def test_database_errors_fail_only_their_row(
    session: Session, data_dir: Path, monkeypatch: pytest.MonkeyPatch
):
    real_insert = pipeline.insert_transaction

    def flaky_insert(session, *, user_id, line, row):
        if row.mdn == "3035550000":
            raise OperationalError("INSERT INTO cm_transactions", {}, Exception("disk I/O error"))
        return real_insert(session, user_id=user_id, line=line, row=row)

    monkeypatch.setattr(pipeline, "insert_transaction", flaky_insert)
    text = (data_dir / "commissions_nov_2025.csv").read_text(encoding="utf-8")

    summary = ingest_commission_csv(session, text, user_id=USER)

    assert summary.failed == 2
    assert (summary.created, summary.updated, summary.transactions) == (2, 1, 3)
    # The line created for a failed row is rolled back with it.
    assert "3035550000" not in {ln.mdn for ln in _lines(session)}


def test_oversized_amount_is_invalid_and_batch_continues(session: Session):
    text = "MDN,Amount\n2025551234,1e30\n3035550000,$5.00\n"

    summary = ingest_commission_csv(session, text, user_id=USER)

    assert (summary.invalid, summary.transactions, summary.failed) == (1, 1, 0)
    assert [ln.mdn for ln in _lines(session)] == ["3035550000"]


# ---- Rows within one upload --------------------------------------------------


def test_repeated_row_in_one_file_is_skipped(session: Session):
    text = (
        "MDN,Customer,Cycle,Amount,Note\n"
        "2025551234,Jane Doe,11/2025,$150.00,Component:Upfront\n"
        "2025551234,Jane Doe,11/2025,$150.00,Component:Upfront\n"
    )

    summary = ingest_commission_csv(session, text, user_id=USER)

    assert (summary.created, summary.updated) == (1, 1)
    assert (summary.transactions, summary.skipped) == (1, 1)
    assert len(_txs(session)) == 1


def test_new_mdn_gets_one_line_across_rows(session: Session):
    text = (
        "MDN,Customer,Cycle,Amount,Note\n"
        "2025551234,Jane Doe,11/2025,$150.00,Component:Upfront\n"
        "2025551234,Jane Doe,12/2025,$20.00,residual\n"
    )

    summary = ingest_commission_csv(session, text, user_id=USER)

    assert (summary.created, summary.updated, summary.transactions) == (1, 1, 2)
    lines = _lines(session)
    assert len(lines) == 1
    assert {t.line_id for t in _txs(session)} == {lines[0].id}
