"""Read-side reports built from freshly classified transactions.

Nothing here is stored: every total is recomputed from the transactions on
each call, using the current classification rules.
"""

from __future__ import annotations

import csv
from collections import Counter
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from typing import TextIO

from db.models.commissions import CmLine, CmTransaction
from sqlalchemy import func, select
from sqlalchemy.orm import Session

from .aggregate import line_totals, payment_status_label
from .classify import classify_transaction, explain_classification
from .models import ActivityType, LineStatus, LineTotals
from .persistence import get_line, list_lines, list_user_transactions, load_line_transactions


@dataclass(frozen=True, slots=True)
class LineSummary:
    line_id: str
    mdn: str
    customer_name: str
    provider: str | None
    status: str
    activation_date: date | None
    transaction_count: int
    totals: LineTotals

    @property
    def payment_label(self) -> str:
        return payment_status_label(self.totals)


@dataclass(frozen=True, slots=True)
class DashboardStats:
    """Account-wide KPIs.

    ``total_chargebacks`` is reported as a positive magnitude.
    """

    total_upfront: Decimal
    total_monthly: Decimal
    total_chargebacks: Decimal
    active_lines: int


@dataclass(frozen=True, slots=True)
class ActivityItem:
    transaction_id: str
    mdn: str
    customer: str | None
    category: ActivityType
    amount: Decimal
    transaction_date: date | None
    created_at: datetime


@dataclass(frozen=True, slots=True)
class LineDetail:
    """One line with its transaction history, newest first."""

    summary: LineSummary
    transactions: list[ActivityItem]

    @property
    def total_commissions(self) -> Decimal:
        return self.summary.totals.net_total


@dataclass(frozen=True, slots=True)
class ExplainedTransaction:
    transaction_id: str
    mdn: str
    cycle: str
    note: str | None
    activity_type: str | None
    amount: Decimal
    stored_category: str
    category: ActivityType
    rule: str


@dataclass(frozen=True, slots=True)
class LineExplanation:
    mdn: str | None
    items: list[ExplainedTransaction]
    category_counts: dict[str, int]
    activity_type_counts: dict[str, int]

    @property
    def reclassified(self) -> list[ExplainedTransaction]:
        """Transactions whose category today differs from the one stored at ingest."""

        return [it for it in self.items if it.stored_category != it.category]


# ---------------------------
# Lines
# ---------------------------


def _summary(line: CmLine, txs: list[CmTransaction]) -> LineSummary:
    return LineSummary(
        line_id=line.id,
        mdn=line.mdn,
        customer_name=line.customer_name,
        provider=line.provider,
        status=line.status,
        activation_date=line.activation_date,
        transaction_count=len(txs),
        totals=line_totals(txs),
    )


def summarize_line(session: Session, line: CmLine) -> LineSummary:
    return _summary(line, load_line_transactions(session, line=line))


def summarize_lines(
    session: Session, *, user_id: str, search: str | None = None
) -> list[LineSummary]:
    """Per-line totals for every line of ``user_id`` (newest line first)."""

    return [summarize_line(session, line) for line in list_lines(session, user_id=user_id, search=search)]


def line_detail(session: Session, *, user_id: str, line_id: str) -> LineDetail | None:
    """Line info, totals and freshly classified history; ``None`` when not found."""

    line = get_line(session, user_id=user_id, line_id=line_id)
    if line is None:
        return None
    txs = load_line_transactions(session, line=line)
    return LineDetail(summary=_summary(line, txs), transactions=[_activity_item(tx) for tx in txs])


EXPORT_HEADERS: tuple[str, ...] = (
    "MDN",
    "Customer Name",
    "Provider",
    "Status",
    "Activation Date",
    "Transaction Count",
    "Upfront Total",
    "Monthly Total",
    "Chargebacks",
    "Net Total",
    "Payment Status",
)


def _money(d: Decimal) -> str:
    return f"{d:.2f}"


def export_lines_csv(summaries: Iterable[LineSummary], out: TextIO) -> int:
    """Write the lines export to ``out``; returns the number of data rows."""

    writer = csv.writer(out, lineterminator="\n")
    writer.writerow(EXPORT_HEADERS)
    n = 0
    for s in summaries:
        writer.writerow(
            [
                s.mdn,
                s.customer_name,
                s.provider or "",
                s.status,
                s.activation_date.isoformat() if s.activation_date else "",
                s.transaction_count,
                _money(s.totals.upfront_total),
                _money(s.totals.monthly_total),
                _money(s.totals.chargebacks),
                _money(s.totals.net_total),
                str(s.totals.payment_status),
            ]
        )
        n += 1
    return n


# ---------------------------
# Dashboard
# ---------------------------


def dashboard_stats(session: Session, *, user_id: str) -> DashboardStats:
    """Upfront, monthly and chargeback totals across the account plus active lines."""

    upfront = Decimal("0")
    monthly = Decimal("0")
    chargebacks = Decimal("0")
    for tx in list_user_transactions(session, user_id=user_id):
        c = classify_transaction(tx)
        if c.is_chargeback:
            chargebacks += abs(c.amount)
        elif c.is_upfront:
            upfront += c.amount
        elif c.is_monthly:
            monthly += c.amount

    active = session.scalar(
        select(func.count())
        .select_from(CmLine)
        .where(CmLine.user_id == user_id, CmLine.status == str(LineStatus.ACTIVE))
    )
    return DashboardStats(
        total_upfront=upfront,
        total_monthly=monthly,
        total_chargebacks=chargebacks,
        active_lines=int(active or 0),
    )


def _activity_item(tx: CmTransaction) -> ActivityItem:
    c = classify_transaction(tx)
    return ActivityItem(
        transaction_id=tx.id,
        mdn=tx.mdn,
        customer=tx.customer,
        category=c.category,
        amount=c.amount,
        transaction_date=tx.transaction_date,
        created_at=tx.created_at,
    )


def recent_activity(session: Session, *, user_id: str, limit: int = 10) -> list[ActivityItem]:
    return [_activity_item(tx) for tx in list_user_transactions(session, user_id=user_id, limit=limit)]


# ---------------------------
# Classification trace
# ---------------------------


def _explain(tx: CmTransaction) -> ExplainedTransaction:
    category, rule = explain_classification(tx.activity_type, tx.note, tx.cycle, tx.amount)
    return ExplainedTransaction(
        transaction_id=tx.id,
        mdn=tx.mdn,
        cycle=tx.cycle,
        note=tx.note,
        activity_type=tx.activity_type,
        amount=tx.amount,
        stored_category=tx.category,
        category=category,
        rule=rule,
    )


# Transactions traced when no MDN is given.
EXPLAIN_SAMPLE_SIZE = 20

NO_ACTIVITY_TYPE = "(none)"


def explain_line(
    session: Session, *, user_id: str, mdn: str | None = None
) -> LineExplanation:
    """Rule trace for every transaction stored under ``mdn``.

    Without an MDN the newest ``EXPLAIN_SAMPLE_SIZE`` transactions of the user
    are traced instead. Both the current categories and the raw carrier codes
    are tallied; a missing code counts as ``NO_ACTIVITY_TYPE``.
    """

    limit = None if mdn else EXPLAIN_SAMPLE_SIZE
    txs = list_user_transactions(session, user_id=user_id, mdn=mdn, limit=limit)
    items = [_explain(tx) for tx in txs]
    return LineExplanation(
        mdn=mdn,
        items=items,
        category_counts=dict(Counter(str(it.category) for it in items)),
        activity_type_counts=dict(
            Counter(it.activity_type or NO_ACTIVITY_TYPE for it in items)
        ),
    )


__all__ = [
    "EXPLAIN_SAMPLE_SIZE",
    "EXPORT_HEADERS",
    "NO_ACTIVITY_TYPE",
    "ActivityItem",
    "DashboardStats",
    "ExplainedTransaction",
    "LineDetail",
    "LineExplanation",
    "LineSummary",
    "dashboard_stats",
    "explain_line",
    "export_lines_csv",
    "line_detail",
    "recent_activity",
    "summarize_line",
    "summarize_lines",
]
