"""Per-line aggregation of classified commission transactions.

Totals are never stored. They are recomputed from a line's full transaction
set on every read, so the result is the same whether it runs over all
history at once or over any partition of it, and reclassification-rule
changes show up immediately.
"""

from __future__ import annotations

from collections.abc import Iterable
from decimal import Decimal

from .classify import classify_transaction
from .models import ClassifiedTransaction, LineTotals, PaymentStatus, TransactionLike


def aggregate_line(classified: Iterable[ClassifiedTransaction]) -> LineTotals:
    """Fold classified transactions of one line into ``LineTotals``.

    Every amount counts toward ``net_total``. Each transaction lands in at
    most one bucket, checked in order: chargebacks, upfront, monthly.
    """

    upfront_total = Decimal("0")
    monthly_total = Decimal("0")
    chargebacks = Decimal("0")
    net_total = Decimal("0")

    for tx in classified:
        net_total += tx.amount
        if tx.is_chargeback:
            chargebacks += tx.amount
        elif tx.is_upfront:
            upfront_total += tx.amount
        elif tx.is_monthly:
            monthly_total += tx.amount

    has_upfront = upfront_total > 0
    has_monthly_commission = monthly_total > 0

    if has_upfront and has_monthly_commission:
        status = PaymentStatus.COMPLETE
    elif has_upfront or has_monthly_commission:
        status = PaymentStatus.PARTIAL
    else:
        status = PaymentStatus.NONE

    return LineTotals(
        upfront_total=upfront_total,
        monthly_total=monthly_total,
        chargebacks=chargebacks,
        net_total=net_total,
        has_upfront=has_upfront,
        has_monthly_commission=has_monthly_commission,
        payment_status=status,
    )


def line_totals(transactions: Iterable[TransactionLike]) -> LineTotals:
    """Classify raw transaction records and aggregate them in one pass."""

    return aggregate_line(classify_transaction(tx) for tx in transactions)


def payment_status_label(totals: LineTotals) -> str:
    """Short human-readable status, as shown next to a line in reports."""

    if totals.has_upfront and totals.has_monthly_commission:
        return "Complete"
    if not totals.has_upfront and not totals.has_monthly_commission:
        return "No Payments"
    return "Missing Upfront" if not totals.has_upfront else "Missing Monthly"


__all__ = ["aggregate_line", "line_totals", "payment_status_label"]
