"""Public interface for the ``commission_tracker`` package.

Exposes the pure classification/aggregation functions, the normalizers used
to present carrier values, and the public models as the stable import
surface. Database-backed entrypoints live in ``commission_tracker.api``.
"""

from .aggregate import aggregate_line, line_totals, payment_status_label
from .classify import (
    DEFAULT_RULES,
    ClassificationRule,
    classify,
    classify_transaction,
    explain_classification,
)
from .models import (
    ActivityType,
    ClassifiedTransaction,
    CommissionRow,
    IngestSummary,
    LineStatus,
    LineTotals,
    PaymentStatus,
)
from .normalizers import (
    clean_customer_name,
    extract_mdn,
    parse_amount,
    parse_cycle_date,
    try_parse_amount,
)

__all__ = [
    # Classification / aggregation
    "classify",
    "classify_transaction",
    "explain_classification",
    "aggregate_line",
    "line_totals",
    "payment_status_label",
    "ClassificationRule",
    "DEFAULT_RULES",
    # Normalizers
    "parse_amount",
    "try_parse_amount",
    "parse_cycle_date",
    "extract_mdn",
    "clean_customer_name",
    # Models / types
    "ActivityType",
    "LineStatus",
    "PaymentStatus",
    "ClassifiedTransaction",
    "LineTotals",
    "IngestSummary",
    "CommissionRow",
]
