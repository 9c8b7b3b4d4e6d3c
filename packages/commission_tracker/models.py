"""Data models and type aliases for ``commission_tracker``.

Two families live here:

- Derived, never-persisted value objects (``ClassifiedTransaction``,
  ``LineTotals``, ``IngestSummary``) implemented as frozen dataclasses. They
  are recomputed on every read so classification rules can change without a
  data migration.
- ``CommissionRow``: the validated, normalized candidate record produced by
  ingestion for each CSV row before it reaches the database.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, field_validator

# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------


class ActivityType(StrEnum):
    """Canonical commission activity categories."""

    ACT = "ACT"
    """One-time activation (upfront) commission."""

    RESIDUAL = "RESIDUAL"
    """Recurring monthly commission on an active line."""

    DEACT = "DEACT"
    """Chargeback/clawback of previously paid commission."""


class LineStatus(StrEnum):
    ACTIVE = "ACTIVE"
    INACTIVE = "INACTIVE"
    SUSPENDED = "SUSPENDED"


class PaymentStatus(StrEnum):
    COMPLETE = "complete"
    PARTIAL = "partial"
    NONE = "none"


# A transaction-like record as read back from storage or built by callers.
# Either a mapping or an object exposing ``activity_type``, ``note``,
# ``cycle`` and ``amount``.
type TransactionLike = Mapping[str, Any] | Any


# ---------------------------------------------------------------------------
# Derived value objects
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class ClassifiedTransaction:
    """A transaction reduced to what aggregation needs.

    At most one of ``is_upfront``, ``is_monthly`` and ``is_chargeback`` is
    true. A zero-amount ACT or RESIDUAL sets none of them.
    """

    amount: Decimal
    category: ActivityType
    is_upfront: bool
    is_monthly: bool
    is_chargeback: bool


@dataclass(frozen=True, slots=True)
class LineTotals:
    """Per-line aggregate, a pure function of the line's transaction set."""

    upfront_total: Decimal
    monthly_total: Decimal
    chargebacks: Decimal
    net_total: Decimal
    has_upfront: bool
    has_monthly_commission: bool
    payment_status: PaymentStatus


@dataclass(slots=True)
class IngestSummary:
    """Counters describing one ingestion run.

    ``skipped`` counts duplicate transactions only; rows rejected before the
    duplicate check are counted in ``invalid`` and rows lost to persistence
    errors in ``failed``.
    """

    created: int = 0
    updated: int = 0
    transactions: int = 0
    skipped: int = 0
    invalid: int = 0
    failed: int = 0

    def as_dict(self) -> dict[str, int]:
        return {
            "created": self.created,
            "updated": self.updated,
            "transactions": self.transactions,
            "skipped": self.skipped,
            "invalid": self.invalid,
            "failed": self.failed,
        }


# ---------------------------------------------------------------------------
# Ingestion DTO
# ---------------------------------------------------------------------------


class CommissionRow(BaseModel):
    """Normalized candidate transaction built from one CSV row.

    Only typed, cleaned values cross into the persistence layer; raw CSV text
    never does.
    """

    model_config = ConfigDict(strict=True, frozen=True, str_strip_whitespace=True)

    row_number: int
    mdn: str
    customer: str
    provider: str | None = None
    cycle: str = ""
    note: str | None = None
    activity_type: str | None = None
    category: ActivityType
    amount: Decimal
    transaction_date: date | None = None

    @field_validator("mdn")
    @classmethod
    def _mdn_ten_digits(cls, v: str) -> str:
        if len(v) != 10 or not v.isdigit():
            raise ValueError("mdn must be exactly 10 digits")
        return v

    @field_validator("provider", "note", "activity_type")
    @classmethod
    def _blank_to_none(cls, v: str | None) -> str | None:
        if v is None:
            return None
        return v if v.strip() else None


__all__ = [
    "ActivityType",
    "LineStatus",
    "PaymentStatus",
    "TransactionLike",
    "ClassifiedTransaction",
    "LineTotals",
    "IngestSummary",
    "CommissionRow",
]
