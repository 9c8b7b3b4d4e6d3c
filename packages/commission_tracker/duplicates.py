"""Duplicate-transaction lookup used during ingestion.

A commission event is a duplicate when the same user already has a
transaction with identical ``(mdn, cycle, amount, category)``. The check runs
before every insert so the same report can be uploaded any number of times
without creating duplicate financial records.

Two genuinely distinct events that share all four fields inside one cycle are
indistinguishable here and the second one is skipped.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from db.models.commissions import CmTransaction
from sqlalchemy import select
from sqlalchemy.orm import Session

from .models import ActivityType, CommissionRow
from .normalizers import to_cents


@dataclass(frozen=True, slots=True)
class DuplicateKey:
    """Identity of a commission event within one user's account."""

    user_id: str
    mdn: str
    cycle: str
    amount: Decimal
    category: ActivityType

    @classmethod
    def for_row(cls, user_id: str, row: CommissionRow) -> DuplicateKey:
        return cls(
            user_id=user_id,
            mdn=row.mdn,
            cycle=row.cycle,
            amount=to_cents(row.amount),
            category=row.category,
        )


def find_duplicate_transaction(session: Session, key: DuplicateKey) -> CmTransaction | None:
    """Return an existing transaction matching ``key``, if any."""

    stmt = (
        select(CmTransaction)
        .where(
            CmTransaction.user_id == key.user_id,
            CmTransaction.mdn == key.mdn,
            CmTransaction.cycle == key.cycle,
            CmTransaction.amount == key.amount,
            CmTransaction.category == str(key.category),
        )
        .limit(1)
    )
    return session.scalars(stmt).first()


def is_duplicate(session: Session, *, user_id: str, row: CommissionRow) -> bool:
    return find_duplicate_transaction(session, DuplicateKey.for_row(user_id, row)) is not None


__all__ = ["DuplicateKey", "find_duplicate_transaction", "is_duplicate"]
