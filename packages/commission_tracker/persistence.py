# ruff: noqa: I001
"""Persistence integration for commission_tracker.

Functions here read and write lines and transactions in the shared database
owned by ``libs/db``. They rely on SQLAlchemy ORM models defined in
``db.models.commissions`` and a caller-provided session; committing is the
caller's job.

Every query is scoped to a ``user_id``: one user's lines and transactions are
never visible to another.
"""

from __future__ import annotations

from collections.abc import Sequence
from datetime import date

from sqlalchemy import and_, or_, select
from sqlalchemy.orm import Session

from db.models.commissions import CmLine, CmTransaction
from .models import CommissionRow, LineStatus
from .normalizers import to_cents


# ---------------------------
# Lines
# ---------------------------


def find_lines_by_mdn(session: Session, *, user_id: str, mdn: str) -> list[CmLine]:
    """Return every line of ``user_id`` with this MDN, oldest first.

    More than one match is a known data-quality condition (see
    :func:`resolve_line`).
    """

    stmt = (
        select(CmLine)
        .where(CmLine.user_id == user_id, CmLine.mdn == mdn)
        .order_by(CmLine.created_at, CmLine.id)
    )
    return list(session.scalars(stmt))


def pick_line(candidates: Sequence[CmLine], *, provider: str | None, customer: str) -> CmLine:
    """Choose among lines sharing an MDN.

    Prefer an exact (provider, customer) match; otherwise the first candidate.
    """

    for line in candidates:
        if line.provider == provider and line.customer_name == customer:
            return line
    return candidates[0]


def insert_line(
    session: Session,
    *,
    user_id: str,
    mdn: str,
    customer_name: str,
    provider: str | None,
    status: LineStatus = LineStatus.ACTIVE,
    activation_date: date | None = None,
) -> CmLine:
    """Create a line and flush so its generated ``id`` is available."""

    line = CmLine(
        user_id=user_id,
        mdn=mdn,
        customer_name=customer_name,
        provider=provider,
        status=str(status),
        activation_date=activation_date,
    )
    session.add(line)
    session.flush()
    return line


def resolve_line(
    session: Session,
    *,
    user_id: str,
    row: CommissionRow,
) -> tuple[CmLine, bool]:
    """Find or create the owning line for ``row``; returns ``(line, created)``."""

    candidates = find_lines_by_mdn(session, user_id=user_id, mdn=row.mdn)
    if candidates:
        return pick_line(candidates, provider=row.provider, customer=row.customer), False
    line = insert_line(
        session,
        user_id=user_id,
        mdn=row.mdn,
        customer_name=row.customer,
        provider=row.provider,
        activation_date=row.transaction_date,
    )
    return line, True


def get_line(session: Session, *, user_id: str, line_id: str) -> CmLine | None:
    return session.scalars(
        select(CmLine).where(CmLine.user_id == user_id, CmLine.id == line_id)
    ).one_or_none()


def list_lines(session: Session, *, user_id: str, search: str | None = None) -> list[CmLine]:
    """All lines of a user, newest first, optionally filtered by MDN substring."""

    stmt = select(CmLine).where(CmLine.user_id == user_id)
    term = (search or "").strip()
    if term:
        stmt = stmt.where(CmLine.mdn.contains(term, autoescape=True))
    stmt = stmt.order_by(CmLine.created_at.desc(), CmLine.id)
    return list(session.scalars(stmt))


# ---------------------------
# Transactions
# ---------------------------


def insert_transaction(
    session: Session,
    *,
    user_id: str,
    line: CmLine | None,
    row: CommissionRow,
) -> CmTransaction:
    """Insert one normalized commission event and flush it."""

    tx = CmTransaction(
        user_id=user_id,
        line_id=line.id if line is not None else None,
        mdn=row.mdn,
        provider=row.provider,
        customer=row.customer,
        cycle=row.cycle,
        note=row.note,
        activity_type=row.activity_type,
        category=str(row.category),
        amount=to_cents(row.amount),
        transaction_date=row.transaction_date,
    )
    session.add(tx)
    session.flush()
    return tx


def load_line_transactions(session: Session, *, line: CmLine) -> list[CmTransaction]:
    """Read back every transaction attributed to ``line``, newest first.

    A transaction belongs to the line when it references it by ``line_id``,
    or when it has no ``line_id`` but carries the line's MDN. Transactions
    attached to a *different* line with the same MDN are excluded so
    duplicate lines never double count.
    """

    stmt = (
        select(CmTransaction)
        .where(
            CmTransaction.user_id == line.user_id,
            or_(
                CmTransaction.line_id == line.id,
                and_(CmTransaction.line_id.is_(None), CmTransaction.mdn == line.mdn),
            ),
        )
        .order_by(CmTransaction.created_at.desc(), CmTransaction.id)
    )
    return list(session.scalars(stmt))


def list_user_transactions(
    session: Session,
    *,
    user_id: str,
    mdn: str | None = None,
    limit: int | None = None,
) -> list[CmTransaction]:
    """Transactions of a user, newest first; optionally one MDN and/or a cap."""

    stmt = select(CmTransaction).where(CmTransaction.user_id == user_id)
    if mdn:
        stmt = stmt.where(CmTransaction.mdn == mdn)
    stmt = stmt.order_by(CmTransaction.created_at.desc(), CmTransaction.id)
    if limit is not None:
        stmt = stmt.limit(limit)
    return list(session.scalars(stmt))


__all__ = [
    "find_lines_by_mdn",
    "get_line",
    "insert_line",
    "insert_transaction",
    "list_lines",
    "list_user_transactions",
    "load_line_transactions",
    "pick_line",
    "resolve_line",
]
