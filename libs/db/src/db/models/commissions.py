from __future__ import annotations

import uuid
from datetime import UTC, date, datetime
from decimal import Decimal

from sqlalchemy import (
    CheckConstraint,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Numeric,
    String,
    Text,
    func,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    pass


def _new_id() -> str:
    return str(uuid.uuid4())


def _utcnow() -> datetime:
    return datetime.now(UTC)


# ---------------------------
# Core: cm_lines
# ---------------------------


class CmLine(Base):
    __tablename__ = "cm_lines"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    user_id: Mapped[str] = mapped_column(String, nullable=False)
    # Natural key within a user's account. Not unique: carrier data is known to
    # produce the same MDN under different customers, and ingestion
    # disambiguates on (provider, customer_name) instead.
    mdn: Mapped[str] = mapped_column(String(10), nullable=False)
    customer_name: Mapped[str] = mapped_column(Text, nullable=False)
    provider: Mapped[str | None] = mapped_column(String, nullable=True)
    status: Mapped[str] = mapped_column(String, nullable=False, default="ACTIVE")
    activation_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    # Python-side defaults keep sub-second ordering on SQLite, where
    # CURRENT_TIMESTAMP only has one-second resolution.
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow, server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=_utcnow,
        onupdate=_utcnow,
        server_default=func.now(),
    )

    __table_args__ = (
        CheckConstraint(
            "status in ('ACTIVE','INACTIVE','SUSPENDED')",
            name="ck_cm_lines_status",
        ),
        Index("ix_cm_lines_user_mdn", "user_id", "mdn"),
    )


# ---------------------------
# Core: cm_transactions
# ---------------------------


class CmTransaction(Base):
    __tablename__ = "cm_transactions"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    user_id: Mapped[str] = mapped_column(String, nullable=False)
    # Nullable: older rows may only be attributable to a line through ``mdn``.
    line_id: Mapped[str | None] = mapped_column(
        String(36), ForeignKey("cm_lines.id"), nullable=True
    )
    mdn: Mapped[str] = mapped_column(String(10), nullable=False)
    provider: Mapped[str | None] = mapped_column(String, nullable=True)
    customer: Mapped[str | None] = mapped_column(Text, nullable=True)
    # Carrier billing-period label; free text, not a validated date.
    cycle: Mapped[str] = mapped_column(Text, nullable=False, default="")
    note: Mapped[str | None] = mapped_column(Text, nullable=True)
    # Raw activity code exactly as the carrier supplied it. Readers reclassify
    # from this (plus note/cycle/amount) instead of trusting ``category``.
    activity_type: Mapped[str | None] = mapped_column(String, nullable=True)
    # Category assigned at ingestion time; part of the duplicate-detection key.
    category: Mapped[str] = mapped_column(String, nullable=False)
    amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    transaction_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow, server_default=func.now()
    )

    __table_args__ = (
        CheckConstraint(
            "category in ('ACT','RESIDUAL','DEACT')",
            name="ck_cm_tx_category",
        ),
        Index("ix_cm_tx_dedupe", "user_id", "mdn", "cycle", "amount", "category"),
        Index("ix_cm_tx_line_id", "line_id"),
    )


__all__ = [
    "Base",
    "CmLine",
    "CmTransaction",
]
