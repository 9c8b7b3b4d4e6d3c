"""DB helpers for tests: bootstrap a temporary SQLite DB and seed lines/transactions."""

from __future__ import annotations

import os
from datetime import date
from decimal import Decimal
from pathlib import Path

from db import Base
from db.client import get_engine, session_scope
from db.models.commissions import CmLine, CmTransaction
from sqlalchemy import event
from sqlalchemy import text as sql_text


def bootstrap_sqlite_db(db_file: Path, *, set_default_env: bool = False) -> str:
    """Create a SQLite database file, initialize schema, and return the URL.

    Using a file-backed SQLite DB ensures multiple SQLAlchemy connections share
    the same state (in-memory DBs are per-connection by default).
    """

    url = f"sqlite+pysqlite:///{db_file}"
    db_file.parent.mkdir(parents=True, exist_ok=True)
    engine = get_engine(database_url=url)

    @event.listens_for(engine, "connect")
    def _on_connect(dbapi_conn, _):  # pragma: no cover - tiny bridge
        dbapi_conn.execute("PRAGMA foreign_keys = ON")

    Base.metadata.create_all(bind=engine)
    _assert_schema_in_sync(url)

    if set_default_env:
        os.environ.setdefault("DATABASE_URL", url)
    return url


def _assert_schema_in_sync(database_url: str) -> None:
    """ORM column sets match the SQLite tables (catches helper/model drift)."""

    with session_scope(database_url=database_url) as session:
        for table in (CmLine.__table__, CmTransaction.__table__):
            rows = session.execute(sql_text(f"PRAGMA table_info('{table.name}')")).fetchall()
            got = {row[1] for row in rows}  # (cid, name, type, notnull, dflt_value, pk)
            expected = {c.name for c in table.columns}
            assert got == expected, f"{table.name} schema drift: {sorted(expected ^ got)}"


def seed_line(
    *,
    database_url: str,
    user_id: str,
    mdn: str,
    customer_name: str = "Test Customer",
    provider: str | None = "Carrier",
    status: str = "ACTIVE",
) -> str:
    """Insert one line and return its id."""

    with session_scope(database_url=database_url) as session:
        line = CmLine(
            user_id=user_id,
            mdn=mdn,
            customer_name=customer_name,
            provider=provider,
            status=status,
        )
        session.add(line)
        session.flush()
        return line.id


def seed_transaction(
    *,
    database_url: str,
    user_id: str,
    mdn: str,
    amount: str,
    category: str,
    line_id: str | None = None,
    activity_type: str | None = None,
    note: str | None = None,
    cycle: str = "",
    transaction_date: date | None = None,
) -> str:
    """Insert one transaction exactly as given (no normalization) and return its id."""

    with session_scope(database_url=database_url) as session:
        tx = CmTransaction(
            user_id=user_id,
            line_id=line_id,
            mdn=mdn,
            cycle=cycle,
            note=note,
            activity_type=activity_type,
            category=category,
            amount=Decimal(amount),
            transaction_date=transaction_date,
        )
        session.add(tx)
        session.flush()
        return tx.id
