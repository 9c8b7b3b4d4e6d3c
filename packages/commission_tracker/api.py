"""Public API for the ``commission_tracker`` package.

Each function opens its own short unit of work via ``db.client`` and hands
back plain value objects, so callers (the CLI, tests) never manage sessions.
DB and persistence imports are local to the functions; importing this module
does not touch the database.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from os import PathLike
from typing import TextIO

from .models import IngestSummary


def ingest_csv_file(
    csv_path: str | PathLike[str],
    *,
    user_id: str | None,
    database_url: str | None = None,
    column_aliases: Mapping[str, Sequence[str]] | None = None,
) -> IngestSummary:
    """Read a commission CSV from disk and ingest it for ``user_id``.

    Raises
    ------
    FileNotFoundError, PermissionError
        When the file cannot be opened.
    csv.Error
        When the file is empty, has no header or lacks required columns.
    RuntimeError
        When ``user_id`` is missing or no database URL is configured.
    """

    from db.client import get_session

    from .ingest import ingest_commission_csv, read_csv_path

    csv_text = read_csv_path(csv_path)
    # The pipeline commits per row, so it gets a bare session.
    session = get_session(database_url=database_url)
    try:
        return ingest_commission_csv(
            session, csv_text, user_id=user_id, column_aliases=column_aliases
        )
    finally:
        session.close()


def list_line_summaries(
    *, user_id: str, search: str | None = None, database_url: str | None = None
):
    from db.client import session_scope

    from .reports import summarize_lines

    with session_scope(database_url=database_url) as session:
        return summarize_lines(session, user_id=user_id, search=search)


def export_lines(
    out: TextIO | str | PathLike[str],
    *,
    user_id: str,
    search: str | None = None,
    database_url: str | None = None,
) -> int:
    """Write the lines CSV export to ``out`` and return the row count.

    ``out`` is an open text stream or a file path. Lines are read before a
    path is opened, so a database failure leaves an existing file untouched.

    Raises
    ------
    OSError
        When the output path cannot be opened for writing.
    """

    from .reports import export_lines_csv

    summaries = list_line_summaries(user_id=user_id, search=search, database_url=database_url)
    if isinstance(out, str | PathLike):
        with open(out, "w", encoding="utf-8", newline="") as f:
            return export_lines_csv(summaries, f)
    return export_lines_csv(summaries, out)


def get_dashboard_stats(*, user_id: str, database_url: str | None = None):
    from db.client import session_scope

    from .reports import dashboard_stats

    with session_scope(database_url=database_url) as session:
        return dashboard_stats(session, user_id=user_id)


def get_recent_activity(*, user_id: str, limit: int = 10, database_url: str | None = None):
    from db.client import session_scope

    from .reports import recent_activity

    with session_scope(database_url=database_url) as session:
        return recent_activity(session, user_id=user_id, limit=limit)


def get_line_detail(*, user_id: str, line_id: str, database_url: str | None = None):
    """One line of ``user_id`` with its history; ``None`` when no such line exists."""

    from db.client import session_scope

    from .reports import line_detail

    with session_scope(database_url=database_url) as session:
        return line_detail(session, user_id=user_id, line_id=line_id)


def explain_mdn(*, user_id: str, mdn: str | None = None, database_url: str | None = None):
    """Classification trace for one service number (see ``reports.explain_line``).

    Without ``mdn`` the user's newest transactions are traced.
    """

    from db.client import session_scope

    from .normalizers import extract_mdn
    from .reports import explain_line

    normalized = None
    if mdn is not None:
        normalized = extract_mdn(mdn)
        if normalized is None:
            raise ValueError(f"not a 10-digit service number: {mdn!r}")
    with session_scope(database_url=database_url) as session:
        return explain_line(session, user_id=user_id, mdn=normalized)


__all__ = [
    "explain_mdn",
    "export_lines",
    "get_dashboard_stats",
    "get_line_detail",
    "get_recent_activity",
    "ingest_csv_file",
    "list_line_summaries",
]
