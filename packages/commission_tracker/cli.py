# ruff: noqa: I001
"""CLI for the ``commission_tracker`` package.

Command handlers (``cmd_*``) do the work and return a process exit code; the
Typer commands below are thin wrappers around them. Environment variables
(``DATABASE_URL``, ``COMMISSION_TRACKER_USER_ID``) are loaded from a local
``.env`` with ``python-dotenv`` before any command runs. Business logic lives
in ``commission_tracker.api`` and the modules it calls.
"""

from __future__ import annotations

import csv
import os
import sys
from pathlib import Path
from typing import Annotated

import typer
from dotenv import load_dotenv
from sqlalchemy.exc import SQLAlchemyError
from typer.models import OptionInfo

from .logging_setup import configure_logging


USER_ID_ENV = "COMMISSION_TRACKER_USER_ID"


def _resolve_user_id(user_id: str | None) -> str | None:
    value = (user_id or os.getenv(USER_ID_ENV) or "").strip()
    return value or None


def _require_user_id(user_id: str | None) -> str | None:
    resolved = _resolve_user_id(user_id)
    if resolved is None:
        print(
            f"Error: no user id; pass --user-id or set {USER_ID_ENV}.",
            file=sys.stderr,
        )
    return resolved


def _fmt_money(value) -> str:
    return f"{value:.2f}"


# ---- Command handlers ---------------------------------------------------------


def cmd_ingest(
    csv_path: str,
    *,
    user_id: str | None = None,
    database_url: str | None = None,
) -> int:
    """Ingest a carrier commission CSV and print the run summary.

    Prints one ``key=value`` pair per counter on a single line. Fatal problems
    (missing file, unusable CSV, missing user or database configuration) are
    written to stderr as ``Error: ...`` and yield exit code 1; row-level
    problems never fail the command.
    """

    from .api import ingest_csv_file

    resolved_user = _require_user_id(user_id)
    if resolved_user is None:
        return 1

    try:
        summary = ingest_csv_file(csv_path, user_id=resolved_user, database_url=database_url)
    except FileNotFoundError:
        print(f"Error: File not found: {csv_path}", file=sys.stderr)
        return 1
    except PermissionError:
        print(f"Error: Permission denied: {csv_path}", file=sys.stderr)
        return 1
    except csv.Error as e:
        print(f"Error: Failed to parse CSV: {e}", file=sys.stderr)
        return 1
    except RuntimeError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except SQLAlchemyError as e:
        print(f"Error: database failure: {e}", file=sys.stderr)
        return 1

    print(" ".join(f"{k}={v}" for k, v in summary.as_dict().items()))
    return 0


def cmd_lines(
    *,
    user_id: str | None = None,
    search: str | None = None,
    database_url: str | None = None,
) -> int:
    """Print one tab-separated row per line: id, MDN, details, totals and status label."""

    from .api import list_line_summaries

    resolved_user = _require_user_id(user_id)
    if resolved_user is None:
        return 1
    try:
        summaries = list_line_summaries(
            user_id=resolved_user, search=search, database_url=database_url
        )
    except (RuntimeError, SQLAlchemyError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    if not summaries:
        print("No lines found.")
        return 0
    for s in summaries:
        print(
            "\t".join(
                [
                    s.line_id,
                    s.mdn,
                    s.customer_name,
                    s.provider or "",
                    s.status,
                    str(s.transaction_count),
                    _fmt_money(s.totals.upfront_total),
                    _fmt_money(s.totals.monthly_total),
                    _fmt_money(s.totals.chargebacks),
                    _fmt_money(s.totals.net_total),
                    s.payment_label,
                ]
            )
        )
    return 0


def cmd_export_lines(
    out_path: str | None,
    *,
    user_id: str | None = None,
    search: str | None = None,
    database_url: str | None = None,
) -> int:
    """Write the lines CSV export to ``out_path`` (stdout when omitted or ``-``)."""

    from .api import export_lines

    resolved_user = _require_user_id(user_id)
    if resolved_user is None:
        return 1

    to_stdout = out_path in (None, "-")
    try:
        n = export_lines(
            sys.stdout if to_stdout else out_path,
            user_id=resolved_user,
            search=search,
            database_url=database_url,
        )
    except OSError as e:
        print(f"Error: cannot write {out_path}: {e.strerror or e}", file=sys.stderr)
        return 1
    except (RuntimeError, SQLAlchemyError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    if not to_stdout:
        print(f"Exported {n} line(s) to {out_path}")
    return 0


def cmd_stats(*, user_id: str | None = None, database_url: str | None = None) -> int:
    from .api import get_dashboard_stats

    resolved_user = _require_user_id(user_id)
    if resolved_user is None:
        return 1
    try:
        stats = get_dashboard_stats(user_id=resolved_user, database_url=database_url)
    except (RuntimeError, SQLAlchemyError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    print(f"Total upfront:\t{_fmt_money(stats.total_upfront)}")
    print(f"Total monthly:\t{_fmt_money(stats.total_monthly)}")
    print(f"Chargebacks:\t{_fmt_money(stats.total_chargebacks)}")
    print(f"Active lines:\t{stats.active_lines}")
    return 0


def cmd_recent(
    *, user_id: str | None = None, limit: int = 10, database_url: str | None = None
) -> int:
    from .api import get_recent_activity

    resolved_user = _require_user_id(user_id)
    if resolved_user is None:
        return 1
    try:
        items = get_recent_activity(user_id=resolved_user, limit=limit, database_url=database_url)
    except (RuntimeError, SQLAlchemyError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    if not items:
        print("No recent activity.")
        return 0
    for it in items:
        when = it.transaction_date.isoformat() if it.transaction_date else ""
        print(f"{when}\t{it.mdn}\t{it.customer or ''}\t{it.category}\t{_fmt_money(it.amount)}")
    return 0


def cmd_line(
    line_id: str, *, user_id: str | None = None, database_url: str | None = None
) -> int:
    """Print one line's details and totals followed by its transactions, newest first."""

    from .api import get_line_detail

    resolved_user = _require_user_id(user_id)
    if resolved_user is None:
        return 1
    try:
        detail = get_line_detail(user_id=resolved_user, line_id=line_id, database_url=database_url)
    except (RuntimeError, SQLAlchemyError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    if detail is None:
        print(f"Error: line not found: {line_id}", file=sys.stderr)
        return 1

    s = detail.summary
    print(f"MDN:\t{s.mdn}")
    print(f"Customer:\t{s.customer_name}")
    print(f"Provider:\t{s.provider or ''}")
    print(f"Status:\t{s.status}")
    print(f"Activated:\t{s.activation_date.isoformat() if s.activation_date else ''}")
    print(f"Payment:\t{s.payment_label}")
    print(f"Total commissions:\t{_fmt_money(detail.total_commissions)}")
    if not detail.transactions:
        print("No transactions.")
        return 0
    for it in detail.transactions:
        when = it.transaction_date.isoformat() if it.transaction_date else ""
        print(f"{when}\t{it.category}\t{_fmt_money(it.amount)}")
    return 0


def cmd_explain(
    mdn: str | None, *, user_id: str | None = None, database_url: str | None = None
) -> int:
    """Print the classification trace of every transaction stored under ``mdn``.

    Each row shows cycle, raw activity code, amount, the category assigned at
    ingestion, the category today and the rule that decided it. Trailing
    summaries count transactions per current category and per raw code.
    Without ``mdn`` the newest transactions of the user are traced.
    """

    from .api import explain_mdn

    resolved_user = _require_user_id(user_id)
    if resolved_user is None:
        return 1
    try:
        explanation = explain_mdn(user_id=resolved_user, mdn=mdn, database_url=database_url)
    except (ValueError, RuntimeError, SQLAlchemyError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    if not explanation.items:
        print(f"No transactions found for {explanation.mdn or 'this user'}.")
        return 0
    for it in explanation.items:
        prefix = [] if explanation.mdn else [it.mdn]
        print(
            "\t".join(
                [
                    *prefix,
                    it.cycle,
                    it.activity_type or "",
                    _fmt_money(it.amount),
                    it.stored_category,
                    str(it.category),
                    it.rule,
                ]
            )
        )
    counts = ", ".join(f"{k}={v}" for k, v in sorted(explanation.category_counts.items()))
    print(f"{len(explanation.items)} transaction(s): {counts}")
    codes = ", ".join(f"{k}={v}" for k, v in sorted(explanation.activity_type_counts.items()))
    print(f"activity types: {codes}")
    if explanation.reclassified:
        print(f"{len(explanation.reclassified)} transaction(s) classify differently than at ingest")
    return 0


# ---- Typer-based console interface -------------------------------------------


app = typer.Typer(
    no_args_is_help=True,
    add_completion=False,
    help=(
        "Ingest carrier commission reports and review per-line earnings. "
        "Loads DATABASE_URL and COMMISSION_TRACKER_USER_ID from a local .env."
    ),
)


# Module-level option objects to satisfy ruff B008 (no calls in parameter
# defaults). Used inside ``Annotated``, so only the required CSV option may
# carry a default (``...``).
CSV_PATH_OPTION: OptionInfo = typer.Option(
    ...,  # required
    "--csv-path",
    help="Path to a carrier commission CSV report",
    dir_okay=False,
    file_okay=True,
    exists=False,  # the handler reports missing files itself
)
DATABASE_URL_OPTION: OptionInfo = typer.Option(
    "--database-url", help="Override DATABASE_URL (falls back to env var)."
)
USER_ID_OPTION: OptionInfo = typer.Option(
    "--user-id", help=f"Acting user id (falls back to {USER_ID_ENV})."
)
SEARCH_OPTION: OptionInfo = typer.Option(
    "--search", help="Only lines whose MDN contains this text."
)


def _exit_with(code: int) -> None:
    if code:
        raise typer.Exit(code)


@app.command("ingest")
def ingest_cmd(
    csv_path: Annotated[Path, CSV_PATH_OPTION],
    *,
    user_id: Annotated[str | None, USER_ID_OPTION] = None,
    database_url: Annotated[str | None, DATABASE_URL_OPTION] = None,
) -> None:
    """Ingest a commission CSV (safe to re-run on the same file)."""

    _exit_with(cmd_ingest(str(csv_path), user_id=user_id, database_url=database_url))


@app.command("lines")
def lines_cmd(
    *,
    user_id: Annotated[str | None, USER_ID_OPTION] = None,
    search: Annotated[str | None, SEARCH_OPTION] = None,
    database_url: Annotated[str | None, DATABASE_URL_OPTION] = None,
) -> None:
    """List lines with upfront, monthly, chargeback and net totals."""

    _exit_with(cmd_lines(user_id=user_id, search=search, database_url=database_url))


@app.command("export-lines")
def export_lines_cmd(
    *,
    out: Annotated[
        str | None, typer.Option("--out", help="Output CSV path; stdout when omitted.")
    ] = None,
    user_id: Annotated[str | None, USER_ID_OPTION] = None,
    search: Annotated[str | None, SEARCH_OPTION] = None,
    database_url: Annotated[str | None, DATABASE_URL_OPTION] = None,
) -> None:
    """Export lines and their totals as CSV."""

    _exit_with(
        cmd_export_lines(out, user_id=user_id, search=search, database_url=database_url)
    )


@app.command("stats")
def stats_cmd(
    *,
    user_id: Annotated[str | None, USER_ID_OPTION] = None,
    database_url: Annotated[str | None, DATABASE_URL_OPTION] = None,
) -> None:
    """Account-wide totals and active line count."""

    _exit_with(cmd_stats(user_id=user_id, database_url=database_url))


@app.command("recent")
def recent_cmd(
    *,
    limit: Annotated[int, typer.Option("--limit", min=1, help="Number of transactions.")] = 10,
    user_id: Annotated[str | None, USER_ID_OPTION] = None,
    database_url: Annotated[str | None, DATABASE_URL_OPTION] = None,
) -> None:
    """Most recently ingested transactions."""

    _exit_with(cmd_recent(user_id=user_id, limit=limit, database_url=database_url))


@app.command("line")
def line_cmd(
    line_id: Annotated[str, typer.Argument(help="Line id, as listed by `lines`.")],
    *,
    user_id: Annotated[str | None, USER_ID_OPTION] = None,
    database_url: Annotated[str | None, DATABASE_URL_OPTION] = None,
) -> None:
    """Show one line with its totals and transaction history."""

    _exit_with(cmd_line(line_id, user_id=user_id, database_url=database_url))


@app.command("explain")
def explain_cmd(
    mdn: Annotated[
        str | None,
        typer.Argument(help="Service number (10 digits); newest transactions when omitted."),
    ] = None,
    *,
    user_id: Annotated[str | None, USER_ID_OPTION] = None,
    database_url: Annotated[str | None, DATABASE_URL_OPTION] = None,
) -> None:
    """Show how transactions are classified, for one line or the newest ones."""

    _exit_with(cmd_explain(mdn, user_id=user_id, database_url=database_url))


@app.callback(invoke_without_command=True)
def _root(
    ctx: typer.Context,
    *,
    log_level: Annotated[
        str | None,
        typer.Option("--log-level", help="Log level (falls back to COMMISSION_TRACKER_LOG_LEVEL)."),
    ] = None,
) -> None:
    """Root command.

    Loads ``.env`` from the current working directory (without overriding any
    already-set environment variables) and configures logging once for every
    subcommand.
    """

    load_dotenv(dotenv_path=Path.cwd() / ".env", override=False)
    configure_logging(log_level)

    if ctx.invoked_subcommand is None:
        typer.echo("No subcommand provided. Use --help to see available commands.")
        raise typer.Exit(1)


if __name__ == "__main__":  # pragma: no cover
    # Running as a module: `python -m commission_tracker.cli`
    app()
