"""Pytest configuration shared by every test module.

Database tests get a fresh file-backed SQLite database per test (see
``tests/helpers/db.py``); cached engines are disposed afterwards so one test's
connection pool never leaks into the next. Package logging and the CLI's
environment fallbacks are reset around every test to keep tests hermetic.
"""

from __future__ import annotations

from collections.abc import Iterator
from pathlib import Path

import pytest
from commission_tracker.logging_setup import reset_logging
from db.client import dispose_engines, get_session
from sqlalchemy.orm import Session

from tests.helpers.db import bootstrap_sqlite_db


@pytest.fixture(autouse=True)
def _hermetic_env(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    for name in ("DATABASE_URL", "COMMISSION_TRACKER_USER_ID", "COMMISSION_TRACKER_LOG_LEVEL"):
        monkeypatch.delenv(name, raising=False)
    yield
    reset_logging()


@pytest.fixture
def db_url(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Iterator[str]:
    url = bootstrap_sqlite_db(tmp_path / "cm.sqlite3")
    monkeypatch.setenv("DATABASE_URL", url)
    yield url
    dispose_engines()


@pytest.fixture
def session(db_url: str) -> Iterator[Session]:
    s = get_session(database_url=db_url)
    try:
        yield s
    finally:
        s.close()


@pytest.fixture
def data_dir() -> Path:
    return Path(__file__).resolve().parent / "data"
