from datetime import date
from decimal import Decimal

import pytest

from commission_tracker.normalizers import (
    amount_in_range,
    clean_customer_name,
    clean_text,
    cycle_to_date,
    extract_mdn,
    parse_amount,
    parse_cycle_date,
    to_cents,
    try_parse_amount,
)


# ---- Amounts -----------------------------------------------------------------


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("$1,234.50", Decimal("1234.50")),
        ("(12.00)", Decimal("-12.00")),
        ("", Decimal("0")),
        (None, Decimal("0")),
        ("-$5", Decimal("-5")),
        ("$(12.00)", Decimal("-12.00")),
        ("-($1,234.56)", Decimal("-1234.56")),
        ("+ 42", Decimal("42")),
        ("  1, 234.50 ", Decimal("1234.50")),
        ("abc", Decimal("0")),
        ("NaN", Decimal("0")),
        ("Infinity", Decimal("0")),
        (7, Decimal("7")),
        (2.5, Decimal("2.5")),
    ],
)
def test_parse_amount(raw, expected):
    assert parse_amount(raw) == expected


def test_try_parse_amount_separates_blank_from_garbage():
    assert try_parse_amount("  ") == Decimal("0")
    assert try_parse_amount("$") is None
    assert try_parse_amount("twelve") is None
    assert try_parse_amount(float("inf")) is None
    assert try_parse_amount(Decimal("NaN")) is None


def test_parentheses_win_over_explicit_plus():
    assert parse_amount("+(3.00)") == Decimal("-3.00")


def test_to_cents_rounds_half_up():
    assert to_cents(Decimal("1.005")) == Decimal("1.01")
    assert to_cents(Decimal("-2.345")) == Decimal("-2.35")
    assert to_cents(Decimal("150")) == Decimal("150.00")


def test_to_cents_leaves_oversized_amounts_alone():
    assert to_cents(Decimal("1e30")) == Decimal("1e30")
    huge = Decimal("99999999999999999999999999999")
    assert to_cents(huge) == huge


@pytest.mark.parametrize(
    ("amount", "fits"),
    [
        ("9999999999.99", True),
        ("-9999999999.99", True),
        ("9999999999.995", False),
        ("10000000000", False),
        ("1e30", False),
        ("0", True),
    ],
)
def test_amount_in_range(amount, fits):
    assert amount_in_range(Decimal(amount)) is fits


# ---- Cycle dates -------------------------------------------------------------


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("11/2025", "2025-11-01"),
        ("Nov 2025", "2025-11-01"),
        ("November 2025", "2025-11-01"),
        ("Sept. 2025", "2025-09-01"),
        ("11/05/2025", "2025-11-05"),
        ("11/05/2025 00:00:00", "2025-11-05"),
        ("2025-11-05", "2025-11-05"),
        ("2025-11-05T10:30:00", "2025-11-05"),
        ("2025-11", "2025-11-01"),
        ("not a date", None),
        ("", None),
        (None, None),
    ],
)
def test_parse_cycle_date(raw, expected):
    assert parse_cycle_date(raw) == expected


def test_impossible_calendar_dates_are_unknown():
    assert parse_cycle_date("02/30/2025") is None
    assert parse_cycle_date("13/2025") is None


def test_generic_parse_does_not_borrow_today():
    # Missing fields come from a fixed anchor, never the current date.
    assert parse_cycle_date("5 March 2024") == "2024-03-05"


def test_cycle_to_date():
    assert cycle_to_date("11/2025") == date(2025, 11, 1)
    assert cycle_to_date("Upfront") is None


# ---- Identity and text -------------------------------------------------------


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("12025551234", "2025551234"),
        ("1-202-555-1234", "2025551234"),
        ("2025551234 ext 99", "2025551234"),
        ("2025551234", "2025551234"),
        ("(202) 555-1234", "2025551234"),
        ("555-1234", None),
        ("", None),
        (None, None),
    ],
)
def test_extract_mdn(raw, expected):
    assert extract_mdn(raw) == expected


def test_clean_customer_name():
    assert clean_customer_name("  Doe,  Jane,  ") == "Doe, Jane"
    assert clean_customer_name(",,") == "Unknown"
    assert clean_customer_name(None) == "Unknown"
    assert clean_customer_name("", default="N/A") == "N/A"


def test_clean_text_collapses_whitespace():
    assert clean_text("  Component:\tUpfront \n") == "Component: Upfront"
    assert clean_text("   ") is None
