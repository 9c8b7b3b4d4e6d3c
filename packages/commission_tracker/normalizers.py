"""Value normalizers for carrier commission reports.

Carriers format money and billing periods inconsistently: ``$1,234.50``,
``(12.00)``, ``-$5``, ``11/2025``, ``Nov 2025``, ``2025-11``... The helpers
here turn those into ``Decimal`` amounts and ISO ``YYYY-MM-DD`` strings.

None of the public helpers raise on bad input. Amounts fall back to ``0`` and
dates to ``None`` ("date unknown"), so a single odd cell never aborts an
ingestion batch.
"""

from __future__ import annotations

import re
from datetime import date, datetime
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any

from dateutil import parser as date_parser

# ---------------------------------------------------------------------------
# Amounts
# ---------------------------------------------------------------------------

_ZERO = Decimal("0")
_CENTS = Decimal("0.01")
# Highest most-significant-digit exponent whose cents still fit 28 digits.
_MAX_CENTS_EXPONENT = 25

# Amounts are stored as Numeric(12, 2): ten integer digits.
AMOUNT_LIMIT = Decimal("1e10")


def try_parse_amount(raw: Any) -> Decimal | None:
    """Parse a currency-formatted value, returning ``None`` when it is not a number.

    Blank input parses as ``0``; only non-empty text that cannot be read as a
    number yields ``None``.
    """

    if raw is None:
        return _ZERO
    if isinstance(raw, Decimal):
        return raw if raw.is_finite() else None
    if isinstance(raw, int | float):
        d = Decimal(str(raw))
        return d if d.is_finite() else None

    s = str(raw).strip()
    if not s:
        return _ZERO
    negative = False

    # Strip leading sign, currency symbol and surrounding parentheses until
    # stable so orderings like "-($1,234.56)" and "$(12.00)" both work.
    while True:
        changed = False
        if s.startswith("+"):
            s = s[1:].lstrip()
            changed = True
        elif s.startswith("-"):
            negative = True
            s = s[1:].lstrip()
            changed = True
        if s.startswith("$"):
            s = s[1:].lstrip()
            changed = True
        # Surrounding parentheses indicate negativity regardless of sign.
        if s.startswith("(") and s.endswith(")") and len(s) >= 2:
            negative = True
            s = s[1:-1].strip()
            changed = True
        if not changed:
            break

    # Thousands separators and stray inner whitespace ("1, 234.50").
    s = re.sub(r"[,\s]", "", s)
    if not s:
        return None

    try:
        d = Decimal(s)
    except InvalidOperation:
        return None
    if not d.is_finite():
        return None
    return -abs(d) if negative else d


def parse_amount(raw: Any) -> Decimal:
    """Parse a currency string into a signed ``Decimal``; ``0`` when unparsable.

    >>> parse_amount("$1,234.50")
    Decimal('1234.50')
    >>> parse_amount("(12.00)")
    Decimal('-12.00')
    >>> parse_amount("")
    Decimal('0')
    """

    d = try_parse_amount(raw)
    return _ZERO if d is None else d


def to_cents(amount: Decimal) -> Decimal:
    """Quantize ``amount`` to two decimal places (half-up), as stored in the DB.

    Non-finite values and magnitudes too large to carry cents at the default
    28-digit precision come back unchanged.
    """

    if not amount.is_finite() or amount.adjusted() > _MAX_CENTS_EXPONENT:
        return amount
    return amount.quantize(_CENTS, rounding=ROUND_HALF_UP)


def amount_in_range(amount: Decimal) -> bool:
    """True when ``amount`` fits the ``Numeric(12, 2)`` amount column once rounded."""

    return amount.is_finite() and abs(to_cents(amount)) < AMOUNT_LIMIT


# ---------------------------------------------------------------------------
# Cycle / date labels
# ---------------------------------------------------------------------------

_MONTHS: dict[str, int] = {
    "jan": 1,
    "january": 1,
    "feb": 2,
    "february": 2,
    "mar": 3,
    "march": 3,
    "apr": 4,
    "april": 4,
    "may": 5,
    "jun": 6,
    "june": 6,
    "jul": 7,
    "july": 7,
    "aug": 8,
    "august": 8,
    "sep": 9,
    "sept": 9,
    "september": 9,
    "oct": 10,
    "october": 10,
    "nov": 11,
    "november": 11,
    "dec": 12,
    "december": 12,
}

_MDY_RE = re.compile(r"^(\d{1,2})/(\d{1,2})/(\d{4})$")
_YMD_RE = re.compile(r"^(\d{4})-(\d{1,2})-(\d{1,2})$")
_MY_RE = re.compile(r"^(\d{1,2})/(\d{4})$")
_YM_RE = re.compile(r"^(\d{4})-(\d{1,2})$")
_MON_Y_RE = re.compile(r"^([A-Za-z]+)\.?[\s,\-]+(\d{4})$")

# Anchors missing fields for the generic parser; without it dateutil fills
# them in from today's date.
_GENERIC_DEFAULT = datetime(2000, 1, 1)


def _iso(year: int, month: int, day: int) -> str | None:
    try:
        return date(year, month, day).isoformat()
    except ValueError:
        return None


def parse_cycle_date(raw: Any) -> str | None:
    """Normalize a carrier cycle/date label to ``YYYY-MM-DD``.

    Formats are tried in order: ``MM/DD/YYYY``, ``YYYY-MM-DD``, ``MM/YYYY``,
    ``YYYY-MM``, ``Mon YYYY``/``Month YYYY``, then a generic calendar parse.
    Month-only labels resolve to the first of the month. Returns ``None`` when
    nothing matches; callers treat that as "date unknown".
    """

    if raw is None:
        return None
    s = str(raw).strip()
    if not s:
        return None

    # Some exports append a time to full dates ("11/01/2025 00:00:00").
    first = s.split()[0]

    m = _MDY_RE.match(first)
    if m:
        return _iso(int(m.group(3)), int(m.group(1)), int(m.group(2)))
    m = _YMD_RE.match(first.split("T", 1)[0])
    if m:
        return _iso(int(m.group(1)), int(m.group(2)), int(m.group(3)))
    m = _MY_RE.match(s)
    if m:
        return _iso(int(m.group(2)), int(m.group(1)), 1)
    m = _YM_RE.match(s)
    if m:
        return _iso(int(m.group(1)), int(m.group(2)), 1)
    m = _MON_Y_RE.match(s)
    if m:
        month = _MONTHS.get(m.group(1).lower())
        if month is not None:
            return _iso(int(m.group(2)), month, 1)

    try:
        parsed = date_parser.parse(s, default=_GENERIC_DEFAULT)
    except (ValueError, OverflowError):
        return None
    return parsed.date().isoformat()


def cycle_to_date(raw: Any) -> date | None:
    """``parse_cycle_date`` as a ``date`` object, for persistence."""

    iso = parse_cycle_date(raw)
    return date.fromisoformat(iso) if iso else None


# ---------------------------------------------------------------------------
# Identity and text fields
# ---------------------------------------------------------------------------

MDN_LENGTH = 10


def extract_mdn(raw: Any) -> str | None:
    """Return the first 10 digits of an account identifier, or ``None``.

    Carrier account numbers wrap the subscriber number in prefixes, suffixes
    and punctuation (``"1-202-555-1234"``, ``"12025551234"``); all non-digits
    are dropped before truncating. A leading NANP country code ``1`` is
    dropped from longer digit strings, so both examples yield ``"2025551234"``.
    """

    if raw is None:
        return None
    digits = re.sub(r"\D", "", str(raw))
    # Area codes never start with 1.
    if len(digits) > MDN_LENGTH and digits.startswith("1"):
        digits = digits[1:]
    if len(digits) < MDN_LENGTH:
        return None
    return digits[:MDN_LENGTH]


def clean_text(value: Any) -> str | None:
    """Collapse internal whitespace and trim; ``None`` when empty."""

    if value is None:
        return None
    cleaned = re.sub(r"\s+", " ", str(value)).strip()
    return cleaned if cleaned else None


def clean_customer_name(value: Any, *, default: str = "Unknown") -> str:
    """Trim a customer name and drop stray trailing commas (``"Doe, Jane,"``)."""

    cleaned = clean_text(value)
    if cleaned is None:
        return default
    cleaned = cleaned.rstrip(", ").strip()
    return cleaned or default


__all__ = [
    "AMOUNT_LIMIT",
    "MDN_LENGTH",
    "amount_in_range",
    "clean_customer_name",
    "clean_text",
    "cycle_to_date",
    "extract_mdn",
    "parse_amount",
    "parse_cycle_date",
    "to_cents",
    "try_parse_amount",
]
