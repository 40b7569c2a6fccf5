"""Currency and date helpers shared by the calculators and the rules."""
from __future__ import annotations

import math
from datetime import date, datetime
from typing import Optional

import pandas as pd

DAYS_PER_YEAR = 365


def nz(x, default=0.0):
    """Return a float for ``x`` or a fallback value.

    Form snapshots store money as ``None``, empty strings, German formatted
    strings or plain numbers.  This helper keeps later math from breaking when
    a value is missing.
    """

    if x is None or (isinstance(x, float) and math.isnan(x)):
        return default
    if isinstance(x, str):
        return parse_currency(x) if x.strip() else default
    try:
        return float(x)
    except (TypeError, ValueError):
        return default


def nz_series(s):
    """Coerce a sequence/Series to numeric with missing values as ``0``."""

    if s is None:
        return pd.Series(dtype=float)
    return pd.to_numeric(pd.Series(s, dtype=object).map(nz), errors="coerce").fillna(0.0)


def parse_currency(value) -> float:
    """Parse a stored monetary value into euros.

    Values containing ``€`` or ``,`` are German formatted (``1.234,56 €``);
    anything else is read as a database number (``1234.56``).  Empty or
    unparseable input yields ``0.0``.
    """

    if value is None or value == "":
        return 0.0
    if isinstance(value, bool):
        return float(value)
    if isinstance(value, (int, float)):
        return 0.0 if isinstance(value, float) and math.isnan(value) else float(value)
    text = str(value)
    if "€" in text or "," in text:
        text = text.replace("€", "").replace("\u00a0", "").replace(" ", "")
        text = text.replace(".", "").replace(",", ".")
    try:
        parsed = float(text.strip())
    except ValueError:
        return 0.0
    return 0.0 if math.isnan(parsed) else parsed


def to_cents(euros) -> int:
    return int(round(nz(euros) * 100))


def format_currency(euros) -> str:
    """Format euros the way German forms display them, e.g. ``1.234,56 €``."""

    value = round(nz(euros), 2)
    sign = "-" if value < 0 else ""
    grouped = f"{abs(value):,.2f}"
    grouped = grouped.replace(",", "_").replace(".", ",").replace("_", ".")
    return f"{sign}{grouped} €"


def format_cents(cents) -> str:
    return format_currency(nz(cents) / 100)


def parse_date(value) -> Optional[date]:
    """Return a ``date`` for ISO strings, datetimes or dates; ``None`` otherwise."""

    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return datetime.fromisoformat(str(value).strip()[:10]).date()
    except ValueError:
        return None


def add_months(d: date, months: int) -> date:
    """Calendar month arithmetic; the 31st of a short month clamps to its end."""
    return (pd.Timestamp(d) + pd.DateOffset(months=months)).date()


def is_within_months(d: Optional[date], today: date, months: int = 12) -> bool:
    """True when ``d`` lies inside ``[today - months, today + months]``."""

    if d is None:
        return False
    return add_months(today, -months) <= d <= add_months(today, months)


def is_monthly_data_stale(end_month, end_year, today: date, max_age_months: int = 3) -> bool:
    """Monthly income data is stale if its window ends more than three months ago."""

    month = int(nz(end_month))
    year = int(nz(end_year))
    if not (1 <= month <= 12) or year <= 0:
        return True
    return date(year, month, 1) < add_months(today, -max_age_months)


def age_on(birth: Optional[date], today: date) -> Optional[int]:
    """Age in completed years; ``-1`` marks a birth date in the future."""

    if birth is None:
        return None
    if birth > today:
        return -1
    years = today.year - birth.year
    if (today.month, today.day) < (birth.month, birth.day):
        years -= 1
    return years
