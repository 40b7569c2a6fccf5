from datetime import date

import pytest

from core.utils import (
    add_months,
    age_on,
    format_cents,
    format_currency,
    is_monthly_data_stale,
    is_within_months,
    nz,
    nz_series,
    parse_currency,
    parse_date,
    to_cents,
)

TODAY = date(2026, 6, 15)


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("1.234,56 €", 1234.56),
        ("1.234,56\u00a0€", 1234.56),
        ("150.000,00 €", 150000.0),
        ("1234.56", 1234.56),
        ("12,5", 12.5),
        (1200, 1200.0),
        ("", 0.0),
        (None, 0.0),
        ("keine Angabe", 0.0),
    ],
)
def test_parse_currency(raw, expected):
    assert parse_currency(raw) == pytest.approx(expected)


def test_format_currency():
    assert format_currency(1234.56) == "1.234,56 €"
    assert format_currency(-5) == "-5,00 €"
    assert format_currency(None) == "0,00 €"
    assert format_currency(1000000) == "1.000.000,00 €"


def test_currency_round_trip():
    for value in (0, 0.01, 12.345, 990, 38011, 123456.78, -250.5):
        assert parse_currency(format_currency(value)) == pytest.approx(round(value, 2))


def test_cents():
    assert to_cents("150.000,00 €") == 15000000
    assert format_cents(14800000) == "148.000,00 €"


def test_nz_handles_strings_and_nan():
    assert nz("2.000,00 €") == 2000.0
    assert nz(float("nan"), 1.0) == 1.0
    assert nz("   ", 3.0) == 3.0
    assert nz_series(["1,5", None, 3]).tolist() == [1.5, 0.0, 3.0]


def test_parse_date():
    assert parse_date("2026-09-01") == date(2026, 9, 1)
    assert parse_date("2026-09-01T00:00:00Z") == date(2026, 9, 1)
    assert parse_date("01.09.2026") is None
    assert parse_date("") is None


def test_month_window_is_inclusive():
    assert add_months(date(2026, 1, 31), 1) == date(2026, 2, 28)
    assert is_within_months(date(2027, 6, 15), TODAY)
    assert is_within_months(date(2025, 6, 15), TODAY)
    assert not is_within_months(date(2027, 6, 16), TODAY)
    assert not is_within_months(date(2025, 6, 14), TODAY)
    assert not is_within_months(None, TODAY)


def test_monthly_data_staleness():
    assert not is_monthly_data_stale(5, 2026, TODAY)
    assert not is_monthly_data_stale(4, 2026, TODAY)
    assert is_monthly_data_stale(2, 2026, TODAY)
    assert is_monthly_data_stale(None, None, TODAY)
    assert is_monthly_data_stale(13, 2026, TODAY)


def test_age_on():
    assert age_on(date(2010, 6, 16), TODAY) == 15
    assert age_on(date(2010, 6, 15), TODAY) == 16
    assert age_on(date(2026, 12, 1), TODAY) == -1
    assert age_on(None, TODAY) is None
