from datetime import date, datetime
from decimal import Decimal

import pytest

from utils.currency import ensure_symbol, format_currency, format_signed, parse_amount
from utils.date_helpers import (
    add_months,
    format_display_date,
    format_export_date,
    parse_date,
    parse_day_of_month,
    project_date,
    shift_month,
)


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("£12.99", Decimal("12.99")),
        ("12.99", Decimal("12.99")),
        ("-£5", Decimal("-5")),
        ("£1,234.50", Decimal("1234.50")),
        ("  +£3.10 ", Decimal("3.10")),
        (7, Decimal("7")),
        (2.5, Decimal("2.5")),
    ],
)
def test_parse_amount_accepts_currency_text(raw, expected):
    assert parse_amount(raw) == expected


@pytest.mark.parametrize("raw", ["", "£", "abc", "1.2.3", "--5", None, True])
def test_parse_amount_returns_none_for_garbage(raw):
    assert parse_amount(raw) is None


def test_currency_formatting():
    assert format_currency(Decimal("1234.5")) == "£1,234.50"
    assert format_currency(Decimal("-12.99")) == "£12.99"
    assert format_signed(Decimal("-12.99")) == "-£12.99"
    assert format_signed(Decimal("0")) == "+£0.00"
    assert ensure_symbol("12.99") == "£12.99"
    assert ensure_symbol("£12.99") == "£12.99"


@pytest.mark.parametrize(
    "raw, expected",
    [("1", 1), ("31", 31), (" 15 ", 15), (15, 15), ("0", None), ("32", None),
     ("15th", None), ("-1", None), ("", None), (None, None)],
)
def test_parse_day_of_month(raw, expected):
    assert parse_day_of_month(raw) == expected


def test_project_date_clamps_to_month_end():
    assert project_date(2023, 2, 31) == date(2023, 2, 28)
    assert project_date(2024, 2, 31) == date(2024, 2, 29)
    assert project_date(2024, 4, 31) == date(2024, 4, 30)
    assert project_date(2024, 5, 31) == date(2024, 5, 31)


def test_parse_date_formats():
    assert parse_date("2024-01-31") == date(2024, 1, 31)
    assert parse_date("2024-01-31T10:30:00.000Z") == date(2024, 1, 31)
    assert parse_date("2024/01/31") == date(2024, 1, 31)
    assert parse_date("31/01/2024") == date(2024, 1, 31)
    assert parse_date(datetime(2024, 1, 31, 9)) == date(2024, 1, 31)
    assert parse_date("not a date") is None
    assert parse_date("") is None


def test_month_arithmetic():
    assert shift_month(2024, 12, 1) == (2025, 1)
    assert shift_month(2024, 1, -1) == (2023, 12)
    assert add_months(date(2024, 1, 31), 1) == date(2024, 2, 29)
    assert add_months(date(2024, 2, 29), 1, anchor_day=31) == date(2024, 3, 31)


def test_export_date_is_day_first():
    assert format_export_date(date(2024, 3, 5)) == "05/03/2024"


@pytest.mark.parametrize(
    "fmt, expected",
    [
        ("DD/MM/YYYY", "05/03/2024"),
        ("MM/DD/YYYY", "03/05/2024"),
        ("DD.MM.YYYY", "05.03.2024"),
        ("unknown", "05/03/2024"),
    ],
)
def test_format_display_date(fmt, expected):
    assert format_display_date("2024-03-05", fmt) == expected


def test_format_display_date_passes_through_unreadable_values():
    assert format_display_date("", "DD/MM/YYYY") == ""
    assert format_display_date("soon", "DD/MM/YYYY") == "soon"
