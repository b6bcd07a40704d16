"""Unit tests for date and currency normalization."""

from datetime import date
from decimal import Decimal

import pytest

from services.shared.dates import (
    COMPLETED,
    days_until_due,
    expand_year,
    format_currency,
    is_iso_date,
    is_overdue,
    normalize_date,
    parse_date,
)

TODAY = date(2025, 9, 10)


class TestNormalizeDate:
    """Raw extracted dates become ISO strings."""

    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ("05/09/2025", "2025-09-05"),
            ("5-9-2025", "2025-09-05"),
            ("2025-09-05", "2025-09-05"),
            ("2025/9/5", "2025-09-05"),
        ],
    )
    def test_day_first_and_iso_orderings(self, raw: str, expected: str) -> None:
        assert normalize_date(raw) == expected

    def test_invalid_calendar_date_returns_none(self) -> None:
        assert normalize_date("31/02/2025") is None

    def test_garbage_returns_none(self) -> None:
        assert normalize_date("soon") is None
        assert normalize_date("12/2025") is None

    def test_two_digit_year_century_rule(self) -> None:
        assert normalize_date("05-09-25", "century") == "2025-09-05"
        assert normalize_date("05-09-75", "century") == "2075-09-05"

    def test_two_digit_year_pivot_rule(self) -> None:
        assert normalize_date("05-09-25", "pivot") == "2025-09-05"
        assert normalize_date("05-09-75", "pivot") == "1975-09-05"


def test_expand_year_keeps_four_digit_years() -> None:
    assert expand_year("2024") == 2024
    assert expand_year("99", "pivot") == 1999
    assert expand_year("50", "pivot") == 2050


class TestParseDate:
    def test_iso_date(self) -> None:
        assert parse_date("2025-09-05", TODAY) == date(2025, 9, 5)

    def test_timestamp_prefix(self) -> None:
        assert parse_date("2025-09-05T10:00:00Z", TODAY) == date(2025, 9, 5)

    def test_empty_or_invalid_falls_back_to_today(self) -> None:
        assert parse_date("", TODAY) == TODAY
        assert parse_date(None, TODAY) == TODAY
        assert parse_date("not a date", TODAY) == TODAY
        assert parse_date("20250905", TODAY) == TODAY


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        ("2025-09-05", True),
        ("2024-02-29", True),
        ("2025-02-29", False),
        ("20250905", False),
        ("2025W365", False),
        ("2025-9-5", False),
        ("", False),
    ],
)
def test_is_iso_date(value: str, expected: bool) -> None:
    assert is_iso_date(value) is expected


class TestDueDateArithmetic:
    def test_days_until_due(self) -> None:
        assert days_until_due("2025-09-05", TODAY) == -5
        assert days_until_due("2025-09-10", TODAY) == 0
        assert days_until_due("2025-09-25", TODAY) == 15

    def test_completed_has_no_days(self) -> None:
        assert days_until_due(COMPLETED, TODAY) is None
        assert is_overdue(COMPLETED, TODAY) is False

    def test_overdue_only_before_today(self) -> None:
        assert is_overdue("2025-09-09", TODAY) is True
        assert is_overdue("2025-09-10", TODAY) is False

    def test_other_reference_date(self) -> None:
        later = date(2030, 1, 1)

        assert days_until_due("2025-09-25", later) == (date(2025, 9, 25) - later).days
        assert is_overdue("2025-09-25", later) is True


class TestFormatCurrency:
    def test_two_decimals(self) -> None:
        assert format_currency(Decimal("1500")) == "$1500.00"
        assert format_currency(Decimal("2620")) == "$2620.00"

    def test_floats_and_ints(self) -> None:
        assert format_currency(1234.5) == "$1234.50"
        assert format_currency(7) == "$7.00"

    def test_rounds_half_up(self) -> None:
        assert format_currency(Decimal("0.005")) == "$0.01"
        assert format_currency(Decimal("2.675")) == "$2.68"

    def test_amounts_beyond_default_precision(self) -> None:
        assert format_currency(Decimal("9" * 30)) == f"${'9' * 30}.00"
