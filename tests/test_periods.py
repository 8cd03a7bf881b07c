from datetime import date, datetime

import pytest

from periods import Period, resolve_period


TODAY = date(2025, 3, 12)  # a Wednesday


def test_default_period_is_this_month() -> None:
    period = resolve_period(None, None, None, today=TODAY)
    assert period.slug == "this_month"
    assert period.start == date(2025, 3, 1)
    assert period.end == date(2025, 3, 31)
    assert period.label == "This Month"


def test_last_month_wraps_year_boundary() -> None:
    period = resolve_period("last_month", None, None, today=date(2025, 1, 15))
    assert period.start == date(2024, 12, 1)
    assert period.end == date(2024, 12, 31)


def test_weeks_start_on_monday() -> None:
    this_week = resolve_period("this_week", None, None, today=TODAY)
    assert this_week.start == date(2025, 3, 10)
    assert this_week.end == date(2025, 3, 16)

    last_week = resolve_period("last_week", None, None, today=TODAY)
    assert last_week.start == date(2025, 3, 3)
    assert last_week.end == date(2025, 3, 9)


def test_quarters() -> None:
    this_quarter = resolve_period("this_quarter", None, None, today=TODAY)
    assert (this_quarter.start, this_quarter.end) == (date(2025, 1, 1), date(2025, 3, 31))

    last_quarter = resolve_period("last_quarter", None, None, today=TODAY)
    assert (last_quarter.start, last_quarter.end) == (
        date(2024, 10, 1),
        date(2024, 12, 31),
    )


def test_rolling_windows_end_today() -> None:
    last_7 = resolve_period("last_7_days", None, None, today=TODAY)
    assert last_7.start == date(2025, 3, 5)
    assert last_7.end == TODAY

    last_12 = resolve_period("last_12_months", None, None, today=date(2024, 2, 29))
    assert last_12.start == date(2023, 2, 28)
    assert last_12.end == date(2024, 2, 29)


def test_all_time_and_years() -> None:
    assert resolve_period("all", None, None, today=TODAY).start == date(1970, 1, 1)
    last_year = resolve_period("last_year", None, None, today=TODAY)
    assert (last_year.start, last_year.end) == (date(2024, 1, 1), date(2024, 12, 31))


def test_custom_period_requires_ordered_bounds() -> None:
    period = resolve_period("custom", "2025-01-05", "2025-02-10", today=TODAY)
    assert period.label == "2025-01-05 – 2025-02-10"
    assert period.duration_days == 37

    with pytest.raises(ValueError):
        resolve_period("custom", "2025-02-10", "2025-01-05", today=TODAY)
    with pytest.raises(ValueError):
        resolve_period("custom", "2025-02-10", None, today=TODAY)


def test_contains_is_inclusive_by_day() -> None:
    period = Period("custom", date(2025, 1, 1), date(2025, 1, 31))
    assert period.contains(datetime(2025, 1, 1, 0, 0))
    assert period.contains(datetime(2025, 1, 31, 23, 59, 59))
    assert not period.contains(datetime(2025, 2, 1, 0, 0))
    assert not period.contains(date(2024, 12, 31))


def test_months_wraps_years() -> None:
    period = Period("custom", date(2024, 11, 20), date(2025, 2, 3))
    assert list(period.months()) == [(2024, 11), (2024, 12), (2025, 1), (2025, 2)]
