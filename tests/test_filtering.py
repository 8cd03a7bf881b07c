from datetime import date, datetime
from decimal import Decimal

import pytest

from periods import Period
from pipeline import (
    AmountRange,
    EntryFilters,
    SortKey,
    filter_entries,
    sort_entries,
)
from schemas import BudgetEntry


def _entry(amount, category="Groceries", day=5, note=None, month=1) -> BudgetEntry:
    return BudgetEntry.create(
        amount=amount,
        category=category,
        date=datetime(2025, month, day, 12, 0),
        note=note,
    )


JANUARY = Period("custom", date(2025, 1, 1), date(2025, 1, 31))


def test_no_filters_returns_everything_in_order() -> None:
    entries = [_entry(30), _entry(10), _entry(20)]
    assert filter_entries(entries, EntryFilters()) == entries
    assert filter_entries([], EntryFilters(query="x")) == []


def test_period_filter_keeps_only_dates_inside() -> None:
    inside_first = _entry(10, day=1)
    inside_last = _entry(20, day=31)
    outside = _entry(30, day=1, month=2)
    result = filter_entries(
        [outside, inside_first, inside_last], EntryFilters(period=JANUARY)
    )
    assert result == [inside_first, inside_last]
    assert all(JANUARY.start <= e.date.date() <= JANUARY.end for e in result)


def test_category_filter_is_exact_and_all_is_sentinel() -> None:
    groceries = _entry(10, category="Groceries")
    rent = _entry(20, category="Rent")
    lower = _entry(30, category="groceries")
    entries = [groceries, rent, lower]

    assert filter_entries(entries, EntryFilters(category="Groceries")) == [groceries]
    assert filter_entries(entries, EntryFilters(category="All")) == entries
    assert filter_entries(entries, EntryFilters(category="")) == entries


def test_text_filter_matches_notes_case_insensitive() -> None:
    weekly = _entry(45, note="Weekly shopping")
    bus = _entry(3, category="Transport", note="Bus fare")
    assert filter_entries([weekly, bus], EntryFilters(query="week")) == [weekly]


def test_text_filter_matches_category_and_formatted_amount() -> None:
    rent = _entry(Decimal("1234.50"), category="Rent")
    coffee = _entry(Decimal("4.25"), category="Coffee")
    no_note = _entry(Decimal("9.99"), category="Books")

    assert filter_entries([rent, coffee], EntryFilters(query="  RENT ")) == [rent]
    assert filter_entries([rent, coffee], EntryFilters(query="1,234.5")) == [rent]
    assert filter_entries([rent, coffee], EntryFilters(query="$4.25")) == [coffee]
    assert filter_entries([no_note], EntryFilters(query="lunch")) == []
    assert filter_entries([rent, coffee], EntryFilters(query="   ")) == [rent, coffee]


def test_amount_range_is_inclusive() -> None:
    entries = [_entry(10), _entry(20), _entry(30)]
    result = filter_entries(entries, EntryFilters(amount_range=AmountRange(10, 20)))
    assert [e.amount for e in result] == [Decimal("10.00"), Decimal("20.00")]


def test_amount_range_rejects_inverted_bounds() -> None:
    with pytest.raises(ValueError):
        AmountRange(Decimal("20"), Decimal("10"))


def test_predicates_combine_and_filter_is_idempotent() -> None:
    entries = [
        _entry(10, category="Groceries", note="weekly shop"),
        _entry(80, category="Groceries", note="weekly shop"),
        _entry(15, category="Dining", note="weekly lunch"),
        _entry(12, category="Groceries", note="weekly shop", month=2),
    ]
    filters = EntryFilters(
        period=JANUARY,
        category="Groceries",
        query="weekly",
        amount_range=AmountRange(5, 50),
    )
    once = filter_entries(entries, filters)
    assert once == [entries[0]]
    assert filter_entries(once, filters) == once


def test_has_active_filters() -> None:
    this_month = Period("this_month", date(2025, 1, 1), date(2025, 1, 31))
    assert not EntryFilters().has_active_filters
    assert not EntryFilters(period=this_month, category="All", query=" ").has_active_filters
    assert EntryFilters(period=JANUARY).has_active_filters
    assert EntryFilters(query="x").has_active_filters
    assert EntryFilters(amount_range=AmountRange(1, 2)).has_active_filters


def test_sort_by_amount_both_directions() -> None:
    entries = [_entry(30), _entry(10), _entry(20)]
    ascending = sort_entries(entries, SortKey.amount, ascending=True)
    descending = sort_entries(entries, SortKey.amount, ascending=False)
    assert [e.amount for e in ascending] == [Decimal("10.00"), Decimal("20.00"), Decimal("30.00")]
    assert [e.amount for e in descending] == [Decimal("30.00"), Decimal("20.00"), Decimal("10.00")]
    assert [e.amount for e in entries] == [Decimal("30.00"), Decimal("10.00"), Decimal("20.00")]


def test_sort_by_date_and_category() -> None:
    late = _entry(1, category="b", day=20)
    early = _entry(1, category="B", day=2)
    middle = _entry(1, category="a", day=10)
    entries = [late, early, middle]

    assert sort_entries(entries, SortKey.date) == [early, middle, late]
    # case-sensitive: uppercase sorts before lowercase
    assert sort_entries(entries, "category") == [early, middle, late]
    assert sort_entries(entries, SortKey.category, ascending=False) == [late, middle, early]


def test_sort_is_stable_and_idempotent() -> None:
    first = _entry(10, category="Food", day=1)
    second = _entry(10, category="Food", day=2)
    third = _entry(5, category="Food", day=3)
    entries = [first, second, third]

    ascending = sort_entries(entries, SortKey.amount, ascending=True)
    assert ascending == [third, first, second]
    assert sort_entries(ascending, SortKey.amount, ascending=True) == ascending

    descending = sort_entries(entries, SortKey.amount, ascending=False)
    assert descending == [first, second, third]
    assert sort_entries(descending, SortKey.amount, ascending=False) == descending


def test_sort_returns_new_list() -> None:
    entries = [_entry(20), _entry(10)]
    result = sort_entries(entries, SortKey.amount)
    assert result is not entries
    assert entries[0].amount == Decimal("20.00")
