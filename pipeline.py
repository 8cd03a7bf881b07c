"""Filtering, sorting and aggregation of budget entries.

Everything here is a pure function of its arguments and returns new lists.
Empty input, zero budgets and absent filters produce well-defined values
rather than exceptions.
"""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Iterable, Optional, Sequence

from formatting import format_currency, quantize_money
from periods import Period
from schemas import BudgetEntry, MonthlyBudget

ALL_CATEGORIES = "All"
ZERO = Decimal("0.00")


class SortKey(str, Enum):
    date = "date"
    amount = "amount"
    category = "category"


class HistorySortKey(str, Enum):
    category = "category"
    budgeted = "budgeted"
    spent = "spent"
    remaining = "remaining"
    percentage = "percentage"


@dataclass(frozen=True)
class AmountRange:
    low: Decimal
    high: Decimal

    def __post_init__(self) -> None:
        low = quantize_money(self.low)
        high = quantize_money(self.high)
        if low > high:
            raise ValueError("Amount range minimum must not exceed maximum")
        object.__setattr__(self, "low", low)
        object.__setattr__(self, "high", high)

    def contains(self, amount: Decimal) -> bool:
        return self.low <= amount <= self.high


@dataclass(frozen=True)
class EntryFilters:
    period: Optional[Period] = None
    category: Optional[str] = None
    query: Optional[str] = None
    amount_range: Optional[AmountRange] = None

    @property
    def category_filter(self) -> Optional[str]:
        if not self.category or self.category == ALL_CATEGORIES:
            return None
        return self.category

    @property
    def search_text(self) -> Optional[str]:
        text = (self.query or "").strip()
        return text.casefold() if text else None

    @property
    def has_active_filters(self) -> bool:
        return (
            self.search_text is not None
            or self.category_filter is not None
            or self.amount_range is not None
            or (self.period is not None and self.period.slug != "this_month")
        )


@dataclass(frozen=True)
class BudgetHistoryData:
    category: str
    budgeted_amount: Decimal
    amount_spent: Decimal

    @property
    def remaining_amount(self) -> Decimal:
        return self.budgeted_amount - self.amount_spent

    @property
    def percentage_spent(self) -> float:
        if self.budgeted_amount <= 0:
            return 0.0
        return float(self.amount_spent / self.budgeted_amount * 100)

    @property
    def is_over_budget(self) -> bool:
        return self.amount_spent > self.budgeted_amount


@dataclass(frozen=True)
class PurchaseStatistics:
    total_amount: Decimal
    entry_count: int
    average_amount: Decimal
    category_breakdown: dict[str, Decimal] = field(default_factory=dict)
    largest_purchase: Optional[BudgetEntry] = None
    smallest_purchase: Optional[BudgetEntry] = None
    top_category: Optional[str] = None
    first_date: Optional[datetime] = None
    last_date: Optional[datetime] = None

    @property
    def is_empty(self) -> bool:
        return self.entry_count == 0


@dataclass(frozen=True)
class HistoryTotals:
    total_budgeted: Decimal
    total_spent: Decimal
    over_budget_categories: tuple[str, ...] = ()
    top_category: Optional[str] = None

    @property
    def remaining_amount(self) -> Decimal:
        return self.total_budgeted - self.total_spent

    @property
    def percentage_spent(self) -> float:
        if self.total_budgeted <= 0:
            return 0.0
        return float(self.total_spent / self.total_budgeted * 100)


def _matches_text(entry: BudgetEntry, needle: str, currency_code: str) -> bool:
    haystacks = (
        entry.category,
        entry.note or "",
        format_currency(entry.amount, currency_code),
    )
    return any(needle in value.casefold() for value in haystacks)


def filter_entries(
    entries: Iterable[BudgetEntry],
    filters: EntryFilters,
    *,
    currency_code: str = "USD",
) -> list[BudgetEntry]:
    category = filters.category_filter
    needle = filters.search_text
    result: list[BudgetEntry] = []
    for entry in entries:
        if filters.period is not None and not filters.period.contains(entry.date):
            continue
        if category is not None and entry.category != category:
            continue
        if needle is not None and not _matches_text(entry, needle, currency_code):
            continue
        if filters.amount_range is not None and not filters.amount_range.contains(
            entry.amount
        ):
            continue
        result.append(entry)
    return result


_ENTRY_SORT_KEYS = {
    SortKey.date: lambda entry: entry.date,
    SortKey.amount: lambda entry: entry.amount,
    SortKey.category: lambda entry: entry.category,
}

_HISTORY_SORT_KEYS = {
    HistorySortKey.category: lambda row: row.category,
    HistorySortKey.budgeted: lambda row: row.budgeted_amount,
    HistorySortKey.spent: lambda row: row.amount_spent,
    HistorySortKey.remaining: lambda row: row.remaining_amount,
    HistorySortKey.percentage: lambda row: row.percentage_spent,
}


def sort_entries(
    entries: Sequence[BudgetEntry], key: SortKey, ascending: bool = True
) -> list[BudgetEntry]:
    # sorted() is stable in both directions, so ties keep their prior order
    return sorted(entries, key=_ENTRY_SORT_KEYS[SortKey(key)], reverse=not ascending)


def sort_history(
    rows: Sequence[BudgetHistoryData], key: HistorySortKey, ascending: bool = True
) -> list[BudgetHistoryData]:
    return sorted(rows, key=_HISTORY_SORT_KEYS[HistorySortKey(key)], reverse=not ascending)


def budgeted_by_category(
    budgets: Iterable[MonthlyBudget], period: Period
) -> dict[str, Decimal]:
    by_month: dict[tuple[int, int], list[MonthlyBudget]] = defaultdict(list)
    for budget in budgets:
        by_month[(budget.year, budget.month)].append(budget)

    totals: dict[str, Decimal] = defaultdict(lambda: ZERO)
    for year, month in period.months():
        for budget in by_month.get((year, month), ()):
            totals[budget.category] += budget.amount
    return dict(totals)


def spent_by_category(entries: Iterable[BudgetEntry]) -> dict[str, Decimal]:
    totals: dict[str, Decimal] = defaultdict(lambda: ZERO)
    for entry in entries:
        totals[entry.category] += entry.amount
    return dict(totals)


def aggregate_history(
    entries: Iterable[BudgetEntry],
    budgets: Iterable[MonthlyBudget],
    period: Period,
) -> list[BudgetHistoryData]:
    """Build one summary row per category seen in either budgets or entries.

    ``entries`` must already be restricted to ``period``; ``budgets`` may
    cover any months, only those inside the period's month span count.
    """
    budgeted = budgeted_by_category(budgets, period)
    spent = spent_by_category(entries)
    return [
        BudgetHistoryData(
            category=category,
            budgeted_amount=budgeted.get(category, ZERO),
            amount_spent=spent.get(category, ZERO),
        )
        for category in sorted(set(budgeted) | set(spent))
    ]


def _top_category(amounts: dict[str, Decimal]) -> Optional[str]:
    positive = {name: value for name, value in amounts.items() if value > 0}
    if not positive:
        return None
    return min(positive.items(), key=lambda item: (-item[1], item[0]))[0]


def purchase_statistics(entries: Sequence[BudgetEntry]) -> PurchaseStatistics:
    if not entries:
        return PurchaseStatistics(total_amount=ZERO, entry_count=0, average_amount=ZERO)

    breakdown = spent_by_category(entries)
    total = sum((entry.amount for entry in entries), ZERO)
    return PurchaseStatistics(
        total_amount=total,
        entry_count=len(entries),
        average_amount=quantize_money(total / len(entries)),
        category_breakdown=breakdown,
        largest_purchase=max(entries, key=lambda entry: entry.amount),
        smallest_purchase=min(entries, key=lambda entry: entry.amount),
        top_category=_top_category(breakdown),
        first_date=min(entry.date for entry in entries),
        last_date=max(entry.date for entry in entries),
    )


def history_totals(rows: Sequence[BudgetHistoryData]) -> HistoryTotals:
    return HistoryTotals(
        total_budgeted=sum((row.budgeted_amount for row in rows), ZERO),
        total_spent=sum((row.amount_spent for row in rows), ZERO),
        over_budget_categories=tuple(row.category for row in rows if row.is_over_budget),
        top_category=_top_category({row.category: row.amount_spent for row in rows}),
    )
