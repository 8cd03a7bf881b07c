from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, time
from typing import Optional, Union
from uuid import UUID

from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from cache import QueryCache
from formatting import from_cents, to_cents
from models import CategoryBudget, Purchase
from periods import Period, local_now
from pipeline import (
    ALL_CATEGORIES,
    BudgetHistoryData,
    EntryFilters,
    HistorySortKey,
    HistoryTotals,
    PurchaseStatistics,
    SortKey,
    aggregate_history,
    filter_entries,
    history_totals,
    purchase_statistics,
    sort_entries,
    sort_history,
)
from schemas import BudgetEntry, EntryIn, MonthlyBudget, MonthlyBudgetIn

logger = logging.getLogger(__name__)

EntryId = Union[UUID, str]


class EntryNotFound(ValueError):
    pass


class BudgetNotFound(ValueError):
    pass


@dataclass(frozen=True)
class PurchasesQuery:
    period: Optional[Period]


@dataclass(frozen=True)
class HistoryQuery:
    period: Period


@dataclass(frozen=True)
class PurchasesView:
    entries: list[BudgetEntry]
    statistics: PurchaseStatistics
    has_active_filters: bool


@dataclass(frozen=True)
class HistoryView:
    period: Period
    rows: list[BudgetHistoryData]
    totals: HistoryTotals
    cache_hit: bool = False


def _period_bounds(period: Period) -> tuple[datetime, datetime]:
    return datetime.combine(period.start, time.min), datetime.combine(period.end, time.max)


def _entry_from_row(row: Purchase) -> BudgetEntry:
    # rows were validated on the way in; re-checking "not in the future" on
    # read would reject entries after a timezone change
    return BudgetEntry.model_construct(
        id=UUID(row.id),
        amount=from_cents(row.amount_cents),
        category=row.category,
        date=row.occurred_at,
        note=row.note,
    )


def _budget_from_row(row: CategoryBudget) -> MonthlyBudget:
    return MonthlyBudget(
        id=row.id,
        category=row.category,
        year=row.year,
        month=row.month,
        amount=from_cents(row.amount_cents),
    )


class EntryService:
    def __init__(self, session: Session, cache: Optional[QueryCache] = None) -> None:
        self.session = session
        self.cache = cache

    def _invalidate(self) -> None:
        if self.cache is not None:
            self.cache.clear()

    def _row(self, entry_id: EntryId) -> Purchase:
        row = self.session.get(Purchase, str(entry_id))
        if not row:
            raise EntryNotFound("Entry not found")
        return row

    def list(
        self, period: Optional[Period] = None, category: Optional[str] = None
    ) -> list[BudgetEntry]:
        stmt = select(Purchase).order_by(Purchase.occurred_at.desc(), Purchase.id)
        if period is not None:
            start, end = _period_bounds(period)
            stmt = stmt.where(Purchase.occurred_at.between(start, end))
        if category and category != ALL_CATEGORIES:
            stmt = stmt.where(Purchase.category == category)
        return [_entry_from_row(row) for row in self.session.scalars(stmt)]

    def get(self, entry_id: EntryId) -> BudgetEntry:
        return _entry_from_row(self._row(entry_id))

    def create(self, data: EntryIn) -> BudgetEntry:
        entry = BudgetEntry.create(
            amount=data.amount,
            category=data.category,
            date=data.date or local_now(),
            note=data.note,
        )
        self.session.add(
            Purchase(
                id=str(entry.id),
                amount_cents=to_cents(entry.amount),
                category=entry.category,
                occurred_at=entry.date,
                note=entry.note,
            )
        )
        self.session.commit()
        self._invalidate()
        logger.info(f"entry_created: id={entry.id} category={entry.category}")
        return entry

    def update(self, entry_id: EntryId, data: EntryIn) -> BudgetEntry:
        row = self._row(entry_id)
        current = _entry_from_row(row)
        updated = current.replace(
            amount=data.amount,
            category=data.category,
            date=data.date or current.date,
            note=data.note,
        )
        row.amount_cents = to_cents(updated.amount)
        row.category = updated.category
        row.occurred_at = updated.date
        row.note = updated.note
        self.session.commit()
        self._invalidate()
        logger.info(f"entry_updated: id={updated.id}")
        return updated

    def delete(self, entry_id: EntryId) -> None:
        row = self._row(entry_id)
        self.session.delete(row)
        self.session.commit()
        self._invalidate()
        logger.info(f"entry_deleted: id={entry_id}")

    def categories(self) -> list[str]:
        stmt = select(Purchase.category).distinct().order_by(Purchase.category)
        return list(self.session.scalars(stmt))


class BudgetService:
    def __init__(self, session: Session, cache: Optional[QueryCache] = None) -> None:
        self.session = session
        self.cache = cache

    def _invalidate(self) -> None:
        if self.cache is not None:
            self.cache.clear()

    def list_for_month(self, year: int, month: int) -> list[MonthlyBudget]:
        stmt = (
            select(CategoryBudget)
            .where(CategoryBudget.year == year, CategoryBudget.month == month)
            .order_by(CategoryBudget.category)
        )
        return [_budget_from_row(row) for row in self.session.scalars(stmt)]

    def list_for_period(self, period: Period) -> list[MonthlyBudget]:
        first = period.start.year * 12 + period.start.month
        last = period.end.year * 12 + period.end.month
        month_index = CategoryBudget.year * 12 + CategoryBudget.month
        stmt = (
            select(CategoryBudget)
            .where(month_index.between(first, last))
            .order_by(
                CategoryBudget.year, CategoryBudget.month, CategoryBudget.category
            )
        )
        return [_budget_from_row(row) for row in self.session.scalars(stmt)]

    def upsert(self, data: MonthlyBudgetIn) -> MonthlyBudget:
        stmt = select(CategoryBudget).where(
            CategoryBudget.category == data.category,
            CategoryBudget.year == data.year,
            CategoryBudget.month == data.month,
        )
        existing = self.session.scalar(stmt)
        if existing:
            existing.amount_cents = to_cents(data.amount)
            row = existing
        else:
            row = CategoryBudget(
                category=data.category,
                year=data.year,
                month=data.month,
                amount_cents=to_cents(data.amount),
            )
            self.session.add(row)
        self.session.commit()
        self.session.refresh(row)
        self._invalidate()
        logger.info(
            f"budget_upserted: category={row.category} month={row.year:04d}-{row.month:02d}"
        )
        return _budget_from_row(row)

    def delete(self, budget_id: int) -> None:
        result = self.session.execute(
            delete(CategoryBudget).where(CategoryBudget.id == budget_id)
        )
        if not result.rowcount:
            self.session.rollback()
            raise BudgetNotFound("Budget not found")
        self.session.commit()
        self._invalidate()
        logger.info(f"budget_deleted: id={budget_id}")

    def categories(self) -> list[str]:
        stmt = (
            select(CategoryBudget.category)
            .distinct()
            .order_by(CategoryBudget.category)
        )
        return list(self.session.scalars(stmt))


class PurchasesService:
    def __init__(
        self, session: Session, cache: QueryCache, *, currency_code: str = "USD"
    ) -> None:
        self.session = session
        self.cache = cache
        self.currency_code = currency_code

    def _entries(self, period: Optional[Period]) -> list[BudgetEntry]:
        key = PurchasesQuery(period)
        cached = self.cache.get(key)
        if cached is not None:
            logger.debug(f"purchases_cache_hit: period={period}")
            return cached
        entries = EntryService(self.session).list(period)
        self.cache.put(key, entries)
        return entries

    def recompute(
        self,
        filters: EntryFilters,
        sort_key: SortKey = SortKey.date,
        ascending: bool = False,
    ) -> PurchasesView:
        entries = self._entries(filters.period)
        filtered = filter_entries(entries, filters, currency_code=self.currency_code)
        ordered = sort_entries(filtered, sort_key, ascending)
        return PurchasesView(
            entries=ordered,
            statistics=purchase_statistics(ordered),
            # a sort other than newest first also counts as a customised view
            has_active_filters=filters.has_active_filters
            or SortKey(sort_key) != SortKey.date
            or ascending,
        )

    def available_categories(self) -> list[str]:
        names = set(EntryService(self.session).categories())
        names.update(BudgetService(self.session).categories())
        return [ALL_CATEGORIES, *sorted(names)]


class HistoryService:
    def __init__(self, session: Session, cache: QueryCache) -> None:
        self.session = session
        self.cache = cache

    def _compute_rows(self, period: Period) -> list[BudgetHistoryData]:
        entries = EntryService(self.session).list(period)
        budgets = BudgetService(self.session).list_for_period(period)
        return aggregate_history(entries, budgets, period)

    def summary(
        self,
        period: Period,
        sort_key: HistorySortKey = HistorySortKey.category,
        ascending: bool = True,
    ) -> HistoryView:
        key = HistoryQuery(period)
        rows = self.cache.get(key)
        cache_hit = rows is not None
        if rows is None:
            rows = self._compute_rows(period)
            self.cache.put(key, rows)
            logger.debug(f"history_computed: period={period.slug} rows={len(rows)}")
        ordered = sort_history(rows, sort_key, ascending)
        return HistoryView(
            period=period,
            rows=ordered,
            totals=history_totals(ordered),
            cache_hit=cache_hit,
        )

    def refresh(
        self,
        period: Period,
        sort_key: HistorySortKey = HistorySortKey.category,
        ascending: bool = True,
    ) -> HistoryView:
        self.cache.invalidate(HistoryQuery(period))
        return self.summary(period, sort_key, ascending)
