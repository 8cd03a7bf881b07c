import logging
from decimal import Decimal
from typing import Optional

from fastapi import Depends, FastAPI, HTTPException, Request
from sqlalchemy.orm import Session

from cache import QueryCache
from config import get_settings
from database import SessionLocal
from formatting import format_currency, format_percentage, parse_amount
from periods import Period, local_today, resolve_period
from pipeline import (
    AmountRange,
    BudgetHistoryData,
    EntryFilters,
    HistorySortKey,
    HistoryTotals,
    PurchaseStatistics,
    SortKey,
)
from scheduler import SchedulerManager
from schemas import BudgetEntry, EntryIn, EntryOut, MonthlyBudget, MonthlyBudgetIn
from services import (
    BudgetNotFound,
    BudgetService,
    EntryNotFound,
    EntryService,
    HistoryService,
    PurchasesService,
)

MAX_QUERY_AMOUNT = Decimal("999999999.99")

settings = get_settings()
app = FastAPI(title="Budget History")

query_cache: QueryCache = QueryCache(
    settings.cache_ttl_secs, max_entries=settings.cache_max_entries
)
scheduler_manager = SchedulerManager(query_cache)


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_cache() -> QueryCache:
    return query_cache


@app.on_event("startup")
def startup_event():
    scheduler_manager.start()


@app.on_event("shutdown")
def shutdown_event():
    scheduler_manager.stop()


def period_from_request(request: Request) -> Period:
    period_slug = request.query_params.get("period")
    start = request.query_params.get("start")
    end = request.query_params.get("end")
    try:
        return resolve_period(period_slug, start, end)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc


def ascending_from_request(request: Request, default: bool) -> bool:
    raw = request.query_params.get("ascending")
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


def amount_range_from_request(request: Request) -> Optional[AmountRange]:
    min_raw = request.query_params.get("min_amount")
    max_raw = request.query_params.get("max_amount")
    if not min_raw and not max_raw:
        return None
    try:
        low = parse_amount(min_raw) if min_raw else Decimal("0")
        high = parse_amount(max_raw) if max_raw else MAX_QUERY_AMOUNT
        return AmountRange(low, high)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc


def filters_from_request(request: Request) -> EntryFilters:
    return EntryFilters(
        period=period_from_request(request),
        category=request.query_params.get("category"),
        query=request.query_params.get("q"),
        amount_range=amount_range_from_request(request),
    )


def entry_payload(entry: BudgetEntry) -> dict[str, object]:
    return EntryOut.from_entry(entry).model_dump(mode="json")


def budget_payload(budget: MonthlyBudget) -> dict[str, object]:
    return {
        "id": budget.id,
        "category": budget.category,
        "year": budget.year,
        "month": budget.month,
        "amount": f"{budget.amount:.2f}",
    }


def statistics_payload(stats: PurchaseStatistics) -> dict[str, object]:
    currency = settings.currency_code
    return {
        "total_amount": f"{stats.total_amount:.2f}",
        "formatted_total": format_currency(stats.total_amount, currency),
        "entry_count": stats.entry_count,
        "average_amount": f"{stats.average_amount:.2f}",
        "formatted_average": format_currency(stats.average_amount, currency),
        "category_breakdown": {
            name: f"{amount:.2f}"
            for name, amount in sorted(stats.category_breakdown.items())
        },
        "largest_purchase": entry_payload(stats.largest_purchase)
        if stats.largest_purchase
        else None,
        "smallest_purchase": entry_payload(stats.smallest_purchase)
        if stats.smallest_purchase
        else None,
        "top_category": stats.top_category,
        "first_date": stats.first_date.isoformat() if stats.first_date else None,
        "last_date": stats.last_date.isoformat() if stats.last_date else None,
    }


def history_row_payload(row: BudgetHistoryData) -> dict[str, object]:
    currency = settings.currency_code
    return {
        "category": row.category,
        "budgeted_amount": f"{row.budgeted_amount:.2f}",
        "amount_spent": f"{row.amount_spent:.2f}",
        "remaining_amount": f"{row.remaining_amount:.2f}",
        "percentage_spent": round(row.percentage_spent, 2),
        "is_over_budget": row.is_over_budget,
        "formatted_spent": format_currency(row.amount_spent, currency),
        "formatted_budgeted": format_currency(row.budgeted_amount, currency),
        "formatted_percentage": format_percentage(row.percentage_spent),
    }


def totals_payload(totals: HistoryTotals) -> dict[str, object]:
    return {
        "total_budgeted": f"{totals.total_budgeted:.2f}",
        "total_spent": f"{totals.total_spent:.2f}",
        "remaining_amount": f"{totals.remaining_amount:.2f}",
        "percentage_spent": round(totals.percentage_spent, 2),
        "over_budget_categories": list(totals.over_budget_categories),
        "top_category": totals.top_category,
    }


@app.get("/api/purchases")
def api_purchases(
    request: Request,
    db: Session = Depends(get_db),
    cache: QueryCache = Depends(get_cache),
):
    filters = filters_from_request(request)
    try:
        sort_key = SortKey(request.query_params.get("sort", SortKey.date.value))
    except ValueError as exc:
        raise HTTPException(status_code=400, detail="Unknown sort key") from exc
    ascending = ascending_from_request(request, default=False)
    service = PurchasesService(db, cache, currency_code=settings.currency_code)
    view = service.recompute(filters, sort_key, ascending)
    return {
        "period": {
            "slug": filters.period.slug,
            "label": filters.period.label,
            "start": filters.period.start.isoformat(),
            "end": filters.period.end.isoformat(),
        },
        "items": [entry_payload(entry) for entry in view.entries],
        "statistics": statistics_payload(view.statistics),
        "has_active_filters": view.has_active_filters,
    }


@app.get("/api/history")
def api_history(
    request: Request,
    db: Session = Depends(get_db),
    cache: QueryCache = Depends(get_cache),
):
    period = period_from_request(request)
    try:
        sort_key = HistorySortKey(
            request.query_params.get("sort", HistorySortKey.category.value)
        )
    except ValueError as exc:
        raise HTTPException(status_code=400, detail="Unknown sort key") from exc
    ascending = ascending_from_request(request, default=True)
    view = HistoryService(db, cache).summary(period, sort_key, ascending)
    return {
        "period": {
            "slug": period.slug,
            "label": period.label,
            "start": period.start.isoformat(),
            "end": period.end.isoformat(),
        },
        "rows": [history_row_payload(row) for row in view.rows],
        "totals": totals_payload(view.totals),
    }


@app.get("/api/categories")
def api_categories(
    db: Session = Depends(get_db), cache: QueryCache = Depends(get_cache)
):
    return PurchasesService(db, cache).available_categories()


@app.post("/api/entries", status_code=201)
def create_entry(
    data: EntryIn,
    db: Session = Depends(get_db),
    cache: QueryCache = Depends(get_cache),
):
    try:
        entry = EntryService(db, cache).create(data)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    logging.info(f"api_entry_created: id={entry.id}")
    return entry_payload(entry)


@app.put("/api/entries/{entry_id}")
def update_entry(
    entry_id: str,
    data: EntryIn,
    db: Session = Depends(get_db),
    cache: QueryCache = Depends(get_cache),
):
    try:
        entry = EntryService(db, cache).update(entry_id, data)
    except EntryNotFound as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return entry_payload(entry)


@app.delete("/api/entries/{entry_id}", status_code=204)
def delete_entry(
    entry_id: str,
    db: Session = Depends(get_db),
    cache: QueryCache = Depends(get_cache),
):
    try:
        EntryService(db, cache).delete(entry_id)
    except EntryNotFound as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    logging.info(f"api_entry_deleted: id={entry_id}")


@app.get("/api/budgets")
def api_budgets(request: Request, db: Session = Depends(get_db)):
    today = local_today()
    ym = request.query_params.get("month")  # YYYY-MM
    if ym:
        try:
            year_str, month_str = ym.split("-", 1)
            year = int(year_str)
            month = int(month_str)
        except ValueError as exc:
            raise HTTPException(status_code=400, detail="Invalid month") from exc
        if not 1 <= month <= 12:
            raise HTTPException(status_code=400, detail="Invalid month")
    else:
        year = today.year
        month = today.month
    budgets = BudgetService(db).list_for_month(year, month)
    return {
        "month": f"{year:04d}-{month:02d}",
        "budgets": [budget_payload(b) for b in budgets],
    }


@app.post("/api/budgets", status_code=201)
def upsert_budget(
    data: MonthlyBudgetIn,
    db: Session = Depends(get_db),
    cache: QueryCache = Depends(get_cache),
):
    budget = BudgetService(db, cache).upsert(data)
    logging.info(
        f"api_budget_upserted: category={budget.category} month={budget.year:04d}-{budget.month:02d}"
    )
    return budget_payload(budget)


@app.delete("/api/budgets/{budget_id}", status_code=204)
def delete_budget(
    budget_id: int,
    db: Session = Depends(get_db),
    cache: QueryCache = Depends(get_cache),
):
    try:
        BudgetService(db, cache).delete(budget_id)
    except BudgetNotFound as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc


def main():
    import uvicorn

    uvicorn.run("main:app", host="0.0.0.0", port=8000, reload=False)


if __name__ == "__main__":
    main()
