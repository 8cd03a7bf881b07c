import calendar
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Iterator, Optional, Union
from zoneinfo import ZoneInfo

from config import get_settings


ALL_TIME_START = date(1970, 1, 1)

PERIOD_LABELS = {
    "today": "Today",
    "yesterday": "Yesterday",
    "this_week": "This Week",
    "last_week": "Last Week",
    "this_month": "This Month",
    "last_month": "Last Month",
    "this_quarter": "This Quarter",
    "last_quarter": "Last Quarter",
    "this_year": "This Year",
    "last_year": "Last Year",
    "last_7_days": "Last 7 Days",
    "last_30_days": "Last 30 Days",
    "last_90_days": "Last 90 Days",
    "last_12_months": "Last 12 Months",
    "all": "All Time",
}

ROLLING_DAYS = {"last_7_days": 7, "last_30_days": 30, "last_90_days": 90}


def local_now() -> datetime:
    """Current wall-clock time in the configured timezone, without tzinfo."""
    tz = ZoneInfo(get_settings().timezone)
    return datetime.now(tz).replace(tzinfo=None)


def local_today() -> date:
    return local_now().date()


def _month_end(year: int, month: int) -> date:
    return date(year, month, calendar.monthrange(year, month)[1])


def _add_months(d: date, count: int) -> date:
    month_index = (d.year * 12) + (d.month - 1) + count
    year = month_index // 12
    month = (month_index % 12) + 1
    day = min(d.day, calendar.monthrange(year, month)[1])
    return date(year, month, day)


@dataclass(frozen=True)
class Period:
    slug: str
    start: date
    end: date

    def __post_init__(self) -> None:
        if self.start > self.end:
            raise ValueError("Start date must be before end date")

    @property
    def label(self) -> str:
        if self.slug in PERIOD_LABELS:
            return PERIOD_LABELS[self.slug]
        return f"{self.start.isoformat()} – {self.end.isoformat()}"

    @property
    def duration_days(self) -> int:
        return (self.end - self.start).days + 1

    def contains(self, moment: Union[date, datetime]) -> bool:
        day = moment.date() if isinstance(moment, datetime) else moment
        return self.start <= day <= self.end

    def months(self) -> Iterator[tuple[int, int]]:
        """Yield every (year, month) the period touches, oldest first."""
        year, month = self.start.year, self.start.month
        while (year, month) <= (self.end.year, self.end.month):
            yield year, month
            month += 1
            if month > 12:
                month = 1
                year += 1


def resolve_period(
    period: Optional[str],
    start: Optional[str],
    end: Optional[str],
    *,
    today: Optional[date] = None,
) -> Period:
    today = today or local_today()
    if period == "all":
        return Period("all", ALL_TIME_START, today)
    if period == "custom":
        if not start or not end:
            raise ValueError("Custom period requires start and end dates")
        start_date = date.fromisoformat(start)
        end_date = date.fromisoformat(end)
        return Period("custom", start_date, end_date)
    if period == "today":
        return Period("today", today, today)
    if period == "yesterday":
        yesterday = today - timedelta(days=1)
        return Period("yesterday", yesterday, yesterday)
    if period in ("this_week", "last_week"):
        week_start = today - timedelta(days=today.weekday())
        if period == "last_week":
            week_start -= timedelta(days=7)
        return Period(period, week_start, week_start + timedelta(days=6))
    if period == "last_month":
        first_this = today.replace(day=1)
        last_month_end = first_this - date.resolution
        return Period("last_month", last_month_end.replace(day=1), last_month_end)
    if period in ("this_quarter", "last_quarter"):
        quarter_start = date(today.year, ((today.month - 1) // 3) * 3 + 1, 1)
        if period == "last_quarter":
            quarter_start = _add_months(quarter_start, -3)
        quarter_last_month = _add_months(quarter_start, 2)
        return Period(
            period,
            quarter_start,
            _month_end(quarter_last_month.year, quarter_last_month.month),
        )
    if period == "this_year":
        return Period("this_year", date(today.year, 1, 1), date(today.year, 12, 31))
    if period == "last_year":
        year = today.year - 1
        return Period("last_year", date(year, 1, 1), date(year, 12, 31))
    if period in ROLLING_DAYS:
        return Period(period, today - timedelta(days=ROLLING_DAYS[period]), today)
    if period == "last_12_months":
        return Period("last_12_months", _add_months(today, -12), today)

    # this month
    first = today.replace(day=1)
    return Period("this_month", first, _month_end(first.year, first.month))
