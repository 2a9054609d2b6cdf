from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Optional

from ..core.enums import StatsPeriod


def parse_iso_date(value: str) -> date:
    """Parse YYYY-MM-DD string into date."""
    return datetime.strptime(value, "%Y-%m-%d").date()


def now_local() -> datetime:
    """Current local time.

    Note: Wrapped so tests can patch/mocked easier.
    """
    return datetime.now()


@dataclass(frozen=True)
class DateRange:
    """Inclusive date range; both ends None means unbounded."""

    start: Optional[date]
    end: Optional[date]

    @property
    def is_bounded(self) -> bool:
        return self.start is not None


def parse_period(value: Optional[str]) -> StatsPeriod:
    try:
        return StatsPeriod((value or "all").lower())
    except ValueError:
        return StatsPeriod.ALL


def period_range(period: StatsPeriod, *, today: date) -> DateRange:
    if period == StatsPeriod.TODAY:
        return DateRange(start=today, end=today)
    if period == StatsPeriod.WEEK:
        return DateRange(start=today - timedelta(days=today.weekday()), end=today)
    if period == StatsPeriod.MONTH:
        return DateRange(start=today.replace(day=1), end=today)
    return DateRange(start=None, end=None)


def months_ago(today: date, months: int) -> date:
    """Same day `months` calendar months back, clamped to that month's last day."""
    month_index = today.year * 12 + (today.month - 1) - int(months)
    year, month = divmod(month_index, 12)
    month += 1
    next_first = date(year + (month // 12), (month % 12) + 1, 1)
    last_day = (next_first - timedelta(days=1)).day
    return date(year, month, min(today.day, last_day))
