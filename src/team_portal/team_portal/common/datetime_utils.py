from __future__ import annotations

from datetime import date, datetime, timedelta
from typing import Iterator, Optional

from ..core.exceptions import ValidationError


def parse_iso_date(value: str) -> date:
    """Parse YYYY-MM-DD string into date."""
    try:
        return datetime.strptime((value or "").strip()[:10], "%Y-%m-%d").date()
    except ValueError:
        raise ValidationError(f"Invalid date (expected YYYY-MM-DD): {value!r}")


def parse_optional_date(value: Optional[str]) -> Optional[date]:
    if not value:
        return None
    return parse_iso_date(value)


def month_start(day: date) -> date:
    return day.replace(day=1)


def date_range(start: date, end: date) -> Iterator[date]:
    """Yield every day from ``start`` to ``end`` inclusive."""
    cur = start
    while cur <= end:
        yield cur
        cur += timedelta(days=1)


def resolve_report_range(
    *,
    today: date,
    days: Optional[int] = None,
    start: Optional[date] = None,
    end: Optional[date] = None,
    default_days: int = 30,
) -> tuple[date, date]:
    """Either an explicit start/end pair, or the last ``days`` days ending today."""
    if start and end:
        if end < start:
            raise ValidationError("End date must be on or after start date")
        return start, end

    n = int(days) if days and int(days) > 0 else default_days
    return today - timedelta(days=n - 1), today
