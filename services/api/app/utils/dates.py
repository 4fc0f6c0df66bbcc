"""Restaurant-local calendar days expressed as naive UTC bounds.

Timestamps are stored as naive UTC, so a filter on local days has to be shifted into
UTC before it reaches the query.
"""

from __future__ import annotations

from datetime import date, datetime, time, timedelta, timezone
from zoneinfo import ZoneInfo

from services.api.app.config import timezone_name


def local_midnight_utc(day: date, tz_name: str | None = None) -> datetime:
    local = datetime.combine(day, time.min, tzinfo=ZoneInfo(tz_name or timezone_name()))
    return local.astimezone(timezone.utc).replace(tzinfo=None)


def local_day_range_utc(
    start_date: date | None,
    end_date: date | None,
    tz_name: str | None = None,
) -> tuple[datetime | None, datetime | None]:
    """Return ``[start, end)`` in naive UTC covering whole local days, both ends inclusive."""

    if start_date and end_date and start_date > end_date:
        raise ValueError("start_date must not be after end_date")

    lower = local_midnight_utc(start_date, tz_name) if start_date else None
    upper = local_midnight_utc(end_date + timedelta(days=1), tz_name) if end_date else None
    return lower, upper
