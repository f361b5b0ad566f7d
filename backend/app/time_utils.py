"""Helpers for working with timezone-aware datetimes."""

from __future__ import annotations

from datetime import MAXYEAR, date, datetime, timezone


def coerce_utc(value: datetime | None) -> datetime | None:
    """Return a UTC-normalized datetime, assuming naive values are already UTC."""

    if value is None:
        return None

    if value.tzinfo is None or value.utcoffset() is None:
        return value.replace(tzinfo=timezone.utc)

    return value.astimezone(timezone.utc)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def year_bounds(year: int) -> tuple[datetime, datetime | None]:
    """Return the ``[start, end)`` UTC range covering calendar ``year``.

    ``end`` is ``None`` for the last representable year, which has no upper
    bound.

    The bounds are naive so they compare cleanly against ``DateTime`` columns
    stored without timezone information.
    """

    start = datetime(year, 1, 1)
    end = datetime(year + 1, 1, 1) if year < MAXYEAR else None
    return start, end


def format_date(value: date | None) -> str | None:
    """Render a tournament date as ``YYYY-MM-DD``."""

    if value is None:
        return None
    return value.isoformat()


def utcnow_naive() -> datetime:
    """Current UTC time without tzinfo, matching how ``DateTime`` columns are stored."""

    return utcnow().replace(tzinfo=None)
