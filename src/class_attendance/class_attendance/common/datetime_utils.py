from __future__ import annotations

from datetime import date, datetime


def parse_iso_date(value) -> date:
    """Accept ``YYYY-MM-DD`` or a full ISO timestamp and keep the date part."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value).strip()[:10])


def now_local() -> datetime:
    # Services take an explicit ``now=``; this is only the fallback.
    return datetime.now()


def iso(value) -> str | None:
    return value.isoformat() if value is not None else None
