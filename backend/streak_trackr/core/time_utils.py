from datetime import date, datetime, timedelta, timezone


def ensure_utc(dt: datetime) -> datetime:
    """Return `dt` as an aware UTC datetime.

    SQLite hands back naive datetimes even for timezone-aware columns, so a
    naive value is assumed to already be UTC.
    """
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def apply_offset(dt: datetime, offset_hours: float) -> datetime:
    """Shift an instant into the user's wall clock.

    Returns a naive datetime holding the local time for a UTC offset of
    `offset_hours` (fractional hours allowed, e.g. 5.5 or -3.5).
    Example: 2025-01-01T23:30Z with offset -5 -> 2025-01-01T18:30
    """
    return ensure_utc(dt).replace(tzinfo=None) + timedelta(hours=offset_hours)


def local_day(dt: datetime, offset_hours: float = 0) -> date:
    """Calendar date of `dt` as seen by a user at `offset_hours`."""
    return apply_offset(dt, offset_hours).date()


def run_length(start: datetime, end: datetime, offset_hours: float = 0) -> int:
    """
    Inclusive number of calendar days covered by a run.
    Time of day is discarded, so a run started and ended the same day is 1.
    Example: start=Mon 23:00, end=Tue 01:00 -> 2
    """
    days = (local_day(end, offset_hours) - local_day(start, offset_hours)).days
    return abs(days) + 1


def same_local_day(a: datetime, b: datetime, offset_hours: float = 0) -> bool:
    return local_day(a, offset_hours) == local_day(b, offset_hours)
