from datetime import date, datetime, time, timezone


def naive_utc_now() -> datetime:
    """
    Get current UTC datetime as a naive datetime (no timezone info).
    All timestamps are stored this way so that SQLite and server databases
    compare them identically.

    Returns:
        datetime: Current UTC datetime without timezone info
    """
    return datetime.now(timezone.utc).replace(tzinfo=None)


def start_of_day(day: date) -> datetime:
    """Naive datetime at 00:00:00 of the given day."""
    return datetime.combine(day, time.min)


def end_of_day(day: date) -> datetime:
    """Naive datetime at 23:59:59.999999 of the given day."""
    return datetime.combine(day, time.max)
