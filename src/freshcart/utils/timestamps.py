from datetime import UTC, datetime


def as_naive_utc(value: datetime | None) -> datetime | None:
    """Normalize to a naive UTC datetime.

    The memory provider hands back the aware datetimes it was given, SQL
    providers hand back naive ones; comparisons go through this first.
    """
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(UTC).replace(tzinfo=None)


def utc_now_naive() -> datetime:
    return datetime.now(UTC).replace(tzinfo=None)
