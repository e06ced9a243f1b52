"""Time utilities for consistent timestamp handling."""

from datetime import datetime, timezone


def utc_now() -> datetime:
    """Return current UTC timestamp (timezone-aware)."""
    return datetime.now(timezone.utc)


def to_iso(value: datetime) -> str:
    """Format a timestamp as ISO-8601 UTC with milliseconds and "Z".

    Stored message timestamps are compared as strings, so everything we
    write uses the layout the channels already use. Naive values (from
    `timestamp without time zone` columns) are taken as UTC.
    """
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def utc_now_iso() -> str:
    """Return current UTC timestamp as an ISO-8601 string."""
    return to_iso(utc_now())
