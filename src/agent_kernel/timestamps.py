"""UTC timestamp helpers. Everything is stored as ISO-8601 with a Z suffix."""

from datetime import datetime, timezone


def utc_now() -> datetime:
    """Get the current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def now_iso() -> str:
    """Get the current time formatted for storage."""
    return to_iso(utc_now())


def to_iso(value: datetime) -> str:
    """Format an aware datetime for storage."""
    return (
        value.astimezone(timezone.utc)
        .isoformat(timespec="microseconds")
        .replace("+00:00", "Z")
    )


def parse_iso(value: str) -> datetime:
    """Parse a stored timestamp back into an aware datetime."""
    return datetime.fromisoformat(value.replace("Z", "+00:00"))
