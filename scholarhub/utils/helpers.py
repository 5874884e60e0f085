"""Shared utility functions used by models, services and blueprints.

utcnow:          timezone-aware "now", the single clock the services read
as_utc:          normalise datetimes read back from SQLite (naive) to UTC
parse_datetime:  ISO-8601 input → aware datetime (raises ValueError)
new_id:          string UUID primary keys
isoformat:       datetime → ISO string for JSON bodies (None passes through)
"""
import uuid
from datetime import date, datetime, time, timezone


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def new_id() -> str:
    return str(uuid.uuid4())


def as_utc(value):
    """Attach UTC to a naive datetime; leave aware datetimes and None alone.

    SQLite drops the offset on DateTime(timezone=True) columns, PostgreSQL
    keeps it. Every comparison against ``utcnow()`` goes through here.
    """
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def parse_datetime(value):
    """Parse an ISO date or datetime string into an aware datetime.

    Accepts ``YYYY-MM-DD``, ``YYYY-MM-DDTHH:MM:SS[.ffffff][+HH:MM]`` and a
    trailing ``Z``. Returns None for empty input, raises ValueError for
    anything else that does not parse.
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return as_utc(value)
    if isinstance(value, date):
        return datetime.combine(value, time.min, tzinfo=timezone.utc)
    text = str(value).strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        # SQLite drops offsets on write, so everything is stored as UTC
        return as_utc(datetime.fromisoformat(text)).astimezone(timezone.utc)
    except ValueError as exc:
        raise ValueError(
            f"Invalid date {value!r}. Use ISO-8601 (YYYY-MM-DD or YYYY-MM-DDTHH:MM:SS)."
        ) from exc


def isoformat(value):
    if value is None:
        return None
    return as_utc(value).isoformat()
