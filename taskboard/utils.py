import uuid
from datetime import datetime, timezone
from typing import Optional


def new_uuid() -> str:
    return str(uuid.uuid4())


def now_utc() -> datetime:
    return datetime.now(tz=timezone.utc)


def to_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Normalize ``value`` to an aware UTC datetime.

    Naive values are taken to already be UTC, which is also how they come back
    from SQLite.
    """
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)
