"""Date and time helpers"""

from datetime import datetime, timezone


def utcnow() -> datetime:
    """Timezone-aware current instant, used for record timestamps"""
    return datetime.now(timezone.utc)


def ensure_aware(value: datetime) -> datetime:
    """SQLite drops tzinfo on read; stored instants are always UTC"""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value
