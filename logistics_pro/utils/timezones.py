from datetime import datetime, timedelta, timezone


def utcnow() -> datetime:
    """Naive UTC timestamp, the form every DateTime column stores."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def minutes_ago(minutes: int) -> datetime:
    return utcnow() - timedelta(minutes=minutes)
