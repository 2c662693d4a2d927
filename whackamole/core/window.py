from datetime import datetime, timedelta


def is_expired(entry_timestamp: datetime, now: datetime, window_minutes: int) -> bool:
    return now - entry_timestamp > timedelta(minutes=window_minutes)
