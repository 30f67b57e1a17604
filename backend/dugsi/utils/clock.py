from datetime import datetime, timezone


def utc_timestamp(now: datetime | None = None) -> str:
    # Microsecond precision keeps newest-first ordering stable for rapid uploads.
    now = now or datetime.now(timezone.utc)
    return now.strftime("%Y-%m-%dT%H:%M:%S.%fZ")
