"""Date and clock utilities"""

from datetime import date, datetime, timezone


def today() -> date:
    """Current calendar date used as the overdue cut-off"""
    return date.today()


def utc_now() -> datetime:
    """Timezone-aware current time used for token expiry checks"""
    return datetime.now(timezone.utc)
