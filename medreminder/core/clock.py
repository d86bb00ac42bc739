from datetime import date, datetime

import pytz

from medreminder.core.config import settings


def local_now(tz_name: str | None = None) -> datetime:
    """Naive wall-clock time in the configured zone."""
    tz = pytz.timezone(tz_name or settings.timezone)
    return datetime.now(tz).replace(tzinfo=None)


def local_today(tz_name: str | None = None) -> date:
    return local_now(tz_name).date()
