from __future__ import annotations

from datetime import date, datetime, timezone
from zoneinfo import ZoneInfo

from academy.config import settings


APP_TIMEZONE = settings.app_timezone or "Asia/Riyadh"
APP_ZONEINFO = ZoneInfo(APP_TIMEZONE)


class TimeProvider:
    def now(self) -> datetime:
        return datetime.now(APP_ZONEINFO)

    def today(self) -> date:
        return self.now().date()

    def epoch_millis(self) -> int:
        return int(self.now().timestamp() * 1000)


def utcnow() -> datetime:
    # Naive UTC, the storage convention for created_at/updated_at columns.
    return datetime.now(timezone.utc).replace(tzinfo=None)


default_time_provider = TimeProvider()
