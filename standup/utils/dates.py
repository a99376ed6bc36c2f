from __future__ import annotations

from datetime import date, datetime, timezone
from zoneinfo import ZoneInfo


def today_in_timezone(tz: str, now: datetime | None = None) -> date:
    # "today" is resolved once by the trigger, never inside the engine
    current = now or datetime.now(timezone.utc)
    return current.astimezone(ZoneInfo(tz)).date()


def standup_title(prefix: str, standup_date: date) -> str:
    return f"{prefix} - {standup_date:%A}, {standup_date:%B} {standup_date.day}, {standup_date.year}"
