from datetime import date
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import BaseModel, Field, field_validator


class RunStandupRequest(BaseModel):
    standup_date: date | None = Field(default=None, description="Defaults to today in the configured timezone")
    timezone: str | None = Field(default=None, description="IANA timezone, e.g. Europe/Berlin")

    @field_validator("timezone")
    @classmethod
    def _known_timezone(cls, v: str | None) -> str | None:
        if v is None:
            return v
        try:
            ZoneInfo(v)
        except (ZoneInfoNotFoundError, ValueError) as exc:
            raise ValueError(f"unknown timezone {v!r}") from exc
        return v


class RunStandupResponse(BaseModel):
    status: str
    standup_date: date
    standup_id: str | None = None
    agent_count: int = 0
    result: str | None = None
    escalated: bool = False
    message: str | None = None
    duration_ms: int = 0
