"""Pydantic models for weekly availability rules and the slot grid."""

from __future__ import annotations

import secrets
from datetime import time
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import BaseModel, Field, field_serializer, field_validator, model_validator


def check_timezone(value: Optional[str]) -> Optional[str]:
    if value is None:
        return value
    try:
        ZoneInfo(value)
    except (ZoneInfoNotFoundError, ValueError) as exc:
        raise ValueError(f"Unknown timezone: {value!r}") from exc
    return value


class RuleInput(BaseModel):
    """A rule as submitted from the host's settings page."""

    day_of_week: int = Field(ge=0, le=6)  # 0 = Sunday
    start_time: time
    end_time: time
    timezone: Optional[str] = None  # falls back to the host's timezone

    @field_validator("timezone")
    @classmethod
    def known_timezone(cls, value):
        return check_timezone(value)

    @model_validator(mode="after")
    def start_before_end(self) -> "RuleInput":
        if self.start_time >= self.end_time:
            raise ValueError("start_time must be before end_time")
        return self


class AvailabilityRule(BaseModel):
    """A recurring weekly window during which a host can be booked."""

    id: str = Field(default_factory=lambda: secrets.token_hex(8))
    host_id: str = ""
    day_of_week: int = Field(ge=0, le=6)
    start_time: time
    end_time: time
    timezone: str
    is_active: bool = True

    @field_validator("timezone")
    @classmethod
    def known_timezone(cls, value):
        return check_timezone(value)

    @model_validator(mode="after")
    def start_before_end(self) -> "AvailabilityRule":
        if self.start_time >= self.end_time:
            raise ValueError("start_time must be before end_time")
        return self

    @field_serializer("start_time", "end_time")
    def serialize_hhmm(self, value: time) -> str:
        return value.strftime("%H:%M")


class RuleUpdate(BaseModel):
    """Partial update for a single rule."""

    day_of_week: Optional[int] = Field(default=None, ge=0, le=6)
    start_time: Optional[time] = None
    end_time: Optional[time] = None
    timezone: Optional[str] = None
    is_active: Optional[bool] = None

    @field_validator("timezone")
    @classmethod
    def known_timezone(cls, value):
        return check_timezone(value)


class DayAvailability(BaseModel):
    """Bookable start times on one local date."""

    date: str  # YYYY-MM-DD
    times: list[str]  # HH:MM, ascending
