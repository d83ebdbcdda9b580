from __future__ import annotations

import re
from datetime import date
from enum import IntEnum

from pydantic import Field, field_validator, model_validator

from .base import TimestampedModel
from .note import normalize_tag_names
from .recurrence import DailyRule, RecurrenceRule  # noqa: TCH001

_REMINDER_RE = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")


class Priority(IntEnum):
    """Habit priority, 1 being highest."""

    HIGH = 1
    MEDIUM = 2
    LOW = 3


class Habit(TimestampedModel):
    """Habit domain model."""

    id: int = Field(description="Unique habit identifier")
    name: str = Field(min_length=1, description="Habit name")
    description: str | None = None
    category: str | None = None
    tags: list[str] = Field(default_factory=list, description="Tag names for filtering")

    frequency: RecurrenceRule = Field(default_factory=DailyRule)
    target_value: float | None = Field(default=None, description="Target for quantifiable habits")
    target_unit: str | None = None

    color: str | None = Field(default=None, description="Hex color for UI representation")
    icon: str | None = None
    priority: Priority = Priority.MEDIUM
    is_active: bool = True

    start_date: date = Field(default_factory=date.today)
    end_date: date | None = None
    reminder_time: str | None = Field(default=None, description="Time of day for reminder, HH:MM")

    # Computed by the collaborator, never written from here
    current_streak: int = 0
    longest_streak: int = 0

    @field_validator("tags")
    @classmethod
    def validate_tags(cls, v: list[str]) -> list[str]:
        return normalize_tag_names(v)

    @field_validator("reminder_time")
    @classmethod
    def validate_reminder_time(cls, v: str | None) -> str | None:
        if v is None or v == "":
            return None
        if not _REMINDER_RE.match(v):
            raise ValueError("Reminder time must use the HH:MM format")
        return v

    @model_validator(mode="after")
    def validate_date_range(self) -> Habit:
        if self.end_date is not None and self.end_date < self.start_date:
            raise ValueError("End date cannot be before start date")
        return self

    @property
    def text_fields(self) -> tuple[str, ...]:
        return (self.name, self.description or "")
