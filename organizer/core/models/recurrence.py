from __future__ import annotations

from typing import Annotated, Literal, Union

from pydantic import Field, field_validator

from .base import AppBaseModel

WEEKDAY_IDS = range(1, 8)  # Monday=1 .. Sunday=7
MONTH_DAY_IDS = range(1, 32)


def _normalize_days(days: list[int], allowed: range) -> list[int]:
    try:
        normalized = sorted({int(d) for d in days})
    except TypeError as err:
        raise ValueError(f"Days must be whole numbers: {err}") from err
    for day in normalized:
        if day not in allowed:
            raise ValueError(f"Day {day} is outside {allowed.start}..{allowed.stop - 1}")
    return normalized


class DailyRule(AppBaseModel):
    """Repeats every day."""

    kind: Literal["daily"] = "daily"


class WeeklyRule(AppBaseModel):
    """Repeats on specific days of the week (1-7, Monday=1)."""

    kind: Literal["weekly"] = "weekly"
    days: list[int] = Field(default_factory=list)

    @field_validator("days")
    @classmethod
    def validate_days(cls, v: list[int]) -> list[int]:
        return _normalize_days(v, WEEKDAY_IDS)


class MonthlyRule(AppBaseModel):
    """Repeats on specific days of the month (1-31)."""

    kind: Literal["monthly"] = "monthly"
    days: list[int] = Field(default_factory=list)

    @field_validator("days")
    @classmethod
    def validate_days(cls, v: list[int]) -> list[int]:
        return _normalize_days(v, MONTH_DAY_IDS)


class IntervalRule(AppBaseModel):
    """Repeats every N days."""

    kind: Literal["interval"] = "interval"
    every_n_days: int = Field(default=1, ge=1)


class CustomRule(AppBaseModel):
    """Free-form pattern, interpreted by the user only."""

    kind: Literal["custom"] = "custom"
    pattern: str = ""


RecurrenceRule = Annotated[
    Union[DailyRule, WeeklyRule, MonthlyRule, IntervalRule, CustomRule],
    Field(discriminator="kind"),
]
