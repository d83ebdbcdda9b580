from __future__ import annotations

from datetime import date

from pydantic import Field, field_validator

from organizer.core.models.base import AppBaseModel
from organizer.core.models.habit import Priority
from organizer.core.models.note import normalize_tag_names
from organizer.core.models.recurrence import RecurrenceRule  # noqa: TCH001
from organizer.core.schemas.recurrence_form import RecurrenceForm
from organizer.utils.validation import validate_hex_color, validate_required_name


def _check_color(v: str | None) -> str | None:
    ok, message = validate_hex_color(v)
    if not ok:
        raise ValueError(message)
    return v or None


class HabitCreate(AppBaseModel):
    """Habit fields as collected by the editing surface.

    The schedule arrives either as raw form selections in ``recurrence`` or as
    an already encoded ``frequency`` rule, which wins when both are given.
    Reminder format and date range are checked by the Habit model.
    """

    name: str
    description: str | None = None
    category: str | None = None
    tags: list[str] = Field(default_factory=list)
    recurrence: RecurrenceForm = Field(default_factory=RecurrenceForm)
    frequency: RecurrenceRule | None = None
    target_value: float | None = None
    target_unit: str | None = None
    color: str | None = None
    icon: str | None = None
    priority: Priority = Priority.MEDIUM
    is_active: bool = True
    start_date: date = Field(default_factory=date.today)
    end_date: date | None = None
    reminder_time: str | None = None

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        ok, message = validate_required_name(v, "Habit name")
        if not ok:
            raise ValueError(message)
        return v.strip()

    @field_validator("tags")
    @classmethod
    def validate_tags(cls, v: list[str]) -> list[str]:
        return normalize_tag_names(v)

    @field_validator("color")
    @classmethod
    def validate_color(cls, v: str | None) -> str | None:
        return _check_color(v)


class HabitUpdate(AppBaseModel):
    name: str | None = None
    description: str | None = None
    category: str | None = None
    tags: list[str] | None = None
    recurrence: RecurrenceForm | None = None
    frequency: RecurrenceRule | None = None
    target_value: float | None = None
    target_unit: str | None = None
    color: str | None = None
    icon: str | None = None
    priority: Priority | None = None
    is_active: bool | None = None
    start_date: date | None = None
    end_date: date | None = None
    reminder_time: str | None = None

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str | None) -> str | None:
        if v is None:
            return v
        ok, message = validate_required_name(v, "Habit name")
        if not ok:
            raise ValueError(message)
        return v.strip()

    @field_validator("tags")
    @classmethod
    def validate_tags(cls, v: list[str] | None) -> list[str] | None:
        if v is None:
            return v
        return normalize_tag_names(v)

    @field_validator("color")
    @classmethod
    def validate_color(cls, v: str | None) -> str | None:
        return _check_color(v)
