from __future__ import annotations

from pydantic import Field

from organizer.core.models.base import AppBaseModel


class RecurrenceForm(AppBaseModel):
    """Accumulated schedule selections from the habit editing surface.

    Only the fields matching ``frequency_type`` are read when encoding; the
    others keep whatever the user picked before switching type.
    """

    frequency_type: str = "daily"
    weekly_days: list[int] = Field(default_factory=list)
    monthly_days: list[int] = Field(default_factory=list)
    interval_days: int | None = None
    custom_pattern: str = ""
