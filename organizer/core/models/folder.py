from __future__ import annotations

from pydantic import Field

from .base import TimestampedModel


class Folder(TimestampedModel):
    """Note folder. ``parent_id`` of None places the folder at the root."""

    id: int
    name: str = Field(min_length=1)
    parent_id: int | None = None
    color: str | None = None
