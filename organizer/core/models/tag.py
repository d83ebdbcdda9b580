from __future__ import annotations

from pydantic import Field

from .base import AppBaseModel


class Tag(AppBaseModel):
    """Tag metadata. Documents reference tags by name, not id."""

    id: int
    name: str = Field(min_length=1)
    color: str | None = None
