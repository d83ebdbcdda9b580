from __future__ import annotations

from organizer.core.models.base import AppBaseModel
from organizer.core.models.habit import Habit  # noqa: TCH001
from organizer.core.models.note import Note  # noqa: TCH001


class TagChip(AppBaseModel):
    """A tag name with its color resolved against the current tag list."""

    name: str
    color: str | None
    text_color: str


class DocumentView(AppBaseModel):
    """A document as rendered in a list, with resolved tag chips."""

    document: Note | Habit
    tags: list[TagChip]

    @property
    def id(self) -> int:
        return self.document.id
