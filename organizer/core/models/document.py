from __future__ import annotations

from enum import Enum
from typing import Union

from .habit import Habit
from .note import Note


class DocumentKind(str, Enum):
    """Kind of document an organizer manages."""

    NOTE = "note"
    HABIT = "habit"


Document = Union[Note, Habit]

DOCUMENT_MODELS: dict[DocumentKind, type[Note] | type[Habit]] = {
    DocumentKind.NOTE: Note,
    DocumentKind.HABIT: Habit,
}

# Boolean flags the collaborator can toggle per kind
TOGGLE_FLAGS: dict[DocumentKind, frozenset[str]] = {
    DocumentKind.NOTE: frozenset({"is_pinned", "is_archived"}),
    DocumentKind.HABIT: frozenset({"is_active"}),
}
