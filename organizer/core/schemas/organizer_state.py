from __future__ import annotations

from enum import Enum

from pydantic import Field

from organizer.core.models.base import AppBaseModel
from organizer.core.models.document import DocumentKind  # noqa: TCH001
from organizer.core.models.folder import Folder  # noqa: TCH001
from organizer.core.models.habit import Habit  # noqa: TCH001
from organizer.core.models.note import Note  # noqa: TCH001
from organizer.core.models.tag import Tag  # noqa: TCH001
from organizer.core.schemas.document_view import DocumentView  # noqa: TCH001
from organizer.core.schemas.folder_tree import FolderTreeEntry  # noqa: TCH001


class SearchPhase(str, Enum):
    IDLE = "idle"
    DEBOUNCING = "debouncing"
    QUERYING = "querying"


class MutationKind(str, Enum):
    """What a mutation did; drives post-mutation reconciliation."""

    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"
    TOGGLE = "toggle"
    MOVE = "move"
    TAG = "tag"


class OrganizerState(AppBaseModel):
    """Transient, reloadable projection of one document kind plus UI-only state.

    Owned by a single organizer and handed by reference to the components that
    read or update it. Nothing here is persisted.
    """

    kind: DocumentKind

    # Last full collection loaded for the current folder scope
    documents: list[Note | Habit] = Field(default_factory=list)
    # What the list renders: ordered, filtered, tag colors resolved
    visible: list[DocumentView] = Field(default_factory=list)
    selected: Note | Habit | None = None

    tags: list[Tag] = Field(default_factory=list)
    folders: list[Folder] = Field(default_factory=list)
    folder_tree: list[FolderTreeEntry] = Field(default_factory=list)
    selected_folder_id: int | None = None
    include_subfolders: bool = False
    show_archived: bool = False

    search_query: str = ""
    search_phase: SearchPhase = SearchPhase.IDLE

    is_loading: bool = False
    status_message: str | None = None
    sidebar_visible: bool = True

    @property
    def is_searching(self) -> bool:
        return self.search_phase is SearchPhase.QUERYING

    @property
    def selected_id(self) -> int | None:
        return self.selected.id if self.selected is not None else None
