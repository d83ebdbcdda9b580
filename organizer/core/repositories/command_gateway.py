from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence

    from organizer.core.models.document import Document, DocumentKind
    from organizer.core.models.folder import Folder
    from organizer.core.models.tag import Tag


class CommandError(Exception):
    """A collaborator command was rejected.

    ``payload`` is whatever the collaborator reported: a message string or a
    structured mapping. Every command failure is recoverable.
    """

    def __init__(self, payload: str | Mapping[str, Any]) -> None:
        self.payload = payload
        super().__init__(self.message)

    @property
    def message(self) -> str:
        if isinstance(self.payload, str):
            return self.payload
        for key in ("message", "error", "detail"):
            value = self.payload.get(key)
            if value:
                return str(value)
        return str(dict(self.payload))


class CommandGateway(ABC):
    """Abstract command interface of the storage collaborator.

    The collaborator owns persistence and business rules. Implementations
    perform I/O and therefore expose async methods; every failure is raised as
    CommandError.
    """

    @abstractmethod
    async def list_documents(
        self, kind: DocumentKind, *, folder_ids: Sequence[int] | None = None
    ) -> Sequence[Document]:  # pragma: no cover - interface only
        """Return documents of a kind, optionally limited to notes filed in ``folder_ids``."""

    @abstractmethod
    async def search_documents(self, kind: DocumentKind, query: str) -> Sequence[Document]:  # pragma: no cover
        """Return documents matching a free-text query, in collaborator ranking order."""

    @abstractmethod
    async def create_document(self, kind: DocumentKind, fields: Mapping[str, Any]) -> int:  # pragma: no cover
        """Persist a new document and return its id."""

    @abstractmethod
    async def update_document(self, kind: DocumentKind, document_id: int, fields: Mapping[str, Any]) -> None:  # pragma: no cover
        """Partially update a document."""

    @abstractmethod
    async def delete_document(self, kind: DocumentKind, document_id: int) -> None:  # pragma: no cover
        """Delete a document by id."""

    @abstractmethod
    async def toggle_flag(self, kind: DocumentKind, document_id: int, flag: str, value: bool) -> None:  # pragma: no cover
        """Set a boolean flag such as ``is_pinned`` or ``is_active``."""

    @abstractmethod
    async def list_tags(self, kind: DocumentKind) -> Sequence[Tag]: ...

    @abstractmethod
    async def create_tag(self, kind: DocumentKind, name: str, color: str | None = None) -> int: ...

    @abstractmethod
    async def update_tag(self, kind: DocumentKind, tag_id: int, name: str, color: str | None = None) -> None:
        """Rename or recolor a tag. Renames cascade into documents' tag names."""

    @abstractmethod
    async def delete_tag(self, kind: DocumentKind, tag_id: int) -> None: ...

    @abstractmethod
    async def list_folders(self) -> Sequence[Folder]: ...

    @abstractmethod
    async def create_folder(self, name: str, parent_id: int | None = None, color: str | None = None) -> int: ...

    @abstractmethod
    async def update_folder(
        self, folder_id: int, name: str, parent_id: int | None = None, color: str | None = None
    ) -> None:
        """Rename, recolor or re-parent a folder. Must reject cyclic parentage."""

    @abstractmethod
    async def delete_folder(self, folder_id: int) -> None:
        """Delete an empty folder; folders holding notes or subfolders are rejected."""
