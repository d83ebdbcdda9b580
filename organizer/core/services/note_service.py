from __future__ import annotations

from typing import TYPE_CHECKING, Any

from organizer.core.models.document import TOGGLE_FLAGS, DocumentKind
from organizer.core.schemas.note import NoteCreate, NoteUpdate
from organizer.utils.logging import get_logger

if TYPE_CHECKING:
    from collections.abc import Mapping

    from organizer.core.models.note import Note
    from organizer.core.repositories.command_gateway import CommandGateway

logger = get_logger(__name__)


class NoteService:
    """Validates note edits and forwards them to the collaborator.

    Input problems raise ValueError (pydantic's ValidationError included);
    collaborator failures propagate as CommandError.
    """

    kind = DocumentKind.NOTE

    def __init__(self, gateway: CommandGateway) -> None:
        self._gateway = gateway

    async def create(self, fields: Mapping[str, Any]) -> int:
        """Create a note ensuring at least one of title or content is set."""
        create_dto = NoteCreate.model_validate(dict(fields))
        return await self._gateway.create_document(self.kind, create_dto.model_dump())

    async def update(self, existing: Note, fields: Mapping[str, Any]) -> None:
        """Apply a partial update.

        Validates that at least one of title/content remains non-empty once
        the changes are merged into ``existing``.
        """
        update_dto = NoteUpdate.model_validate(dict(fields))
        changes = update_dto.model_dump(exclude_unset=True)
        if not changes:
            logger.debug("No changes for note %s", existing.id)
            return

        merged_title = changes.get("title", existing.title)
        merged_content = changes.get("content", existing.content)
        if not ((merged_title or "").strip() or (merged_content or "").strip()):
            raise ValueError("Either title or content must be provided and non-empty")

        await self._gateway.update_document(self.kind, existing.id, changes)

    async def delete(self, note_id: int) -> None:
        await self._gateway.delete_document(self.kind, note_id)

    async def set_flag(self, note_id: int, flag: str, value: bool) -> None:
        if flag not in TOGGLE_FLAGS[self.kind]:
            raise ValueError(f"Notes have no '{flag}' flag")
        await self._gateway.toggle_flag(self.kind, note_id, flag, value)

    async def move_to_folder(self, note_id: int, folder_id: int | None) -> None:
        """File a note under ``folder_id``; None leaves it unfiled."""
        await self._gateway.update_document(self.kind, note_id, {"folder_id": folder_id})
