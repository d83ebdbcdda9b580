from __future__ import annotations

import itertools
from typing import TYPE_CHECKING, Any

from pydantic import ValidationError

from organizer.core.models.base import utcnow
from organizer.core.models.document import DOCUMENT_MODELS, TOGGLE_FLAGS, DocumentKind
from organizer.core.models.folder import Folder
from organizer.core.models.tag import Tag
from organizer.core.repositories.command_gateway import CommandError, CommandGateway
from organizer.core.services.folder_hierarchy_service import would_create_cycle
from organizer.core.services.ordering_service import filter_documents
from organizer.utils.logging import get_logger

logger = get_logger(__name__)

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator, Mapping, Sequence
    from datetime import datetime

    from organizer.core.models.document import Document


class InMemoryCommandGateway(CommandGateway):
    """Process-local collaborator holding everything in dictionaries.

    Applies the same business rules as the Supabase implementation, so the
    organizer behaves identically against either. ``clock`` controls the
    timestamps written on create, update and toggle.
    """

    def __init__(self, *, clock: Callable[[], datetime] | None = None) -> None:
        self._clock = clock or utcnow
        self._documents: dict[DocumentKind, dict[int, Document]] = {kind: {} for kind in DocumentKind}
        self._tags: dict[DocumentKind, dict[int, Tag]] = {kind: {} for kind in DocumentKind}
        self._folders: dict[int, Folder] = {}
        self._ids: dict[str, Iterator[int]] = {}

    def _next_id(self, table: str) -> int:
        return next(self._ids.setdefault(table, itertools.count(1)))

    # Documents

    async def list_documents(
        self, kind: DocumentKind, *, folder_ids: Sequence[int] | None = None
    ) -> Sequence[Document]:
        documents = list(self._documents[kind].values())
        if kind is DocumentKind.NOTE and folder_ids is not None:
            wanted = set(folder_ids)
            documents = [d for d in documents if d.folder_id in wanted]
        return documents

    async def search_documents(self, kind: DocumentKind, query: str) -> Sequence[Document]:
        return filter_documents(self._documents[kind].values(), query)

    async def create_document(self, kind: DocumentKind, fields: Mapping[str, Any]) -> int:
        now = self._clock()
        document_id = self._next_id(kind.value)
        document = self._validate(kind, {**fields, "id": document_id, "created_at": now, "updated_at": now})
        self._check_folder(document)
        self._ensure_tags(kind, document.tags)
        self._documents[kind][document_id] = document
        logger.info("Created %s with ID: %s", kind.value, document_id)
        return document_id

    async def update_document(self, kind: DocumentKind, document_id: int, fields: Mapping[str, Any]) -> None:
        existing = self._get(kind, document_id)
        data = existing.model_dump()
        data.update({k: v for k, v in fields.items() if k not in {"id", "created_at", "updated_at"}})
        data["updated_at"] = self._clock()
        document = self._validate(kind, data)
        self._check_folder(document)
        self._ensure_tags(kind, document.tags)
        self._documents[kind][document_id] = document
        logger.info("Updated %s with ID: %s", kind.value, document_id)

    async def delete_document(self, kind: DocumentKind, document_id: int) -> None:
        self._get(kind, document_id)
        del self._documents[kind][document_id]
        logger.info("Deleted %s with ID: %s", kind.value, document_id)

    async def toggle_flag(self, kind: DocumentKind, document_id: int, flag: str, value: bool) -> None:
        if flag not in TOGGLE_FLAGS[kind]:
            raise CommandError(f"Flag '{flag}' cannot be toggled on a {kind.value}")
        existing = self._get(kind, document_id)
        self._documents[kind][document_id] = existing.model_copy(
            update={flag: bool(value), "updated_at": self._clock()}
        )
        logger.info("Toggled %s to %s for %s with ID: %s", flag, value, kind.value, document_id)

    # Tags

    async def list_tags(self, kind: DocumentKind) -> Sequence[Tag]:
        return list(self._tags[kind].values())

    async def create_tag(self, kind: DocumentKind, name: str, color: str | None = None) -> int:
        existing = self._find_tag(kind, name)
        if existing is not None:
            logger.info("Using existing %s tag '%s' with ID: %s", kind.value, name, existing.id)
            return existing.id
        tag = self._new_tag(kind, name, color)
        logger.info("Created %s tag '%s' with ID: %s", kind.value, name, tag.id)
        return tag.id

    async def update_tag(self, kind: DocumentKind, tag_id: int, name: str, color: str | None = None) -> None:
        tag = self._tags[kind].get(tag_id)
        if tag is None:
            raise CommandError(f"Tag {tag_id} not found")
        clash = self._find_tag(kind, name)
        if clash is not None and clash.id != tag_id:
            raise CommandError(f"Tag name '{name}' already exists")
        updated = self._validate_tag({"id": tag_id, "name": name, "color": color})

        if tag.name != name:
            for document_id, document in list(self._documents[kind].items()):
                if tag.name in document.tags:
                    renamed = [name if t == tag.name else t for t in document.tags]
                    self._documents[kind][document_id] = document.model_copy(update={"tags": renamed})
        self._tags[kind][tag_id] = updated
        logger.info("Updated %s tag with ID: %s", kind.value, tag_id)

    async def delete_tag(self, kind: DocumentKind, tag_id: int) -> None:
        tag = self._tags[kind].get(tag_id)
        if tag is None:
            raise CommandError(f"Tag {tag_id} not found")
        usage = sum(1 for d in self._documents[kind].values() if tag.name in d.tags)
        if usage:
            raise CommandError(f"Cannot delete tag: it is used by {usage} {kind.value}s")
        del self._tags[kind][tag_id]
        logger.info("Deleted %s tag with ID: %s", kind.value, tag_id)

    # Folders

    async def list_folders(self) -> Sequence[Folder]:
        return list(self._folders.values())

    async def create_folder(self, name: str, parent_id: int | None = None, color: str | None = None) -> int:
        if parent_id is not None and parent_id not in self._folders:
            raise CommandError(f"Parent folder {parent_id} not found")
        now = self._clock()
        folder_id = self._next_id("folders")
        self._folders[folder_id] = self._validate_folder(
            {"id": folder_id, "name": name, "parent_id": parent_id, "color": color, "created_at": now, "updated_at": now}
        )
        logger.info("Created folder '%s' with ID: %s", name, folder_id)
        return folder_id

    async def update_folder(
        self, folder_id: int, name: str, parent_id: int | None = None, color: str | None = None
    ) -> None:
        existing = self._folders.get(folder_id)
        if existing is None:
            raise CommandError(f"Folder {folder_id} not found")
        if parent_id is not None and parent_id not in self._folders:
            raise CommandError(f"Parent folder {parent_id} not found")
        if would_create_cycle(folder_id, parent_id, list(self._folders.values())):
            raise CommandError("Cannot move a folder into itself or one of its subfolders")
        self._folders[folder_id] = self._validate_folder(
            {
                "id": folder_id,
                "name": name,
                "parent_id": parent_id,
                "color": color,
                "created_at": existing.created_at,
                "updated_at": self._clock(),
            }
        )
        logger.info("Updated folder with ID: %s", folder_id)

    async def delete_folder(self, folder_id: int) -> None:
        if folder_id not in self._folders:
            raise CommandError(f"Folder {folder_id} not found")
        note_count = sum(1 for n in self._documents[DocumentKind.NOTE].values() if n.folder_id == folder_id)
        if note_count:
            raise CommandError(f"Cannot delete folder: it contains {note_count} notes")
        subfolder_count = sum(1 for f in self._folders.values() if f.parent_id == folder_id)
        if subfolder_count:
            raise CommandError(f"Cannot delete folder: it contains {subfolder_count} subfolders")
        del self._folders[folder_id]
        logger.info("Deleted folder with ID: %s", folder_id)

    # Helpers

    def _get(self, kind: DocumentKind, document_id: int) -> Document:
        document = self._documents[kind].get(document_id)
        if document is None:
            raise CommandError(f"{kind.value.capitalize()} {document_id} not found")
        return document

    @staticmethod
    def _validate(kind: DocumentKind, data: dict[str, Any]) -> Document:
        try:
            return DOCUMENT_MODELS[kind].model_validate(data)
        except ValidationError as err:
            raise CommandError({"message": f"Invalid {kind.value}", "errors": err.errors()}) from err

    @staticmethod
    def _validate_folder(data: dict[str, Any]) -> Folder:
        try:
            return Folder.model_validate(data)
        except ValidationError as err:
            raise CommandError({"message": "Invalid folder", "errors": err.errors()}) from err

    @staticmethod
    def _validate_tag(data: dict[str, Any]) -> Tag:
        try:
            return Tag.model_validate(data)
        except ValidationError as err:
            raise CommandError({"message": "Invalid tag", "errors": err.errors()}) from err

    def _check_folder(self, document: Document) -> None:
        folder_id = getattr(document, "folder_id", None)
        if folder_id is not None and folder_id not in self._folders:
            raise CommandError(f"Folder {folder_id} not found")

    def _find_tag(self, kind: DocumentKind, name: str) -> Tag | None:
        for tag in self._tags[kind].values():
            if tag.name == name:
                return tag
        return None

    def _new_tag(self, kind: DocumentKind, name: str, color: str | None) -> Tag:
        tag = self._validate_tag({"id": self._next_id(f"{kind.value}_tags"), "name": name, "color": color})
        self._tags[kind][tag.id] = tag
        return tag

    def _ensure_tags(self, kind: DocumentKind, names: Sequence[str]) -> None:
        for name in names:
            if self._find_tag(kind, name) is None:
                self._new_tag(kind, name, None)
