from __future__ import annotations

import asyncio
from datetime import date, datetime
from enum import Enum
from typing import TYPE_CHECKING, Any

from pydantic import ValidationError

from organizer.core.models.base import AppBaseModel, utcnow
from organizer.core.models.document import DOCUMENT_MODELS, TOGGLE_FLAGS, DocumentKind
from organizer.core.models.folder import Folder
from organizer.core.models.tag import Tag
from organizer.core.repositories.command_gateway import CommandError, CommandGateway
from organizer.core.services.folder_hierarchy_service import would_create_cycle
from organizer.core.services.recurrence_service import (
    coerce_recurrence,
    deserialize_recurrence,
    serialize_recurrence,
)
from organizer.utils.logging import get_logger

logger = get_logger(__name__)

if TYPE_CHECKING:
    from collections.abc import Callable, Mapping, Sequence

    from supabase import Client

    from organizer.core.models.document import Document


class SupabaseCommandGateway(CommandGateway):
    """Supabase implementation of the CommandGateway.

    Uses Supabase's PostgREST client. Assumes `notes`, `habits`, `note_tags`,
    `habit_tags` and `note_folders` tables whose columns match the model
    fields, with document tags kept as a text array column and habit
    schedules split into `frequency_type` / `frequency_data`.
    """

    DOCUMENT_TABLES = {DocumentKind.NOTE: "notes", DocumentKind.HABIT: "habits"}
    TAG_TABLES = {DocumentKind.NOTE: "note_tags", DocumentKind.HABIT: "habit_tags"}
    FOLDER_TABLE = "note_folders"

    # Search is lexical; the collaborator decides ranking
    SEARCH_COLUMNS = {DocumentKind.NOTE: ("title", "content"), DocumentKind.HABIT: ("name", "description")}

    def __init__(self, client: Client) -> None:
        self._client: Client = client

    # Documents

    async def list_documents(
        self, kind: DocumentKind, *, folder_ids: Sequence[int] | None = None
    ) -> Sequence[Document]:
        def _query():
            q = self._client.table(self.DOCUMENT_TABLES[kind]).select("*")
            if kind is DocumentKind.NOTE and folder_ids is not None:
                q = q.in_("folder_id", list(folder_ids))
            return q.order("id").execute()

        resp = await self._run(_query)
        return [self._row_to_document(kind, row) for row in resp.data or []]

    async def search_documents(self, kind: DocumentKind, query: str) -> Sequence[Document]:
        # PostgREST `or` filters are comma separated; strip characters that would break the expression
        term = "".join(ch for ch in query if ch not in ',()"')
        clauses = ",".join(f"{column}.ilike.*{term}*" for column in self.SEARCH_COLUMNS[kind])

        resp = await self._run(
            lambda: self._client.table(self.DOCUMENT_TABLES[kind])
            .select("*")
            .or_(clauses)
            .execute()
        )
        return [self._row_to_document(kind, row) for row in resp.data or []]

    async def create_document(self, kind: DocumentKind, fields: Mapping[str, Any]) -> int:
        now = utcnow().isoformat()
        row = {**self._fields_to_row(fields), "created_at": now, "updated_at": now}
        row.pop("id", None)
        resp = await self._run(
            lambda: self._client.table(self.DOCUMENT_TABLES[kind])
            .insert(row)
            .execute()
        )
        created = self._first(resp.data)
        if "id" not in created:
            raise CommandError(f"Failed to create {kind.value}: no row returned")
        await self._ensure_tags(kind, row.get("tags") or [])
        logger.info("Created %s with ID: %s", kind.value, created["id"])
        return int(created["id"])

    async def update_document(self, kind: DocumentKind, document_id: int, fields: Mapping[str, Any]) -> None:
        # Ensure we only send fields that belong to the row schema and avoid id mutation
        sanitized = {
            k: v for k, v in self._fields_to_row(fields).items()
            if k not in {"id", "created_at", "updated_at", "current_streak", "longest_streak"}
        }
        sanitized["updated_at"] = utcnow().isoformat()

        resp = await self._run(
            lambda: self._client.table(self.DOCUMENT_TABLES[kind])
            .update(sanitized)
            .eq("id", document_id)
            .execute()
        )
        if not resp.data:
            raise CommandError(f"{kind.value.capitalize()} {document_id} not found")
        await self._ensure_tags(kind, sanitized.get("tags") or [])
        logger.info("Updated %s with ID: %s", kind.value, document_id)

    async def delete_document(self, kind: DocumentKind, document_id: int) -> None:
        await self._run(
            lambda: self._client.table(self.DOCUMENT_TABLES[kind])
            .delete()
            .eq("id", document_id)
            .execute()
        )
        logger.info("Deleted %s with ID: %s", kind.value, document_id)

    async def toggle_flag(self, kind: DocumentKind, document_id: int, flag: str, value: bool) -> None:
        if flag not in TOGGLE_FLAGS[kind]:
            raise CommandError(f"Flag '{flag}' cannot be toggled on a {kind.value}")
        payload = {flag: bool(value), "updated_at": utcnow().isoformat()}
        await self._run(
            lambda: self._client.table(self.DOCUMENT_TABLES[kind])
            .update(payload)
            .eq("id", document_id)
            .execute()
        )
        logger.info("Toggled %s to %s for %s with ID: %s", flag, value, kind.value, document_id)

    # Tags

    async def list_tags(self, kind: DocumentKind) -> Sequence[Tag]:
        resp = await self._run(
            lambda: self._client.table(self.TAG_TABLES[kind]).select("id, name, color").order("id").execute()
        )
        return [self._validate_row(Tag, row) for row in resp.data or []]

    async def create_tag(self, kind: DocumentKind, name: str, color: str | None = None) -> int:
        existing = await self._find_tag_id(kind, name)
        if existing is not None:
            logger.info("Using existing %s tag '%s' with ID: %s", kind.value, name, existing)
            return existing
        resp = await self._run(
            lambda: self._client.table(self.TAG_TABLES[kind])
            .insert({"name": name, "color": color})
            .execute()
        )
        tag_id = int(self._first(resp.data)["id"])
        logger.info("Created %s tag '%s' with ID: %s", kind.value, name, tag_id)
        return tag_id

    async def update_tag(self, kind: DocumentKind, tag_id: int, name: str, color: str | None = None) -> None:
        clash = await self._find_tag_id(kind, name)
        if clash is not None and clash != tag_id:
            raise CommandError(f"Tag name '{name}' already exists")

        resp = await self._run(
            lambda: self._client.table(self.TAG_TABLES[kind]).select("name").eq("id", tag_id).limit(1).execute()
        )
        current = self._first(resp.data)
        if not current:
            raise CommandError(f"Tag {tag_id} not found")
        old_name = current["name"]

        await self._run(
            lambda: self._client.table(self.TAG_TABLES[kind])
            .update({"name": name, "color": color})
            .eq("id", tag_id)
            .execute()
        )
        if old_name != name:
            await self._rename_tag_in_documents(kind, old_name, name)
        logger.info("Updated %s tag with ID: %s", kind.value, tag_id)

    async def delete_tag(self, kind: DocumentKind, tag_id: int) -> None:
        resp = await self._run(
            lambda: self._client.table(self.TAG_TABLES[kind]).select("name").eq("id", tag_id).limit(1).execute()
        )
        current = self._first(resp.data)
        if not current:
            raise CommandError(f"Tag {tag_id} not found")

        usage = await self._documents_with_tag(kind, current["name"])
        if usage:
            raise CommandError(f"Cannot delete tag: it is used by {len(usage)} {kind.value}s")

        await self._run(
            lambda: self._client.table(self.TAG_TABLES[kind]).delete().eq("id", tag_id).execute()
        )
        logger.info("Deleted %s tag with ID: %s", kind.value, tag_id)

    # Folders

    async def list_folders(self) -> Sequence[Folder]:
        resp = await self._run(lambda: self._client.table(self.FOLDER_TABLE).select("*").order("id").execute())
        return [self._validate_row(Folder, row) for row in resp.data or []]

    async def create_folder(self, name: str, parent_id: int | None = None, color: str | None = None) -> int:
        now = utcnow().isoformat()
        row = {"name": name, "parent_id": parent_id, "color": color, "created_at": now, "updated_at": now}
        resp = await self._run(lambda: self._client.table(self.FOLDER_TABLE).insert(row).execute())
        folder_id = int(self._first(resp.data)["id"])
        logger.info("Created folder '%s' with ID: %s", name, folder_id)
        return folder_id

    async def update_folder(
        self, folder_id: int, name: str, parent_id: int | None = None, color: str | None = None
    ) -> None:
        folders = await self.list_folders()
        if would_create_cycle(folder_id, parent_id, folders):
            raise CommandError("Cannot move a folder into itself or one of its subfolders")
        payload = {"name": name, "parent_id": parent_id, "color": color, "updated_at": utcnow().isoformat()}
        await self._run(
            lambda: self._client.table(self.FOLDER_TABLE).update(payload).eq("id", folder_id).execute()
        )
        logger.info("Updated folder with ID: %s", folder_id)

    async def delete_folder(self, folder_id: int) -> None:
        notes = await self._run(
            lambda: self._client.table(self.DOCUMENT_TABLES[DocumentKind.NOTE])
            .select("id")
            .eq("folder_id", folder_id)
            .execute()
        )
        if notes.data:
            raise CommandError(f"Cannot delete folder: it contains {len(notes.data)} notes")

        subfolders = await self._run(
            lambda: self._client.table(self.FOLDER_TABLE).select("id").eq("parent_id", folder_id).execute()
        )
        if subfolders.data:
            raise CommandError(f"Cannot delete folder: it contains {len(subfolders.data)} subfolders")

        await self._run(lambda: self._client.table(self.FOLDER_TABLE).delete().eq("id", folder_id).execute())
        logger.info("Deleted folder with ID: %s", folder_id)

    # Helpers

    async def _find_tag_id(self, kind: DocumentKind, name: str) -> int | None:
        resp = await self._run(
            lambda: self._client.table(self.TAG_TABLES[kind]).select("id").eq("name", name).limit(1).execute()
        )
        row = self._first(resp.data)
        return int(row["id"]) if row else None

    async def _ensure_tags(self, kind: DocumentKind, names: Sequence[str]) -> None:
        for name in names:
            if await self._find_tag_id(kind, name) is None:
                await self._run(
                    lambda n=name: self._client.table(self.TAG_TABLES[kind]).insert({"name": n}).execute()
                )

    async def _documents_with_tag(self, kind: DocumentKind, name: str) -> list[dict[str, Any]]:
        resp = await self._run(
            lambda: self._client.table(self.DOCUMENT_TABLES[kind])
            .select("id, tags")
            .contains("tags", [name])
            .execute()
        )
        return list(resp.data or [])

    async def _rename_tag_in_documents(self, kind: DocumentKind, old_name: str, new_name: str) -> None:
        for row in await self._documents_with_tag(kind, old_name):
            renamed = [new_name if t == old_name else t for t in row.get("tags") or []]
            await self._run(
                lambda r=row, tags=renamed: self._client.table(self.DOCUMENT_TABLES[kind])
                .update({"tags": tags})
                .eq("id", r["id"])
                .execute()
            )

    @staticmethod
    async def _run(func: Callable[[], Any]) -> Any:
        try:
            return await asyncio.to_thread(func)
        except CommandError:
            raise
        except Exception as err:  # pragma: no cover - network/db errors
            logger.error("Supabase command failed: %s", err)
            raise CommandError(str(err)) from err

    @staticmethod
    def _first(data: Any) -> dict[str, Any]:
        if isinstance(data, list) and data:
            return data[0]
        if isinstance(data, dict):
            return data
        return {}

    @staticmethod
    def _validate_row(model: type[AppBaseModel], row: dict[str, Any]) -> Any:
        # Drop columns the model does not know about (e.g. last_completed)
        known = {k: v for k, v in row.items() if k in model.model_fields}
        try:
            return model.model_validate(known)
        except ValidationError as err:
            raise CommandError({"message": f"Malformed {model.__name__} row", "errors": err.errors()}) from err

    @classmethod
    def _row_to_document(cls, kind: DocumentKind, row: dict[str, Any]) -> Document:
        normalized = dict(row)
        if normalized.get("tags") is None:
            normalized["tags"] = []

        if kind is DocumentKind.HABIT:
            frequency_type = normalized.pop("frequency_type", None) or "daily"
            frequency_data = normalized.pop("frequency_data", None) or "{}"
            try:
                normalized["frequency"] = deserialize_recurrence(frequency_type, frequency_data)
            except ValueError as err:
                raise CommandError(f"Failed to deserialize frequency: {err}") from err

        return cls._validate_row(DOCUMENT_MODELS[kind], normalized)

    @staticmethod
    def _fields_to_row(fields: Mapping[str, Any]) -> dict[str, Any]:
        data = dict(fields)

        if "frequency" in data:
            rule = coerce_recurrence(data.pop("frequency"))
            if rule is None:
                raise CommandError("Unrecognized frequency payload")
            data["frequency_type"], data["frequency_data"] = serialize_recurrence(rule)

        # PostgREST expects JSON-serializable values
        for key, value in list(data.items()):
            if isinstance(value, (datetime, date)):
                data[key] = value.isoformat()
            elif isinstance(value, Enum):
                data[key] = value.value
        if "tags" in data and data["tags"] is None:
            data["tags"] = []
        return data
