from __future__ import annotations

from typing import TYPE_CHECKING, Any, TypeVar

from pydantic import ValidationError

from organizer.config import settings as default_settings
from organizer.core.models.document import TOGGLE_FLAGS, DocumentKind
from organizer.core.repositories.command_gateway import CommandError
from organizer.core.schemas.organizer_state import MutationKind, OrganizerState
from organizer.core.services.folder_hierarchy_service import would_create_cycle
from organizer.core.services.habit_service import HabitService
from organizer.core.services.list_sync_service import ListSynchronizer
from organizer.core.services.note_service import NoteService
from organizer.core.services.search_service import SearchCoordinator
from organizer.utils.logging import get_logger
from organizer.utils.validation import validate_hex_color, validate_required_name

if TYPE_CHECKING:
    from collections.abc import Awaitable, Mapping

    from organizer.config import Settings
    from organizer.core.models.document import Document
    from organizer.core.repositories.command_gateway import CommandGateway

logger = get_logger(__name__)

T = TypeVar("T")


def _describe_invalid(err: ValueError) -> str:
    if isinstance(err, ValidationError):
        messages = []
        for error in err.errors():
            message = error.get("msg", "")
            messages.append(message.removeprefix("Value error, "))
        return "; ".join(messages)
    return str(err)


class OrganizerService:
    """Owns the state of one organizer (notes or habits) and its user actions.

    Every action returns normally: invalid input and collaborator failures end
    up in ``state.status_message``, and collaborator failures are also logged.
    """

    def __init__(
        self,
        gateway: CommandGateway,
        kind: DocumentKind,
        settings: Settings | None = None,
        *,
        search_delay: float | None = None,
    ) -> None:
        self._settings = settings or default_settings
        self._gateway = gateway
        self.state = OrganizerState(kind=kind)
        self.documents = NoteService(gateway) if kind is DocumentKind.NOTE else HabitService(gateway)
        self.sync = ListSynchronizer(gateway, self.state, root_label=self._settings.default_folder_label)
        self.search_coordinator = SearchCoordinator(
            self.state,
            gateway,
            on_cleared=self.sync.refresh_visible,
            delay=self._settings.search_debounce_seconds if search_delay is None else search_delay,
        )

    @property
    def kind(self) -> DocumentKind:
        return self.state.kind

    # Loading

    async def load(self) -> bool:
        """Initial load: folder tree (notes only), tags and documents."""
        self.state.status_message = None
        if self.kind is DocumentKind.NOTE:
            await self._reload_folders()
        loaded = await self.sync.reload()
        if loaded:
            self.sync.reconcile_selection()
        return loaded

    # Documents

    async def create_document(self, fields: Mapping[str, Any]) -> int | None:
        """Create a document and select it once the list has been reloaded."""
        self.state.status_message = None
        fields = dict(fields)
        if self.kind is DocumentKind.NOTE and "folder_id" not in fields:
            fields["folder_id"] = self.state.selected_folder_id
        ok, document_id = await self._attempt(f"create {self.kind.value}", self.documents.create(fields))
        if not ok:
            return None
        await self.sync.after_mutation(MutationKind.CREATE, document_id)
        return document_id

    async def update_document(self, document_id: int, fields: Mapping[str, Any]) -> bool:
        self.state.status_message = None
        existing = self._find(document_id)
        if existing is None:
            self.state.status_message = f"{self.kind.value.capitalize()} {document_id} is not loaded"
            return False
        ok, _ = await self._attempt(f"update {self.kind.value}", self.documents.update(existing, fields))
        if ok:
            await self.sync.after_mutation(MutationKind.UPDATE, document_id)
        return ok

    async def delete_document(self, document_id: int) -> bool:
        self.state.status_message = None
        ok, _ = await self._attempt(f"delete {self.kind.value}", self.documents.delete(document_id))
        if ok:
            await self.sync.after_mutation(MutationKind.DELETE, document_id)
        return ok

    async def toggle_flag(self, document_id: int, flag: str) -> bool:
        """Flip a boolean flag (``is_pinned``/``is_archived`` or ``is_active``)."""
        self.state.status_message = None
        if flag not in TOGGLE_FLAGS[self.kind]:
            self.state.status_message = f"Cannot toggle '{flag}' on a {self.kind.value}"
            return False
        existing = self._find(document_id)
        if existing is None:
            self.state.status_message = f"{self.kind.value.capitalize()} {document_id} is not loaded"
            return False
        value = not getattr(existing, flag)
        ok, _ = await self._attempt(f"update {flag}", self.documents.set_flag(document_id, flag, value))
        if ok:
            await self.sync.after_mutation(MutationKind.TOGGLE, document_id)
        return ok

    async def move_to_folder(self, document_id: int, folder_id: int | None) -> bool:
        self.state.status_message = None
        if not self._require_notes("Moving to a folder"):
            return False
        ok, _ = await self._attempt("move note", self.documents.move_to_folder(document_id, folder_id))
        if ok:
            await self.sync.after_mutation(MutationKind.MOVE, document_id)
        return ok

    # Selection and view state

    def select(self, document_id: int | None) -> Document | None:
        self.state.selected = self._find(document_id) if document_id is not None else None
        return self.state.selected

    def clear_selection(self) -> None:
        self.state.selected = None

    async def select_folder(self, folder_id: int | None, include_subfolders: bool = False) -> bool:
        """Scope the list to a folder; None shows every note."""
        self.state.status_message = None
        if not self._require_notes("Folder scoping"):
            return False
        if folder_id is not None and all(f.id != folder_id for f in self.state.folders):
            self.state.status_message = f"Folder {folder_id} does not exist"
            return False
        self.state.selected_folder_id = folder_id
        self.state.include_subfolders = include_subfolders and folder_id is not None
        loaded = await self.sync.reload()
        if loaded:
            self.sync.reconcile_selection()
        return loaded

    def set_show_archived(self, show: bool) -> None:
        self.state.show_archived = show
        self.sync.refresh_visible()

    def toggle_sidebar(self) -> bool:
        self.state.sidebar_visible = not self.state.sidebar_visible
        return self.state.sidebar_visible

    # Search

    def search(self, text: str) -> None:
        """Feed a keystroke's worth of search text; must run inside the event loop."""
        self.search_coordinator.on_input(text)

    def clear_search(self) -> None:
        self.search_coordinator.clear()

    async def wait_for_search(self) -> None:
        await self.search_coordinator.wait_until_idle()

    # Tags

    async def create_tag(self, name: str, color: str | None = None) -> int | None:
        self.state.status_message = None
        if not self._check_name_and_color(name, color, "Tag name"):
            return None
        ok, tag_id = await self._attempt("create tag", self._gateway.create_tag(self.kind, name.strip(), color or None))
        if not ok:
            return None
        await self.sync.after_mutation(MutationKind.TAG, tag_id)
        return tag_id

    async def update_tag(self, tag_id: int, name: str, color: str | None = None) -> bool:
        self.state.status_message = None
        if not self._check_name_and_color(name, color, "Tag name"):
            return False
        ok, _ = await self._attempt(
            "update tag", self._gateway.update_tag(self.kind, tag_id, name.strip(), color or None)
        )
        if ok:
            await self.sync.after_mutation(MutationKind.TAG, tag_id)
        return ok

    async def delete_tag(self, tag_id: int) -> bool:
        self.state.status_message = None
        ok, _ = await self._attempt("delete tag", self._gateway.delete_tag(self.kind, tag_id))
        if ok:
            await self.sync.after_mutation(MutationKind.TAG, tag_id)
        return ok

    # Folders

    async def create_folder(self, name: str, parent_id: int | None = None, color: str | None = None) -> int | None:
        self.state.status_message = None
        if not self._require_notes("Folder management") or not self._check_name_and_color(name, color, "Folder name"):
            return None
        ok, folder_id = await self._attempt(
            "create folder", self._gateway.create_folder(name.strip(), parent_id, color or None)
        )
        if not ok:
            return None
        await self._reload_folders()
        return folder_id

    async def update_folder(
        self, folder_id: int, name: str, parent_id: int | None = None, color: str | None = None
    ) -> bool:
        """Rename, recolor or re-parent a folder, refusing cyclic parentage."""
        self.state.status_message = None
        if not self._require_notes("Folder management") or not self._check_name_and_color(name, color, "Folder name"):
            return False
        if would_create_cycle(folder_id, parent_id, self.state.folders):
            self.state.status_message = "Cannot move a folder into itself or one of its subfolders"
            return False
        ok, _ = await self._attempt(
            "update folder", self._gateway.update_folder(folder_id, name.strip(), parent_id, color or None)
        )
        if ok:
            await self._reload_folders()
            if self.state.include_subfolders:
                # Re-parenting can change which notes the scope covers
                await self.sync.reload()
                self.sync.reconcile_selection()
        return ok

    async def delete_folder(self, folder_id: int) -> bool:
        self.state.status_message = None
        if not self._require_notes("Folder management"):
            return False
        ok, _ = await self._attempt("delete folder", self._gateway.delete_folder(folder_id))
        if not ok:
            return False
        scope_before = self.state.selected_folder_id
        await self._reload_folders()
        if self.state.selected_folder_id != scope_before:
            await self.sync.reload()
            self.sync.reconcile_selection()
        return True

    # Helpers

    async def _attempt(self, action: str, operation: Awaitable[T]) -> tuple[bool, T | None]:
        try:
            return True, await operation
        except CommandError as err:
            logger.error("Failed to %s: %s", action, err.message)
            self.state.status_message = f"Failed to {action}: {err.message}"
        except ValueError as err:
            logger.info("Rejected %s: %s", action, err)
            self.state.status_message = _describe_invalid(err)
        return False, None

    async def _reload_folders(self) -> None:
        await self.sync.reload_folders()

    def _require_notes(self, feature: str) -> bool:
        if self.kind is DocumentKind.NOTE:
            return True
        self.state.status_message = f"{feature} is only available for notes"
        return False

    def _check_name_and_color(self, name: str, color: str | None, label: str) -> bool:
        ok, message = validate_required_name(name, label)
        if ok:
            ok, message = validate_hex_color(color)
        if not ok:
            self.state.status_message = message
        return ok

    def _find(self, document_id: int) -> Document | None:
        for document in self.state.documents:
            if document.id == document_id:
                return document
        return None
