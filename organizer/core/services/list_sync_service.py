from __future__ import annotations

from typing import TYPE_CHECKING

from organizer.core.models.document import DocumentKind
from organizer.core.repositories.command_gateway import CommandError
from organizer.core.schemas.organizer_state import MutationKind
from organizer.core.services.folder_hierarchy_service import build_folder_tree, collect_descendant_ids
from organizer.core.services.ordering_service import filter_documents, hide_archived, order_documents
from organizer.core.services.tag_color_service import decorate_documents
from organizer.utils.logging import get_logger

if TYPE_CHECKING:
    from organizer.core.repositories.command_gateway import CommandGateway
    from organizer.core.schemas.organizer_state import OrganizerState

logger = get_logger(__name__)


class ListSynchronizer:
    """Keeps the in-memory projection consistent with the collaborator.

    After every mutation the tag list and the folder-scoped collection are
    fetched again in full and every item's tag colors are re-resolved. There
    is no incremental patching.
    """

    def __init__(self, gateway: CommandGateway, state: OrganizerState, *, root_label: str | None = None) -> None:
        self._gateway = gateway
        self._state = state
        self._root_label = root_label

    def scope_folder_ids(self) -> list[int] | None:
        """Folder ids the current scope covers; None means every document."""
        state = self._state
        if state.kind is not DocumentKind.NOTE or state.selected_folder_id is None:
            return None
        if state.include_subfolders:
            return collect_descendant_ids(state.selected_folder_id, state.folders)
        return [state.selected_folder_id]

    async def reload(self) -> bool:
        """Fetch tags and the scoped collection again.

        On failure the previous collection and selection stay in place and the
        status message says what went wrong. Returns whether the reload
        succeeded.
        """
        state = self._state
        state.is_loading = True
        try:
            tags = await self._gateway.list_tags(state.kind)
            documents = await self._gateway.list_documents(state.kind, folder_ids=self.scope_folder_ids())
        except CommandError as err:
            logger.error("Failed to load %ss: %s", state.kind.value, err.message)
            state.status_message = f"Failed to load {state.kind.value}s: {err.message}"
            return False
        finally:
            state.is_loading = False

        state.tags = list(tags)
        state.documents = list(documents)
        self.refresh_visible()
        logger.debug("Loaded %d %ss and %d tags", len(state.documents), state.kind.value, len(state.tags))
        return True

    def refresh_visible(self) -> None:
        """Rebuild the rendered list from the last loaded collection."""
        state = self._state
        documents = order_documents(state.documents)
        if not state.show_archived:
            documents = hide_archived(documents)
        if state.search_query:
            documents = filter_documents(documents, state.search_query)
        state.visible = decorate_documents(documents, state.tags)

    def reconcile_selection(self) -> None:
        """Swap the selection for its freshly loaded object, or clear it."""
        state = self._state
        if state.selected is None:
            return
        state.selected = self._find(state.selected.id)

    async def after_mutation(self, mutation: MutationKind, affected_id: int | None = None) -> bool:
        if not await self.reload():
            return False
        if mutation is MutationKind.CREATE and affected_id is not None:
            created = self._find(affected_id)
            if created is not None:
                self._state.selected = created
                return True
        self.reconcile_selection()
        return True

    async def reload_folders(self) -> bool:
        """Fetch folders again and rebuild the tree.

        A selected folder that no longer exists resets the scope to every
        document.
        """
        state = self._state
        try:
            folders = await self._gateway.list_folders()
        except CommandError as err:
            logger.error("Failed to load folders: %s", err.message)
            state.status_message = f"Failed to load folders: {err.message}"
            return False

        state.folders = list(folders)
        state.folder_tree = build_folder_tree(state.folders, root_label=self._root_label)
        if state.selected_folder_id is not None and all(f.id != state.selected_folder_id for f in state.folders):
            logger.info("Selected folder %s disappeared, showing all notes", state.selected_folder_id)
            state.selected_folder_id = None
            state.include_subfolders = False
        return True

    def _find(self, document_id: int):
        for document in self._state.documents:
            if document.id == document_id:
                return document
        return None
