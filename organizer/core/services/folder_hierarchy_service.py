from __future__ import annotations

from typing import TYPE_CHECKING

from organizer.config import settings
from organizer.core.schemas.folder_tree import FolderTreeEntry

if TYPE_CHECKING:
    from collections.abc import Sequence

    from organizer.core.models.folder import Folder


def build_folder_tree(folders: Sequence[Folder], *, root_label: str | None = None) -> list[FolderTreeEntry]:
    """Flatten the parent-pointer list into display rows.

    The first row is always the synthetic aggregate entry. Root folders follow
    in input order, each one immediately followed by its descendants in
    depth-first pre-order. Parentage must be acyclic; cycles are rejected when
    folders are written, not here.
    """
    entries = [
        FolderTreeEntry(
            id=None,
            name=root_label or settings.default_folder_label,
            level=0,
            has_children=False,
        )
    ]

    def visit(folder: Folder, level: int) -> None:
        children = [f for f in folders if f.parent_id == folder.id]
        entries.append(
            FolderTreeEntry(
                id=folder.id,
                name=folder.name,
                level=level,
                has_children=bool(children),
                folder=folder,
            )
        )
        for child in children:
            visit(child, level + 1)

    for root in (f for f in folders if f.parent_id is None):
        visit(root, 1)
    return entries


def collect_descendant_ids(folder_id: int, folders: Sequence[Folder]) -> list[int]:
    """The folder's id followed by every descendant's id, in pre-order."""
    collected: list[int] = []
    pending = [folder_id]
    while pending:
        current = pending.pop()
        if current in collected:
            continue
        collected.append(current)
        children = [f.id for f in folders if f.parent_id == current]
        pending.extend(reversed(children))
    return collected


def would_create_cycle(folder_id: int, new_parent_id: int | None, folders: Sequence[Folder]) -> bool:
    """True if re-parenting ``folder_id`` under ``new_parent_id`` closes a loop."""
    if new_parent_id is None:
        return False
    parents = {f.id: f.parent_id for f in folders}
    seen: set[int] = set()
    current: int | None = new_parent_id
    while current is not None and current not in seen:
        if current == folder_id:
            return True
        seen.add(current)
        current = parents.get(current)
    return False
