from __future__ import annotations

from organizer.core.models.base import AppBaseModel
from organizer.core.models.folder import Folder  # noqa: TCH001


class FolderTreeEntry(AppBaseModel):
    """One row of the rendered folder navigation tree.

    The synthetic "All Notes" row has ``id`` None and no ``folder``.
    """

    id: int | None
    name: str
    level: int
    has_children: bool
    folder: Folder | None = None
