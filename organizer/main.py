from __future__ import annotations

from typing import TYPE_CHECKING

from .config import settings
from .core.models.document import DocumentKind
from .core.repositories.implementations.memory.command_gateway import InMemoryCommandGateway
from .core.services.organizer_service import OrganizerService
from .utils.logging import get_logger, setup_logging

if TYPE_CHECKING:
    from .core.repositories.command_gateway import CommandGateway

logger = get_logger(__name__)


def create_gateway() -> CommandGateway:
    """Build the storage collaborator selected by ``ORGANIZER_STORAGE_BACKEND``."""
    if settings.storage_backend == "supabase":
        from .core.repositories.implementations.supabase.command_gateway import SupabaseCommandGateway
        from .db.base import get_supabase_client

        return SupabaseCommandGateway(get_supabase_client())
    return InMemoryCommandGateway()


def create_organizer(kind: DocumentKind | str, gateway: CommandGateway | None = None) -> OrganizerService:
    setup_logging()

    gateway = gateway or create_gateway()
    organizer = OrganizerService(gateway, DocumentKind(kind), settings)
    logger.info("Created %s organizer backed by %s", organizer.kind.value, type(gateway).__name__)
    return organizer
