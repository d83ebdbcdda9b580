from __future__ import annotations

from functools import lru_cache

from supabase import Client, create_client
from supabase.lib.client_options import ClientOptions

from organizer.config import settings
from organizer.utils.logging import get_logger

logger = get_logger(__name__)


@lru_cache(maxsize=1)
def get_supabase_client() -> Client:
    """Return a cached Supabase client for the configured project.

    The organizer is a single-user local application, so one client with the
    configured key serves every command.
    """
    logger.debug("Initializing Supabase client")
    if not settings.supabase_url or not settings.supabase_key:
        raise RuntimeError("supabase_url and supabase_key are required for the supabase backend")
    return create_client(
        settings.supabase_url,
        settings.supabase_key,
        options=ClientOptions(auto_refresh_token=False, persist_session=False),
    )
