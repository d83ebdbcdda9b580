from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

from organizer.config import settings
from organizer.core.repositories.command_gateway import CommandError
from organizer.core.schemas.organizer_state import SearchPhase
from organizer.core.services.ordering_service import filter_documents, hide_archived, order_documents
from organizer.core.services.tag_color_service import decorate_documents
from organizer.utils.logging import get_logger

if TYPE_CHECKING:
    from collections.abc import Callable

    from organizer.core.repositories.command_gateway import CommandGateway
    from organizer.core.schemas.organizer_state import OrganizerState

logger = get_logger(__name__)


class SearchCoordinator:
    """Debounced free-text search over one organizer's collection.

    Keystrokes restart a timer; only when it elapses is a query issued. Every
    issued query carries a sequence number and only the response to the most
    recently issued one may touch the visible list. Timers are cancelled on new
    input, queries never are.

    Must be driven from inside a running event loop.
    """

    def __init__(
        self,
        state: OrganizerState,
        gateway: CommandGateway,
        *,
        on_cleared: Callable[[], None],
        delay: float | None = None,
    ) -> None:
        self._state = state
        self._gateway = gateway
        self._on_cleared = on_cleared
        self._delay = settings.search_debounce_seconds if delay is None else delay
        self._timer: asyncio.Task[None] | None = None
        self._queries: set[asyncio.Task[None]] = set()
        self._issued = 0

    @property
    def latest_sequence(self) -> int:
        return self._issued

    @property
    def has_pending_work(self) -> bool:
        timer_pending = self._timer is not None and not self._timer.done()
        return timer_pending or any(not q.done() for q in self._queries)

    def on_input(self, text: str) -> None:
        """Record the new search text and restart the debounce timer."""
        self._state.search_query = text
        self._cancel_timer()
        self._state.search_phase = SearchPhase.DEBOUNCING
        self._timer = asyncio.create_task(self._debounce(text))

    def clear(self) -> None:
        """Drop the search immediately, bypassing the debounce."""
        self._cancel_timer()
        self._issued += 1  # responses still in flight become stale
        self._state.search_query = ""
        self._state.search_phase = SearchPhase.IDLE
        self._on_cleared()

    async def wait_until_idle(self) -> None:
        """Wait for the pending timer and every in-flight query to finish."""
        while True:
            pending = [t for t in (self._timer, *self._queries) if t is not None and not t.done()]
            if not pending:
                return
            done, _ = await asyncio.wait(pending)
            for task in done:
                if not task.cancelled() and task.exception() is not None:
                    raise task.exception()

    async def _debounce(self, text: str) -> None:
        await asyncio.sleep(self._delay)
        if not text:
            self._issued += 1
            self._state.search_phase = SearchPhase.IDLE
            self._on_cleared()
            return

        self._issued += 1
        self._state.search_phase = SearchPhase.QUERYING
        query = asyncio.create_task(self._run_query(self._issued, text))
        self._queries.add(query)
        query.add_done_callback(self._queries.discard)

    async def _run_query(self, sequence: int, text: str) -> None:
        try:
            results = await self._gateway.search_documents(self._state.kind, text)
        except CommandError as err:
            if sequence != self._issued:
                logger.debug("Ignoring failure of superseded search #%s: %s", sequence, err.message)
                return
            logger.warning("Search for %r failed, filtering locally: %s", text, err.message)
            candidates = order_documents(self._state.documents)
            if not self._state.show_archived:
                candidates = hide_archived(candidates)
            results = filter_documents(candidates, text)
        else:
            if sequence != self._issued:
                logger.debug("Discarding stale results of search #%s (latest is #%s)", sequence, self._issued)
                return

        self._state.visible = decorate_documents(results, self._state.tags)
        self._state.search_phase = SearchPhase.IDLE
        logger.debug("Search #%s for %r returned %d items", sequence, text, len(results))

    def _cancel_timer(self) -> None:
        if self._timer is not None and not self._timer.done():
            self._timer.cancel()
        self._timer = None
