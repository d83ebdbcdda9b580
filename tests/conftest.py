from __future__ import annotations

from datetime import UTC, datetime, timedelta

import pytest

from organizer.core.models.document import DocumentKind
from organizer.core.repositories.implementations.memory.command_gateway import InMemoryCommandGateway
from organizer.core.services.organizer_service import OrganizerService

# Debounce delay for the organizer fixtures
SEARCH_DELAY = 0.02


class TickingClock:
    """Deterministic clock; every call moves time forward by one minute."""

    def __init__(self, start: datetime | None = None) -> None:
        self.now = start or datetime(2024, 1, 1, 9, 0, tzinfo=UTC)

    def __call__(self) -> datetime:
        self.now += timedelta(minutes=1)
        return self.now


@pytest.fixture
def clock() -> TickingClock:
    return TickingClock()


@pytest.fixture
def gateway(clock: TickingClock) -> InMemoryCommandGateway:
    return InMemoryCommandGateway(clock=clock)


@pytest.fixture
def notes(gateway: InMemoryCommandGateway) -> OrganizerService:
    return OrganizerService(gateway, DocumentKind.NOTE, search_delay=SEARCH_DELAY)


@pytest.fixture
def habits(gateway: InMemoryCommandGateway) -> OrganizerService:
    return OrganizerService(gateway, DocumentKind.HABIT, search_delay=SEARCH_DELAY)
