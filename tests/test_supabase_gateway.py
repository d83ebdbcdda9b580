from __future__ import annotations

from datetime import date
from unittest.mock import MagicMock

import pytest

from organizer.core.models.document import DocumentKind
from organizer.core.models.habit import Priority
from organizer.core.models.recurrence import MonthlyRule, WeeklyRule
from organizer.core.repositories.command_gateway import CommandError
from organizer.core.repositories.implementations.supabase.command_gateway import SupabaseCommandGateway

HABIT_ROW = {
    "id": 3,
    "name": "Stretch",
    "description": None,
    "category": "health",
    "tags": None,
    "frequency_type": "weekly",
    "frequency_data": "[1, 3]",
    "priority": 1,
    "is_active": True,
    "start_date": "2024-01-01",
    "reminder_time": "07:30",
    "created_at": "2024-01-01T08:00:00+00:00",
    "updated_at": "2024-01-02T08:00:00+00:00",
    "last_completed": "2024-01-02T07:45:00+00:00",
}


class TestSupabaseCommandGateway:
    """Row conversion against a mocked PostgREST client."""

    @pytest.fixture
    def client(self):
        return MagicMock()

    @pytest.fixture
    def gateway(self, client):
        return SupabaseCommandGateway(client)

    @pytest.mark.asyncio
    async def test_list_habits_deserializes_frequency(self, client, gateway):
        client.table.return_value.select.return_value.order.return_value.execute.return_value.data = [HABIT_ROW]

        habits = await gateway.list_documents(DocumentKind.HABIT)

        client.table.assert_called_with("habits")
        habit = habits[0]
        assert habit.frequency == WeeklyRule(days=[1, 3])
        assert habit.priority is Priority.HIGH
        assert habit.tags == []
        assert habit.start_date == date(2024, 1, 1)

    @pytest.mark.asyncio
    async def test_notes_are_scoped_by_folder(self, client, gateway):
        select = client.table.return_value.select.return_value
        select.in_.return_value.order.return_value.execute.return_value.data = []

        await gateway.list_documents(DocumentKind.NOTE, folder_ids=[2, 5])

        select.in_.assert_called_once_with("folder_id", [2, 5])

    @pytest.mark.asyncio
    async def test_unknown_frequency_type_is_a_command_error(self, client, gateway):
        row = {**HABIT_ROW, "frequency_type": "yearly"}
        client.table.return_value.select.return_value.order.return_value.execute.return_value.data = [row]

        with pytest.raises(CommandError, match="Failed to deserialize frequency"):
            await gateway.list_documents(DocumentKind.HABIT)

    @pytest.mark.asyncio
    async def test_create_habit_serializes_columns(self, client, gateway):
        client.table.return_value.insert.return_value.execute.return_value.data = [{"id": 11}]

        habit_id = await gateway.create_document(
            DocumentKind.HABIT,
            {
                "name": "Pay rent",
                "frequency": MonthlyRule(days=[1]),
                "priority": Priority.LOW,
                "start_date": date(2024, 2, 1),
                "tags": [],
            },
        )

        assert habit_id == 11
        row = client.table.return_value.insert.call_args.args[0]
        assert row["frequency_type"] == "monthly"
        assert row["frequency_data"] == "[1]"
        assert row["priority"] == 3
        assert row["start_date"] == "2024-02-01"
        assert "frequency" not in row

    @pytest.mark.asyncio
    async def test_search_builds_or_filter(self, client, gateway):
        client.table.return_value.select.return_value.or_.return_value.execute.return_value.data = []

        await gateway.search_documents(DocumentKind.NOTE, "milk, eggs")

        client.table.return_value.select.return_value.or_.assert_called_once_with(
            "title.ilike.*milk eggs*,content.ilike.*milk eggs*"
        )

    @pytest.mark.asyncio
    async def test_toggle_rejects_unknown_flag(self, gateway):
        with pytest.raises(CommandError):
            await gateway.toggle_flag(DocumentKind.NOTE, 1, "is_active", True)

    @pytest.mark.asyncio
    async def test_malformed_tag_row_is_a_command_error(self, client, gateway):
        client.table.return_value.select.return_value.order.return_value.execute.return_value.data = [
            {"id": 1, "name": ""}
        ]

        with pytest.raises(CommandError, match="Malformed Tag row"):
            await gateway.list_tags(DocumentKind.NOTE)

    @pytest.mark.asyncio
    async def test_client_failure_is_wrapped(self, client, gateway):
        client.table.side_effect = RuntimeError("connection refused")

        with pytest.raises(CommandError, match="connection refused"):
            await gateway.list_folders()
