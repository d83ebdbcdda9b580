from __future__ import annotations

from datetime import date

import pytest

from organizer.core.models.document import DocumentKind
from organizer.core.models.habit import Priority
from organizer.core.models.recurrence import IntervalRule, MonthlyRule, WeeklyRule
from organizer.core.services.habit_service import HabitService
from organizer.core.services.note_service import NoteService


@pytest.fixture
def note_service(gateway):
    return NoteService(gateway)


@pytest.fixture
def habit_service(gateway):
    return HabitService(gateway)


class TestNoteService:
    @pytest.mark.asyncio
    async def test_create_trims_title_and_tags(self, note_service, gateway):
        note_id = await note_service.create({"title": "  Plan  ", "tags": [" x ", "y", "x", ""]})

        note = (await gateway.list_documents(DocumentKind.NOTE))[0]
        assert note.id == note_id
        assert note.title == "Plan"
        assert note.tags == ["x", "y"]

    @pytest.mark.asyncio
    async def test_create_requires_title_or_content(self, note_service):
        with pytest.raises(ValueError, match="title or content"):
            await note_service.create({"title": "   ", "content": ""})

    @pytest.mark.asyncio
    async def test_content_alone_is_enough(self, note_service):
        assert await note_service.create({"content": "just a thought"}) == 1

    @pytest.mark.asyncio
    async def test_create_rejects_bad_color(self, note_service):
        with pytest.raises(ValueError, match="hex value"):
            await note_service.create({"title": "x", "color": "blue"})

    @pytest.mark.asyncio
    async def test_update_cannot_blank_both_fields(self, note_service, gateway):
        await note_service.create({"title": "Only title"})
        note = (await gateway.list_documents(DocumentKind.NOTE))[0]

        with pytest.raises(ValueError, match="title or content"):
            await note_service.update(note, {"title": ""})

    @pytest.mark.asyncio
    async def test_update_keeps_unset_fields(self, note_service, gateway):
        await note_service.create({"title": "Title", "content": "Body", "tags": ["a"]})
        note = (await gateway.list_documents(DocumentKind.NOTE))[0]

        await note_service.update(note, {"content": "New body"})

        updated = (await gateway.list_documents(DocumentKind.NOTE))[0]
        assert updated.title == "Title"
        assert updated.content == "New body"
        assert updated.tags == ["a"]

    @pytest.mark.asyncio
    async def test_set_flag_validates_flag(self, note_service):
        with pytest.raises(ValueError, match="is_active"):
            await note_service.set_flag(1, "is_active", True)

    @pytest.mark.asyncio
    async def test_move_to_folder_and_back(self, note_service, gateway):
        folder = await gateway.create_folder("Inbox")
        note_id = await note_service.create({"title": "x"})

        await note_service.move_to_folder(note_id, folder)
        assert (await gateway.list_documents(DocumentKind.NOTE))[0].folder_id == folder

        await note_service.move_to_folder(note_id, None)
        assert (await gateway.list_documents(DocumentKind.NOTE))[0].folder_id is None


class TestHabitService:
    @pytest.mark.asyncio
    async def test_create_encodes_recurrence(self, habit_service, gateway):
        await habit_service.create(
            {"name": "Gym", "recurrence": {"frequency_type": "weekly", "weekly_days": [5, 1]}}
        )

        habit = (await gateway.list_documents(DocumentKind.HABIT))[0]
        assert habit.frequency == WeeklyRule(days=[1, 5])
        assert habit.priority is Priority.MEDIUM

    @pytest.mark.asyncio
    async def test_encoded_rule_wins_over_form(self, habit_service, gateway):
        await habit_service.create(
            {"name": "Water plants", "recurrence": {"frequency_type": "daily"}, "frequency": IntervalRule(every_n_days=3)}
        )
        habit = (await gateway.list_documents(DocumentKind.HABIT))[0]
        assert habit.frequency == IntervalRule(every_n_days=3)

    @pytest.mark.asyncio
    async def test_name_is_required(self, habit_service):
        with pytest.raises(ValueError, match="Habit name is required"):
            await habit_service.create({"name": "  "})

    @pytest.mark.asyncio
    async def test_monthly_without_days_is_rejected(self, habit_service, gateway):
        with pytest.raises(ValueError, match="at least one day"):
            await habit_service.create({"name": "Pay rent", "recurrence": {"frequency_type": "monthly"}})
        assert await gateway.list_documents(DocumentKind.HABIT) == []

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "fields",
        [
            {"priority": 4},
            {"reminder_time": "25:00"},
            {"reminder_time": "7am"},
            {"start_date": date(2024, 5, 2), "end_date": date(2024, 5, 1)},
        ],
    )
    async def test_invalid_fields(self, habit_service, fields):
        with pytest.raises(ValueError):
            await habit_service.create({"name": "Meditate", **fields})

    @pytest.mark.asyncio
    async def test_update_schedule(self, habit_service, gateway):
        await habit_service.create({"name": "Budget review"})
        habit = (await gateway.list_documents(DocumentKind.HABIT))[0]

        await habit_service.update(habit, {"recurrence": {"frequency_type": "monthly", "monthly_days": [1]}})

        updated = (await gateway.list_documents(DocumentKind.HABIT))[0]
        assert updated.frequency == MonthlyRule(days=[1])
        assert updated.name == "Budget review"

    @pytest.mark.asyncio
    async def test_update_checks_merged_date_range(self, habit_service, gateway):
        await habit_service.create({"name": "Course", "start_date": date(2024, 6, 1)})
        habit = (await gateway.list_documents(DocumentKind.HABIT))[0]

        with pytest.raises(ValueError, match="End date"):
            await habit_service.update(habit, {"end_date": date(2024, 5, 1)})
