from __future__ import annotations

from datetime import UTC, datetime, timedelta

from organizer.core.models.habit import Habit
from organizer.core.models.note import Note
from organizer.core.services.ordering_service import filter_documents, hide_archived, order_documents

BASE = datetime(2024, 3, 1, tzinfo=UTC)


def _note(note_id, *, minutes=0, pinned=False, archived=False, title="", content=""):
    return Note(
        id=note_id,
        title=title or f"Note {note_id}",
        content=content,
        is_pinned=pinned,
        is_archived=archived,
        updated_at=BASE + timedelta(minutes=minutes),
    )


class TestOrderDocuments:
    def test_pinned_first_then_most_recent(self):
        a = _note(1, minutes=10)
        b = _note(2, minutes=20)
        c = _note(3, minutes=5, pinned=True)

        assert [d.id for d in order_documents([a, b, c])] == [3, 2, 1]

    def test_pinned_sorted_by_recency_too(self):
        notes = [_note(1, minutes=1, pinned=True), _note(2, minutes=2, pinned=True), _note(3, minutes=3)]
        assert [d.id for d in order_documents(notes)] == [2, 1, 3]

    def test_ties_keep_input_order(self):
        notes = [_note(1), _note(2), _note(3)]
        assert [d.id for d in order_documents(notes)] == [1, 2, 3]
        assert [d.id for d in order_documents(reversed(notes))] == [3, 2, 1]

    def test_idempotent(self):
        notes = [_note(1, minutes=3), _note(2, minutes=1, pinned=True), _note(3, minutes=3), _note(4, minutes=7)]
        once = order_documents(notes)
        assert order_documents(once) == once

    def test_input_is_not_mutated(self):
        notes = [_note(1, minutes=1), _note(2, minutes=2)]
        order_documents(notes)
        assert [d.id for d in notes] == [1, 2]

    def test_habits_count_as_unpinned(self):
        older = Habit(id=1, name="Read", updated_at=BASE)
        newer = Habit(id=2, name="Run", updated_at=BASE + timedelta(hours=1))
        assert [h.id for h in order_documents([older, newer])] == [2, 1]


class TestFilterDocuments:
    def test_case_insensitive_over_title_and_content(self):
        notes = [
            _note(1, title="Groceries", content="milk"),
            _note(2, title="Work", content="Buy MILK for office"),
            _note(3, title="Ideas"),
        ]
        assert [d.id for d in filter_documents(notes, "Milk")] == [1, 2]

    def test_empty_query_returns_everything(self):
        notes = [_note(1), _note(2)]
        assert filter_documents(notes, "") == notes

    def test_habit_description_is_searched(self):
        habit = Habit(id=1, name="Stretch", description="Ten minutes of yoga")
        assert filter_documents([habit], "yoga") == [habit]

    def test_hide_archived(self):
        notes = [_note(1), _note(2, archived=True)]
        assert [d.id for d in hide_archived(notes)] == [1]
