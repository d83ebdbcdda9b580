from __future__ import annotations

from typing import TYPE_CHECKING, Any

from organizer.core.models.document import TOGGLE_FLAGS, DocumentKind
from organizer.core.models.habit import Habit
from organizer.core.models.recurrence import MonthlyRule
from organizer.core.schemas.habit import HabitCreate, HabitUpdate
from organizer.core.services.recurrence_service import encode_recurrence
from organizer.utils.logging import get_logger

if TYPE_CHECKING:
    from collections.abc import Mapping

    from organizer.core.models.recurrence import RecurrenceRule
    from organizer.core.repositories.command_gateway import CommandGateway

logger = get_logger(__name__)


def _check_schedule(rule: RecurrenceRule) -> RecurrenceRule:
    if isinstance(rule, MonthlyRule) and not rule.days:
        raise ValueError("Select at least one day of the month")
    return rule


class HabitService:
    """Validates habit edits, encodes their schedule and forwards them.

    Input problems raise ValueError (pydantic's ValidationError included);
    collaborator failures propagate as CommandError.
    """

    kind = DocumentKind.HABIT

    def __init__(self, gateway: CommandGateway) -> None:
        self._gateway = gateway

    async def create(self, fields: Mapping[str, Any]) -> int:
        create_dto = HabitCreate.model_validate(dict(fields))
        rule = create_dto.frequency or encode_recurrence(create_dto.recurrence)

        data = create_dto.model_dump(exclude={"recurrence", "frequency"})
        data["frequency"] = _check_schedule(rule)
        # Full model check covers reminder format and the date range
        Habit.model_validate({**data, "id": 0})
        return await self._gateway.create_document(self.kind, data)

    async def update(self, existing: Habit, fields: Mapping[str, Any]) -> None:
        update_dto = HabitUpdate.model_validate(dict(fields))
        changes = update_dto.model_dump(exclude_unset=True, exclude={"recurrence", "frequency"})
        if update_dto.frequency is not None:
            changes["frequency"] = _check_schedule(update_dto.frequency)
        elif update_dto.recurrence is not None:
            changes["frequency"] = _check_schedule(encode_recurrence(update_dto.recurrence))
        if not changes:
            logger.debug("No changes for habit %s", existing.id)
            return

        merged = existing.model_dump()
        merged.update(changes)
        Habit.model_validate(merged)
        await self._gateway.update_document(self.kind, existing.id, changes)

    async def delete(self, habit_id: int) -> None:
        await self._gateway.delete_document(self.kind, habit_id)

    async def set_flag(self, habit_id: int, flag: str, value: bool) -> None:
        if flag not in TOGGLE_FLAGS[self.kind]:
            raise ValueError(f"Habits have no '{flag}' flag")
        await self._gateway.toggle_flag(self.kind, habit_id, flag, value)
