from __future__ import annotations

import json
from collections.abc import Mapping
from datetime import date, datetime
from typing import TYPE_CHECKING, Any

from pydantic import TypeAdapter, ValidationError

from organizer.core.models.recurrence import (
    MONTH_DAY_IDS,
    WEEKDAY_IDS,
    CustomRule,
    DailyRule,
    IntervalRule,
    MonthlyRule,
    RecurrenceRule,
    WeeklyRule,
)
from organizer.utils.logging import get_logger

if TYPE_CHECKING:
    from organizer.core.schemas.recurrence_form import RecurrenceForm

logger = get_logger(__name__)

DEFAULT_WEEKLY_DAYS = [1, 2, 3, 4, 5]
DAY_ABBREVIATIONS = {1: "Mon", 2: "Tue", 3: "Wed", 4: "Thu", 5: "Fri", 6: "Sat", 7: "Sun"}

_rule_adapter: TypeAdapter[RecurrenceRule] = TypeAdapter(RecurrenceRule)


def _valid_days(days: list[Any] | None, allowed: range) -> list[int]:
    valid: list[int] = []
    for day in days or []:
        try:
            number = int(day)
        except (TypeError, ValueError):
            continue
        if number in allowed and number not in valid:
            valid.append(number)
    return sorted(valid)


def encode_recurrence(form: RecurrenceForm) -> RecurrenceRule:
    """Turn editing-surface selections into exactly one rule variant.

    Never raises. An empty weekly selection becomes Monday to Friday; an empty
    monthly selection is encoded as-is and must be blocked by validation.
    """
    frequency_type = (form.frequency_type or "").strip().lower()

    if frequency_type == "weekly":
        days = _valid_days(form.weekly_days, WEEKDAY_IDS)
        return WeeklyRule(days=days or list(DEFAULT_WEEKLY_DAYS))
    if frequency_type == "monthly":
        return MonthlyRule(days=_valid_days(form.monthly_days, MONTH_DAY_IDS))
    if frequency_type == "interval":
        every = form.interval_days or 1
        return IntervalRule(every_n_days=every if every >= 1 else 1)
    if frequency_type == "custom":
        return CustomRule(pattern=form.custom_pattern or "")
    if frequency_type != "daily":
        logger.warning("Unknown frequency type %r, falling back to daily", form.frequency_type)
    return DailyRule()


def _from_external_tag(payload: Mapping[str, Any] | str) -> RecurrenceRule | None:
    """Accept the capitalized shapes older payloads use, e.g. {"Weekly": {"days": [1]}}."""
    if isinstance(payload, str):
        return DailyRule() if payload == "Daily" else None
    if len(payload) != 1:
        return None
    (tag, body), = payload.items()
    body = body if isinstance(body, Mapping) else {}
    if tag == "Daily":
        return DailyRule()
    if tag == "Weekly":
        return WeeklyRule(days=body.get("days") or [])
    if tag == "Monthly":
        return MonthlyRule(days=body.get("days") or [])
    if tag == "Interval":
        return IntervalRule(every_n_days=body.get("days", 1))
    if tag == "Custom":
        return CustomRule(pattern=body.get("pattern", ""))
    return None


def coerce_recurrence(payload: Any) -> RecurrenceRule | None:
    """Return a rule for a model instance or a recognizable payload, else None."""
    if isinstance(payload, (DailyRule, WeeklyRule, MonthlyRule, IntervalRule, CustomRule)):
        return payload
    if payload is None:
        return None
    try:
        if isinstance(payload, Mapping) and "kind" in payload:
            return _rule_adapter.validate_python(dict(payload))
        if isinstance(payload, (Mapping, str)):
            return _from_external_tag(payload)
    except ValidationError as err:
        logger.debug("Unusable recurrence payload %r: %s", payload, err)
    return None


def describe_recurrence(rule: Any) -> str:
    """Human-readable schedule label for list and detail views."""
    coerced = coerce_recurrence(rule)
    if coerced is None:
        return "Unknown" if isinstance(rule, Mapping) else "Daily"

    if isinstance(coerced, DailyRule):
        return "Daily"
    if isinstance(coerced, WeeklyRule):
        if len(coerced.days) == len(WEEKDAY_IDS):
            return "Every day"
        return "Weekly: " + ", ".join(DAY_ABBREVIATIONS[d] for d in coerced.days)
    if isinstance(coerced, MonthlyRule):
        label = "days" if len(coerced.days) > 1 else "day"
        return f"Monthly on {label}: " + ", ".join(str(d) for d in coerced.days)
    if isinstance(coerced, IntervalRule):
        n = coerced.every_n_days
        return f"Every {n} day" + ("s" if n != 1 else "")
    if isinstance(coerced, CustomRule):
        return f"Custom: {coerced.pattern}"
    return "Unknown"


def serialize_recurrence(rule: RecurrenceRule) -> tuple[str, str]:
    """Split a rule into the (frequency_type, frequency_data) column pair."""
    if isinstance(rule, (WeeklyRule, MonthlyRule)):
        data = json.dumps(rule.days)
    elif isinstance(rule, IntervalRule):
        data = json.dumps(rule.every_n_days)
    elif isinstance(rule, CustomRule):
        data = json.dumps(rule.pattern)
    else:
        data = "{}"
    return rule.kind, data


def deserialize_recurrence(frequency_type: str, frequency_data: str) -> RecurrenceRule:
    """Rebuild a rule from its stored column pair.

    Raises ValueError for an unknown type or unreadable data.
    """
    try:
        if frequency_type == "daily":
            return DailyRule()
        if frequency_type == "weekly":
            return WeeklyRule(days=json.loads(frequency_data))
        if frequency_type == "monthly":
            return MonthlyRule(days=json.loads(frequency_data))
        if frequency_type == "interval":
            return IntervalRule(every_n_days=json.loads(frequency_data))
        if frequency_type == "custom":
            return CustomRule(pattern=json.loads(frequency_data))
    except json.JSONDecodeError as err:
        raise ValueError(f"Invalid frequency data for {frequency_type}: {err}") from err
    raise ValueError(f"Unknown frequency type: {frequency_type}")


def is_due(rule: RecurrenceRule, on: date, last_completed: datetime | date | None = None) -> bool:
    """Whether a habit with this rule should be done on ``on``."""
    last_day: date | None
    if isinstance(last_completed, datetime):
        last_day = last_completed.date()
    else:
        last_day = last_completed

    not_done_today = last_day is None or last_day < on

    if isinstance(rule, DailyRule):
        return not_done_today
    if isinstance(rule, WeeklyRule):
        return on.isoweekday() in rule.days and not_done_today
    if isinstance(rule, MonthlyRule):
        return on.day in rule.days and not_done_today
    if isinstance(rule, IntervalRule):
        if last_day is None:
            return True
        return (on - last_day).days >= rule.every_n_days
    # Custom patterns are not machine-readable
    return True
