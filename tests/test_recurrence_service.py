from __future__ import annotations

from datetime import date, datetime

import pytest

from organizer.core.models.recurrence import CustomRule, DailyRule, IntervalRule, MonthlyRule, WeeklyRule
from organizer.core.schemas.recurrence_form import RecurrenceForm
from organizer.core.services.recurrence_service import (
    coerce_recurrence,
    describe_recurrence,
    deserialize_recurrence,
    encode_recurrence,
    is_due,
    serialize_recurrence,
)


class TestEncodeRecurrence:
    """Form selections become exactly one rule variant."""

    def test_daily(self):
        assert encode_recurrence(RecurrenceForm(frequency_type="daily")) == DailyRule()

    def test_weekly_keeps_selected_days_sorted(self):
        rule = encode_recurrence(RecurrenceForm(frequency_type="weekly", weekly_days=[5, 1, 3]))
        assert rule == WeeklyRule(days=[1, 3, 5])

    def test_weekly_without_days_defaults_to_weekdays(self):
        rule = encode_recurrence(RecurrenceForm(frequency_type="weekly", weekly_days=[]))
        assert rule == WeeklyRule(days=[1, 2, 3, 4, 5])

    def test_weekly_drops_out_of_range_days(self):
        rule = encode_recurrence(RecurrenceForm(frequency_type="weekly", weekly_days=[0, 3, 8]))
        assert rule == WeeklyRule(days=[3])

    def test_weekly_with_only_invalid_days_defaults_to_weekdays(self):
        rule = encode_recurrence(RecurrenceForm(frequency_type="weekly", weekly_days=[0, 9]))
        assert rule.days == [1, 2, 3, 4, 5]

    def test_monthly_without_days_is_encoded_empty(self):
        rule = encode_recurrence(RecurrenceForm(frequency_type="monthly"))
        assert isinstance(rule, MonthlyRule)
        assert rule.days == []

    def test_monthly_drops_day_32(self):
        rule = encode_recurrence(RecurrenceForm(frequency_type="monthly", monthly_days=[15, 1, 32]))
        assert rule == MonthlyRule(days=[1, 15])

    @pytest.mark.parametrize("interval", [None, 0, -4])
    def test_interval_falls_back_to_one(self, interval):
        rule = encode_recurrence(RecurrenceForm(frequency_type="interval", interval_days=interval))
        assert rule == IntervalRule(every_n_days=1)

    def test_interval_keeps_positive_value(self):
        rule = encode_recurrence(RecurrenceForm(frequency_type="interval", interval_days=3))
        assert rule.every_n_days == 3

    def test_custom(self):
        rule = encode_recurrence(RecurrenceForm(frequency_type="custom", custom_pattern="every other Sunday"))
        assert rule == CustomRule(pattern="every other Sunday")

    def test_unknown_type_becomes_daily(self):
        assert encode_recurrence(RecurrenceForm(frequency_type="fortnightly")) == DailyRule()

    def test_type_is_case_insensitive(self):
        rule = encode_recurrence(RecurrenceForm(frequency_type="Weekly", weekly_days=[6, 7]))
        assert rule == WeeklyRule(days=[6, 7])


class TestDescribeRecurrence:
    @pytest.mark.parametrize(
        ("rule", "expected"),
        [
            (DailyRule(), "Daily"),
            (WeeklyRule(days=[2, 1]), "Weekly: Mon, Tue"),
            (WeeklyRule(days=[1, 2, 3, 4, 5, 6, 7]), "Every day"),
            (MonthlyRule(days=[5]), "Monthly on day: 5"),
            (MonthlyRule(days=[15, 1]), "Monthly on days: 1, 15"),
            (IntervalRule(every_n_days=1), "Every 1 day"),
            (IntervalRule(every_n_days=3), "Every 3 days"),
            (CustomRule(pattern="after lunch"), "Custom: after lunch"),
        ],
    )
    def test_variants(self, rule, expected):
        assert describe_recurrence(rule) == expected

    def test_missing_rule_reads_as_daily(self):
        assert describe_recurrence(None) == "Daily"
        assert describe_recurrence(42) == "Daily"

    def test_unrecognized_mapping_is_unknown(self):
        assert describe_recurrence({"Fortnightly": {}}) == "Unknown"
        assert describe_recurrence({"kind": "weekly", "days": [9]}) == "Unknown"

    def test_external_shapes(self):
        assert describe_recurrence({"Weekly": {"days": [6, 7]}}) == "Weekly: Sat, Sun"
        assert describe_recurrence({"Interval": {"days": 2}}) == "Every 2 days"
        assert describe_recurrence("Daily") == "Daily"


class TestCoerceRecurrence:
    def test_kind_tagged_mapping(self):
        assert coerce_recurrence({"kind": "monthly", "days": [3]}) == MonthlyRule(days=[3])

    def test_instance_passes_through(self):
        rule = IntervalRule(every_n_days=4)
        assert coerce_recurrence(rule) is rule

    def test_custom_external_shape(self):
        assert coerce_recurrence({"Custom": {"pattern": "weekends"}}) == CustomRule(pattern="weekends")

    def test_garbage_returns_none(self):
        assert coerce_recurrence(None) is None
        assert coerce_recurrence({"Weekly": {}, "Daily": {}}) is None


class TestStorageColumns:
    """The frequency_type / frequency_data column pair."""

    def test_serialize(self):
        assert serialize_recurrence(DailyRule()) == ("daily", "{}")
        assert serialize_recurrence(WeeklyRule(days=[1, 3])) == ("weekly", "[1, 3]")
        assert serialize_recurrence(IntervalRule(every_n_days=5)) == ("interval", "5")
        assert serialize_recurrence(CustomRule(pattern="x")) == ("custom", '"x"')

    def test_deserialize(self):
        assert deserialize_recurrence("monthly", "[10, 20]") == MonthlyRule(days=[10, 20])
        assert deserialize_recurrence("daily", "") == DailyRule()

    def test_deserialize_unknown_type(self):
        with pytest.raises(ValueError, match="Unknown frequency type"):
            deserialize_recurrence("yearly", "{}")

    def test_deserialize_bad_json(self):
        with pytest.raises(ValueError, match="Invalid frequency data"):
            deserialize_recurrence("weekly", "[1,")


class TestIsDue:
    # 2024-01-01 is a Monday
    MONDAY = date(2024, 1, 1)

    def test_daily_not_done_today(self):
        assert is_due(DailyRule(), self.MONDAY, date(2023, 12, 31))
        assert not is_due(DailyRule(), self.MONDAY, datetime(2024, 1, 1, 7, 30))

    def test_weekly_only_on_listed_days(self):
        assert is_due(WeeklyRule(days=[1]), self.MONDAY)
        assert not is_due(WeeklyRule(days=[2]), self.MONDAY)

    def test_monthly_by_day_of_month(self):
        assert is_due(MonthlyRule(days=[1, 15]), self.MONDAY)
        assert not is_due(MonthlyRule(days=[1]), self.MONDAY, self.MONDAY)

    def test_interval_counts_days_since_completion(self):
        rule = IntervalRule(every_n_days=3)
        assert is_due(rule, self.MONDAY)
        assert not is_due(rule, self.MONDAY, date(2023, 12, 30))
        assert is_due(rule, self.MONDAY, date(2023, 12, 29))

    def test_custom_is_always_due(self):
        assert is_due(CustomRule(pattern="whenever"), self.MONDAY, self.MONDAY)


class TestEncodeThenDescribe:
    @pytest.mark.parametrize(
        ("form", "expected"),
        [
            (RecurrenceForm(frequency_type="daily"), "Daily"),
            (RecurrenceForm(frequency_type="weekly", weekly_days=[]), "Weekly: Mon, Tue, Wed, Thu, Fri"),
            (RecurrenceForm(frequency_type="monthly", monthly_days=[1, 15]), "Monthly on days: 1, 15"),
            (RecurrenceForm(frequency_type="interval", interval_days=2), "Every 2 days"),
            (RecurrenceForm(frequency_type="custom", custom_pattern="on rainy days"), "Custom: on rainy days"),
        ],
    )
    def test_label_for_each_variant(self, form, expected):
        assert describe_recurrence(encode_recurrence(form)) == expected
