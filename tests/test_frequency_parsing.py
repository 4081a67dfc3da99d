"""Tests for frequency rules, stored-string parsing and master task validation."""

import pytest
from datetime import date, time
from pydantic import ValidationError

from pharmtasks.models.frequency import FrequencyKind, FrequencyRule, Weekday, parse_frequency
from pharmtasks.models.task import MasterTaskDefinition, PublishStatus, TimingCategory


class TestParseFrequency:
    """Stored frequency strings map onto structured rules."""

    @pytest.mark.parametrize("text,kind", [
        ("once_off", FrequencyKind.ONCE_OFF),
        ("every_day", FrequencyKind.EVERY_DAY),
        ("EveryDay", FrequencyKind.EVERY_DAY),
        ("once_weekly", FrequencyKind.ONCE_WEEKLY),
        ("OnceMonthly", FrequencyKind.ONCE_MONTHLY),
        ("start_of_every_month", FrequencyKind.START_OF_MONTH),
        ("end_of_month", FrequencyKind.END_OF_MONTH),
    ])
    def test_simple_kinds(self, text, kind):
        rule = parse_frequency(text)
        assert rule.kind == kind
        assert rule.raw == text

    @pytest.mark.parametrize("text,day", [
        ("every_mon", Weekday.MON),
        ("EveryTue", Weekday.TUE),
        ("every_wednesday", Weekday.WED),
        ("thursday", Weekday.THU),
        ("Every Friday", Weekday.FRI),
        ("every_sat", Weekday.SAT),
    ])
    def test_weekday_strings(self, text, day):
        rule = parse_frequency(text)
        assert rule.kind == FrequencyKind.WEEKDAY
        assert rule.day == day

    def test_month_filtered_strings(self):
        """start_of_month_jan / EndOfMonthJun carry a month filter."""
        start = parse_frequency("start_of_month_jan")
        end = parse_frequency("EndOfMonthJun")
        assert (start.kind, start.month) == (FrequencyKind.START_OF_MONTH, 1)
        assert (end.kind, end.month) == (FrequencyKind.END_OF_MONTH, 6)

    @pytest.mark.parametrize("text", ["every_sun", "fortnightly", "", "start_of_month_xyz"])
    def test_unknown_strings_are_unsupported(self, text):
        """Unknown strings never raise; they yield a rule that never appears."""
        rule = parse_frequency(text)
        assert rule.kind is None
        assert rule.supported is False
        assert rule.raw == text

    def test_labels_parse_back(self):
        """label() is the stored form and parses to the same rule."""
        rules = [
            FrequencyRule.every_day(),
            FrequencyRule.weekday(Weekday.THU),
            FrequencyRule.start_of_month(),
            FrequencyRule.end_of_month(month=11),
            FrequencyRule.once_monthly(),
        ]
        for rule in rules:
            parsed = parse_frequency(rule.label())
            assert (parsed.kind, parsed.day, parsed.month) == (rule.kind, rule.day, rule.month)


class TestFrequencyRule:
    """FrequencyRule model behaviour."""

    def test_sunday_target_is_dropped(self):
        """Sunday is never a weekday target; the day is left empty for the evaluator to reject."""
        rule = FrequencyRule(kind="weekday", day="sunday")
        assert rule.kind == FrequencyKind.WEEKDAY
        assert rule.day is None

    def test_day_strings_are_coerced(self):
        assert FrequencyRule(kind="weekday", day="Saturday").day == Weekday.SAT

    def test_weekday_offsets(self):
        assert Weekday.MON.offset == 0
        assert Weekday.SAT.offset == 5

    def test_rule_is_frozen(self):
        rule = FrequencyRule.every_day()
        with pytest.raises(ValidationError):
            rule.kind = FrequencyKind.ONCE_WEEKLY

    def test_labels(self):
        assert FrequencyRule.weekday(Weekday.MON).label() == "every_mon"
        assert FrequencyRule.start_of_month().label() == "start_of_every_month"
        assert FrequencyRule.end_of_month(month=1).label() == "end_of_month_jan"
        assert FrequencyRule(raw="fortnightly").label() == "unsupported:fortnightly"


class TestMasterTaskDefinition:
    """Master task model coercion and authoring checks."""

    def test_frequency_strings_are_parsed_and_deduplicated(self):
        task = MasterTaskDefinition(id="t", title="T", frequencies=["every_mon", "EveryMon", "once_weekly"])
        assert [r.kind for r in task.frequencies] == [FrequencyKind.WEEKDAY, FrequencyKind.ONCE_WEEKLY]

    def test_single_frequency_string_is_accepted(self):
        task = MasterTaskDefinition(id="t", title="T", frequencies="every_day")
        assert task.has_kind(FrequencyKind.EVERY_DAY)

    def test_frequency_dicts_are_accepted(self):
        task = MasterTaskDefinition(id="t", title="T", frequencies=[{"kind": "weekday", "day": "fri"}])
        assert task.frequencies[0].day == Weekday.FRI

    @pytest.mark.parametrize("text,expected", [
        ("anytime_during_day", TimingCategory.ANYTIME),
        ("before_order_cut_off", TimingCategory.BEFORE_CUTOFF),
        ("Opening", TimingCategory.OPENING),
        ("closing", TimingCategory.CLOSING),
    ])
    def test_timing_aliases(self, text, expected):
        task = MasterTaskDefinition(id="t", title="T", frequencies=["every_day"], timing=text)
        assert task.timing == expected

    def test_defaults(self):
        task = MasterTaskDefinition(id="t", title="T")
        assert task.frequencies == []
        assert task.timing == TimingCategory.ANYTIME
        assert task.publish_status == PublishStatus.ACTIVE
        assert task.due_time is None

    def test_end_before_start_is_rejected(self):
        with pytest.raises(ValidationError):
            MasterTaskDefinition(
                id="t", title="T", frequencies=["every_day"],
                start_date=date(2025, 6, 10), end_date=date(2025, 6, 1),
            )

    def test_valid_task_has_no_authoring_problems(self):
        task = MasterTaskDefinition(id="t", title="T", frequencies=["every_day"], due_time=time(11, 0))
        assert task.validate_for_authoring() == []

    def test_authoring_problems_are_reported(self):
        task = MasterTaskDefinition(
            id="t",
            title="T",
            frequencies=[
                "once_off",
                "fortnightly",
                {"kind": "weekday", "day": "sun"},
                {"kind": "end_of_month", "month": 13},
            ],
        )
        problems = task.validate_for_authoring()
        assert "once-off tasks require a due date" in problems
        assert "unsupported frequency 'fortnightly'" in problems
        assert "weekday frequency requires a day between Monday and Saturday" in problems
        assert "month filter 13 is out of range" in problems

    def test_task_without_frequencies_is_reported(self):
        assert MasterTaskDefinition(id="t", title="T").validate_for_authoring() == [
            "at least one frequency is required"
        ]
