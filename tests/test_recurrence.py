"""Unit tests for periodic occurrence expansion."""

from datetime import date, datetime, timedelta, timezone

import pytest

from maintenance_engine import (
    MaintenancePolicy,
    Periodicity,
    count_planned_occurrences,
    format_date,
    generate_occurrences,
    is_due_on,
    month_index,
    parse_periodicity,
)


def policy(periodicity, month=None, policy_id=1):
    return MaintenancePolicy(
        id=policy_id,
        machine_id=1,
        description="Check oil level",
        periodicity=periodicity,
        month=month,
    )


class TestGenerateOccurrences:
    def test_before_each_use_every_day(self):
        dates = generate_occurrences(
            policy("BEFORE EACH USE"), date(2024, 2, 28), date(2024, 3, 1)
        )
        assert dates == [date(2024, 2, 28), date(2024, 2, 29), date(2024, 3, 1)]

    def test_weekly_anchored_on_january_first(self):
        dates = generate_occurrences(
            policy("WEEKLY"), date(2025, 1, 1), date(2025, 1, 31)
        )
        assert dates == [
            date(2025, 1, 1),
            date(2025, 1, 8),
            date(2025, 1, 15),
            date(2025, 1, 22),
            date(2025, 1, 29),
        ]

    def test_weekly_only_emits_dates_inside_range(self):
        dates = generate_occurrences(
            policy("WEEKLY"), date(2025, 1, 10), date(2025, 1, 20)
        )
        assert dates == [date(2025, 1, 15)]

    def test_weekly_anchor_uses_range_start_year(self):
        """A range crossing New Year keeps stepping from the first year's anchor."""
        dates = generate_occurrences(
            policy("WEEKLY"), date(2024, 12, 25), date(2025, 1, 5)
        )
        assert dates == [date(2024, 12, 30)]

    def test_monthly_first_of_each_month(self):
        dates = generate_occurrences(
            policy("MONTHLY"), date(2025, 1, 15), date(2025, 4, 15)
        )
        assert dates == [date(2025, 2, 1), date(2025, 3, 1), date(2025, 4, 1)]

    def test_quarterly_across_years(self):
        dates = generate_occurrences(
            policy("QUARTERLY"), date(2024, 1, 1), date(2025, 1, 1)
        )
        assert dates == [
            date(2024, 1, 1),
            date(2024, 4, 1),
            date(2024, 7, 1),
            date(2024, 10, 1),
            date(2025, 1, 1),
        ]

    def test_yearly_month_lookup_is_case_insensitive(self):
        dates = generate_occurrences(
            policy("YEARLY", month="march"), date(2023, 1, 1), date(2025, 12, 31)
        )
        assert dates == [date(2023, 3, 1), date(2024, 3, 1), date(2025, 3, 1)]

    @pytest.mark.parametrize("month", [None, "", "Smarch"])
    def test_yearly_unknown_month_falls_back_to_january(self, month):
        dates = generate_occurrences(
            policy("YEARLY", month=month), date(2025, 1, 1), date(2025, 12, 31)
        )
        assert dates == [date(2025, 1, 1)]

    @pytest.mark.parametrize("periodicity", [None, "", "DAILY", "FORTNIGHTLY"])
    def test_unknown_periodicity_has_no_occurrences(self, periodicity):
        assert (
            generate_occurrences(policy(periodicity), date(2025, 1, 1), date(2025, 12, 31))
            == []
        )

    def test_reversed_range_is_empty(self):
        assert (
            generate_occurrences(policy("BEFORE EACH USE"), date(2025, 2, 1), date(2025, 1, 1))
            == []
        )

    def test_aware_datetimes_use_the_utc_calendar_date(self):
        local_midnight = datetime(2025, 3, 1, 1, 0, tzinfo=timezone(timedelta(hours=5)))
        assert is_due_on(policy("MONTHLY"), local_midnight) is False
        assert is_due_on(policy("MONTHLY"), date(2025, 3, 1)) is True

    def test_is_restartable(self):
        monthly = policy("MONTHLY")
        first = generate_occurrences(monthly, date(2025, 1, 1), date(2025, 6, 30))
        second = generate_occurrences(monthly, date(2025, 1, 1), date(2025, 6, 30))
        assert first == second


class TestHelpers:
    @pytest.mark.parametrize(
        "value,expected",
        [
            ("BEFORE EACH USE", Periodicity.BEFORE_EACH_USE),
            ("before_each_use", Periodicity.BEFORE_EACH_USE),
            (" weekly ", Periodicity.WEEKLY),
            ("Quarterly", Periodicity.QUARTERLY),
            ("hourly", None),
            (None, None),
        ],
    )
    def test_parse_periodicity(self, value, expected):
        assert parse_periodicity(value) is expected

    def test_month_index(self):
        assert month_index("DECEMBER") == 12
        assert month_index("june") == 6
        assert month_index("nope") == 1
        assert month_index(None) == 1

    def test_count_planned_occurrences(self):
        policies = [policy("MONTHLY", policy_id=1), policy("QUARTERLY", policy_id=2)]
        assert count_planned_occurrences(policies, date(2025, 1, 1), date(2025, 6, 30)) == 8

    def test_format_date(self):
        assert format_date(date(2025, 3, 7)) == "2025-03-07"
