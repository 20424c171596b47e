"""
Tests for the pivoted hours report.
"""

from datetime import date
from unittest.mock import Mock

import pytest

from staffing_metrics.models.enums import WeekPeriod
from staffing_metrics.services.hours_report import HoursReportService, build_hours_report, pivot_hours
from staffing_metrics.tests.conftest import assert_close


LAST_WEEK = date(2024, 1, 7)
THIS_WEEK = date(2024, 1, 14)
NEXT_WEEK = date(2024, 1, 21)


@pytest.fixture
def identities():
    return [
        {
            'canonical_user_id': 102, 'name': 'Blair Chen', 'division_id': 2,
            'division_name': 'Allied Health', 'division_order': 2,
            'display_order': 0, 'weekly_goal': 30.0,
        },
        {
            'canonical_user_id': 103, 'name': 'Casey Ford', 'division_id': 1,
            'division_name': 'Nursing', 'division_order': 1,
            'display_order': 2, 'weekly_goal': None,
        },
        {
            'canonical_user_id': 101, 'name': 'Alex Kim', 'division_id': 1,
            'division_name': 'Nursing', 'division_order': 1,
            'display_order': 1, 'weekly_goal': 40.0,
        },
    ]


@pytest.fixture
def hour_rows():
    return [
        {'canonical_user_id': 101, 'week_start': THIS_WEEK, 'day_bucket': 0, 'total_hours': 17.5},
        {'canonical_user_id': 101, 'week_start': THIS_WEEK, 'day_bucket': 1, 'total_hours': 12.0},
        {'canonical_user_id': 101, 'week_start': LAST_WEEK, 'day_bucket': 5, 'total_hours': 8.0},
        {'canonical_user_id': 102, 'week_start': NEXT_WEEK, 'day_bucket': 3, 'total_hours': 10.0},
        {'canonical_user_id': 999, 'week_start': THIS_WEEK, 'day_bucket': 2, 'total_hours': 6.0},
    ]


class TestPivotHours:

    def test_one_row_per_user_week(self, hour_rows) -> None:
        pivot = pivot_hours(hour_rows)

        assert list(pivot.columns) == ['canonical_user_id', 'week_start', 'sun_mon', 'tue', 'wed', 'thu', 'fri', 'sat']
        assert len(pivot) == 4
        alex = pivot[(pivot.canonical_user_id == 101) & (pivot.week_start == THIS_WEEK)].iloc[0]
        assert alex['sun_mon'] == 17.5
        assert alex['tue'] == 12.0
        assert alex['sat'] == 0.0

    def test_empty(self) -> None:
        assert pivot_hours([]).empty


class TestBuildHoursReport:

    def test_every_identity_gets_three_periods(self, identities, hour_rows) -> None:
        report = build_hours_report(identities, hour_rows, THIS_WEEK)

        assert len(report.rows) == 9
        assert [row.canonical_user_id for row in report.rows[::3]] == [101, 103, 102]
        assert [row.week_period for row in report.rows[:3]] == [
            WeekPeriod.LAST_WEEK, WeekPeriod.THIS_WEEK, WeekPeriod.NEXT_WEEK,
        ]

    def test_pivoted_values(self, identities, hour_rows) -> None:
        report = build_hours_report(identities, hour_rows, THIS_WEEK)
        rows = {(row.canonical_user_id, row.week_period): row for row in report.rows}

        alex_this = rows[(101, WeekPeriod.THIS_WEEK)]
        assert alex_this.sun_mon == 17.5
        assert alex_this.tue == 12.0
        assert alex_this.weekly_total == 29.5
        assert alex_this.weekly_goal == 40.0
        assert rows[(101, WeekPeriod.LAST_WEEK)].sat == 8.0

        casey_this = rows[(103, WeekPeriod.THIS_WEEK)]
        assert casey_this.weekly_total == 0.0
        assert casey_this.weekly_goal == 0.0

    def test_period_totals(self, identities, hour_rows) -> None:
        report = build_hours_report(identities, hour_rows, THIS_WEEK)

        this_week = report.totals[WeekPeriod.THIS_WEEK]
        assert_close(this_week.sun_mon, 17.5)
        assert_close(this_week.tue, 12.0)
        assert_close(this_week.wed, 0.0)
        assert_close(this_week.total, 29.5)
        assert_close(this_week.goal, 70.0)

        next_week = report.totals[WeekPeriod.NEXT_WEEK]
        assert_close(next_week.thu, 10.0)
        assert_close(next_week.total, 10.0)

    def test_no_identities(self, hour_rows) -> None:
        report = build_hours_report([], hour_rows, THIS_WEEK)

        assert report.rows == []
        assert set(report.totals) == set(WeekPeriod)
        assert report.totals[WeekPeriod.THIS_WEEK].total == 0.0


class TestHoursReportService:

    async def test_week_offset_shifts_window(self, mock_db: Mock, identities, hour_rows) -> None:
        mock_db.fetch.side_effect = [identities, hour_rows]

        report = await HoursReportService(mock_db).get_report(week_offset=1, today=date(2024, 1, 10))

        assert report.this_week_start == THIS_WEEK
        assert mock_db.fetch.call_args_list[1].args[1] == [LAST_WEEK, THIS_WEEK, NEXT_WEEK]
        assert len(report.rows) == 9
