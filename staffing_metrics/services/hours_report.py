"""
Hours report view: pivot hours snapshots into per-recruiter weekly rows.

Each active identity flagged on_hours_report gets one row per week period
(Last / This / Next week) with columns:

    sun_mon, tue, wed, thu, fri, sat, weekly_total

Identities with no hours still appear with zeros. Per-period totals add up
every column plus the sum of weekly goals. A week offset shifts the whole
window, e.g. -1 for a Monday recap of the week that just ended.

The pivot is done with pandas; the query returns long-form rows.
"""

import logging
from datetime import date, timedelta
from typing import Any, Dict, List, Mapping, Optional, Sequence

import pandas as pd

from staffing_metrics.core.database import Database
from staffing_metrics.models.enums import WeekPeriod
from staffing_metrics.models.schemas import HoursPeriodTotals, HoursReport, HoursReportRow
from staffing_metrics.services.ranking import round2
from staffing_metrics.services.weeks import period_week_starts, week_start_of
from staffing_metrics.sql.snapshot_queries import (
    get_hours_report_identities_query,
    get_hours_report_query,
)


logger = logging.getLogger(__name__)


DAY_COLUMNS = ['sun_mon', 'tue', 'wed', 'thu', 'fri', 'sat']

IDENTITY_COLUMNS = [
    'canonical_user_id', 'name', 'division_id', 'division_name',
    'division_order', 'display_order', 'weekly_goal',
]

PERIOD_ORDER = {
    WeekPeriod.LAST_WEEK: 0,
    WeekPeriod.THIS_WEEK: 1,
    WeekPeriod.NEXT_WEEK: 2,
}


def _empty_pivot() -> pd.DataFrame:
    columns = {
        'canonical_user_id': pd.Series(dtype='int64'),
        'week_start': pd.Series(dtype='object'),
    }
    for column in DAY_COLUMNS:
        columns[column] = pd.Series(dtype='float64')
    return pd.DataFrame(columns)


def pivot_hours(hour_rows: Sequence[Mapping[str, Any]]) -> pd.DataFrame:
    """
    Long-form (user, week, bucket, hours) rows to one row per (user, week).

    Returns:
        DataFrame with canonical_user_id, week_start and the day columns.
    """
    if not hour_rows:
        return _empty_pivot()

    hours = pd.DataFrame(
        [
            {
                'canonical_user_id': int(row['canonical_user_id']),
                'week_start': row['week_start'],
                'day_bucket': int(row['day_bucket']),
                'total_hours': float(row['total_hours'] or 0),
            }
            for row in hour_rows
        ]
    )

    pivot = (
        hours.pivot_table(
            index=['canonical_user_id', 'week_start'],
            columns='day_bucket',
            values='total_hours',
            aggfunc='sum',
            fill_value=0.0,
        )
        .reindex(columns=list(range(len(DAY_COLUMNS))), fill_value=0.0)
        .rename(columns=dict(enumerate(DAY_COLUMNS)))
        .reset_index()
    )
    pivot.columns.name = None
    return pivot


def build_hours_report(
    identities: Sequence[Mapping[str, Any]],
    hour_rows: Sequence[Mapping[str, Any]],
    this_week_start: date,
) -> HoursReport:
    """
    Assemble the three-period hours report.

    Args:
        identities: Identity rows from get_hours_report_identities_query.
        hour_rows: Snapshot rows from get_hours_report_query.
        this_week_start: Sunday labelled This Week.

    Returns:
        HoursReport with rows ordered by division, display order, name and
        period, and totals per period.
    """
    weeks = period_week_starts(this_week_start)
    report = HoursReport(this_week_start=this_week_start)

    if not identities:
        report.totals = {period: HoursPeriodTotals(week_period=period) for period in weeks}
        return report

    people = pd.DataFrame([{column: row[column] for column in IDENTITY_COLUMNS} for row in identities])
    people['weekly_goal'] = people['weekly_goal'].fillna(0).astype(float)
    people['canonical_user_id'] = people['canonical_user_id'].astype('int64')
    people = people.drop_duplicates(subset=['canonical_user_id'])

    periods = pd.DataFrame({
        'week_period': list(weeks.keys()),
        'week_start': list(weeks.values()),
        'period_order': [PERIOD_ORDER[period] for period in weeks],
    })

    grid = people.merge(periods, how='cross')
    grid = grid.merge(pivot_hours(hour_rows), on=['canonical_user_id', 'week_start'], how='left')
    grid[DAY_COLUMNS] = grid[DAY_COLUMNS].fillna(0.0).astype(float)
    grid['weekly_total'] = grid[DAY_COLUMNS].sum(axis=1)
    grid = grid.sort_values(['division_order', 'display_order', 'name', 'period_order'], kind='mergesort')

    value_columns = DAY_COLUMNS + ['weekly_total']

    report.rows = [
        HoursReportRow(
            canonical_user_id=int(record['canonical_user_id']),
            name=record['name'],
            division_id=int(record['division_id']),
            division_name=record['division_name'],
            weekly_goal=float(record['weekly_goal']),
            week_period=record['week_period'],
            **{column: round2(record[column]) for column in value_columns},
        )
        for record in grid.to_dict(orient='records')
    ]

    sums = grid.groupby('week_period')[value_columns + ['weekly_goal']].sum()
    totals: Dict[WeekPeriod, HoursPeriodTotals] = {}
    for period in weeks:
        if period in sums.index:
            period_sums = sums.loc[period]
            totals[period] = HoursPeriodTotals(
                week_period=period,
                total=round2(period_sums['weekly_total']),
                goal=round2(period_sums['weekly_goal']),
                **{column: round2(period_sums[column]) for column in DAY_COLUMNS},
            )
        else:
            totals[period] = HoursPeriodTotals(week_period=period)
    report.totals = totals
    return report


class HoursReportService:
    """Reads the pivoted hours report from the report store."""

    def __init__(self, db: Database) -> None:
        self.db = db

    async def get_report(self, week_offset: int = 0, today: Optional[date] = None) -> HoursReport:
        today = today or date.today()
        this_week_start = week_start_of(today) + timedelta(weeks=week_offset)
        week_starts: List[date] = list(period_week_starts(this_week_start).values())

        identities = await self.db.fetch(get_hours_report_identities_query())
        hour_rows = await self.db.fetch(get_hours_report_query(), week_starts)

        logger.info(
            f"Hours report for week {this_week_start}: "
            f"{len(identities)} recruiters, {len(hour_rows)} snapshot rows"
        )
        return build_hours_report(
            [dict(row) for row in identities],
            [dict(row) for row in hour_rows],
            this_week_start,
        )
