"""
Scheduled job entry points.

- run_weekly_stack_ranking: rank last week (Sunday..Saturday) and save its
  snapshot. Runs every Monday.
- run_hours_refresh: recompute the rolling three-week hours window. Runs
  several times a day.
- run_nightly_cleanup: prune ranking snapshots past 12 weeks and hours
  snapshots past 28 days.

Each job opens its own Databases for the invocation unless one is passed
in, and reports its outcome as a dict instead of raising, so the scheduler
can log it and move on. Trigger wiring lives outside this package.

Example:
    result = await run_weekly_stack_ranking()
    if not result['success']:
        logger.error(result['error'])
"""

import logging
from contextlib import asynccontextmanager
from datetime import date, timedelta
from typing import Any, AsyncIterator, Dict, Optional

from staffing_metrics.core.config import Settings, get_settings
from staffing_metrics.core.database import Databases, open_databases
from staffing_metrics.services import build_hours_aggregator, build_stack_ranking_service
from staffing_metrics.services.snapshots import HoursSnapshotStore, SnapshotStore
from staffing_metrics.services.weeks import last_week_boundaries


logger = logging.getLogger(__name__)


@asynccontextmanager
async def _job_databases(
    databases: Optional[Databases],
    settings: Settings,
) -> AsyncIterator[Databases]:
    if databases is not None:
        yield databases
        return
    async with open_databases(settings) as opened:
        yield opened


async def run_weekly_stack_ranking(
    today: Optional[date] = None,
    databases: Optional[Databases] = None,
    settings: Optional[Settings] = None,
) -> Dict[str, Any]:
    """
    Compute and snapshot the stack ranking for last week.

    Args:
        today: Reference date (default: today). Last week is the
            Sunday..Saturday before the week containing it.
        databases: Connected stores; opened for this call when omitted.
        settings: Defaults to get_settings().

    Returns:
        Dict with success, week_start, week_end, ranked, new_users,
        snapshot_saved and errors, or success=False with error.
    """
    settings = settings or get_settings()
    week_start, week_end = last_week_boundaries(today or date.today())

    try:
        async with _job_databases(databases, settings) as dbs:
            report = await build_stack_ranking_service(dbs, settings).calculate_ranking(week_start, week_end)
    except Exception as e:
        logger.exception(f"Weekly stack ranking failed for {week_start}")
        return {
            'success': False,
            'error': f'Stack ranking failed: {str(e)}',
            'week_start': str(week_start),
        }

    return {
        'success': not report.errors and report.reason is None,
        'week_start': str(week_start),
        'week_end': str(week_end),
        'ranked': len(report.rows),
        'new_users': report.new_users,
        'snapshot_saved': report.snapshot_saved,
        'reason': report.reason,
        'errors': report.errors,
    }


async def run_hours_refresh(
    today: Optional[date] = None,
    databases: Optional[Databases] = None,
    settings: Optional[Settings] = None,
) -> Dict[str, Any]:
    """Recompute hours for last, this and next week."""
    settings = settings or get_settings()

    try:
        async with _job_databases(databases, settings) as dbs:
            result = await build_hours_aggregator(dbs, settings).calculate_all_hours(today)
    except Exception as e:
        logger.exception("Hours refresh failed")
        return {'success': False, 'error': f'Hours refresh failed: {str(e)}'}

    return {
        'success': not result.errors and result.reason is None,
        'processed': result.processed,
        'new_recruiters': result.new_recruiters,
        'rollover': result.rollover,
        'reason': result.reason,
        'errors': result.errors,
    }


async def run_nightly_cleanup(
    today: Optional[date] = None,
    databases: Optional[Databases] = None,
    settings: Optional[Settings] = None,
) -> Dict[str, Any]:
    """Prune ranking and hours snapshots past their retention."""
    settings = settings or get_settings()
    today = today or date.today()
    ranking_cutoff = today - timedelta(weeks=settings.ranking_retention_weeks)
    hours_cutoff = today - timedelta(days=settings.hours_retention_days)

    try:
        async with _job_databases(databases, settings) as dbs:
            ranking_deleted = await SnapshotStore(dbs.reports).prune(ranking_cutoff)
            hours_deleted = await HoursSnapshotStore(dbs.reports).purge(hours_cutoff)
    except Exception as e:
        logger.exception("Nightly cleanup failed")
        return {'success': False, 'error': f'Cleanup failed: {str(e)}'}

    logger.info(f"Nightly cleanup removed {ranking_deleted} ranking and {hours_deleted} hours rows")
    return {
        'success': True,
        'ranking_rows_deleted': ranking_deleted,
        'hours_rows_deleted': hours_deleted,
        'ranking_cutoff': str(ranking_cutoff),
        'hours_cutoff': str(hours_cutoff),
    }
