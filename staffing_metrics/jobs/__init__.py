"""
Scheduled jobs for Staffing Metrics.

- run_weekly_stack_ranking: every Monday, ranks last Sunday..Saturday
- run_hours_refresh: recomputes the rolling hours window
- run_nightly_cleanup: prunes snapshots past retention

Recomputing a week is idempotent: the ranking snapshot for a week is
replaced wholesale and hours rows are upserted by key, so a retried job
never duplicates rows.

Usage:
    from staffing_metrics.jobs import run_weekly_stack_ranking

    result = await run_weekly_stack_ranking()
"""

from staffing_metrics.jobs.scheduled import (
    run_weekly_stack_ranking,
    run_hours_refresh,
    run_nightly_cleanup,
)

__all__ = [
    'run_weekly_stack_ranking',
    'run_hours_refresh',
    'run_nightly_cleanup',
]
