"""
Services package for the Staffing Metrics backend.

Components, leaf-first:
    division_router: DivisionRouter, which ATS owns each division
    ats_adapters: SymplrAdapter / BullhornAdapter and the weekday arithmetic
    user_config: UserConfigRepository over identities and divisions
    identity: IdentityResolver with auto-discovery and role inference
    ranking: aggregation, ranking, financials and StackRankingService
    snapshots: SnapshotStore (ranking) and HoursSnapshotStore (hours)
    hours: HoursAggregator for the rolling three-week hours window
    hours_report: pandas pivot of hours snapshots into the report view
    weeks: Sunday-based week arithmetic

The build_* factories wire services from a connected Databases container
and Settings; callers own the Databases lifetime.

Usage:
    async with open_databases(settings) as databases:
        service = build_stack_ranking_service(databases, settings)
        report = await service.calculate_ranking(week_start, week_end)
"""

from staffing_metrics.core.config import Settings
from staffing_metrics.core.database import Databases
from staffing_metrics.models.enums import AtsSystem

from staffing_metrics.services.division_router import DivisionRouter
from staffing_metrics.services.ats_adapters import (
    BullhornAdapter,
    SymplrAdapter,
    bullhorn_amounts,
    clamp_to_week,
    count_weekdays,
)
from staffing_metrics.services.user_config import (
    UserConfigRepository,
    compute_canonical_user_id,
)
from staffing_metrics.services.identity import (
    DiscoveryDefaults,
    IdentityResolver,
    hours_discovery_defaults,
    infer_role,
)
from staffing_metrics.services.ranking import (
    StackRankingService,
    aggregate_facts,
    financial_rows,
    financial_totals,
    rank_aggregates,
    ranking_totals,
    round2,
)
from staffing_metrics.services.snapshots import HoursSnapshotStore, SnapshotStore
from staffing_metrics.services.hours import HoursAggregator, worked_hours
from staffing_metrics.services.hours_report import HoursReportService, build_hours_report
from staffing_metrics.services.weeks import (
    day_bucket,
    hours_window,
    last_week_boundaries,
    week_start_of,
)


# =============================================================================
# Factories
# =============================================================================


def build_adapters(databases: Databases, settings: Settings) -> dict:
    return {
        AtsSystem.SYMPLR: SymplrAdapter(databases.symplr),
        AtsSystem.BULLHORN: BullhornAdapter(
            databases.bullhorn,
            default_hours_per_day=settings.default_hours_per_day,
        ),
    }


def build_stack_ranking_service(databases: Databases, settings: Settings) -> StackRankingService:
    return StackRankingService(
        users=UserConfigRepository(databases.reports),
        adapters=build_adapters(databases, settings),
        snapshots=SnapshotStore(
            databases.reports,
            batch_size=settings.snapshot_batch_size,
            week_lock=settings.snapshot_week_lock,
        ),
        default_division_id=settings.default_division_id,
        retention_weeks=settings.ranking_retention_weeks,
    )


def build_hours_aggregator(databases: Databases, settings: Settings) -> HoursAggregator:
    return HoursAggregator(
        users=UserConfigRepository(databases.reports),
        symplr=SymplrAdapter(databases.symplr),
        store=HoursSnapshotStore(databases.reports, batch_size=settings.snapshot_batch_size),
        default_division_id=settings.default_division_id,
        discovered_display_order=settings.discovered_display_order,
        lookup_profile=settings.hours_discovery_lookup_title,
        retention_days=settings.hours_retention_days,
        discovery_lookback_days=settings.discovery_lookback_days,
    )


__all__ = [
    'DivisionRouter',
    'SymplrAdapter',
    'BullhornAdapter',
    'bullhorn_amounts',
    'clamp_to_week',
    'count_weekdays',
    'UserConfigRepository',
    'compute_canonical_user_id',
    'DiscoveryDefaults',
    'IdentityResolver',
    'hours_discovery_defaults',
    'infer_role',
    'StackRankingService',
    'aggregate_facts',
    'financial_rows',
    'financial_totals',
    'rank_aggregates',
    'ranking_totals',
    'round2',
    'SnapshotStore',
    'HoursSnapshotStore',
    'HoursAggregator',
    'worked_hours',
    'HoursReportService',
    'build_hours_report',
    'day_bucket',
    'hours_window',
    'last_week_boundaries',
    'week_start_of',
    'build_adapters',
    'build_stack_ranking_service',
    'build_hours_aggregator',
]
