"""
Package initialization for Staffing Metrics models.

Re-exports enums and schemas so other modules can import them from
staffing_metrics.models directly.
"""

from staffing_metrics.models.enums import (
    AtsSystem,
    RecruiterRole,
    BullhornPlacementStatus,
    WeekPeriod,
    DayBucket,
)

from staffing_metrics.models.schemas import (
    # Identity
    UserConfig,
    UserConfigCreate,
    UserConfigUpdate,
    Division,
    DivisionAtsMapping,
    # ATS rows
    SymplrPlacementRecord,
    BullhornPlacementRecord,
    PlacementFact,
    ShiftFact,
    # Reports
    RankedRow,
    RankingTotals,
    StackRankingReport,
    FinancialRow,
    FinancialTotals,
    FinancialReport,
    # Snapshots
    WeeklyRankingSnapshot,
    WeeklyHoursSnapshot,
    # Hours
    HoursRunResult,
    DiscoveryResult,
    HoursReportRow,
    HoursPeriodTotals,
    HoursReport,
)

__all__ = [
    'AtsSystem',
    'RecruiterRole',
    'BullhornPlacementStatus',
    'WeekPeriod',
    'DayBucket',
    'UserConfig',
    'UserConfigCreate',
    'UserConfigUpdate',
    'Division',
    'DivisionAtsMapping',
    'SymplrPlacementRecord',
    'BullhornPlacementRecord',
    'PlacementFact',
    'ShiftFact',
    'RankedRow',
    'RankingTotals',
    'StackRankingReport',
    'FinancialRow',
    'FinancialTotals',
    'FinancialReport',
    'WeeklyRankingSnapshot',
    'WeeklyHoursSnapshot',
    'HoursRunResult',
    'DiscoveryResult',
    'HoursReportRow',
    'HoursPeriodTotals',
    'HoursReport',
]
