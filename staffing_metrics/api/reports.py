"""
FastAPI router for the report surface.

Endpoints:
- POST /stack-ranking/calculate: rank a week and save its snapshot
- GET  /stack-ranking/snapshot: a saved week's snapshot
- GET  /financials: bill/pay/GP per user for a week, without ranking
- POST /hours/calculate: recompute the rolling hours window
- POST /hours/calculate-date: recompute the day bucket holding one date
- GET  /hours/report: pivoted hours for Last/This/Next week

Weeks are identified by their Sunday. When week_start is omitted the
previous Sunday..Saturday week is used, matching the Monday job.
"""

import logging
from datetime import date, timedelta
from typing import List, Optional, Tuple

from fastapi import APIRouter, HTTPException, Query

from staffing_metrics.core.dependencies import (
    HoursAggregatorDep,
    HoursReportServiceDep,
    StackRankingServiceDep,
)
from staffing_metrics.models.schemas import (
    FinancialReport,
    HoursReport,
    HoursRunResult,
    StackRankingReport,
    WeeklyRankingSnapshot,
)
from staffing_metrics.services.weeks import last_week_boundaries, week_start_of


logger = logging.getLogger(__name__)

router = APIRouter()


def _resolve_week(week_start: Optional[date], week_end: Optional[date]) -> Tuple[date, date]:
    if week_start is None:
        return last_week_boundaries(date.today())
    if week_start != week_start_of(week_start):
        raise HTTPException(status_code=422, detail="week_start must be a Sunday")
    week_end = week_end or week_start + timedelta(days=6)
    if week_end < week_start:
        raise HTTPException(status_code=422, detail="week_end must not be before week_start")
    return week_start, week_end


# =============================================================================
# Stack Ranking
# =============================================================================


@router.post("/stack-ranking/calculate", response_model=StackRankingReport)
async def calculate_stack_ranking(
    service: StackRankingServiceDep,
    week_start: Optional[date] = Query(default=None, description="Sunday of the week"),
    week_end: Optional[date] = Query(default=None, description="Saturday of the week"),
) -> StackRankingReport:
    start, end = _resolve_week(week_start, week_end)
    logger.info(f"Calculating stack ranking for {start}..{end}")
    return await service.calculate_ranking(start, end)


@router.get("/stack-ranking/snapshot", response_model=List[WeeklyRankingSnapshot])
async def get_stack_ranking_snapshot(
    service: StackRankingServiceDep,
    week_start: date = Query(..., description="Sunday of the week"),
) -> List[WeeklyRankingSnapshot]:
    return await service.snapshots.get_week(week_start)


@router.get("/financials", response_model=FinancialReport)
async def get_financials(
    service: StackRankingServiceDep,
    week_start: Optional[date] = Query(default=None),
    week_end: Optional[date] = Query(default=None),
) -> FinancialReport:
    start, end = _resolve_week(week_start, week_end)
    return await service.get_financials(start, end)


# =============================================================================
# Hours
# =============================================================================


@router.post("/hours/calculate", response_model=HoursRunResult)
async def calculate_hours(aggregator: HoursAggregatorDep) -> HoursRunResult:
    return await aggregator.calculate_all_hours()


@router.post("/hours/calculate-date", response_model=HoursRunResult)
async def calculate_hours_for_date(
    aggregator: HoursAggregatorDep,
    day: date = Query(..., description="Date to recompute; Sunday and Monday recompute together"),
) -> HoursRunResult:
    logger.info(f"Recomputing hours for {day}")
    return await aggregator.calculate_hours_for_date(day)


@router.get("/hours/report", response_model=HoursReport)
async def get_hours_report(
    service: HoursReportServiceDep,
    week_offset: int = Query(default=0, ge=-4, le=1, description="Shift the window by whole weeks"),
) -> HoursReport:
    return await service.get_report(week_offset=week_offset)
