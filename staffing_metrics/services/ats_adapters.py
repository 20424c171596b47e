"""
ATS Placement Adapters for the Symplr and Bullhorn mirrors.

Each adapter turns mirror rows into ATS-tagged PlacementFacts for one report
week. Rows are validated through per-ATS pydantic DTOs first, so a malformed
mirror row fails loudly instead of flowing through as a dict.

Symplr:
    Bill/pay totals are pre-computed per order and summed per recruiter in
    SQL. The adapter also serves filled orders (ShiftFacts) to the hours
    pipeline.

Bullhorn:
    Placements carry only rates. For each placement the date range is
    clamped to the week and the weekdays (Mon-Fri) in the clamped range are
    counted in closed form:

        bill = bill_rate * hours_per_day * weekdays
        pay  = pay_rate  * hours_per_day * weekdays

    hours_per_day defaults to 8. Placements with no overlap or no weekdays
    are skipped. Amounts are summed per recruiter; head_count is the number
    of qualifying placements.

Any query failure is raised as UpstreamUnavailableError naming the mirror.
"""

import asyncio
import logging
from datetime import date, timedelta
from typing import Dict, List, Optional, Tuple

import asyncpg

from staffing_metrics.core.database import Database
from staffing_metrics.core.errors import UpstreamUnavailableError
from staffing_metrics.models.enums import AtsSystem
from staffing_metrics.models.schemas import (
    BullhornPlacementRecord,
    PlacementFact,
    ShiftFact,
    SymplrPlacementRecord,
)
from staffing_metrics.sql.placement_queries import (
    BULLHORN_BILLABLE_STATUSES,
    get_bullhorn_placements_query,
    get_bullhorn_user_department_query,
    get_bullhorn_user_title_query,
    get_symplr_orders_query,
    get_symplr_placements_query,
    get_symplr_user_title_query,
)


logger = logging.getLogger(__name__)


# Errors that mean the mirror could not be queried
QUERY_ERRORS = (
    asyncpg.PostgresError,
    asyncpg.InterfaceError,
    OSError,
    asyncio.TimeoutError,
)

DEFAULT_HOURS_PER_DAY = 8.0


# =============================================================================
# Date Arithmetic
# =============================================================================


def clamp_to_week(
    date_begin: date,
    date_end: Optional[date],
    week_start: date,
    week_end: date,
) -> Optional[Tuple[date, date]]:
    """
    Intersect a placement's date range with the report week.

    Args:
        date_begin: First day of the placement.
        date_end: Last day of the placement, None when open-ended.
        week_start: Report week Sunday.
        week_end: Report week Saturday.

    Returns:
        (start, end) of the overlap, or None when there is none.
    """
    start = max(date_begin, week_start)
    end = week_end if date_end is None else min(date_end, week_end)
    if start > end:
        return None
    return start, end


def count_weekdays(start: date, end: date) -> int:
    """
    Count Monday-Friday dates in the inclusive range [start, end].

    Closed form: every Saturday/Sunday pair crossed removes two days. Weeks
    are anchored on the Sunday on or before start, so a range starting on
    Sunday or ending on Saturday holds one unpaired weekend day.

    Example:
        >>> count_weekdays(date(2024, 1, 7), date(2024, 1, 13))  # Sun..Sat
        5
        >>> count_weekdays(date(2024, 1, 9), date(2024, 1, 12))  # Tue..Fri
        4
    """
    if end < start:
        return 0

    total_days = (end - start).days + 1
    sunday_before_start = start - timedelta(days=(start.weekday() + 1) % 7)
    weeks_crossed = (end - sunday_before_start).days // 7

    weekdays = total_days - 2 * weeks_crossed
    if start.weekday() == 6:
        weekdays -= 1
    if end.weekday() == 5:
        weekdays -= 1
    return weekdays


def bullhorn_amounts(
    record: BullhornPlacementRecord,
    week_start: date,
    week_end: date,
    default_hours_per_day: float = DEFAULT_HOURS_PER_DAY,
) -> Optional[Tuple[int, float, float]]:
    """
    Weekdays, bill and pay a placement contributes to one week.

    Returns:
        (weekdays, bill, pay), or None when the placement contributes
        nothing that week.
    """
    clamped = clamp_to_week(record.date_begin, record.date_end, week_start, week_end)
    if clamped is None:
        return None

    weekdays = count_weekdays(*clamped)
    if weekdays <= 0:
        return None

    hours_per_day = record.hours_per_day or default_hours_per_day
    bill = record.bill_rate * hours_per_day * weekdays
    pay = record.pay_rate * hours_per_day * weekdays
    return weekdays, bill, pay


# =============================================================================
# Symplr Adapter
# =============================================================================


class SymplrAdapter:
    """Symplr mirror: placements, shift orders and user titles."""

    ats_system = AtsSystem.SYMPLR

    def __init__(self, db: Database) -> None:
        self.db = db

    async def get_placements(self, week_start: date, week_end: date) -> List[PlacementFact]:
        try:
            rows = await self.db.fetch(get_symplr_placements_query(), week_start, week_end)
        except QUERY_ERRORS as e:
            raise UpstreamUnavailableError("Symplr", str(e)) from e

        facts = []
        for row in rows:
            record = SymplrPlacementRecord.model_validate(dict(row))
            facts.append(PlacementFact(
                ats_system=AtsSystem.SYMPLR,
                ats_local_id=record.recruiter_user_id,
                name=record.recruiter_name,
                division_id=record.division_id,
                head_count=record.head_count,
                total_bill_amount=record.total_bill_amount,
                total_pay_amount=record.total_pay_amount,
            ))

        logger.info(f"Symplr returned {len(facts)} recruiters for {week_start}..{week_end}")
        return facts

    async def get_orders(self, date_start: date, date_end: date) -> List[ShiftFact]:
        try:
            rows = await self.db.fetch(get_symplr_orders_query(), date_start, date_end)
        except QUERY_ERRORS as e:
            raise UpstreamUnavailableError("Symplr", str(e)) from e
        return [ShiftFact.model_validate(dict(row)) for row in rows]

    async def get_title(self, ats_local_id: int) -> Optional[str]:
        try:
            row = await self.db.fetchrow(get_symplr_user_title_query(), ats_local_id)
        except QUERY_ERRORS as e:
            raise UpstreamUnavailableError("Symplr", str(e)) from e
        return row['title'] if row else None


# =============================================================================
# Bullhorn Adapter
# =============================================================================


class BullhornAdapter:
    """Bullhorn mirror: placements, user titles and departments."""

    ats_system = AtsSystem.BULLHORN

    def __init__(
        self,
        db: Database,
        default_hours_per_day: float = DEFAULT_HOURS_PER_DAY,
    ) -> None:
        self.db = db
        self.default_hours_per_day = default_hours_per_day

    async def fetch_records(self, week_start: date, week_end: date) -> List[BullhornPlacementRecord]:
        try:
            rows = await self.db.fetch(
                get_bullhorn_placements_query(),
                week_start,
                week_end,
                list(BULLHORN_BILLABLE_STATUSES),
            )
        except QUERY_ERRORS as e:
            raise UpstreamUnavailableError("Bullhorn", str(e)) from e
        return [BullhornPlacementRecord.model_validate(dict(row)) for row in rows]

    async def get_placements(self, week_start: date, week_end: date) -> List[PlacementFact]:
        records = await self.fetch_records(week_start, week_end)
        return self.to_facts(records, week_start, week_end)

    def to_facts(
        self,
        records: List[BullhornPlacementRecord],
        week_start: date,
        week_end: date,
    ) -> List[PlacementFact]:
        """Group qualifying placements into one fact per (recruiter, division)."""
        grouped: Dict[Tuple[int, int], Dict] = {}
        skipped = 0

        for record in records:
            amounts = bullhorn_amounts(record, week_start, week_end, self.default_hours_per_day)
            if amounts is None:
                skipped += 1
                continue
            _, bill, pay = amounts

            key = (record.recruiter_user_id, record.division_id)
            entry = grouped.setdefault(key, {
                'name': record.recruiter_name,
                'head_count': 0,
                'bill': 0.0,
                'pay': 0.0,
            })
            entry['head_count'] += 1
            entry['bill'] += bill
            entry['pay'] += pay

        if skipped:
            logger.debug(f"Skipped {skipped} Bullhorn placements with no weekdays in {week_start}..{week_end}")

        return [
            PlacementFact(
                ats_system=AtsSystem.BULLHORN,
                ats_local_id=recruiter_id,
                name=entry['name'],
                division_id=division_id,
                head_count=entry['head_count'],
                total_bill_amount=entry['bill'],
                total_pay_amount=entry['pay'],
            )
            for (recruiter_id, division_id), entry in grouped.items()
        ]

    async def get_title(self, ats_local_id: int) -> Optional[str]:
        try:
            row = await self.db.fetchrow(get_bullhorn_user_title_query(), ats_local_id)
        except QUERY_ERRORS as e:
            raise UpstreamUnavailableError("Bullhorn", str(e)) from e
        return row['title'] if row else None

    async def get_department(self, ats_local_id: int) -> Optional[str]:
        try:
            row = await self.db.fetchrow(get_bullhorn_user_department_query(), ats_local_id)
        except QUERY_ERRORS as e:
            raise UpstreamUnavailableError("Bullhorn", str(e)) from e
        return row['department_name'] if row else None
