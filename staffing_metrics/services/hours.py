"""
Hours Aggregator: per-day worked hours per canonical recruiter.

calculate_all_hours() walks every date from last week's Sunday to next
week's Saturday, one date at a time:

1. fetch filled Symplr orders (shifts) for the date
2. keep shifts whose division is mapped to Symplr
3. resolve the staffing specialist to a canonical identity, discovering
   unseen users with hours-report defaults
4. worked hours = (shift_end - shift_start in minutes - lunch_minutes) / 60
5. upsert totals keyed by (canonical_user_id, week_start, day_bucket)

Dates run sequentially: discovery on one date must be visible to the next,
or the same user would be created twice. Sunday and Monday share a bucket,
so totals are accumulated across the run and Monday's upsert carries
Sunday's hours. A date's hours join the running totals only once its upsert
succeeded.

After the window: purge rows past retention and, when every date succeeded,
clear rows of the three window weeks this run did not refresh, so cancelled
shifts drop out. The run state records which week was This Week, to report
calendar rollover.

calculate_hours_for_date() recomputes the single day bucket holding one
date; discover_recruiters() adds unseen staffing specialists from recent
orders without touching hours.
"""

import logging
from datetime import date, timedelta
from typing import Any, Dict, List, Optional, Tuple

from staffing_metrics.core.errors import ConfigurationMissingError, UpstreamUnavailableError
from staffing_metrics.models.enums import AtsSystem, DayBucket
from staffing_metrics.models.schemas import (
    DiscoveryResult,
    HoursRunResult,
    ShiftFact,
    WeeklyHoursSnapshot,
)
from staffing_metrics.services.division_router import DivisionRouter, load_division_router
from staffing_metrics.services.identity import IdentityResolver, hours_discovery_defaults
from staffing_metrics.services.ranking import canonical_id, round2
from staffing_metrics.services.snapshots import HoursSnapshotStore
from staffing_metrics.services.user_config import UserConfigRepository
from staffing_metrics.services.weeks import day_bucket, hours_window, period_week_starts, week_start_of


logger = logging.getLogger(__name__)


def worked_hours(shift: ShiftFact) -> float:
    """
    Hours worked on one shift, net of the client's default lunch.

    A shift ending before it starts yields negative hours; it is not clamped.
    """
    minutes = (shift.shift_end - shift.shift_start).total_seconds() / 60
    return round2((minutes - shift.lunch_minutes) / 60)


def bucket_dates(day: date) -> List[date]:
    """Every date feeding the day bucket that holds day."""
    if day_bucket(day) == DayBucket.SUN_MON:
        sunday = week_start_of(day)
        return [sunday, sunday + timedelta(days=1)]
    return [day]


HoursKey = Tuple[int, date, int]


class HoursAggregator:
    """
    Rolling three-week hours pipeline.

    Args:
        users: Identity repository.
        symplr: Symplr adapter (get_orders, get_title).
        store: Hours snapshot store.
        default_division_id: Division for discovered users with none.
        discovered_display_order: display_order for discovered users.
        lookup_profile: Fetch title during discovery.
        retention_days: Hours rows older than this are purged.
        discovery_lookback_days: Order history scanned by discover_recruiters.
    """

    def __init__(
        self,
        users: UserConfigRepository,
        symplr: Any,
        store: HoursSnapshotStore,
        default_division_id: int = 1,
        discovered_display_order: int = 99,
        lookup_profile: bool = False,
        retention_days: int = 28,
        discovery_lookback_days: int = 14,
    ) -> None:
        self.users = users
        self.symplr = symplr
        self.store = store
        self.default_division_id = default_division_id
        self.discovered_display_order = discovered_display_order
        self.lookup_profile = lookup_profile
        self.retention_days = retention_days
        self.discovery_lookback_days = discovery_lookback_days

    def _new_resolver(self) -> IdentityResolver:
        return IdentityResolver(
            self.users,
            {AtsSystem.SYMPLR: self.symplr},
            defaults=hours_discovery_defaults(self.discovered_display_order),
            default_division_id=self.default_division_id,
            lookup_profile=self.lookup_profile,
        )

    async def _prepare(self) -> Tuple[DivisionRouter, IdentityResolver]:
        router = await load_division_router(self.users, require=AtsSystem.SYMPLR)
        resolver = self._new_resolver()
        resolver.prime(await self.users.list_users(include_inactive=True))
        return router, resolver

    async def _process_date(
        self,
        day: date,
        router: DivisionRouter,
        resolver: IdentityResolver,
        totals: Dict[HoursKey, float],
    ) -> int:
        shifts = router.filter_shifts(await self.symplr.get_orders(day, day))

        week_start = week_start_of(day)
        bucket = day_bucket(day)
        day_hours: Dict[HoursKey, float] = {}

        for shift in shifts:
            identity = await resolver.resolve_or_create(
                AtsSystem.SYMPLR,
                shift.ats_local_id,
                shift.specialist_name,
                shift.division_id,
            )
            if identity is None:
                continue
            key = (canonical_id(identity), week_start, bucket)
            day_hours[key] = day_hours.get(key, 0.0) + worked_hours(shift)

        snapshots = [
            WeeklyHoursSnapshot(
                canonical_user_id=user_id,
                week_start=key_week,
                day_bucket=key_bucket,
                total_hours=round2(totals.get((user_id, key_week, key_bucket), 0.0) + hours),
            )
            for (user_id, key_week, key_bucket), hours in day_hours.items()
        ]
        await self.store.upsert_batch(snapshots)

        for key, hours in day_hours.items():
            totals[key] = totals.get(key, 0.0) + hours
        return len(shifts)

    async def _process_dates(
        self,
        days: List[date],
        router: DivisionRouter,
        resolver: IdentityResolver,
        result: HoursRunResult,
    ) -> None:
        totals: Dict[HoursKey, float] = {}
        for day in days:
            try:
                shift_count = await self._process_date(day, router, resolver, totals)
                result.processed += 1
                logger.debug(f"Processed {shift_count} shifts for {day}")
            except Exception as e:
                logger.exception(f"Error processing hours for {day}")
                result.errors.append(f"{day.isoformat()}: {e}")

        result.errors.extend(resolver.errors)
        result.new_recruiters = [identity.name for identity in resolver.created]

    async def calculate_all_hours(self, today: Optional[date] = None) -> HoursRunResult:
        """
        Recompute hours for the rolling window around today.

        A failed date is recorded in errors and the loop moves on; rows not
        refreshed are then kept, since their date may simply have failed.
        Failing to read the mappings or identities aborts the run.
        """
        today = today or date.today()
        result = HoursRunResult()

        try:
            router, resolver = await self._prepare()
        except ConfigurationMissingError as e:
            logger.warning(f"Hours refresh skipped: {e.reason}")
            result.reason = e.reason
            return result

        run_started_at = await self.store.store_now()
        previous_week = await self.store.get_run_state()
        this_week = week_start_of(today)

        await self._process_dates(hours_window(today), router, resolver, result)

        await self.store.purge(today - timedelta(days=self.retention_days))

        result.rollover = previous_week is not None and previous_week != this_week
        if result.errors:
            # Run state is left alone so a rollover is reported again next run
            logger.warning(f"Hours refresh had {len(result.errors)} errors; unrefreshed rows kept")
        else:
            for week_start in period_week_starts(this_week).values():
                await self.store.clear_week(week_start, older_than=run_started_at)
            if previous_week != this_week:
                await self.store.save_run_state(this_week)

        logger.info(
            f"Hours refresh: {result.processed} dates processed, "
            f"{len(result.new_recruiters)} new recruiters, {len(result.errors)} errors"
        )
        return result

    async def calculate_hours_for_date(self, day: date) -> HoursRunResult:
        """
        Recompute the day bucket holding one date.

        Sunday and Monday share a bucket, so either of them recomputes both.
        Bucket rows not refreshed are cleared when every date succeeded.
        Purge and run state are left to calculate_all_hours.
        """
        result = HoursRunResult()

        try:
            router, resolver = await self._prepare()
        except ConfigurationMissingError as e:
            logger.warning(f"Hours recompute for {day} skipped: {e.reason}")
            result.reason = e.reason
            return result

        run_started_at = await self.store.store_now()
        await self._process_dates(bucket_dates(day), router, resolver, result)

        if not result.errors:
            await self.store.clear_bucket(week_start_of(day), day_bucket(day), older_than=run_started_at)

        logger.info(f"Hours recompute for {day}: {result.processed} dates, {len(result.errors)} errors")
        return result

    async def discover_recruiters(self, today: Optional[date] = None) -> DiscoveryResult:
        """
        Add identities for staffing specialists seen on recent Symplr orders.

        Orders from the last discovery_lookback_days days are scanned; only
        shifts in Symplr-mapped divisions count. Specialists with an identity
        already, active or not, are skipped.
        """
        today = today or date.today()
        since = today - timedelta(days=self.discovery_lookback_days)
        result = DiscoveryResult(date_start=since, date_end=today)

        try:
            router, resolver = await self._prepare()
        except ConfigurationMissingError as e:
            logger.warning(f"Recruiter discovery skipped: {e.reason}")
            result.reason = e.reason
            return result

        try:
            shifts = router.filter_shifts(await self.symplr.get_orders(since, today))
        except UpstreamUnavailableError as e:
            logger.error(f"Recruiter discovery failed reading orders: {e}")
            result.errors.append(str(e))
            return result

        specialists: Dict[int, ShiftFact] = {}
        for shift in shifts:
            specialists.setdefault(shift.ats_local_id, shift)

        for ats_local_id, shift in specialists.items():
            await resolver.resolve_or_create(
                AtsSystem.SYMPLR, ats_local_id, shift.specialist_name, shift.division_id
            )

        result.discovered = len(specialists)
        result.added = [identity.name for identity in resolver.created]
        result.skipped = result.discovered - len(result.added)
        result.errors = list(resolver.errors)

        logger.info(
            f"Recruiter discovery {since}..{today}: {result.discovered} specialists, "
            f"{len(result.added)} added, {len(result.errors)} errors"
        )
        return result
