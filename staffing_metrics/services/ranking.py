"""
Stack ranking: aggregation, ranking and financial reports for one week.

Pipeline (calculate_ranking):
1. Read division-to-ATS mappings and build the Division Router
2. Query the Symplr and Bullhorn adapters concurrently
3. Drop facts reported under a division not mapped to their ATS
4. Resolve every fact to a canonical identity, discovering new users
5. Aggregate facts per canonical_user_id
6. Compute revenue, GM$ and GP%, sort by GM$ and assign dense ranks
7. Diff against the prior week's snapshot
8. Replace this week's snapshot and prune old weeks

Metrics:
- revenue = total_bill_amount
- gm_dollars = total_bill_amount - total_pay_amount
- gp_pct = gm_dollars / revenue * 100, or 0 without revenue

All three are rounded half-up to 2 places when a row is built; accumulation
keeps full precision. Equal GM$ ties break on canonical_user_id ascending.

get_financials runs the same discovery and aggregation with no ranking, no
on_stack_ranking filter and no snapshot.

An adapter failure is recorded in the report's errors and the snapshot is
not saved, so a partial week never replaces a complete one.
"""

import asyncio
import logging
from dataclasses import dataclass
from datetime import date, timedelta
from decimal import ROUND_HALF_UP, Decimal
from typing import Dict, Iterable, List, Mapping, Set, Tuple

from staffing_metrics.core.errors import ConfigurationMissingError
from staffing_metrics.models.enums import AtsSystem
from staffing_metrics.models.schemas import (
    FinancialReport,
    FinancialRow,
    FinancialTotals,
    PlacementFact,
    RankedRow,
    RankingTotals,
    StackRankingReport,
    UserConfig,
)
from staffing_metrics.services.division_router import DivisionRouter, load_division_router
from staffing_metrics.services.identity import IdentityResolver
from staffing_metrics.services.snapshots import SnapshotStore
from staffing_metrics.services.user_config import UserConfigRepository, compute_canonical_user_id
from staffing_metrics.services.weeks import prior_week_start


logger = logging.getLogger(__name__)


NO_IDENTITIES_REASON = "No active identities matched this week's placements"


def round2(value: float) -> float:
    """
    Round half-up to 2 decimal places.

    Example:
        >>> round2(2.675)
        2.68
        >>> round2(38.88888)
        38.89
    """
    return float(Decimal(str(value)).quantize(Decimal('0.01'), rounding=ROUND_HALF_UP))


def canonical_id(identity: UserConfig) -> int:
    if identity.canonical_user_id is not None:
        return identity.canonical_user_id
    return compute_canonical_user_id(identity.symplr_id, identity.bullhorn_id)


# =============================================================================
# Aggregation
# =============================================================================


@dataclass
class Aggregate:
    """Accumulated facts of one canonical identity for a week."""
    identity: UserConfig
    head_count: int = 0
    total_bill_amount: float = 0.0
    total_pay_amount: float = 0.0


def aggregate_facts(
    facts: Iterable[PlacementFact],
    resolver: IdentityResolver,
) -> Dict[int, Aggregate]:
    """
    Sum facts per canonical_user_id through the resolver's already-resolved map.

    Facts whose ATS id has no active identity are dropped. Two active
    identities can share a canonical_user_id when one's Symplr id equals the
    other's Bullhorn id; their facts are merged under the identity with the
    lowest config_id, so each canonical id yields one row.
    """
    aggregates: Dict[int, Aggregate] = {}
    collisions: Set[Tuple[int, int]] = set()
    dropped = 0

    for fact in facts:
        identity = resolver.lookup(fact.ats_system, fact.ats_local_id)
        if identity is None:
            dropped += 1
            continue
        key = canonical_id(identity)
        entry = aggregates.setdefault(key, Aggregate(identity=identity))
        if entry.identity.config_id != identity.config_id:
            pair = tuple(sorted((entry.identity.config_id, identity.config_id)))
            if pair not in collisions:
                collisions.add(pair)
                logger.warning(
                    f"User configs {pair[0]} and {pair[1]} share canonical_user_id {key}; "
                    f"merging under config {pair[0]}"
                )
            if identity.config_id < entry.identity.config_id:
                entry.identity = identity
        entry.head_count += fact.head_count
        entry.total_bill_amount += fact.total_bill_amount
        entry.total_pay_amount += fact.total_pay_amount

    if dropped:
        logger.info(f"Dropped {dropped} facts with no active identity")
    return aggregates


# =============================================================================
# Ranking
# =============================================================================


def rank_aggregates(
    aggregates: Iterable[Aggregate],
    division_names: Mapping[int, str],
    prior_ranks: Mapping[int, int],
) -> List[RankedRow]:
    """
    Build dense-ranked rows for identities on the stack ranking.

    Args:
        aggregates: Per-identity accumulated facts.
        division_names: division_id -> division_name.
        prior_ranks: canonical_user_id -> rank in the prior week's snapshot.

    Returns:
        Rows sorted by GM$ descending with ranks 1..N.
    """
    unranked = []
    for entry in aggregates:
        identity = entry.identity
        if not identity.on_stack_ranking:
            continue

        revenue = entry.total_bill_amount
        gm_dollars = entry.total_bill_amount - entry.total_pay_amount
        gp_pct = gm_dollars / revenue * 100 if revenue > 0 else 0.0

        unranked.append({
            'canonical_user_id': canonical_id(identity),
            'name': identity.name,
            'division_name': division_names.get(identity.division_id, ""),
            'head_count': entry.head_count,
            'gross_margin_dollars': round2(gm_dollars),
            'gross_profit_pct': round2(gp_pct),
            'revenue': round2(revenue),
        })

    unranked.sort(key=lambda row: (-row['gross_margin_dollars'], row['canonical_user_id']))

    rows = []
    for index, row in enumerate(unranked):
        rank = index + 1
        prior_rank = prior_ranks.get(row['canonical_user_id'])
        rows.append(RankedRow(
            **row,
            rank=rank,
            prior_week_rank=prior_rank,
            rank_change=prior_rank - rank if prior_rank is not None else None,
        ))
    return rows


def ranking_totals(rows: Iterable[RankedRow]) -> RankingTotals:
    rows = list(rows)
    total_gm = round2(sum(row.gross_margin_dollars for row in rows))
    total_revenue = round2(sum(row.revenue for row in rows))
    return RankingTotals(
        total_head_count=sum(row.head_count for row in rows),
        total_gm_dollars=total_gm,
        total_revenue=total_revenue,
        overall_gp_pct=round2(total_gm / total_revenue * 100) if total_revenue > 0 else 0.0,
    )


# =============================================================================
# Financials
# =============================================================================


def financial_rows(
    aggregates: Iterable[Aggregate],
    division_names: Mapping[int, str],
) -> List[FinancialRow]:
    rows = []
    for entry in aggregates:
        identity = entry.identity
        bill = entry.total_bill_amount
        gp_dollars = bill - entry.total_pay_amount
        gm_pct = gp_dollars / bill * 100 if bill > 0 else 0.0
        rows.append(FinancialRow(
            canonical_user_id=canonical_id(identity),
            name=identity.name,
            division_name=division_names.get(identity.division_id, ""),
            head_count=entry.head_count,
            total_bill=round2(bill),
            total_pay=round2(entry.total_pay_amount),
            gross_profit_dollars=round2(gp_dollars),
            gross_margin_pct=round2(gm_pct),
        ))

    rows.sort(key=lambda row: (-row.gross_profit_dollars, row.canonical_user_id))
    return rows


def financial_totals(rows: Iterable[FinancialRow]) -> FinancialTotals:
    rows = list(rows)
    total_bill = round2(sum(row.total_bill for row in rows))
    total_pay = round2(sum(row.total_pay for row in rows))
    total_gp = round2(total_bill - total_pay)
    return FinancialTotals(
        total_head_count=sum(row.head_count for row in rows),
        total_bill=total_bill,
        total_pay=total_pay,
        total_gp_dollars=total_gp,
        overall_gm_pct=round2(total_gp / total_bill * 100) if total_bill > 0 else 0.0,
    )


# =============================================================================
# Service
# =============================================================================


class StackRankingService:
    """
    Report surface for the weekly stack ranking and financials.

    Args:
        users: Identity repository on the report store.
        adapters: ATS adapters keyed by system.
        snapshots: Ranking snapshot store.
        default_division_id: Division for discovered users with none.
        retention_weeks: Snapshot weeks kept after a save.
    """

    def __init__(
        self,
        users: UserConfigRepository,
        adapters: Mapping[AtsSystem, object],
        snapshots: SnapshotStore,
        default_division_id: int = 1,
        retention_weeks: int = 12,
    ) -> None:
        self.users = users
        self.adapters = adapters
        self.snapshots = snapshots
        self.default_division_id = default_division_id
        self.retention_weeks = retention_weeks

    def _new_resolver(self) -> IdentityResolver:
        return IdentityResolver(
            self.users,
            self.adapters,
            default_division_id=self.default_division_id,
        )

    async def _collect_facts(
        self,
        router: DivisionRouter,
        week_start: date,
        week_end: date,
    ) -> Tuple[List[PlacementFact], List[str]]:
        """
        Query the needed adapters concurrently and keep authoritative facts.

        Returns:
            (facts, errors); a failed adapter contributes an error and no facts.
        """
        systems = [ats for ats in AtsSystem if router.has_divisions(ats)]
        results = await asyncio.gather(
            *(self.adapters[ats].get_placements(week_start, week_end) for ats in systems),
            return_exceptions=True,
        )

        facts: List[PlacementFact] = []
        errors: List[str] = []
        for ats, result in zip(systems, results):
            if isinstance(result, BaseException):
                logger.error(f"Error querying {ats.value} placements for {week_start}: {result}")
                errors.append(f"{ats.value}: {result}")
                continue
            facts.extend(result)

        authoritative = router.filter_placements(facts)
        if len(authoritative) != len(facts):
            logger.info(f"Dropped {len(facts) - len(authoritative)} facts from unmapped divisions")
        return authoritative, errors

    async def _division_names(self) -> Dict[int, str]:
        divisions = await self.users.list_divisions(include_inactive=True)
        return {division.division_id: division.division_name for division in divisions}

    async def calculate_ranking(self, week_start: date, week_end: date) -> StackRankingReport:
        """
        Rank canonical recruiters by GM$ for one week and save the snapshot.

        A failure reading the mappings, identities or prior snapshot is not
        caught and aborts the run.
        """
        report = StackRankingReport(week_start=week_start, week_end=week_end)

        try:
            router = await load_division_router(self.users)
        except ConfigurationMissingError as e:
            logger.warning(f"Stack ranking for {week_start} skipped: {e.reason}")
            report.reason = e.reason
            return report

        facts, upstream_errors = await self._collect_facts(router, week_start, week_end)

        resolver = self._new_resolver()
        resolver.prime(await self.users.list_users(include_inactive=True))
        await resolver.resolve_all(facts)
        report.errors = upstream_errors + resolver.errors
        report.new_users = [identity.name for identity in resolver.created]

        aggregates = aggregate_facts(facts, resolver)
        prior = await self.snapshots.get_week(prior_week_start(week_start))
        prior_ranks = {snapshot.canonical_user_id: snapshot.rank for snapshot in prior}

        report.rows = rank_aggregates(aggregates.values(), await self._division_names(), prior_ranks)
        report.totals = ranking_totals(report.rows)
        if facts and not report.rows:
            report.reason = NO_IDENTITIES_REASON

        if upstream_errors:
            logger.warning(f"Not saving snapshot for {week_start}: {len(upstream_errors)} upstream errors")
        else:
            await self.snapshots.save_week(week_start, report.rows)
            await self.snapshots.prune(week_start - timedelta(weeks=self.retention_weeks))
            report.snapshot_saved = True

        logger.info(
            f"Stack ranking {week_start}..{week_end}: {len(report.rows)} ranked, "
            f"{len(report.new_users)} discovered, {len(report.errors)} errors"
        )
        return report

    async def get_financials(self, week_start: date, week_end: date) -> FinancialReport:
        report = FinancialReport(week_start=week_start, week_end=week_end)

        try:
            router = await load_division_router(self.users)
        except ConfigurationMissingError as e:
            report.reason = e.reason
            return report

        facts, upstream_errors = await self._collect_facts(router, week_start, week_end)

        resolver = self._new_resolver()
        resolver.prime(await self.users.list_users(include_inactive=True))
        await resolver.resolve_all(facts)
        report.errors = upstream_errors + resolver.errors
        report.new_users = [identity.name for identity in resolver.created]

        aggregates = aggregate_facts(facts, resolver)
        report.rows = financial_rows(aggregates.values(), await self._division_names())
        report.totals = financial_totals(report.rows)
        if facts and not report.rows:
            report.reason = NO_IDENTITIES_REASON
        return report
