"""
Snapshot stores for weekly ranking and weekly hours state.

SnapshotStore (weekly_ranking_snapshot):
- save_week: delete the week, then insert its rows in batches, all in one
  transaction on one connection. Replace semantics make recomputing a week
  idempotent, and a failed insert rolls the delete back. With week_lock on,
  the transaction takes pg_advisory_xact_lock keyed by the week first, so two
  triggers for the same week cannot interleave.
- get_week / prune

HoursSnapshotStore (weekly_hours_snapshot, hours_run_state):
- upsert / upsert_batch keyed by (canonical_user_id, week_start, day_bucket)
- purge rows older than the retention window
- clear_week, optionally only rows not refreshed since a timestamp, and
  clear_bucket for one day bucket
- run state: the This Week Sunday of the previous hours run
"""

import asyncio
import logging
from datetime import date, datetime
from typing import List, Optional, Sequence

from staffing_metrics.core.database import Database, rows_affected
from staffing_metrics.models.schemas import RankedRow, WeeklyHoursSnapshot, WeeklyRankingSnapshot
from staffing_metrics.sql.snapshot_queries import (
    RANKING_WEEK_LOCK_NAMESPACE,
    get_advisory_xact_lock_query,
    get_clear_hours_bucket_query,
    get_clear_hours_week_query,
    get_delete_ranking_week_query,
    get_hours_run_state_query,
    get_insert_ranking_snapshot_query,
    get_prune_ranking_query,
    get_purge_hours_query,
    get_ranking_week_query,
    get_save_hours_run_state_query,
    get_store_now_query,
    get_upsert_hours_snapshot_query,
)


logger = logging.getLogger(__name__)


DEFAULT_BATCH_SIZE = 10


def chunked(items: Sequence, size: int) -> List[Sequence]:
    if size < 1:
        raise ValueError("batch size must be positive")
    return [items[i:i + size] for i in range(0, len(items), size)]


# =============================================================================
# Ranking Snapshots
# =============================================================================


class SnapshotStore:
    """
    Weekly ranking snapshots.

    Args:
        db: Report store database.
        batch_size: Rows per executemany call.
        week_lock: Hold a per-week advisory lock around save_week.
    """

    def __init__(
        self,
        db: Database,
        batch_size: int = DEFAULT_BATCH_SIZE,
        week_lock: bool = True,
    ) -> None:
        self.db = db
        self.batch_size = batch_size
        self.week_lock = week_lock

    async def save_week(self, week_start: date, rows: Sequence[RankedRow]) -> int:
        """
        Replace the snapshot of one week with rows.

        Returns:
            int: Number of rows written.
        """
        records = [
            (
                week_start,
                row.canonical_user_id,
                row.name,
                row.division_name,
                row.head_count,
                row.gross_margin_dollars,
                row.gross_profit_pct,
                row.revenue,
                row.rank,
            )
            for row in rows
        ]

        async with self.db.acquire() as conn:
            async with conn.transaction():
                if self.week_lock:
                    await conn.execute(
                        get_advisory_xact_lock_query(),
                        RANKING_WEEK_LOCK_NAMESPACE,
                        week_start.toordinal(),
                    )
                deleted = rows_affected(await conn.execute(get_delete_ranking_week_query(), week_start))

                query = get_insert_ranking_snapshot_query()
                for batch in chunked(records, self.batch_size):
                    await conn.executemany(query, batch)

        logger.info(f"Saved ranking snapshot for {week_start}: {len(records)} rows ({deleted} replaced)")
        return len(records)

    async def get_week(self, week_start: date) -> List[WeeklyRankingSnapshot]:
        rows = await self.db.fetch(get_ranking_week_query(), week_start)
        return [WeeklyRankingSnapshot.model_validate(dict(row)) for row in rows]

    async def prune(self, before: date) -> int:
        deleted = rows_affected(await self.db.execute(get_prune_ranking_query(), before))
        if deleted:
            logger.info(f"Pruned {deleted} ranking snapshot rows before {before}")
        return deleted


# =============================================================================
# Hours Snapshots
# =============================================================================


class HoursSnapshotStore:
    """Weekly hours snapshots and the hours run state."""

    def __init__(self, db: Database, batch_size: int = DEFAULT_BATCH_SIZE) -> None:
        self.db = db
        self.batch_size = batch_size

    async def upsert(self, snapshot: WeeklyHoursSnapshot) -> None:
        await self.db.execute(
            get_upsert_hours_snapshot_query(),
            snapshot.canonical_user_id,
            snapshot.week_start,
            snapshot.day_bucket,
            snapshot.total_hours,
        )

    async def upsert_batch(self, snapshots: Sequence[WeeklyHoursSnapshot]) -> int:
        for batch in chunked(list(snapshots), self.batch_size):
            await asyncio.gather(*(self.upsert(snapshot) for snapshot in batch))
        return len(snapshots)

    async def purge(self, before: date) -> int:
        deleted = rows_affected(await self.db.execute(get_purge_hours_query(), before))
        if deleted:
            logger.info(f"Purged {deleted} hours snapshot rows before {before}")
        return deleted

    async def clear_week(self, week_start: date, older_than: Optional[datetime] = None) -> int:
        """
        Delete a week's rows, or only those last written before older_than.
        """
        if older_than is None:
            status = await self.db.execute(get_clear_hours_week_query(), week_start)
        else:
            status = await self.db.execute(get_clear_hours_week_query(older_than=True), week_start, older_than)
        deleted = rows_affected(status)
        logger.info(f"Cleared {deleted} hours snapshot rows for week {week_start}")
        return deleted

    async def clear_bucket(self, week_start: date, bucket: int, older_than: datetime) -> int:
        status = await self.db.execute(get_clear_hours_bucket_query(), week_start, bucket, older_than)
        deleted = rows_affected(status)
        logger.info(f"Cleared {deleted} hours snapshot rows for week {week_start} bucket {bucket}")
        return deleted

    async def get_run_state(self) -> Optional[date]:
        row = await self.db.fetchrow(get_hours_run_state_query())
        return row['this_week_start'] if row else None

    async def save_run_state(self, this_week_start: date) -> None:
        await self.db.execute(get_save_hours_run_state_query(), this_week_start)

    async def store_now(self) -> datetime:
        row = await self.db.fetchrow(get_store_now_query())
        return row['now']
