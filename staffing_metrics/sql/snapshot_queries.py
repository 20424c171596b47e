"""
SQL for the weekly ranking and weekly hours snapshot tables.

weekly_ranking_snapshot: one row per (week_start, canonical_user_id). A week
is replaced wholesale (delete then insert), which makes recomputation
idempotent.

weekly_hours_snapshot: one row per (canonical_user_id, week_start,
day_bucket), written by upsert. snapshot_taken_at records the last write so
rows a run did not refresh can be told apart from fresh ones.

hours_run_state: single-row table holding the This Week Sunday of the last
hours run.
"""


# Namespace for pg_advisory_xact_lock(int, int); the second key is the week ordinal
RANKING_WEEK_LOCK_NAMESPACE = 72011


# =============================================================================
# Ranking Snapshots
# =============================================================================


def get_ranking_week_query() -> str:
    return """
    SELECT
        week_start, canonical_user_id, name, division_name, head_count,
        gross_margin_dollars, gross_profit_pct, revenue, rank
    FROM weekly_ranking_snapshot
    WHERE week_start = $1
    ORDER BY rank
    """


def get_delete_ranking_week_query() -> str:
    return """
    DELETE FROM weekly_ranking_snapshot
    WHERE week_start = $1
    """


def get_insert_ranking_snapshot_query() -> str:
    return """
    INSERT INTO weekly_ranking_snapshot (
        week_start, canonical_user_id, name, division_name, head_count,
        gross_margin_dollars, gross_profit_pct, revenue, rank,
        snapshot_taken_at
    )
    VALUES ($1, $2, $3, $4, $5, $6, $7, $8, $9, NOW())
    """


def get_prune_ranking_query() -> str:
    return """
    DELETE FROM weekly_ranking_snapshot
    WHERE week_start < $1
    """


def get_advisory_xact_lock_query() -> str:
    """Held until the surrounding transaction commits or rolls back."""
    return "SELECT pg_advisory_xact_lock($1, $2)"


# =============================================================================
# Hours Snapshots
# =============================================================================


def get_upsert_hours_snapshot_query() -> str:
    """
    Parameters:
        $1: canonical_user_id
        $2: week_start
        $3: day_bucket (0 = Sun+Mon, 1..5 = Tue..Sat)
        $4: total_hours
    """
    return """
    INSERT INTO weekly_hours_snapshot (
        canonical_user_id, week_start, day_bucket, total_hours,
        snapshot_taken_at
    )
    VALUES ($1, $2, $3, $4, NOW())
    ON CONFLICT (canonical_user_id, week_start, day_bucket)
    DO UPDATE SET
        total_hours = EXCLUDED.total_hours,
        snapshot_taken_at = NOW()
    """


def get_purge_hours_query() -> str:
    return """
    DELETE FROM weekly_hours_snapshot
    WHERE week_start < $1
    """


def get_clear_hours_week_query(older_than: bool = False) -> str:
    """
    Delete a week's hours rows.

    With older_than=True only rows last written before $2 go, so rows the
    current run already refreshed survive.
    """
    if older_than:
        return """
        DELETE FROM weekly_hours_snapshot
        WHERE week_start = $1
          AND snapshot_taken_at < $2
        """
    return """
    DELETE FROM weekly_hours_snapshot
    WHERE week_start = $1
    """


def get_clear_hours_bucket_query() -> str:
    """Delete one day bucket of a week, keeping rows written at or after $3."""
    return """
    DELETE FROM weekly_hours_snapshot
    WHERE week_start = $1
      AND day_bucket = $2
      AND snapshot_taken_at < $3
    """


def get_hours_report_query() -> str:
    """
    Hours rows for the report window joined to identity and division.

    Only active identities flagged on_hours_report are returned. The pivot
    into day columns happens in pandas.

    Parameters:
        $1: week_start values (date[])
    """
    return """
    SELECT
        uc.canonical_user_id,
        uc.name,
        uc.division_id,
        d.division_name,
        d.display_order AS division_order,
        uc.display_order,
        uc.weekly_goal,
        ws.week_start,
        ws.day_bucket,
        ws.total_hours
    FROM weekly_hours_snapshot ws
    INNER JOIN user_config uc
        ON ws.canonical_user_id = uc.canonical_user_id
       AND uc.is_active = TRUE
       AND uc.on_hours_report = TRUE
    INNER JOIN division d ON uc.division_id = d.division_id
    WHERE ws.week_start = ANY($1::date[])
    ORDER BY d.display_order, uc.display_order, uc.name
    """


def get_hours_report_identities_query() -> str:
    """Identities shown on the hours report even with no hours yet."""
    return """
    SELECT
        uc.canonical_user_id,
        uc.name,
        uc.division_id,
        d.division_name,
        d.display_order AS division_order,
        uc.display_order,
        uc.weekly_goal
    FROM user_config uc
    INNER JOIN division d ON uc.division_id = d.division_id
    WHERE uc.is_active = TRUE
      AND uc.on_hours_report = TRUE
      AND uc.canonical_user_id IS NOT NULL
    ORDER BY d.display_order, uc.display_order, uc.name
    """


# =============================================================================
# Hours Run State
# =============================================================================


def get_hours_run_state_query() -> str:
    return """
    SELECT this_week_start
    FROM hours_run_state
    WHERE state_id = 1
    """


def get_save_hours_run_state_query() -> str:
    return """
    INSERT INTO hours_run_state (state_id, this_week_start, updated_at)
    VALUES (1, $1, NOW())
    ON CONFLICT (state_id)
    DO UPDATE SET
        this_week_start = EXCLUDED.this_week_start,
        updated_at = NOW()
    """


def get_store_now_query() -> str:
    """Report store clock, used to tell rows written by this run from older ones."""
    return "SELECT NOW() AS now"
