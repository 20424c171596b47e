"""
SQL query module for the Staffing Metrics backend.

Functions here return query strings with asyncpg positional parameters;
repositories in staffing_metrics.services execute them.

Submodules:
    identity_queries: user_config, division and division_ats_mapping.
    placement_queries: Symplr and Bullhorn mirror queries.
    snapshot_queries: weekly ranking / hours snapshots and hours run state.

Example usage:
    from staffing_metrics.sql import get_symplr_placements_query

    rows = await databases.symplr.fetch(
        get_symplr_placements_query(), week_start, week_end
    )
"""

# =============================================================================
# IDENTITY QUERIES
# =============================================================================

from staffing_metrics.sql.identity_queries import (
    USER_CONFIG_COLUMNS,
    ats_id_column,
    get_divisions_query,
    get_division_ats_mappings_query,
    get_division_by_name_query,
    get_user_configs_query,
    get_user_config_query,
    get_user_config_by_ats_id_query,
    get_active_ats_id_conflict_query,
    get_insert_user_config_query,
    get_update_user_config_query,
    get_deactivate_user_config_query,
)

# =============================================================================
# PLACEMENT QUERIES
# =============================================================================

from staffing_metrics.sql.placement_queries import (
    BULLHORN_BILLABLE_STATUSES,
    get_symplr_placements_query,
    get_symplr_orders_query,
    get_symplr_user_title_query,
    get_bullhorn_placements_query,
    get_bullhorn_user_title_query,
    get_bullhorn_user_department_query,
)

# =============================================================================
# SNAPSHOT QUERIES
# =============================================================================

from staffing_metrics.sql.snapshot_queries import (
    RANKING_WEEK_LOCK_NAMESPACE,
    get_ranking_week_query,
    get_delete_ranking_week_query,
    get_insert_ranking_snapshot_query,
    get_prune_ranking_query,
    get_advisory_xact_lock_query,
    get_upsert_hours_snapshot_query,
    get_purge_hours_query,
    get_clear_hours_bucket_query,
    get_clear_hours_week_query,
    get_hours_report_query,
    get_hours_report_identities_query,
    get_hours_run_state_query,
    get_save_hours_run_state_query,
    get_store_now_query,
)

__all__ = [
    # Identity
    'USER_CONFIG_COLUMNS',
    'ats_id_column',
    'get_divisions_query',
    'get_division_ats_mappings_query',
    'get_division_by_name_query',
    'get_user_configs_query',
    'get_user_config_query',
    'get_user_config_by_ats_id_query',
    'get_active_ats_id_conflict_query',
    'get_insert_user_config_query',
    'get_update_user_config_query',
    'get_deactivate_user_config_query',
    # Placements
    'BULLHORN_BILLABLE_STATUSES',
    'get_symplr_placements_query',
    'get_symplr_orders_query',
    'get_symplr_user_title_query',
    'get_bullhorn_placements_query',
    'get_bullhorn_user_title_query',
    'get_bullhorn_user_department_query',
    # Snapshots
    'RANKING_WEEK_LOCK_NAMESPACE',
    'get_ranking_week_query',
    'get_delete_ranking_week_query',
    'get_insert_ranking_snapshot_query',
    'get_prune_ranking_query',
    'get_advisory_xact_lock_query',
    'get_upsert_hours_snapshot_query',
    'get_purge_hours_query',
    'get_clear_hours_bucket_query',
    'get_clear_hours_week_query',
    'get_hours_report_query',
    'get_hours_report_identities_query',
    'get_hours_run_state_query',
    'get_save_hours_run_state_query',
    'get_store_now_query',
]
