"""
SQL for the identity store: user_config, division and division_ats_mapping.

user_config is the unified recruiter identity. Rows are never deleted;
deactivation flips is_active. canonical_user_id is written by the repository
on every insert/update that touches an ATS id.

Parameters use asyncpg positional placeholders ($1, $2, ...).
"""

from staffing_metrics.models.enums import AtsSystem


USER_CONFIG_COLUMNS = """
    config_id, canonical_user_id, name, division_id, role, title,
    ats_source, symplr_id, bullhorn_id, weekly_goal, on_hours_report,
    on_stack_ranking, is_active, display_order
"""

# ATS id column per system; never interpolate user input here
_ATS_ID_COLUMN = {
    AtsSystem.SYMPLR: "symplr_id",
    AtsSystem.BULLHORN: "bullhorn_id",
}


def ats_id_column(ats_system: AtsSystem) -> str:
    return _ATS_ID_COLUMN[AtsSystem(ats_system)]


# =============================================================================
# Divisions
# =============================================================================


def get_divisions_query(include_inactive: bool = False) -> str:
    where = "" if include_inactive else "WHERE is_active = TRUE"
    return f"""
    SELECT division_id, division_name, display_order, is_active
    FROM division
    {where}
    ORDER BY display_order, division_id
    """


def get_division_ats_mappings_query() -> str:
    return """
    SELECT division_id, ats_system
    FROM division_ats_mapping
    ORDER BY division_id
    """


def get_division_by_name_query() -> str:
    """Case-insensitive exact match against active division names."""
    return """
    SELECT division_id
    FROM division
    WHERE is_active = TRUE
      AND LOWER(division_name) = LOWER($1)
    ORDER BY display_order
    LIMIT 1
    """


# =============================================================================
# User Configs
# =============================================================================


def get_user_configs_query(include_inactive: bool = False) -> str:
    where = "" if include_inactive else "WHERE is_active = TRUE"
    return f"""
    SELECT {USER_CONFIG_COLUMNS}
    FROM user_config
    {where}
    ORDER BY division_id, display_order, config_id
    """


def get_user_config_query() -> str:
    return f"""
    SELECT {USER_CONFIG_COLUMNS}
    FROM user_config
    WHERE config_id = $1
    """


def get_user_config_by_ats_id_query(
    ats_system: AtsSystem,
    active_only: bool = False,
) -> str:
    """
    Look up an identity by one ATS-specific id.

    Active rows sort first so a reactivated identity wins over stale
    inactive duplicates. With active_only=False an inactive match is still
    returned, which lets discovery tell "deactivated" from "never seen".

    Args:
        ats_system: Which id column to match on.
        active_only: Restrict to is_active rows.

    Returns:
        str: Query taking $1 = ATS-local id.
    """
    column = ats_id_column(ats_system)
    active = "AND is_active = TRUE" if active_only else ""
    return f"""
    SELECT {USER_CONFIG_COLUMNS}
    FROM user_config
    WHERE {column} = $1
      {active}
    ORDER BY is_active DESC, config_id
    LIMIT 1
    """


def get_active_ats_id_conflict_query(ats_system: AtsSystem) -> str:
    """Another active identity holding the same ATS id ($1), excluding config $2."""
    column = ats_id_column(ats_system)
    return f"""
    SELECT config_id
    FROM user_config
    WHERE {column} = $1
      AND is_active = TRUE
      AND config_id <> COALESCE($2, -1)
    LIMIT 1
    """


def get_insert_user_config_query() -> str:
    return f"""
    INSERT INTO user_config (
        canonical_user_id, name, division_id, role, title, ats_source,
        symplr_id, bullhorn_id, weekly_goal, on_hours_report,
        on_stack_ranking, is_active, display_order
    )
    VALUES ($1, $2, $3, $4, $5, $6, $7, $8, $9, $10, $11, TRUE, $12)
    RETURNING {USER_CONFIG_COLUMNS}
    """


def get_update_user_config_query() -> str:
    return f"""
    UPDATE user_config
    SET canonical_user_id = $2,
        name = $3,
        division_id = $4,
        role = $5,
        title = $6,
        symplr_id = $7,
        bullhorn_id = $8,
        weekly_goal = $9,
        on_hours_report = $10,
        on_stack_ranking = $11,
        is_active = $12,
        display_order = $13,
        updated_at = NOW()
    WHERE config_id = $1
    RETURNING {USER_CONFIG_COLUMNS}
    """


def get_deactivate_user_config_query() -> str:
    return f"""
    UPDATE user_config
    SET is_active = FALSE,
        updated_at = NOW()
    WHERE config_id = $1
    RETURNING {USER_CONFIG_COLUMNS}
    """
