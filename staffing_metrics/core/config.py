"""
Settings and environment management for the Staffing Metrics backend.

Configuration is loaded with pydantic-settings from environment variables and
an optional .env file, and cached with @lru_cache so it is read once per
process.

Environment Variables:
- DATABASE_URL: PostgreSQL DSN of the report store (Required)
- SYMPLR_DATABASE_URL: DSN of the Symplr ATS mirror (defaults to DATABASE_URL)
- BULLHORN_DATABASE_URL: DSN of the Bullhorn ATS mirror (defaults to DATABASE_URL)

Report Defaults:
- default_hours_per_day: 8 (Bullhorn placements without hoursPerDay)
- default_division_id: 1 (auto-discovered users with no division)
- snapshot_batch_size: 10 (concurrent snapshot writes)
- ranking_retention_weeks: 12
- hours_retention_days: 28

Usage:
    from staffing_metrics.core.config import get_settings

    settings = get_settings()
    dsn = settings.database_url
"""

from functools import lru_cache
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Attributes:
        database_url: Report store DSN. Required.
        symplr_database_url: Symplr mirror DSN, falls back to database_url.
        bullhorn_database_url: Bullhorn mirror DSN, falls back to database_url.
        pool_min_size: Minimum idle connections per pool.
        pool_max_size: Maximum connections per pool.
        command_timeout: Query timeout in seconds.
        default_hours_per_day: Hours billed per weekday when a Bullhorn
            placement has no hoursPerDay.
        default_division_id: Division assigned to discovered users when
            nothing better is known.
        discovered_display_order: display_order given to discovered users.
        snapshot_batch_size: Rows per snapshot write batch.
        ranking_retention_weeks: Weeks of ranking snapshots kept.
        hours_retention_days: Days of hours snapshots kept.
        discovery_lookback_days: Days of Symplr orders scanned by
            recruiter discovery.
        snapshot_week_lock: Serialize save_week per week_start with an
            advisory lock.
        hours_discovery_lookup_title: Look up title/role when the hours
            pipeline discovers a user.
    """

    model_config = SettingsConfigDict(
        env_file='.env',
        env_file_encoding='utf-8',
        extra='ignore',
        case_sensitive=False,
    )

    # =========================================================================
    # Connections
    # =========================================================================

    database_url: str

    # ATS mirrors may live in the same server as the report store
    symplr_database_url: Optional[str] = None
    bullhorn_database_url: Optional[str] = None

    pool_min_size: int = 2
    pool_max_size: int = 10
    command_timeout: int = 60

    # =========================================================================
    # Report Defaults
    # =========================================================================

    default_hours_per_day: float = 8.0
    default_division_id: int = 1
    discovered_display_order: int = 99

    # Matches the pool size so one batch never waits on the pool
    snapshot_batch_size: int = 10

    ranking_retention_weeks: int = 12
    hours_retention_days: int = 28
    discovery_lookback_days: int = 14

    snapshot_week_lock: bool = True
    hours_discovery_lookup_title: bool = False

    @property
    def symplr_dsn(self) -> str:
        return self.symplr_database_url or self.database_url

    @property
    def bullhorn_dsn(self) -> str:
        return self.bullhorn_database_url or self.database_url


@lru_cache()
def get_settings() -> Settings:
    """
    Get the cached application settings.

    Returns:
        Settings: The application settings instance.

    Raises:
        pydantic.ValidationError: If DATABASE_URL is missing.

    Note:
        To refresh settings in tests, clear the cache:
        >>> get_settings.cache_clear()
    """
    return Settings()
