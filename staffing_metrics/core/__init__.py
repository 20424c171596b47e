"""
Core infrastructure for the Staffing Metrics backend.

Provides:
- Configuration management via pydantic-settings (config)
- asyncpg pools wrapped in explicitly constructed Database objects (database)
- Error types shared by services and the API (errors)

FastAPI dependencies live in staffing_metrics.core.dependencies and are not
re-exported here, so services can import core without importing FastAPI
wiring.

Usage:
    from staffing_metrics.core import get_settings, open_databases

    settings = get_settings()
    async with open_databases(settings) as databases:
        ...
"""

# =============================================================================
# Re-exports from staffing_metrics.core.config
# =============================================================================
from staffing_metrics.core.config import Settings, get_settings

# =============================================================================
# Re-exports from staffing_metrics.core.database
# =============================================================================
from staffing_metrics.core.database import Database, Databases, open_databases, rows_affected

# =============================================================================
# Re-exports from staffing_metrics.core.errors
# =============================================================================
from staffing_metrics.core.errors import (
    StaffingMetricsError,
    UpstreamUnavailableError,
    ConfigurationMissingError,
    IdentityNotFoundError,
    IdentityValidationError,
)

__all__ = [
    # Configuration
    'Settings',
    'get_settings',
    # Database
    'Database',
    'Databases',
    'open_databases',
    'rows_affected',
    # Errors
    'StaffingMetricsError',
    'UpstreamUnavailableError',
    'ConfigurationMissingError',
    'IdentityNotFoundError',
    'IdentityValidationError',
]
