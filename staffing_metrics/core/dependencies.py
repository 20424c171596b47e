"""
FastAPI dependencies for the Staffing Metrics API.

The Databases container is opened by the application lifespan and stored on
app.state; request handlers receive repositories and services built on top
of it. Tests replace any of these through app.dependency_overrides.

Usage:
    @router.get("/divisions")
    async def list_divisions(users: UserRepositoryDep) -> List[Division]:
        return await users.list_divisions()
"""

from typing import Annotated

from fastapi import Depends, HTTPException, Request

from staffing_metrics.core.config import Settings, get_settings
from staffing_metrics.core.database import Databases
from staffing_metrics.services import (
    HoursAggregator,
    HoursReportService,
    StackRankingService,
    UserConfigRepository,
    build_hours_aggregator,
    build_stack_ranking_service,
)


def get_settings_dependency() -> Settings:
    """
    Return the cached Settings.

    Thin wrapper so tests can override it:
        app.dependency_overrides[get_settings_dependency] = lambda: test_settings
    """
    return get_settings()


SettingsDep = Annotated[Settings, Depends(get_settings_dependency)]


def get_databases(request: Request) -> Databases:
    databases = getattr(request.app.state, 'databases', None)
    if databases is None:
        raise HTTPException(status_code=503, detail="Database connections are not available")
    return databases


DatabasesDep = Annotated[Databases, Depends(get_databases)]


# =============================================================================
# Repositories and Services
# =============================================================================


def get_user_repository(databases: DatabasesDep) -> UserConfigRepository:
    return UserConfigRepository(databases.reports)


def get_stack_ranking_service(databases: DatabasesDep, settings: SettingsDep) -> StackRankingService:
    return build_stack_ranking_service(databases, settings)


def get_hours_aggregator(databases: DatabasesDep, settings: SettingsDep) -> HoursAggregator:
    return build_hours_aggregator(databases, settings)


def get_hours_report_service(databases: DatabasesDep) -> HoursReportService:
    return HoursReportService(databases.reports)


UserRepositoryDep = Annotated[UserConfigRepository, Depends(get_user_repository)]
StackRankingServiceDep = Annotated[StackRankingService, Depends(get_stack_ranking_service)]
HoursAggregatorDep = Annotated[HoursAggregator, Depends(get_hours_aggregator)]
HoursReportServiceDep = Annotated[HoursReportService, Depends(get_hours_report_service)]
