"""
API package for Staffing Metrics.

Routers:
- reports: stack ranking, financials and hours report endpoints
- admin: divisions and user config administration
"""

from fastapi import APIRouter

from staffing_metrics.api.reports import router as reports_router
from staffing_metrics.api.admin import router as admin_router

api_router = APIRouter()
api_router.include_router(reports_router, prefix="/reports", tags=["reports"])
api_router.include_router(admin_router, prefix="/admin", tags=["admin"])

__all__ = [
    "api_router",
    "reports_router",
    "admin_router",
]
