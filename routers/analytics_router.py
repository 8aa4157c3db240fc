"""
Analytics Router - admin dashboard data
"""
from dataclasses import asdict

from fastapi import APIRouter, Depends

from auth import require_admin
from backend.utils.responses import success_response
from dependencies import get_analytics_service
from services.analytics_service import AnalyticsService
from utils.shared_utils import log_endpoint_event

# Create router
analytics_router = APIRouter(prefix="/admin", tags=["analytics"], dependencies=[Depends(require_admin)])


@analytics_router.get("")
async def get_dashboard(analytics: AnalyticsService = Depends(get_analytics_service)):
    """Counts, totals, latest project and the visit/view series, loaded concurrently"""
    dashboard = await analytics.load_dashboard()
    log_endpoint_event("/admin", None, "success", {
        "projects": dashboard.projects_count,
        "skills": dashboard.skills_count,
    })
    return success_response(data=asdict(dashboard), message="Dashboard")


@analytics_router.get("/analytics/visits")
async def get_visits(analytics: AnalyticsService = Depends(get_analytics_service)):
    visits = await analytics.fetch_visits()
    return success_response(data={"visits": visits}, message="Visits")


@analytics_router.get("/analytics/views")
async def get_project_views(analytics: AnalyticsService = Depends(get_analytics_service)):
    views = await analytics.fetch_project_views()
    return success_response(data={"views": views}, message="Project views")


@analytics_router.get("/analytics/stats")
async def get_stats(analytics: AnalyticsService = Depends(get_analytics_service)):
    stats = await analytics.fetch_dashboard_stats()
    return success_response(data=asdict(stats), message="Dashboard stats")
