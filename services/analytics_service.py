"""
Analytics Service - visit tracking and dashboard aggregates
"""
import asyncio
import logging
import time
from datetime import date, timedelta
from typing import Any, Callable, Dict, List, Optional
from urllib.parse import quote

from models.analytics import Dashboard, DashboardStats, DayPoint
from services.api_client import ApiClient, ApiError
from services.content_service import ContentService

logger = logging.getLogger(__name__)

# Legacy counters ignore repeated hits inside these windows (seconds)
SITE_VISIT_COOLDOWN = 1.0
PROJECT_VIEW_COOLDOWN = 3.0

SERIES_DAYS = 7

# Stale cool-down entries are pruned once this many visitors are remembered
MAX_TRACKED_VISITORS = 1024


def _as_int(value: Any) -> int:
    try:
        return int(value or 0)
    except (TypeError, ValueError):
        return 0


def _day_name(value: str) -> str:
    try:
        return date.fromisoformat(str(value)[:10]).strftime("%a")
    except ValueError:
        return ""


def empty_series(today: Optional[date] = None, days: int = SERIES_DAYS) -> List[DayPoint]:
    """The last `days` days ending today, all zero"""
    today = today or date.today()
    points = []
    for offset in range(days - 1, -1, -1):
        day = today - timedelta(days=offset)
        points.append(DayPoint(date=day.isoformat(), day_name=day.strftime("%a"), value=0))
    return points


def daily_series(analytics: Optional[Dict[str, Any]], key: str, today: Optional[date] = None) -> List[DayPoint]:
    """One point per backend `daily_stats` entry, or a zero-filled week when there are none"""
    stats = analytics.get("daily_stats") if isinstance(analytics, dict) else None
    if not stats:
        return empty_series(today)
    return [
        DayPoint(date=str(stat.get("date", "")), day_name=_day_name(stat.get("date", "")), value=_as_int(stat.get(key)))
        for stat in stats
        if isinstance(stat, dict)
    ]


class AnalyticsService:
    """Service class for analytics tracking and the admin dashboard"""

    def __init__(
        self,
        api: ApiClient,
        content: ContentService,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.api = api
        self.content = content
        self.clock = clock
        self._last_hit: Dict[str, float] = {}

    def _cooling_down(self, key: str, window: float) -> bool:
        now = self.clock()
        if len(self._last_hit) >= MAX_TRACKED_VISITORS:
            self._forget_stale(now)
        last = self._last_hit.get(key)
        if last is not None and now - last < window:
            return True
        self._last_hit[key] = now
        return False

    def _forget_stale(self, now: float) -> None:
        longest = max(SITE_VISIT_COOLDOWN, PROJECT_VIEW_COOLDOWN)
        self._last_hit = {key: last for key, last in self._last_hit.items() if now - last < longest}

    async def _post_quietly(self, endpoint: str, json: Any = None) -> bool:
        """Tracking never raises; a failure is only logged"""
        try:
            await self.api.post(endpoint, json=json)
            return True
        except ApiError as e:
            logger.warning(f"Analytics tracking error on {endpoint}: {e.message}")
            return False

    # Tracking

    async def track_page_visit(self, page: str = "/", duration: int = 0) -> bool:
        return await self._post_quietly("/api/v1/analytics/visit", {"page": page, "duration": duration})

    async def track_project_view(self, project_id: str, source: str = "unknown") -> bool:
        return await self._post_quietly(
            f"/api/v1/projects/{quote(str(project_id), safe='')}/views",
            {"source": source},
        )

    async def track_post_view(self, post_id: str) -> bool:
        return await self._post_quietly(f"/api/v1/blog/posts/{quote(str(post_id), safe='')}/views")

    async def track_site_visit(self, visitor: str = "anonymous") -> bool:
        """Legacy site counter; repeated hits from one visitor within a second are dropped"""
        if self._cooling_down(f"site_visit:{visitor}", SITE_VISIT_COOLDOWN):
            return False
        return await self._post_quietly("/api/counter")

    async def track_project_view_legacy(self, visitor: str = "anonymous") -> bool:
        """Legacy project view counter with a three second cool-down per visitor"""
        if self._cooling_down(f"project_view:{visitor}", PROJECT_VIEW_COOLDOWN):
            return False
        return await self._post_quietly("/api/projectviews")

    # Dashboard

    async def fetch_analytics(self) -> Optional[Dict[str, Any]]:
        try:
            data = await self.api.get(
                "/api/v1/analytics/all",
                params={"t": int(time.time() * 1000)},
                headers={"Cache-Control": "no-cache, no-store, must-revalidate", "Pragma": "no-cache"},
            )
        except ApiError as e:
            logger.error(f"Error fetching analytics: {e.message}")
            return None
        return data if isinstance(data, dict) else None

    async def fetch_visits(self, today: Optional[date] = None) -> List[dict]:
        analytics = await self.fetch_analytics()
        return [point.as_visits() for point in daily_series(analytics, "site_visits", today)]

    async def fetch_project_views(self, today: Optional[date] = None) -> List[dict]:
        analytics = await self.fetch_analytics()
        return [point.as_views() for point in daily_series(analytics, "project_views", today)]

    async def fetch_dashboard_stats(self) -> DashboardStats:
        analytics = await self.fetch_analytics()
        if analytics is None:
            return DashboardStats()
        return DashboardStats(
            total_visits=_as_int(analytics.get("visits")),
            total_project_views=_as_int(analytics.get("project_view")),
            total_blog_views=_as_int(analytics.get("blog_views")),
            analytics=analytics,
        )

    async def load_dashboard(self) -> Dashboard:
        """All dashboard data, fetched concurrently"""
        visits, views, projects, skills, stats = await asyncio.gather(
            self.fetch_visits(),
            self.fetch_project_views(),
            self.content.fetch_projects(),
            self.content.fetch_skills(),
            self.fetch_dashboard_stats(),
        )

        latest = sorted(
            projects.items,
            key=lambda project: project.created_at.timestamp() if project.created_at else 0,
            reverse=True,
        )
        return Dashboard(
            visits=visits,
            views=views,
            latest_project=latest[0].model_dump(mode="json") if latest else None,
            projects_count=projects.count,
            skills_count=skills.count,
            total_visits=stats.total_visits,
            total_project_views=stats.total_project_views,
            total_blog_views=stats.total_blog_views,
            analytics=stats.analytics,
        )
