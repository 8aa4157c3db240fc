from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from pydantic import BaseModel


class PageVisit(BaseModel):
    page: str = "/"
    duration: int = 0
    # Browser-generated id; the client address is used when absent
    visitor_id: Optional[str] = None


class ProjectView(BaseModel):
    source: str = "unknown"
    visitor_id: Optional[str] = None


@dataclass
class DayPoint:
    date: str
    day_name: str
    value: int = 0

    def as_visits(self) -> dict:
        return {"date": self.date, "dayName": self.day_name, "visits": self.value}

    def as_views(self) -> dict:
        return {"date": self.date, "dayName": self.day_name, "views": self.value}


@dataclass
class DashboardStats:
    total_visits: int = 0
    total_project_views: int = 0
    total_blog_views: int = 0
    analytics: Optional[Dict[str, Any]] = None


@dataclass
class Dashboard:
    visits: List[dict] = field(default_factory=list)
    views: List[dict] = field(default_factory=list)
    latest_project: Optional[dict] = None
    projects_count: int = 0
    skills_count: int = 0
    total_visits: int = 0
    total_project_views: int = 0
    total_blog_views: int = 0
    analytics: Optional[Dict[str, Any]] = None
