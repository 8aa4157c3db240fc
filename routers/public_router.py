"""
Public pages as JSON view models, plus visit tracking
"""
import asyncio
from typing import Optional

from fastapi import APIRouter, Body, Depends, HTTPException, Request

from backend.utils.responses import success_response
from config.settings import Settings
from dependencies import get_analytics_service, get_content_service, get_settings
from models.analytics import PageVisit, ProjectView
from services.analytics_service import AnalyticsService
from services.content_service import ContentService
from services.markdown_service import render_markdown

public_router = APIRouter(tags=["public"])

HOME_PROJECT_COUNT = 3


def _dump(model) -> dict:
    return model.model_dump(mode="json")


def _visitor(request: Request, visitor_id: Optional[str]) -> str:
    if visitor_id:
        return visitor_id
    return request.client.host if request.client else "anonymous"


@public_router.get("/")
async def home(
    content: ContentService = Depends(get_content_service),
    settings: Settings = Depends(get_settings),
):
    projects = await content.fetch_latest_projects(HOME_PROJECT_COUNT)
    skills = await content.fetch_skills()
    return success_response(
        data={
            "owner": settings.site_owner,
            "projects": [_dump(p) for p in projects],
            "skills": [_dump(s) for s in skills.items],
        },
        message="Home",
    )


@public_router.get("/about")
async def about(content: ContentService = Depends(get_content_service)):
    """Skills grouped by category; empty categories are left out"""
    groups = await content.fetch_skills_by_category()
    return success_response(
        data={
            "categories": [
                {"category": category, "skills": [_dump(s) for s in skills]}
                for category, skills in groups.items()
            ],
        },
        message="About",
    )


@public_router.get("/works")
async def works(q: Optional[str] = None, content: ContentService = Depends(get_content_service)):
    listing = await content.fetch_projects(q)
    return success_response(data=listing.to_dict(_dump), message="Works")


@public_router.get("/blog")
async def blog(
    q: Optional[str] = None,
    tag: Optional[str] = None,
    page: Optional[int] = None,
    content: ContentService = Depends(get_content_service),
):
    """Published posts with search and an exact tag filter"""
    listing, tags = await asyncio.gather(
        content.fetch_public_posts(q, tag, page),
        content.fetch_blog_tags(),
    )
    data = listing.to_dict(_dump)
    data["tags"] = tags
    return success_response(data=data, message="Blog")


@public_router.get("/blog/{slug}")
async def blog_post(slug: str, content: ContentService = Depends(get_content_service)):
    post = await content.fetch_post(slug)
    if not post:
        raise HTTPException(status_code=404, detail="Blog post not found")
    data = _dump(post)
    data["html"] = render_markdown(post.content)
    return success_response(data={"post": data}, message="Post")


@public_router.get("/contacts")
async def contacts(settings: Settings = Depends(get_settings)):
    return success_response(
        data={
            "owner": settings.site_owner,
            "email": settings.contact_email,
            "discord": settings.contact_discord,
        },
        message="Contacts",
    )


@public_router.post("/api/track/visit")
async def track_visit(
    request: Request,
    visit: Optional[PageVisit] = Body(None),
    analytics: AnalyticsService = Depends(get_analytics_service),
):
    """Page visit plus the legacy site counter; admin pages are not tracked"""
    visit = visit or PageVisit()
    if visit.page.startswith("/admin"):
        return success_response(data={"tracked": False}, message="Not tracked")
    tracked = await analytics.track_page_visit(visit.page, visit.duration)
    await analytics.track_site_visit(_visitor(request, visit.visitor_id))
    return success_response(data={"tracked": tracked}, message="Visit tracked")


@public_router.post("/api/track/projects/{project_id}")
async def track_project(
    request: Request,
    project_id: str,
    view: Optional[ProjectView] = Body(None),
    analytics: AnalyticsService = Depends(get_analytics_service),
):
    view = view or ProjectView()
    tracked = await analytics.track_project_view(project_id, view.source)
    await analytics.track_project_view_legacy(_visitor(request, view.visitor_id))
    return success_response(data={"tracked": tracked}, message="Project view tracked")


@public_router.post("/api/track/posts/{post_id}")
async def track_post(post_id: str, analytics: AnalyticsService = Depends(get_analytics_service)):
    tracked = await analytics.track_post_view(post_id)
    return success_response(data={"tracked": tracked}, message="Post view tracked")
