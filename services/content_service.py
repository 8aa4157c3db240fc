"""
Content Service - read paths for projects, skills and blog posts

Every fetch here returns a safe empty result on failure; callers never need
to handle backend errors on a read.
"""
import logging
from typing import Dict, List, Optional
from urllib.parse import quote

from models.blog import BlogPost
from models.parsing import ParseError, parse_record, parse_records
from models.project import Project
from models.skill import Skill, categories_of
from services.api_client import ApiClient, ApiError
from utils.pagination import Listing, filter_by_query, paginate
from utils.session_manager import SessionStore

logger = logging.getLogger(__name__)

# The blog endpoints window server-side; ask for everything and page locally
FULL_COLLECTION_LIMIT = 1000


def _project_fields(project: Project):
    return [project.title]


def _skill_fields(skill: Skill):
    return [skill.skill]


def _admin_post_fields(post: BlogPost):
    return [post.title, post.content, " ".join(post.tags)]


def _public_post_fields(post: BlogPost):
    return [post.title, post.excerpt, post.content, " ".join(post.tags)]


class ContentService:
    """Service class for content fetchers, public and admin"""

    def __init__(self, api: ApiClient, session: SessionStore):
        self.api = api
        self.session = session

    async def _get_list(self, endpoint: str, key: str, **kwargs) -> list:
        data = await self.api.get(endpoint, **kwargs)
        items = data.get(key) if isinstance(data, dict) else None
        return items if isinstance(items, list) else []

    # Projects

    async def fetch_projects(self, q: Optional[str] = None, page: Optional[int] = None) -> Listing[Project]:
        """All projects, filtered by title and optionally paged"""
        try:
            raw = await self._get_list("/api/v1/projects", "projects")
        except ApiError as e:
            logger.error(f"Failed to fetch projects: {e.message}")
            return Listing()
        projects = filter_by_query(parse_records(Project, raw), q, _project_fields)
        return paginate(projects, page)

    async def fetch_project(self, project_id: str) -> Optional[Project]:
        try:
            data = await self.api.get(f"/api/v1/projects/{quote(str(project_id), safe='')}")
            return parse_record(Project, data.get("project") if isinstance(data, dict) else None)
        except (ApiError, ParseError) as e:
            logger.error(f"Failed to fetch project {project_id}: {e}")
            return None

    async def fetch_latest_projects(self, count: int = 3) -> List[Project]:
        try:
            raw = await self._get_list("/api/v1/projects/latest", "projects", params={"count": count})
        except ApiError as e:
            logger.error(f"Failed to fetch latest projects: {e.message}")
            return []
        return parse_records(Project, raw)[:count]

    # Skills

    async def _skills_response(self) -> dict:
        data = await self.api.get("/api/v1/skills")
        return data if isinstance(data, dict) else {}

    async def fetch_skills(self, q: Optional[str] = None, page: Optional[int] = None) -> Listing[Skill]:
        """All skills, filtered by skill name and optionally paged"""
        try:
            data = await self._skills_response()
        except ApiError as e:
            logger.error(f"Failed to fetch skills: {e.message}")
            return Listing()
        skills = filter_by_query(parse_records(Skill, data.get("skills")), q, _skill_fields)
        return paginate(skills, page)

    async def fetch_skill_categories(self) -> List[str]:
        """Categories that currently own at least one skill"""
        try:
            data = await self._skills_response()
        except ApiError as e:
            logger.error(f"Failed to fetch skill categories: {e.message}")
            return []
        skills = parse_records(Skill, data.get("skills"))
        used = categories_of(skills)
        listed = data.get("categories")
        if isinstance(listed, list) and listed:
            return [category for category in listed if category in used]
        return used

    async def fetch_skills_by_category(self) -> Dict[str, List[Skill]]:
        try:
            data = await self._skills_response()
        except ApiError as e:
            logger.error(f"Failed to fetch skills: {e.message}")
            return {}
        groups: Dict[str, List[Skill]] = {}
        for skill in parse_records(Skill, data.get("skills")):
            if skill.category:
                groups.setdefault(skill.category, []).append(skill)
        return groups

    # Blog

    async def fetch_admin_posts(self, q: Optional[str] = None, page: Optional[int] = None) -> Listing[BlogPost]:
        """Published and draft posts; matches title, content and tags"""
        try:
            data = await self.session.authenticated_json(
                "GET",
                "/api/v1/blog/admin/posts",
                params={"page": 1, "limit": FULL_COLLECTION_LIMIT},
            )
        except ApiError as e:
            logger.error(f"Failed to load admin posts: {e.message}")
            return Listing()
        raw = data.get("posts") if isinstance(data, dict) else None
        posts = filter_by_query(parse_records(BlogPost, raw), q, _admin_post_fields)
        return paginate(posts, page)

    async def fetch_public_posts(
        self,
        q: Optional[str] = None,
        tag: Optional[str] = None,
        page: Optional[int] = None,
    ) -> Listing[BlogPost]:
        try:
            raw = await self._get_list(
                "/api/v1/blog/posts",
                "posts",
                params={"page": 1, "limit": FULL_COLLECTION_LIMIT},
            )
        except ApiError as e:
            logger.error(f"Failed to fetch blog posts: {e.message}")
            return Listing()
        posts = filter_by_query(parse_records(BlogPost, raw), q, _public_post_fields)
        if tag:
            posts = [post for post in posts if tag in post.tags]
        return paginate(posts, page)

    async def fetch_post(self, slug: str) -> Optional[BlogPost]:
        if not slug:
            return None
        try:
            data = await self.api.get(f"/api/v1/blog/posts/{quote(slug, safe='')}")
            return parse_record(BlogPost, (data.get("post") or data) if isinstance(data, dict) else None)
        except (ApiError, ParseError) as e:
            logger.error(f'Failed to fetch blog post by slug "{slug}": {e}')
            return None

    async def fetch_blog_tags(self) -> List[str]:
        try:
            raw = await self._get_list("/api/v1/blog/tags", "tags")
        except ApiError as e:
            logger.error(f"Failed to fetch blog tags: {e.message}")
            return []
        return sorted({str(tag) for tag in raw if tag})
