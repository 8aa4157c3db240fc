"""
Admin Service - create/update/delete for projects, skills and blog posts
"""
import logging
import re
from typing import Optional, Sequence, Tuple, Type, TypeVar
from urllib.parse import quote

from pydantic import BaseModel, ValidationError

from models.blog import BlogPostForm
from models.parsing import ParseError, parse_record
from models.project import Project, ProjectForm
from models.skill import Skill, SkillForm
from models.upload import LocalFile
from services.api_client import ApiError
from services.markdown_service import parse_document
from services.upload_service import ImageSlot, UploadWorkflow
from utils.security_utils import InputError, pick_markdown_file
from utils.session_manager import SessionStore
from utils.shared_utils import parse_tags, reading_time, slugify

logger = logging.getLogger(__name__)

F = TypeVar("F", bound=BaseModel)

CONTENT_DISPOSITION_FILENAME = re.compile(r'filename="(.+)"')


def build_form(model: Type[F], fields: dict) -> F:
    """
    Validate submitted form fields.

    Raises:
        InputError: with every failing field in one message
    """
    try:
        return model.model_validate(fields)
    except ValidationError as e:
        messages = []
        for error in e.errors(include_url=False):
            message = error["msg"].removeprefix("Value error, ")
            location = ".".join(str(part) for part in error["loc"])
            messages.append(f"{location}: {message}" if location else message)
        raise InputError("; ".join(messages)) from e


def _segment(value) -> str:
    return quote(str(value), safe="")


class AdminService:
    """
    Service class for admin mutations.

    Every call goes through the session's authenticated fetch, so a rejected
    token logs the admin out. Failures raise; nothing here retries.
    """

    def __init__(self, session: SessionStore, uploads: UploadWorkflow, default_author: str = ""):
        self.session = session
        self.uploads = uploads
        self.default_author = default_author

    # Projects

    async def create_project(self, form: ProjectForm, image: ImageSlot) -> Optional[Project]:
        """
        Create a project, then move its temp-named image to the project's name.

        A failed rename keeps the project with its temp-named image. When the
        created record cannot be read there is no id to rename to, so the
        temp-named image is kept and None is returned.
        """
        if not image.url:
            raise InputError("Please fill in all required fields (Title, Description, Status, Image)")

        data = await self.session.authenticated_json("POST", "/api/v1/projects", json=form.to_payload(image.url))
        try:
            project = parse_record(Project, data.get("project"))
        except ParseError as e:
            logger.warning(f"Project created but the response could not be read: {e}")
            await image.commit(self.uploads)
            return None
        logger.info(f"Project created successfully: {project.id}")

        if image.uploaded and image.uploaded.is_temporary:
            new_url = await self.uploads.rename_after_create(project.id, image.url)
            if new_url:
                project = project.model_copy(update={"img": new_url})

        await image.commit(self.uploads)
        return project

    async def update_project(self, project_id: str, form: ProjectForm, image: ImageSlot) -> dict:
        """
        Save every field, including an empty image after a removal, then apply
        the image slot's pending removal.
        """
        payload = form.to_payload(image.url)
        data = await self.session.authenticated_json("PUT", f"/api/v1/projects/{_segment(project_id)}", json=payload)
        logger.info(f"Project {project_id} updated successfully")
        await image.commit(self.uploads)
        return data

    async def delete_project(self, project_id: str) -> None:
        await self.session.authenticated_json("DELETE", f"/api/v1/projects/{_segment(project_id)}")
        logger.info(f"Project {project_id} deleted")

    # Skills

    async def create_skill(self, form: SkillForm, icon: ImageSlot) -> Optional[Skill]:
        category = form.resolved_category()
        if not category:
            raise InputError("Please fill in all required fields")

        data = await self.session.authenticated_json(
            "POST",
            "/api/v1/skills",
            json={"skill": form.skill, "icon": icon.url, "category": category},
        )
        await icon.commit(self.uploads)
        logger.info(f"Skill created successfully: {form.skill} ({category})")
        try:
            return parse_record(Skill, data.get("skill"))
        except ParseError as e:
            logger.warning(f"Skill created but the response could not be read: {e}")
            return None

    async def delete_skill(self, skill_id: str) -> None:
        await self.session.authenticated_json("DELETE", f"/api/v1/skills/{_segment(skill_id)}")
        logger.info(f"Skill {skill_id} deleted")

    # Blog

    async def update_post(self, post_id: str, form: BlogPostForm, image: ImageSlot) -> dict:
        """The slug and reading time are recomputed from the submitted title and content"""
        payload = {
            "title": form.title,
            "content": form.content,
            "excerpt": form.excerpt,
            "slug": slugify(form.title),
            "tags": parse_tags(form.tags),
            "published": form.published,
            "featured_image": image.url,
            "reading_time": reading_time(form.content),
        }
        await self.session.authenticated_json("PUT", f"/api/v1/blog/posts/{_segment(post_id)}", json=payload)
        await image.commit(self.uploads)
        logger.info(f"Post {post_id} updated as {payload['slug']}")
        return payload

    async def delete_post(self, post_id: str) -> None:
        await self.session.authenticated_json("DELETE", f"/api/v1/blog/posts/{_segment(post_id)}")
        logger.info(f"Post {post_id} deleted")

    async def import_markdown(self, files: Sequence[LocalFile]) -> dict:
        """
        Import one markdown file as a blog post.

        The frontmatter is validated first; a document with errors (a missing
        title included) never reaches the backend.

        Returns:
            The created post summary: {id, slug, title}
        """
        file = pick_markdown_file(files)
        try:
            text = file.content.decode("utf-8")
        except UnicodeDecodeError as e:
            raise InputError("Markdown file must be UTF-8 encoded") from e

        document = parse_document(text, self.default_author)
        if not document.is_valid:
            raise InputError("; ".join(issue.message for issue in document.errors))

        try:
            data = await self.session.authenticated_json(
                "POST",
                "/api/v1/blog/import-md",
                json={"content": text, "filename": file.filename},
            )
        except ApiError as e:
            details = e.data.get("details") if isinstance(e.data, dict) else None
            if details:
                raise ApiError(str(details), e.status, e.data) from e
            raise

        post = data.get("post") or {}
        logger.info(f"Imported {file.filename} as post {post.get('slug')}")
        return post

    async def export_markdown(self, slug: str) -> Tuple[str, bytes]:
        """
        Download a post as markdown.

        Returns:
            (filename, content); the filename comes from Content-Disposition
            and falls back to `<slug>.md`
        """
        response = await self.session.authenticated_fetch("GET", f"/api/v1/blog/export-md/{_segment(slug)}")
        if not response.is_success:
            raise ApiError("Failed to export post as MD", response.status_code)

        filename = f"{slug}.md"
        disposition = response.headers.get("Content-Disposition")
        if disposition:
            match = CONTENT_DISPOSITION_FILENAME.search(disposition)
            if match:
                filename = match.group(1)
        return filename, response.content
