"""
Blog router - admin post list, edit, delete and markdown import/export
"""
from typing import List, Optional

from fastapi import APIRouter, Body, Depends, File, HTTPException, UploadFile
from fastapi.responses import Response

from auth import require_admin
from backend.utils.responses import success_response, failure_response
from config.settings import Settings
from dependencies import get_admin_service, get_content_service, get_drafts, get_settings
from jobs.form_drafts import DraftKind, DraftRegistry
from models.blog import BlogPostForm
from routers.media_router import get_draft_or_404, read_local_files
from services.admin_service import AdminService, build_form
from services.api_client import ApiError
from services.content_service import ContentService
from services.markdown_service import import_template, parse_document
from utils.security_utils import InputError, pick_markdown_file
from utils.shared_utils import log_endpoint_event

blog_router = APIRouter(prefix="/admin/blog", tags=["blog"], dependencies=[Depends(require_admin)])


@blog_router.get("")
async def list_posts(
    q: Optional[str] = None,
    page: int = 1,
    content: ContentService = Depends(get_content_service),
):
    """Published and draft posts; the query matches title, content and tags"""
    listing = await content.fetch_admin_posts(q, page)
    return success_response(data=listing.to_dict(lambda p: p.model_dump(mode="json")), message="Posts")


@blog_router.get("/import/template")
async def download_template(settings: Settings = Depends(get_settings)):
    return Response(
        content=import_template(settings.site_owner),
        media_type="text/markdown",
        headers={"Content-Disposition": 'attachment; filename="blog-post-template.md"'},
    )


@blog_router.post("/import/preview")
async def preview_import(
    file: Optional[List[UploadFile]] = File(None),
    settings: Settings = Depends(get_settings),
):
    """Frontmatter, rendered body and validation issues, without importing"""
    try:
        selected = pick_markdown_file(await read_local_files(file))
        text = selected.content.decode("utf-8")
    except InputError as e:
        return failure_response(e)
    except UnicodeDecodeError:
        return failure_response(InputError("Markdown file must be UTF-8 encoded"))

    document = parse_document(text, settings.site_owner)
    return success_response(data={"filename": selected.filename, **document.to_dict()}, message="Preview")


@blog_router.post("/import")
async def import_post(
    file: Optional[List[UploadFile]] = File(None),
    admin: AdminService = Depends(get_admin_service),
):
    try:
        post = await admin.import_markdown(await read_local_files(file))
    except (InputError, ApiError) as e:
        log_endpoint_event("/admin/blog/import", None, "error", {"error": str(e)})
        return failure_response(e)

    log_endpoint_event("/admin/blog/import", post.get("slug"), "success", {})
    return success_response(data={"post": post}, message="MD file imported successfully", status=201)


@blog_router.get("/{slug}")
async def get_post(slug: str, content: ContentService = Depends(get_content_service)):
    post = await content.fetch_post(slug)
    if not post:
        raise HTTPException(status_code=404, detail="Blog post not found")
    return success_response(data={"post": post.model_dump(mode="json")}, message="Post")


@blog_router.post("/{slug}/drafts")
async def edit_post_draft(
    slug: str,
    content: ContentService = Depends(get_content_service),
    drafts: DraftRegistry = Depends(get_drafts),
):
    post = await content.fetch_post(slug)
    if not post:
        raise HTTPException(status_code=404, detail="Blog post not found")

    draft = drafts.open(
        DraftKind.BLOG_EDIT,
        resource_id=post.id,
        fields={
            "title": post.title,
            "content": post.content,
            "excerpt": post.excerpt,
            "tags": ", ".join(post.tags),
            "published": post.published,
            "slug": post.slug,
        },
        image=post.featured_image,
    )
    return success_response(data=draft.to_dict(), message="Draft opened", status=201)


@blog_router.post("/drafts/{draft_id}/submit")
async def submit_post_draft(
    draft_id: str,
    fields: Optional[dict] = Body(None),
    drafts: DraftRegistry = Depends(get_drafts),
    admin: AdminService = Depends(get_admin_service),
):
    """Save a post; its slug is regenerated from the submitted title"""
    draft = get_draft_or_404(drafts, draft_id, [DraftKind.BLOG_EDIT])
    draft.fields.update(fields or {})
    draft.touch()

    try:
        form = build_form(BlogPostForm, draft.fields)
        saved = await admin.update_post(draft.resource_id, form, draft.image)
    except (InputError, ApiError) as e:
        log_endpoint_event("/admin/blog/drafts/{id}/submit", draft_id, "error", {"error": str(e)})
        return failure_response(e, data=draft.to_dict())

    drafts.close(draft_id)
    log_endpoint_event("/admin/blog/drafts/{id}/submit", draft.resource_id, "success", {"slug": saved["slug"]})
    return success_response(data={"post": saved}, message="Post updated")


@blog_router.get("/{slug}/export")
async def export_post(slug: str, admin: AdminService = Depends(get_admin_service)):
    try:
        filename, body = await admin.export_markdown(slug)
    except ApiError as e:
        log_endpoint_event("/admin/blog/{slug}/export", slug, "error", {"error": e.message})
        return failure_response(e)

    return Response(
        content=body,
        media_type="text/markdown",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@blog_router.delete("/posts/{post_id}")
async def delete_post(post_id: str, admin: AdminService = Depends(get_admin_service)):
    try:
        await admin.delete_post(post_id)
    except ApiError as e:
        log_endpoint_event("/admin/blog/posts/{id}", post_id, "error", {"error": e.message})
        return failure_response(e)
    log_endpoint_event("/admin/blog/posts/{id}", post_id, "success", {"action": "delete"})
    return success_response(data={"id": post_id}, message="Post deleted")
