from typing import Optional

from fastapi import APIRouter, Body, Depends

from auth import require_admin
from backend.utils.responses import success_response, failure_response
from dependencies import get_admin_service, get_content_service, get_drafts
from jobs.form_drafts import DraftKind, DraftRegistry
from models.skill import SkillForm
from routers.media_router import get_draft_or_404
from services.admin_service import AdminService, build_form
from services.api_client import ApiError
from services.content_service import ContentService
from utils.security_utils import InputError
from utils.shared_utils import log_endpoint_event

skills_router = APIRouter(prefix="/admin/skills", tags=["skills"], dependencies=[Depends(require_admin)])


@skills_router.get("")
async def list_skills(
    q: Optional[str] = None,
    page: int = 1,
    content: ContentService = Depends(get_content_service),
):
    listing = await content.fetch_skills(q, page)
    return success_response(data=listing.to_dict(lambda s: s.model_dump(mode="json")), message="Skills")


@skills_router.get("/categories")
async def list_categories(content: ContentService = Depends(get_content_service)):
    categories = await content.fetch_skill_categories()
    return success_response(data={"categories": categories, "count": len(categories)}, message="Categories")


@skills_router.post("/drafts")
async def new_skill_draft(drafts: DraftRegistry = Depends(get_drafts)):
    draft = drafts.open(DraftKind.SKILL_NEW, fields={"skill": "", "category": ""})
    return success_response(data=draft.to_dict(), message="Draft opened", status=201)


@skills_router.post("/drafts/{draft_id}/submit")
async def submit_skill_draft(
    draft_id: str,
    fields: Optional[dict] = Body(None),
    drafts: DraftRegistry = Depends(get_drafts),
    admin: AdminService = Depends(get_admin_service),
):
    """Create a skill; category "new" takes the free-text `new_category`"""
    draft = get_draft_or_404(drafts, draft_id, [DraftKind.SKILL_NEW])
    draft.fields.update(fields or {})
    draft.touch()

    try:
        form = build_form(SkillForm, draft.fields)
        skill = await admin.create_skill(form, draft.image)
    except (InputError, ApiError) as e:
        log_endpoint_event("/admin/skills/drafts/{id}/submit", draft_id, "error", {"error": str(e)})
        return failure_response(e, data=draft.to_dict())

    drafts.close(draft_id)
    log_endpoint_event("/admin/skills/drafts/{id}/submit", skill.id if skill else None, "success", {})
    return success_response(
        data={"skill": skill.model_dump(mode="json") if skill else None},
        message="Skill created successfully!",
    )


@skills_router.delete("/{skill_id}")
async def delete_skill(skill_id: str, admin: AdminService = Depends(get_admin_service)):
    try:
        await admin.delete_skill(skill_id)
    except ApiError as e:
        log_endpoint_event("/admin/skills/{id}", skill_id, "error", {"error": e.message})
        return failure_response(e)
    log_endpoint_event("/admin/skills/{id}", skill_id, "success", {"action": "delete"})
    return success_response(data={"id": skill_id}, message="Skill deleted")
