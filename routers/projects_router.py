from typing import Optional

from fastapi import APIRouter, Body, Depends, HTTPException

from auth import require_admin
from backend.utils.responses import success_response, failure_response
from dependencies import get_admin_service, get_content_service, get_drafts
from jobs.form_drafts import DraftKind, DraftRegistry
from models.project import ProjectForm
from routers.media_router import get_draft_or_404
from services.admin_service import AdminService, build_form
from services.api_client import ApiError
from services.content_service import ContentService
from utils.security_utils import InputError
from utils.shared_utils import log_endpoint_event

router = APIRouter(prefix="/admin/projects", tags=["projects"], dependencies=[Depends(require_admin)])

PROJECT_DRAFTS = (DraftKind.PROJECT_NEW, DraftKind.PROJECT_EDIT)


@router.get("")
async def list_projects(
    q: Optional[str] = None,
    page: int = 1,
    content: ContentService = Depends(get_content_service),
):
    """Admin project list, filtered by title, five per page"""
    listing = await content.fetch_projects(q, page)
    return success_response(data=listing.to_dict(lambda p: p.model_dump(mode="json")), message="Projects")


@router.post("/drafts")
async def new_project_draft(drafts: DraftRegistry = Depends(get_drafts)):
    draft = drafts.open(DraftKind.PROJECT_NEW, fields={"status": "Draft", "tools": []})
    return success_response(data=draft.to_dict(), message="Draft opened", status=201)


@router.get("/{project_id}")
async def get_project(project_id: str, content: ContentService = Depends(get_content_service)):
    project = await content.fetch_project(project_id)
    if not project:
        raise HTTPException(status_code=404, detail="Project not found")
    return success_response(data={"project": project.model_dump(mode="json")}, message="Project")


@router.post("/{project_id}/drafts")
async def edit_project_draft(
    project_id: str,
    content: ContentService = Depends(get_content_service),
    drafts: DraftRegistry = Depends(get_drafts),
):
    """Open an edit form pre-filled from the saved project"""
    project = await content.fetch_project(project_id)
    if not project:
        raise HTTPException(status_code=404, detail="Project not found")

    draft = drafts.open(
        DraftKind.PROJECT_EDIT,
        resource_id=project.id,
        fields={
            "title": project.title,
            "description": project.desc,
            "link": project.link,
            "status": project.status,
            "tools": [tool.model_dump() for tool in project.tools],
        },
        image=project.img,
    )
    return success_response(data=draft.to_dict(), message="Draft opened", status=201)


@router.post("/drafts/{draft_id}/submit")
async def submit_project_draft(
    draft_id: str,
    fields: Optional[dict] = Body(None),
    drafts: DraftRegistry = Depends(get_drafts),
    admin: AdminService = Depends(get_admin_service),
):
    """
    Save a project form.

    A new project is created and its temp image renamed; an edited project
    is saved with every field and then any removed original image is
    deleted. On failure the draft stays open for a retry.
    """
    draft = get_draft_or_404(drafts, draft_id, PROJECT_DRAFTS)
    draft.fields.update(fields or {})
    draft.touch()

    try:
        form = build_form(ProjectForm, draft.fields)
        if draft.kind == DraftKind.PROJECT_NEW:
            project = await admin.create_project(form, draft.image)
            result = {"project": project.model_dump(mode="json") if project else None}
            message = "Project created successfully!"
        else:
            result = await admin.update_project(draft.resource_id, form, draft.image)
            message = "Project updated successfully"
    except (InputError, ApiError) as e:
        log_endpoint_event("/admin/projects/drafts/{id}/submit", draft_id, "error", {"error": str(e)})
        return failure_response(e, data=draft.to_dict())

    drafts.close(draft_id)
    log_endpoint_event("/admin/projects/drafts/{id}/submit", draft.resource_id, "success", {"kind": draft.kind.value})
    return success_response(data=result, message=message)


@router.delete("/{project_id}")
async def delete_project(project_id: str, admin: AdminService = Depends(get_admin_service)):
    try:
        await admin.delete_project(project_id)
    except ApiError as e:
        log_endpoint_event("/admin/projects/{id}", project_id, "error", {"error": e.message})
        return failure_response(e)
    log_endpoint_event("/admin/projects/{id}", project_id, "success", {"action": "delete"})
    return success_response(data={"id": project_id}, message="Project deleted")
