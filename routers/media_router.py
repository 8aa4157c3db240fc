"""
Media router - image uploads for open admin forms and direct uploads
"""
import logging
from typing import Iterable, List, Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile

from auth import require_admin
from backend.utils.responses import success_response, failure_response
from dependencies import get_drafts, get_upload_workflow
from jobs.form_drafts import DraftKind, DraftRegistry, FormDraft
from models.upload import LocalFile, UploadMode
from services.api_client import ApiError
from services.upload_service import UploadWorkflow
from utils.security_utils import InputError
from utils.shared_utils import log_endpoint_event

logger = logging.getLogger(__name__)

media_router = APIRouter(prefix="/admin", tags=["media"], dependencies=[Depends(require_admin)])


async def read_local_files(files: Optional[List[UploadFile]]) -> List[LocalFile]:
    """Read multipart uploads into memory before they are validated and forwarded"""
    local_files = []
    for upload in files or []:
        content = await upload.read()
        local_files.append(LocalFile(filename=upload.filename or "", content=content, content_type=upload.content_type))
    return local_files


def get_draft_or_404(drafts: DraftRegistry, draft_id: str, kinds: Optional[Iterable[DraftKind]] = None) -> FormDraft:
    draft = drafts.get(draft_id)
    if not draft or (kinds is not None and draft.kind not in kinds):
        raise HTTPException(status_code=404, detail="Draft not found")
    return draft


@media_router.get("/drafts/{draft_id}")
async def get_draft(draft_id: str, drafts: DraftRegistry = Depends(get_drafts)):
    draft = get_draft_or_404(drafts, draft_id)
    return success_response(data=draft.to_dict(), message="Draft")


@media_router.post("/drafts/{draft_id}/image")
async def upload_draft_image(
    draft_id: str,
    file: Optional[List[UploadFile]] = File(None),
    skill_name: Optional[str] = Form(None),
    drafts: DraftRegistry = Depends(get_drafts),
    uploads: UploadWorkflow = Depends(get_upload_workflow),
):
    """
    Upload an image for an open form and attach it to the form's image slot.

    The upload endpoint depends on the form: a new project uses the generic
    (temporary) upload, an edited project its project-named upload, a new
    skill its skill-named upload and a blog post the blog image upload.
    """
    draft = get_draft_or_404(drafts, draft_id)
    if skill_name is not None:
        draft.fields["skill"] = skill_name

    try:
        uploaded = await uploads.select_and_upload(
            await read_local_files(file),
            draft.upload_mode,
            skill_name=draft.fields.get("skill"),
            project_id=draft.resource_id,
            blog_slug=draft.fields.get("slug"),
        )
    except (InputError, ApiError) as e:
        log_endpoint_event("/admin/drafts/{id}/image", draft_id, "error", {"error": str(e)})
        return failure_response(e, data=draft.to_dict())

    draft.image.attach(uploaded)
    draft.touch()
    log_endpoint_event("/admin/drafts/{id}/image", draft_id, "success", {"url": uploaded.url})
    return success_response(data=draft.to_dict(), message="File uploaded successfully")


@media_router.delete("/drafts/{draft_id}/image")
async def remove_draft_image(draft_id: str, drafts: DraftRegistry = Depends(get_drafts)):
    """Clear the form's image; the saved original is only deleted when the form is submitted"""
    draft = get_draft_or_404(drafts, draft_id)
    draft.image.remove()
    draft.touch()
    return success_response(data=draft.to_dict(), message="Image removed")


@media_router.post("/drafts/{draft_id}/cancel")
async def cancel_draft(draft_id: str, drafts: DraftRegistry = Depends(get_drafts)):
    """Discard the form; nothing is deleted on the backend"""
    draft = get_draft_or_404(drafts, draft_id)
    draft.image.reset()
    drafts.close(draft_id)
    log_endpoint_event("/admin/drafts/{id}/cancel", draft_id, "success", {})
    return success_response(data={"draft_id": draft_id}, message="Changes discarded")


@media_router.post("/uploads")
async def upload_file(
    file: Optional[List[UploadFile]] = File(None),
    uploads: UploadWorkflow = Depends(get_upload_workflow),
):
    """Generic upload outside any form; the file stays temporary"""
    try:
        uploaded = await uploads.select_and_upload(await read_local_files(file), UploadMode.GENERIC)
    except (InputError, ApiError) as e:
        log_endpoint_event("/admin/uploads", None, "error", {"error": str(e)})
        return failure_response(e)

    log_endpoint_event("/admin/uploads", uploaded.filename, "success", {"size": uploaded.size})
    return success_response(data=uploaded.to_dict(), message="File uploaded successfully")
