"""
Upload Workflow - forwards admin-selected files to the backend and tracks
image changes on a form until the owning record is saved
"""
import logging
from typing import Optional, Sequence
from urllib.parse import quote, unquote

from models.upload import LocalFile, UploadMode, UploadedFile
from services.api_client import ApiClient, ApiError, encode_path, error_message_from
from utils.security_utils import (
    InputError,
    require_single_file,
    sanitize_filename,
    validate_image_file,
    validate_skill_name,
)
from utils.session_manager import SessionStore

logger = logging.getLogger(__name__)


class UploadWorkflow:
    """Service class for file uploads against the backend's upload endpoints"""

    def __init__(self, api: ApiClient, session: SessionStore, uploads_prefix: str):
        self.api = api
        self.session = session
        self.uploads_prefix = uploads_prefix

    def _endpoint(
        self,
        mode: UploadMode,
        skill_name: Optional[str],
        project_id: Optional[str],
        blog_slug: Optional[str],
    ) -> str:
        if mode == UploadMode.SKILL:
            return f"/api/v1/upload/skill/{quote(skill_name, safe='')}"
        if mode == UploadMode.PROJECT:
            return f"/api/v1/upload/project/{quote(str(project_id), safe='')}"
        if mode == UploadMode.BLOG:
            if blog_slug:
                return f"/api/v1/upload/blog-image?slug={quote(blog_slug, safe='')}"
            return "/api/v1/upload/blog-image"
        return "/api/v1/upload"

    async def select_and_upload(
        self,
        files: Sequence[LocalFile],
        mode: UploadMode = UploadMode.GENERIC,
        skill_name: Optional[str] = None,
        project_id: Optional[str] = None,
        blog_slug: Optional[str] = None,
    ) -> UploadedFile:
        """
        Validate a single selected file locally and POST it as multipart `file`.

        Args:
            files: The selection; exactly one file is accepted
            mode: Which upload endpoint to use
            skill_name: Required in skill mode
            project_id: Required in project mode
            blog_slug: Optional naming hint in blog mode

        Returns:
            UploadedFile with an absolute, per-segment encoded URL

        Raises:
            InputError: before any network call, for an invalid selection
            AuthExpiredError: if the session is gone or the backend answers 401
            ApiError: for network failures and non-2xx responses
        """
        mode = UploadMode(mode)
        file = require_single_file(files)

        if mode == UploadMode.SKILL:
            skill_name = validate_skill_name(skill_name)
        if mode == UploadMode.PROJECT and not project_id:
            raise InputError("Project ID is required for project image upload")

        validate_image_file(file, mode)
        filename = sanitize_filename(file.filename)

        endpoint = self._endpoint(mode, skill_name, project_id, blog_slug)
        response = await self.session.authenticated_fetch(
            "POST",
            endpoint,
            files={"file": (filename, file.content, file.content_type or "application/octet-stream")},
        )
        if not response.is_success:
            raise ApiError(
                f"Upload failed: {error_message_from(response)} ({response.status_code})",
                response.status_code,
            )
        data = self.api.decode(response)

        path = data.get("url")
        if not path:
            raise ApiError("Upload failed: backend returned no file URL", 0, data)

        uploaded = UploadedFile(
            filename=data.get("filename") or filename,
            url=self.api.absolute_url(path),
            size=int(data.get("size") or file.size),
            is_temporary=mode == UploadMode.GENERIC,
            original_name=file.filename,
            project_id=str(data.get("projectId") or project_id) if mode == UploadMode.PROJECT else None,
            skill_name=skill_name if mode == UploadMode.SKILL else None,
        )
        logger.info(f"Uploaded {uploaded.original_name} as {uploaded.url} ({mode.value})")
        return uploaded

    def is_local_upload(self, url: Optional[str]) -> bool:
        """Only files under the backend's own upload folder can be deleted through it"""
        return bool(url) and url.startswith(self.uploads_prefix)

    async def delete_uploaded_file(self, url: str) -> None:
        """
        DELETE a backend-local upload by its absolute URL.

        Raises:
            InputError: if the URL is not a backend-local upload
            ApiError: if the backend refuses
        """
        if not self.is_local_upload(url):
            raise InputError("Only files in the backend upload folder can be deleted")
        filename = unquote(url[len(self.uploads_prefix):])
        await self.session.authenticated_json("DELETE", f"/api/v1/uploads/{encode_path(filename)}")
        logger.info(f"Deleted uploaded file {filename}")

    async def rename_after_create(self, project_id: str, temp_url: str) -> Optional[str]:
        """
        Move a temp-named upload to its project-ID based name.

        The backend updates the project's stored image itself. A failure is
        logged and the project keeps its temp-named image.

        Returns:
            The new absolute image URL, or None if renaming failed
        """
        try:
            data = await self.session.authenticated_json(
                "POST",
                f"/api/v1/upload/rename/{quote(str(project_id), safe='')}",
                json={"oldImageUrl": temp_url},
            )
        except ApiError as e:
            logger.error(f"Error fixing project image naming for {project_id}: {e.message}")
            return None

        new_url = data.get("newImageUrl")
        if not new_url:
            logger.warning(f"Rename of {temp_url} for project {project_id} returned no new URL")
            return None
        logger.info(f"Project {project_id} image renamed to {new_url}")
        return self.api.absolute_url(new_url)


class ImageSlot:
    """
    The image field of an admin form, as a two-phase commit.

    Removing an image only marks the saved original as pending removal. The
    backend delete happens in `commit`, which the owning save calls after the
    record itself has been written. Cancelling a form is `reset`, which never
    touches the backend.
    """

    def __init__(self, original: Optional[str] = None):
        self.original = original or None
        self.current = self.original
        self.uploaded: Optional[UploadedFile] = None
        self.pending_removal = False

    @property
    def url(self) -> str:
        return self.current or ""

    def attach(self, uploaded: UploadedFile) -> None:
        """Use a freshly uploaded file; the original is no longer scheduled for deletion"""
        self.uploaded = uploaded
        self.current = uploaded.url
        self.pending_removal = False

    def remove(self) -> None:
        """Clear the image locally; nothing is sent to the backend"""
        if self.original:
            self.pending_removal = True
        self.current = None
        self.uploaded = None

    def reset(self) -> None:
        self.current = self.original
        self.uploaded = None
        self.pending_removal = False

    async def commit(self, workflow: UploadWorkflow) -> bool:
        """
        Apply a pending removal of the original image.

        Returns:
            True if a backend delete was issued and succeeded
        """
        if not (self.pending_removal and workflow.is_local_upload(self.original)):
            self.pending_removal = False
            return False

        original = self.original
        # Cleared first so a repeated commit cannot delete twice
        self.pending_removal = False
        try:
            await workflow.delete_uploaded_file(original)
        except ApiError as e:
            logger.error(f"Failed to delete old image {original}: {e.message}")
            return False

        self.original = self.current
        return True

    def to_dict(self) -> dict:
        return {
            "url": self.url,
            "original": self.original,
            "pending_removal": self.pending_removal,
            "uploaded": self.uploaded.to_dict() if self.uploaded else None,
        }
