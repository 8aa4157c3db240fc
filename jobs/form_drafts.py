from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum
from typing import Dict, Optional
import logging
import uuid

from models.upload import UploadMode
from services.upload_service import ImageSlot

logger = logging.getLogger(__name__)

# Abandoned forms are dropped after this long; their uploads are left on the backend
DRAFT_TTL_HOURS = 12


class DraftKind(str, Enum):
    PROJECT_NEW = "project_new"
    PROJECT_EDIT = "project_edit"
    SKILL_NEW = "skill_new"
    BLOG_EDIT = "blog_edit"


UPLOAD_MODES = {
    DraftKind.PROJECT_NEW: UploadMode.GENERIC,
    DraftKind.PROJECT_EDIT: UploadMode.PROJECT,
    DraftKind.SKILL_NEW: UploadMode.SKILL,
    DraftKind.BLOG_EDIT: UploadMode.BLOG,
}


@dataclass
class FormDraft:
    """Server-side state of one open admin form between requests"""
    draft_id: str
    kind: DraftKind
    resource_id: Optional[str] = None
    fields: dict = field(default_factory=dict)
    image: ImageSlot = field(default_factory=ImageSlot)
    created_at: datetime = field(default_factory=datetime.now)
    updated_at: datetime = field(default_factory=datetime.now)

    @property
    def upload_mode(self) -> UploadMode:
        return UPLOAD_MODES[self.kind]

    def touch(self):
        self.updated_at = datetime.now()

    def to_dict(self) -> dict:
        return {
            "draft_id": self.draft_id,
            "kind": self.kind.value,
            "resource_id": self.resource_id,
            "fields": self.fields,
            "image": self.image.to_dict(),
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
        }


class DraftRegistry:
    """In-memory registry of open form drafts, keyed by draft id"""

    def __init__(self, ttl_hours: int = DRAFT_TTL_HOURS):
        self.ttl = timedelta(hours=ttl_hours)
        self._drafts: Dict[str, FormDraft] = {}

    def __len__(self):
        return len(self._drafts)

    def open(
        self,
        kind: DraftKind,
        resource_id: Optional[str] = None,
        fields: Optional[dict] = None,
        image: Optional[str] = None,
    ) -> FormDraft:
        # Clean up expired drafts opportunistically before opening a new one
        self.cleanup_expired()

        draft = FormDraft(
            draft_id=str(uuid.uuid4()),
            kind=DraftKind(kind),
            resource_id=str(resource_id) if resource_id is not None else None,
            fields=dict(fields or {}),
            image=ImageSlot(image),
        )
        self._drafts[draft.draft_id] = draft
        logger.debug(f"Opened {draft.kind.value} draft {draft.draft_id} (resource: {draft.resource_id})")
        return draft

    def get(self, draft_id: str) -> Optional[FormDraft]:
        return self._drafts.get(draft_id)

    def close(self, draft_id: str) -> Optional[FormDraft]:
        """Forget a draft after a successful save or a cancel"""
        return self._drafts.pop(draft_id, None)

    def cleanup_expired(self) -> int:
        now = datetime.now()
        expired = [draft_id for draft_id, draft in self._drafts.items() if now - draft.updated_at > self.ttl]
        for draft_id in expired:
            del self._drafts[draft_id]
        if expired:
            logger.info(f"Cleaned up {len(expired)} expired draft(s)")
        return len(expired)
