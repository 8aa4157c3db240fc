from dataclasses import dataclass, asdict
from enum import Enum
from typing import Optional


class UploadMode(str, Enum):
    GENERIC = "generic"
    SKILL = "skill"
    PROJECT = "project"
    BLOG = "blog"


@dataclass
class UploadedFile:
    filename: str
    url: str
    size: int
    is_temporary: bool
    original_name: str
    project_id: Optional[str] = None
    skill_name: Optional[str] = None

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class LocalFile:
    """A file selected by the admin, read into memory before it is forwarded"""
    filename: str
    content: bytes
    content_type: Optional[str] = None

    @property
    def size(self) -> int:
        return len(self.content)
