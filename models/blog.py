from datetime import datetime
from typing import List, Optional

from pydantic import AliasChoices, BaseModel, Field, field_validator, model_validator

from utils.shared_utils import parse_tags


class BlogPost(BaseModel):
    id: str
    slug: str
    title: str = ""
    content: str = ""
    excerpt: str = ""
    tags: List[str] = []
    published: bool = False
    featured_image: str = ""
    reading_time: Optional[int] = None
    view_count: int = 0
    author: str = ""
    published_at: Optional[datetime] = Field(default=None, validation_alias=AliasChoices("published_at", "publishedAt"))
    created_at: Optional[datetime] = Field(default=None, validation_alias=AliasChoices("created_at", "createdAt"))

    @model_validator(mode="before")
    @classmethod
    def _normalize(cls, data):
        if isinstance(data, dict):
            data = dict(data)
            if data.get("id") is not None:
                data["id"] = str(data["id"])
            for key in ("title", "content", "excerpt", "featured_image", "author"):
                if key in data and data[key] is None:
                    data[key] = ""
            # Zero dates from the backend mean "not set"
            for key in ("published_at", "publishedAt", "created_at", "createdAt"):
                if isinstance(data.get(key), str) and data[key].startswith("0001-01-01"):
                    data[key] = None
        return data

    @field_validator("tags", mode="before")
    @classmethod
    def _coerce_tags(cls, value):
        return parse_tags(value)

    @field_validator("reading_time", mode="before")
    @classmethod
    def _coerce_reading_time(cls, value):
        # Imported posts carry "5 min read"
        if isinstance(value, str):
            digits = "".join(ch for ch in value if ch.isdigit())
            return int(digits) if digits else None
        return value


class BlogPostForm(BaseModel):
    """Fields of the admin blog edit form; tags are typed as a comma separated string"""

    title: str
    content: str = ""
    excerpt: str = ""
    tags: str = ""
    published: bool = False

    @field_validator("title")
    @classmethod
    def _required(cls, value: str) -> str:
        if not value or not value.strip():
            raise ValueError("Title is required")
        return value
