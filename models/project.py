import json
from datetime import datetime
from typing import List, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator, model_validator

from config.settings import PROJECT_STATUSES


class Tool(BaseModel):
    skill: str
    icon: str = ""


def unique_tools(tools: List[Tool]) -> List[Tool]:
    """Keep the first tool for every skill name"""
    seen = set()
    result = []
    for tool in tools:
        if tool.skill in seen:
            continue
        seen.add(tool.skill)
        result.append(tool)
    return result


def coerce_tools(value) -> list:
    """`tools` may arrive as a JSON string, a list, or nothing at all"""
    if value is None or value == "":
        return []
    if isinstance(value, str):
        try:
            value = json.loads(value)
        except ValueError:
            return []
    if not isinstance(value, list):
        return []
    return value


class Project(BaseModel):
    """Project view model; `image` and `description` are exposed as `img` and `desc`"""

    model_config = ConfigDict(populate_by_name=True)

    id: str
    title: str = ""
    desc: str = Field(default="", validation_alias=AliasChoices("description", "desc"))
    img: str = Field(default="", validation_alias=AliasChoices("image", "img"))
    link: str = ""
    status: str = "Draft"
    tools: List[Tool] = []
    view_count: int = 0
    created_at: Optional[datetime] = Field(default=None, validation_alias=AliasChoices("createdAt", "created_at"))
    updated_at: Optional[datetime] = Field(default=None, validation_alias=AliasChoices("updated_at", "updatedAt"))

    @model_validator(mode="before")
    @classmethod
    def _normalize(cls, data):
        if isinstance(data, dict):
            data = dict(data)
            if data.get("id") is not None:
                data["id"] = str(data["id"])
            for key in ("description", "image", "link", "title"):
                if data.get(key) is None and key in data:
                    data[key] = ""
            # Zero dates from the backend mean "not set"
            for key in ("updated_at", "updatedAt", "created_at", "createdAt"):
                if isinstance(data.get(key), str) and data[key].startswith("0001-01-01"):
                    data[key] = None
            if not (data.get("updated_at") or data.get("updatedAt")):
                data["updated_at"] = data.get("createdAt") or data.get("created_at")
        return data

    @field_validator("tools", mode="before")
    @classmethod
    def _coerce_tools(cls, value):
        return coerce_tools(value)

    @field_validator("tools")
    @classmethod
    def _unique_tools(cls, value: List[Tool]) -> List[Tool]:
        return unique_tools(value)


class ProjectForm(BaseModel):
    """Fields submitted by the admin project form (the image comes from the form's image slot)"""

    title: str
    description: str
    status: str
    link: str = ""
    tools: List[Tool] = []

    @field_validator("title", "description", "status")
    @classmethod
    def _required(cls, value: str) -> str:
        if not value or not value.strip():
            raise ValueError("This field is required")
        return value.strip()

    @field_validator("status")
    @classmethod
    def _known_status(cls, value: str) -> str:
        if value not in PROJECT_STATUSES:
            raise ValueError(f"Status must be one of: {', '.join(PROJECT_STATUSES)}")
        return value

    @field_validator("tools", mode="before")
    @classmethod
    def _coerce_tools(cls, value):
        return coerce_tools(value)

    @field_validator("tools")
    @classmethod
    def _unique_tools(cls, value: List[Tool]) -> List[Tool]:
        return unique_tools(value)

    def to_payload(self, image: str) -> dict:
        return {
            "title": self.title,
            "description": self.description,
            "image": image,
            "link": self.link,
            "status": self.status,
            "tools": [tool.model_dump() for tool in self.tools],
        }
