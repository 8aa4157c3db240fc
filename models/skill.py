from datetime import datetime
from typing import List, Optional

from pydantic import AliasChoices, BaseModel, Field, field_validator, model_validator


class Skill(BaseModel):
    id: str
    skill: str
    icon: str = ""
    category: str = ""
    created_at: Optional[datetime] = Field(default=None, validation_alias=AliasChoices("createdAt", "created_at"))

    @model_validator(mode="before")
    @classmethod
    def _normalize(cls, data):
        if isinstance(data, dict):
            data = dict(data)
            if data.get("id") is not None:
                data["id"] = str(data["id"])
            if data.get("icon") is None:
                data["icon"] = ""
            if data.get("category") is None:
                data["category"] = ""
        return data


def categories_of(skills: List[Skill]) -> List[str]:
    """Distinct categories in first-seen order; there is no separate category entity"""
    categories = []
    for skill in skills:
        if skill.category and skill.category not in categories:
            categories.append(skill.category)
    return categories


class SkillForm(BaseModel):
    skill: str
    category: str
    new_category: str = ""

    @field_validator("skill")
    @classmethod
    def _required(cls, value: str) -> str:
        if not value or not value.strip():
            raise ValueError("Skill name is required")
        return value.strip()

    def resolved_category(self) -> str:
        """The form's "new" option means: use the free-text category"""
        if self.category == "new":
            return self.new_category.strip()
        return self.category.strip()
