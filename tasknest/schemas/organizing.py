from pydantic import BaseModel, Field, field_validator
from datetime import datetime
from tasknest.utils.sanitization import sanitize_string

COLOR_PATTERN = r"^#[0-9a-fA-F]{3,8}$"


class _Named(BaseModel):
    @field_validator("name", "description", mode="before", check_fields=False)
    @classmethod
    def sanitize(cls, v):
        return sanitize_string(v)


# ── Projects ────────────────────────────────────────────

class ProjectCreate(_Named):
    name: str = Field(..., min_length=1, max_length=100)
    description: str | None = None
    color: str | None = Field(None, pattern=COLOR_PATTERN)


class ProjectUpdate(_Named):
    name: str | None = Field(None, min_length=1, max_length=100)
    description: str | None = None
    color: str | None = Field(None, pattern=COLOR_PATTERN)


class Project(BaseModel):
    project_id: str
    user_id: str
    name: str
    description: str | None = None
    color: str | None = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class ProjectWithStats(Project):
    task_count: int = 0
    completed_count: int = 0
    pending_count: int = 0


# ── Categories ──────────────────────────────────────────

class CategoryCreate(_Named):
    name: str = Field(..., min_length=1, max_length=100)
    color: str | None = Field(None, pattern=COLOR_PATTERN)


class CategoryUpdate(_Named):
    name: str | None = Field(None, min_length=1, max_length=100)
    color: str | None = Field(None, pattern=COLOR_PATTERN)


class Category(BaseModel):
    category_id: str
    user_id: str
    name: str
    color: str | None = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class CategoryWithStats(Category):
    task_count: int = 0
    completed_count: int = 0
    pending_count: int = 0


# ── Tags ────────────────────────────────────────────────

class TagCreate(_Named):
    name: str = Field(..., min_length=1, max_length=50)
    color: str | None = Field(None, pattern=COLOR_PATTERN)


class TagUpdate(_Named):
    name: str | None = Field(None, min_length=1, max_length=50)
    color: str | None = Field(None, pattern=COLOR_PATTERN)


class Tag(BaseModel):
    tag_id: str
    user_id: str
    name: str
    color: str | None = None
    created_at: datetime

    class Config:
        from_attributes = True


class TagWithStats(Tag):
    task_count: int = 0
    completed_count: int = 0
    pending_count: int = 0
