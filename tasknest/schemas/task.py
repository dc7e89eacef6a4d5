from pydantic import BaseModel, Field, field_validator
from datetime import datetime
from tasknest.utils.clock import as_utc
from tasknest.utils.sanitization import sanitize_string

PRIORITY_PATTERN = r"^(high|medium|low)$"
STATUS_PATTERN = r"^(pending|completed)$"


class CreatedId(BaseModel):
    id: str


class CreatedIds(BaseModel):
    ids: list[str]


# ── Subtask schemas ─────────────────────────────────────

class SubtaskCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    description: str | None = None
    priority: str | None = Field(None, pattern=PRIORITY_PATTERN)

    @field_validator("title", "description", mode="before")
    @classmethod
    def sanitize(cls, v):
        return sanitize_string(v)


class SubtasksCreate(BaseModel):
    subtasks: list[SubtaskCreate] = Field(default_factory=list)


# ── Task schemas ────────────────────────────────────────

class TaskCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    description: str | None = None
    due_date: datetime | None = None
    priority: str = Field("medium", pattern=PRIORITY_PATTERN)
    project_id: str | None = None
    category_id: str | None = None
    parent_task_id: str | None = None

    @field_validator("title", "description", mode="before")
    @classmethod
    def sanitize(cls, v):
        return sanitize_string(v)

    @field_validator("project_id", "category_id", "parent_task_id", mode="before")
    @classmethod
    def blank_id_as_none(cls, v):
        return v or None

    @field_validator("due_date")
    @classmethod
    def normalize_due_date(cls, v):
        return as_utc(v)


class TaskUpdate(BaseModel):
    # Only fields present in the request are applied; null clears the nullable ones
    title: str | None = Field(None, min_length=1, max_length=200)
    description: str | None = None
    due_date: datetime | None = None
    priority: str | None = Field(None, pattern=PRIORITY_PATTERN)
    status: str | None = Field(None, pattern=STATUS_PATTERN)
    project_id: str | None = None
    category_id: str | None = None

    @field_validator("title", "description", mode="before")
    @classmethod
    def sanitize(cls, v):
        return sanitize_string(v)

    @field_validator("project_id", "category_id", mode="before")
    @classmethod
    def blank_id_as_none(cls, v):
        return v or None

    @field_validator("due_date")
    @classmethod
    def normalize_due_date(cls, v):
        return as_utc(v)


class TaskFilters(BaseModel):
    status: str | None = Field(None, pattern=STATUS_PATTERN)
    priority: str | None = Field(None, pattern=PRIORITY_PATTERN)
    project_id: str | None = None
    category_id: str | None = None
    include_deleted: bool = False


class Task(BaseModel):
    task_id: str
    user_id: str
    title: str
    description: str | None = None
    due_date: datetime | None = None
    priority: str
    status: str
    project_id: str | None = None
    category_id: str | None = None
    parent_task_id: str | None = None
    completed_at: datetime | None = None
    deleted_at: datetime | None = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True
