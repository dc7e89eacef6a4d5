from pydantic import BaseModel, Field
from datetime import datetime
from typing import Any

SUGGESTION_TYPE_PATTERN = r"^(priority|deadline|subtasks|insight)$"


class PriorityRequest(BaseModel):
    title: str
    description: str | None = None
    due_date: datetime | None = None


class DeadlineRequest(BaseModel):
    title: str
    description: str | None = None


class BreakdownRequest(BaseModel):
    task_id: str | None = None
    title: str
    description: str | None = None


class SummaryRequest(BaseModel):
    period: str = Field(..., pattern=r"^(daily|weekly|monthly)$")


class CacheSuggestionRequest(BaseModel):
    task_id: str
    type: str = Field(..., pattern=SUGGESTION_TYPE_PATTERN)
    suggestion: str
    metadata: Any | None = None
    expires_in_hours: float | None = Field(None, gt=0)


class AISuggestion(BaseModel):
    suggestion_id: str
    task_id: str
    user_id: str
    type: str
    suggestion: str
    metadata: Any | None = Field(None, validation_alias="meta")
    created_at: datetime
    expires_at: datetime

    class Config:
        from_attributes = True
