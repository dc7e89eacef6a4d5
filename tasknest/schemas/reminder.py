from pydantic import BaseModel, Field, field_validator
from datetime import datetime
from tasknest.schemas.task import Task
from tasknest.utils.clock import as_utc


class ReminderCreate(BaseModel):
    task_id: str
    reminder_date: datetime

    @field_validator("reminder_date")
    @classmethod
    def normalize_reminder_date(cls, v):
        return as_utc(v)


class ReminderFromTask(BaseModel):
    task_id: str
    hours_before_due: float | None = Field(None, ge=0)


class ReminderUpdate(BaseModel):
    reminder_date: datetime | None = None
    notified: bool | None = None

    @field_validator("reminder_date")
    @classmethod
    def normalize_reminder_date(cls, v):
        return as_utc(v)


class Reminder(BaseModel):
    reminder_id: str
    task_id: str
    user_id: str
    reminder_date: datetime
    notified: bool
    created_at: datetime

    class Config:
        from_attributes = True


class ReminderWithTask(Reminder):
    task: Task | None = None
