from pydantic import BaseModel, Field
from datetime import datetime


class NotificationPreferences(BaseModel):
    email: bool = True
    push: bool = True
    reminder_before_due: int = Field(24, ge=0, description="Hours before the due date")


class UserSettingsUpdate(BaseModel):
    notification_preferences: NotificationPreferences | None = None
    theme: str | None = Field(None, pattern=r"^(light|dark|system)$")


class UserSettings(BaseModel):
    user_id: str
    notification_preferences: NotificationPreferences
    theme: str
    updated_at: datetime
