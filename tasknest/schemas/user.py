from pydantic import BaseModel, EmailStr, field_validator
from datetime import datetime
from tasknest.utils.sanitization import sanitize_string


class UserSync(BaseModel):
    email: EmailStr
    name: str | None = None

    @field_validator("name", mode="before")
    @classmethod
    def sanitize(cls, v):
        return sanitize_string(v)


class UserUpdate(BaseModel):
    name: str | None = None

    @field_validator("name", mode="before")
    @classmethod
    def sanitize(cls, v):
        return sanitize_string(v)


class UserResponse(BaseModel):
    user_id: str
    email: str | None = None
    name: str | None = None
    created_at: datetime | None = None

    class Config:
        from_attributes = True
