import uuid

from sqlalchemy import Column, String, Boolean, Integer, DateTime, ForeignKey
from tasknest.database import Base


def generate_id() -> str:
    return str(uuid.uuid4())


class User(Base):
    __tablename__ = "users"

    user_id = Column(String(36), primary_key=True, default=generate_id)
    # Stable identity ("sub") issued by the auth service
    auth_subject = Column(String(255), unique=True, index=True, nullable=False)
    email = Column(String(255), index=True, nullable=True)
    name = Column(String(100), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=True)


class UserSettings(Base):
    __tablename__ = "user_settings"

    settings_id = Column(String(36), primary_key=True, default=generate_id)
    user_id = Column(String(36), ForeignKey("users.user_id", ondelete="CASCADE"), unique=True, nullable=False)
    email_notifications = Column(Boolean, default=True, nullable=False)
    push_notifications = Column(Boolean, default=True, nullable=False)
    reminder_before_due = Column(Integer, default=24, nullable=False)  # hours
    theme = Column(String(10), default="light", nullable=False)  # light/dark/system
    updated_at = Column(DateTime(timezone=True), nullable=False)
