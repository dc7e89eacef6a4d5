from sqlalchemy import Column, String, Boolean, DateTime, ForeignKey, Index
from sqlalchemy.orm import relationship
from tasknest.database import Base
from tasknest.models.user import generate_id


class Reminder(Base):
    __tablename__ = "reminders"
    __table_args__ = (
        Index("ix_reminders_user_date", "user_id", "reminder_date"),
        Index("ix_reminders_pending", "notified", "reminder_date"),
    )

    reminder_id = Column(String(36), primary_key=True, default=generate_id)
    task_id = Column(String(36), ForeignKey("tasks.task_id", ondelete="CASCADE"), index=True, nullable=False)
    user_id = Column(String(36), ForeignKey("users.user_id", ondelete="CASCADE"), nullable=False)
    reminder_date = Column(DateTime(timezone=True), nullable=False)
    notified = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False)

    task = relationship("Task", foreign_keys=[task_id])
