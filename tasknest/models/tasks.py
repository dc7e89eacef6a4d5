from sqlalchemy import Column, String, Text, DateTime, ForeignKey, Index, UniqueConstraint
from tasknest.database import Base
from tasknest.models.user import generate_id


class Project(Base):
    __tablename__ = "projects"

    project_id = Column(String(36), primary_key=True, default=generate_id)
    user_id = Column(String(36), ForeignKey("users.user_id", ondelete="CASCADE"), index=True, nullable=False)
    name = Column(String(100), nullable=False)
    description = Column(Text, nullable=True)
    color = Column(String(20), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False)
    updated_at = Column(DateTime(timezone=True), nullable=False)


class Category(Base):
    __tablename__ = "categories"

    category_id = Column(String(36), primary_key=True, default=generate_id)
    user_id = Column(String(36), ForeignKey("users.user_id", ondelete="CASCADE"), index=True, nullable=False)
    name = Column(String(100), nullable=False)
    color = Column(String(20), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False)
    updated_at = Column(DateTime(timezone=True), nullable=False)


class Tag(Base):
    __tablename__ = "tags"

    tag_id = Column(String(36), primary_key=True, default=generate_id)
    user_id = Column(String(36), ForeignKey("users.user_id", ondelete="CASCADE"), index=True, nullable=False)
    name = Column(String(50), nullable=False)
    color = Column(String(20), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False)


class Task(Base):
    __tablename__ = "tasks"
    __table_args__ = (
        Index("ix_tasks_user_status", "user_id", "status"),
        Index("ix_tasks_user_due_date", "user_id", "due_date"),
    )

    task_id = Column(String(36), primary_key=True, default=generate_id)
    user_id = Column(String(36), ForeignKey("users.user_id", ondelete="CASCADE"), index=True, nullable=False)
    title = Column(String(200), nullable=False)
    description = Column(Text, nullable=True)
    due_date = Column(DateTime(timezone=True), nullable=True)
    priority = Column(String(20), default="medium", nullable=False)  # high/medium/low
    status = Column(String(20), default="pending", nullable=False)  # pending/completed
    project_id = Column(String(36), ForeignKey("projects.project_id", ondelete="SET NULL"), index=True, nullable=True)
    category_id = Column(String(36), ForeignKey("categories.category_id", ondelete="SET NULL"), index=True, nullable=True)
    parent_task_id = Column(String(36), ForeignKey("tasks.task_id", ondelete="SET NULL"), index=True, nullable=True)
    completed_at = Column(DateTime(timezone=True), nullable=True)
    deleted_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False)
    updated_at = Column(DateTime(timezone=True), nullable=False)


class TaskTag(Base):
    __tablename__ = "task_tags"
    __table_args__ = (
        UniqueConstraint("task_id", "tag_id", name="_task_tag_uc"),
    )

    id = Column(String(36), primary_key=True, default=generate_id)
    task_id = Column(String(36), ForeignKey("tasks.task_id", ondelete="CASCADE"), index=True, nullable=False)
    tag_id = Column(String(36), ForeignKey("tags.tag_id", ondelete="CASCADE"), index=True, nullable=False)
