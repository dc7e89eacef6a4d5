import logging
from datetime import datetime

from sqlalchemy import delete, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from tasknest.errors import InvalidState
from tasknest.models.tasks import Task, Project, Category, TaskTag
from tasknest.models.reminder import Reminder
from tasknest.models.suggestion import AISuggestion
from tasknest.schemas.task import TaskCreate, TaskUpdate, TaskFilters, SubtaskCreate
from tasknest.services.access import find_owned, get_owned
from tasknest.utils.clock import utcnow, start_of_local_day

logger = logging.getLogger(__name__)

SEARCH_LIMIT = 20
UPCOMING_DAYS = 7

# Update payloads may send null for these, but the columns cannot be cleared
NON_NULLABLE_FIELDS = {"title", "priority", "status"}


async def _check_references(
    db: AsyncSession,
    user_id: str,
    project_id: str | None = None,
    category_id: str | None = None,
):
    if project_id is not None:
        await get_owned(db, Project, project_id, user_id, "Project")
    if category_id is not None:
        await get_owned(db, Category, category_id, user_id, "Category")


async def _get_parent(db: AsyncSession, parent_task_id: str, user_id: str) -> Task:
    parent = await get_owned(db, Task, parent_task_id, user_id, "Parent task")
    if parent.parent_task_id is not None:
        raise InvalidState("Subtasks cannot have subtasks of their own")
    return parent


def _apply_status(task: Task, status: str, now: datetime):
    if status == task.status:
        return
    task.status = status
    task.completed_at = now if status == "completed" else None


async def create_task(db: AsyncSession, task_data: TaskCreate, user_id: str) -> Task:
    await _check_references(db, user_id, task_data.project_id, task_data.category_id)
    if task_data.parent_task_id is not None:
        await _get_parent(db, task_data.parent_task_id, user_id)

    now = utcnow()
    new_task = Task(
        user_id=user_id,
        title=task_data.title,
        description=task_data.description,
        due_date=task_data.due_date,
        priority=task_data.priority or "medium",
        status="pending",
        project_id=task_data.project_id,
        category_id=task_data.category_id,
        parent_task_id=task_data.parent_task_id,
        created_at=now,
        updated_at=now,
    )
    db.add(new_task)
    await db.flush()
    return new_task


async def get_task(db: AsyncSession, task_id: str, user_id: str) -> Task | None:
    return await find_owned(db, Task, task_id, user_id)


async def get_task_or_404(db: AsyncSession, task_id: str, user_id: str) -> Task:
    return await get_owned(db, Task, task_id, user_id, "Task")


async def update_task(db: AsyncSession, task_id: str, update_data: TaskUpdate, user_id: str) -> Task:
    task = await get_task_or_404(db, task_id, user_id)
    changes = update_data.model_dump(exclude_unset=True)
    await _check_references(db, user_id, changes.get("project_id"), changes.get("category_id"))

    now = utcnow()
    for key, value in changes.items():
        if value is None and key in NON_NULLABLE_FIELDS:
            continue
        if key == "status":
            _apply_status(task, value, now)
        else:
            setattr(task, key, value)

    task.updated_at = now
    await db.flush()
    return task


async def mark_complete(db: AsyncSession, task_id: str, user_id: str) -> Task:
    task = await get_task_or_404(db, task_id, user_id)
    now = utcnow()
    _apply_status(task, "completed", now)
    task.updated_at = now
    await db.flush()
    return task


async def toggle_status(db: AsyncSession, task_id: str, user_id: str) -> Task:
    task = await get_task_or_404(db, task_id, user_id)
    now = utcnow()
    _apply_status(task, "completed" if task.status == "pending" else "pending", now)
    task.updated_at = now
    await db.flush()
    return task


async def soft_delete_task(db: AsyncSession, task_id: str, user_id: str):
    task = await get_task_or_404(db, task_id, user_id)
    now = utcnow()
    task.deleted_at = now
    task.updated_at = now
    await db.flush()


async def restore_task(db: AsyncSession, task_id: str, user_id: str) -> Task:
    task = await get_task_or_404(db, task_id, user_id)
    task.deleted_at = None
    task.updated_at = utcnow()
    await db.flush()
    return task


async def purge_task(db: AsyncSession, task: Task):
    """
    Hard-delete a task and everything that only makes sense with it:
    tag links, reminders and cached suggestions go, subtasks are detached.
    Runs inside the caller's transaction.
    """
    await db.execute(delete(TaskTag).where(TaskTag.task_id == task.task_id))
    await db.execute(delete(Reminder).where(Reminder.task_id == task.task_id))
    await db.execute(delete(AISuggestion).where(AISuggestion.task_id == task.task_id))
    await db.execute(
        update(Task)
        .where(Task.parent_task_id == task.task_id)
        .values(parent_task_id=None, updated_at=utcnow())
    )
    await db.delete(task)
    await db.flush()


async def delete_task(db: AsyncSession, task_id: str, user_id: str):
    task = await get_task_or_404(db, task_id, user_id)
    await purge_task(db, task)
    logger.info("Task %s permanently deleted", task_id)


async def create_subtasks(
    db: AsyncSession,
    parent_task_id: str,
    subtasks: list[SubtaskCreate],
    user_id: str,
) -> list[str]:
    """All subtasks are added to the request transaction, so either all of them land or none."""
    parent = await _get_parent(db, parent_task_id, user_id)

    now = utcnow()
    new_tasks = []
    for subtask in subtasks:
        new_task = Task(
            user_id=user_id,
            title=subtask.title,
            description=subtask.description,
            priority=subtask.priority or parent.priority,
            status="pending",
            project_id=parent.project_id,
            category_id=parent.category_id,
            parent_task_id=parent.task_id,
            due_date=parent.due_date,
            created_at=now,
            updated_at=now,
        )
        db.add(new_task)
        new_tasks.append(new_task)

    await db.flush()
    return [t.task_id for t in new_tasks]


async def list_subtasks(db: AsyncSession, parent_task_id: str, user_id: str) -> list[Task]:
    result = await db.execute(
        select(Task)
        .filter(
            Task.parent_task_id == parent_task_id,
            Task.user_id == user_id,
            Task.deleted_at.is_(None),
        )
        .order_by(Task.created_at.asc())
    )
    return result.scalars().all()


async def list_tasks(db: AsyncSession, user_id: str, filters: TaskFilters) -> list[Task]:
    query = select(Task).filter(Task.user_id == user_id)

    if not filters.include_deleted:
        query = query.filter(Task.deleted_at.is_(None))
    if filters.status:
        query = query.filter(Task.status == filters.status)
    if filters.priority:
        query = query.filter(Task.priority == filters.priority)
    if filters.project_id:
        query = query.filter(Task.project_id == filters.project_id)
    if filters.category_id:
        query = query.filter(Task.category_id == filters.category_id)

    # Dated tasks first by due date, then undated ones newest first
    query = query.order_by(
        Task.due_date.is_(None),
        Task.due_date.asc(),
        Task.created_at.desc(),
    )
    result = await db.execute(query)
    return result.scalars().all()


def _pending_with_due_date(user_id: str):
    return select(Task).filter(
        Task.user_id == user_id,
        Task.deleted_at.is_(None),
        Task.status == "pending",
        Task.due_date.isnot(None),
    )


async def list_today(db: AsyncSession, user_id: str, now: datetime | None = None) -> list[Task]:
    now = now or utcnow()
    start = start_of_local_day(now)
    end = start_of_local_day(now, days=1)
    result = await db.execute(
        _pending_with_due_date(user_id)
        .filter(Task.due_date >= start, Task.due_date < end)
        .order_by(Task.due_date.asc())
    )
    return result.scalars().all()


async def list_overdue(db: AsyncSession, user_id: str, now: datetime | None = None) -> list[Task]:
    now = now or utcnow()
    result = await db.execute(
        _pending_with_due_date(user_id)
        .filter(Task.due_date < now)
        .order_by(Task.due_date.asc())
    )
    return result.scalars().all()


async def list_upcoming(db: AsyncSession, user_id: str, now: datetime | None = None) -> list[Task]:
    now = now or utcnow()
    start = start_of_local_day(now, days=1)
    end = start_of_local_day(now, days=1 + UPCOMING_DAYS)
    result = await db.execute(
        _pending_with_due_date(user_id)
        .filter(Task.due_date >= start, Task.due_date < end)
        .order_by(Task.due_date.asc())
    )
    return result.scalars().all()


async def search_tasks(
    db: AsyncSession,
    user_id: str,
    query_text: str,
    status: str | None = None,
    priority: str | None = None,
) -> list[Task]:
    query_text = (query_text or "").strip()
    if not query_text:
        return []

    query = select(Task).filter(
        Task.user_id == user_id,
        Task.deleted_at.is_(None),
        Task.title.icontains(query_text, autoescape=True),
    )
    if status:
        query = query.filter(Task.status == status)
    if priority:
        query = query.filter(Task.priority == priority)

    result = await db.execute(query.order_by(Task.created_at.desc()).limit(SEARCH_LIMIT))
    return result.scalars().all()
