import logging
from datetime import datetime, timedelta

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from sqlalchemy.orm import joinedload, contains_eager

from tasknest.config import settings
from tasknest.errors import InvalidState
from tasknest.models.reminder import Reminder
from tasknest.models.tasks import Task
from tasknest.schemas.reminder import ReminderCreate, ReminderUpdate
from tasknest.services.access import get_owned
from tasknest.services.user_settings import reminder_hours_for
from tasknest.utils.clock import utcnow, as_utc

logger = logging.getLogger(__name__)


def _with_live_task(user_id: str):
    # Inner join drops reminders whose task is gone; soft-deleted tasks are hidden too
    return (
        select(Reminder)
        .join(Task, Task.task_id == Reminder.task_id)
        .options(contains_eager(Reminder.task))
        .filter(Reminder.user_id == user_id, Task.deleted_at.is_(None))
    )


async def list_reminders(db: AsyncSession, user_id: str) -> list[Reminder]:
    result = await db.execute(_with_live_task(user_id).order_by(Reminder.reminder_date.asc()))
    return result.scalars().unique().all()


async def list_upcoming_reminders(db: AsyncSession, user_id: str, limit: int = 10, now: datetime | None = None) -> list[Reminder]:
    now = now or utcnow()
    result = await db.execute(
        _with_live_task(user_id)
        .filter(Reminder.notified == False, Reminder.reminder_date > now)
        .order_by(Reminder.reminder_date.asc())
        .limit(limit)
    )
    return result.scalars().unique().all()


async def list_overdue_reminders(db: AsyncSession, user_id: str, now: datetime | None = None) -> list[Reminder]:
    now = now or utcnow()
    result = await db.execute(
        _with_live_task(user_id)
        .filter(Reminder.notified == False, Reminder.reminder_date < now)
        .order_by(Reminder.reminder_date.asc())
    )
    return result.scalars().unique().all()


async def get_reminder(db: AsyncSession, reminder_id: str, user_id: str) -> Reminder | None:
    result = await db.execute(
        select(Reminder)
        .options(joinedload(Reminder.task))
        .filter(Reminder.reminder_id == reminder_id, Reminder.user_id == user_id)
    )
    return result.scalars().unique().first()


async def reminders_for_task(db: AsyncSession, task_id: str, user_id: str) -> list[Reminder]:
    result = await db.execute(
        select(Reminder)
        .filter(Reminder.task_id == task_id, Reminder.user_id == user_id)
        .order_by(Reminder.reminder_date.asc())
    )
    return result.scalars().all()


async def create_reminder(db: AsyncSession, data: ReminderCreate, user_id: str) -> Reminder:
    await get_owned(db, Task, data.task_id, user_id, "Task")
    reminder = Reminder(
        task_id=data.task_id,
        user_id=user_id,
        reminder_date=data.reminder_date,
        notified=False,
        created_at=utcnow(),
    )
    db.add(reminder)
    await db.flush()
    return reminder


async def create_reminder_from_task(
    db: AsyncSession,
    task_id: str,
    user_id: str,
    hours_before_due: float | None = None,
    now: datetime | None = None,
) -> Reminder | None:
    """
    Schedule a reminder N hours before the task is due. N is the explicit override,
    else the user's reminder_before_due setting, else DEFAULT_REMINDER_HOURS.
    Returns None (and stores nothing) when that moment has already passed.
    """
    task = await get_owned(db, Task, task_id, user_id, "Task")
    if task.due_date is None:
        raise InvalidState("Task has no due date")

    if hours_before_due is None:
        hours_before_due = await reminder_hours_for(db, user_id)
    if hours_before_due is None:
        hours_before_due = settings.DEFAULT_REMINDER_HOURS

    now = now or utcnow()
    reminder_date = as_utc(task.due_date) - timedelta(hours=hours_before_due)
    if reminder_date < now:
        logger.info("Skipping reminder for task %s: %s is already past", task_id, reminder_date.isoformat())
        return None

    reminder = Reminder(
        task_id=task_id,
        user_id=user_id,
        reminder_date=reminder_date,
        notified=False,
        created_at=now,
    )
    db.add(reminder)
    await db.flush()
    return reminder


async def update_reminder(db: AsyncSession, reminder_id: str, data: ReminderUpdate, user_id: str) -> Reminder:
    reminder = await get_owned(db, Reminder, reminder_id, user_id, "Reminder")
    for key, value in data.model_dump(exclude_unset=True).items():
        if value is None:
            continue
        setattr(reminder, key, value)
    await db.flush()
    return reminder


async def mark_notified(db: AsyncSession, reminder_id: str, user_id: str):
    reminder = await get_owned(db, Reminder, reminder_id, user_id, "Reminder")
    reminder.notified = True
    await db.flush()


async def delete_reminder(db: AsyncSession, reminder_id: str, user_id: str):
    reminder = await get_owned(db, Reminder, reminder_id, user_id, "Reminder")
    await db.delete(reminder)
    await db.flush()


def is_stale(task: Task | None) -> bool:
    """A reminder for a missing, soft-deleted or completed task must not notify anyone."""
    return task is None or task.deleted_at is not None or task.status == "completed"


async def process_reminders(db: AsyncSession, now: datetime | None = None, batch_size: int | None = None) -> list[Reminder]:
    """
    Mark one batch of due reminders as notified, oldest first.

    Returns the reminders that should actually be delivered; stale ones are
    marked notified silently. Re-running finds nothing left to do.
    """
    now = now or utcnow()
    batch_size = batch_size or settings.REMINDER_BATCH_SIZE

    result = await db.execute(
        select(Reminder)
        .options(joinedload(Reminder.task))
        .filter(Reminder.notified == False, Reminder.reminder_date < now)
        .order_by(Reminder.reminder_date.asc())
        .limit(batch_size)
    )
    due = result.scalars().unique().all()

    deliverable = []
    for reminder in due:
        reminder.notified = True
        if is_stale(reminder.task):
            continue
        deliverable.append(reminder)

    await db.flush()
    return deliverable
