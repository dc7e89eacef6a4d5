from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from tasknest.dependencies import get_db, get_current_user, get_optional_user
from tasknest.models.user import User as UserModel
from tasknest.schemas.reminder import (
    ReminderCreate, ReminderFromTask, ReminderUpdate, Reminder as ReminderSchema, ReminderWithTask,
)
from tasknest.schemas.task import CreatedId
from tasknest.services import reminders as reminder_service

router = APIRouter(prefix="/reminders", tags=["reminders"])


@router.get("/", response_model=list[ReminderWithTask])
async def list_reminders(db: AsyncSession = Depends(get_db), current_user: UserModel | None = Depends(get_optional_user)):
    if current_user is None:
        return []
    return await reminder_service.list_reminders(db, current_user.user_id)


@router.get("/upcoming", response_model=list[ReminderWithTask])
async def list_upcoming_reminders(
    limit: int = Query(10, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
    current_user: UserModel | None = Depends(get_optional_user),
):
    if current_user is None:
        return []
    return await reminder_service.list_upcoming_reminders(db, current_user.user_id, limit=limit)


@router.get("/overdue", response_model=list[ReminderWithTask])
async def list_overdue_reminders(db: AsyncSession = Depends(get_db), current_user: UserModel | None = Depends(get_optional_user)):
    if current_user is None:
        return []
    return await reminder_service.list_overdue_reminders(db, current_user.user_id)


@router.get("/{reminder_id}", response_model=ReminderWithTask | None)
async def get_reminder(reminder_id: str, db: AsyncSession = Depends(get_db), current_user: UserModel | None = Depends(get_optional_user)):
    if current_user is None:
        return None
    return await reminder_service.get_reminder(db, reminder_id, current_user.user_id)


@router.post("/", response_model=CreatedId, status_code=status.HTTP_201_CREATED)
async def create_reminder(data: ReminderCreate, db: AsyncSession = Depends(get_db), current_user: UserModel = Depends(get_current_user)):
    reminder = await reminder_service.create_reminder(db, data, current_user.user_id)
    await db.commit()
    return {"id": reminder.reminder_id}


@router.post("/from-task", response_model=CreatedId | None)
async def create_reminder_from_task(
    data: ReminderFromTask,
    db: AsyncSession = Depends(get_db),
    current_user: UserModel = Depends(get_current_user),
):
    """Returns null when the computed reminder time has already passed."""
    reminder = await reminder_service.create_reminder_from_task(
        db, data.task_id, current_user.user_id, hours_before_due=data.hours_before_due
    )
    if reminder is None:
        return None
    await db.commit()
    return {"id": reminder.reminder_id}


@router.patch("/{reminder_id}", response_model=ReminderSchema)
async def update_reminder(
    reminder_id: str,
    data: ReminderUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: UserModel = Depends(get_current_user),
):
    reminder = await reminder_service.update_reminder(db, reminder_id, data, current_user.user_id)
    await db.commit()
    return reminder


@router.post("/{reminder_id}/notified", status_code=status.HTTP_204_NO_CONTENT)
async def mark_notified(reminder_id: str, db: AsyncSession = Depends(get_db), current_user: UserModel = Depends(get_current_user)):
    await reminder_service.mark_notified(db, reminder_id, current_user.user_id)
    await db.commit()
    return None


@router.delete("/{reminder_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_reminder(reminder_id: str, db: AsyncSession = Depends(get_db), current_user: UserModel = Depends(get_current_user)):
    await reminder_service.delete_reminder(db, reminder_id, current_user.user_id)
    await db.commit()
    return None
