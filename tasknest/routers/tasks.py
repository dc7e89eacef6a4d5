from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from tasknest.dependencies import get_db, get_current_user, get_optional_user
from tasknest.models.user import User as UserModel
from tasknest.schemas.organizing import Tag as TagSchema
from tasknest.schemas.reminder import Reminder as ReminderSchema
from tasknest.schemas.task import (
    TaskCreate, TaskUpdate, TaskFilters, Task as TaskSchema,
    SubtasksCreate, CreatedId, CreatedIds, PRIORITY_PATTERN, STATUS_PATTERN,
)
from tasknest.services import tasks as task_service
from tasknest.services import tags as tag_service
from tasknest.services import reminders as reminder_service

router = APIRouter(prefix="/tasks", tags=["tasks"])


# ── Reads ───────────────────────────────────────────────

@router.get("/", response_model=list[TaskSchema])
async def list_tasks(
    status: str | None = Query(None, pattern=STATUS_PATTERN),
    priority: str | None = Query(None, pattern=PRIORITY_PATTERN),
    project_id: str | None = None,
    category_id: str | None = None,
    include_deleted: bool = False,
    db: AsyncSession = Depends(get_db),
    current_user: UserModel | None = Depends(get_optional_user),
):
    if current_user is None:
        return []
    filters = TaskFilters(
        status=status,
        priority=priority,
        project_id=project_id,
        category_id=category_id,
        include_deleted=include_deleted,
    )
    return await task_service.list_tasks(db, current_user.user_id, filters)


@router.get("/today", response_model=list[TaskSchema])
async def list_today(db: AsyncSession = Depends(get_db), current_user: UserModel | None = Depends(get_optional_user)):
    if current_user is None:
        return []
    return await task_service.list_today(db, current_user.user_id)


@router.get("/upcoming", response_model=list[TaskSchema])
async def list_upcoming(db: AsyncSession = Depends(get_db), current_user: UserModel | None = Depends(get_optional_user)):
    if current_user is None:
        return []
    return await task_service.list_upcoming(db, current_user.user_id)


@router.get("/overdue", response_model=list[TaskSchema])
async def list_overdue(db: AsyncSession = Depends(get_db), current_user: UserModel | None = Depends(get_optional_user)):
    if current_user is None:
        return []
    return await task_service.list_overdue(db, current_user.user_id)


@router.get("/search", response_model=list[TaskSchema])
async def search_tasks(
    q: str = "",
    status: str | None = Query(None, pattern=STATUS_PATTERN),
    priority: str | None = Query(None, pattern=PRIORITY_PATTERN),
    db: AsyncSession = Depends(get_db),
    current_user: UserModel | None = Depends(get_optional_user),
):
    if current_user is None:
        return []
    return await task_service.search_tasks(db, current_user.user_id, q, status=status, priority=priority)


@router.get("/{task_id}", response_model=TaskSchema | None)
async def get_task(task_id: str, db: AsyncSession = Depends(get_db), current_user: UserModel | None = Depends(get_optional_user)):
    if current_user is None:
        return None
    return await task_service.get_task(db, task_id, current_user.user_id)


@router.get("/{task_id}/subtasks", response_model=list[TaskSchema])
async def list_subtasks(task_id: str, db: AsyncSession = Depends(get_db), current_user: UserModel | None = Depends(get_optional_user)):
    if current_user is None:
        return []
    return await task_service.list_subtasks(db, task_id, current_user.user_id)


@router.get("/{task_id}/tags", response_model=list[TagSchema])
async def list_task_tags(task_id: str, db: AsyncSession = Depends(get_db), current_user: UserModel | None = Depends(get_optional_user)):
    if current_user is None:
        return []
    return await tag_service.tags_for_task(db, task_id, current_user.user_id)


@router.get("/{task_id}/reminders", response_model=list[ReminderSchema])
async def list_task_reminders(task_id: str, db: AsyncSession = Depends(get_db), current_user: UserModel | None = Depends(get_optional_user)):
    if current_user is None:
        return []
    return await reminder_service.reminders_for_task(db, task_id, current_user.user_id)


# ── Writes ──────────────────────────────────────────────

@router.post("/", response_model=CreatedId, status_code=status.HTTP_201_CREATED)
async def create_task(
    task_data: TaskCreate,
    db: AsyncSession = Depends(get_db),
    current_user: UserModel = Depends(get_current_user),
):
    task = await task_service.create_task(db, task_data, current_user.user_id)
    await db.commit()
    return {"id": task.task_id}


@router.patch("/{task_id}", response_model=TaskSchema)
async def update_task(
    task_id: str,
    update_data: TaskUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: UserModel = Depends(get_current_user),
):
    task = await task_service.update_task(db, task_id, update_data, current_user.user_id)
    await db.commit()
    return task


@router.post("/{task_id}/complete", response_model=TaskSchema)
async def complete_task(task_id: str, db: AsyncSession = Depends(get_db), current_user: UserModel = Depends(get_current_user)):
    task = await task_service.mark_complete(db, task_id, current_user.user_id)
    await db.commit()
    return task


@router.post("/{task_id}/toggle", response_model=TaskSchema)
async def toggle_task(task_id: str, db: AsyncSession = Depends(get_db), current_user: UserModel = Depends(get_current_user)):
    task = await task_service.toggle_status(db, task_id, current_user.user_id)
    await db.commit()
    return task


@router.post("/{task_id}/soft-delete", status_code=status.HTTP_204_NO_CONTENT)
async def soft_delete_task(task_id: str, db: AsyncSession = Depends(get_db), current_user: UserModel = Depends(get_current_user)):
    await task_service.soft_delete_task(db, task_id, current_user.user_id)
    await db.commit()
    return None


@router.post("/{task_id}/restore", response_model=TaskSchema)
async def restore_task(task_id: str, db: AsyncSession = Depends(get_db), current_user: UserModel = Depends(get_current_user)):
    task = await task_service.restore_task(db, task_id, current_user.user_id)
    await db.commit()
    return task


@router.delete("/{task_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_task(task_id: str, db: AsyncSession = Depends(get_db), current_user: UserModel = Depends(get_current_user)):
    await task_service.delete_task(db, task_id, current_user.user_id)
    await db.commit()
    return None


@router.post("/{task_id}/subtasks", response_model=CreatedIds, status_code=status.HTTP_201_CREATED)
async def create_subtasks(
    task_id: str,
    payload: SubtasksCreate,
    db: AsyncSession = Depends(get_db),
    current_user: UserModel = Depends(get_current_user),
):
    ids = await task_service.create_subtasks(db, task_id, payload.subtasks, current_user.user_id)
    await db.commit()
    return {"ids": ids}


@router.put("/{task_id}/tags/{tag_id}", status_code=status.HTTP_204_NO_CONTENT)
async def add_tag(task_id: str, tag_id: str, db: AsyncSession = Depends(get_db), current_user: UserModel = Depends(get_current_user)):
    await tag_service.add_tag_to_task(db, task_id, tag_id, current_user.user_id)
    await db.commit()
    return None


@router.delete("/{task_id}/tags/{tag_id}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_tag(task_id: str, tag_id: str, db: AsyncSession = Depends(get_db), current_user: UserModel = Depends(get_current_user)):
    await tag_service.remove_tag_from_task(db, task_id, tag_id, current_user.user_id)
    await db.commit()
    return None
