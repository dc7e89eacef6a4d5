import logging

from sqlalchemy import delete
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from tasknest.models.tasks import Tag, Task, TaskTag
from tasknest.schemas.organizing import TagCreate, TagUpdate
from tasknest.services.access import find_owned, get_owned
from tasknest.services.organizing import list_by_name, apply_patch, with_stats
from tasknest.utils.clock import utcnow

logger = logging.getLogger(__name__)

DEFAULT_TAG_COLOR = "#6366f1"


async def list_tags(db: AsyncSession, user_id: str) -> list[Tag]:
    return await list_by_name(db, Tag, user_id)


async def list_tags_with_stats(db: AsyncSession, user_id: str) -> list[dict]:
    tags = await list_by_name(db, Tag, user_id)
    return await with_stats(db, tags, "tag_id", TaskTag.tag_id)


async def get_tag(db: AsyncSession, tag_id: str, user_id: str) -> Tag | None:
    return await find_owned(db, Tag, tag_id, user_id)


async def tags_for_task(db: AsyncSession, task_id: str, user_id: str) -> list[Tag]:
    result = await db.execute(
        select(Tag)
        .join(TaskTag, TaskTag.tag_id == Tag.tag_id)
        .filter(TaskTag.task_id == task_id, Tag.user_id == user_id)
        .order_by(Tag.name)
    )
    return result.scalars().all()


async def tasks_for_tag(db: AsyncSession, tag_id: str, user_id: str) -> list[Task]:
    if await find_owned(db, Tag, tag_id, user_id) is None:
        return []
    result = await db.execute(
        select(Task)
        .join(TaskTag, TaskTag.task_id == Task.task_id)
        .filter(TaskTag.tag_id == tag_id, Task.user_id == user_id, Task.deleted_at.is_(None))
        .order_by(Task.created_at.desc())
    )
    return result.scalars().all()


async def create_tag(db: AsyncSession, data: TagCreate, user_id: str) -> Tag:
    tag = Tag(
        user_id=user_id,
        name=data.name,
        color=data.color or DEFAULT_TAG_COLOR,
        created_at=utcnow(),
    )
    db.add(tag)
    await db.flush()
    return tag


async def update_tag(db: AsyncSession, tag_id: str, data: TagUpdate, user_id: str) -> Tag:
    tag = await get_owned(db, Tag, tag_id, user_id, "Tag")
    apply_patch(tag, data.model_dump(exclude_unset=True))
    await db.flush()
    return tag


async def delete_tag(db: AsyncSession, tag_id: str, user_id: str):
    # Links go, tasks stay
    tag = await get_owned(db, Tag, tag_id, user_id, "Tag")
    await db.execute(delete(TaskTag).where(TaskTag.tag_id == tag_id))
    await db.delete(tag)
    await db.flush()


async def _find_link(db: AsyncSession, task_id: str, tag_id: str) -> TaskTag | None:
    result = await db.execute(
        select(TaskTag).filter(TaskTag.task_id == task_id, TaskTag.tag_id == tag_id)
    )
    return result.scalars().first()


async def add_tag_to_task(db: AsyncSession, task_id: str, tag_id: str, user_id: str):
    """Idempotent: linking an already linked pair does nothing."""
    await get_owned(db, Task, task_id, user_id, "Task")
    await get_owned(db, Tag, tag_id, user_id, "Tag")

    if await _find_link(db, task_id, tag_id) is not None:
        return

    db.add(TaskTag(task_id=task_id, tag_id=tag_id))
    try:
        await db.flush()
    except IntegrityError:
        # A concurrent request linked the same pair first
        await db.rollback()
        logger.info("Tag %s already linked to task %s", tag_id, task_id)


async def remove_tag_from_task(db: AsyncSession, task_id: str, tag_id: str, user_id: str):
    await get_owned(db, Task, task_id, user_id, "Task")
    link = await _find_link(db, task_id, tag_id)
    if link is not None:
        await db.delete(link)
        await db.flush()
