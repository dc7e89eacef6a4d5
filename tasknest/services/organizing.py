"""Shared plumbing for projects, categories and tags: listing, patching and per-entity task counts."""
from sqlalchemy import func, inspect
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from tasknest.models.tasks import Task, TaskTag


def as_dict(entity) -> dict:
    return {attr.key: getattr(entity, attr.key) for attr in inspect(entity).mapper.column_attrs}


async def list_by_name(db: AsyncSession, model, user_id: str) -> list:
    result = await db.execute(
        select(model)
        .filter(model.user_id == user_id)
        .order_by(func.lower(model.name), model.name)
    )
    return result.scalars().all()


def apply_patch(entity, changes: dict, non_nullable: tuple = ("name",)):
    for key, value in changes.items():
        if value is None and key in non_nullable:
            continue
        setattr(entity, key, value)


async def status_counts(db: AsyncSession, group_column, ids: list[str]) -> dict[str, dict[str, int]]:
    """
    Count non-deleted tasks per entity id, split by status.
    `group_column` is Task.project_id, Task.category_id or TaskTag.tag_id.
    """
    counts = {i: {"task_count": 0, "completed_count": 0, "pending_count": 0} for i in ids}
    if not ids:
        return counts

    query = select(group_column, Task.status, func.count(Task.task_id))
    if group_column.class_ is TaskTag:
        query = query.select_from(TaskTag).join(Task, Task.task_id == TaskTag.task_id)
    query = query.filter(group_column.in_(ids), Task.deleted_at.is_(None)).group_by(group_column, Task.status)

    for entity_id, status, count in (await db.execute(query)).all():
        bucket = counts[entity_id]
        bucket["task_count"] += count
        bucket[f"{status}_count"] = bucket.get(f"{status}_count", 0) + count
    return counts


async def with_stats(db: AsyncSession, entities: list, id_attr: str, group_column) -> list[dict]:
    ids = [getattr(e, id_attr) for e in entities]
    counts = await status_counts(db, group_column, ids)
    return [{**as_dict(e), **counts[getattr(e, id_attr)]} for e in entities]
