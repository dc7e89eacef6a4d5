from sqlalchemy.ext.asyncio import AsyncSession

from tasknest.errors import NotFound


async def find_owned(db: AsyncSession, model, entity_id: str, user_id: str):
    """Fetch by primary key; None when the row is absent or belongs to someone else."""
    if not entity_id:
        return None
    entity = await db.get(model, entity_id)
    if entity is None or entity.user_id != user_id:
        return None
    return entity


async def get_owned(db: AsyncSession, model, entity_id: str, user_id: str, entity_name: str):
    """Like find_owned, but raises NotFound so mutations fail closed."""
    entity = await find_owned(db, model, entity_id, user_id)
    if entity is None:
        raise NotFound(entity_name)
    return entity
