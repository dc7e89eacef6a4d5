from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from tasknest.models.tasks import Category, Task
from tasknest.schemas.organizing import CategoryCreate, CategoryUpdate
from tasknest.services.access import find_owned, get_owned
from tasknest.services.organizing import list_by_name, apply_patch, with_stats
from tasknest.utils.clock import utcnow

DEFAULT_CATEGORY_COLOR = "#0ea5e9"


async def list_categories(db: AsyncSession, user_id: str) -> list[Category]:
    return await list_by_name(db, Category, user_id)


async def list_categories_with_stats(db: AsyncSession, user_id: str) -> list[dict]:
    categories = await list_by_name(db, Category, user_id)
    return await with_stats(db, categories, "category_id", Task.category_id)


async def get_category(db: AsyncSession, category_id: str, user_id: str) -> Category | None:
    return await find_owned(db, Category, category_id, user_id)


async def create_category(db: AsyncSession, data: CategoryCreate, user_id: str) -> Category:
    now = utcnow()
    category = Category(
        user_id=user_id,
        name=data.name,
        color=data.color or DEFAULT_CATEGORY_COLOR,
        created_at=now,
        updated_at=now,
    )
    db.add(category)
    await db.flush()
    return category


async def update_category(db: AsyncSession, category_id: str, data: CategoryUpdate, user_id: str) -> Category:
    category = await get_owned(db, Category, category_id, user_id, "Category")
    apply_patch(category, data.model_dump(exclude_unset=True))
    category.updated_at = utcnow()
    await db.flush()
    return category


async def delete_category(db: AsyncSession, category_id: str, user_id: str):
    # Tasks are never deleted with their category, only detached
    category = await get_owned(db, Category, category_id, user_id, "Category")

    result = await db.execute(select(Task).filter(Task.category_id == category_id))
    now = utcnow()
    for task in result.scalars().all():
        task.category_id = None
        task.updated_at = now
    await db.flush()

    await db.delete(category)
    await db.flush()
