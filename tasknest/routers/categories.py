from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from tasknest.dependencies import get_db, get_current_user, get_optional_user
from tasknest.models.user import User as UserModel
from tasknest.schemas.organizing import CategoryCreate, CategoryUpdate, Category as CategorySchema, CategoryWithStats
from tasknest.schemas.task import CreatedId
from tasknest.services import categories as category_service

router = APIRouter(prefix="/categories", tags=["categories"])


@router.get("/", response_model=list[CategorySchema])
async def list_categories(db: AsyncSession = Depends(get_db), current_user: UserModel | None = Depends(get_optional_user)):
    if current_user is None:
        return []
    return await category_service.list_categories(db, current_user.user_id)


@router.get("/stats", response_model=list[CategoryWithStats])
async def list_categories_with_stats(db: AsyncSession = Depends(get_db), current_user: UserModel | None = Depends(get_optional_user)):
    if current_user is None:
        return []
    return await category_service.list_categories_with_stats(db, current_user.user_id)


@router.get("/{category_id}", response_model=CategorySchema | None)
async def get_category(category_id: str, db: AsyncSession = Depends(get_db), current_user: UserModel | None = Depends(get_optional_user)):
    if current_user is None:
        return None
    return await category_service.get_category(db, category_id, current_user.user_id)


@router.post("/", response_model=CreatedId, status_code=status.HTTP_201_CREATED)
async def create_category(data: CategoryCreate, db: AsyncSession = Depends(get_db), current_user: UserModel = Depends(get_current_user)):
    category = await category_service.create_category(db, data, current_user.user_id)
    await db.commit()
    return {"id": category.category_id}


@router.patch("/{category_id}", response_model=CategorySchema)
async def update_category(
    category_id: str,
    data: CategoryUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: UserModel = Depends(get_current_user),
):
    category = await category_service.update_category(db, category_id, data, current_user.user_id)
    await db.commit()
    return category


@router.delete("/{category_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_category(category_id: str, db: AsyncSession = Depends(get_db), current_user: UserModel = Depends(get_current_user)):
    await category_service.delete_category(db, category_id, current_user.user_id)
    await db.commit()
    return None
