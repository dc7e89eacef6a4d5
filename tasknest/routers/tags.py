from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from tasknest.dependencies import get_db, get_current_user, get_optional_user
from tasknest.models.user import User as UserModel
from tasknest.schemas.organizing import TagCreate, TagUpdate, Tag as TagSchema, TagWithStats
from tasknest.schemas.task import CreatedId, Task as TaskSchema
from tasknest.services import tags as tag_service

router = APIRouter(prefix="/tags", tags=["tags"])


@router.get("/", response_model=list[TagSchema])
async def list_tags(db: AsyncSession = Depends(get_db), current_user: UserModel | None = Depends(get_optional_user)):
    if current_user is None:
        return []
    return await tag_service.list_tags(db, current_user.user_id)


@router.get("/stats", response_model=list[TagWithStats])
async def list_tags_with_stats(db: AsyncSession = Depends(get_db), current_user: UserModel | None = Depends(get_optional_user)):
    if current_user is None:
        return []
    return await tag_service.list_tags_with_stats(db, current_user.user_id)


@router.get("/{tag_id}", response_model=TagSchema | None)
async def get_tag(tag_id: str, db: AsyncSession = Depends(get_db), current_user: UserModel | None = Depends(get_optional_user)):
    if current_user is None:
        return None
    return await tag_service.get_tag(db, tag_id, current_user.user_id)


@router.get("/{tag_id}/tasks", response_model=list[TaskSchema])
async def list_tag_tasks(tag_id: str, db: AsyncSession = Depends(get_db), current_user: UserModel | None = Depends(get_optional_user)):
    if current_user is None:
        return []
    return await tag_service.tasks_for_tag(db, tag_id, current_user.user_id)


@router.post("/", response_model=CreatedId, status_code=status.HTTP_201_CREATED)
async def create_tag(data: TagCreate, db: AsyncSession = Depends(get_db), current_user: UserModel = Depends(get_current_user)):
    tag = await tag_service.create_tag(db, data, current_user.user_id)
    await db.commit()
    return {"id": tag.tag_id}


@router.patch("/{tag_id}", response_model=TagSchema)
async def update_tag(
    tag_id: str,
    data: TagUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: UserModel = Depends(get_current_user),
):
    tag = await tag_service.update_tag(db, tag_id, data, current_user.user_id)
    await db.commit()
    return tag


@router.delete("/{tag_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_tag(tag_id: str, db: AsyncSession = Depends(get_db), current_user: UserModel = Depends(get_current_user)):
    await tag_service.delete_tag(db, tag_id, current_user.user_id)
    await db.commit()
    return None
