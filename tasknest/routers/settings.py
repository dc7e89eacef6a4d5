from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from tasknest.dependencies import get_db, get_current_user, get_optional_user
from tasknest.models.user import User as UserModel
from tasknest.schemas.settings import UserSettings, UserSettingsUpdate
from tasknest.services import user_settings as settings_service

router = APIRouter(prefix="/settings", tags=["settings"])


@router.get("/", response_model=UserSettings | None)
async def get_settings(db: AsyncSession = Depends(get_db), current_user: UserModel | None = Depends(get_optional_user)):
    if current_user is None:
        return None
    return await settings_service.get_settings(db, current_user.user_id)


@router.put("/", response_model=UserSettings)
async def update_settings(
    data: UserSettingsUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: UserModel = Depends(get_current_user),
):
    updated = await settings_service.update_settings(db, current_user.user_id, data)
    await db.commit()
    return updated


@router.post("/reset", response_model=UserSettings)
async def reset_settings(db: AsyncSession = Depends(get_db), current_user: UserModel = Depends(get_current_user)):
    updated = await settings_service.reset_settings(db, current_user.user_id)
    await db.commit()
    return updated
