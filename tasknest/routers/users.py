from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from tasknest.dependencies import get_db, get_current_user, get_optional_user
from tasknest.models.user import User as UserModel
from tasknest.schemas.user import UserResponse, UserSync, UserUpdate
from tasknest.services import users as user_service

router = APIRouter(prefix="/users", tags=["users"])


@router.get("/me", response_model=UserResponse | None)
async def get_me(current_user: UserModel | None = Depends(get_optional_user)):
    return current_user


@router.patch("/me", response_model=UserResponse)
async def update_me(
    user_update: UserUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: UserModel = Depends(get_current_user),
):
    user = await user_service.update_profile(db, current_user, user_update.name)
    await db.commit()
    return user


@router.post("/me/sync", response_model=UserResponse)
async def sync_me(
    payload: UserSync,
    db: AsyncSession = Depends(get_db),
    current_user: UserModel = Depends(get_current_user),
):
    """Fill in email/name from the auth provider's profile where they are still empty."""
    user = await user_service.sync_profile(db, current_user, payload.email, payload.name)
    await db.commit()
    return user
