from fastapi import APIRouter, Depends, Query
from fastapi.responses import PlainTextResponse
from sqlalchemy.ext.asyncio import AsyncSession

from tasknest.dependencies import get_db, get_current_user, get_optional_user
from tasknest.models.user import User as UserModel
from tasknest.services import analytics as analytics_service

router = APIRouter(prefix="/analytics", tags=["analytics"])


@router.get("/completion-rate")
async def get_completion_rate(
    days: int = Query(30, ge=1, le=365),
    db: AsyncSession = Depends(get_db),
    current_user: UserModel | None = Depends(get_optional_user),
):
    if current_user is None:
        return None
    return await analytics_service.completion_rate(db, current_user.user_id, days=days)


@router.get("/trends")
async def get_productivity_trends(
    days: int = Query(14, ge=1, le=365),
    db: AsyncSession = Depends(get_db),
    current_user: UserModel | None = Depends(get_optional_user),
):
    if current_user is None:
        return []
    return await analytics_service.productivity_trends(db, current_user.user_id, days=days)


@router.get("/by-priority")
async def get_stats_by_priority(db: AsyncSession = Depends(get_db), current_user: UserModel | None = Depends(get_optional_user)):
    if current_user is None:
        return []
    return await analytics_service.stats_by_priority(db, current_user.user_id)


@router.get("/by-project")
async def get_stats_by_project(db: AsyncSession = Depends(get_db), current_user: UserModel | None = Depends(get_optional_user)):
    if current_user is None:
        return []
    return await analytics_service.stats_by_project(db, current_user.user_id)


@router.get("/overdue")
async def get_overdue_stats(db: AsyncSession = Depends(get_db), current_user: UserModel | None = Depends(get_optional_user)):
    if current_user is None:
        return None
    return await analytics_service.overdue_stats(db, current_user.user_id)


@router.get("/weekly-summary")
async def get_weekly_summary(db: AsyncSession = Depends(get_db), current_user: UserModel | None = Depends(get_optional_user)):
    if current_user is None:
        return None
    return await analytics_service.weekly_summary(db, current_user.user_id)


@router.get("/reports/csv")
async def get_csv_report(db: AsyncSession = Depends(get_db), current_user: UserModel = Depends(get_current_user)):
    csv_data = await analytics_service.generate_csv_report(db, current_user.user_id)
    return PlainTextResponse(
        content=csv_data,
        media_type="text/csv",
        headers={"Content-Disposition": "attachment; filename=tasks_report.csv"}
    )
