from fastapi import APIRouter, Depends, Path
from sqlalchemy.ext.asyncio import AsyncSession

from tasknest.dependencies import get_db, get_current_user, get_optional_user
from tasknest.models.user import User as UserModel
from tasknest.schemas.suggestion import (
    PriorityRequest, DeadlineRequest, BreakdownRequest, SummaryRequest,
    CacheSuggestionRequest, AISuggestion as AISuggestionSchema, SUGGESTION_TYPE_PATTERN,
)
from tasknest.schemas.task import CreatedId
from tasknest.services import suggestions as suggestion_service

router = APIRouter(prefix="/ai", tags=["ai"])


@router.post("/priority")
async def suggest_priority(request: PriorityRequest, current_user: UserModel = Depends(get_current_user)):
    return suggestion_service.suggest_priority(request.title, request.description, request.due_date)


@router.post("/deadline")
async def recommend_deadline(request: DeadlineRequest, current_user: UserModel = Depends(get_current_user)):
    return suggestion_service.recommend_deadline(request.title, request.description)


@router.post("/subtasks")
async def breakdown_subtasks(request: BreakdownRequest):
    return suggestion_service.breakdown_subtasks(request.title, request.description)


@router.post("/summary")
async def productivity_summary(request: SummaryRequest):
    return suggestion_service.productivity_summary(request.period)


@router.get("/insights")
async def get_insights():
    return suggestion_service.insights()


@router.post("/suggestions", response_model=CreatedId)
async def cache_suggestion(
    request: CacheSuggestionRequest,
    db: AsyncSession = Depends(get_db),
    current_user: UserModel = Depends(get_current_user),
):
    row = await suggestion_service.cache_suggestion(
        db,
        current_user.user_id,
        request.task_id,
        request.type,
        request.suggestion,
        metadata=request.metadata,
        expires_in_hours=request.expires_in_hours,
    )
    await db.commit()
    return {"id": row.suggestion_id}


@router.get("/suggestions/{task_id}/{suggestion_type}", response_model=AISuggestionSchema | None)
async def get_cached_suggestion(
    task_id: str,
    suggestion_type: str = Path(..., pattern=SUGGESTION_TYPE_PATTERN),
    db: AsyncSession = Depends(get_db),
    current_user: UserModel | None = Depends(get_optional_user),
):
    if current_user is None:
        return None
    return await suggestion_service.get_cached_suggestion(db, current_user.user_id, task_id, suggestion_type)
