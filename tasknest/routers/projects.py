from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from tasknest.dependencies import get_db, get_current_user, get_optional_user
from tasknest.models.user import User as UserModel
from tasknest.schemas.organizing import ProjectCreate, ProjectUpdate, Project as ProjectSchema, ProjectWithStats
from tasknest.schemas.task import CreatedId
from tasknest.services import projects as project_service

router = APIRouter(prefix="/projects", tags=["projects"])


@router.get("/", response_model=list[ProjectSchema])
async def list_projects(db: AsyncSession = Depends(get_db), current_user: UserModel | None = Depends(get_optional_user)):
    if current_user is None:
        return []
    return await project_service.list_projects(db, current_user.user_id)


@router.get("/stats", response_model=list[ProjectWithStats])
async def list_projects_with_stats(db: AsyncSession = Depends(get_db), current_user: UserModel | None = Depends(get_optional_user)):
    if current_user is None:
        return []
    return await project_service.list_projects_with_stats(db, current_user.user_id)


@router.get("/{project_id}", response_model=ProjectSchema | None)
async def get_project(project_id: str, db: AsyncSession = Depends(get_db), current_user: UserModel | None = Depends(get_optional_user)):
    if current_user is None:
        return None
    return await project_service.get_project(db, project_id, current_user.user_id)


@router.get("/{project_id}/stats", response_model=ProjectWithStats | None)
async def get_project_with_stats(project_id: str, db: AsyncSession = Depends(get_db), current_user: UserModel | None = Depends(get_optional_user)):
    if current_user is None:
        return None
    return await project_service.get_project_with_stats(db, project_id, current_user.user_id)


@router.post("/", response_model=CreatedId, status_code=status.HTTP_201_CREATED)
async def create_project(data: ProjectCreate, db: AsyncSession = Depends(get_db), current_user: UserModel = Depends(get_current_user)):
    project = await project_service.create_project(db, data, current_user.user_id)
    await db.commit()
    return {"id": project.project_id}


@router.patch("/{project_id}", response_model=ProjectSchema)
async def update_project(
    project_id: str,
    data: ProjectUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: UserModel = Depends(get_current_user),
):
    project = await project_service.update_project(db, project_id, data, current_user.user_id)
    await db.commit()
    return project


@router.delete("/{project_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_project(
    project_id: str,
    delete_tasks: bool = False,
    db: AsyncSession = Depends(get_db),
    current_user: UserModel = Depends(get_current_user),
):
    await project_service.delete_project(db, project_id, current_user.user_id, delete_tasks=delete_tasks)
    await db.commit()
    return None
