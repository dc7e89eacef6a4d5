import logging

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from tasknest.models.tasks import Project, Task
from tasknest.schemas.organizing import ProjectCreate, ProjectUpdate
from tasknest.services.access import find_owned, get_owned
from tasknest.services.organizing import list_by_name, apply_patch, with_stats
from tasknest.services.tasks import purge_task
from tasknest.utils.clock import utcnow

logger = logging.getLogger(__name__)

DEFAULT_PROJECT_COLOR = "#8f7559"


async def list_projects(db: AsyncSession, user_id: str) -> list[Project]:
    return await list_by_name(db, Project, user_id)


async def list_projects_with_stats(db: AsyncSession, user_id: str) -> list[dict]:
    projects = await list_by_name(db, Project, user_id)
    return await with_stats(db, projects, "project_id", Task.project_id)


async def get_project(db: AsyncSession, project_id: str, user_id: str) -> Project | None:
    return await find_owned(db, Project, project_id, user_id)


async def get_project_with_stats(db: AsyncSession, project_id: str, user_id: str) -> dict | None:
    project = await find_owned(db, Project, project_id, user_id)
    if project is None:
        return None
    return (await with_stats(db, [project], "project_id", Task.project_id))[0]


async def create_project(db: AsyncSession, data: ProjectCreate, user_id: str) -> Project:
    now = utcnow()
    project = Project(
        user_id=user_id,
        name=data.name,
        description=data.description,
        color=data.color or DEFAULT_PROJECT_COLOR,
        created_at=now,
        updated_at=now,
    )
    db.add(project)
    await db.flush()
    return project


async def update_project(db: AsyncSession, project_id: str, data: ProjectUpdate, user_id: str) -> Project:
    project = await get_owned(db, Project, project_id, user_id, "Project")
    apply_patch(project, data.model_dump(exclude_unset=True))
    project.updated_at = utcnow()
    await db.flush()
    return project


async def delete_project(db: AsyncSession, project_id: str, user_id: str, delete_tasks: bool = False):
    """
    Remove a project. With delete_tasks every task in it (soft-deleted ones included)
    is hard-deleted along with its dependents; otherwise the tasks are detached.
    """
    project = await get_owned(db, Project, project_id, user_id, "Project")

    result = await db.execute(select(Task).filter(Task.project_id == project_id))
    tasks = result.scalars().all()

    if delete_tasks:
        for task in tasks:
            await purge_task(db, task)
    else:
        now = utcnow()
        for task in tasks:
            task.project_id = None
            task.updated_at = now
        # Detach before the project row goes
        await db.flush()

    await db.delete(project)
    await db.flush()
    logger.info(
        "Project %s deleted (%d tasks %s)",
        project_id, len(tasks), "deleted" if delete_tasks else "detached",
    )
