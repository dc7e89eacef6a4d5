import asyncio
import fcntl
import logging
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware

from tasknest.config import settings
from tasknest.database import create_tables
from tasknest.logging_setup import setup_logging
from tasknest.routers.tasks import router as tasks_router
from tasknest.routers.projects import router as projects_router
from tasknest.routers.categories import router as categories_router
from tasknest.routers.tags import router as tags_router
from tasknest.routers.reminders import router as reminders_router
from tasknest.routers.settings import router as settings_router
from tasknest.routers.users import router as users_router
from tasknest.routers.analytics import router as analytics_router
from tasknest.routers.ai import router as ai_router

from tasknest.services.scheduler import setup_scheduler
from tasknest.services.email_worker import email_worker

logger = logging.getLogger(__name__)

SCHEDULER_LOCK_FILE = "/tmp/tasknest_scheduler.lock"


def _acquire_scheduler_lock():
    """Only the first worker process to grab the file lock runs the reminder scheduler."""
    lock_fd = open(SCHEDULER_LOCK_FILE, "w")
    try:
        fcntl.flock(lock_fd, fcntl.LOCK_EX | fcntl.LOCK_NB)
    except OSError:
        lock_fd.close()
        return None
    return lock_fd


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging()
    await create_tables()

    lock_fd = None
    scheduler = None
    if settings.SCHEDULER_ENABLED:
        lock_fd = _acquire_scheduler_lock()
        if lock_fd is not None:
            logger.info("[PROCESS %s] Acquired scheduler lock. Starting APScheduler...", os.getpid())
            scheduler = setup_scheduler()
        else:
            logger.info("[PROCESS %s] Another worker is running the scheduler. Skipping.", os.getpid())

    # The queue is per process, so every worker drains its own
    worker_task = asyncio.create_task(email_worker())

    yield

    if scheduler:
        scheduler.shutdown(wait=True)
    if lock_fd:
        fcntl.flock(lock_fd, fcntl.LOCK_UN)
        lock_fd.close()

    worker_task.cancel()
    try:
        await worker_task
    except asyncio.CancelledError:
        logger.info("[WORKER] Email worker shut down.")


app = FastAPI(
    lifespan=lifespan,
    title="TaskNest API",
    description="Personal task management with projects, tags, reminders, analytics and suggestions",
    version="1.0.0",
)

app.add_middleware(
    CORSMiddleware,
    allow_origin_regex="https?://.*",
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Unhandled errors still carry CORS headers so the browser surfaces the 500
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=500,
        content={"detail": "Internal Server Error", "error": str(exc)},
        headers={
            "Access-Control-Allow-Origin": "*",
            "Access-Control-Allow-Credentials": "true"
        }
    )

app.include_router(tasks_router)
app.include_router(projects_router)
app.include_router(categories_router)
app.include_router(tags_router)
app.include_router(reminders_router)
app.include_router(settings_router)
app.include_router(users_router)
app.include_router(analytics_router)
app.include_router(ai_router)


@app.get("/")
def root():
    return {"message": "TaskNest API running"}
