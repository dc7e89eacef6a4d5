from datetime import datetime, timedelta

import pandas as pd
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from tasknest.models.tasks import Task as TaskModel, Project
from tasknest.utils.clock import utcnow, as_utc, local_tz, start_of_local_day

PRIORITIES = ("low", "medium", "high")
NO_PROJECT_NAME = "No Project"
NO_PROJECT_COLOR = "#78716c"

TASK_COLUMNS = [
    "task_id", "title", "priority", "status", "project_id", "category_id",
    "parent_task_id", "due_date", "created_at", "completed_at",
]


def _rate(part: int, whole: int) -> int:
    return round(part / whole * 100) if whole > 0 else 0


async def _live_tasks(db: AsyncSession, user_id: str, created_since: datetime | None = None) -> list[TaskModel]:
    query = select(TaskModel).filter(TaskModel.user_id == user_id, TaskModel.deleted_at.is_(None))
    if created_since is not None:
        query = query.filter(TaskModel.created_at >= created_since)
    result = await db.execute(query)
    return result.scalars().all()


async def get_task_dataframe(db: AsyncSession, user_id: str) -> pd.DataFrame:
    result = await db.execute(
        select(
            TaskModel.task_id, TaskModel.title, TaskModel.priority, TaskModel.status,
            TaskModel.project_id, TaskModel.category_id, TaskModel.parent_task_id,
            TaskModel.due_date, TaskModel.created_at, TaskModel.completed_at,
        ).filter(TaskModel.user_id == user_id, TaskModel.deleted_at.is_(None))
        .order_by(TaskModel.created_at.asc())
    )
    rows = result.all()

    if not rows:
        return pd.DataFrame(columns=TASK_COLUMNS)

    df = pd.DataFrame([dict(row._mapping) for row in rows], columns=TASK_COLUMNS)
    for column in ("due_date", "created_at", "completed_at"):
        df[column] = pd.to_datetime(df[column], utc=True)
    return df


async def completion_rate(db: AsyncSession, user_id: str, days: int = 30, now: datetime | None = None) -> dict:
    now = now or utcnow()
    tasks = await _live_tasks(db, user_id, created_since=now - timedelta(days=days))

    completed = sum(1 for t in tasks if t.status == "completed")
    pending = sum(1 for t in tasks if t.status == "pending")
    return {
        "total": len(tasks),
        "completed": completed,
        "pending": pending,
        "completion_rate": _rate(completed, len(tasks)),
        "period": days,
    }


async def productivity_trends(db: AsyncSession, user_id: str, days: int = 14, now: datetime | None = None) -> list[dict]:
    """
    Created and completed counts for each of the last `days` local calendar days,
    oldest first. Days without activity are present with zero counts.
    """
    now = now or utcnow()
    window_start = start_of_local_day(now, -(days - 1))
    tz = local_tz()

    today = as_utc(now).astimezone(tz).date()
    day_index = pd.Index([today - timedelta(days=i) for i in range(days - 1, -1, -1)], name="date")

    df = await get_task_dataframe(db, user_id)
    created = pd.Series(0, index=day_index)
    completed = pd.Series(0, index=day_index)

    if not df.empty:
        created_days = df.loc[df["created_at"] >= window_start, "created_at"].dt.tz_convert(tz).dt.date
        created = created_days.value_counts().reindex(day_index, fill_value=0)

        done = df[(df["status"] == "completed") & df["completed_at"].notna()]
        done_days = done.loc[done["completed_at"] >= window_start, "completed_at"].dt.tz_convert(tz).dt.date
        completed = done_days.value_counts().reindex(day_index, fill_value=0)

    return [
        {"date": day.isoformat(), "created": int(created[day]), "completed": int(completed[day])}
        for day in day_index
    ]


async def stats_by_priority(db: AsyncSession, user_id: str) -> list[dict]:
    tasks = await _live_tasks(db, user_id)

    stats = []
    for priority in PRIORITIES:
        group = [t for t in tasks if t.priority == priority]
        completed = sum(1 for t in group if t.status == "completed")
        stats.append({
            "priority": priority,
            "total": len(group),
            "completed": completed,
            "pending": sum(1 for t in group if t.status == "pending"),
            "completion_rate": _rate(completed, len(group)),
        })
    return stats


def _project_row(project_id, name, color, group: list[TaskModel]) -> dict:
    completed = sum(1 for t in group if t.status == "completed")
    return {
        "project_id": project_id,
        "project_name": name,
        "project_color": color,
        "total": len(group),
        "completed": completed,
        "pending": sum(1 for t in group if t.status == "pending"),
        "completion_rate": _rate(completed, len(group)),
    }


async def stats_by_project(db: AsyncSession, user_id: str) -> list[dict]:
    tasks = await _live_tasks(db, user_id)
    result = await db.execute(select(Project).filter(Project.user_id == user_id))
    projects = result.scalars().all()

    rows = [
        _project_row(p.project_id, p.name, p.color, [t for t in tasks if t.project_id == p.project_id])
        for p in projects
    ]
    rows.append(_project_row(None, NO_PROJECT_NAME, NO_PROJECT_COLOR, [t for t in tasks if t.project_id is None]))

    # Stable sort keeps project order among equal totals
    return sorted(rows, key=lambda r: r["total"], reverse=True)


async def overdue_stats(db: AsyncSession, user_id: str, now: datetime | None = None) -> dict:
    now = now or utcnow()
    tasks = [t for t in await _live_tasks(db, user_id) if t.status == "pending"]

    overdue = [t for t in tasks if t.due_date is not None and as_utc(t.due_date) < now]
    upcoming = [t for t in tasks if t.due_date is not None and as_utc(t.due_date) >= now]

    buckets = {
        "less_than_day": 0,
        "one_to_three_days": 0,
        "three_to_seven_days": 0,
        "more_than_week": 0,
    }
    for task in overdue:
        days_overdue = (now - as_utc(task.due_date)).total_seconds() / 86400
        if days_overdue < 1:
            buckets["less_than_day"] += 1
        elif days_overdue < 3:
            buckets["one_to_three_days"] += 1
        elif days_overdue < 7:
            buckets["three_to_seven_days"] += 1
        else:
            buckets["more_than_week"] += 1

    return {
        "total_pending": len(tasks),
        "overdue": len(overdue),
        "upcoming": len(upcoming),
        "no_due_date": sum(1 for t in tasks if t.due_date is None),
        "overdue_by_days": buckets,
    }


async def weekly_summary(db: AsyncSession, user_id: str, now: datetime | None = None) -> dict:
    now = now or utcnow()
    tasks = await _live_tasks(db, user_id, created_since=now - timedelta(days=7))
    completed = [t for t in tasks if t.status == "completed"]

    durations = [
        (as_utc(t.completed_at) - as_utc(t.created_at)).total_seconds() * 1000
        for t in completed
        if t.completed_at is not None
    ]
    avg_ms = sum(durations) / len(durations) if durations else 0

    return {
        "tasks_created": len(tasks),
        "tasks_completed": len(completed),
        "completion_rate": _rate(len(completed), len(tasks)),
        "avg_completion_time_ms": avg_ms,
        "avg_completion_time_hours": round(avg_ms / 3_600_000, 1),
    }


async def generate_csv_report(db: AsyncSession, user_id: str) -> str:
    df = await get_task_dataframe(db, user_id)
    return df.to_csv(index=False)
