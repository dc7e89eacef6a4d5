import asyncio
import logging

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from tasknest.config import settings
from tasknest.database import AsyncSessionLocal
from tasknest.models.reminder import Reminder
from tasknest.models.user import User, UserSettings
from tasknest.services.email_worker import enqueue_email
from tasknest.services.reminders import process_reminders
from tasknest.utils.clock import as_utc, local_tz

logger = logging.getLogger(__name__)

REMINDER_JOB_ID = "process_reminders"


def _reminder_email(reminder: Reminder, user: User) -> tuple[str, str]:
    task = reminder.task
    due = as_utc(task.due_date)
    due_text = due.astimezone(local_tz()).strftime("%Y-%m-%d %H:%M") if due else "not set"
    subject = f"Reminder: {task.title}"
    body = (
        f"Hello {user.name or 'there'},\n\n"
        f"This is a reminder for your task:\n"
        f"Task: {task.title}\n"
        f"Due: {due_text}\n"
        f"Priority: {task.priority}\n\n"
        f"Mark it complete once it's done."
    )
    return subject, body


async def _email_jobs(db: AsyncSession, reminders: list[Reminder]) -> list[dict]:
    """Emails for reminders whose owner has email notifications on (the default) and an address."""
    user_ids = {r.user_id for r in reminders}
    if not user_ids:
        return []

    users = {
        u.user_id: u
        for u in (await db.execute(select(User).filter(User.user_id.in_(user_ids)))).scalars().all()
    }
    prefs = {
        s.user_id: s
        for s in (await db.execute(select(UserSettings).filter(UserSettings.user_id.in_(user_ids)))).scalars().all()
    }

    jobs = []
    for reminder in reminders:
        user = users.get(reminder.user_id)
        user_prefs = prefs.get(reminder.user_id)
        if user_prefs is not None and user_prefs.push_notifications:
            logger.debug("[SCHEDULER] No push provider configured; reminder %s is email-only", reminder.reminder_id)
        if user is None or not user.email:
            continue
        if user_prefs is not None and not user_prefs.email_notifications:
            continue
        subject, body = _reminder_email(reminder, user)
        jobs.append({
            "subject": subject,
            "body": body,
            "to_email": user.email,
            "reminder_id": reminder.reminder_id,
        })
    return jobs


async def run_reminder_job() -> dict:
    """One scheduler tick: mark due reminders notified, commit, then hand emails to the worker."""
    logger.info("[SCHEDULER] Processing due reminders...")
    async with AsyncSessionLocal() as db:
        try:
            deliverable = await process_reminders(db)
            jobs = await _email_jobs(db, deliverable)
            await db.commit()
        except Exception:
            await db.rollback()
            logger.exception("[SCHEDULER] Error during reminder job")
            return {"processed": 0}

    if jobs:
        results = await asyncio.gather(
            *(enqueue_email(j["subject"], j["body"], to_email=j["to_email"], reminder_id=j["reminder_id"]) for j in jobs),
            return_exceptions=True,
        )
        failures = [r for r in results if isinstance(r, Exception)]
        for failure in failures:
            logger.error("[SCHEDULER] Could not enqueue reminder email: %s", failure)
        logger.info("[SCHEDULER] Queued %d reminder notifications", len(jobs) - len(failures))

    logger.info("[SCHEDULER] Reminder job finished, %d delivered", len(deliverable))
    return {"processed": len(deliverable)}


def setup_scheduler() -> AsyncIOScheduler:
    scheduler = AsyncIOScheduler()
    scheduler.add_job(
        run_reminder_job,
        trigger=IntervalTrigger(minutes=settings.REMINDER_INTERVAL_MINUTES),
        id=REMINDER_JOB_ID,
        max_instances=1,
        coalesce=True,
    )
    scheduler.start()
    return scheduler
