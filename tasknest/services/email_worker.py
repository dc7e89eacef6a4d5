import asyncio
import logging
from sqlalchemy.future import select
from tasknest.utils.email import send_email_async
from typing import TypedDict

from tasknest.database import AsyncSessionLocal
from tasknest.models.email import EmailLog
from tasknest.utils.clock import utcnow

logger = logging.getLogger(__name__)

class EmailJob(TypedDict):
    log_id: int
    subject: str
    body: str
    to_email: str | None

# Global queue for email jobs
email_queue: asyncio.Queue[EmailJob] = asyncio.Queue()


async def _set_status(log_id: int, status: str, error_message: str | None = None):
    async with AsyncSessionLocal() as db:
        result = await db.execute(select(EmailLog).filter(EmailLog.id == log_id))
        log_entry = result.scalars().first()
        if log_entry:
            log_entry.status = status
            if status == "sent":
                log_entry.sent_at = utcnow()
            log_entry.error_message = error_message
            await db.commit()


async def email_worker():
    """
    Background worker that pulls jobs from the email_queue and sends them.
    Runs until the application shuts down and cancels it.
    """
    logger.info("[WORKER] Background email worker started.")
    while True:
        job = await email_queue.get()
        log_id = job.get("log_id")

        try:
            sent = await send_email_async(job.get("subject"), job.get("body"), job.get("to_email"))
            await _set_status(log_id, "sent" if sent else "skipped")
        except Exception as e:
            logger.error("[WORKER ERROR] Failed to process email job %s: %s", log_id, e)
            await _set_status(log_id, "failed", str(e))
        finally:
            email_queue.task_done()


async def enqueue_email(subject: str, body: str, to_email: str | None = None, reminder_id: str | None = None):
    """
    Public API to add an email job to the database and background queue.
    """
    # 1. Save to DB
    async with AsyncSessionLocal() as db:
        new_log = EmailLog(subject=subject, body=body, to_email=to_email, reminder_id=reminder_id, status="pending")
        db.add(new_log)
        await db.commit()
        await db.refresh(new_log)
        log_id = new_log.id

    # 2. Add to queue for immediate processing
    await email_queue.put({
        "log_id": log_id,
        "subject": subject,
        "body": body,
        "to_email": to_email
    })
    logger.info("[QUEUE] Enqueued email (DB ID: %s): %s...", log_id, subject[:30])
    return log_id
