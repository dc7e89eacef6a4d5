"""
Keyword heuristics behind the "AI" helpers, plus the per-task suggestion cache.

The heuristics are pure functions of their inputs and an explicit `now`, so they
can be exercised without a database.
"""
from datetime import datetime, timedelta

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from tasknest.config import settings
from tasknest.models.suggestion import AISuggestion
from tasknest.models.tasks import Task
from tasknest.services.access import get_owned
from tasknest.utils.clock import utcnow, as_utc, local_tz

HIGH_PRIORITY_KEYWORDS = [
    "urgent", "asap", "critical", "emergency", "deadline",
    "important", "priority", "immediately", "today", "now",
]
LOW_PRIORITY_KEYWORDS = [
    "sometime", "when possible", "eventually", "nice to have",
    "optional", "whenever", "no rush", "low priority",
]

# First match wins
DEADLINE_OFFSETS = [
    (("today", "asap"), 0),
    (("tomorrow",), 1),
    (("this week",), 5),
    (("next week",), 10),
    (("this month",), 21),
    (("next month",), 35),
]
DEFAULT_DEADLINE_DAYS = 7
COMPLEX_KEYWORDS = ["research", "design", "develop", "build", "implement", "create"]
SIMPLE_KEYWORDS = ["call", "email", "send", "check", "review", "buy"]
DEADLINE_HOUR = 17

SUBTASK_TEMPLATES = [
    (("project", "build", "develop"), [
        ("Define requirements and scope", "high"),
        ("Create initial design/mockup", "medium"),
        ("Set up project structure", "medium"),
        ("Implement core functionality", "high"),
        ("Test and debug", "medium"),
        ("Review and finalize", "low"),
    ]),
    (("research", "analyze", "investigate"), [
        ("Define research questions", "high"),
        ("Gather relevant sources", "medium"),
        ("Review and analyze findings", "medium"),
        ("Document conclusions", "medium"),
        ("Create summary/presentation", "low"),
    ]),
    (("meeting", "presentation", "present"), [
        ("Define agenda/topics", "high"),
        ("Prepare materials/slides", "medium"),
        ("Review and rehearse", "medium"),
        ("Send invites/reminders", "low"),
    ]),
    (("write", "document", "report"), [
        ("Create outline", "high"),
        ("Write first draft", "high"),
        ("Review and edit", "medium"),
        ("Finalize and format", "low"),
    ]),
]

PRODUCTIVITY_TIPS = [
    "Consider breaking down larger tasks into smaller subtasks",
    "Try to complete high-priority tasks early in the day",
    "Review overdue tasks and reschedule if needed",
]
PERIOD_TEXT = {"daily": "today", "weekly": "this week", "monthly": "this month"}


def _content(title: str, description: str | None) -> str:
    return f"{title.lower()} {(description or '').lower()}"


def _mentions(content: str, keywords) -> bool:
    return any(kw in content for kw in keywords)


def suggest_priority(title: str, description: str | None = None, due_date: datetime | None = None, now: datetime | None = None) -> dict:
    content = _content(title, description)

    priority = "medium"
    if _mentions(content, HIGH_PRIORITY_KEYWORDS):
        priority = "high"
    elif _mentions(content, LOW_PRIORITY_KEYWORDS):
        priority = "low"

    if due_date is not None:
        now = now or utcnow()
        days_until_due = (as_utc(due_date) - now).total_seconds() / 86400
        if days_until_due < 1:
            priority = "high"
        elif days_until_due < 3:
            priority = "medium" if priority == "low" else priority
        elif days_until_due > 14:
            priority = "medium" if priority == "high" else priority

    return {"priority": priority}


def recommend_deadline(title: str, description: str | None = None, now: datetime | None = None) -> dict:
    content = _content(title, description)

    days_to_add = DEFAULT_DEADLINE_DAYS
    for keywords, days in DEADLINE_OFFSETS:
        if _mentions(content, keywords):
            days_to_add = days
            break

    if _mentions(content, COMPLEX_KEYWORDS):
        days_to_add = max(days_to_add, 7)
    if _mentions(content, SIMPLE_KEYWORDS):
        days_to_add = min(days_to_add, 3)

    local_now = as_utc(now or utcnow()).astimezone(local_tz())
    target_day = local_now.date() + timedelta(days=days_to_add)
    recommended = datetime(target_day.year, target_day.month, target_day.day, DEADLINE_HOUR, tzinfo=local_tz())

    if days_to_add <= 3:
        size = "quick"
    elif days_to_add <= 7:
        size = "medium"
    else:
        size = "longer-term"

    return {
        "recommended_date": recommended,
        "reasoning": f"Based on the task content, this seems like a {size} task.",
    }


def breakdown_subtasks(title: str, description: str | None = None) -> dict:
    content = _content(title, description)

    for keywords, template in SUBTASK_TEMPLATES:
        if _mentions(content, keywords):
            return {"subtasks": [{"title": t, "priority": p} for t, p in template]}

    return {"subtasks": [
        {"title": f"Plan: {title}", "priority": "high"},
        {"title": f"Execute: {title}", "priority": "medium"},
        {"title": f"Review: {title}", "priority": "low"},
    ]}


def productivity_summary(period: str) -> dict:
    return {
        "summary": (
            f"Here's your productivity summary for {PERIOD_TEXT[period]}. "
            "You've been making steady progress on your tasks. Keep up the good work!"
        ),
        "tips": list(PRODUCTIVITY_TIPS),
    }


def insights() -> dict:
    return {"insights": [
        {
            "type": "productivity",
            "title": "Peak Productivity Hours",
            "description": "You tend to complete more tasks in the morning. Consider scheduling important work during this time.",
        },
        {
            "type": "completion",
            "title": "Task Completion Rate",
            "description": "Your task completion rate has improved this week. Keep maintaining this momentum!",
        },
        {
            "type": "priority",
            "title": "Priority Balance",
            "description": "You have a good balance of high, medium, and low priority tasks. This helps maintain sustainable productivity.",
        },
    ]}


# ── Cache ───────────────────────────────────────────────

async def cache_suggestion(
    db: AsyncSession,
    user_id: str,
    task_id: str,
    suggestion_type: str,
    suggestion: str,
    metadata=None,
    expires_in_hours: float | None = None,
    now: datetime | None = None,
) -> AISuggestion:
    """Upsert keyed by (task, type): an existing row is overwritten in place."""
    await get_owned(db, Task, task_id, user_id, "Task")

    now = now or utcnow()
    expires_at = now + timedelta(hours=expires_in_hours or settings.SUGGESTION_TTL_HOURS)

    result = await db.execute(
        select(AISuggestion).filter(AISuggestion.task_id == task_id, AISuggestion.type == suggestion_type)
    )
    existing = result.scalars().first()

    if existing is not None:
        existing.suggestion = suggestion
        existing.meta = metadata
        existing.expires_at = expires_at
        await db.flush()
        return existing

    row = AISuggestion(
        task_id=task_id,
        user_id=user_id,
        type=suggestion_type,
        suggestion=suggestion,
        meta=metadata,
        created_at=now,
        expires_at=expires_at,
    )
    db.add(row)
    await db.flush()
    return row


async def get_cached_suggestion(
    db: AsyncSession,
    user_id: str,
    task_id: str,
    suggestion_type: str,
    now: datetime | None = None,
) -> AISuggestion | None:
    # Expired rows stay in the table until the next write replaces them
    now = now or utcnow()
    result = await db.execute(
        select(AISuggestion).filter(
            AISuggestion.task_id == task_id,
            AISuggestion.type == suggestion_type,
            AISuggestion.user_id == user_id,
            AISuggestion.expires_at > now,
        )
    )
    return result.scalars().first()
