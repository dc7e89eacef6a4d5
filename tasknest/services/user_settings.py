from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from tasknest.config import settings as app_settings
from tasknest.models.user import UserSettings
from tasknest.schemas.settings import UserSettingsUpdate, NotificationPreferences
from tasknest.utils.clock import utcnow

DEFAULT_THEME = "light"


def default_preferences() -> NotificationPreferences:
    return NotificationPreferences(
        email=True,
        push=True,
        reminder_before_due=app_settings.DEFAULT_REMINDER_HOURS,
    )


def _as_response(row: UserSettings) -> dict:
    return {
        "user_id": row.user_id,
        "notification_preferences": {
            "email": row.email_notifications,
            "push": row.push_notifications,
            "reminder_before_due": row.reminder_before_due,
        },
        "theme": row.theme,
        "updated_at": row.updated_at,
    }


async def get_settings_row(db: AsyncSession, user_id: str) -> UserSettings | None:
    result = await db.execute(select(UserSettings).filter(UserSettings.user_id == user_id))
    return result.scalars().first()


async def get_settings(db: AsyncSession, user_id: str) -> dict:
    """Stored settings, or the defaults (computed, not persisted) when the user has none."""
    row = await get_settings_row(db, user_id)
    if row is None:
        return {
            "user_id": user_id,
            "notification_preferences": default_preferences().model_dump(),
            "theme": DEFAULT_THEME,
            "updated_at": utcnow(),
        }
    return _as_response(row)


async def _upsert(db: AsyncSession, user_id: str, preferences: NotificationPreferences, theme: str) -> dict:
    row = await get_settings_row(db, user_id)
    if row is None:
        row = UserSettings(user_id=user_id)
        db.add(row)

    row.email_notifications = preferences.email
    row.push_notifications = preferences.push
    row.reminder_before_due = preferences.reminder_before_due
    row.theme = theme
    row.updated_at = utcnow()
    await db.flush()
    return _as_response(row)


async def update_settings(db: AsyncSession, user_id: str, data: UserSettingsUpdate) -> dict:
    existing = await get_settings_row(db, user_id)

    preferences = data.notification_preferences
    if preferences is None:
        if existing is not None:
            preferences = NotificationPreferences(
                email=existing.email_notifications,
                push=existing.push_notifications,
                reminder_before_due=existing.reminder_before_due,
            )
        else:
            preferences = default_preferences()

    theme = data.theme or (existing.theme if existing is not None else DEFAULT_THEME)
    return await _upsert(db, user_id, preferences, theme)


async def reset_settings(db: AsyncSession, user_id: str) -> dict:
    return await _upsert(db, user_id, default_preferences(), DEFAULT_THEME)


async def reminder_hours_for(db: AsyncSession, user_id: str) -> int | None:
    row = await get_settings_row(db, user_id)
    return row.reminder_before_due if row is not None else None
