import logging

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.exc import IntegrityError
from sqlalchemy.future import select

from tasknest.models.user import User
from tasknest.utils.clock import utcnow

logger = logging.getLogger(__name__)


async def get_user_by_subject(db: AsyncSession, subject: str) -> User | None:
    result = await db.execute(select(User).filter(User.auth_subject == subject))
    return result.scalars().first()


def fill_missing_profile(user: User, email: str | None = None, name: str | None = None) -> bool:
    """Set email/name/created_at only where they are still empty. Returns True if anything changed."""
    changed = False
    if email and not user.email:
        user.email = email
        changed = True
    if name and not user.name:
        user.name = name
        changed = True
    if user.created_at is None:
        user.created_at = utcnow()
        changed = True
    return changed


async def resolve_user(db: AsyncSession, subject: str, email: str | None = None, name: str | None = None) -> User:
    """
    Idempotent upsert keyed by the auth service's stable subject.

    A concurrent first request for the same subject may win the insert; the loser
    re-reads that row instead of creating a second identity.
    """
    user = await get_user_by_subject(db, subject)
    if user is None:
        user = User(auth_subject=subject, email=email, name=name, created_at=utcnow())
        db.add(user)
        try:
            await db.commit()
            logger.info("Created user record for subject %s", subject)
            return user
        except IntegrityError:
            await db.rollback()
            user = await get_user_by_subject(db, subject)
            if user is None:
                raise

    if fill_missing_profile(user, email, name):
        await db.commit()
    return user


async def update_profile(db: AsyncSession, user: User, name: str | None) -> User:
    user.name = name
    await db.flush()
    return user


async def sync_profile(db: AsyncSession, user: User, email: str | None, name: str | None) -> User:
    fill_missing_profile(user, email, name)
    await db.flush()
    return user
