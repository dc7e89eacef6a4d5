from fastapi import Depends
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.ext.asyncio import AsyncSession
from tasknest.database import get_db as db_session
from tasknest.errors import Unauthenticated
from tasknest.models.user import User as UserModel
from tasknest.services.users import resolve_user
from tasknest.utils.security import decode_access_token

# Tokens are issued by the external auth service; auto_error is off so reads can degrade
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="token", auto_error=False)

def get_db(db: AsyncSession = Depends(db_session)):
    return db

async def get_optional_user(
    db: AsyncSession = Depends(get_db),
    token: str | None = Depends(oauth2_scheme)
) -> UserModel | None:
    """Caller identity for read paths: None when there is no valid token."""
    claims = decode_access_token(token)
    if claims is None:
        return None
    return await resolve_user(db, claims["sub"], email=claims.get("email"), name=claims.get("name"))

async def get_current_user(user: UserModel | None = Depends(get_optional_user)) -> UserModel:
    """Caller identity for write paths."""
    if user is None:
        raise Unauthenticated()
    return user
