from datetime import timedelta

from jose import JWTError, jwt

from tasknest.config import settings
from tasknest.utils.clock import utcnow


def create_access_token(data: dict, expires_delta: timedelta | None = None) -> str:
    """
    Sign a bearer token the same way the auth service does.
    Used by local tooling and tests; production tokens come from the auth service.
    """
    to_encode = data.copy()
    expire = utcnow() + (expires_delta or timedelta(minutes=30))
    to_encode.update({"exp": expire})
    if settings.AUTH_ISSUER and "iss" not in to_encode:
        to_encode["iss"] = settings.AUTH_ISSUER
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def decode_access_token(token: str) -> dict | None:
    """Return the verified claims, or None for a missing, malformed or expired token."""
    if not token:
        return None
    try:
        payload = jwt.decode(
            token,
            settings.SECRET_KEY,
            algorithms=[settings.ALGORITHM],
            issuer=settings.AUTH_ISSUER,
        )
    except JWTError:
        return None
    if not payload.get("sub"):
        return None
    return payload
