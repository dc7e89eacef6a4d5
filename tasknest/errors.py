from fastapi import HTTPException, status


class Unauthenticated(HTTPException):
    """No resolvable caller identity on a write path."""

    def __init__(self):
        super().__init__(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )


class NotFound(HTTPException):
    """Entity is absent or belongs to another user. Both cases look the same to the caller."""

    def __init__(self, entity: str):
        super().__init__(status_code=status.HTTP_404_NOT_FOUND, detail=f"{entity} not found")


class InvalidState(HTTPException):
    def __init__(self, detail: str):
        super().__init__(status_code=status.HTTP_400_BAD_REQUEST, detail=detail)
