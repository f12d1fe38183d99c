"""
FastAPI dependencies for authentication.

Dependencies are reusable functions that FastAPI injects into route handlers.
Every protected endpoint declares get_current_user as a parameter; if it
fails, the request is rejected before the route handler runs.

  - No "Authorization: Bearer <token>" header  -> 401 Access token required
  - Token malformed, tampered with or expired  -> 403 Invalid or expired token
  - Token valid but its user no longer exists  -> 403 Invalid or expired token

Ownership scoping happens in the services: every query they run is
filtered by the authenticated user's id, which comes from here.
"""

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ledger_api.database import get_db
from ledger_api.exceptions import InvalidTokenError, MissingTokenError
from ledger_api.models.user import User
from ledger_api.security import token_user_id


# auto_error=False: we raise our own errors so that a missing token (401)
# and a bad token (403) are distinguishable.
bearer_scheme = HTTPBearer(auto_error=False)


async def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    db: AsyncSession = Depends(get_db),
) -> User:
    """
    Extract and validate the bearer token, then return the corresponding User.

    Raises:
        MissingTokenError: No bearer token was sent.
        InvalidTokenError: The token is invalid or its user doesn't exist.
    """
    if credentials is None or not credentials.credentials:
        raise MissingTokenError()

    user_id = token_user_id(credentials.credentials)

    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()

    if user is None:
        raise InvalidTokenError()

    return user
