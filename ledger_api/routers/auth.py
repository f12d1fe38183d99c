"""
Authentication router — the login endpoint.

Registration lives on POST /users (see routers/users.py); this is the only
other public (unauthenticated) endpoint. Everything else requires a valid
bearer token.

Endpoints:
  POST /auth/login   — Authenticate and get a token

Security audit notes:
  - Plaintext passwords exist only in memory during request processing;
    they are hashed or verified and never logged.
  - Tokens appear only in response bodies, which are not logged.
  - Failed logins are logged without the email or password.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from ledger_api.database import get_db
from ledger_api.schemas.auth import LoginResponse, UserLoginRequest
from ledger_api.schemas.common import ApiResponse
from ledger_api.security import create_access_token
from ledger_api.services import user_service

router = APIRouter()


@router.post(
    "/login",
    response_model=ApiResponse[LoginResponse],
    summary="Authenticate and get a token",
)
async def login(
    request: UserLoginRequest,
    db: AsyncSession = Depends(get_db),
):
    """
    Authenticate with email and password.

    Returns a JWT bearer token that must be included in the Authorization
    header for all subsequent requests:

        Authorization: Bearer <token>

    The token expires after ACCESS_TOKEN_EXPIRE_MINUTES (default: 24 hours).
    """
    user = await user_service.authenticate_user(
        db=db,
        email=request.email,
        password=request.password,
    )
    token = create_access_token(user)

    return {
        "data": {"user": user, "token": token},
        "message": "Login successful",
    }
