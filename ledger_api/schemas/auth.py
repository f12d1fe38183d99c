"""
Pydantic schemas for the login endpoint.

Pydantic validates incoming data automatically — if a required field is
missing or the wrong type, the request is rejected with a 400 before our
code even runs.
"""

from pydantic import BaseModel, EmailStr, Field

from ledger_api.schemas.user import UserResponse


class UserLoginRequest(BaseModel):
    """Request body for POST /auth/login."""
    email: EmailStr
    password: str = Field(min_length=1)


class LoginResponse(BaseModel):
    """Payload for a successful login — the user plus a bearer token."""
    user: UserResponse
    token: str
    token_type: str = "bearer"
