"""
Identity verification: password credentials and bearer tokens.

Passwords
  Stored only as Argon2id hashes produced by passlib. A successful login
  against a hash made with older parameters re-hashes it (see
  `needs_rehash`), so raising the cost later upgrades users as they log in.

Bearer tokens
  HS256 JWTs signed with SECRET_KEY. Claims:

      sub    user id (UUID string)
      email  the user's email when the token was issued
      iat    issue time
      exp    expiry, ACCESS_TOKEN_EXPIRE_MINUTES after iat unless overridden

  The server keeps no session state; a token is good until it expires or
  its user is deleted. Every way a token can be bad (bad signature, expired,
  missing or malformed `sub`) surfaces as the same InvalidTokenError.
"""

import uuid
from datetime import datetime, timedelta, timezone

from jose import JWTError, jwt
from passlib.context import CryptContext

from ledger_api.config import settings
from ledger_api.exceptions import InvalidTokenError
from ledger_api.models.user import User


pwd_context = CryptContext(schemes=["argon2"], deprecated="auto")


def hash_password(plain_password: str) -> str:
    """Hash a plaintext password, e.g. "$argon2id$v=19$m=65536,t=3,p=4$..."."""
    return pwd_context.hash(plain_password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


def needs_rehash(hashed_password: str) -> bool:
    """True if the hash was made with a scheme or cost that is now deprecated."""
    return pwd_context.needs_update(hashed_password)


def create_access_token(user: User, expires_delta: timedelta | None = None) -> str:
    """
    Issue a signed bearer token for `user`.

    Args:
        user: The authenticated user; supplies the `sub` and `email` claims.
        expires_delta: Lifetime override. Defaults to
            ACCESS_TOKEN_EXPIRE_MINUTES.
    """
    issued_at = datetime.now(timezone.utc)
    lifetime = expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)

    claims = {
        "sub": str(user.id),
        "email": user.email,
        "iat": issued_at,
        "exp": issued_at + lifetime,
    }
    return jwt.encode(claims, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def decode_access_token(token: str) -> dict:
    """
    Verify a token's signature and expiry and return its claims.

    Raises:
        InvalidTokenError: If the token is tampered with, expired or malformed.
    """
    try:
        return jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except JWTError as exc:
        raise InvalidTokenError() from exc


def token_user_id(token: str) -> uuid.UUID:
    """
    The id of the user a valid token was issued to.

    Raises:
        InvalidTokenError: If the token fails decode_access_token or its
            `sub` claim is missing or not a UUID.
    """
    subject = decode_access_token(token).get("sub")
    if not isinstance(subject, str):
        raise InvalidTokenError()
    try:
        return uuid.UUID(subject)
    except ValueError as exc:
        raise InvalidTokenError() from exc
