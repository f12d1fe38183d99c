"""
User service — registration, login and profile management.

This module contains the user lifecycle logic, separated from HTTP concerns.
The routers call these functions and translate the results into HTTP
responses, so the business logic can be tested without a web server.

Registration flow:
  1. Check if email is already registered
  2. Hash the password with Argon2id
  3. Create the User

Login flow:
  1. Look up user by email
  2. Verify password against stored hash
  3. Return the user (the router issues the token)

Ownership:
  A user can only read, update or delete their own profile. Acting on any
  other user id raises UserAccessDeniedError (403).

Security notes:
  - Passwords are hashed before storage (never stored in plaintext)
  - Login returns the same error for "wrong password" and "email not found"
    to prevent user enumeration attacks
"""

import logging
import uuid

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from ledger_api.exceptions import (
    DuplicateEmailError,
    InvalidCredentialsError,
    UserAccessDeniedError,
    UserHasAccountsError,
    UserNotFoundError,
)
from ledger_api.models.account import Account
from ledger_api.models.user import User
from ledger_api.security import hash_password, needs_rehash, verify_password


logger = logging.getLogger(__name__)

UPDATABLE_FIELDS = frozenset({"first_name", "last_name", "email"})


async def _get_user_by_email(db: AsyncSession, email: str) -> User | None:
    result = await db.execute(select(User).where(User.email == email))
    return result.scalar_one_or_none()


async def create_user(
    db: AsyncSession,
    email: str,
    password: str,
    first_name: str,
    last_name: str,
) -> User:
    """
    Register a new user.

    Raises:
        DuplicateEmailError: If the email is already registered.
    """
    if await _get_user_by_email(db, email) is not None:
        raise DuplicateEmailError(email)

    user = User(
        email=email,
        hashed_password=hash_password(password),
        first_name=first_name,
        last_name=last_name,
    )
    db.add(user)
    await db.flush()

    logger.info("User registered", extra={"user_id": str(user.id)})
    return user


async def authenticate_user(
    db: AsyncSession,
    email: str,
    password: str,
) -> User:
    """
    Verify login credentials.

    Security: Returns the same error for both "wrong password" and
    "email not found" to prevent attackers from enumerating valid emails.

    Raises:
        InvalidCredentialsError: If email doesn't exist or password is wrong.
    """
    user = await _get_user_by_email(db, email)

    # Same error for both cases, so emails cannot be enumerated
    if user is None or not verify_password(password, user.hashed_password):
        logger.warning("Failed login attempt")
        raise InvalidCredentialsError()

    if needs_rehash(user.hashed_password):
        user.hashed_password = hash_password(password)
        await db.flush()
        logger.info("Password hash upgraded", extra={"user_id": str(user.id)})

    return user


async def get_user(
    db: AsyncSession,
    user_id: uuid.UUID,
    requesting_user_id: uuid.UUID,
) -> User:
    """
    Get a user profile, verifying the caller is that user.

    Raises:
        UserAccessDeniedError: If the caller asks for someone else's profile.
        UserNotFoundError: If the user doesn't exist.
    """
    if user_id != requesting_user_id:
        raise UserAccessDeniedError()

    user = await db.get(User, user_id)
    if user is None:
        raise UserNotFoundError(user_id)
    return user


async def update_user(
    db: AsyncSession,
    user_id: uuid.UUID,
    requesting_user_id: uuid.UUID,
    **fields,
) -> User:
    """
    Update first_name, last_name and/or email on the caller's own profile.

    Raises:
        UserAccessDeniedError / UserNotFoundError: As for get_user.
        DuplicateEmailError: If the new email belongs to another user.
    """
    user = await get_user(db, user_id, requesting_user_id)

    new_email = fields.get("email")
    if new_email is not None and new_email != user.email:
        if await _get_user_by_email(db, new_email) is not None:
            raise DuplicateEmailError(new_email)

    for field, value in fields.items():
        if field in UPDATABLE_FIELDS:
            setattr(user, field, value)

    await db.flush()
    return user


async def delete_user(
    db: AsyncSession,
    user_id: uuid.UUID,
    requesting_user_id: uuid.UUID,
) -> None:
    """
    Delete the caller's own profile.

    Raises:
        UserAccessDeniedError / UserNotFoundError: As for get_user.
        UserHasAccountsError: If the user still owns any account.
    """
    user = await get_user(db, user_id, requesting_user_id)

    account_count = await db.scalar(
        select(func.count()).select_from(Account).where(Account.user_id == user_id)
    )
    if account_count:
        raise UserHasAccountsError(user_id)

    await db.delete(user)
    await db.flush()
    logger.info("User deleted", extra={"user_id": str(user_id)})
