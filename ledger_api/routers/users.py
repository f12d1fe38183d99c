"""
Users router — registration and profile management.

Endpoints:
  POST   /users             — Register a new user (public)
  GET    /users/{user_id}   — Get your own profile
  PATCH  /users/{user_id}   — Update your own profile
  DELETE /users/{user_id}   — Delete your own profile (no accounts left)

Asking for any user id other than your own returns 403.
"""

import uuid

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from ledger_api.database import get_db
from ledger_api.dependencies import get_current_user
from ledger_api.models.user import User
from ledger_api.schemas.common import ApiResponse
from ledger_api.schemas.user import UserCreateRequest, UserResponse, UserUpdateRequest
from ledger_api.services import user_service

router = APIRouter()


@router.post(
    "",
    response_model=ApiResponse[UserResponse],
    status_code=status.HTTP_201_CREATED,
    summary="Register a new user",
)
async def create_user(
    request: UserCreateRequest,
    db: AsyncSession = Depends(get_db),
):
    """
    Register a new user.

    - **email**: Must be a valid email format and not already registered
    - **password**: 8-128 characters, with upper case, lower case and a digit
    - **first_name** / **last_name**: Required, 1-50 characters
    """
    user = await user_service.create_user(
        db=db,
        email=request.email,
        password=request.password,
        first_name=request.first_name,
        last_name=request.last_name,
    )
    return {"data": user, "message": "User created successfully"}


@router.get(
    "/{user_id}",
    response_model=ApiResponse[UserResponse],
    summary="Get your profile",
)
async def get_user(
    user_id: uuid.UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    user = await user_service.get_user(db, user_id, current_user.id)
    return {"data": user, "message": "User retrieved successfully"}


@router.patch(
    "/{user_id}",
    response_model=ApiResponse[UserResponse],
    summary="Update your profile",
)
async def update_user(
    user_id: uuid.UUID,
    updates: UserUpdateRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """
    Update the authenticated user's profile.

    Only provided (non-null) fields are updated — omitted fields remain
    unchanged. This is the PATCH semantic: partial updates.
    """
    user = await user_service.update_user(
        db,
        user_id,
        current_user.id,
        **updates.model_dump(exclude_unset=True, exclude_none=True),
    )
    return {"data": user, "message": "User updated successfully"}


@router.delete(
    "/{user_id}",
    response_model=ApiResponse[None],
    summary="Delete your profile",
)
async def delete_user(
    user_id: uuid.UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Delete the authenticated user. Fails with 409 while they still own accounts."""
    await user_service.delete_user(db, user_id, current_user.id)
    return {"message": "User deleted successfully"}
