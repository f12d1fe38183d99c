"""
Response envelope shared by every endpoint.

Success:  {"success": true, "data": ..., "message": "..."}
Listing:  {"success": true, "data": [...], "message": "...",
           "pagination": {"page": 1, "limit": 50, "total": 120, "pages": 3}}
Failure:  {"success": false, "error": "..."}   (built in exceptions.py)
"""

import math
from typing import Generic, TypeVar

from pydantic import BaseModel


T = TypeVar("T")


class Pagination(BaseModel):
    page: int
    limit: int
    total: int
    pages: int

    @classmethod
    def build(cls, page: int, limit: int, total: int) -> "Pagination":
        """Pagination metadata; `pages` is ceil(total / limit), 0 when empty."""
        return cls(page=page, limit=limit, total=total, pages=math.ceil(total / limit))


class ApiResponse(BaseModel, Generic[T]):
    success: bool = True
    data: T | None = None
    message: str | None = None


class PaginatedResponse(BaseModel, Generic[T]):
    success: bool = True
    data: list[T]
    message: str | None = None
    pagination: Pagination
