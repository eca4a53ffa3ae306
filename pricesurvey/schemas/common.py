"""
Common schema types used across the API.
"""

from typing import Any, Generic, List, Optional, TypeVar

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

T = TypeVar("T")


class CamelModel(BaseModel):
    """Snake_case in Python, camelCase on the wire; either accepted on input."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class SuccessResponse(BaseModel):
    """Standard success response."""

    message: str
    data: Optional[Any] = None


class PaginatedResponse(CamelModel, Generic[T]):
    """Paginated list response."""

    data: List[T]
    total: int
    page: int = 1
    limit: int = 10

    @classmethod
    def create(
        cls,
        data: List[T],
        total: int,
        page: int = 1,
        limit: int = 10,
    ) -> "PaginatedResponse[T]":
        return cls(data=data, total=total, page=page, limit=limit)


class HealthResponse(BaseModel):
    """Health check response."""

    status: str = "ok"
    version: str
    database: str = "connected"
