"""Common response schemas"""

from pydantic import BaseModel
from typing import Optional, Any, Dict, Generic, TypeVar, List

T = TypeVar('T')


class SuccessResponse(BaseModel):
    """Standard success response"""
    success: bool = True
    message: Optional[str] = None
    data: Optional[Any] = None


class ErrorResponse(BaseModel):
    """Standard error response, with one message per invalid field"""
    success: bool = False
    error: str
    detail: Optional[str] = None
    fields: Optional[Dict[str, str]] = None


class PaginatedResponse(BaseModel, Generic[T]):
    """Paginated response wrapper"""
    success: bool = True
    data: List[T]
    total: int
    page: int
    limit: int
    pages: int
