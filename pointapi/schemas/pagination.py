from pydantic import BaseModel
from typing import Generic, TypeVar, Optional, List

T = TypeVar('T')


class BaseResponse(BaseModel, Generic[T]):
    """공통 성공 응답"""
    success: bool = True
    message: str = "OK"
    data: Optional[T] = None


class DirectPaginatedResponse(BaseModel, Generic[T]):
    """직접 응답하는 페이지네이션"""
    data: List[T]
    total_count: int
    has_next: bool
    limit: int
    offset: int


# 엔드포인트별 페이지네이션 제한
class PaginationLimits:
    POINTS_HISTORY = {"min": 1, "max": 100, "default": 50}
    ADMIN_POINTS_HISTORY = {"min": 1, "max": 500, "default": 100}
