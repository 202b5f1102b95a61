from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, Header, Query

from pointapi.deps import get_point_search_service
from pointapi.models.points import PointType
from pointapi.schemas.pagination import BaseResponse, DirectPaginatedResponse, PaginationLimits
from pointapi.schemas.points import (
    PointBalanceResponse,
    PointExpiringResponse,
    PointHistoryResponse,
)
from pointapi.services.point_search_service import PointSearchService

router = APIRouter(prefix="/points", tags=["points-search"])


@router.get(
    "/search",
    response_model=BaseResponse[DirectPaginatedResponse[PointHistoryResponse]],
)
def search_my_histories(
    start_date: date = Query(..., description="조회 시작일 (YYYY-MM-DD)"),
    end_date: date = Query(..., description="조회 종료일 (YYYY-MM-DD)"),
    ref_id: Optional[str] = Query(None, description="주문/이벤트 번호"),
    type: Optional[PointType] = Query(None, description="거래 유형"),
    limit: int = Query(
        PaginationLimits.POINTS_HISTORY["default"],
        ge=PaginationLimits.POINTS_HISTORY["min"],
        le=PaginationLimits.POINTS_HISTORY["max"],
    ),
    offset: int = Query(0, ge=0),
    user_id: int = Header(..., alias="X-User-Id"),
    search_service: PointSearchService = Depends(get_point_search_service),
):
    """내 포인트 이력 조회 - 최대 3개월, 최신순"""
    page = search_service.get_my_histories(
        user_id=user_id,
        start_date=start_date,
        end_date=end_date,
        ref_id=ref_id,
        type=type,
        limit=limit,
        offset=offset,
    )
    return BaseResponse(data=page)


@router.get("/balance", response_model=BaseResponse[PointBalanceResponse])
def get_my_balance(
    user_id: int = Header(..., alias="X-User-Id"),
    search_service: PointSearchService = Depends(get_point_search_service),
):
    return BaseResponse(data=search_service.get_my_balance(user_id))


@router.get("/expiring", response_model=BaseResponse[List[PointExpiringResponse]])
def get_expiring_points(
    user_id: int = Header(..., alias="X-User-Id"),
    search_service: PointSearchService = Depends(get_point_search_service),
):
    """30일 이내 소멸 예정 포인트"""
    return BaseResponse(data=search_service.get_expiring_points(user_id))
