"""
관리자용 포인트 조회/통계 API

- GET /points/admin/search: 기간별 전체 이력 검색
- GET /points/admin/remain/total: 시스템 전체 사용 가능 잔액
- GET /points/admin/statistics: 거래 유형별 합계
- GET /points/admin/users/{user_id}/balance: 사용자 잔액
- GET /points/admin/users/{user_id}/integrity: 사용자 지갑 정합성 검증
"""

from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, Path, Query

from pointapi.deps import get_point_admin_search_service
from pointapi.models.points import PointType
from pointapi.schemas.pagination import BaseResponse, DirectPaginatedResponse, PaginationLimits
from pointapi.schemas.points import (
    PointBalanceResponse,
    PointHistoryResponse,
    PointIntegrityCheckResponse,
    PointStatisticsResponse,
    PointTotalRemainResponse,
)
from pointapi.services.point_admin_search_service import PointAdminSearchService

router = APIRouter(prefix="/points/admin", tags=["points-admin"])


@router.get(
    "/search",
    response_model=BaseResponse[DirectPaginatedResponse[PointHistoryResponse]],
)
def search_histories(
    start_date: Optional[date] = Query(None, description="조회 시작일 (필수)"),
    end_date: Optional[date] = Query(None, description="조회 종료일 (필수)"),
    user_id: Optional[int] = Query(None, description="사용자 ID"),
    ref_id: Optional[str] = Query(None, description="주문/이벤트 번호"),
    type: Optional[PointType] = Query(None, description="거래 유형"),
    limit: int = Query(
        PaginationLimits.ADMIN_POINTS_HISTORY["default"],
        ge=PaginationLimits.ADMIN_POINTS_HISTORY["min"],
        le=PaginationLimits.ADMIN_POINTS_HISTORY["max"],
    ),
    offset: int = Query(0, ge=0),
    admin_search_service: PointAdminSearchService = Depends(get_point_admin_search_service),
):
    page = admin_search_service.get_histories(
        start_date=start_date,
        end_date=end_date,
        user_id=user_id,
        ref_id=ref_id,
        type=type,
        limit=limit,
        offset=offset,
    )
    return BaseResponse(data=page)


@router.get("/remain/total", response_model=BaseResponse[PointTotalRemainResponse])
def get_total_remain(
    admin_search_service: PointAdminSearchService = Depends(get_point_admin_search_service),
):
    return BaseResponse(data=admin_search_service.get_total_remain())


@router.get("/statistics", response_model=BaseResponse[List[PointStatisticsResponse]])
def get_statistics(
    start_date: Optional[date] = Query(None, description="통계 시작일 (필수)"),
    end_date: Optional[date] = Query(None, description="통계 종료일 (필수)"),
    admin_search_service: PointAdminSearchService = Depends(get_point_admin_search_service),
):
    return BaseResponse(data=admin_search_service.get_statistics(start_date, end_date))


@router.get("/users/{user_id}/balance", response_model=BaseResponse[PointBalanceResponse])
def get_user_balance(
    user_id: int = Path(..., gt=0, description="사용자 ID"),
    admin_search_service: PointAdminSearchService = Depends(get_point_admin_search_service),
):
    return BaseResponse(data=admin_search_service.get_user_balance(user_id))


@router.get(
    "/users/{user_id}/integrity",
    response_model=BaseResponse[PointIntegrityCheckResponse],
)
def verify_user_integrity(
    user_id: int = Path(..., gt=0, description="사용자 ID"),
    admin_search_service: PointAdminSearchService = Depends(get_point_admin_search_service),
):
    return BaseResponse(data=admin_search_service.verify_integrity_for_user(user_id))
