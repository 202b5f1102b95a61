"""
포인트 명령 API 라우터

- POST /points/earn: 포인트 적립 (is_manual=True 이면 관리자 수기 지급)
- POST /points/earn/cancel: 적립 취소 (전액 미사용 건만)
- POST /points/use: 포인트 사용 (order_id 기준 멱등)
- POST /points/use/cancel: 사용 취소 (부분 취소 가능, 만료분은 재적립)

성공 시 BaseResponse 봉투로 응답하고, 실패는 BaseAPIException 에러 봉투로 응답한다.
"""

import logging

from fastapi import APIRouter, Depends

from pointapi.deps import get_point_service
from pointapi.schemas.pagination import BaseResponse
from pointapi.schemas.points import (
    PointCancelEarnRequest,
    PointCancelUseRequest,
    PointEarnRequest,
    PointUseRequest,
)
from pointapi.services.point_service import PointService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/points", tags=["points"])


@router.post("/earn", response_model=BaseResponse[None])
def earn_points(
    request: PointEarnRequest,
    point_service: PointService = Depends(get_point_service),
) -> BaseResponse[None]:
    point_service.earn(
        user_id=request.user_id,
        amount=request.amount,
        is_manual=request.is_manual,
        ref_id=request.ref_id,
    )
    return BaseResponse(message="포인트가 적립되었습니다.")


@router.post("/earn/cancel", response_model=BaseResponse[None])
def cancel_earn_points(
    request: PointCancelEarnRequest,
    point_service: PointService = Depends(get_point_service),
) -> BaseResponse[None]:
    point_service.cancel_earn(
        user_id=request.user_id,
        point_item_id=request.point_item_id,
        is_manual=request.is_manual,
    )
    return BaseResponse(message="포인트 적립이 취소되었습니다.")


@router.post("/use", response_model=BaseResponse[None])
def use_points(
    request: PointUseRequest,
    point_service: PointService = Depends(get_point_service),
) -> BaseResponse[None]:
    point_service.use(
        user_id=request.user_id, amount=request.amount, ref_id=request.order_id
    )
    return BaseResponse(message="포인트가 사용되었습니다.")


@router.post("/use/cancel", response_model=BaseResponse[None])
def cancel_use_points(
    request: PointCancelUseRequest,
    point_service: PointService = Depends(get_point_service),
) -> BaseResponse[None]:
    point_service.cancel_use(
        user_id=request.user_id,
        order_id=request.order_id,
        cancel_amount=request.cancel_amount,
    )
    return BaseResponse(message="포인트 사용이 취소되었습니다.")
