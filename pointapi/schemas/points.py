from pydantic import BaseModel, Field
from typing import List, Optional
from datetime import datetime

from pointapi.models.points import PointStatus, PointType


class PointEarnRequest(BaseModel):
    """포인트 적립 요청"""

    user_id: int = Field(..., gt=0, description="사용자 ID")
    amount: int = Field(..., ge=1, description="적립 금액")
    is_manual: bool = Field(False, description="관리자 수기 지급 여부")
    ref_id: str = Field(
        ..., min_length=1, max_length=100, description="중복 적립 방지용 참조 ID (주문번호, 이벤트 번호)"
    )


class PointCancelEarnRequest(BaseModel):
    """포인트 적립 취소 요청"""

    user_id: int = Field(..., gt=0, description="사용자 ID")
    point_item_id: int = Field(..., gt=0, description="취소할 적립 건(PointItem) ID")
    is_manual: bool = Field(False, description="관리자 회수 여부")


class PointUseRequest(BaseModel):
    """포인트 사용 요청"""

    user_id: int = Field(..., gt=0, description="사용자 ID")
    amount: int = Field(..., ge=1, description="사용 금액")
    order_id: str = Field(..., min_length=1, max_length=100, description="주문 ID (멱등성 키)")


class PointCancelUseRequest(BaseModel):
    """포인트 사용 취소 요청"""

    user_id: int = Field(..., gt=0, description="사용자 ID")
    order_id: str = Field(..., min_length=1, max_length=100, description="원본 주문 ID")
    cancel_amount: int = Field(..., ge=1, description="취소(복구) 금액")


class PointBalanceResponse(BaseModel):
    """포인트 잔액 응답"""

    user_id: int = Field(..., description="사용자 ID")
    current_balance: int = Field(..., description="현재 포인트 잔액")


class PointItemResponse(BaseModel):
    """포인트 적립 건(낱장)"""

    id: int
    user_id: int
    original_amount: int
    remain_amount: int
    expire_at: datetime
    is_manual: bool
    status: PointStatus

    class Config:
        from_attributes = True


class PointHistoryDetailResponse(BaseModel):
    """포인트 거래 상세"""

    id: int
    point_item_id: int
    amount: int
    restored_from_item_id: Optional[int] = None

    class Config:
        from_attributes = True


class PointHistoryResponse(BaseModel):
    """포인트 거래 내역"""

    id: int = Field(..., description="거래 ID")
    user_id: int = Field(..., description="사용자 ID")
    type: PointType = Field(..., description="거래 유형")
    amount: int = Field(..., description="거래 금액")
    ref_id: Optional[str] = Field(None, description="참조 ID")
    created_at: datetime = Field(..., description="거래 일시")
    details: List[PointHistoryDetailResponse] = Field(default_factory=list)

    class Config:
        from_attributes = True


class PointExpiringResponse(BaseModel):
    """소멸 예정 포인트"""

    point_item_id: int = Field(..., description="PointItem ID")
    amount: int = Field(..., description="소멸 예정 금액 (잔액)")
    expire_at: datetime = Field(..., description="소멸 일시")


class PointStatisticsResponse(BaseModel):
    """거래 유형별 합계"""

    type: PointType
    total_amount: int


class PointTotalRemainResponse(BaseModel):
    """시스템 전체 사용 가능 잔액"""

    total_remain: int


class PointWalletSchema(BaseModel):
    """사용자 지갑 스냅샷"""

    user_id: int
    balance: int

    class Config:
        from_attributes = True


class PointIntegrityCheckResponse(BaseModel):
    """사용자 포인트 정합성 검증 결과 (지갑 잔액 vs PointItem 잔액 합계)"""

    status: str = Field(..., description="OK 또는 MISMATCH")
    user_id: int
    wallet_balance: int
    item_remain_total: int
    verified_at: datetime
