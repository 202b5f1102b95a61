from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, Field


class ExpireBatchRequest(BaseModel):
    """포인트 만료 배치 실행 요청"""

    target_date: Optional[date] = Field(
        None, description="기준일 (해당 일자 00:00 이전 만료분 처리, 미지정 시 현재 시각)"
    )


class ExpireBatchResult(BaseModel):
    """포인트 만료 배치 실행 결과"""

    cutoff: datetime = Field(..., description="만료 기준 시각")
    chunks_processed: int = Field(0, description="처리한 청크 수")
    items_expired: int = Field(0, description="만료 처리된 PointItem 수")
    total_expired_amount: int = Field(0, description="소멸된 포인트 합계")
    affected_users: int = Field(0, description="잔액이 차감된 사용자 수")
