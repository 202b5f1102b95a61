from typing import Optional

from pydantic import BaseModel, Field, model_validator

from pointapi.models.policy import (
    MAX_EXPIRE_DAYS,
    MAX_SAFE_EARN_AMOUNT,
    MIN_EXPIRE_DAYS,
    MIN_SAFE_EARN_AMOUNT,
)


class PointPolicyUpdateRequest(BaseModel):
    """포인트 정책 부분 수정 요청 - 지정하지 않은 항목은 현재 정책 값을 유지한다"""

    max_earn_amount: Optional[int] = Field(
        None,
        ge=MIN_SAFE_EARN_AMOUNT,
        le=MAX_SAFE_EARN_AMOUNT,
        description="1회 최대 적립 가능 포인트",
    )
    max_possession_limit: Optional[int] = Field(
        None, ge=MIN_SAFE_EARN_AMOUNT, description="개인별 최대 보유 한도"
    )
    default_expire_days: Optional[int] = Field(
        None,
        ge=MIN_EXPIRE_DAYS,
        lt=MAX_EXPIRE_DAYS,
        description="기본 만료 일수",
    )

    @model_validator(mode="after")
    def check_any_field(self):
        if (
            self.max_earn_amount is None
            and self.max_possession_limit is None
            and self.default_expire_days is None
        ):
            raise ValueError("수정할 정책 항목이 최소 하나 이상 필요합니다.")
        return self


class PointPolicyResponse(BaseModel):
    """현재 적용 중인 포인트 정책"""

    id: int = Field(..., description="정책 버전 ID")
    min_earn_amount: int
    max_earn_amount: int
    max_possession_limit: int
    default_expire_days: int

    class Config:
        from_attributes = True
