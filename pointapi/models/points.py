"""
포인트 시스템 데이터 모델

사용자 포인트 잔액은 네 가지 형태로 중복 표현된다:
1. UserPointWallet.balance - 사용자별 총 잔액 (빠른 조회용 요약)
2. PointItem.remain_amount - 적립 건(낱장)별 잔액
3. PointHistory.amount - 거래 1건의 총액
4. PointHistoryDetail.amount - 거래 중 특정 PointItem에 귀속된 금액

모든 변경은 같은 트랜잭션 안에서 함께 일어나야 하며, 다음 불변식을 유지한다:
- wallet.balance == Σ remain_amount (AVAILABLE + EXHAUSTED)
- history.amount == Σ detail.amount
- 0 <= remain_amount <= original_amount
"""

import enum
from datetime import datetime
from typing import List, Optional

from sqlalchemy import BigInteger, Boolean, DateTime, Enum, ForeignKey, Index, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from pointapi.core.exceptions import (
    InsufficientBalanceError,
    InvalidInputError,
    PossessionLimitExceededError,
)
from pointapi.models.base import BaseModel, BigIntPK, MutableModel
from pointapi.utils.timezone_utils import get_kst_now_naive


class PointStatus(enum.Enum):
    AVAILABLE = "AVAILABLE"  # 사용 가능
    EXHAUSTED = "EXHAUSTED"  # 전액 소진
    CANCELED = "CANCELED"  # 적립 취소
    EXPIRED = "EXPIRED"  # 만료됨


class PointType(enum.Enum):
    EARN = "EARN"  # 적립
    EARN_CANCEL = "EARN_CANCEL"  # 적립 취소
    USE = "USE"  # 사용
    USE_CANCEL = "USE_CANCEL"  # 사용 취소 (원본 Item 잔액 복구)
    EXPIRE = "EXPIRE"  # 만료
    RESTORE = "RESTORE"  # 만료분 재적립
    ADMIN_GRANT = "ADMIN_GRANT"  # 관리자 수기 지급
    ADMIN_REVOKE = "ADMIN_REVOKE"  # 관리자 회수


class UserPointWallet(MutableModel):
    """
    사용자 포인트 지갑 - 사용자별 현재 총 잔액

    잔액 검증과 증감만 담당하며 PointItem을 조회하지 않는다.
    동시성 제어(사용자 단위 락)는 호출하는 서비스의 책임이다.
    """

    __tablename__ = "user_point_wallet"

    user_id: Mapped[int] = mapped_column(BigInteger, primary_key=True, autoincrement=False)
    balance: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)

    def earn(self, amount: int, max_limit: int) -> None:
        if amount <= 0:
            raise InvalidInputError("적립 금액은 0보다 커야 합니다.")
        if self.balance + amount > max_limit:
            raise PossessionLimitExceededError(
                "개인별 최대 보유 한도를 초과했습니다.",
                details={"balance": self.balance, "amount": amount, "max_limit": max_limit},
            )
        self.balance += amount

    def use(self, amount: int) -> None:
        if amount <= 0:
            raise InvalidInputError("사용 금액은 0보다 커야 합니다.")
        if self.balance < amount:
            raise InsufficientBalanceError(
                "포인트 잔액이 부족합니다.",
                details={"balance": self.balance, "amount": amount},
            )
        self.balance -= amount


class PointItem(MutableModel):
    """
    포인트 원장 (적립 낱장)

    적립 1건마다 생성되며 자체 잔액/만료일/상태를 가진다.
    상태 전이:
    - AVAILABLE -> EXHAUSTED : use 로 잔액 0
    - EXHAUSTED -> AVAILABLE : cancel 로 잔액 복구
    - AVAILABLE(미사용) -> CANCELED : cancel_earn
    - AVAILABLE -> EXPIRED : 만료 배치
    CANCELED, EXPIRED 는 종료 상태.
    """

    __tablename__ = "point_item"
    __table_args__ = (
        # 사용 우선순위 조회 및 만료 임박 조회용
        Index("idx_user_status_expire", "user_id", "status", "expire_at"),
    )

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(BigInteger, nullable=False)
    original_amount: Mapped[int] = mapped_column(BigInteger, nullable=False)
    remain_amount: Mapped[int] = mapped_column(BigInteger, nullable=False)
    expire_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    # 수기 지급 여부 - 차감 1순위
    is_manual: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    status: Mapped[PointStatus] = mapped_column(
        Enum(PointStatus, native_enum=False, length=20),
        nullable=False,
        default=PointStatus.AVAILABLE,
    )

    @classmethod
    def issue(
        cls,
        user_id: int,
        amount: int,
        expire_at: datetime,
        is_manual: bool = False,
        now: Optional[datetime] = None,
    ) -> "PointItem":
        """새 적립 낱장 생성 (초기 잔액 = 최초 지급액)"""
        now = now or get_kst_now_naive()
        if user_id is None:
            raise InvalidInputError("유저 ID는 필수입니다.")
        if amount < 1:
            raise InvalidInputError("적립액은 1 이상이어야 합니다.")
        if expire_at is None or expire_at <= now:
            raise InvalidInputError("유효기간은 현재 시간보다 미래여야 합니다.")

        return cls(
            user_id=user_id,
            original_amount=amount,
            remain_amount=amount,
            expire_at=expire_at,
            is_manual=is_manual,
            status=PointStatus.AVAILABLE,
        )

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        # 만료 시각과 같은 순간도 만료로 본다
        now = now or get_kst_now_naive()
        return now >= self.expire_at

    def is_lapsed(self, now: Optional[datetime] = None) -> bool:
        """만료 배치가 먼저 처리했거나 만료 시각이 지난 건 (사용 취소 시 재적립 대상)"""
        return self.status == PointStatus.EXPIRED or self.is_expired(now)

    def use(self, amount: int, now: Optional[datetime] = None) -> None:
        if self.status != PointStatus.AVAILABLE:
            raise InvalidInputError("사용 가능한 상태의 포인트가 아닙니다.")
        if self.is_expired(now):
            raise InvalidInputError("이미 만료된 포인트입니다.")
        if amount <= 0 or amount > self.remain_amount:
            raise InvalidInputError("차감하려는 금액이 잔액보다 큽니다.")

        self.remain_amount -= amount

        if self.remain_amount == 0:
            self.status = PointStatus.EXHAUSTED

    def cancel(self, amount: int, now: Optional[datetime] = None) -> None:
        """사용 취소 시 잔액 복구"""
        if self.status not in (PointStatus.AVAILABLE, PointStatus.EXHAUSTED):
            raise InvalidInputError("복구할 수 없는 상태의 포인트입니다.")
        if self.is_expired(now):
            raise InvalidInputError("만료된 포인트는 복구할 수 없습니다.")
        if amount <= 0 or self.remain_amount + amount > self.original_amount:
            raise InvalidInputError("원금보다 더 많이 복구할 수 없습니다.")

        self.remain_amount += amount

        if self.status == PointStatus.EXHAUSTED:
            self.status = PointStatus.AVAILABLE

    def cancel_earn(self) -> None:
        """적립 취소 - 전액 미사용 상태에서만 가능"""
        if self.status != PointStatus.AVAILABLE:
            raise InvalidInputError("적립 취소할 수 없는 상태의 포인트입니다.")
        if self.remain_amount != self.original_amount:
            raise InvalidInputError("이미 사용된 포인트는 적립 취소할 수 없습니다.")

        self.status = PointStatus.CANCELED
        self.remain_amount = 0

    def expire(self) -> int:
        """만료 처리 후 소멸된 금액을 반환 (잔액 0 또는 AVAILABLE 이 아니면 0)"""
        if self.remain_amount <= 0 or self.status != PointStatus.AVAILABLE:
            return 0

        expired_amount = self.remain_amount
        self.status = PointStatus.EXPIRED
        self.remain_amount = 0
        return expired_amount


class PointHistory(BaseModel):
    """
    포인트 거래 이력 (Master)

    거래 1건마다 생성되는 불변 기록. Detail 과 함께 한 번에 저장된다.
    ref_id 는 주문번호/이벤트 번호 등 외부 멱등성 키.
    """

    __tablename__ = "point_history"
    __table_args__ = (
        Index("idx_user_ref", "user_id", "ref_id"),
        Index("idx_user_date", "user_id", "created_at"),
        Index("idx_date", "created_at"),
    )

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(BigInteger, nullable=False)
    type: Mapped[PointType] = mapped_column(
        Enum(PointType, native_enum=False, length=20), nullable=False
    )
    amount: Mapped[int] = mapped_column(BigInteger, nullable=False)
    ref_id: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)

    details: Mapped[List["PointHistoryDetail"]] = relationship(
        back_populates="point_history",
        cascade="all, delete-orphan",
        order_by="PointHistoryDetail.id",
    )

    @classmethod
    def record(
        cls,
        user_id: int,
        type: PointType,
        ref_id: Optional[str],
        details: List["PointHistoryDetail"],
    ) -> "PointHistory":
        """Detail 목록으로 이력 생성 - 총액은 Detail 합계로 결정된다"""
        history = cls(
            user_id=user_id,
            type=type,
            amount=sum(detail.amount for detail in details),
            ref_id=ref_id,
        )
        for detail in details:
            history.add_detail(detail)
        return history

    def add_detail(self, detail: "PointHistoryDetail") -> None:
        self.details.append(detail)


class PointHistoryDetail(BaseModel):
    """
    포인트 거래 상세 - 거래 중 어떤 PointItem 에서 얼마가 움직였는지 기록

    restored_from_item_id 는 만료된 원본 Item 대신 새 Item 을 재적립(RESTORE)할 때
    원본 Item 을 추적하기 위해 남긴다.
    """

    __tablename__ = "point_history_detail"

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    point_history_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("point_history.id"), nullable=False, index=True
    )
    point_item_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("point_item.id"), nullable=False, index=True
    )
    amount: Mapped[int] = mapped_column(BigInteger, nullable=False)
    restored_from_item_id: Mapped[Optional[int]] = mapped_column(BigInteger, nullable=True)

    point_history: Mapped[PointHistory] = relationship(back_populates="details")
    point_item: Mapped[PointItem] = relationship()
