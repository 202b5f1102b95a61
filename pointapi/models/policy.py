"""
포인트 정책 데이터 모델

정책은 수정되지 않고 새 버전 row가 추가되는 방식(Append-only)으로 관리된다.
가장 최근에 생성된 row(id 최대값)가 현재 적용 중인 정책이다.
"""

from sqlalchemy import BigInteger, Integer
from sqlalchemy.orm import Mapped, mapped_column

from pointapi.core.exceptions import InvalidInputError
from pointapi.models.base import BaseModel, BigIntPK

MIN_SAFE_EARN_AMOUNT = 1  # 최소 적립 1원
MAX_SAFE_EARN_AMOUNT = 100_000  # 1회 최대 적립 상한
MIN_EXPIRE_DAYS = 1
MAX_EXPIRE_DAYS = 1825  # 5년 (미포함)


class PointPolicy(BaseModel):
    __tablename__ = "point_policy"

    # 정책 버전 ID
    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    min_earn_amount: Mapped[int] = mapped_column(BigInteger, nullable=False)
    max_earn_amount: Mapped[int] = mapped_column(BigInteger, nullable=False)
    max_possession_limit: Mapped[int] = mapped_column(BigInteger, nullable=False)
    default_expire_days: Mapped[int] = mapped_column(Integer, nullable=False)

    @classmethod
    def create(
        cls,
        max_earn_amount: int,
        max_possession_limit: int,
        default_expire_days: int,
        min_earn_amount: int = MIN_SAFE_EARN_AMOUNT,
    ) -> "PointPolicy":
        """검증을 통과한 새 정책 버전 생성 (저장은 호출자 책임)"""
        cls.validate(max_earn_amount, max_possession_limit, default_expire_days)
        return cls(
            min_earn_amount=min_earn_amount,
            max_earn_amount=max_earn_amount,
            max_possession_limit=max_possession_limit,
            default_expire_days=default_expire_days,
        )

    @staticmethod
    def validate(max_earn: int, max_possession: int, expire_days: int) -> None:
        if max_earn < MIN_SAFE_EARN_AMOUNT or max_earn > MAX_SAFE_EARN_AMOUNT:
            raise InvalidInputError(
                f"1회 최대 적립액은 {MIN_SAFE_EARN_AMOUNT} 이상 {MAX_SAFE_EARN_AMOUNT} 이하여야 합니다."
            )

        if max_possession < max_earn:
            raise InvalidInputError("최대 보유 한도가 1회 최대 적립액보다 작을 수 없습니다.")

        if expire_days < MIN_EXPIRE_DAYS or expire_days >= MAX_EXPIRE_DAYS:
            raise InvalidInputError(
                f"만료 기간은 {MIN_EXPIRE_DAYS}일 이상, {MAX_EXPIRE_DAYS}일 미만이어야 합니다."
            )
