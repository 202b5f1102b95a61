from sqlalchemy import BigInteger, Column, DateTime, Integer, inspect
from sqlalchemy.orm import declarative_base, declared_attr

from pointapi.utils.timezone_utils import get_kst_now_naive

Base = declarative_base()

# sqlite는 INTEGER PRIMARY KEY 만 자동 증가하므로 방언별 타입을 분리한다
BigIntPK = BigInteger().with_variant(Integer, "sqlite")


class CreatedAtMixin:
    """생성 시각 (KST naive). 원장 이력처럼 수정되지 않는 row 용"""

    @declared_attr
    def created_at(cls):
        return Column(DateTime, default=get_kst_now_naive, nullable=False)


class UpdatedAtMixin:
    """잔액처럼 갱신되는 row 의 마지막 변경 시각"""

    @declared_attr
    def updated_at(cls):
        return Column(
            DateTime,
            default=get_kst_now_naive,
            onupdate=get_kst_now_naive,
            nullable=False,
        )


class BaseModel(Base, CreatedAtMixin):
    """Append-only 모델의 베이스 클래스 (정책, 거래 이력)"""

    __abstract__ = True

    def __repr__(self) -> str:
        identity = inspect(self).identity
        key = identity[0] if identity else None
        return f"<{type(self).__name__} id={key}>"


class MutableModel(BaseModel, UpdatedAtMixin):
    """상태가 바뀌는 모델의 베이스 클래스 (지갑, 적립 건)"""

    __abstract__ = True
