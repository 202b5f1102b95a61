from datetime import datetime
from typing import List, Optional, Sequence

from sqlalchemy import asc, desc, func
from sqlalchemy.orm import Session

from pointapi.models.points import PointItem, PointStatus
from pointapi.repositories.base import BaseRepository
from pointapi.schemas.points import PointItemResponse


class PointItemRepository(BaseRepository[PointItem, PointItemResponse]):
    """포인트 원장(적립 낱장) 리포지토리"""

    def __init__(self, db: Session):
        super().__init__(PointItem, PointItemResponse, db)

    def find_usable(self, user_id: int, now: datetime) -> List[PointItem]:
        """
        차감 가능한 PointItem 조회 (차감 우선순위 순)

        1. 수기 지급(is_manual) 우선
        2. 만료일 임박 순
        3. 먼저 적립된 순
        만료 시각이 now 와 같은 건은 만료로 보고 제외한다.
        """
        return (
            self.db.query(self.model_class)
            .filter(
                self.model_class.user_id == user_id,
                self.model_class.status == PointStatus.AVAILABLE,
                self.model_class.expire_at > now,
            )
            .order_by(
                desc(self.model_class.is_manual),
                asc(self.model_class.expire_at),
                asc(self.model_class.id),
            )
            .populate_existing()
            .all()
        )

    def find_expirable_chunk(
        self, cutoff: datetime, after_id: int, limit: int
    ) -> List[PointItem]:
        """만료 대상 청크 조회 - id 기준 keyset 페이지네이션"""
        return (
            self.db.query(self.model_class)
            .filter(
                self.model_class.status == PointStatus.AVAILABLE,
                self.model_class.expire_at < cutoff,
                self.model_class.id > after_id,
            )
            .order_by(asc(self.model_class.id))
            .limit(limit)
            .all()
        )

    def find_by_id_for_update(self, item_id: int) -> Optional[PointItem]:
        return (
            self.db.query(self.model_class)
            .filter(self.model_class.id == item_id)
            .with_for_update()
            .populate_existing()
            .first()
        )

    def find_by_ids_for_update(self, item_ids: Sequence[int]) -> List[PointItem]:
        if not item_ids:
            return []
        return (
            self.db.query(self.model_class)
            .filter(self.model_class.id.in_(list(item_ids)))
            .order_by(asc(self.model_class.id))
            .with_for_update()
            .populate_existing()
            .all()
        )

    def find_expiring(
        self, user_id: int, now: datetime, until: datetime
    ) -> List[PointItem]:
        """now 이후 until 까지 만료 예정인 사용 가능 PointItem (임박 순)"""
        return (
            self.db.query(self.model_class)
            .filter(
                self.model_class.user_id == user_id,
                self.model_class.status == PointStatus.AVAILABLE,
                self.model_class.expire_at > now,
                self.model_class.expire_at <= until,
            )
            .order_by(asc(self.model_class.expire_at), asc(self.model_class.id))
            .all()
        )

    def sum_total_remain(self) -> int:
        """시스템 전체 사용 가능 잔액"""
        result = (
            self.db.query(func.sum(self.model_class.remain_amount))
            .filter(self.model_class.status == PointStatus.AVAILABLE)
            .scalar()
        )
        return result or 0

    def sum_remain_by_user(self, user_id: int) -> int:
        """사용자의 지갑 잔액에 대응하는 PointItem 잔액 합계"""
        result = (
            self.db.query(func.sum(self.model_class.remain_amount))
            .filter(
                self.model_class.user_id == user_id,
                self.model_class.status.in_(
                    [PointStatus.AVAILABLE, PointStatus.EXHAUSTED]
                ),
            )
            .scalar()
        )
        return result or 0
