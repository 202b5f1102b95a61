from datetime import datetime
from typing import List, Optional, Sequence, Tuple

from sqlalchemy import desc, func
from sqlalchemy.orm import Session, selectinload

from pointapi.models.points import PointHistory, PointType
from pointapi.repositories.base import BaseRepository
from pointapi.schemas.points import PointHistoryResponse, PointStatisticsResponse


class PointHistoryRepository(BaseRepository[PointHistory, PointHistoryResponse]):
    """
    포인트 거래 이력 리포지토리

    이력(Master)과 상세(Detail)는 relationship cascade 로 함께 저장되므로
    add() 한 번으로 전체 그래프가 flush 된다.
    """

    def __init__(self, db: Session):
        super().__init__(PointHistory, PointHistoryResponse, db)

    def exists_by_user_ref_types(
        self, user_id: int, ref_id: str, types: Sequence[PointType]
    ) -> bool:
        """멱등성 검사 - 같은 사용자/참조 ID/유형의 이력이 이미 있는지"""
        found = (
            self.db.query(self.model_class.id)
            .filter(
                self.model_class.user_id == user_id,
                self.model_class.ref_id == ref_id,
                self.model_class.type.in_(list(types)),
            )
            .first()
        )
        return found is not None

    def find_with_details(
        self, user_id: int, ref_id: str, type: PointType
    ) -> Optional[PointHistory]:
        """원본 거래 이력과 상세를 함께 조회 (상세는 저장 순서)"""
        return (
            self.db.query(self.model_class)
            .options(selectinload(self.model_class.details))
            .filter(
                self.model_class.user_id == user_id,
                self.model_class.ref_id == ref_id,
                self.model_class.type == type,
            )
            .order_by(self.model_class.id)
            .first()
        )

    def sum_amount_by_user_ref_types(
        self, user_id: int, ref_id: str, types: Sequence[PointType]
    ) -> int:
        """이미 처리된 금액 합계 (부분 취소 누적분 계산용)"""
        result = (
            self.db.query(func.sum(self.model_class.amount))
            .filter(
                self.model_class.user_id == user_id,
                self.model_class.ref_id == ref_id,
                self.model_class.type.in_(list(types)),
            )
            .scalar()
        )
        return result or 0

    def search(
        self,
        start_at: datetime,
        end_at: datetime,
        user_id: Optional[int] = None,
        ref_id: Optional[str] = None,
        type: Optional[PointType] = None,
        limit: int = 50,
        offset: int = 0,
    ) -> Tuple[List[PointHistoryResponse], int]:
        """기간 내 이력 검색 (최신순) - (페이지 항목, 전체 건수)"""
        query = self.db.query(self.model_class).filter(
            self.model_class.created_at >= start_at,
            self.model_class.created_at <= end_at,
        )

        if user_id is not None:
            query = query.filter(self.model_class.user_id == user_id)
        if ref_id:
            query = query.filter(self.model_class.ref_id == ref_id)
        if type is not None:
            query = query.filter(self.model_class.type == type)

        total_count = query.count()

        instances = (
            query.options(selectinload(self.model_class.details))
            .order_by(desc(self.model_class.created_at), desc(self.model_class.id))
            .limit(limit)
            .offset(offset)
            .all()
        )

        return self._to_schemas(instances), total_count

    def statistics_by_type(
        self, start_at: datetime, end_at: datetime
    ) -> List[PointStatisticsResponse]:
        """기간 내 거래 유형별 금액 합계"""
        rows = (
            self.db.query(self.model_class.type, func.sum(self.model_class.amount))
            .filter(
                self.model_class.created_at >= start_at,
                self.model_class.created_at <= end_at,
            )
            .group_by(self.model_class.type)
            .order_by(self.model_class.type)
            .all()
        )
        return [
            PointStatisticsResponse(type=row[0], total_amount=row[1] or 0)
            for row in rows
        ]
