from typing import Optional

from sqlalchemy import desc
from sqlalchemy.orm import Session

from pointapi.models.policy import PointPolicy
from pointapi.repositories.base import BaseRepository
from pointapi.schemas.policy import PointPolicyResponse


class PolicyRepository(BaseRepository[PointPolicy, PointPolicyResponse]):
    """포인트 정책 리포지토리 - 정책은 버전 row 추가만 하고 수정하지 않는다"""

    def __init__(self, db: Session):
        super().__init__(PointPolicy, PointPolicyResponse, db)

    def find_latest_model(self) -> Optional[PointPolicy]:
        """가장 최근 정책 버전 (id 최대값)"""
        return (
            self.db.query(self.model_class)
            .order_by(desc(self.model_class.id))
            .first()
        )

    def find_latest(self) -> Optional[PointPolicyResponse]:
        return self._to_schema(self.find_latest_model())
