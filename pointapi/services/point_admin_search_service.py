import logging
from datetime import date
from typing import List, Optional

from sqlalchemy.orm import Session

from pointapi.core.exceptions import InvalidInputError
from pointapi.models.points import PointType
from pointapi.repositories.point_history_repository import PointHistoryRepository
from pointapi.repositories.point_item_repository import PointItemRepository
from pointapi.repositories.wallet_repository import WalletRepository
from pointapi.schemas.pagination import DirectPaginatedResponse
from pointapi.schemas.points import (
    PointBalanceResponse,
    PointHistoryResponse,
    PointIntegrityCheckResponse,
    PointStatisticsResponse,
    PointTotalRemainResponse,
)
from pointapi.utils.timezone_utils import end_of_day, get_kst_now_naive, start_of_day

logger = logging.getLogger(__name__)


class PointAdminSearchService:
    """관리자용 포인트 조회/통계 서비스"""

    def __init__(self, db: Session):
        self.db = db
        self.wallet_repo = WalletRepository(db)
        self.item_repo = PointItemRepository(db)
        self.history_repo = PointHistoryRepository(db)

    def get_histories(
        self,
        start_date: Optional[date],
        end_date: Optional[date],
        user_id: Optional[int] = None,
        ref_id: Optional[str] = None,
        type: Optional[PointType] = None,
        limit: int = 100,
        offset: int = 0,
    ) -> DirectPaginatedResponse[PointHistoryResponse]:
        self._require_period(start_date, end_date)

        entries, total_count = self.history_repo.search(
            start_at=start_of_day(start_date),
            end_at=end_of_day(end_date),
            user_id=user_id,
            ref_id=ref_id,
            type=type,
            limit=limit,
            offset=offset,
        )
        return DirectPaginatedResponse(
            data=entries,
            total_count=total_count,
            has_next=offset + limit < total_count,
            limit=limit,
            offset=offset,
        )

    def get_total_remain(self) -> PointTotalRemainResponse:
        """시스템 전체 사용 가능 포인트 잔액 (부채 규모)"""
        return PointTotalRemainResponse(total_remain=self.item_repo.sum_total_remain())

    def get_statistics(
        self, start_date: Optional[date], end_date: Optional[date]
    ) -> List[PointStatisticsResponse]:
        self._require_period(start_date, end_date)
        return self.history_repo.statistics_by_type(
            start_of_day(start_date), end_of_day(end_date)
        )

    def get_user_balance(self, user_id: int) -> PointBalanceResponse:
        """특정 사용자 잔액 (지갑이 없으면 0)"""
        balance = self.wallet_repo.get_balance(user_id)
        return PointBalanceResponse(user_id=user_id, current_balance=balance or 0)

    def verify_integrity_for_user(self, user_id: int) -> PointIntegrityCheckResponse:
        """
        특정 사용자의 포인트 정합성 검증

        지갑 잔액과 사용 가능/소진 PointItem 잔액 합계가 같아야 한다.
        일치하지 않으면 MISMATCH 를 반환하고 경고 로그를 남긴다.
        """
        wallet_balance = self.wallet_repo.get_balance(user_id) or 0
        item_total = self.item_repo.sum_remain_by_user(user_id)
        status = "OK" if wallet_balance == item_total else "MISMATCH"

        if status != "OK":
            logger.warning(
                f"Point integrity mismatch for user {user_id}: "
                f"wallet={wallet_balance}, items={item_total}"
            )

        return PointIntegrityCheckResponse(
            status=status,
            user_id=user_id,
            wallet_balance=wallet_balance,
            item_remain_total=item_total,
            verified_at=get_kst_now_naive(),
        )

    @staticmethod
    def _require_period(start_date: Optional[date], end_date: Optional[date]) -> None:
        if start_date is None or end_date is None:
            raise InvalidInputError("조회 기간은 필수입니다.")
        if start_date > end_date:
            raise InvalidInputError("종료일은 시작일보다 빠를 수 없습니다.")
