import logging
from datetime import date, timedelta
from typing import List, Optional

from sqlalchemy.orm import Session

from pointapi.config import Settings, settings as default_settings
from pointapi.core.exceptions import InvalidInputError, NotFoundError
from pointapi.models.points import PointType
from pointapi.repositories.point_history_repository import PointHistoryRepository
from pointapi.repositories.point_item_repository import PointItemRepository
from pointapi.repositories.wallet_repository import WalletRepository
from pointapi.schemas.pagination import DirectPaginatedResponse
from pointapi.schemas.points import (
    PointBalanceResponse,
    PointExpiringResponse,
    PointHistoryResponse,
)
from pointapi.utils.timezone_utils import (
    end_of_day,
    get_kst_now_naive,
    months_between,
    start_of_day,
)

logger = logging.getLogger(__name__)


class PointSearchService:
    """사용자용 포인트 조회 서비스"""

    def __init__(self, db: Session, settings: Optional[Settings] = None):
        self.db = db
        self.settings = settings or default_settings
        self.wallet_repo = WalletRepository(db)
        self.item_repo = PointItemRepository(db)
        self.history_repo = PointHistoryRepository(db)

    def get_my_balance(self, user_id: int) -> PointBalanceResponse:
        balance = self.wallet_repo.get_balance(user_id)
        if balance is None:
            raise NotFoundError("지갑을 찾을 수 없습니다.", details={"user_id": user_id})
        return PointBalanceResponse(user_id=user_id, current_balance=balance)

    def get_my_histories(
        self,
        user_id: int,
        start_date: date,
        end_date: date,
        ref_id: Optional[str] = None,
        type: Optional[PointType] = None,
        limit: int = 50,
        offset: int = 0,
    ) -> DirectPaginatedResponse[PointHistoryResponse]:
        """내 포인트 이력 조회 (최신순)

        Args:
            user_id: 사용자 ID (X-User-Id)
            start_date: 조회 시작일
            end_date: 조회 종료일 (시작일 이후, 최대 HISTORY_SEARCH_MAX_MONTHS 개월)
            ref_id: 주문/이벤트 번호 필터
            type: 거래 유형 필터
        """
        self._validate_date_range(start_date, end_date)

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

    def get_expiring_points(
        self, user_id: int, days: Optional[int] = None
    ) -> List[PointExpiringResponse]:
        """만료 예정 포인트 조회 (기본 30일 이내, 만료 임박 순)"""
        window = days if days is not None else self.settings.POINT_EXPIRING_SOON_DAYS
        now = get_kst_now_naive()
        items = self.item_repo.find_expiring(user_id, now, now + timedelta(days=window))
        return [
            PointExpiringResponse(
                point_item_id=item.id,
                amount=item.remain_amount,
                expire_at=item.expire_at,
            )
            for item in items
        ]

    def _validate_date_range(self, start_date: date, end_date: date) -> None:
        if start_date > end_date:
            raise InvalidInputError("종료일은 시작일보다 빠를 수 없습니다.")
        max_months = self.settings.HISTORY_SEARCH_MAX_MONTHS
        if months_between(start_date, end_date) > max_months:
            raise InvalidInputError(
                f"조회 기간은 최대 {max_months}개월까지만 가능합니다.",
                details={"start_date": str(start_date), "end_date": str(end_date)},
            )
