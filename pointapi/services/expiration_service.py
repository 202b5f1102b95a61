"""
포인트 만료 배치

만료일이 지난 사용 가능(AVAILABLE) PointItem 을 청크 단위로 소멸시키고
사용자별 지갑 잔액을 한 번에 차감한다. 청크 하나가 트랜잭션 하나이며,
실패한 청크는 롤백 후 예외를 그대로 전파한다.
이미 EXPIRED 된 건은 조회 조건에서 빠지므로 재실행해도 안전하다.
"""

import logging
from collections import defaultdict
from datetime import date, datetime
from typing import Dict, List, Optional

from sqlalchemy.orm import Session

from pointapi.config import Settings, settings as default_settings
from pointapi.core.exceptions import NotFoundError
from pointapi.core.locks import UserLockRegistry
from pointapi.models.points import (
    PointHistory,
    PointHistoryDetail,
    PointItem,
    PointStatus,
    PointType,
)
from pointapi.repositories.point_history_repository import PointHistoryRepository
from pointapi.repositories.point_item_repository import PointItemRepository
from pointapi.repositories.wallet_repository import WalletRepository
from pointapi.schemas.batch import ExpireBatchResult
from pointapi.utils.timezone_utils import (
    get_current_kst_date,
    get_kst_now_naive,
    start_of_day,
)

logger = logging.getLogger(__name__)


class ExpirationService:
    def __init__(
        self,
        db: Session,
        lock_registry: UserLockRegistry,
        settings: Optional[Settings] = None,
    ):
        self.db = db
        self.lock_registry = lock_registry
        self.settings = settings or default_settings
        self.item_repo = PointItemRepository(db)
        self.wallet_repo = WalletRepository(db)
        self.history_repo = PointHistoryRepository(db)

    def expire_points(
        self, target_date: Optional[date] = None, chunk_size: Optional[int] = None
    ) -> ExpireBatchResult:
        """
        만료 처리 실행

        Args:
            target_date: 기준일. 지정하면 해당 일자 00:00 이전에 만료된 건을 처리하고,
                없으면 현재 시각 이전 만료분을 처리한다.
            chunk_size: 청크 크기 (기본값: POINT_EXPIRE_CHUNK_SIZE)
        """
        cutoff = start_of_day(target_date) if target_date else get_kst_now_naive()
        size = chunk_size or self.settings.POINT_EXPIRE_CHUNK_SIZE
        ref_id = f"BATCH_{get_current_kst_date().isoformat()}"

        result = ExpireBatchResult(cutoff=cutoff)
        affected_users = set()
        last_id = 0

        while True:
            chunk = self.item_repo.find_expirable_chunk(cutoff, last_id, size)
            if not chunk:
                break
            last_id = chunk[-1].id

            debited = self._expire_chunk(
                item_ids=[item.id for item in chunk],
                user_ids=[item.user_id for item in chunk],
                cutoff=cutoff,
                ref_id=ref_id,
            )

            result.chunks_processed += 1
            result.items_expired += debited["items"]
            result.total_expired_amount += debited["amount"]
            affected_users.update(debited["users"])

            logger.info(
                f"Expire chunk {result.chunks_processed} done: "
                f"items={debited['items']}, amount={debited['amount']}, last_id={last_id}"
            )

            if len(chunk) < size:
                break

        result.affected_users = len(affected_users)
        return result

    def _expire_chunk(
        self, item_ids: List[int], user_ids: List[int], cutoff: datetime, ref_id: str
    ) -> dict:
        # 포인트 사용/취소와 같은 사용자 락을 잡고 락 안에서 다시 읽는다
        with self.lock_registry.hold_many(user_ids):
            try:
                items = self.item_repo.find_by_ids_for_update(item_ids)
                totals: Dict[int, int] = defaultdict(int)
                expired_count = 0

                for item in items:
                    if item.status != PointStatus.AVAILABLE or item.expire_at >= cutoff:
                        continue

                    amount = item.expire()
                    if amount <= 0:
                        continue

                    self.history_repo.add(self._expire_history(item, amount, ref_id))
                    totals[item.user_id] += amount
                    expired_count += 1

                wallets = self.wallet_repo.find_by_user_ids(totals.keys())
                for user_id, total in totals.items():
                    wallet = wallets.get(user_id)
                    if wallet is None:
                        raise NotFoundError(
                            "지갑을 찾을 수 없습니다.", details={"user_id": user_id}
                        )
                    wallet.use(total)

                self.db.commit()
            except Exception:
                self.db.rollback()
                raise

        return {
            "items": expired_count,
            "amount": sum(totals.values()),
            "users": set(totals.keys()),
        }

    @staticmethod
    def _expire_history(item: PointItem, amount: int, ref_id: str) -> PointHistory:
        return PointHistory.record(
            user_id=item.user_id,
            type=PointType.EXPIRE,
            ref_id=ref_id,
            details=[PointHistoryDetail(point_item=item, amount=amount)],
        )

    def run_expire_job(self, target_date: Optional[date] = None) -> ExpireBatchResult:
        """배치 진입점 - 시작/종료 로그를 남긴다"""
        logger.info(f"Point expire job started (target_date={target_date})")
        try:
            result = self.expire_points(target_date)
        except Exception as e:
            logger.error(f"Point expire job failed: {str(e)}", exc_info=True)
            raise

        logger.info(
            f"Point expire job finished: chunks={result.chunks_processed}, "
            f"items={result.items_expired}, amount={result.total_expired_amount}, "
            f"users={result.affected_users}",
            extra={"cutoff": result.cutoff},
        )
        return result
