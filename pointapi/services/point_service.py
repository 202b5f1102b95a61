import logging
from contextlib import contextmanager
from datetime import datetime, timedelta
from typing import Iterator, List

from sqlalchemy.orm import Session

from pointapi.core.exceptions import (
    AccessDeniedError,
    DuplicateRequestError,
    InsufficientBalanceError,
    InvalidInputError,
    NotFoundError,
    RefundLimitExceededError,
)
from pointapi.core.locks import UserLockRegistry
from pointapi.models.points import (
    PointHistory,
    PointHistoryDetail,
    PointItem,
    PointType,
    UserPointWallet,
)
from pointapi.repositories.point_history_repository import PointHistoryRepository
from pointapi.repositories.point_item_repository import PointItemRepository
from pointapi.repositories.wallet_repository import WalletRepository
from pointapi.services.policy_manager import PointPolicyManager
from pointapi.utils.timezone_utils import get_kst_now_naive

logger = logging.getLogger(__name__)


class PointService:
    """
    포인트 적립/사용/취소 트랜잭션 서비스

    모든 명령은 하나의 작업 단위로 처리된다:
    사용자 락 획득 -> 지갑 FOR UPDATE 조회 -> 변경 -> 커밋 (예외 시 롤백) -> 락 해제
    Wallet, PointItem, PointHistory(+Detail) 변경은 함께 커밋되거나 함께 버려진다.
    """

    def __init__(
        self,
        db: Session,
        policy_manager: PointPolicyManager,
        lock_registry: UserLockRegistry,
    ):
        self.db = db
        self.policy_manager = policy_manager
        self.lock_registry = lock_registry
        self.wallet_repo = WalletRepository(db)
        self.item_repo = PointItemRepository(db)
        self.history_repo = PointHistoryRepository(db)

    @contextmanager
    def _unit_of_work(self, user_id: int) -> Iterator[None]:
        with self.lock_registry.hold(user_id):
            try:
                yield
                self.db.commit()
            except Exception:
                self.db.rollback()
                raise

    def _load_wallet_for_update(self, user_id: int) -> UserPointWallet:
        wallet = self.wallet_repo.find_by_user_id_for_update(user_id)
        if wallet is None:
            raise NotFoundError("지갑을 찾을 수 없습니다.", details={"user_id": user_id})
        return wallet

    def _new_expire_at(self, now: datetime) -> datetime:
        return now + timedelta(days=self.policy_manager.default_expire_days)

    def earn(self, user_id: int, amount: int, is_manual: bool, ref_id: str) -> None:
        """포인트 적립 (EARN / 관리자 수기 지급 ADMIN_GRANT)"""
        if not ref_id or not ref_id.strip():
            raise InvalidInputError("참조 ID(ref_id)는 필수입니다.")

        history_type = PointType.ADMIN_GRANT if is_manual else PointType.EARN

        with self._unit_of_work(user_id):
            wallet = self.wallet_repo.find_by_user_id_for_update(user_id)
            if wallet is None:
                wallet = self.wallet_repo.create(user_id)

            if self.history_repo.exists_by_user_ref_types(user_id, ref_id, [history_type]):
                raise DuplicateRequestError(
                    "이미 처리된 적립 요청입니다.",
                    details={"user_id": user_id, "ref_id": ref_id},
                )

            if (
                amount < self.policy_manager.min_earn_amount
                or amount > self.policy_manager.max_earn_amount
            ):
                raise InvalidInputError(
                    "적립 가능 금액 범위를 벗어났습니다.",
                    details={
                        "amount": amount,
                        "min_earn_amount": self.policy_manager.min_earn_amount,
                        "max_earn_amount": self.policy_manager.max_earn_amount,
                    },
                )

            wallet.earn(amount, self.policy_manager.max_possession_limit)

            now = get_kst_now_naive()
            item = self.item_repo.add(
                PointItem.issue(
                    user_id=user_id,
                    amount=amount,
                    expire_at=self._new_expire_at(now),
                    is_manual=is_manual,
                    now=now,
                )
            )

            history = PointHistory.record(
                user_id=user_id,
                type=history_type,
                ref_id=ref_id,
                details=[PointHistoryDetail(point_item=item, amount=amount)],
            )
            self.history_repo.add(history)

        logger.info(
            f"Earned {amount} points for user {user_id} "
            f"(type={history_type.value}, ref_id={ref_id}, item_id={item.id})",
            extra={"user_id": user_id, "ref_id": ref_id},
        )

    def cancel_earn(self, user_id: int, point_item_id: int, is_manual: bool) -> None:
        """적립 취소 (EARN_CANCEL / 관리자 회수 ADMIN_REVOKE) - 전액 미사용 건만 가능"""
        history_type = PointType.ADMIN_REVOKE if is_manual else PointType.EARN_CANCEL

        with self._unit_of_work(user_id):
            wallet = self._load_wallet_for_update(user_id)

            item = self.item_repo.find_by_id_for_update(point_item_id)
            if item is None:
                raise NotFoundError(
                    "적립 내역이 존재하지 않습니다.",
                    details={"point_item_id": point_item_id},
                )
            if item.user_id != user_id:
                raise AccessDeniedError(
                    "해당 유저의 포인트가 아닙니다.",
                    details={"point_item_id": point_item_id},
                )

            item.cancel_earn()
            wallet.use(item.original_amount)

            history = PointHistory.record(
                user_id=user_id,
                type=history_type,
                ref_id=str(point_item_id),
                details=[PointHistoryDetail(point_item=item, amount=item.original_amount)],
            )
            self.history_repo.add(history)

        logger.info(
            f"Canceled earn of item {point_item_id} for user {user_id} "
            f"(type={history_type.value}, amount={item.original_amount})",
            extra={"user_id": user_id, "point_item_id": point_item_id},
        )

    def use(self, user_id: int, amount: int, ref_id: str) -> None:
        """
        포인트 사용 (USE)

        차감 순서: 수기 지급 우선 -> 만료 임박 순 -> 적립 순.
        유효한 PointItem 잔액 합계가 부족하면 전체가 실패한다.
        """
        if not ref_id or not ref_id.strip():
            raise InvalidInputError("주문 ID(order_id)는 필수입니다.")

        with self._unit_of_work(user_id):
            wallet = self._load_wallet_for_update(user_id)

            if self.history_repo.exists_by_user_ref_types(user_id, ref_id, [PointType.USE]):
                raise DuplicateRequestError(
                    "이미 처리된 주문번호입니다.",
                    details={"user_id": user_id, "order_id": ref_id},
                )

            wallet.use(amount)

            now = get_kst_now_naive()
            remaining = amount
            details: List[PointHistoryDetail] = []

            for item in self.item_repo.find_usable(user_id, now):
                if remaining <= 0:
                    break

                use_amount = min(item.remain_amount, remaining)
                item.use(use_amount, now=now)
                details.append(PointHistoryDetail(point_item=item, amount=use_amount))
                remaining -= use_amount

            if remaining > 0:
                # 지갑 잔액은 충분해도 만료 직전 건 등으로 유효 잔액이 모자랄 수 있다
                raise InsufficientBalanceError(
                    "유효한 포인트가 부족합니다.",
                    details={"amount": amount, "shortage": remaining},
                )

            history = PointHistory.record(
                user_id=user_id, type=PointType.USE, ref_id=ref_id, details=details
            )
            self.history_repo.add(history)

        logger.info(
            f"Used {amount} points for user {user_id} "
            f"(order_id={ref_id}, items={len(details)})",
            extra={"user_id": user_id, "order_id": ref_id},
        )

    def cancel_use(self, user_id: int, order_id: str, cancel_amount: int) -> None:
        """
        포인트 사용 취소 (USE_CANCEL / RESTORE)

        원본 USE 상세를 저장 순서대로 따라가며 이전 취소 누적분만큼 건너뛴 뒤 복구한다.
        - 원본 PointItem 이 유효하면 잔액 복구 (USE_CANCEL)
        - 만료 시각이 지났거나 만료 배치가 EXPIRED 로 바꿨으면 새 PointItem 으로 재적립
          (RESTORE, 원본 ID 기록)
        """
        if cancel_amount <= 0:
            raise InvalidInputError("취소 금액은 0보다 커야 합니다.")

        with self._unit_of_work(user_id):
            wallet = self._load_wallet_for_update(user_id)

            original = self.history_repo.find_with_details(user_id, order_id, PointType.USE)
            if original is None:
                raise NotFoundError(
                    "해당 주문의 포인트 사용 이력이 없습니다.",
                    details={"order_id": order_id},
                )

            # 원본 상세가 가리키는 PointItem 을 최신 상태로 다시 읽는다 (만료 배치 반영)
            self.item_repo.find_by_ids_for_update(
                [detail.point_item_id for detail in original.details]
            )

            already_refunded = self.history_repo.sum_amount_by_user_ref_types(
                user_id, order_id, [PointType.USE_CANCEL, PointType.RESTORE]
            )
            if original.amount < already_refunded + cancel_amount:
                raise RefundLimitExceededError(
                    "취소 가능한 금액을 초과했습니다.",
                    details={
                        "used_amount": original.amount,
                        "already_refunded": already_refunded,
                        "cancel_amount": cancel_amount,
                    },
                )

            now = get_kst_now_naive()
            cancel_details: List[PointHistoryDetail] = []
            restore_details: List[PointHistoryDetail] = []
            skip = already_refunded
            remaining = cancel_amount

            for detail in original.details:
                if remaining <= 0:
                    break

                used = detail.amount
                if skip >= used:
                    skip -= used
                    continue

                refund = min(used - skip, remaining)
                skip = 0

                source_item = detail.point_item
                if source_item.is_lapsed(now):
                    restored = self.item_repo.add(
                        PointItem.issue(
                            user_id=user_id,
                            amount=refund,
                            expire_at=self._new_expire_at(now),
                            is_manual=False,
                            now=now,
                        )
                    )
                    restore_details.append(
                        PointHistoryDetail(
                            point_item=restored,
                            amount=refund,
                            restored_from_item_id=source_item.id,
                        )
                    )
                else:
                    source_item.cancel(refund, now=now)
                    cancel_details.append(
                        PointHistoryDetail(point_item=source_item, amount=refund)
                    )

                remaining -= refund

            if cancel_details:
                self.history_repo.add(
                    PointHistory.record(
                        user_id=user_id,
                        type=PointType.USE_CANCEL,
                        ref_id=order_id,
                        details=cancel_details,
                    )
                )
            if restore_details:
                self.history_repo.add(
                    PointHistory.record(
                        user_id=user_id,
                        type=PointType.RESTORE,
                        ref_id=order_id,
                        details=restore_details,
                    )
                )

            wallet.earn(cancel_amount, self.policy_manager.max_possession_limit)

        logger.info(
            f"Canceled use of {cancel_amount} points for user {user_id} "
            f"(order_id={order_id}, restored_items={len(cancel_details)}, "
            f"reissued_items={len(restore_details)})",
            extra={"user_id": user_id, "order_id": order_id},
        )
