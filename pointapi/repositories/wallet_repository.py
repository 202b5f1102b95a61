from typing import Dict, Iterable, Optional

from sqlalchemy.orm import Session

from pointapi.models.points import UserPointWallet
from pointapi.repositories.base import BaseRepository
from pointapi.schemas.points import PointWalletSchema


class WalletRepository(BaseRepository[UserPointWallet, PointWalletSchema]):
    """사용자 포인트 지갑 리포지토리"""

    def __init__(self, db: Session):
        super().__init__(UserPointWallet, PointWalletSchema, db)

    def find_by_user_id(self, user_id: int) -> Optional[UserPointWallet]:
        return (
            self.db.query(self.model_class)
            .filter(self.model_class.user_id == user_id)
            .first()
        )

    def find_by_user_id_for_update(self, user_id: int) -> Optional[UserPointWallet]:
        """
        지갑 row 를 SELECT ... FOR UPDATE 로 조회

        populate_existing 으로 세션에 캐시된 인스턴스도 DB 값으로 갱신한다.
        (sqlite 는 FOR UPDATE 를 무시하므로 프로세스 내 사용자 락이 함께 필요)
        """
        return (
            self.db.query(self.model_class)
            .filter(self.model_class.user_id == user_id)
            .with_for_update()
            .populate_existing()
            .first()
        )

    def find_by_user_ids(self, user_ids: Iterable[int]) -> Dict[int, UserPointWallet]:
        ids = list(user_ids)
        if not ids:
            return {}
        wallets = (
            self.db.query(self.model_class)
            .filter(self.model_class.user_id.in_(ids))
            .populate_existing()
            .all()
        )
        return {wallet.user_id: wallet for wallet in wallets}

    def create(self, user_id: int) -> UserPointWallet:
        """잔액 0 지갑 생성 (flush 만 수행)"""
        return self.add(self.model_class(user_id=user_id, balance=0))

    def get_balance(self, user_id: int) -> Optional[int]:
        wallet = self.find_by_user_id(user_id)
        return wallet.balance if wallet else None
