"""
포인트 정책 캐시

요청마다 DB 를 조회하지 않도록 현재 정책을 프로세스 메모리에 보관한다.
스냅샷은 불변 객체이며 refresh() 시 참조 하나를 교체하는 방식으로 갱신되므로
읽는 쪽은 항상 완전한 한 버전의 정책만 본다.
"""

import logging
import threading
from dataclasses import dataclass
from typing import Optional

from sqlalchemy.orm import Session

from pointapi.config import Settings, settings as default_settings
from pointapi.core.exceptions import PolicyNotFoundError
from pointapi.models.policy import PointPolicy
from pointapi.repositories.policy_repository import PolicyRepository

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PolicySnapshot:
    policy_id: int
    min_earn_amount: int
    max_earn_amount: int
    max_possession_limit: int
    default_expire_days: int

    @classmethod
    def from_model(cls, policy: PointPolicy) -> "PolicySnapshot":
        return cls(
            policy_id=policy.id,
            min_earn_amount=policy.min_earn_amount,
            max_earn_amount=policy.max_earn_amount,
            max_possession_limit=policy.max_possession_limit,
            default_expire_days=policy.default_expire_days,
        )


class PointPolicyManager:
    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or default_settings
        self._lock = threading.Lock()
        self._snapshot: Optional[PolicySnapshot] = None

    @property
    def snapshot(self) -> PolicySnapshot:
        snapshot = self._snapshot
        if snapshot is None:
            raise PolicyNotFoundError("포인트 정책이 로드되지 않았습니다.")
        return snapshot

    @property
    def is_loaded(self) -> bool:
        return self._snapshot is not None

    @property
    def min_earn_amount(self) -> int:
        return self.snapshot.min_earn_amount

    @property
    def max_earn_amount(self) -> int:
        return self.snapshot.max_earn_amount

    @property
    def max_possession_limit(self) -> int:
        return self.snapshot.max_possession_limit

    @property
    def default_expire_days(self) -> int:
        return self.snapshot.default_expire_days

    def load_policy(self, db: Session) -> PolicySnapshot:
        """기동 시 정책 로드 - 정책이 하나도 없으면 기본 정책을 생성한다"""
        repo = PolicyRepository(db)
        if repo.find_latest_model() is None:
            default_policy = PointPolicy.create(
                max_earn_amount=self.settings.DEFAULT_MAX_EARN_AMOUNT,
                max_possession_limit=self.settings.DEFAULT_MAX_POSSESSION_LIMIT,
                default_expire_days=self.settings.DEFAULT_EXPIRE_DAYS,
            )
            try:
                repo.add(default_policy)
                db.commit()
            except Exception:
                db.rollback()
                raise
            logger.info(
                f"Created default point policy: max_earn={default_policy.max_earn_amount}, "
                f"max_possession={default_policy.max_possession_limit}, "
                f"expire_days={default_policy.default_expire_days}"
            )

        return self.refresh(db)

    def refresh(self, db: Session) -> PolicySnapshot:
        """최신 정책 버전으로 스냅샷 교체"""
        latest = PolicyRepository(db).find_latest_model()
        if latest is None:
            raise PolicyNotFoundError("적용할 포인트 정책이 존재하지 않습니다.")

        snapshot = PolicySnapshot.from_model(latest)
        with self._lock:
            self._snapshot = snapshot

        logger.info(f"Point policy loaded: version={snapshot.policy_id}")
        return snapshot
