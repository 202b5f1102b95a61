import logging

from sqlalchemy.orm import Session

from pointapi.core.exceptions import InvalidInputError, PolicyNotFoundError
from pointapi.models.policy import PointPolicy
from pointapi.repositories.policy_repository import PolicyRepository
from pointapi.schemas.policy import PointPolicyResponse, PointPolicyUpdateRequest
from pointapi.services.policy_manager import PointPolicyManager

logger = logging.getLogger(__name__)


class PointPolicyService:
    """포인트 정책 변경/조회 서비스"""

    def __init__(self, db: Session, policy_manager: PointPolicyManager):
        self.db = db
        self.policy_manager = policy_manager
        self.policy_repo = PolicyRepository(db)

    def update_policy(self, request: PointPolicyUpdateRequest) -> PointPolicyResponse:
        """
        정책 부분 수정 - 새 버전 row 를 추가한다

        지정하지 않은 항목은 현재 정책 값을 이어받는다.
        검증에 실패하면 아무것도 저장하지 않고 캐시도 그대로 둔다.
        커밋이 끝난 뒤에만 캐시를 갱신한다.
        """
        if (
            request.max_earn_amount is None
            and request.max_possession_limit is None
            and request.default_expire_days is None
        ):
            raise InvalidInputError("수정할 정책 항목이 최소 하나 이상 필요합니다.")

        current = self.policy_repo.find_latest_model()
        if current is None:
            raise PolicyNotFoundError("현재 적용 중인 정책이 존재하지 않습니다.")

        max_earn = (
            request.max_earn_amount
            if request.max_earn_amount is not None
            else current.max_earn_amount
        )
        max_possession = (
            request.max_possession_limit
            if request.max_possession_limit is not None
            else current.max_possession_limit
        )
        expire_days = (
            request.default_expire_days
            if request.default_expire_days is not None
            else current.default_expire_days
        )

        new_policy = PointPolicy.create(
            max_earn_amount=max_earn,
            max_possession_limit=max_possession,
            default_expire_days=expire_days,
        )

        try:
            self.policy_repo.add(new_policy)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        self.policy_manager.refresh(self.db)
        logger.info(
            f"Point policy updated: version {current.id} -> {new_policy.id} "
            f"(max_earn={max_earn}, max_possession={max_possession}, expire_days={expire_days})"
        )
        return PointPolicyResponse.model_validate(new_policy)

    def get_active_policy(self) -> PointPolicyResponse:
        policy = self.policy_repo.find_latest()
        if policy is None:
            raise PolicyNotFoundError("현재 적용 중인 정책이 존재하지 않습니다.")
        return policy
