from fastapi import APIRouter, Depends

from pointapi.core.admin_auth import require_admin_key
from pointapi.deps import get_policy_service
from pointapi.schemas.pagination import BaseResponse
from pointapi.schemas.policy import PointPolicyResponse, PointPolicyUpdateRequest
from pointapi.services.policy_service import PointPolicyService

router = APIRouter(
    prefix="/admin/points/policies",
    tags=["admin-policy"],
    dependencies=[Depends(require_admin_key)],
)


@router.put("", response_model=BaseResponse[PointPolicyResponse])
def update_policy(
    request: PointPolicyUpdateRequest,
    policy_service: PointPolicyService = Depends(get_policy_service),
):
    """포인트 정책 부분 수정 - 새 정책 버전을 만들고 캐시를 갱신한다"""
    policy = policy_service.update_policy(request)
    return BaseResponse(message="포인트 정책이 변경되었습니다.", data=policy)


@router.get("", response_model=BaseResponse[PointPolicyResponse])
def get_active_policy(
    policy_service: PointPolicyService = Depends(get_policy_service),
):
    return BaseResponse(data=policy_service.get_active_policy())
