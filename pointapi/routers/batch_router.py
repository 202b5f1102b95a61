import logging
from typing import Optional

from fastapi import APIRouter, Body, Depends

from pointapi.core.admin_auth import require_admin_key
from pointapi.deps import get_expiration_service
from pointapi.schemas.batch import ExpireBatchRequest, ExpireBatchResult
from pointapi.schemas.pagination import BaseResponse
from pointapi.services.expiration_service import ExpirationService

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/batch",
    tags=["batch"],
    dependencies=[Depends(require_admin_key)],
)


@router.post("/points/expire", response_model=BaseResponse[ExpireBatchResult])
def execute_point_expiration(
    request: Optional[ExpireBatchRequest] = Body(None),
    expiration_service: ExpirationService = Depends(get_expiration_service),
):
    """
    포인트 만료 배치 실행

    스케줄러(EventBridge, cron 등)가 매일 자정 직후 호출하는 것을 전제로 한다.
    target_date 를 주면 해당 일자 00:00 이전 만료분을, 없으면 현재 시각 이전 만료분을 처리한다.
    """
    target_date = request.target_date if request else None
    result = expiration_service.run_expire_job(target_date)
    return BaseResponse(message="포인트 만료 배치가 완료되었습니다.", data=result)
