import logging

from dependency_injector.wiring import Provide, inject
from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.orm import Session

from pointapi.containers import Container
from pointapi.database.session import get_db
from pointapi.schemas.health import HealthCheckResponse
from pointapi.services.policy_manager import PointPolicyManager
from pointapi.utils.timezone_utils import get_kst_now_naive

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/health", response_model=HealthCheckResponse)
@inject
def health_check(
    db: Session = Depends(get_db),
    policy_manager: PointPolicyManager = Depends(
        Provide[Container.services.policy_manager]
    ),
) -> HealthCheckResponse:
    """Health check endpoint."""

    response = HealthCheckResponse(checked_at=get_kst_now_naive())

    try:
        db.execute(text("SELECT 1"))
    except Exception as e:
        logger.error(f"Health check database query failed: {str(e)}")
        response.status = "unhealthy"
        response.database_connected = False
        response.error = "database unavailable"

    response.policy_loaded = policy_manager.is_loaded
    if policy_manager.is_loaded:
        response.active_policy_id = policy_manager.snapshot.policy_id
    elif response.status == "healthy":
        response.status = "degraded"

    return response
