import logging
import secrets
from typing import Optional

from fastapi import Header

from pointapi.config import settings
from pointapi.core.exceptions import AccessDeniedError

logger = logging.getLogger(__name__)


def require_admin_key(
    x_admin_key: Optional[str] = Header(None, alias="X-ADMIN-KEY"),
) -> None:
    """관리자 API 접근 확인 - X-ADMIN-KEY 헤더가 설정된 ADMIN_KEY 와 일치해야 한다"""
    expected = settings.ADMIN_KEY
    if not expected or not x_admin_key:
        logger.warning("Admin API called without a configured or provided admin key")
        raise AccessDeniedError("관리자 권한이 필요합니다.")

    if not secrets.compare_digest(x_admin_key.encode(), expected.encode()):
        logger.warning("Admin API called with an invalid admin key")
        raise AccessDeniedError("관리자 권한이 필요합니다.")
