import logging
import time

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

logger = logging.getLogger("pointapi")

# 원장 변경 요청은 사용자 식별 헤더와 함께 남긴다
USER_ID_HEADER = "X-User-Id"


class LoggingMiddleware(BaseHTTPMiddleware):
    """요청/응답 접근 로그. 4xx 는 warning, 5xx 는 error 로 남긴다."""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        start = time.perf_counter()
        target = f"{request.method} {request.url.path}"
        client = request.client.host if request.client else "-"
        user_id = request.headers.get(USER_ID_HEADER)
        origin = f"{client} (user={user_id})" if user_id else client

        logger.info(f"[Request] {target} from {origin}")
        try:
            response = await call_next(request)
        except Exception:
            logger.exception(f"[Unhandled Error] {target} from {origin}")
            raise

        elapsed_ms = (time.perf_counter() - start) * 1000
        message = (
            f"[Response] {target} from {origin} -> "
            f"{response.status_code} in {elapsed_ms:.1f}ms"
        )
        if response.status_code >= 500:
            logger.error(message)
        elif response.status_code >= 400:
            logger.warning(message)
        else:
            logger.info(message)
        return response
