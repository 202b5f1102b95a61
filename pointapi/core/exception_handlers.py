"""
API 오류 응답 변환

모든 오류는 같은 형태로 응답한다:
{"success": false, "error": {"code": ..., "message": ..., "details": {...}}}
"""

import logging
from typing import Any, Dict, Optional

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from .exceptions import BaseAPIException, InternalServerError

logger = logging.getLogger("pointapi")

# 라우팅 단계에서 발생한 HTTP 오류의 상태코드별 오류 코드
HTTP_STATUS_ERROR_CODES = {
    403: "ACCESS_DENIED_001",
    404: "NOT_FOUND_001",
}


def error_envelope(code: str, message: str, details: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    return {
        "success": False,
        "error": {"code": code, "message": message, "details": details or {}},
    }


def _error_response(status_code: int, content: Dict[str, Any]) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=jsonable_encoder(content))


def _log_rejection(request: Request, status_code: int, summary: str) -> None:
    # 4xx 는 잔액 부족, 중복 요청 같은 정상적인 거절이다
    log = logger.error if status_code >= 500 else logger.warning
    log(f"[Rejected] {request.method} {request.url.path} -> {status_code} {summary}")


async def handle_base_api_exception(request: Request, exc: BaseAPIException) -> JSONResponse:
    _log_rejection(request, exc.status_code, f"{exc.error_code}: {exc.message}")
    return _error_response(exc.status_code, exc.detail)


async def handle_http_exception(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    _log_rejection(request, exc.status_code, str(exc.detail))
    code = HTTP_STATUS_ERROR_CODES.get(exc.status_code, "HTTP_ERROR")
    return _error_response(exc.status_code, error_envelope(code, str(exc.detail)))


async def handle_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    _log_rejection(request, 422, f"INVALID_INPUT_001: {exc.errors()}")
    content = error_envelope(
        "INVALID_INPUT_001", "입력값이 올바르지 않습니다.", {"errors": exc.errors()}
    )
    return _error_response(422, content)


async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(
        f"[Unhandled Error] {request.method} {request.url.path}: {type(exc).__name__}: {exc}"
    )
    # 내부 오류 내용은 응답에 노출하지 않는다
    internal = InternalServerError()
    return _error_response(internal.status_code, internal.detail)


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(BaseAPIException, handle_base_api_exception)
    app.add_exception_handler(StarletteHTTPException, handle_http_exception)
    app.add_exception_handler(RequestValidationError, handle_validation_error)
    app.add_exception_handler(Exception, handle_unexpected_error)
