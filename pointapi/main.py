import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from dotenv import load_dotenv
from fastapi import FastAPI
from mangum import Mangum
from starlette.concurrency import run_in_threadpool
from starlette.middleware.cors import CORSMiddleware

from pointapi import containers
from pointapi.config import settings
from pointapi.core.exception_handlers import register_exception_handlers
from pointapi.core.logging_middleware import LoggingMiddleware
from pointapi.database.session import get_db_context
from pointapi.logging_config import setup_logging
from pointapi.routers import (
    batch_router,
    health_router,
    point_admin_router,
    point_router,
    point_search_router,
    policy_router,
)
from pointapi.services.policy_manager import PointPolicyManager, PolicySnapshot

load_dotenv("pointapi/.env")

logger = logging.getLogger(__name__)


def load_point_policy(policy_manager: PointPolicyManager) -> PolicySnapshot:
    """기동 시 현재 정책을 캐시에 적재 (없으면 기본 정책 생성)"""
    with get_db_context() as db:
        return policy_manager.load_policy(db)


def create_app() -> FastAPI:
    setup_logging(
        settings.LOG_LEVEL,
        json_format=settings.ENVIRONMENT != "development",
        sql_echo=settings.DEBUG,
    )

    container = containers.Container()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        policy_manager = container.services.policy_manager()
        snapshot = await run_in_threadpool(load_point_policy, policy_manager)
        logger.info(f"{settings.APP_NAME} started with point policy v{snapshot.policy_id}")
        yield

    app = FastAPI(title=settings.PROJECT_NAME, debug=settings.DEBUG, lifespan=lifespan)
    app.container = container  # type: ignore

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(LoggingMiddleware)

    register_exception_handlers(app)

    @app.get("/")
    def hello() -> dict:
        return {"message": settings.APP_NAME}

    app.include_router(health_router.router)
    app.include_router(point_router.router, prefix=settings.API_V1_STR)
    app.include_router(point_search_router.router, prefix=settings.API_V1_STR)
    app.include_router(point_admin_router.router, prefix=settings.API_V1_STR)
    app.include_router(policy_router.router, prefix=settings.API_V1_STR)
    app.include_router(batch_router.router, prefix=settings.API_V1_STR)

    return app


app = create_app()

handler = Mangum(app)
