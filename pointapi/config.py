from functools import lru_cache
from typing import Optional
from urllib.parse import quote_plus

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file="pointapi/.env",
        env_file_encoding="utf-8",
        extra="allow",
    )
    # Application
    APP_NAME: str = "Point Ledger API"
    PROJECT_NAME: str = "Point Ledger API"
    API_V1_STR: str = "/api/v1"
    ENVIRONMENT: str = "development"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    # Database
    POSTGRES_HOST: str = ""
    POSTGRES_PORT: int = 5432
    POSTGRES_USERNAME: str = ""
    POSTGRES_PASSWORD: str = ""
    POSTGRES_DATABASE: str = ""

    # 직접 지정하면 POSTGRES_* 조합보다 우선한다 (sqlite 포함)
    DATABASE_URL: Optional[str] = None
    DB_POOL_SIZE: int = 10
    DB_MAX_OVERFLOW: int = 20

    @property
    def database_url(self) -> str:
        """Construct database URL from individual components"""
        if self.DATABASE_URL:
            return self.DATABASE_URL

        # URL encode the password to handle special characters
        encoded_password = quote_plus(self.POSTGRES_PASSWORD)
        return f"postgresql+psycopg2://{self.POSTGRES_USERNAME}:{encoded_password}@{self.POSTGRES_HOST}:{self.POSTGRES_PORT}/{self.POSTGRES_DATABASE}"

    # Security
    ADMIN_KEY: str = ""  # X-ADMIN-KEY 헤더로 전달되는 관리자 키

    # Point Policy (DB에 정책이 없을 때 생성되는 기본 정책)
    DEFAULT_MAX_EARN_AMOUNT: int = 100_000  # 1회 최대 적립액
    DEFAULT_MAX_POSSESSION_LIMIT: int = 2_000_000  # 개인별 최대 보유 한도
    DEFAULT_EXPIRE_DAYS: int = 365  # 기본 만료 일수

    # Point Batch / Search
    POINT_EXPIRE_CHUNK_SIZE: int = 1000  # 만료 배치 청크 크기
    POINT_EXPIRING_SOON_DAYS: int = 30  # 소멸 예정 조회 기간 (일)
    HISTORY_SEARCH_MAX_MONTHS: int = 3  # 사용자 이력 조회 최대 기간 (개월)

    # Timezone
    TIMEZONE: str = "Asia/Seoul"


@lru_cache
def get_settings() -> Settings:
    return Settings()


settings = get_settings()
