import json
import logging
import logging.config
import sys

# logger.info(..., extra={...}) 로 넘긴 원장 식별자는 JSON 로그의 최상위 키로 남긴다
LEDGER_CONTEXT_FIELDS = ("user_id", "ref_id", "order_id", "point_item_id", "cutoff")


class JsonFormatter(logging.Formatter):
    """CloudWatch 수집용 한 줄 JSON 포매터"""

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "timestamp": self.formatTime(record, datefmt="%Y-%m-%d %H:%M:%S"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for field in LEDGER_CONTEXT_FIELDS:
            value = getattr(record, field, None)
            if value is not None:
                payload[field] = str(value)
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False)


def setup_logging(log_level: str = "INFO", json_format: bool = False, sql_echo: bool = False):
    """
    dictConfig 기반 로깅 설정

    - stdout: 전체 로그, stderr: WARNING 이상
    - 개발 환경은 사람이 읽는 포맷, 그 외 환경은 JSON 한 줄 포맷
    - sql_echo 가 켜지면 SQLAlchemy 엔진 로그를 INFO 로 남긴다
    """
    level = log_level.upper()
    console_format = "json" if json_format else "plain"
    error_format = "json" if json_format else "traceback"
    app_handlers = ["stdout", "stderr"]

    config = {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "plain": {
                "format": "%(asctime)s | %(levelname)-8s | %(name)-32s | %(message)s",
            },
            "traceback": {
                "format": "%(asctime)s | %(levelname)-8s | %(name)s\n%(pathname)s:%(lineno)d\n%(message)s",
            },
            "json": {"()": JsonFormatter},
        },
        "handlers": {
            "stdout": {
                "class": "logging.StreamHandler",
                "formatter": console_format,
                "stream": sys.stdout,
            },
            "stderr": {
                "class": "logging.StreamHandler",
                "formatter": error_format,
                "stream": sys.stderr,
                "level": "WARNING",
            },
        },
        "root": {"handlers": app_handlers, "level": level},
        "loggers": {
            "pointapi": {"handlers": app_handlers, "level": level, "propagate": False},
            "uvicorn.error": {"handlers": app_handlers, "level": level, "propagate": False},
            "uvicorn.access": {"handlers": ["stdout"], "level": level, "propagate": False},
            "sqlalchemy.engine": {
                "handlers": ["stdout"],
                "level": "INFO" if sql_echo else "WARNING",
                "propagate": False,
            },
        },
    }
    logging.config.dictConfig(config)
