from contextlib import contextmanager
from typing import Callable, Iterator, Optional

from sqlalchemy.orm import Session

from pointapi.database.connection import SessionLocal


def get_db() -> Iterator[Session]:
    """
    요청 단위 세션 (FastAPI Depends 용)

    커밋은 서비스의 작업 단위가 직접 수행한다. 여기서는 남은 트랜잭션을 정리만 한다.
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        if db.in_transaction():
            db.rollback()
        db.close()


@contextmanager
def get_db_context(
    session_factory: Optional[Callable[[], Session]] = None,
) -> Iterator[Session]:
    """배치/기동 훅처럼 요청 밖에서 쓰는 세션. 정상 종료 시 커밋한다."""
    db = (session_factory or SessionLocal)()
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()
