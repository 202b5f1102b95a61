import sys
import os

sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from pointapi.database.connection import engine
from pointapi.database.session import get_db_context
from pointapi.models.base import Base
from pointapi.models import points, policy  # noqa: F401  (테이블 등록)
from pointapi.services.policy_manager import PointPolicyManager


def init_db():
    """데이터베이스 초기화 - 테이블 생성 후 기본 포인트 정책이 없으면 생성"""
    try:
        Base.metadata.create_all(bind=engine)

        with get_db_context() as db:
            snapshot = PointPolicyManager().load_policy(db)

        print(f"Database initialized successfully (point policy v{snapshot.policy_id})")

    except Exception as e:
        print(f"Database initialization failed: {str(e)}")
        raise


if __name__ == "__main__":
    init_db()
