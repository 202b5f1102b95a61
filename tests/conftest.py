import os

# 앱 모듈 import 전에 테스트용 설정을 주입한다
os.environ.setdefault("DATABASE_URL", "sqlite:///./pointapi_test.db")
os.environ.setdefault("ADMIN_KEY", "test-admin-key")
os.environ.setdefault("ENVIRONMENT", "development")

from datetime import datetime
from typing import List

import pytest
from sqlalchemy.orm import Session, sessionmaker

from pointapi.core.locks import UserLockRegistry
from pointapi.database.connection import build_engine
from pointapi.models.base import Base
from pointapi.models.points import PointHistory, PointItem, PointStatus, UserPointWallet
from pointapi.models.policy import PointPolicy  # noqa: F401
from pointapi.services.expiration_service import ExpirationService
from pointapi.services.point_service import PointService
from pointapi.services.policy_manager import PointPolicyManager


@pytest.fixture
def engine(tmp_path):
    """테스트마다 독립된 sqlite 파일 DB"""
    engine = build_engine(f"sqlite:///{tmp_path / 'points.db'}")
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def policy_manager(db):
    manager = PointPolicyManager()
    manager.load_policy(db)
    return manager


@pytest.fixture
def lock_registry():
    return UserLockRegistry()


@pytest.fixture
def point_service(db, policy_manager, lock_registry):
    return PointService(db=db, policy_manager=policy_manager, lock_registry=lock_registry)


@pytest.fixture
def expiration_service(db, lock_registry):
    return ExpirationService(db=db, lock_registry=lock_registry)


def get_items(db: Session, user_id: int) -> List[PointItem]:
    return (
        db.query(PointItem)
        .filter(PointItem.user_id == user_id)
        .order_by(PointItem.id)
        .populate_existing()
        .all()
    )


def get_balance(db: Session, user_id: int) -> int:
    wallet = (
        db.query(UserPointWallet)
        .filter(UserPointWallet.user_id == user_id)
        .populate_existing()
        .first()
    )
    return wallet.balance if wallet else 0


def set_expire_at(db: Session, item_id: int, expire_at: datetime) -> None:
    """만료일을 강제로 변경 (생성 시점 검증을 우회해 과거 만료 상황을 만든다)"""
    item = db.get(PointItem, item_id)
    item.expire_at = expire_at
    db.commit()


def assert_ledger_consistent(db: Session, user_id: int) -> None:
    """지갑 잔액 == 사용 가능/소진 PointItem 잔액 합, 이력 금액 == 상세 합"""
    items = get_items(db, user_id)
    usable_total = sum(
        item.remain_amount
        for item in items
        if item.status in (PointStatus.AVAILABLE, PointStatus.EXHAUSTED)
    )
    assert get_balance(db, user_id) == usable_total

    for item in items:
        assert 0 <= item.remain_amount <= item.original_amount

    histories = (
        db.query(PointHistory)
        .filter(PointHistory.user_id == user_id)
        .populate_existing()
        .all()
    )
    for history in histories:
        assert history.amount == sum(detail.amount for detail in history.details)
