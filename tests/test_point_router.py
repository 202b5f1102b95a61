from datetime import date, datetime
from unittest.mock import Mock

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker

from pointapi.core.exceptions import (
    DuplicateRequestError,
    InsufficientBalanceError,
    NotFoundError,
)
from pointapi.database.session import get_db
from pointapi.deps import (
    get_point_admin_search_service,
    get_point_search_service,
    get_point_service,
)
from pointapi.main import create_app
from pointapi.models.points import PointType
from pointapi.schemas.pagination import DirectPaginatedResponse
from pointapi.schemas.points import (
    PointBalanceResponse,
    PointExpiringResponse,
    PointHistoryResponse,
    PointIntegrityCheckResponse,
    PointStatisticsResponse,
    PointTotalRemainResponse,
)


@pytest.fixture
def app():
    return create_app()


@pytest.fixture
def point_service_mock(app):
    service = Mock()
    app.dependency_overrides[get_point_service] = lambda: service
    return service


@pytest.fixture
def search_service_mock(app):
    service = Mock()
    app.dependency_overrides[get_point_search_service] = lambda: service
    return service


@pytest.fixture
def admin_search_service_mock(app):
    service = Mock()
    app.dependency_overrides[get_point_admin_search_service] = lambda: service
    return service


@pytest.fixture
def client(app):
    """테스트 클라이언트 픽스처"""
    return TestClient(app)


class TestPointCommandRoutes:
    """포인트 명령 라우터 테스트"""

    def test_earn(self, client, point_service_mock):
        # When
        response = client.post(
            "/api/v1/points/earn",
            json={"user_id": 1, "amount": 1000, "ref_id": "EVT-1"},
        )

        # Then
        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["data"] is None
        point_service_mock.earn.assert_called_once_with(
            user_id=1, amount=1000, is_manual=False, ref_id="EVT-1"
        )

    def test_earn_validation_error_uses_envelope(self, client, point_service_mock):
        response = client.post(
            "/api/v1/points/earn",
            json={"user_id": 1, "amount": 0, "ref_id": "EVT-1"},
        )

        assert response.status_code == 422
        body = response.json()
        assert body["success"] is False
        assert body["error"]["code"] == "INVALID_INPUT_001"
        point_service_mock.earn.assert_not_called()

    def test_cancel_earn(self, client, point_service_mock):
        response = client.post(
            "/api/v1/points/earn/cancel",
            json={"user_id": 1, "point_item_id": 10, "is_manual": True},
        )

        assert response.status_code == 200
        point_service_mock.cancel_earn.assert_called_once_with(
            user_id=1, point_item_id=10, is_manual=True
        )

    def test_use_maps_order_id_to_ref_id(self, client, point_service_mock):
        response = client.post(
            "/api/v1/points/use",
            json={"user_id": 1, "amount": 300, "order_id": "ORD-1"},
        )

        assert response.status_code == 200
        point_service_mock.use.assert_called_once_with(user_id=1, amount=300, ref_id="ORD-1")

    def test_use_insufficient_balance(self, client, point_service_mock):
        point_service_mock.use.side_effect = InsufficientBalanceError(
            "포인트 잔액이 부족합니다.", details={"balance": 0, "amount": 300}
        )

        response = client.post(
            "/api/v1/points/use",
            json={"user_id": 1, "amount": 300, "order_id": "ORD-1"},
        )

        assert response.status_code == 400
        body = response.json()
        assert body["success"] is False
        assert body["error"]["code"] == "BALANCE_001"
        assert body["error"]["details"] == {"balance": 0, "amount": 300}

    def test_duplicate_use(self, client, point_service_mock):
        point_service_mock.use.side_effect = DuplicateRequestError("이미 처리된 주문번호입니다.")

        response = client.post(
            "/api/v1/points/use",
            json={"user_id": 1, "amount": 300, "order_id": "ORD-1"},
        )

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "DUPLICATE_001"

    def test_cancel_use_not_found(self, client, point_service_mock):
        point_service_mock.cancel_use.side_effect = NotFoundError("해당 주문의 포인트 사용 이력이 없습니다.")

        response = client.post(
            "/api/v1/points/use/cancel",
            json={"user_id": 1, "order_id": "ORD-1", "cancel_amount": 100},
        )

        assert response.status_code == 404
        assert response.json()["error"]["code"] == "NOT_FOUND_001"

    def test_unexpected_error_is_hidden(self, app, point_service_mock):
        point_service_mock.earn.side_effect = RuntimeError("db password leaked")
        client = TestClient(app, raise_server_exceptions=False)

        response = client.post(
            "/api/v1/points/earn",
            json={"user_id": 1, "amount": 1000, "ref_id": "EVT-1"},
        )

        assert response.status_code == 500
        body = response.json()
        assert body["error"]["code"] == "INTERNAL_001"
        assert "leaked" not in response.text


class TestPointSearchRoutes:
    """사용자 조회 라우터 테스트"""

    def test_get_my_balance(self, client, search_service_mock):
        search_service_mock.get_my_balance.return_value = PointBalanceResponse(
            user_id=1, current_balance=1000
        )

        response = client.get("/api/v1/points/balance", headers={"X-User-Id": "1"})

        assert response.status_code == 200
        assert response.json()["data"] == {"user_id": 1, "current_balance": 1000}
        search_service_mock.get_my_balance.assert_called_once_with(1)

    def test_balance_requires_user_header(self, client, search_service_mock):
        response = client.get("/api/v1/points/balance")

        assert response.status_code == 422
        search_service_mock.get_my_balance.assert_not_called()

    def test_search_my_histories(self, client, search_service_mock):
        search_service_mock.get_my_histories.return_value = DirectPaginatedResponse(
            data=[
                PointHistoryResponse(
                    id=1,
                    user_id=1,
                    type=PointType.EARN,
                    amount=1000,
                    ref_id="EVT-1",
                    created_at=datetime(2026, 1, 1, 10, 0, 0),
                )
            ],
            total_count=1,
            has_next=False,
            limit=50,
            offset=0,
        )

        response = client.get(
            "/api/v1/points/search",
            params={"start_date": "2026-01-01", "end_date": "2026-01-31", "type": "EARN"},
            headers={"X-User-Id": "1"},
        )

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["total_count"] == 1
        assert data["data"][0]["type"] == "EARN"
        search_service_mock.get_my_histories.assert_called_once_with(
            user_id=1,
            start_date=date(2026, 1, 1),
            end_date=date(2026, 1, 31),
            ref_id=None,
            type=PointType.EARN,
            limit=50,
            offset=0,
        )

    def test_get_expiring_points(self, client, search_service_mock):
        search_service_mock.get_expiring_points.return_value = [
            PointExpiringResponse(
                point_item_id=3, amount=500, expire_at=datetime(2026, 1, 10, 0, 0, 0)
            )
        ]

        response = client.get("/api/v1/points/expiring", headers={"X-User-Id": "1"})

        assert response.status_code == 200
        assert response.json()["data"][0]["point_item_id"] == 3


class TestPointAdminRoutes:
    """관리자 조회 라우터 테스트"""

    def test_total_remain(self, client, admin_search_service_mock):
        admin_search_service_mock.get_total_remain.return_value = PointTotalRemainResponse(
            total_remain=12345
        )

        response = client.get("/api/v1/points/admin/remain/total")

        assert response.status_code == 200
        assert response.json()["data"]["total_remain"] == 12345

    def test_statistics(self, client, admin_search_service_mock):
        admin_search_service_mock.get_statistics.return_value = [
            PointStatisticsResponse(type=PointType.USE, total_amount=700)
        ]

        response = client.get(
            "/api/v1/points/admin/statistics",
            params={"start_date": "2026-01-01", "end_date": "2026-01-31"},
        )

        assert response.status_code == 200
        assert response.json()["data"] == [{"type": "USE", "total_amount": 700}]

    def test_user_balance(self, client, admin_search_service_mock):
        admin_search_service_mock.get_user_balance.return_value = PointBalanceResponse(
            user_id=7, current_balance=0
        )

        response = client.get("/api/v1/points/admin/users/7/balance")

        assert response.status_code == 200
        admin_search_service_mock.get_user_balance.assert_called_once_with(7)

    def test_user_integrity(self, client, admin_search_service_mock):
        admin_search_service_mock.verify_integrity_for_user.return_value = (
            PointIntegrityCheckResponse(
                status="MISMATCH",
                user_id=7,
                wallet_balance=1000,
                item_remain_total=900,
                verified_at=datetime(2026, 1, 15, 9, 0),
            )
        )

        response = client.get("/api/v1/points/admin/users/7/integrity")

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["status"] == "MISMATCH"
        assert data["wallet_balance"] - data["item_remain_total"] == 100


class TestPointApiFlow:
    """실제 서비스/DB 를 거치는 API 흐름"""

    @pytest.fixture
    def live_client(self, app, engine):
        session_factory = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)

        def override_get_db():
            session = session_factory()
            try:
                yield session
            finally:
                session.close()

        app.dependency_overrides[get_db] = override_get_db
        with session_factory() as session:
            app.container.services.policy_manager().load_policy(session)
        return TestClient(app)

    def test_earn_use_cancel_and_balance(self, live_client):
        assert live_client.post(
            "/api/v1/points/earn",
            json={"user_id": 999, "amount": 10000, "ref_id": "ORD-TEST-001"},
        ).status_code == 200
        assert live_client.post(
            "/api/v1/points/use",
            json={"user_id": 999, "amount": 3000, "order_id": "ORD-TEST-001"},
        ).status_code == 200
        assert live_client.post(
            "/api/v1/points/use/cancel",
            json={"user_id": 999, "order_id": "ORD-TEST-001", "cancel_amount": 1000},
        ).status_code == 200

        duplicate = live_client.post(
            "/api/v1/points/use",
            json={"user_id": 999, "amount": 3000, "order_id": "ORD-TEST-001"},
        )
        assert duplicate.status_code == 400
        assert duplicate.json()["error"]["code"] == "DUPLICATE_001"

        balance = live_client.get("/api/v1/points/balance", headers={"X-User-Id": "999"})
        assert balance.json()["data"]["current_balance"] == 8000

        integrity = live_client.get("/api/v1/points/admin/users/999/integrity")
        assert integrity.json()["data"]["status"] == "OK"
