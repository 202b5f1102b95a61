from datetime import date, timedelta

import pytest

from conftest import get_items, set_expire_at
from pointapi.core.exceptions import InvalidInputError, NotFoundError
from pointapi.models.points import PointType, UserPointWallet
from pointapi.services.point_admin_search_service import PointAdminSearchService
from pointapi.services.point_search_service import PointSearchService
from pointapi.utils.timezone_utils import get_current_kst_date, get_kst_now_naive, months_between


@pytest.fixture
def search_service(db):
    return PointSearchService(db=db)


@pytest.fixture
def admin_search_service(db):
    return PointAdminSearchService(db=db)


@pytest.fixture
def seeded(point_service):
    point_service.earn(user_id=1, amount=1000, is_manual=False, ref_id="EVT-1")
    point_service.earn(user_id=1, amount=2000, is_manual=True, ref_id="ADM-1")
    point_service.use(user_id=1, amount=500, ref_id="ORD-1")
    point_service.earn(user_id=2, amount=300, is_manual=False, ref_id="EVT-1")


class TestPointSearchService:
    """사용자 조회"""

    def test_get_my_balance(self, seeded, search_service):
        balance = search_service.get_my_balance(1)
        assert balance.user_id == 1
        assert balance.current_balance == 2500

    def test_balance_without_wallet_raises(self, search_service):
        with pytest.raises(NotFoundError):
            search_service.get_my_balance(404)

    def test_histories_newest_first_with_details(self, seeded, search_service):
        today = get_current_kst_date()

        page = search_service.get_my_histories(user_id=1, start_date=today, end_date=today)

        assert page.total_count == 3
        assert [h.type for h in page.data] == [
            PointType.USE,
            PointType.ADMIN_GRANT,
            PointType.EARN,
        ]
        assert page.data[0].details[0].amount == 500
        assert page.has_next is False

    def test_histories_filter_and_paging(self, seeded, search_service):
        today = get_current_kst_date()

        page = search_service.get_my_histories(
            user_id=1, start_date=today, end_date=today, limit=1, offset=0
        )
        assert len(page.data) == 1
        assert page.has_next is True

        filtered = search_service.get_my_histories(
            user_id=1, start_date=today, end_date=today, type=PointType.EARN
        )
        assert [h.ref_id for h in filtered.data] == ["EVT-1"]

        by_ref = search_service.get_my_histories(
            user_id=1, start_date=today, end_date=today, ref_id="ORD-1"
        )
        assert by_ref.total_count == 1

    def test_invalid_ranges_are_rejected(self, search_service):
        today = get_current_kst_date()
        with pytest.raises(InvalidInputError):
            search_service.get_my_histories(
                user_id=1, start_date=today, end_date=today - timedelta(days=1)
            )
        with pytest.raises(InvalidInputError):
            search_service.get_my_histories(
                user_id=1, start_date=today - timedelta(days=130), end_date=today
            )

    def test_expiring_points_within_window(self, db, seeded, search_service):
        now = get_kst_now_naive()
        first, second = get_items(db, 1)
        set_expire_at(db, first.id, now + timedelta(days=5))
        set_expire_at(db, second.id, now + timedelta(days=40))

        expiring = search_service.get_expiring_points(1)

        assert [(e.point_item_id, e.amount) for e in expiring] == [(first.id, 1000)]


class TestPointAdminSearchService:
    """관리자 조회"""

    def test_histories_across_users(self, seeded, admin_search_service):
        today = get_current_kst_date()

        page = admin_search_service.get_histories(start_date=today, end_date=today)
        assert page.total_count == 4

        only_user_2 = admin_search_service.get_histories(
            start_date=today, end_date=today, user_id=2
        )
        assert [h.user_id for h in only_user_2.data] == [2]

    def test_period_is_required(self, admin_search_service):
        with pytest.raises(InvalidInputError):
            admin_search_service.get_histories(start_date=None, end_date=None)
        with pytest.raises(InvalidInputError):
            admin_search_service.get_statistics(start_date=get_current_kst_date(), end_date=None)

    def test_total_remain_and_statistics(self, seeded, admin_search_service):
        today = get_current_kst_date()

        assert admin_search_service.get_total_remain().total_remain == 2800

        stats = {
            s.type: s.total_amount
            for s in admin_search_service.get_statistics(start_date=today, end_date=today)
        }
        assert stats == {
            PointType.EARN: 1300,
            PointType.ADMIN_GRANT: 2000,
            PointType.USE: 500,
        }

    def test_user_balance_defaults_to_zero(self, seeded, admin_search_service):
        assert admin_search_service.get_user_balance(1).current_balance == 2500
        assert admin_search_service.get_user_balance(404).current_balance == 0

    def test_integrity_check(self, db, seeded, admin_search_service):
        assert admin_search_service.verify_integrity_for_user(1).status == "OK"

        # 지갑만 임의로 바꾸면 불일치로 잡힌다
        db.get(UserPointWallet, 1).balance += 1
        db.commit()
        result = admin_search_service.verify_integrity_for_user(1)
        assert result.status == "MISMATCH"
        assert result.wallet_balance - result.item_remain_total == 1


class TestMonthsBetween:
    @pytest.mark.parametrize(
        "start, end, expected",
        [
            ((2026, 1, 1), (2026, 4, 1), 3),
            ((2026, 1, 2), (2026, 4, 1), 2),
            ((2026, 1, 31), (2026, 2, 28), 0),
            ((2026, 1, 1), (2026, 4, 2), 3),
            ((2026, 1, 1), (2026, 5, 1), 4),
        ],
    )
    def test_whole_months(self, start, end, expected):
        assert months_between(date(*start), date(*end)) == expected
