from datetime import datetime, timedelta

import pytest

from pointapi.core.exceptions import (
    InsufficientBalanceError,
    InvalidInputError,
    PossessionLimitExceededError,
)
from pointapi.models.points import (
    PointHistory,
    PointHistoryDetail,
    PointItem,
    PointStatus,
    PointType,
    UserPointWallet,
)
from pointapi.models.policy import PointPolicy

NOW = datetime(2026, 1, 1, 12, 0, 0)


def make_item(amount=1000, days=10, is_manual=False):
    return PointItem.issue(
        user_id=1,
        amount=amount,
        expire_at=NOW + timedelta(days=days),
        is_manual=is_manual,
        now=NOW,
    )


class TestUserPointWallet:
    """지갑 잔액 검증/증감"""

    def test_earn_increases_balance(self):
        wallet = UserPointWallet(user_id=1, balance=0)
        wallet.earn(500, max_limit=1000)
        assert wallet.balance == 500

    def test_earn_up_to_limit_is_allowed(self):
        wallet = UserPointWallet(user_id=1, balance=500)
        wallet.earn(500, max_limit=1000)
        assert wallet.balance == 1000

    def test_earn_over_limit_raises(self):
        wallet = UserPointWallet(user_id=1, balance=900)
        with pytest.raises(PossessionLimitExceededError) as exc_info:
            wallet.earn(101, max_limit=1000)
        assert exc_info.value.error_code == "BALANCE_002"
        assert wallet.balance == 900

    @pytest.mark.parametrize("amount", [0, -1])
    def test_non_positive_amounts_are_rejected(self, amount):
        wallet = UserPointWallet(user_id=1, balance=100)
        with pytest.raises(InvalidInputError):
            wallet.earn(amount, max_limit=1000)
        with pytest.raises(InvalidInputError):
            wallet.use(amount)

    def test_use_more_than_balance_raises(self):
        wallet = UserPointWallet(user_id=1, balance=100)
        with pytest.raises(InsufficientBalanceError) as exc_info:
            wallet.use(101)
        assert exc_info.value.status_code == 400
        assert wallet.balance == 100


class TestPointItem:
    """PointItem 상태 전이"""

    def test_issue_sets_full_remain(self):
        item = make_item(amount=1000, is_manual=True)
        assert item.remain_amount == item.original_amount == 1000
        assert item.status == PointStatus.AVAILABLE
        assert item.is_manual is True

    def test_issue_rejects_past_expiry(self):
        with pytest.raises(InvalidInputError):
            PointItem.issue(user_id=1, amount=100, expire_at=NOW, now=NOW)

    def test_issue_rejects_zero_amount(self):
        with pytest.raises(InvalidInputError):
            make_item(amount=0)

    def test_use_until_exhausted(self):
        item = make_item(amount=1000)
        item.use(400, now=NOW)
        assert item.remain_amount == 600
        assert item.status == PointStatus.AVAILABLE

        item.use(600, now=NOW)
        assert item.remain_amount == 0
        assert item.status == PointStatus.EXHAUSTED

    def test_use_more_than_remain_raises(self):
        item = make_item(amount=100)
        with pytest.raises(InvalidInputError):
            item.use(101, now=NOW)

    def test_expiry_boundary_counts_as_expired(self):
        item = make_item(days=1)
        assert item.is_expired(NOW + timedelta(days=1)) is True
        assert item.is_expired(NOW + timedelta(days=1) - timedelta(seconds=1)) is False
        with pytest.raises(InvalidInputError):
            item.use(10, now=NOW + timedelta(days=1))

    def test_cancel_restores_exhausted_item(self):
        item = make_item(amount=1000)
        item.use(1000, now=NOW)
        item.cancel(300, now=NOW)
        assert item.remain_amount == 300
        assert item.status == PointStatus.AVAILABLE

    def test_cancel_cannot_exceed_original(self):
        item = make_item(amount=1000)
        item.use(200, now=NOW)
        with pytest.raises(InvalidInputError):
            item.cancel(201, now=NOW)

    def test_cancel_on_expired_item_raises(self):
        item = make_item(amount=1000, days=1)
        item.use(1000, now=NOW)
        with pytest.raises(InvalidInputError):
            item.cancel(1000, now=NOW + timedelta(days=2))

    def test_cancel_earn_only_when_untouched(self):
        item = make_item(amount=1000)
        item.use(1, now=NOW)
        with pytest.raises(InvalidInputError):
            item.cancel_earn()

        fresh = make_item(amount=1000)
        fresh.cancel_earn()
        assert fresh.status == PointStatus.CANCELED
        assert fresh.remain_amount == 0

    def test_canceled_item_is_terminal(self):
        item = make_item(amount=1000)
        item.cancel_earn()
        with pytest.raises(InvalidInputError):
            item.use(1, now=NOW)
        with pytest.raises(InvalidInputError):
            item.cancel(1, now=NOW)
        assert item.expire() == 0
        assert item.status == PointStatus.CANCELED

    def test_expire_returns_remaining_amount(self):
        item = make_item(amount=1000)
        item.use(300, now=NOW)
        assert item.expire() == 700
        assert item.status == PointStatus.EXPIRED
        assert item.remain_amount == 0
        # 두 번째 호출은 아무 것도 하지 않는다
        assert item.expire() == 0

    def test_swept_item_is_lapsed_before_expire_at(self):
        item = make_item(amount=1000, days=30)
        assert item.is_lapsed(NOW) is False

        item.expire()

        assert item.is_expired(NOW) is False
        assert item.is_lapsed(NOW) is True


class TestPointHistory:
    def test_record_sums_detail_amounts(self):
        history = PointHistory.record(
            user_id=1,
            type=PointType.USE,
            ref_id="ORD-1",
            details=[
                PointHistoryDetail(point_item_id=1, amount=700),
                PointHistoryDetail(point_item_id=2, amount=300),
            ],
        )
        assert history.amount == 1000
        assert [detail.amount for detail in history.details] == [700, 300]


class TestPointPolicy:
    def test_create_valid_policy(self):
        policy = PointPolicy.create(
            max_earn_amount=100_000, max_possession_limit=2_000_000, default_expire_days=365
        )
        assert policy.min_earn_amount == 1

    @pytest.mark.parametrize(
        "max_earn, max_possession, expire_days",
        [
            (0, 1000, 365),  # 최대 적립액 하한
            (100_001, 2_000_000, 365),  # 최대 적립액 상한
            (1000, 999, 365),  # 보유 한도 < 최대 적립액
            (1000, 2000, 0),  # 만료일 하한
            (1000, 2000, 1825),  # 만료일 상한 (미포함)
        ],
    )
    def test_invalid_policy_is_rejected(self, max_earn, max_possession, expire_days):
        with pytest.raises(InvalidInputError):
            PointPolicy.validate(max_earn, max_possession, expire_days)

    def test_boundary_values_are_accepted(self):
        PointPolicy.validate(1, 1, 1)
        PointPolicy.validate(100_000, 100_000, 1824)
