"""Tests for RedemptionService and the redemption lifecycle."""

from datetime import date, timedelta
from unittest.mock import patch

import pytest
from django.db import DatabaseError

from pointsman.exceptions import (
    InsufficientBalance,
    InvalidChannel,
    InvalidStateTransition,
    NotFound,
    PointsmanError,
    RewardUnavailable,
    StorageError,
)
from pointsman.lifecycle import (
    can_cancel,
    can_transition,
    effective_status,
    is_expired,
    is_valid_for_use,
)
from pointsman.models import (
    Customer,
    EntryType,
    LedgerEntry,
    RedemptionChannel,
    RedemptionLog,
    RedemptionStatus,
    Reward,
    RewardStatus,
)
from pointsman.services import LedgerService, RedemptionService
from pointsman.signals import redemption_cancelled, redemption_completed, redemption_used
from pointsman.tests.settings import FROZEN_NOW


# ═══════════════════════════════════════════════════════════════════
# Lifecycle predicates
# ═══════════════════════════════════════════════════════════════════


class TestLifecycle:
    def test_expiry_is_strictly_after(self, now):
        assert not is_expired(None, now)
        assert not is_expired(now, now)
        assert is_expired(now, now + timedelta(seconds=1))

    def test_valid_for_use(self, now):
        later = now + timedelta(days=1)

        assert is_valid_for_use(RedemptionStatus.COMPLETED, later, None, now)
        assert not is_valid_for_use(RedemptionStatus.COMPLETED, later, now, now)
        assert not is_valid_for_use(RedemptionStatus.COMPLETED, now, None, later)
        assert not is_valid_for_use(RedemptionStatus.PENDING, None, None, now)

    def test_effective_status(self, now):
        past = now - timedelta(days=1)

        assert effective_status(RedemptionStatus.COMPLETED, past, now) == RedemptionStatus.EXPIRED
        assert effective_status(RedemptionStatus.COMPLETED, None, now) == RedemptionStatus.COMPLETED
        assert effective_status(RedemptionStatus.USED, past, now) == RedemptionStatus.USED

    def test_transitions(self):
        assert can_transition(RedemptionStatus.PENDING, RedemptionStatus.COMPLETED)
        assert can_transition(RedemptionStatus.COMPLETED, RedemptionStatus.REFUNDED)
        assert not can_transition(RedemptionStatus.USED, RedemptionStatus.CANCELLED)
        assert not can_transition(RedemptionStatus.CANCELLED, RedemptionStatus.COMPLETED)

    @pytest.mark.parametrize(
        "status,expected",
        [
            (RedemptionStatus.PENDING, True),
            (RedemptionStatus.COMPLETED, True),
            (RedemptionStatus.EXPIRED, True),
            (RedemptionStatus.USED, False),
            (RedemptionStatus.CANCELLED, False),
            (RedemptionStatus.REFUNDED, False),
        ],
    )
    def test_can_cancel(self, status, expected):
        assert can_cancel(status) is expected


# ═══════════════════════════════════════════════════════════════════
# redeem / cancel
# ═══════════════════════════════════════════════════════════════════


@pytest.mark.django_db
class TestRedeem:
    def test_redeem_then_cancel_restores_balance(self, funded_customer, reward, now):
        redemption = RedemptionService.redeem(
            funded_customer.code, reward.code, channel=RedemptionChannel.ONLINE,
        )

        assert LedgerService.get_balance(funded_customer.code) == 500
        assert redemption.status == RedemptionStatus.COMPLETED
        assert redemption.points_redeemed == 500
        assert redemption.channel == RedemptionChannel.ONLINE
        assert redemption.redeemed_at == now
        assert redemption.code.startswith("RDM-")
        assert redemption.voucher_code.startswith("VCHR-")
        assert Reward.objects.get(pk=reward.pk).quantity_redeemed == 1

        cancelled = RedemptionService.cancel(redemption.code, "customer request")

        assert LedgerService.get_balance(funded_customer.code) == 1000
        assert cancelled.status == RedemptionStatus.CANCELLED
        assert cancelled.cancelled_at == now
        stored = RedemptionLog.objects.get(code=redemption.code)
        assert stored.status == RedemptionStatus.CANCELLED
        assert stored.cancellation_reason == "customer request"
        assert Reward.objects.get(pk=reward.pk).quantity_redeemed == 0

    def test_refund_ignores_later_price_change(self, funded_customer, reward):
        redemption = RedemptionService.redeem(funded_customer.code, reward.code)
        Reward.objects.filter(pk=reward.pk).update(points_required=800)

        RedemptionService.cancel(redemption.code, "price changed")

        assert LedgerService.get_balance(funded_customer.code) == 1000
        refund = LedgerService.get_entries(funded_customer.code)[0]
        assert refund.entry_type == EntryType.REFUND
        assert refund.points == 500

    def test_codes_are_unique(self, funded_customer, unlimited_reward):
        first = RedemptionService.redeem(funded_customer.code, unlimited_reward.code)
        second = RedemptionService.redeem(funded_customer.code, unlimited_reward.code)

        assert first.code != second.code
        assert first.voucher_code != second.voucher_code

    def test_default_channel(self, funded_customer, reward):
        redemption = RedemptionService.redeem(funded_customer.code, reward.code)
        assert redemption.channel == RedemptionChannel.ONLINE

    def test_unknown_channel(self, funded_customer, reward):
        with pytest.raises(InvalidChannel) as exc_info:
            RedemptionService.redeem(funded_customer.code, reward.code, channel="FAX")

        assert exc_info.value.code == "INVALID_CHANNEL"
        assert exc_info.value.data == {"channel": "FAX"}
        assert LedgerService.get_balance(funded_customer.code) == 1000
        assert not RedemptionLog.objects.exists()

    def test_account_row_locked_before_reward_row(self, funded_customer, reward):
        order = []
        lock_account = LedgerService.get_account_for_update
        lock_reward = RedemptionService._get_reward_for_update

        def account_first(code):
            order.append("account")
            return lock_account(code)

        def reward_second(code):
            order.append("reward")
            return lock_reward(code)

        with (
            patch.object(LedgerService, "get_account_for_update", side_effect=account_first),
            patch.object(RedemptionService, "_get_reward_for_update", side_effect=reward_second),
        ):
            RedemptionService.redeem(funded_customer.code, reward.code)

        assert order == ["account", "reward"]

    def test_insufficient_balance_leaves_nothing(self, customer, reward):
        with pytest.raises(InsufficientBalance) as exc_info:
            RedemptionService.redeem(customer.code, reward.code)

        assert exc_info.value.available == 100
        assert exc_info.value.required == 500
        assert not RedemptionLog.objects.exists()
        assert Reward.objects.get(pk=reward.pk).quantity_redeemed == 0
        assert LedgerService.get_balance(customer.code) == 100

    @pytest.mark.parametrize(
        "changes",
        [
            {"status": RewardStatus.PAUSED},
            {"quantity": 1, "quantity_redeemed": 1},
            {"expiry_date": date(2026, 3, 14)},
            {"start_date": date(2026, 3, 16)},
        ],
    )
    def test_unavailable_reward(self, funded_customer, reward, changes):
        Reward.objects.filter(pk=reward.pk).update(**changes)

        with pytest.raises(RewardUnavailable) as exc_info:
            RedemptionService.redeem(funded_customer.code, reward.code)

        assert exc_info.value.reward_code == reward.code
        assert LedgerService.get_balance(funded_customer.code) == 1000

    def test_reward_valid_through_expiry_day(self, funded_customer, reward):
        Reward.objects.filter(pk=reward.pk).update(expiry_date=date(2026, 3, 15))
        assert RedemptionService.redeem(funded_customer.code, reward.code)

    @pytest.mark.parametrize(
        "customer_code,reward_code,entity",
        [
            ("NOPE", "RWD-500", "Customer"),
            ("CUST-001", "NOPE", "Reward"),
        ],
    )
    def test_missing_entities(self, customer, reward, customer_code, reward_code, entity):
        with pytest.raises(NotFound) as exc_info:
            RedemptionService.redeem(customer_code, reward_code)

        assert exc_info.value.entity == entity

    def test_missing_ledger_account(self, reward):
        Customer.objects.create(code="NO-ACCOUNT", first_name="Orphan")

        with pytest.raises(NotFound) as exc_info:
            RedemptionService.redeem("NO-ACCOUNT", reward.code)

        assert exc_info.value.entity == "LedgerAccount"

    def test_storage_failure_rolls_back_debit(self, funded_customer, reward):
        with patch.object(RedemptionLog.objects, "create", side_effect=DatabaseError("boom")):
            with pytest.raises(StorageError) as exc_info:
                RedemptionService.redeem(funded_customer.code, reward.code)

        error = exc_info.value
        assert not isinstance(error, PointsmanError)
        assert error.code == "STORAGE_FAILURE"
        assert isinstance(error.__cause__, DatabaseError)

        assert LedgerService.get_balance(funded_customer.code) == 1000
        assert not LedgerEntry.objects.filter(entry_type=EntryType.REDEEM).exists()
        assert Reward.objects.get(pk=reward.pk).quantity_redeemed == 0

    def test_signals(self, funded_customer, reward):
        events = []

        def on_completed(sender, redemption, **kwargs):
            events.append(("completed", redemption.status))

        def on_cancelled(sender, redemption, **kwargs):
            events.append(("cancelled", redemption.status))

        redemption_completed.connect(on_completed)
        redemption_cancelled.connect(on_cancelled)
        try:
            redemption = RedemptionService.redeem(funded_customer.code, reward.code)
            RedemptionService.cancel(redemption.code, "test")
        finally:
            redemption_completed.disconnect(on_completed)
            redemption_cancelled.disconnect(on_cancelled)

        assert events == [
            ("completed", RedemptionStatus.COMPLETED),
            ("cancelled", RedemptionStatus.CANCELLED),
        ]


# ═══════════════════════════════════════════════════════════════════
# State machine
# ═══════════════════════════════════════════════════════════════════


@pytest.mark.django_db
class TestStateMachine:
    def test_mark_used(self, funded_customer, reward, now):
        redemption = RedemptionService.redeem(funded_customer.code, reward.code)
        events = []

        def handler(sender, redemption, **kwargs):
            events.append(redemption.code)

        redemption_used.connect(handler)
        try:
            used = RedemptionService.mark_used(redemption.code, store_code="STORE-9")
        finally:
            redemption_used.disconnect(handler)

        assert used.status == RedemptionStatus.USED
        assert used.used_at == now
        assert RedemptionLog.objects.get(code=redemption.code).store_code == "STORE-9"
        assert events == [redemption.code]

    def test_mark_used_twice_fails(self, funded_customer, reward):
        redemption = RedemptionService.redeem(funded_customer.code, reward.code)
        RedemptionService.mark_used(redemption.code)

        with pytest.raises(InvalidStateTransition) as exc_info:
            RedemptionService.mark_used(redemption.code)

        assert exc_info.value.from_status == RedemptionStatus.USED
        assert exc_info.value.to_status == RedemptionStatus.USED

    def test_mark_used_after_cancel_fails(self, funded_customer, reward):
        redemption = RedemptionService.redeem(funded_customer.code, reward.code)
        RedemptionService.cancel(redemption.code, "changed mind")

        with pytest.raises(InvalidStateTransition) as exc_info:
            RedemptionService.mark_used(redemption.code)

        assert exc_info.value.from_status == RedemptionStatus.CANCELLED

    def test_cancel_after_use_fails(self, funded_customer, reward):
        redemption = RedemptionService.redeem(funded_customer.code, reward.code)
        RedemptionService.mark_used(redemption.code)

        with pytest.raises(InvalidStateTransition):
            RedemptionService.cancel(redemption.code, "too late")

        assert LedgerService.get_balance(funded_customer.code) == 500

    def test_cancel_twice_does_not_refund_twice(self, funded_customer, reward):
        redemption = RedemptionService.redeem(funded_customer.code, reward.code)
        RedemptionService.cancel(redemption.code, "first")

        with pytest.raises(InvalidStateTransition):
            RedemptionService.cancel(redemption.code, "second")

        assert LedgerService.get_balance(funded_customer.code) == 1000

    def test_cancel_locks_account_before_touching_reward(self, funded_customer, reward):
        redemption = RedemptionService.redeem(funded_customer.code, reward.code)
        stock_when_account_locked = []
        lock_account = LedgerService.get_account_for_update

        def record_stock(code):
            stock_when_account_locked.append(Reward.objects.get(pk=reward.pk).quantity_redeemed)
            return lock_account(code)

        with patch.object(LedgerService, "get_account_for_update", side_effect=record_stock):
            RedemptionService.cancel(redemption.code, "changed mind")

        assert stock_when_account_locked == [1]
        assert Reward.objects.get(pk=reward.pk).quantity_redeemed == 0

    def test_cancel_pending_refunds_nothing(self, funded_customer, reward, now):
        pending = RedemptionLog.objects.create(
            code="RDM-PENDING",
            customer=funded_customer,
            reward=reward,
            points_redeemed=reward.points_required,
            redeemed_at=now,
        )

        cancelled = RedemptionService.cancel(pending.code, "never confirmed")

        assert cancelled.status == RedemptionStatus.CANCELLED
        assert LedgerService.get_balance(funded_customer.code) == 1000
        assert not LedgerEntry.objects.filter(entry_type=EntryType.REFUND).exists()
        assert Reward.objects.get(pk=reward.pk).quantity_redeemed == 0

    def test_unknown_redemption(self, db):
        with pytest.raises(NotFound):
            RedemptionService.mark_used("RDM-NOPE")
        with pytest.raises(NotFound):
            RedemptionService.cancel("RDM-NOPE", "x")


# ═══════════════════════════════════════════════════════════════════
# Expiry
# ═══════════════════════════════════════════════════════════════════


@pytest.mark.django_db
class TestExpiry:
    def test_no_expiry_by_default(self, funded_customer, reward):
        redemption = RedemptionService.redeem(funded_customer.code, reward.code)

        assert redemption.expires_at is None
        assert redemption.is_valid_for_use(FROZEN_NOW + timedelta(days=3650))

    def test_validity_from_settings(self, settings, funded_customer, reward, now):
        settings.POINTSMAN = {**settings.POINTSMAN, "REDEMPTION_VALIDITY_DAYS": 7}

        redemption = RedemptionService.redeem(funded_customer.code, reward.code)

        assert redemption.expires_at == now + timedelta(days=7)

    def test_expired_redemption_reads_expired_while_stored_completed(
        self, funded_customer, reward, now,
    ):
        redemption = RedemptionService.redeem(funded_customer.code, reward.code, valid_days=30)
        later = now + timedelta(days=31)

        stored = RedemptionLog.objects.get(code=redemption.code)
        assert stored.status == RedemptionStatus.COMPLETED
        assert stored.is_valid_for_use(now)
        assert not stored.is_valid_for_use(later)
        assert stored.effective_status(later) == RedemptionStatus.EXPIRED
        assert not RedemptionService.is_valid_for_use(redemption.code, now=later)

        with pytest.raises(InvalidStateTransition) as exc_info:
            RedemptionService.mark_used(redemption.code, now=later)

        assert exc_info.value.from_status == RedemptionStatus.EXPIRED

    def test_expire_overdue(self, funded_customer, reward, unlimited_reward, now):
        overdue = RedemptionService.redeem(funded_customer.code, reward.code, valid_days=1)
        current = RedemptionService.redeem(funded_customer.code, unlimited_reward.code, valid_days=30)
        later = now + timedelta(days=2)

        assert RedemptionService.expire_overdue(now=later, dry_run=True) == [overdue.code]
        assert RedemptionLog.objects.get(code=overdue.code).status == RedemptionStatus.COMPLETED

        assert RedemptionService.expire_overdue(now=later) == [overdue.code]
        assert RedemptionLog.objects.get(code=overdue.code).status == RedemptionStatus.EXPIRED
        assert RedemptionLog.objects.get(code=current.code).status == RedemptionStatus.COMPLETED
        assert RedemptionService.expire_overdue(now=later) == []

    def test_expired_redemption_can_be_cancelled(self, funded_customer, reward, now):
        redemption = RedemptionService.redeem(funded_customer.code, reward.code, valid_days=1)
        RedemptionService.expire_overdue(now=now + timedelta(days=2))

        RedemptionService.cancel(redemption.code, "expired voucher")

        assert LedgerService.get_balance(funded_customer.code) == 1000


# ═══════════════════════════════════════════════════════════════════
# Reads
# ═══════════════════════════════════════════════════════════════════


@pytest.mark.django_db
class TestReads:
    def test_history_and_totals(self, funded_customer, reward, unlimited_reward):
        kept = RedemptionService.redeem(funded_customer.code, unlimited_reward.code)
        cancelled = RedemptionService.redeem(funded_customer.code, reward.code)
        RedemptionService.cancel(cancelled.code, "test")

        history = RedemptionService.get_for_customer(funded_customer.code)
        assert {r.code for r in history} == {kept.code, cancelled.code}
        assert RedemptionService.get_for_customer(
            funded_customer.code, status=RedemptionStatus.CANCELLED,
        )[0].code == cancelled.code
        assert RedemptionService.total_points_redeemed(funded_customer.code) == 50

    def test_get(self, funded_customer, reward):
        redemption = RedemptionService.redeem(funded_customer.code, reward.code)

        assert RedemptionService.get(redemption.code) == redemption
        assert RedemptionService.get("RDM-NOPE") is None
        assert RedemptionService.total_points_redeemed("NOPE") == 0
