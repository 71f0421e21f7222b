"""
Concurrency tests.

Threads use their own database connections, so these tests run with
transaction=True against the file-backed test database.
"""

import threading

import pytest
from django.db import connection

from pointsman.exceptions import InsufficientBalance
from pointsman.locks import account_key, exclusive, redemption_key, reward_key
from pointsman.models import RedemptionLog, Reward
from pointsman.services import LedgerService, RedemptionService


def _run_concurrently(target, count):
    """Start `count` threads at the same time; return their results or exceptions."""
    barrier = threading.Barrier(count)
    results = [None] * count

    def worker(index):
        try:
            barrier.wait()
            results[index] = target()
        except Exception as exc:  # collected for assertions
            results[index] = exc
        finally:
            connection.close()

    threads = [threading.Thread(target=worker, args=(i,)) for i in range(count)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join(timeout=30)
    return results


# ═══════════════════════════════════════════════════════════════════
# Races on one account
# ═══════════════════════════════════════════════════════════════════


@pytest.mark.django_db(transaction=True)
class TestAccountRaces:
    def test_two_redeems_for_exactly_one_reward(self, customer, reward):
        LedgerService.add_points(customer.code, 400)
        assert LedgerService.get_balance(customer.code) == 500

        results = _run_concurrently(
            lambda: RedemptionService.redeem(customer.code, reward.code), 2,
        )

        succeeded = [r for r in results if isinstance(r, RedemptionLog)]
        failed = [r for r in results if isinstance(r, InsufficientBalance)]
        assert len(succeeded) == 1
        assert len(failed) == 1
        assert LedgerService.get_balance(customer.code) == 0
        assert RedemptionLog.objects.count() == 1
        assert Reward.objects.get(pk=reward.pk).quantity_redeemed == 1

    def test_concurrent_debits_never_overdraw(self, customer):
        LedgerService.add_points(customer.code, 200)

        results = _run_concurrently(lambda: LedgerService.redeem_points(customer.code, 100), 4)

        failures = [r for r in results if isinstance(r, InsufficientBalance)]
        assert len(failures) == 1
        account = LedgerService.get_account(customer.code)
        assert account.current_balance == 0
        assert account.points_redeemed == 300
        assert account.balance_invariant_holds()

    def test_concurrent_credits_are_not_lost(self, customer):
        _run_concurrently(lambda: LedgerService.add_points(customer.code, 10), 5)

        assert LedgerService.get_balance(customer.code) == 150
        assert LedgerService.get_lifetime_points(customer.code) == 150


# ═══════════════════════════════════════════════════════════════════
# Lock registry
# ═══════════════════════════════════════════════════════════════════


class TestExclusive:
    def test_keys(self):
        assert account_key("C1") == "account:C1"
        assert reward_key("R1") == "reward:R1"
        assert redemption_key("RDM-1") == "redemption:RDM-1"

    def test_same_key_is_serialized(self):
        inside = []
        overlaps = []
        guard = threading.Lock()

        def work():
            with exclusive(account_key("C1")):
                with guard:
                    inside.append(1)
                    if len(inside) > 1:
                        overlaps.append(True)
                threading.Event().wait(0.01)
                with guard:
                    inside.pop()

        threads = [threading.Thread(target=work) for _ in range(5)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join(timeout=10)

        assert overlaps == []

    def test_overlapping_key_sets_do_not_deadlock(self):
        done = []

        def forward():
            for _ in range(50):
                with exclusive(account_key("C1"), reward_key("R1")):
                    pass
            done.append("forward")

        def backward():
            for _ in range(50):
                with exclusive(reward_key("R1"), account_key("C1")):
                    pass
            done.append("backward")

        threads = [threading.Thread(target=forward), threading.Thread(target=backward)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join(timeout=10)

        assert sorted(done) == ["backward", "forward"]

    def test_duplicate_keys_do_not_self_deadlock(self):
        with exclusive(account_key("C1"), account_key("C1")):
            pass

    def test_released_on_error(self):
        with pytest.raises(ValueError):
            with exclusive(account_key("C2")):
                raise ValueError("boom")

        acquired = threading.Event()

        def other():
            with exclusive(account_key("C2")):
                acquired.set()

        thread = threading.Thread(target=other)
        thread.start()
        thread.join(timeout=5)
        assert acquired.is_set()
