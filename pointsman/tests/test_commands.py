"""Tests for management commands."""

from datetime import timedelta
from io import StringIO

import pytest
from django.core.management import call_command

from pointsman.models import RedemptionLog, RedemptionStatus
from pointsman.services import RedemptionService
from pointsman.tests.settings import FROZEN_NOW

pytestmark = pytest.mark.django_db


@pytest.fixture
def overdue(funded_customer, reward):
    return RedemptionService.redeem(
        funded_customer.code, reward.code, valid_days=1, now=FROZEN_NOW - timedelta(days=2),
    )


class TestExpireRedemptions:
    def test_dry_run_changes_nothing(self, overdue):
        out = StringIO()
        call_command("pointsman_expire_redemptions", "--dry-run", stdout=out)

        assert overdue.code in out.getvalue()
        assert "1 redemptions would be expired" in out.getvalue()
        assert RedemptionLog.objects.get(pk=overdue.pk).status == RedemptionStatus.COMPLETED

    def test_persists_expired_status(self, overdue):
        out = StringIO()
        call_command("pointsman_expire_redemptions", stdout=out)

        assert "Expired 1 redemptions" in out.getvalue()
        assert RedemptionLog.objects.get(pk=overdue.pk).status == RedemptionStatus.EXPIRED

    def test_nothing_to_expire(self, funded_customer, reward):
        RedemptionService.redeem(funded_customer.code, reward.code, valid_days=30)
        out = StringIO()
        call_command("pointsman_expire_redemptions", stdout=out)

        assert "Expired 0 redemptions" in out.getvalue()
