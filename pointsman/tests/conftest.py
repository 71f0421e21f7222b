"""Pytest fixtures for Pointsman tests."""

from datetime import date
from decimal import Decimal

import pytest

from pointsman.models import Promotion, PromotionStatus, Tier
from pointsman.services import CustomerService, LedgerService, RewardService
from pointsman.tests.settings import FROZEN_NOW


@pytest.fixture
def now():
    """The instant returned by the configured test clock."""
    return FROZEN_NOW


@pytest.fixture
def customer(db):
    """Enrolled customer holding only the welcome bonus (100 points)."""
    return CustomerService.enroll(
        code="CUST-001",
        first_name="Ana",
        last_name="Souza",
        email="Ana@Example.com",
        date_of_birth=date(1990, 5, 20),
        gender="F",
        city="Curitiba",
        state="PR",
    )


@pytest.fixture
def funded_customer(customer):
    """Customer with a balance of exactly 1000 points."""
    LedgerService.add_points(customer.code, 900, description="Test funding")
    return customer


@pytest.fixture
def gold_customer(db):
    """GOLD tier customer, 41 years old, no targeting attributes."""
    customer = CustomerService.enroll(
        code="CUST-GOLD",
        first_name="Bruno",
        date_of_birth=date(1985, 1, 10),
    )
    return CustomerService.set_tier(customer.code, Tier.GOLD)


@pytest.fixture
def reward(db):
    """500-point reward with 10 units in stock."""
    return RewardService.create(
        code="RWD-500",
        name="Gift card",
        points_required=500,
        quantity=10,
    )


@pytest.fixture
def unlimited_reward(db):
    return RewardService.create(code="RWD-COFFEE", name="Coffee", points_required=50)


@pytest.fixture
def make_promotion(db):
    """Factory for ACTIVE promotions (catalog order = creation order)."""

    def _make(code, **fields):
        fields.setdefault("name", code)
        fields.setdefault("status", PromotionStatus.ACTIVE)
        return Promotion.objects.create(code=code, **fields)

    return _make


@pytest.fixture
def double_points(make_promotion):
    """x2.0 multiplier plus 50 fixed points, no targeting."""
    return make_promotion(
        "PROMO-DOUBLE",
        bonus_points_multiplier=Decimal("2.0"),
        bonus_points_fixed=50,
    )
