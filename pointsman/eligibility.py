"""
Promotion eligibility — which promotion (if any) applies to a purchase.

Selection is first match in catalog order, not best match. The catalog
is ordered by promotion id so repeated calls with the same input always
pick the same promotion.

Usage:
    snapshot = CustomerSnapshot.from_customer(customer, today)
    promotion, bonus = PromotionEligibilityEngine.select(snapshot, Decimal("150"), today)
"""

import logging
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Iterable

from django.db.models import F, Q

from pointsman.models import Customer, Promotion, PromotionStatus, tier_rank

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CustomerSnapshot:
    """Targeting attributes of a customer at a point in time."""

    code: str
    tier: str
    age: int
    gender: str = ""
    city: str = ""
    state: str = ""

    @classmethod
    def from_customer(cls, customer: Customer, day: date) -> "CustomerSnapshot":
        return cls(
            code=customer.code,
            tier=customer.tier,
            age=customer.age_on(day),
            gender=customer.gender,
            city=customer.city,
            state=customer.state,
        )


@dataclass(frozen=True)
class PromotionBonus:
    """Bonus effect: multiplier applied to base points, then fixed addend."""

    multiplier: Decimal | None = None
    fixed_bonus: int | None = None

    @classmethod
    def from_promotion(cls, promotion: Promotion) -> "PromotionBonus":
        return cls(
            multiplier=promotion.bonus_points_multiplier,
            fixed_bonus=promotion.bonus_points_fixed,
        )


def _same_text(expected: str, actual: str | None) -> bool:
    return (actual or "").casefold() == expected.casefold()


def is_applicable(promotion: Promotion, snapshot: CustomerSnapshot, amount: Decimal) -> bool:
    """All targeting rules of the promotion hold for this customer and amount."""
    minimum = promotion.minimum_purchase_amount
    if minimum is not None and amount < minimum:
        return False

    if promotion.minimum_tier:
        if not snapshot.tier:
            return False
        if tier_rank(snapshot.tier) < tier_rank(promotion.minimum_tier):
            return False

    if promotion.minimum_age is not None and snapshot.age < promotion.minimum_age:
        return False
    if promotion.maximum_age is not None and snapshot.age > promotion.maximum_age:
        return False

    if promotion.target_gender and not _same_text(promotion.target_gender, snapshot.gender):
        return False

    if promotion.target_city and not _same_text(promotion.target_city, snapshot.city):
        return False

    # No "new customer" check exists yet, so these never match.
    if promotion.exclusive_to_new_customers:
        return False

    return True


def find_applicable(
    promotions: Iterable[Promotion],
    snapshot: CustomerSnapshot,
    amount: Decimal,
) -> Promotion | None:
    """First applicable promotion in iteration order."""
    for promotion in promotions:
        if is_applicable(promotion, snapshot, amount):
            return promotion
    return None


class PromotionEligibilityEngine:
    """
    Catalog lookup and usage accounting for promotions.

    Uses @classmethod for extensibility (consistent with the services).
    """

    @classmethod
    def active_promotions(cls, day: date) -> list[Promotion]:
        """ACTIVE, inside their date window and not used up, ordered by id."""
        return list(
            Promotion.objects.filter(status=PromotionStatus.ACTIVE)
            .filter(Q(start_date__isnull=True) | Q(start_date__lte=day))
            .filter(Q(end_date__isnull=True) | Q(end_date__gte=day))
            .filter(Q(usage_limit=0) | Q(usage_count__lt=F("usage_limit")))
            .order_by("id")
        )

    @classmethod
    def claim(cls, promotion: Promotion) -> bool:
        """
        Count one use of the promotion.

        Single conditional UPDATE, so two concurrent claims can never push
        usage_count past usage_limit. Returns False when the limit was
        already reached. Not idempotent: every call counts.
        """
        updated = (
            Promotion.objects.filter(pk=promotion.pk)
            .filter(Q(usage_limit=0) | Q(usage_count__lt=F("usage_limit")))
            .update(usage_count=F("usage_count") + 1)
        )
        if updated:
            promotion.refresh_from_db(fields=["usage_count"])
            return True
        logger.warning("Promotion %s usage limit reached during claim", promotion.code)
        return False

    @classmethod
    def select(
        cls,
        snapshot: CustomerSnapshot,
        amount: Decimal,
        day: date,
        promotions: Iterable[Promotion] | None = None,
    ) -> tuple[Promotion | None, PromotionBonus | None]:
        """
        Pick and claim the first applicable promotion.

        A promotion that matches but cannot be claimed (limit hit by a
        concurrent purchase) is skipped and the next match is tried.
        """
        candidates = cls.active_promotions(day) if promotions is None else promotions
        for promotion in candidates:
            if not is_applicable(promotion, snapshot, amount):
                continue
            if cls.claim(promotion):
                return promotion, PromotionBonus.from_promotion(promotion)
        return None, None
