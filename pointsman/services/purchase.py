"""Purchase service — points earned on purchases."""

import logging
import secrets
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal

from django.db import transaction

from pointsman import clock
from pointsman.calculator import PointsCalculation, calculate_points
from pointsman.conf import pointsman_settings
from pointsman.eligibility import CustomerSnapshot, PromotionEligibilityEngine
from pointsman.exceptions import NotFound, storage_errors
from pointsman.locks import account_key, exclusive
from pointsman.models import Customer, EntryType, PurchaseTransaction
from pointsman.services.ledger import LedgerService
from pointsman.signals import purchase_recorded

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PurchaseResult:
    points_earned: int
    promotion_code: str | None
    transaction: PurchaseTransaction


def _purchase_code() -> str:
    return f"TXN-{secrets.token_hex(8).upper()}"


class PurchaseService:
    """
    Service for purchase earning.

    Uses @classmethod for extensibility (consistent with the other services).
    """

    @classmethod
    def record_purchase(
        cls,
        customer_code: str,
        amount: Decimal,
        discount: Decimal = Decimal("0"),
        store_code: str = "",
        reference: str = "",
        created_by: str = "",
        now: datetime | None = None,
    ) -> PurchaseResult:
        """
        Record a purchase and credit the points it earns.

        The first applicable active promotion is claimed (its usage
        counted) and its bonus applied. Non-positive net amounts earn
        nothing and claim no promotion.

        Args:
            customer_code: Customer code
            amount: Gross purchase amount
            discount: Discount already applied to the amount
            store_code: Store where the purchase happened
            reference: External reference (receipt number)
            created_by: Who recorded the purchase

        Returns:
            PurchaseResult(points_earned, promotion_code, transaction)

        Raises:
            NotFound: If the customer or its ledger account does not exist
        """
        now = clock.resolve(now)
        today = clock.local_day(now)
        amount = Decimal(str(amount))
        discount = Decimal(str(discount or 0))
        net_amount = amount - discount

        with (
            exclusive(account_key(customer_code)),
            storage_errors("purchase.record"),
            transaction.atomic(),
        ):
            customer = cls._get_customer(customer_code)
            account = LedgerService.get_account_for_update(customer_code)
            snapshot = CustomerSnapshot.from_customer(customer, today)

            promotion = None
            if net_amount > 0:
                promotion, _ = PromotionEligibilityEngine.select(snapshot, net_amount, today)
            calculation = calculate_points(
                net_amount,
                snapshot,
                [promotion] if promotion else [],
                pointsman_settings.POINTS_EARN_RATE,
            )
            points = calculation.points

            purchase = PurchaseTransaction.objects.create(
                code=_purchase_code(),
                customer=customer,
                amount=amount,
                discount_applied=discount,
                net_amount=net_amount,
                base_points=calculation.base_points,
                points_earned=points,
                promotion=promotion,
                store_code=store_code,
                reference=reference,
                transacted_at=now,
            )
            entry = LedgerService.apply(
                account,
                EntryType.EARN,
                points,
                now,
                description=f"Purchase {purchase.code}",
                reference=f"purchase:{purchase.code}",
                created_by=created_by,
            )

            customer.last_activity_date = today
            customer.save(update_fields=["last_activity_date", "updated_at"])

        logger.info(
            "Purchase %s for %s: net %s earned %s points (promotion %s)",
            purchase.code, customer_code, net_amount, points,
            promotion.code if promotion else "-",
        )
        LedgerService.notify(account, entry)
        purchase_recorded.send(
            sender=PurchaseTransaction, transaction=purchase, promotion=promotion,
        )
        return PurchaseResult(
            points_earned=points,
            promotion_code=promotion.code if promotion else None,
            transaction=purchase,
        )

    @classmethod
    def preview_points(
        cls,
        customer_code: str,
        amount: Decimal,
        discount: Decimal = Decimal("0"),
        now: datetime | None = None,
    ) -> PointsCalculation:
        """Points a purchase would earn right now. Claims nothing, writes nothing."""
        today = clock.local_day(clock.resolve(now))
        net_amount = Decimal(str(amount)) - Decimal(str(discount or 0))
        snapshot = CustomerSnapshot.from_customer(cls._get_customer(customer_code), today)
        return calculate_points(
            net_amount,
            snapshot,
            PromotionEligibilityEngine.active_promotions(today),
            pointsman_settings.POINTS_EARN_RATE,
        )

    @classmethod
    def get_for_customer(cls, customer_code: str, limit: int = 50) -> list[PurchaseTransaction]:
        return list(
            PurchaseTransaction.objects.filter(customer__code=customer_code)
            .select_related("promotion")[:limit]
        )

    @classmethod
    def _get_customer(cls, customer_code: str) -> Customer:
        try:
            return Customer.objects.get(code=customer_code)
        except Customer.DoesNotExist:
            raise NotFound("Customer", customer_code)
