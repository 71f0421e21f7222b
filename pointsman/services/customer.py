"""Customer service — enrollment and administrative changes.

Enrollment creates the customer, its ledger account and the welcome
bonus credit in one transaction.
"""

import logging
from datetime import date, datetime

from django.db import IntegrityError, transaction

from pointsman import clock
from pointsman.conf import pointsman_settings
from pointsman.eligibility import CustomerSnapshot
from pointsman.exceptions import DuplicateCode, NotFound, storage_errors
from pointsman.locks import account_key, exclusive
from pointsman.models import Customer, CustomerStatus, EntryType, LedgerAccount, Tier
from pointsman.services.ledger import LedgerService
from pointsman.signals import customer_enrolled

logger = logging.getLogger(__name__)


class CustomerService:
    """
    Service for loyalty members.

    Uses @classmethod for extensibility (consistent with the other services).
    """

    @classmethod
    def get(cls, code: str) -> Customer | None:
        """Get customer by code (any status)."""
        try:
            return Customer.objects.get(code=code)
        except Customer.DoesNotExist:
            return None

    @classmethod
    def require(cls, code: str) -> Customer:
        customer = cls.get(code)
        if customer is None:
            raise NotFound("Customer", code)
        return customer

    @classmethod
    def enroll(
        cls,
        code: str,
        first_name: str,
        last_name: str = "",
        email: str = "",
        phone: str = "",
        date_of_birth: date | None = None,
        gender: str = "",
        city: str = "",
        state: str = "",
        now: datetime | None = None,
    ) -> Customer:
        """
        Enroll a new member with a BRONZE tier and the welcome bonus.

        Raises:
            DuplicateCode: If the customer code is taken
        """
        now = clock.resolve(now)
        bonus = pointsman_settings.WELCOME_BONUS_POINTS

        with (
            exclusive(account_key(code)),
            storage_errors("customer.enroll"),
            transaction.atomic(),
        ):
            try:
                with transaction.atomic():
                    customer = Customer.objects.create(
                        code=code,
                        first_name=first_name,
                        last_name=last_name,
                        email=email.lower().strip(),
                        phone=phone,
                        date_of_birth=date_of_birth,
                        gender=gender,
                        city=city,
                        state=state,
                        tier=Tier.BRONZE,
                        status=CustomerStatus.ACTIVE,
                        enrolled_at=now,
                    )
            except IntegrityError:
                raise DuplicateCode("customer", code)

            account = LedgerAccount.objects.create(customer=customer)
            entry = LedgerService.apply(
                account,
                EntryType.EARN,
                bonus,
                now,
                description="Welcome bonus",
                reference=f"enrollment:{code}",
            )

        logger.info("Customer %s enrolled with %s welcome points", code, bonus)
        LedgerService.notify(account, entry)
        customer_enrolled.send(sender=Customer, customer=customer, account=account)
        return customer

    @classmethod
    def set_tier(cls, code: str, tier: str) -> Customer:
        with (
            exclusive(account_key(code)),
            storage_errors("customer.set_tier"),
            transaction.atomic(),
        ):
            customer = cls._get_for_update(code)
            customer.tier = Tier(tier)
            customer.save(update_fields=["tier", "updated_at"])
        logger.info("Customer %s tier set to %s", code, tier)
        return customer

    @classmethod
    def set_status(cls, code: str, status: str) -> Customer:
        """Soft status transition (customers are never deleted)."""
        with (
            exclusive(account_key(code)),
            storage_errors("customer.set_status"),
            transaction.atomic(),
        ):
            customer = cls._get_for_update(code)
            customer.status = CustomerStatus(status)
            customer.save(update_fields=["status", "updated_at"])
        logger.info("Customer %s status set to %s", code, status)
        return customer

    @classmethod
    def snapshot(cls, code: str, now: datetime | None = None) -> CustomerSnapshot:
        """Targeting attributes used by promotion eligibility."""
        return CustomerSnapshot.from_customer(cls.require(code), clock.local_day(clock.resolve(now)))

    @classmethod
    def _get_for_update(cls, code: str) -> Customer:
        try:
            return Customer.objects.select_for_update().get(code=code)
        except Customer.DoesNotExist:
            raise NotFound("Customer", code)
