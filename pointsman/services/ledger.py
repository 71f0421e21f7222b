"""Ledger service — the only writer of LedgerAccount counters.

Every mutation runs as one exclusive section per account:
process lock on the account key, transaction.atomic(), and a row lock
(select_for_update) on the account.
"""

import logging
import math
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal

from django.db import transaction

from pointsman import clock
from pointsman.conf import pointsman_settings
from pointsman.exceptions import InsufficientBalance, NotFound, storage_errors
from pointsman.locks import account_key, exclusive
from pointsman.models import AccountStatus, EntryType, LedgerAccount, LedgerEntry
from pointsman.signals import points_changed

logger = logging.getLogger(__name__)


_UPDATE_FIELDS = {
    EntryType.EARN: [
        "points_earned", "current_balance", "lifetime_points", "last_earned_at", "updated_at",
    ],
    EntryType.REFUND: [
        "points_earned", "current_balance", "lifetime_points", "last_earned_at", "updated_at",
    ],
    EntryType.REDEEM: [
        "points_redeemed", "current_balance", "last_redeemed_at", "updated_at",
    ],
    EntryType.ADJUST: [
        "points_adjusted", "points_adjusted_net", "current_balance", "last_adjusted_at",
        "notes", "updated_at",
    ],
    EntryType.EXPIRE: [
        "points_expired", "current_balance", "updated_at",
    ],
}


@dataclass(frozen=True)
class LedgerSummary:
    """Read-only view of a ledger account."""

    customer_code: str
    current_balance: int
    available_balance: int
    lifetime_points: int
    points_earned: int
    points_redeemed: int
    points_expired: int
    points_adjusted: int
    status: str


class LedgerService:
    """
    Service for point balance operations.

    Uses @classmethod for extensibility (consistent with the other services).
    """

    # ======================================================================
    # Reads
    # ======================================================================

    @classmethod
    def get_account(cls, customer_code: str) -> LedgerAccount | None:
        """Get ledger account for customer."""
        try:
            return LedgerAccount.objects.select_related("customer").get(
                customer__code=customer_code,
            )
        except LedgerAccount.DoesNotExist:
            return None

    @classmethod
    def get_summary(cls, customer_code: str) -> LedgerSummary:
        account = cls._require_account(customer_code)
        return LedgerSummary(
            customer_code=customer_code,
            current_balance=account.current_balance,
            available_balance=account.available_balance,
            lifetime_points=account.lifetime_points,
            points_earned=account.points_earned,
            points_redeemed=account.points_redeemed,
            points_expired=account.points_expired,
            points_adjusted=account.points_adjusted,
            status=account.status,
        )

    @classmethod
    def get_balance(cls, customer_code: str) -> int:
        return cls._require_account(customer_code).current_balance

    @classmethod
    def get_available_balance(cls, customer_code: str) -> int:
        return cls._require_account(customer_code).available_balance

    @classmethod
    def get_lifetime_points(cls, customer_code: str) -> int:
        return cls._require_account(customer_code).lifetime_points

    @classmethod
    def get_entries(cls, customer_code: str, limit: int = 50) -> list[LedgerEntry]:
        """Audit trail, most recent first."""
        return list(
            LedgerEntry.objects.filter(account__customer__code=customer_code)[:limit]
        )

    @classmethod
    def accounts_with_minimum_balance(cls, min_balance: int) -> list[LedgerAccount]:
        return list(
            LedgerAccount.objects.select_related("customer")
            .filter(current_balance__gte=min_balance)
            .order_by("-current_balance")
        )

    @classmethod
    def points_value(cls, points: int) -> Decimal:
        """Currency value of a number of points."""
        if not points or points <= 0:
            return Decimal("0")
        return Decimal(points) / Decimal(pointsman_settings.POINTS_REDEMPTION_RATE)

    @classmethod
    def points_required_for(cls, amount: Decimal) -> int:
        """Points needed to cover a currency amount (rounded up)."""
        if not amount or amount <= 0:
            return 0
        return math.ceil(Decimal(str(amount)) * pointsman_settings.POINTS_REDEMPTION_RATE)

    # ======================================================================
    # Mutations
    # ======================================================================

    @classmethod
    def add_points(
        cls,
        customer_code: str,
        amount: int,
        description: str = "",
        reference: str = "",
        created_by: str = "",
        now: datetime | None = None,
    ) -> LedgerEntry | None:
        """
        Credit points. Amounts <= 0 are ignored (returns None).

        Raises:
            NotFound: If the customer has no ledger account
        """
        return cls._mutate(
            customer_code, EntryType.EARN, amount, description, reference, created_by, now
        )

    @classmethod
    def redeem_points(
        cls,
        customer_code: str,
        amount: int,
        description: str = "",
        reference: str = "",
        created_by: str = "",
        now: datetime | None = None,
    ) -> LedgerEntry | None:
        """
        Debit points.

        Raises:
            NotFound: If the customer has no ledger account
            InsufficientBalance: If current_balance < amount
        """
        return cls._mutate(
            customer_code, EntryType.REDEEM, amount, description, reference, created_by, now
        )

    @classmethod
    def adjust_points(
        cls,
        customer_code: str,
        delta: int,
        reason: str = "",
        reference: str = "",
        created_by: str = "",
        now: datetime | None = None,
    ) -> LedgerEntry | None:
        """
        Administrative correction, positive or negative.

        Raises:
            NotFound: If the customer has no ledger account
            InsufficientBalance: If a negative delta exceeds current_balance
        """
        return cls._mutate(
            customer_code, EntryType.ADJUST, delta, reason, reference, created_by, now
        )

    @classmethod
    def expire_points(
        cls,
        customer_code: str,
        amount: int,
        description: str = "",
        reference: str = "",
        created_by: str = "",
        now: datetime | None = None,
    ) -> LedgerEntry | None:
        """Expire points. Silently ignored unless (current_balance - points_expired) >= amount."""
        return cls._mutate(
            customer_code, EntryType.EXPIRE, amount, description, reference, created_by, now
        )

    @classmethod
    def set_status(cls, customer_code: str, status: str) -> LedgerAccount:
        with (
            exclusive(account_key(customer_code)),
            storage_errors("ledger.set_status"),
            transaction.atomic(),
        ):
            account = cls.get_account_for_update(customer_code)
            account.status = AccountStatus(status)
            account.save(update_fields=["status", "updated_at"])
        logger.info("Ledger account %s status set to %s", customer_code, status)
        return account

    # ======================================================================
    # Building blocks for other services
    # ======================================================================

    @classmethod
    def get_account_for_update(cls, customer_code: str) -> LedgerAccount:
        """
        Get ledger account with row-level lock for mutation.

        MUST be called inside exclusive(account_key(...)) and transaction.atomic().
        """
        try:
            return (
                LedgerAccount.objects
                .select_for_update()
                .select_related("customer")
                .get(customer__code=customer_code)
            )
        except LedgerAccount.DoesNotExist:
            raise NotFound("LedgerAccount", customer_code)

    @classmethod
    def apply(
        cls,
        account: LedgerAccount,
        entry_type: str,
        amount: int,
        now: datetime,
        description: str = "",
        reference: str = "",
        created_by: str = "",
    ) -> LedgerEntry | None:
        """
        Apply one mutation to a locked account, save it and audit it.

        Returns None when the mutation was a no-op. Caller owns the lock
        and the transaction and sends points_changed after commit.
        """
        if entry_type in (EntryType.EARN, EntryType.REFUND):
            delta = account.add_points(amount, now)
        elif entry_type == EntryType.REDEEM:
            delta = account.redeem_points(amount, now)
        elif entry_type == EntryType.ADJUST:
            delta = account.adjust_points(amount, now)
            if delta and description:
                account.notes = f"{account.notes}; {description}" if account.notes else description
        elif entry_type == EntryType.EXPIRE:
            delta = account.expire_points(amount)
        else:
            raise ValueError(f"Unknown ledger entry type: {entry_type}")

        if not delta:
            return None

        account.save(update_fields=_UPDATE_FIELDS[entry_type])
        return LedgerEntry.objects.create(
            account=account,
            entry_type=entry_type,
            points=delta,
            balance_after=account.current_balance,
            description=description,
            reference=reference,
            created_at=now,
            created_by=created_by,
        )

    @classmethod
    def notify(cls, account: LedgerAccount, entry: LedgerEntry | None) -> None:
        if entry is not None:
            points_changed.send(sender=LedgerAccount, account=account, entry=entry)

    @classmethod
    def _mutate(
        cls,
        customer_code: str,
        entry_type: str,
        amount: int,
        description: str,
        reference: str,
        created_by: str,
        now: datetime | None,
    ) -> LedgerEntry | None:
        now = clock.resolve(now)
        try:
            with (
                exclusive(account_key(customer_code)),
                storage_errors(f"ledger.{entry_type.lower()}"),
                transaction.atomic(),
            ):
                account = cls.get_account_for_update(customer_code)
                entry = cls.apply(
                    account, entry_type, amount, now, description, reference, created_by
                )
        except InsufficientBalance as exc:
            logger.warning(
                "Ledger %s rejected for %s: %s available, %s required",
                entry_type, customer_code, exc.available, exc.required,
            )
            raise

        if entry is None:
            logger.info("Ledger %s of %s for %s ignored", entry_type, amount, customer_code)
        else:
            logger.info(
                "Ledger %s %+d for %s, balance %s",
                entry_type, entry.points, customer_code, account.current_balance,
            )
        cls.notify(account, entry)
        return entry

    @classmethod
    def _require_account(cls, customer_code: str) -> LedgerAccount:
        account = cls.get_account(customer_code)
        if account is None:
            raise NotFound("LedgerAccount", customer_code)
        return account
