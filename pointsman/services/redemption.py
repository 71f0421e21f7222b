"""
Redemption service — exchanging points for rewards.

redeem() runs the ledger debit, the redemption record and the reward
stock increment as one unit under the account and reward locks. Either
all three are stored or none is.

Rows are locked in one order everywhere: redemption, then ledger
account, then reward.
"""

import logging
import secrets
from datetime import datetime, timedelta

from django.db import transaction
from django.db.models import F, Sum

from pointsman import clock
from pointsman.conf import pointsman_settings
from pointsman.exceptions import (
    InsufficientBalance,
    InvalidChannel,
    InvalidStateTransition,
    NotFound,
    RewardUnavailable,
    storage_errors,
)
from pointsman.lifecycle import RedemptionChannel, RedemptionStatus, can_cancel
from pointsman.locks import account_key, exclusive, redemption_key, reward_key
from pointsman.models import Customer, EntryType, RedemptionLog, Reward
from pointsman.services.ledger import LedgerService
from pointsman.signals import redemption_cancelled, redemption_completed, redemption_used

logger = logging.getLogger(__name__)


def _redemption_code() -> str:
    return f"RDM-{secrets.token_hex(8).upper()}"


def _voucher_code() -> str:
    return f"VCHR-{secrets.token_hex(8).upper()}"


class RedemptionService:
    """
    Service for reward redemptions.

    Uses @classmethod for extensibility (consistent with the other services).
    """

    # ======================================================================
    # Reads
    # ======================================================================

    @classmethod
    def get(cls, code: str) -> RedemptionLog | None:
        try:
            return RedemptionLog.objects.select_related("customer", "reward").get(code=code)
        except RedemptionLog.DoesNotExist:
            return None

    @classmethod
    def get_for_customer(
        cls,
        customer_code: str,
        status: str | None = None,
        limit: int = 50,
    ) -> list[RedemptionLog]:
        """Redemptions of a customer, most recent first."""
        qs = RedemptionLog.objects.filter(customer__code=customer_code).select_related("reward")
        if status:
            qs = qs.filter(status=status)
        return list(qs[:limit])

    @classmethod
    def total_points_redeemed(cls, customer_code: str) -> int:
        """Points spent on redemptions that were not cancelled."""
        total = (
            RedemptionLog.objects.filter(customer__code=customer_code)
            .exclude(status=RedemptionStatus.CANCELLED)
            .aggregate(total=Sum("points_redeemed"))["total"]
        )
        return total or 0

    @classmethod
    def is_valid_for_use(cls, code: str, now: datetime | None = None) -> bool:
        return cls._require(code).is_valid_for_use(clock.resolve(now))

    # ======================================================================
    # Lifecycle
    # ======================================================================

    @classmethod
    def redeem(
        cls,
        customer_code: str,
        reward_code: str,
        channel: str | None = None,
        store_code: str = "",
        processed_by: str = "",
        notes: str = "",
        metadata: dict | None = None,
        valid_days: int | None = None,
        now: datetime | None = None,
    ) -> RedemptionLog:
        """
        Exchange points for a reward.

        Args:
            customer_code: Customer code
            reward_code: Reward code
            channel: RedemptionChannel (defaults to DEFAULT_REDEMPTION_CHANNEL)
            store_code: Store where the reward is redeemed
            processed_by: Operator or system that processed it
            notes: Free text stored on the record
            metadata: Extra data stored on the record
            valid_days: Voucher validity (defaults to REDEMPTION_VALIDITY_DAYS)

        Returns:
            RedemptionLog in COMPLETED status

        Raises:
            NotFound: If the customer, reward or ledger account does not exist
            InvalidChannel: If the channel is not a RedemptionChannel
            RewardUnavailable: If the reward is inactive, out of its window or sold out
            InsufficientBalance: If the balance does not cover the reward
        """
        now = clock.resolve(now)
        today = clock.local_day(now)
        channel = channel or pointsman_settings.DEFAULT_REDEMPTION_CHANNEL
        if channel not in RedemptionChannel.values:
            raise InvalidChannel(channel)
        if valid_days is None:
            valid_days = pointsman_settings.REDEMPTION_VALIDITY_DAYS
        code = _redemption_code()

        try:
            with (
                exclusive(account_key(customer_code), reward_key(reward_code)),
                storage_errors("redemption.redeem"),
                transaction.atomic(),
            ):
                customer = cls._get_customer(customer_code)
                account = LedgerService.get_account_for_update(customer_code)
                reward = cls._get_reward_for_update(reward_code)

                if not reward.is_available_on(today):
                    raise RewardUnavailable(reward_code)

                entry = LedgerService.apply(
                    account,
                    EntryType.REDEEM,
                    reward.points_required,
                    now,
                    description=f"Redeemed {reward.name}",
                    reference=f"redemption:{code}",
                    created_by=processed_by,
                )

                redemption = RedemptionLog.objects.create(
                    code=code,
                    voucher_code=_voucher_code(),
                    customer=customer,
                    reward=reward,
                    points_redeemed=reward.points_required,
                    status=RedemptionStatus.COMPLETED,
                    channel=channel,
                    redeemed_at=now,
                    expires_at=now + timedelta(days=valid_days) if valid_days else None,
                    store_code=store_code,
                    processed_by=processed_by,
                    notes=notes,
                    metadata=metadata or {},
                )

                Reward.objects.filter(pk=reward.pk).update(
                    quantity_redeemed=F("quantity_redeemed") + 1,
                )
                reward.refresh_from_db(fields=["quantity_redeemed"])
        except (RewardUnavailable, InsufficientBalance) as exc:
            logger.warning("Redemption of %s by %s rejected: %s", reward_code, customer_code, exc)
            raise

        logger.info(
            "Redemption %s: %s redeemed %s for %s points",
            code, customer_code, reward_code, redemption.points_redeemed,
        )
        LedgerService.notify(account, entry)
        redemption_completed.send(sender=RedemptionLog, redemption=redemption)
        return redemption

    @classmethod
    def mark_used(
        cls,
        code: str,
        store_code: str = "",
        processed_by: str = "",
        now: datetime | None = None,
    ) -> RedemptionLog:
        """
        Consume a voucher.

        Raises:
            NotFound: If the redemption does not exist
            InvalidStateTransition: Unless the redemption is valid for use
        """
        now = clock.resolve(now)
        try:
            with (
                exclusive(redemption_key(code)),
                storage_errors("redemption.mark_used"),
                transaction.atomic(),
            ):
                redemption = cls._get_for_update(code)
                if not redemption.is_valid_for_use(now):
                    raise InvalidStateTransition(
                        code, redemption.effective_status(now), RedemptionStatus.USED,
                    )

                redemption.status = RedemptionStatus.USED
                redemption.used_at = now
                update_fields = ["status", "used_at", "updated_at"]
                if store_code:
                    redemption.store_code = store_code
                    update_fields.append("store_code")
                if processed_by:
                    redemption.processed_by = processed_by
                    update_fields.append("processed_by")
                redemption.save(update_fields=update_fields)
        except InvalidStateTransition as exc:
            logger.warning("Redemption %s not usable: %s", code, exc)
            raise

        logger.info("Redemption %s used", code)
        redemption_used.send(sender=RedemptionLog, redemption=redemption)
        return redemption

    @classmethod
    def cancel(
        cls,
        code: str,
        reason: str = "",
        cancelled_by: str = "",
        now: datetime | None = None,
    ) -> RedemptionLog:
        """
        Cancel a redemption and refund its points in full.

        The refund is the points_redeemed stored on the record, whatever
        the reward costs today. A PENDING redemption was never debited, so
        cancelling it refunds nothing.

        Raises:
            NotFound: If the redemption does not exist
            InvalidStateTransition: If the redemption was used, cancelled or refunded
        """
        now = clock.resolve(now)
        found = cls._require(code)
        customer_code = found.customer.code

        try:
            with (
                exclusive(
                    redemption_key(code),
                    account_key(customer_code),
                    reward_key(found.reward.code),
                ),
                storage_errors("redemption.cancel"),
                transaction.atomic(),
            ):
                redemption = cls._get_for_update(code)
                if not can_cancel(redemption.status):
                    raise InvalidStateTransition(
                        code, redemption.status, RedemptionStatus.CANCELLED,
                    )

                account = LedgerService.get_account_for_update(customer_code)
                refunded = 0
                entry = None
                # PENDING records were never debited nor counted against stock
                if redemption.status != RedemptionStatus.PENDING:
                    refunded = redemption.points_redeemed
                    entry = LedgerService.apply(
                        account,
                        EntryType.REFUND,
                        refunded,
                        now,
                        description=f"Cancelled redemption {code}",
                        reference=f"redemption:{code}",
                        created_by=cancelled_by,
                    )
                    Reward.objects.filter(
                        pk=redemption.reward_id, quantity_redeemed__gt=0,
                    ).update(quantity_redeemed=F("quantity_redeemed") - 1)

                redemption.status = RedemptionStatus.CANCELLED
                redemption.cancellation_reason = reason
                redemption.cancelled_at = now
                redemption.save(
                    update_fields=["status", "cancellation_reason", "cancelled_at", "updated_at"],
                )
        except InvalidStateTransition as exc:
            logger.warning("Redemption %s not cancellable: %s", code, exc)
            raise

        logger.info(
            "Redemption %s cancelled, %s points refunded to %s",
            code, refunded, customer_code,
        )
        LedgerService.notify(account, entry)
        redemption_cancelled.send(sender=RedemptionLog, redemption=redemption)
        return redemption

    @classmethod
    def expire_overdue(cls, now: datetime | None = None, dry_run: bool = False) -> list[str]:
        """
        Persist EXPIRED on COMPLETED redemptions past their expires_at.

        Reads never depend on this: expiry is derived from expires_at.
        Returns the codes that were (or, with dry_run, would be) expired.
        """
        now = clock.resolve(now)
        codes = list(
            RedemptionLog.objects.filter(
                status=RedemptionStatus.COMPLETED,
                expires_at__lt=now,
            ).order_by("expires_at", "id").values_list("code", flat=True)
        )
        if dry_run:
            return codes

        expired = []
        for code in codes:
            with (
                exclusive(redemption_key(code)),
                storage_errors("redemption.expire"),
                transaction.atomic(),
            ):
                redemption = cls._get_for_update(code)
                if redemption.status != RedemptionStatus.COMPLETED or not redemption.is_expired(now):
                    continue
                redemption.status = RedemptionStatus.EXPIRED
                redemption.save(update_fields=["status", "updated_at"])
                expired.append(code)

        if expired:
            logger.info("Expired %d redemptions", len(expired))
        return expired

    # ======================================================================
    # Helpers
    # ======================================================================

    @classmethod
    def _require(cls, code: str) -> RedemptionLog:
        redemption = cls.get(code)
        if redemption is None:
            raise NotFound("RedemptionLog", code)
        return redemption

    @classmethod
    def _get_for_update(cls, code: str) -> RedemptionLog:
        try:
            return RedemptionLog.objects.select_for_update().get(code=code)
        except RedemptionLog.DoesNotExist:
            raise NotFound("RedemptionLog", code)

    @classmethod
    def _get_customer(cls, customer_code: str) -> Customer:
        try:
            return Customer.objects.get(code=customer_code)
        except Customer.DoesNotExist:
            raise NotFound("Customer", customer_code)

    @classmethod
    def _get_reward_for_update(cls, reward_code: str) -> Reward:
        try:
            return Reward.objects.select_for_update().get(code=reward_code)
        except Reward.DoesNotExist:
            raise NotFound("Reward", reward_code)
