"""Ledger models — per-customer point balance and its audit trail."""

from datetime import datetime

from django.db import models
from django.utils.translation import gettext_lazy as _

from pointsman.exceptions import InsufficientBalance


class AccountStatus(models.TextChoices):
    ACTIVE = "ACTIVE", _("Active")
    FROZEN = "FROZEN", _("Frozen")
    EXPIRED = "EXPIRED", _("Expired")
    CLOSED = "CLOSED", _("Closed")


class EntryType(models.TextChoices):
    EARN = "EARN", _("Earn")
    REDEEM = "REDEEM", _("Redeem")
    ADJUST = "ADJUST", _("Adjust")
    EXPIRE = "EXPIRE", _("Expire")
    REFUND = "REFUND", _("Refund")


class LedgerAccount(models.Model):
    """
    Customer point balance (one per customer).

    The four mutators below are the only code allowed to change the
    counters. They do arithmetic and validation only; locking, saving and
    auditing belong to LedgerService.

    Invariant after every mutation:
        current_balance == points_earned + points_adjusted_net
                           - points_redeemed - points_expired

    points_adjusted accumulates abs(delta) of every adjustment;
    points_adjusted_net keeps their signed sum.
    """

    customer = models.OneToOneField(
        "pointsman.Customer",
        on_delete=models.PROTECT,
        related_name="ledger_account",
        verbose_name=_("customer"),
    )

    points_earned = models.BigIntegerField(_("points earned"), default=0)
    points_redeemed = models.BigIntegerField(_("points redeemed"), default=0)
    points_expired = models.BigIntegerField(_("points expired"), default=0)
    points_adjusted = models.BigIntegerField(
        _("points adjusted"),
        default=0,
        help_text=_("Sum of absolute adjustment amounts"),
    )
    points_adjusted_net = models.BigIntegerField(
        _("net adjustment"),
        default=0,
        help_text=_("Signed sum of adjustments applied to the balance"),
    )
    current_balance = models.BigIntegerField(_("current balance"), default=0)
    lifetime_points = models.BigIntegerField(
        _("lifetime points"),
        default=0,
        help_text=_("Total points ever earned (never decreases)"),
    )

    status = models.CharField(
        _("status"),
        max_length=20,
        choices=AccountStatus.choices,
        default=AccountStatus.ACTIVE,
    )

    last_earned_at = models.DateTimeField(_("last earned at"), null=True, blank=True)
    last_redeemed_at = models.DateTimeField(_("last redeemed at"), null=True, blank=True)
    last_adjusted_at = models.DateTimeField(_("last adjusted at"), null=True, blank=True)

    notes = models.TextField(_("notes"), blank=True)

    created_at = models.DateTimeField(_("created at"), auto_now_add=True)
    updated_at = models.DateTimeField(_("updated at"), auto_now=True)

    class Meta:
        verbose_name = _("ledger account")
        verbose_name_plural = _("ledger accounts")

    def __str__(self):
        return f"{self.customer_code}: {self.current_balance}pts"

    @property
    def customer_code(self) -> str:
        return self.customer.code if self.customer_id else ""

    @property
    def available_balance(self) -> int:
        """
        current_balance minus expired points.

        expire_points() already subtracts from current_balance, so expired
        points count twice here. Kept as-is pending product clarification.
        """
        return self.current_balance - self.points_expired

    def balance_invariant_holds(self) -> bool:
        return self.current_balance == (
            self.points_earned
            + self.points_adjusted_net
            - self.points_redeemed
            - self.points_expired
        )

    # ------------------------------------------------------------------
    # Mutators. Each returns the signed delta applied to current_balance
    # (0 when the operation was a no-op).
    # ------------------------------------------------------------------

    def add_points(self, amount: int, now: datetime) -> int:
        if amount <= 0:
            return 0
        self.points_earned += amount
        self.current_balance += amount
        self.lifetime_points += amount
        self.last_earned_at = now
        return amount

    def redeem_points(self, amount: int, now: datetime) -> int:
        if amount <= 0:
            return 0
        if self.current_balance < amount:
            raise InsufficientBalance(self.customer_code, self.current_balance, amount)
        self.points_redeemed += amount
        self.current_balance -= amount
        self.last_redeemed_at = now
        return -amount

    def adjust_points(self, delta: int, now: datetime) -> int:
        if delta == 0:
            return 0
        if delta < 0 and -delta > self.current_balance:
            raise InsufficientBalance(self.customer_code, self.current_balance, -delta)
        self.points_adjusted += abs(delta)
        self.points_adjusted_net += delta
        self.current_balance += delta
        self.last_adjusted_at = now
        return delta

    def expire_points(self, amount: int) -> int:
        if amount <= 0 or (self.current_balance - self.points_expired) < amount:
            return 0
        self.points_expired += amount
        self.current_balance -= amount
        return -amount


class LedgerEntry(models.Model):
    """
    Immutable record of an applied ledger mutation.

    Append-only: never modified or deleted.
    """

    account = models.ForeignKey(
        LedgerAccount,
        on_delete=models.PROTECT,
        related_name="entries",
        verbose_name=_("account"),
    )
    entry_type = models.CharField(_("type"), max_length=20, choices=EntryType.choices)
    points = models.BigIntegerField(
        _("points"),
        help_text=_("Positive for credits, negative for debits"),
    )
    balance_after = models.BigIntegerField(_("balance after"))

    description = models.CharField(_("description"), max_length=200, blank=True)
    reference = models.CharField(
        _("reference"),
        max_length=100,
        blank=True,
        help_text=_("External reference (e.g. purchase:TXN-1, redemption:RDM-1)"),
    )

    created_at = models.DateTimeField(_("created at"), db_index=True)
    created_by = models.CharField(_("created by"), max_length=100, blank=True)

    class Meta:
        verbose_name = _("ledger entry")
        verbose_name_plural = _("ledger entries")
        ordering = ["-created_at", "-id"]
        indexes = [
            models.Index(
                fields=["account", "-created_at"],
                name="pointsman_entry_account_idx",
            ),
        ]

    def __str__(self):
        sign = "+" if self.points > 0 else ""
        return f"{sign}{self.points}pts - {self.entry_type}"
