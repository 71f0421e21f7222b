"""Reward catalog model."""

from datetime import date

from django.db import models
from django.utils.translation import gettext_lazy as _


class RewardType(models.TextChoices):
    DISCOUNT = "DISCOUNT", _("Discount")
    FREE_PRODUCT = "FREE_PRODUCT", _("Free product")
    CASHBACK = "CASHBACK", _("Cashback")
    GIFT_CARD = "GIFT_CARD", _("Gift card")
    EXPERIENCE = "EXPERIENCE", _("Experience")
    MERCHANDISE = "MERCHANDISE", _("Merchandise")
    VOUCHER = "VOUCHER", _("Voucher")


class RewardCategory(models.TextChoices):
    PRODUCT = "PRODUCT", _("Product")
    SERVICE = "SERVICE", _("Service")
    EXPERIENCE = "EXPERIENCE", _("Experience")
    GIFT = "GIFT", _("Gift")
    TRAVEL = "TRAVEL", _("Travel")
    ENTERTAINMENT = "ENTERTAINMENT", _("Entertainment")
    FOOD_AND_BEVERAGE = "FOOD_AND_BEVERAGE", _("Food and beverage")


class RewardStatus(models.TextChoices):
    ACTIVE = "ACTIVE", _("Active")
    PAUSED = "PAUSED", _("Paused")
    INACTIVE = "INACTIVE", _("Inactive")
    EXPIRED = "EXPIRED", _("Expired")
    OUT_OF_STOCK = "OUT_OF_STOCK", _("Out of stock")
    ARCHIVED = "ARCHIVED", _("Archived")


class Reward(models.Model):
    """
    Item customers can exchange points for.

    quantity None or 0 means unlimited stock. quantity_redeemed is only
    changed by RedemptionService (increment on redeem, decrement on cancel).
    """

    code = models.CharField(_("code"), max_length=50, unique=True)
    name = models.CharField(_("name"), max_length=100)
    description = models.TextField(_("description"), blank=True)
    reward_type = models.CharField(
        _("type"),
        max_length=30,
        choices=RewardType.choices,
        default=RewardType.DISCOUNT,
    )
    category = models.CharField(
        _("category"),
        max_length=30,
        choices=RewardCategory.choices,
        default=RewardCategory.PRODUCT,
    )

    points_required = models.PositiveIntegerField(_("points required"))
    cash_value = models.DecimalField(
        _("cash value"),
        max_digits=10,
        decimal_places=2,
        null=True,
        blank=True,
    )

    quantity = models.PositiveIntegerField(
        _("quantity"),
        null=True,
        blank=True,
        help_text=_("Empty or 0 = unlimited"),
    )
    quantity_redeemed = models.PositiveIntegerField(_("quantity redeemed"), default=0)
    quantity_per_customer = models.PositiveIntegerField(_("quantity per customer"), default=1)

    status = models.CharField(
        _("status"),
        max_length=20,
        choices=RewardStatus.choices,
        default=RewardStatus.ACTIVE,
        db_index=True,
    )
    start_date = models.DateField(_("start date"), null=True, blank=True)
    expiry_date = models.DateField(_("expiry date"), null=True, blank=True)

    created_at = models.DateTimeField(_("created at"), auto_now_add=True)
    updated_at = models.DateTimeField(_("updated at"), auto_now=True)

    class Meta:
        verbose_name = _("reward")
        verbose_name_plural = _("rewards")
        ordering = ["points_required", "id"]

    def __str__(self):
        return f"{self.name} ({self.points_required}pts)"

    @property
    def is_unlimited(self) -> bool:
        return not self.quantity

    @property
    def remaining_quantity(self) -> int | None:
        """Units left (None = unlimited)."""
        if self.is_unlimited:
            return None
        return max(0, self.quantity - self.quantity_redeemed)

    def is_available_on(self, day: date) -> bool:
        if self.status != RewardStatus.ACTIVE:
            return False
        if not self.is_unlimited and self.quantity_redeemed >= self.quantity:
            return False
        if self.start_date and day < self.start_date:
            return False
        if self.expiry_date and day > self.expiry_date:
            return False
        return True
