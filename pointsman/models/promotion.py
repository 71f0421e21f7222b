"""Promotion model — targeting rule plus points bonus."""

from datetime import date

from django.db import models
from django.utils.translation import gettext_lazy as _

from pointsman.models.customer import Tier


class PromotionType(models.TextChoices):
    DISCOUNT = "DISCOUNT", _("Discount")
    BONUS_POINTS = "BONUS_POINTS", _("Bonus points")
    DOUBLE_POINTS = "DOUBLE_POINTS", _("Double points")
    CASHBACK = "CASHBACK", _("Cashback")
    BUY_ONE_GET_ONE = "BUY_ONE_GET_ONE", _("Buy one get one")
    FREE_SHIPPING = "FREE_SHIPPING", _("Free shipping")
    EARLY_ACCESS = "EARLY_ACCESS", _("Early access")
    FLASH_SALE = "FLASH_SALE", _("Flash sale")
    LOYALTY_BOOST = "LOYALTY_BOOST", _("Loyalty boost")
    TIER_BONUS = "TIER_BONUS", _("Tier bonus")


class PromotionStatus(models.TextChoices):
    DRAFT = "DRAFT", _("Draft")
    SCHEDULED = "SCHEDULED", _("Scheduled")
    ACTIVE = "ACTIVE", _("Active")
    PAUSED = "PAUSED", _("Paused")
    EXPIRED = "EXPIRED", _("Expired")
    CANCELLED = "CANCELLED", _("Cancelled")


class Promotion(models.Model):
    """
    Marketing campaign that may add bonus points to a purchase.

    Every targeting field is optional; an unset field does not restrict.
    usage_limit == 0 means unlimited.
    """

    code = models.CharField(_("code"), max_length=50, unique=True)
    name = models.CharField(_("name"), max_length=200)
    description = models.TextField(_("description"), blank=True)
    promotion_type = models.CharField(
        _("type"),
        max_length=30,
        choices=PromotionType.choices,
        default=PromotionType.BONUS_POINTS,
    )
    status = models.CharField(
        _("status"),
        max_length=20,
        choices=PromotionStatus.choices,
        default=PromotionStatus.DRAFT,
        db_index=True,
    )

    start_date = models.DateField(_("start date"), null=True, blank=True)
    end_date = models.DateField(_("end date"), null=True, blank=True)

    # Bonus effect: multiplier applied first, fixed bonus added after
    bonus_points_multiplier = models.DecimalField(
        _("points multiplier"),
        max_digits=10,
        decimal_places=2,
        null=True,
        blank=True,
    )
    bonus_points_fixed = models.IntegerField(_("fixed bonus points"), null=True, blank=True)

    # Usage
    usage_limit = models.PositiveIntegerField(
        _("usage limit"),
        default=0,
        help_text=_("0 = unlimited"),
    )
    usage_count = models.PositiveIntegerField(_("usage count"), default=0)
    usage_limit_per_customer = models.PositiveIntegerField(
        _("usage limit per customer"),
        default=1,
    )

    # Targeting
    minimum_purchase_amount = models.DecimalField(
        _("minimum purchase"),
        max_digits=12,
        decimal_places=2,
        null=True,
        blank=True,
    )
    minimum_tier = models.CharField(
        _("minimum tier"),
        max_length=20,
        choices=Tier.choices,
        blank=True,
    )
    minimum_age = models.PositiveSmallIntegerField(_("minimum age"), null=True, blank=True)
    maximum_age = models.PositiveSmallIntegerField(_("maximum age"), null=True, blank=True)
    target_gender = models.CharField(_("target gender"), max_length=100, blank=True)
    target_city = models.CharField(_("target city"), max_length=100, blank=True)
    target_state = models.CharField(_("target state"), max_length=100, blank=True)
    exclusive_to_new_customers = models.BooleanField(
        _("new customers only"),
        default=False,
    )

    created_at = models.DateTimeField(_("created at"), auto_now_add=True)
    updated_at = models.DateTimeField(_("updated at"), auto_now=True)
    created_by = models.CharField(_("created by"), max_length=100, blank=True)

    class Meta:
        verbose_name = _("promotion")
        verbose_name_plural = _("promotions")
        ordering = ["id"]
        indexes = [
            models.Index(
                fields=["status", "start_date", "end_date"],
                name="pointsman_promo_window_idx",
            ),
        ]

    def __str__(self):
        return f"{self.name} ({self.code})"

    def is_valid_on(self, day: date) -> bool:
        """Active, inside its window, and not used up."""
        if self.status != PromotionStatus.ACTIVE:
            return False
        if self.start_date and day < self.start_date:
            return False
        if self.end_date and day > self.end_date:
            return False
        if self.usage_limit > 0 and self.usage_count >= self.usage_limit:
            return False
        return True

    @property
    def remaining_usage(self) -> int | None:
        """Uses left (None = unlimited)."""
        if self.usage_limit == 0:
            return None
        return max(0, self.usage_limit - self.usage_count)
