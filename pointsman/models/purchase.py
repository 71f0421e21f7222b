"""PurchaseTransaction model — purchase events that earned points."""

from django.db import models
from django.utils.translation import gettext_lazy as _


class PurchaseStatus(models.TextChoices):
    PENDING = "PENDING", _("Pending")
    COMPLETED = "COMPLETED", _("Completed")
    CANCELLED = "CANCELLED", _("Cancelled")
    REFUNDED = "REFUNDED", _("Refunded")
    VOIDED = "VOIDED", _("Voided")


class PurchaseTransaction(models.Model):
    """Purchase recorded through PurchaseService.record_purchase()."""

    code = models.CharField(_("code"), max_length=50, unique=True)
    customer = models.ForeignKey(
        "pointsman.Customer",
        on_delete=models.PROTECT,
        related_name="purchases",
        verbose_name=_("customer"),
    )

    amount = models.DecimalField(_("amount"), max_digits=12, decimal_places=2)
    discount_applied = models.DecimalField(
        _("discount"),
        max_digits=12,
        decimal_places=2,
        default=0,
    )
    net_amount = models.DecimalField(_("net amount"), max_digits=12, decimal_places=2)

    base_points = models.BigIntegerField(_("base points"), default=0)
    points_earned = models.BigIntegerField(_("points earned"), default=0)
    promotion = models.ForeignKey(
        "pointsman.Promotion",
        on_delete=models.PROTECT,
        related_name="purchases",
        null=True,
        blank=True,
        verbose_name=_("applied promotion"),
    )

    status = models.CharField(
        _("status"),
        max_length=20,
        choices=PurchaseStatus.choices,
        default=PurchaseStatus.COMPLETED,
    )
    store_code = models.CharField(_("store code"), max_length=100, blank=True)
    reference = models.CharField(
        _("reference"),
        max_length=100,
        blank=True,
        help_text=_("External reference (e.g. receipt number)"),
    )

    transacted_at = models.DateTimeField(_("transacted at"), db_index=True)
    created_at = models.DateTimeField(_("created at"), auto_now_add=True)

    class Meta:
        verbose_name = _("purchase")
        verbose_name_plural = _("purchases")
        ordering = ["-transacted_at", "-id"]

    def __str__(self):
        return f"{self.code}: {self.net_amount} (+{self.points_earned}pts)"
