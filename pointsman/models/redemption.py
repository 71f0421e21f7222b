"""RedemptionLog model — append-only record of reward redemptions."""

from datetime import datetime

from django.db import models
from django.utils.translation import gettext_lazy as _

from pointsman import lifecycle
from pointsman.lifecycle import RedemptionChannel, RedemptionStatus


class RedemptionLog(models.Model):
    """
    One record per redemption.

    points_redeemed is frozen at redemption time: later changes to the
    reward price never affect refunds. Records are never deleted.
    """

    code = models.CharField(_("redemption code"), max_length=50, unique=True)
    voucher_code = models.CharField(_("voucher code"), max_length=100, blank=True)
    redemption_url = models.CharField(_("redemption URL"), max_length=255, blank=True)

    customer = models.ForeignKey(
        "pointsman.Customer",
        on_delete=models.PROTECT,
        related_name="redemptions",
        verbose_name=_("customer"),
    )
    reward = models.ForeignKey(
        "pointsman.Reward",
        on_delete=models.PROTECT,
        related_name="redemptions",
        verbose_name=_("reward"),
    )

    points_redeemed = models.PositiveIntegerField(_("points redeemed"))
    status = models.CharField(
        _("status"),
        max_length=20,
        choices=RedemptionStatus.choices,
        default=RedemptionStatus.PENDING,
        db_index=True,
    )
    channel = models.CharField(
        _("channel"),
        max_length=30,
        choices=RedemptionChannel.choices,
        default=RedemptionChannel.ONLINE,
    )

    redeemed_at = models.DateTimeField(_("redeemed at"), db_index=True)
    expires_at = models.DateTimeField(_("expires at"), null=True, blank=True)
    used_at = models.DateTimeField(_("used at"), null=True, blank=True)
    cancelled_at = models.DateTimeField(_("cancelled at"), null=True, blank=True)

    store_code = models.CharField(_("store code"), max_length=100, blank=True)
    processed_by = models.CharField(_("processed by"), max_length=100, blank=True)
    notes = models.TextField(_("notes"), blank=True)
    cancellation_reason = models.TextField(_("cancellation reason"), blank=True)
    metadata = models.JSONField(_("metadata"), default=dict, blank=True)

    created_at = models.DateTimeField(_("created at"), auto_now_add=True)
    updated_at = models.DateTimeField(_("updated at"), auto_now=True)

    class Meta:
        verbose_name = _("redemption")
        verbose_name_plural = _("redemptions")
        ordering = ["-redeemed_at", "-id"]
        indexes = [
            models.Index(
                fields=["customer", "-redeemed_at"],
                name="pointsman_rdm_customer_idx",
            ),
            models.Index(
                fields=["status", "expires_at"],
                name="pointsman_rdm_expiry_idx",
            ),
        ]

    def __str__(self):
        return f"{self.code} ({self.status})"

    def is_expired(self, now: datetime) -> bool:
        return lifecycle.is_expired(self.expires_at, now)

    def is_valid_for_use(self, now: datetime) -> bool:
        return lifecycle.is_valid_for_use(self.status, self.expires_at, self.used_at, now)

    def effective_status(self, now: datetime) -> str:
        return lifecycle.effective_status(self.status, self.expires_at, now)
