"""Customer model and loyalty tiers."""

from datetime import date

from django.db import models
from django.utils.translation import gettext_lazy as _


class Tier(models.TextChoices):
    """Loyalty tiers, lowest first."""

    BRONZE = "BRONZE", _("Bronze")
    SILVER = "SILVER", _("Silver")
    GOLD = "GOLD", _("Gold")
    PLATINUM = "PLATINUM", _("Platinum")
    DIAMOND = "DIAMOND", _("Diamond")


TIER_RANKS = {
    Tier.BRONZE: 1,
    Tier.SILVER: 2,
    Tier.GOLD: 3,
    Tier.PLATINUM: 4,
    Tier.DIAMOND: 5,
}


def tier_rank(tier: str | None) -> int:
    """Ordinal position of a tier (0 for unknown or empty)."""
    if not tier:
        return 0
    try:
        return TIER_RANKS[Tier(tier)]
    except ValueError:
        return 0


class CustomerStatus(models.TextChoices):
    ACTIVE = "ACTIVE", _("Active")
    INACTIVE = "INACTIVE", _("Inactive")
    SUSPENDED = "SUSPENDED", _("Suspended")
    DELETED = "DELETED", _("Deleted")


class Customer(models.Model):
    """
    Loyalty program member.

    Owns exactly one LedgerAccount. Never deleted: leaving the program is
    a status transition (INACTIVE, SUSPENDED, DELETED).
    """

    code = models.CharField(
        _("code"),
        max_length=50,
        unique=True,
        help_text=_("Unique customer code (e.g. CUST-001)"),
    )

    first_name = models.CharField(_("first name"), max_length=100)
    last_name = models.CharField(_("last name"), max_length=100, blank=True)
    email = models.EmailField(_("email"), blank=True, db_index=True)
    phone = models.CharField(_("phone"), max_length=20, blank=True)

    # Targeting attributes
    date_of_birth = models.DateField(_("date of birth"), null=True, blank=True)
    gender = models.CharField(_("gender"), max_length=10, blank=True)
    city = models.CharField(_("city"), max_length=100, blank=True)
    state = models.CharField(_("state"), max_length=50, blank=True)

    tier = models.CharField(
        _("tier"),
        max_length=20,
        choices=Tier.choices,
        default=Tier.BRONZE,
    )
    status = models.CharField(
        _("status"),
        max_length=20,
        choices=CustomerStatus.choices,
        default=CustomerStatus.ACTIVE,
        db_index=True,
    )

    enrolled_at = models.DateTimeField(_("enrolled at"), null=True, blank=True)
    last_activity_date = models.DateField(_("last activity"), null=True, blank=True)

    created_at = models.DateTimeField(_("created at"), auto_now_add=True)
    updated_at = models.DateTimeField(_("updated at"), auto_now=True)

    class Meta:
        verbose_name = _("customer")
        verbose_name_plural = _("customers")
        ordering = ["code"]

    def __str__(self):
        return f"{self.name} ({self.code})"

    @property
    def name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    @property
    def tier_rank(self) -> int:
        return tier_rank(self.tier)

    def age_on(self, day: date) -> int:
        """Age in whole years on the given day (0 when date of birth is unknown)."""
        dob = self.date_of_birth
        if dob is None:
            return 0
        years = day.year - dob.year
        if (day.month, day.day) < (dob.month, dob.day):
            years -= 1
        return max(0, years)
