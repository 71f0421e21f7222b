"""
Redemption lifecycle — states, transitions and time-derived predicates.

Pure functions of (status, expires_at, used_at, now). Nothing here reads
the system clock or the database, so expiry can be tested with any `now`.

    PENDING ──> COMPLETED ──> USED
       │            ├──> CANCELLED
       │            ├──> EXPIRED (derived from expires_at, persisted by sweep)
       │            └──> REFUNDED
       └──> CANCELLED

A COMPLETED record whose expires_at has passed is logically EXPIRED even
while its stored status still reads COMPLETED.
"""

from datetime import datetime

from django.db import models
from django.utils.translation import gettext_lazy as _


class RedemptionStatus(models.TextChoices):
    PENDING = "PENDING", _("Pending")
    COMPLETED = "COMPLETED", _("Completed")
    USED = "USED", _("Used")
    EXPIRED = "EXPIRED", _("Expired")
    CANCELLED = "CANCELLED", _("Cancelled")
    REFUNDED = "REFUNDED", _("Refunded")


class RedemptionChannel(models.TextChoices):
    ONLINE = "ONLINE", _("Online")
    IN_STORE = "IN_STORE", _("In store")
    MOBILE_APP = "MOBILE_APP", _("Mobile app")
    PHONE = "PHONE", _("Phone")
    KIOSK = "KIOSK", _("Kiosk")


TRANSITIONS: dict[str, frozenset[str]] = {
    RedemptionStatus.PENDING: frozenset({
        RedemptionStatus.COMPLETED,
        RedemptionStatus.CANCELLED,
    }),
    RedemptionStatus.COMPLETED: frozenset({
        RedemptionStatus.USED,
        RedemptionStatus.CANCELLED,
        RedemptionStatus.EXPIRED,
        RedemptionStatus.REFUNDED,
    }),
    RedemptionStatus.EXPIRED: frozenset({
        RedemptionStatus.CANCELLED,
    }),
    RedemptionStatus.USED: frozenset(),
    RedemptionStatus.CANCELLED: frozenset(),
    RedemptionStatus.REFUNDED: frozenset(),
}


def can_transition(from_status: str, to_status: str) -> bool:
    return to_status in TRANSITIONS.get(from_status, frozenset())


def is_expired(expires_at: datetime | None, now: datetime) -> bool:
    return expires_at is not None and now > expires_at


def is_valid_for_use(
    status: str,
    expires_at: datetime | None,
    used_at: datetime | None,
    now: datetime,
) -> bool:
    return (
        status == RedemptionStatus.COMPLETED
        and not is_expired(expires_at, now)
        and used_at is None
    )


def effective_status(status: str, expires_at: datetime | None, now: datetime) -> str:
    """Stored status, with COMPLETED read as EXPIRED once past expires_at."""
    if status == RedemptionStatus.COMPLETED and is_expired(expires_at, now):
        return RedemptionStatus.EXPIRED
    return status


def can_cancel(status: str) -> bool:
    return can_transition(status, RedemptionStatus.CANCELLED)
