"""Promotion service — catalog administration."""

import logging
from datetime import datetime, timedelta

from django.db import IntegrityError, transaction

from pointsman import clock
from pointsman.eligibility import PromotionEligibilityEngine
from pointsman.exceptions import DuplicateCode, NotFound, storage_errors
from pointsman.models import Promotion, PromotionStatus

logger = logging.getLogger(__name__)


class PromotionService:
    """
    Service for promotion catalog operations.

    Uses @classmethod for extensibility (consistent with the other services).
    """

    @classmethod
    def create(cls, code: str, name: str, **fields) -> Promotion:
        """
        Create a promotion in DRAFT status.

        Raises:
            DuplicateCode: If the promotion code is taken
        """
        fields.pop("status", None)
        fields.pop("usage_count", None)
        with storage_errors("promotion.create"):
            try:
                with transaction.atomic():
                    promotion = Promotion.objects.create(
                        code=code,
                        name=name,
                        status=PromotionStatus.DRAFT,
                        **fields,
                    )
            except IntegrityError:
                raise DuplicateCode("promotion", code)
        logger.info("Promotion %s created", code)
        return promotion

    @classmethod
    def get(cls, code: str) -> Promotion | None:
        try:
            return Promotion.objects.get(code=code)
        except Promotion.DoesNotExist:
            return None

    @classmethod
    def set_status(cls, code: str, status: str) -> Promotion:
        with (storage_errors("promotion.set_status"), transaction.atomic()):
            try:
                promotion = Promotion.objects.select_for_update().get(code=code)
            except Promotion.DoesNotExist:
                raise NotFound("Promotion", code)
            promotion.status = PromotionStatus(status)
            promotion.save(update_fields=["status", "updated_at"])
        logger.info("Promotion %s status set to %s", code, status)
        return promotion

    @classmethod
    def activate(cls, code: str) -> Promotion:
        return cls.set_status(code, PromotionStatus.ACTIVE)

    @classmethod
    def pause(cls, code: str) -> Promotion:
        return cls.set_status(code, PromotionStatus.PAUSED)

    @classmethod
    def cancel(cls, code: str) -> Promotion:
        return cls.set_status(code, PromotionStatus.CANCELLED)

    @classmethod
    def active(cls, now: datetime | None = None) -> list[Promotion]:
        """Promotions currently eligible for selection, in selection order."""
        return PromotionEligibilityEngine.active_promotions(clock.local_day(clock.resolve(now)))

    @classmethod
    def expiring_within(cls, days: int, now: datetime | None = None) -> list[Promotion]:
        """ACTIVE promotions whose end date falls in the next `days` days."""
        today = clock.local_day(clock.resolve(now))
        return list(
            Promotion.objects.filter(
                status=PromotionStatus.ACTIVE,
                end_date__gte=today,
                end_date__lte=today + timedelta(days=days),
            ).order_by("end_date", "id")
        )
