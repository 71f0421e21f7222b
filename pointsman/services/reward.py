"""Reward service — catalog administration and queries."""

import logging
from datetime import datetime

from django.db import IntegrityError, transaction

from pointsman import clock
from pointsman.exceptions import DuplicateCode, NotFound, storage_errors
from pointsman.locks import exclusive, reward_key
from pointsman.models import Reward, RewardStatus

logger = logging.getLogger(__name__)


class RewardService:
    """
    Service for reward catalog operations.

    Uses @classmethod for extensibility (consistent with the other services).
    """

    @classmethod
    def create(cls, code: str, name: str, points_required: int, **fields) -> Reward:
        """
        Create an ACTIVE reward.

        Raises:
            DuplicateCode: If the reward code is taken
        """
        fields.pop("quantity_redeemed", None)
        fields.setdefault("status", RewardStatus.ACTIVE)
        with storage_errors("reward.create"):
            try:
                with transaction.atomic():
                    reward = Reward.objects.create(
                        code=code,
                        name=name,
                        points_required=points_required,
                        **fields,
                    )
            except IntegrityError:
                raise DuplicateCode("reward", code)
        logger.info("Reward %s created (%s points)", code, points_required)
        return reward

    @classmethod
    def get(cls, code: str) -> Reward | None:
        try:
            return Reward.objects.get(code=code)
        except Reward.DoesNotExist:
            return None

    @classmethod
    def set_status(cls, code: str, status: str) -> Reward:
        with (
            exclusive(reward_key(code)),
            storage_errors("reward.set_status"),
            transaction.atomic(),
        ):
            try:
                reward = Reward.objects.select_for_update().get(code=code)
            except Reward.DoesNotExist:
                raise NotFound("Reward", code)
            reward.status = RewardStatus(status)
            reward.save(update_fields=["status", "updated_at"])
        logger.info("Reward %s status set to %s", code, status)
        return reward

    @classmethod
    def available(cls, now: datetime | None = None) -> list[Reward]:
        """Rewards that can be redeemed today, cheapest first."""
        today = clock.local_day(clock.resolve(now))
        return [
            reward
            for reward in Reward.objects.filter(status=RewardStatus.ACTIVE)
            if reward.is_available_on(today)
        ]

    @classmethod
    def affordable(cls, points: int, now: datetime | None = None) -> list[Reward]:
        """Available rewards costing at most `points`."""
        return [reward for reward in cls.available(now) if reward.points_required <= points]
