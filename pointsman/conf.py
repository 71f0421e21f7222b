"""
Pointsman configuration.

Usage in settings.py:
    POINTSMAN = {
        "POINTS_EARN_RATE": 10,
        "WELCOME_BONUS_POINTS": 100,
        "REDEMPTION_VALIDITY_DAYS": 30,
        "CLOCK": "myproject.clock.now",
    }
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable

from django.conf import settings
from django.utils.module_loading import import_string


@dataclass
class PointsmanSettings:
    """Pointsman configuration settings."""

    # Points per whole currency unit of net purchase amount
    POINTS_EARN_RATE: int = 10

    # Points per currency unit of reward value
    POINTS_REDEMPTION_RATE: int = 100

    # Credited when a customer enrolls
    WELCOME_BONUS_POINTS: int = 100

    # Voucher validity for new redemptions (None = never expires)
    REDEMPTION_VALIDITY_DAYS: int | None = None

    DEFAULT_REDEMPTION_CHANNEL: str = "ONLINE"

    # Dotted path to a zero-argument callable returning an aware datetime
    CLOCK: str = "django.utils.timezone.now"


def get_pointsman_settings() -> PointsmanSettings:
    """Load settings from Django settings."""
    user_settings: dict[str, Any] = getattr(settings, "POINTSMAN", {})
    return PointsmanSettings(**user_settings)


def get_clock() -> Callable[[], datetime]:
    """Resolve the configured time source."""
    return import_string(get_pointsman_settings().CLOCK)


class _LazySettings:
    """Lazy proxy that re-reads settings on every attribute access."""

    def __getattr__(self, name):
        return getattr(get_pointsman_settings(), name)


pointsman_settings = _LazySettings()
