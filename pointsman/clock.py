"""
Time source helpers.

Services take an optional `now`; when absent the configured CLOCK is read
once at the service boundary and passed down. Models and pure functions
only ever receive `now` as an argument.
"""

from datetime import date, datetime

from django.utils import timezone

from pointsman.conf import get_clock


def resolve(now: datetime | None = None) -> datetime:
    return now if now is not None else get_clock()()


def local_day(now: datetime) -> date:
    """Calendar day of `now` in the current time zone."""
    if timezone.is_aware(now):
        return timezone.localdate(now)
    return now.date()
