"""Pointsman exceptions."""

import logging
from contextlib import contextmanager

from django.db import DatabaseError

logger = logging.getLogger(__name__)


class BaseError(Exception):
    """
    Structured exception with a stable code and a data payload.

    Usage:
        try:
            RedemptionService.redeem("CUST-001", "RWD-001")
        except PointsmanError as e:
            if e.code == "INSUFFICIENT_BALANCE":
                show_balance(e.data["available"])
    """

    _default_messages: dict[str, str] = {}

    def __init__(self, code: str, message: str | None = None, **data):
        self.code = code
        self.message = message or self._default_messages.get(code, code)
        self.data = data
        super().__init__(f"[{code}] {self.message}")

    def as_dict(self) -> dict:
        return {"code": self.code, "message": self.message, "data": self.data}


class PointsmanError(BaseError):
    """
    Business rule violated.

    Terminal: raised to the caller, never retried inside pointsman.
    """

    _default_messages = {
        "NOT_FOUND": "Entity not found",
        "INSUFFICIENT_BALANCE": "Insufficient points balance",
        "REWARD_UNAVAILABLE": "Reward is not available for redemption",
        "INVALID_STATE_TRANSITION": "Redemption state transition not allowed",
        "INVALID_CHANNEL": "Unknown redemption channel",
        "DUPLICATE_CODE": "Code already exists",
    }


class NotFound(PointsmanError):
    def __init__(self, entity: str, key):
        self.entity = entity
        self.key = key
        super().__init__(
            "NOT_FOUND",
            message=f"{entity} not found: {key}",
            entity=entity,
            key=key,
        )


class InsufficientBalance(PointsmanError):
    def __init__(self, customer_code: str, available: int, required: int):
        self.customer_code = customer_code
        self.available = available
        self.required = required
        super().__init__(
            "INSUFFICIENT_BALANCE",
            message=f"Insufficient points: {available} available, {required} required",
            customer_code=customer_code,
            available=available,
            required=required,
        )


class RewardUnavailable(PointsmanError):
    def __init__(self, reward_code: str):
        self.reward_code = reward_code
        super().__init__("REWARD_UNAVAILABLE", reward_code=reward_code)


class InvalidChannel(PointsmanError):
    def __init__(self, channel: str):
        self.channel = channel
        super().__init__("INVALID_CHANNEL", channel=channel)


class InvalidStateTransition(PointsmanError):
    def __init__(self, redemption_code: str, from_status: str, to_status: str):
        self.redemption_code = redemption_code
        self.from_status = from_status
        self.to_status = to_status
        super().__init__(
            "INVALID_STATE_TRANSITION",
            message=f"Redemption {redemption_code} cannot go from {from_status} to {to_status}",
            redemption_code=redemption_code,
            from_status=from_status,
            to_status=to_status,
        )


class DuplicateCode(PointsmanError):
    def __init__(self, kind: str, code: str):
        self.kind = kind
        self.duplicate_code = code
        super().__init__(
            "DUPLICATE_CODE",
            message=f"{kind} code already exists: {code}",
            kind=kind,
            duplicate_code=code,
        )


class StorageError(BaseError):
    """
    System failure below the domain (database errors).

    Deliberately not a PointsmanError so callers can tell
    "business rule violated" apart from "system failure".
    """

    _default_messages = {
        "STORAGE_FAILURE": "Storage failure",
    }


@contextmanager
def storage_errors(operation: str):
    """Translate database errors raised inside the block into StorageError."""
    try:
        yield
    except DatabaseError as exc:
        logger.warning("Storage failure during %s: %s", operation, exc)
        raise StorageError("STORAGE_FAILURE", operation=operation) from exc
